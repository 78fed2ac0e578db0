"""
Process-local registry of market sessions for the HTTP API.

HTTP is stateless, but the submit guard has to live somewhere: a bettor who
double-clicks "Place Bet" sends two POSTs for the same game.  The registry
keeps one :class:`MarketSession` per ``(user_id, game_id)`` and refuses to
start a second placement for a key while the first is still running.
Market reads get an unregistered :meth:`SessionRegistry.viewer` session, so a
page refresh never supersedes the load a placement is waiting on.

Sessions are evicted least-recently-used once ``max_sessions`` is reached;
evicted sessions are closed so any late fetch results are discarded.
"""

import logging
from collections import OrderedDict
from typing import Optional, Set, Tuple

from betmarket.config import MarketSettings
from betmarket.core.gateway import StoreGateway
from betmarket.services.market_session import MarketSession

logger = logging.getLogger(__name__)

SessionKey = Tuple[str, str]


class SessionRegistry:
    def __init__(
        self,
        gateway: StoreGateway,
        settings: Optional[MarketSettings] = None,
        max_sessions: int = 1000,
    ):
        self.gateway = gateway
        self.settings = settings or MarketSettings.from_env()
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[SessionKey, MarketSession]" = OrderedDict()
        self._placing: Set[SessionKey] = set()

    def __len__(self) -> int:
        return len(self._sessions)

    def viewer(self, user_id: Optional[str] = None) -> MarketSession:
        """A throwaway, unregistered session for a read-only market view."""
        return MarketSession(self.gateway, self.settings, user_id=user_id)

    def get(self, user_id: str, game_id: str) -> MarketSession:
        key = (user_id, game_id)
        session = self._sessions.get(key)
        if session is None:
            session = MarketSession(self.gateway, self.settings, user_id=user_id)
            self._sessions[key] = session
            self._evict()
        else:
            self._sessions.move_to_end(key)
        return session

    def begin_placement(self, user_id: str, game_id: str) -> bool:
        """Claim the key for a bet placement; False if one is already running."""
        key = (user_id, game_id)
        session = self._sessions.get(key)
        if key in self._placing or (session is not None and session.submitting):
            return False
        self._placing.add(key)
        return True

    def end_placement(self, user_id: str, game_id: str) -> None:
        self._placing.discard((user_id, game_id))

    def close_all(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()
        self._placing.clear()

    def _evict(self) -> None:
        excess = len(self._sessions) - self.max_sessions
        if excess <= 0:
            return
        idle = [key for key in self._sessions if key not in self._placing]
        for key in idle[:excess]:
            session = self._sessions.pop(key)
            session.close()
            logger.debug("Evicted market session %s", key)


_registry: Optional[SessionRegistry] = None


def get_session_registry() -> SessionRegistry:
    global _registry
    if _registry is None:
        from betmarket.services.store import SqlStoreGateway

        _registry = SessionRegistry(SqlStoreGateway())
    return _registry
