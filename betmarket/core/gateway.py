"""Store gateway contract.

The market session never talks to a database directly.  It is handed a
:class:`StoreGateway` at construction time, which makes the session easy to
drive from tests with :class:`InMemoryStoreGateway` and lets the API plug in
the SQLAlchemy-backed gateway from ``betmarket.services.store``.

Every method is a coroutine: gateway calls are the only suspension points in
a session.  Implementations raise :class:`~betmarket.core.errors.GameNotFound`
for a missing game and :class:`~betmarket.core.errors.StoreFailure` for
anything else that goes wrong.
"""

from __future__ import annotations

import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from betmarket.core.domain import Game, PlacementRequest
from betmarket.core.errors import GameNotFound, StoreFailure
from betmarket.core.feed import WagerRow


class StoreGateway(ABC):
    """Persistence operations consumed by the market session."""

    @abstractmethod
    async def get_game(self, game_id: str) -> Game:
        """Return the game or raise ``GameNotFound``."""

    @abstractmethod
    async def get_user_balance(self, user_id: str) -> Decimal:
        """Current balance for ``user_id``."""

    @abstractmethod
    async def list_win_wagers(self, game_id: str) -> List[WagerRow]:
        """Win-market bets for the game, in any order."""

    @abstractmethod
    async def list_score_wagers(self, game_id: str) -> List[WagerRow]:
        """Score-market bets for the game, in any order."""

    @abstractmethod
    async def insert_win_wager(self, request: PlacementRequest) -> str:
        """Persist a win-market bet and debit the stake.  Returns the bet id."""

    @abstractmethod
    async def insert_score_wager(self, request: PlacementRequest) -> str:
        """Persist a score-market bet and debit the stake.  Returns the bet id."""


@dataclass
class _User:
    id: str
    name: str
    balance: Decimal


class InMemoryStoreGateway(StoreGateway):
    """Dictionary-backed store for tests and local demos.

    Mirrors the SQL store's behaviour: inserts debit the bettor's balance and
    are refused with ``StoreFailure`` when the balance would go negative.
    """

    def __init__(self, clock=datetime.utcnow):
        self._clock = clock
        self._ids = itertools.count(1)
        self.games: Dict[str, Game] = {}
        self.users: Dict[str, _User] = {}
        self.win_rows: Dict[str, List[WagerRow]] = {}
        self.score_rows: Dict[str, List[WagerRow]] = {}
        self.inserts: List[PlacementRequest] = []

    # ------------------------------------------------------------------
    # Seeding helpers
    # ------------------------------------------------------------------

    def add_game(self, game: Game) -> Game:
        self.games[game.id] = game
        return game

    def set_game_status(self, game_id: str, status: str) -> None:
        self.games[game_id] = replace(self.games[game_id], status=status)

    def add_user(self, user_id: str, balance, name: Optional[str] = None) -> None:
        self.users[user_id] = _User(user_id, name or user_id, Decimal(str(balance)))

    def add_row(self, game_id: str, market: str, row: WagerRow) -> None:
        table = self.win_rows if market == "win" else self.score_rows
        table.setdefault(game_id, []).append(row)

    # ------------------------------------------------------------------
    # StoreGateway
    # ------------------------------------------------------------------

    async def get_game(self, game_id: str) -> Game:
        try:
            return self.games[game_id]
        except KeyError:
            raise GameNotFound(game_id) from None

    async def get_user_balance(self, user_id: str) -> Decimal:
        user = self.users.get(user_id)
        if user is None:
            raise StoreFailure(f"User {user_id!r} not found")
        return user.balance

    async def list_win_wagers(self, game_id: str) -> List[WagerRow]:
        return list(self.win_rows.get(game_id, []))

    async def list_score_wagers(self, game_id: str) -> List[WagerRow]:
        return list(self.score_rows.get(game_id, []))

    async def insert_win_wager(self, request: PlacementRequest) -> str:
        return self._insert(self.win_rows, request)

    async def insert_score_wager(self, request: PlacementRequest) -> str:
        return self._insert(self.score_rows, request)

    def _insert(self, table: Dict[str, List[WagerRow]], request: PlacementRequest) -> str:
        user = self.users.get(request.user_id)
        if user is None:
            raise StoreFailure(f"User {request.user_id!r} not found")
        if request.amount > user.balance:
            raise StoreFailure("Insufficient balance")

        user.balance -= request.amount
        bet_id = str(next(self._ids))
        table.setdefault(request.game_id, []).append(WagerRow(
            id=bet_id,
            user_id=user.id,
            amount=request.amount,
            status="pending",
            created_at=self._clock(),
            team=request.team,
            predicted_percentage=request.predicted_percentage,
            predicted_score=request.bracket,
            bettor_name=user.name,
        ))
        self.inserts.append(request)
        return bet_id
