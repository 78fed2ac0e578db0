"""
Market session: one bettor's view of one game's betting market.

Owns the in-memory game, balance, wager feed, volume snapshot and form
draft, and sequences every store call:

    load()    - game, balance and wager feed fetched concurrently; each
                fetch fails on its own without blocking the others
    submit()  - validate, insert into the collection for the game's market
                type, then reload feed and balance from the store

Only one submit may be in flight at a time.  A second call made while the
first is outstanding returns a BUSY result and changes nothing.

Teardown: after close(), or once a newer load() has started, results from
older fetches are dropped instead of being applied.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import List, Optional, Tuple

from betmarket.config import (
    OP_FETCH_BALANCE,
    OP_FETCH_GAME,
    OP_FETCH_WAGERS,
    OP_SUBMIT,
    FailurePolicy,
    MarketSettings,
)
from betmarket.core.brackets import SCORE_BRACKETS
from betmarket.core.domain import GAME_TYPE_WIN, Game, Wager, WagerDraft
from betmarket.core.errors import USER_MESSAGES, ErrorKind, GameNotFound, MarketError
from betmarket.core.feed import merge_wagers
from betmarket.core.gateway import StoreGateway
from betmarket.core.validator import Rejected, validate
from betmarket.core.volume import VolumeSnapshot, aggregate

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")

_FETCH_LABELS = {
    OP_FETCH_GAME: "game",
    OP_FETCH_BALANCE: "balance",
    OP_FETCH_WAGERS: "bets",
}


# ---------------------------------------------------------------------------
# Results and view
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SubmitResult:
    accepted: bool
    reason: Optional[ErrorKind] = None
    message: str = ""
    bet_id: Optional[str] = None


@dataclass(frozen=True)
class MarketView:
    """Everything the display layer reads from a session."""

    game: Optional[Game]
    not_found: bool
    loading: bool
    wagers_loading: bool
    wagers: Tuple[Wager, ...]
    volume: VolumeSnapshot
    balance: Decimal
    error: str
    submitting: bool
    draft: WagerDraft
    brackets: Tuple[str, ...]
    currency_symbol: str
    theme: str


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class MarketSession:
    """
    Per-bettor, per-game orchestration of validator, aggregator and store.

    Usage::

        session = MarketSession(gateway, settings, user_id="user1")
        await session.load("g1")
        session.set_prediction("Lions")
        session.set_amount("30")
        result = await session.submit()
    """

    def __init__(
        self,
        gateway: StoreGateway,
        settings: Optional[MarketSettings] = None,
        user_id: Optional[str] = None,
    ):
        self.gateway = gateway
        self.settings = settings or MarketSettings()
        self.user_id = user_id

        self.game_id: Optional[str] = None
        self.game: Optional[Game] = None
        self.not_found = False
        self.balance: Decimal = _ZERO
        self.wagers: List[Wager] = []
        self.volume = VolumeSnapshot()
        self.draft = WagerDraft()
        self.error = ""

        self.loading = False
        self.wagers_loading = False
        self.submitting = False
        self.closed = False

        self._generation = 0

    # ------------------------------------------------------------------
    # Draft
    # ------------------------------------------------------------------

    def set_amount(self, amount) -> None:
        self.draft = replace(self.draft, amount="" if amount is None else str(amount))

    def set_prediction(self, prediction) -> None:
        self.draft = replace(self.draft, prediction="" if prediction is None else str(prediction))

    def select_bracket(self, index: int) -> None:
        """Pick a score bracket by its 1-based index."""
        self.set_prediction(str(index))

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self, game_id: str, user_id: Optional[str] = None) -> None:
        """Fetch game, balance (when signed in) and wager feed concurrently."""
        if self.closed:
            logger.debug("load(%s) ignored: session closed", game_id)
            return

        self._generation += 1
        generation = self._generation
        self.game_id = game_id
        if user_id is not None:
            self.user_id = user_id

        self.loading = True
        fetches = [self._fetch_game(generation), self._fetch_wagers(generation)]
        if self.user_id:
            fetches.append(self._fetch_balance(generation))
        await asyncio.gather(*fetches)

    async def refresh(self) -> None:
        """Reload wager feed and balance, e.g. after a bet is placed."""
        if self.closed or self.game_id is None:
            return
        generation = self._generation
        fetches = [self._fetch_wagers(generation)]
        if self.user_id:
            fetches.append(self._fetch_balance(generation))
        await asyncio.gather(*fetches)

    def close(self) -> None:
        """Tear the session down; late fetch results are discarded."""
        self.closed = True
        self._generation += 1

    def _is_current(self, generation: int) -> bool:
        return not self.closed and generation == self._generation

    async def _fetch_game(self, generation: int) -> None:
        game_id = self.game_id
        try:
            game = await self.gateway.get_game(game_id)
        except GameNotFound:
            if self._is_current(generation):
                logger.info("Game %s not found", game_id)
                self.game = None
                self.not_found = True
                self._recompute_volume()
        except MarketError as exc:
            if self._is_current(generation):
                self._fetch_failed(OP_FETCH_GAME, exc)
        else:
            if self._is_current(generation):
                self.game = game
                self.not_found = False
                self._recompute_volume()
            else:
                logger.debug("Dropping stale game result for %s", game_id)
        finally:
            if self._is_current(generation):
                self.loading = False

    async def _fetch_balance(self, generation: int) -> None:
        user_id = self.user_id
        try:
            balance = await self.gateway.get_user_balance(user_id)
        except MarketError as exc:
            if self._is_current(generation):
                self._fetch_failed(OP_FETCH_BALANCE, exc)
            return
        if self._is_current(generation):
            self.balance = Decimal(str(balance))
        else:
            logger.debug("Dropping stale balance for %s", user_id)

    async def _fetch_wagers(self, generation: int) -> None:
        game_id = self.game_id
        if self._is_current(generation):
            self.wagers_loading = True
        try:
            win_rows, score_rows = await asyncio.gather(
                self.gateway.list_win_wagers(game_id),
                self.gateway.list_score_wagers(game_id),
            )
        except MarketError as exc:
            if self._is_current(generation):
                self._fetch_failed(OP_FETCH_WAGERS, exc)
        else:
            if self._is_current(generation):
                self.wagers = merge_wagers(win_rows, score_rows)
                self._recompute_volume()
            else:
                logger.debug("Dropping stale wager feed for %s", game_id)
        finally:
            if self._is_current(generation):
                self.wagers_loading = False

    def _fetch_failed(self, operation: str, exc: MarketError) -> None:
        logger.error("Error fetching %s for game %s: %s",
                     _FETCH_LABELS[operation], self.game_id, exc)
        if self.settings.policy_for(operation) is FailurePolicy.SURFACE:
            self.error = f"Failed to load {_FETCH_LABELS[operation]}."

    def _recompute_volume(self) -> None:
        game = self.game
        if game is not None and game.type == GAME_TYPE_WIN:
            self.volume = aggregate(self.wagers, game.team_a, game.team_b)
        else:
            self.volume = aggregate(self.wagers)

    # ------------------------------------------------------------------
    # Submitting
    # ------------------------------------------------------------------

    async def submit(self) -> SubmitResult:
        """
        Validate the current draft and place the bet.

        On success the feed and balance are reloaded from the store and the
        draft is cleared.  On any failure the draft is kept and ``error``
        holds the message to show.
        """
        if self.submitting:
            logger.debug("submit ignored: another bet is being placed")
            return SubmitResult(accepted=False, reason=ErrorKind.BUSY)
        if self.closed:
            return SubmitResult(accepted=False, reason=ErrorKind.BUSY)
        if not self.user_id:
            return self._reject(ErrorKind.SIGNED_OUT, USER_MESSAGES[ErrorKind.SIGNED_OUT])
        if self.game is None:
            return self._reject(ErrorKind.NOT_FOUND, USER_MESSAGES[ErrorKind.NOT_FOUND])

        self.submitting = True
        self.error = ""
        try:
            outcome = validate(
                self.game,
                self.draft,
                self.balance,
                user_id=self.user_id,
                enforce_team_membership=self.settings.enforce_team_membership,
                predicted_percentage=self.settings.default_predicted_percentage,
            )
            if isinstance(outcome, Rejected):
                logger.info("Bet rejected for %s on game %s: %s",
                            self.user_id, self.game.id, outcome.reason.value)
                return self._reject(outcome.reason, outcome.message)

            request = outcome.request
            try:
                if request.market == GAME_TYPE_WIN:
                    bet_id = await self.gateway.insert_win_wager(request)
                else:
                    bet_id = await self.gateway.insert_score_wager(request)
            except MarketError as exc:
                logger.error("Error placing bet for %s on game %s: %s",
                             self.user_id, request.game_id, exc)
                message = USER_MESSAGES[ErrorKind.STORE_FAILURE]
                if self.settings.policy_for(OP_SUBMIT) is FailurePolicy.SURFACE:
                    self.error = message
                return SubmitResult(accepted=False, reason=ErrorKind.STORE_FAILURE, message=message)

            logger.info("Bet placed: %s %s on game %s (%s)",
                        self.user_id, request.amount, request.game_id, request.market)

            if self.closed:
                return SubmitResult(accepted=True, bet_id=bet_id)

            await self.refresh()
            self.draft = WagerDraft()
            return SubmitResult(accepted=True, bet_id=bet_id)
        finally:
            self.submitting = False

    def _reject(self, reason: ErrorKind, message: str) -> SubmitResult:
        self.error = message
        return SubmitResult(accepted=False, reason=reason, message=message)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def view(self) -> MarketView:
        return MarketView(
            game=self.game,
            not_found=self.not_found,
            loading=self.loading,
            wagers_loading=self.wagers_loading,
            wagers=tuple(self.wagers),
            volume=self.volume,
            balance=self.balance,
            error=self.error,
            submitting=self.submitting,
            draft=self.draft,
            brackets=SCORE_BRACKETS,
            currency_symbol=self.settings.currency_symbol,
            theme=self.settings.theme,
        )
