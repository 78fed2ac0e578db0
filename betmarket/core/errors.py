"""Error taxonomy shared by the validator, the session and the API."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Final


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    MARKET_CLOSED = "market_closed"
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    NO_SELECTION = "no_selection"
    INVALID_SELECTION = "invalid_selection"
    STORE_FAILURE = "store_failure"
    SIGNED_OUT = "signed_out"
    BUSY = "busy"


#: Messages shown to the bettor.  ``BUSY`` is never shown; a second click
#: while a bet is being placed is simply ignored.
USER_MESSAGES: Final[Dict[ErrorKind, str]] = {
    ErrorKind.NOT_FOUND: "Game not found.",
    ErrorKind.MARKET_CLOSED: "This game is not live.",
    ErrorKind.INVALID_AMOUNT: "Enter a valid amount",
    ErrorKind.INSUFFICIENT_BALANCE: "Insufficient balance",
    ErrorKind.NO_SELECTION: "Select a team",
    ErrorKind.INVALID_SELECTION: "Select a valid score range",
    ErrorKind.STORE_FAILURE: "Failed to place bet.",
    ErrorKind.SIGNED_OUT: "Sign in to place a bet.",
    ErrorKind.BUSY: "",
}


class MarketError(Exception):
    """Base class for store-side failures."""

    kind: ErrorKind = ErrorKind.STORE_FAILURE


class GameNotFound(MarketError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, game_id: str):
        super().__init__(f"Game {game_id!r} not found")
        self.game_id = game_id


class StoreFailure(MarketError):
    kind = ErrorKind.STORE_FAILURE
