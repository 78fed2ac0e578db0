"""Bet validation: the rules a draft must pass before it reaches the store.

Checks run in a fixed order and the first failure wins:

    1. game is live                      → MARKET_CLOSED
    2. amount is a finite number > 0,
       in whole cents                    → INVALID_AMOUNT
    3. amount does not exceed balance    → INSUFFICIENT_BALANCE
    4. win market: a team is selected    → NO_SELECTION
       (and, when enforced, is one of the game's sides → INVALID_SELECTION)
    5. score market: bracket is an integer in 1..11 → INVALID_SELECTION

Validation has no side effects.  A rejection is a value, not an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from betmarket.core.brackets import is_valid_bracket
from betmarket.core.domain import (
    GAME_TYPE_WIN,
    MONEY_QUANTUM,
    Game,
    PlacementRequest,
    WagerDraft,
)
from betmarket.core.errors import USER_MESSAGES, ErrorKind


@dataclass(frozen=True)
class Accepted:
    request: PlacementRequest


@dataclass(frozen=True)
class Rejected:
    reason: ErrorKind
    message: str = ""

    def __post_init__(self):
        if not self.message:
            object.__setattr__(self, "message", USER_MESSAGES[self.reason])


ValidationResult = Union[Accepted, Rejected]


def parse_amount(raw) -> Optional[Decimal]:
    """Parse a form amount into a finite Decimal, or None."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def has_money_scale(amount: Decimal) -> bool:
    """True when ``amount`` has no digits below a cent."""
    try:
        return amount == amount.quantize(MONEY_QUANTUM)
    except InvalidOperation:
        return False


def parse_bracket(raw) -> Optional[int]:
    """Parse a bracket selection as an integer index, or None."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def validate(
    game: Game,
    draft: WagerDraft,
    balance: Decimal,
    *,
    user_id: str = "",
    enforce_team_membership: bool = True,
    predicted_percentage: Optional[int] = 50,
) -> ValidationResult:
    """
    Validate a wager draft against the game and the bettor's balance.

    Args:
        game: The game being bet on.
        draft: Raw amount and prediction from the form.
        balance: Bettor's current balance.
        user_id: Copied onto the placement request.
        enforce_team_membership: Reject a win pick that names neither side.
        predicted_percentage: Recorded on win wagers as-is.

    Returns:
        :class:`Accepted` with a normalized :class:`PlacementRequest`, or
        :class:`Rejected` with the first failing reason.
    """
    if not game.is_live:
        return Rejected(ErrorKind.MARKET_CLOSED)

    amount = parse_amount(draft.amount)
    if amount is None or amount <= 0 or not has_money_scale(amount):
        return Rejected(ErrorKind.INVALID_AMOUNT)

    if amount > balance:
        return Rejected(ErrorKind.INSUFFICIENT_BALANCE)

    if game.type == GAME_TYPE_WIN:
        team = (draft.prediction or "").strip()
        if not team:
            return Rejected(ErrorKind.NO_SELECTION)
        if enforce_team_membership and team not in game.sides:
            return Rejected(ErrorKind.INVALID_SELECTION, "Select one of the two teams")
        return Accepted(PlacementRequest(
            game_id=game.id,
            user_id=user_id,
            amount=amount,
            market=game.type,
            team=team,
            predicted_percentage=predicted_percentage,
        ))

    bracket = parse_bracket(draft.prediction)
    if bracket is None or not is_valid_bracket(bracket):
        return Rejected(ErrorKind.INVALID_SELECTION)

    return Accepted(PlacementRequest(
        game_id=game.id,
        user_id=user_id,
        amount=amount,
        market=game.type,
        team=game.team,
        bracket=bracket,
    ))
