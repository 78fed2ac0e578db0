"""Domain types for a single-game betting market.

Wagers are modelled as one shared shape plus a discriminated prediction
payload rather than as a class hierarchy:

* :class:`WinPick`:   the bettor picks one of the game's two sides.
* :class:`ScorePick`: the bettor picks a combined-score bracket.

``Wager.type`` is derived from the payload, so a wager can never carry a
``type`` that disagrees with its prediction.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Final, Literal, Optional, Union

GameType = Literal["win", "score"]
WagerStatus = Literal["pending", "completed", "rejected"]

GAME_TYPE_WIN: Final[str] = "win"
GAME_TYPE_SCORE: Final[str] = "score"
STATUS_LIVE: Final[str] = "live"

# Money is stored with two decimal places (cents).
MONEY_PLACES: Final[int] = 2
MONEY_QUANTUM: Final[Decimal] = Decimal(1).scaleb(-MONEY_PLACES)


@dataclass(frozen=True)
class Game:
    """A single event with its betting market.

    Win-type games list two sides (``team_a``/``team_b``); score-type games
    track a single ``team``.  ``status`` is driven externally; only
    ``"live"`` accepts wagers.
    """

    id: str
    type: GameType
    status: str
    date: Optional[datetime] = None
    team_a: Optional[str] = None
    team_b: Optional[str] = None
    team: Optional[str] = None
    team_a_logo_url: Optional[str] = None
    team_b_logo_url: Optional[str] = None
    team_logo_url: Optional[str] = None

    @property
    def is_live(self) -> bool:
        return self.status == STATUS_LIVE

    @property
    def is_win_market(self) -> bool:
        return self.type == GAME_TYPE_WIN

    @property
    def sides(self) -> tuple:
        """The two competing sides for a win market, else an empty tuple."""
        if not self.is_win_market:
            return ()
        return tuple(t for t in (self.team_a, self.team_b) if t)


@dataclass(frozen=True)
class WinPick:
    team: str
    predicted_percentage: Optional[int] = None


@dataclass(frozen=True)
class ScorePick:
    bracket: Optional[int]
    team: Optional[str] = None


Prediction = Union[WinPick, ScorePick]


@dataclass(frozen=True)
class Wager:
    """A placed bet as shown in the market feed."""

    id: str
    user_id: str
    amount: Optional[Decimal]
    status: str
    created_at: datetime
    prediction: Prediction
    bettor_name: str = ""

    @property
    def type(self) -> str:
        return GAME_TYPE_WIN if isinstance(self.prediction, WinPick) else GAME_TYPE_SCORE

    @property
    def side(self) -> Optional[str]:
        """Team label recorded on the wager (both payloads carry one)."""
        return self.prediction.team


@dataclass(frozen=True)
class WagerDraft:
    """Raw form input, exactly as the user typed it."""

    amount: str = ""
    prediction: str = ""


@dataclass(frozen=True)
class PlacementRequest:
    """A validated wager ready to be written to the store."""

    game_id: str
    user_id: str
    amount: Decimal
    market: GameType
    team: Optional[str]
    bracket: Optional[int] = None
    predicted_percentage: Optional[int] = None
