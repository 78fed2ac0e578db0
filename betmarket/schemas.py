"""
Pydantic request/response schemas for the betting market API.

Responses are built from the session's :class:`MarketView`, never from ORM
rows, so the API shows exactly what the display contract exposes.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from betmarket.core.brackets import bracket_label
from betmarket.core.domain import Game, ScorePick, Wager


# ---------------------------------------------------------------------------
# Bet placement
# ---------------------------------------------------------------------------

class PlaceBetRequest(BaseModel):
    """
    Payload for POST /api/games/{game_id}/bets.

    Values are kept as the user typed them; the market validator decides
    what is acceptable so the API and the dashboard reject the same drafts
    with the same messages.
    """

    amount: Union[str, float, int] = Field(..., description="Stake, e.g. \"30\"")
    prediction: Union[str, int] = Field(
        "", description="Team name (win market) or 1-based bracket index (score market)"
    )

    @field_validator("amount", "prediction", mode="before")
    @classmethod
    def coerce_none(cls, v):
        return "" if v is None else v

    model_config = {
        "json_schema_extra": {
            "example": {"amount": "30", "prediction": "Lions"}
        }
    }


# ---------------------------------------------------------------------------
# Market view
# ---------------------------------------------------------------------------

class GameResponse(BaseModel):
    id: str
    type: Literal["win", "score"]
    status: str
    date: Optional[datetime] = None
    team_a: Optional[str] = None
    team_b: Optional[str] = None
    team: Optional[str] = None
    team_a_logo_url: Optional[str] = None
    team_b_logo_url: Optional[str] = None
    team_logo_url: Optional[str] = None

    @classmethod
    def from_game(cls, game: Game) -> "GameResponse":
        return cls(
            id=game.id,
            type=game.type,
            status=game.status,
            date=game.date,
            team_a=game.team_a,
            team_b=game.team_b,
            team=game.team,
            team_a_logo_url=game.team_a_logo_url,
            team_b_logo_url=game.team_b_logo_url,
            team_logo_url=game.team_logo_url,
        )


class WagerResponse(BaseModel):
    """One entry of the market feed."""
    id: str
    type: Literal["win", "score"]
    user_id: str
    bettor_name: str
    amount: Optional[Decimal]
    status: str
    created_at: datetime
    team: Optional[str] = None
    predicted_percentage: Optional[int] = None
    predicted_score: Optional[int] = None
    predicted_range: Optional[str] = None

    @classmethod
    def from_wager(cls, wager: Wager) -> "WagerResponse":
        pick = wager.prediction
        if isinstance(pick, ScorePick):
            extra = {"predicted_score": pick.bracket, "predicted_range": bracket_label(pick.bracket)}
        else:
            extra = {"predicted_percentage": pick.predicted_percentage}
        return cls(
            id=wager.id,
            type=wager.type,
            user_id=wager.user_id,
            bettor_name=wager.bettor_name,
            amount=wager.amount,
            status=wager.status,
            created_at=wager.created_at,
            team=pick.team,
            **extra,
        )


class VolumeResponse(BaseModel):
    total: Decimal
    side_a: Decimal
    side_b: Decimal


class DraftResponse(BaseModel):
    amount: str
    prediction: str


class MarketResponse(BaseModel):
    """Structure for GET /api/games/{game_id}/market."""
    game: GameResponse
    volume: VolumeResponse
    wagers: List[WagerResponse]
    balance: Optional[Decimal] = None
    error: str = ""
    submitting: bool = False
    draft: DraftResponse
    brackets: List[str]
    currency_symbol: str
    theme: str


class PlaceBetResponse(BaseModel):
    """Response after a bet is accepted."""
    message: str
    bet_id: str
    market: MarketResponse


class BetRejectedResponse(BaseModel):
    """Body of a 400/409/502 from the bet endpoint."""
    detail: str
    reason: str
