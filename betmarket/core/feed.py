"""Assembly of the market feed from the two wager collections.

Win wagers and score wagers live in separate tables with different columns.
The gateway returns them as raw :class:`WagerRow` records; this module tags
each row with the collection it came from and merges both into one
``Wager`` sequence, most recent first.

Ties on ``created_at`` keep input order (Python's sort is stable), so equal
timestamps list win wagers before score wagers.  Callers should not rely
on that.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from betmarket.core.domain import ScorePick, Wager, WinPick


@dataclass(frozen=True)
class WagerRow:
    """One stored bet, before it is tagged with its market type."""

    id: str
    user_id: str
    amount: Optional[Decimal]
    status: str
    created_at: datetime
    team: Optional[str] = None
    predicted_percentage: Optional[int] = None
    predicted_score: Optional[int] = None
    bettor_name: str = ""


def tag_win(row: WagerRow) -> Wager:
    return Wager(
        id=row.id,
        user_id=row.user_id,
        amount=row.amount,
        status=row.status,
        created_at=row.created_at,
        prediction=WinPick(team=row.team or "", predicted_percentage=row.predicted_percentage),
        bettor_name=row.bettor_name,
    )


def tag_score(row: WagerRow) -> Wager:
    return Wager(
        id=row.id,
        user_id=row.user_id,
        amount=row.amount,
        status=row.status,
        created_at=row.created_at,
        prediction=ScorePick(bracket=row.predicted_score, team=row.team),
        bettor_name=row.bettor_name,
    )


def merge_wagers(
    win_rows: Iterable[WagerRow],
    score_rows: Iterable[WagerRow],
) -> List[Wager]:
    """Tag, merge and sort both collections by ``created_at`` descending."""
    merged = [tag_win(r) for r in win_rows] + [tag_score(r) for r in score_rows]
    merged.sort(key=lambda w: w.created_at, reverse=True)
    return merged
