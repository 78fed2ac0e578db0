"""Wagered volume: total and per side.

Pure functions only: the snapshot is recomputed from the full wager list
every time it changes, never updated incrementally.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from betmarket.core.domain import Wager

_ZERO = Decimal("0")


@dataclass(frozen=True)
class VolumeSnapshot:
    total: Decimal = _ZERO
    side_a: Decimal = _ZERO
    side_b: Decimal = _ZERO

    @property
    def unattributed(self) -> Decimal:
        """Volume on wagers whose side matches neither label."""
        return self.total - self.side_a - self.side_b


def _amount(wager: Wager) -> Decimal:
    return wager.amount if wager.amount is not None else _ZERO


def aggregate(
    wagers: Iterable[Wager],
    side_a_label: Optional[str] = None,
    side_b_label: Optional[str] = None,
) -> VolumeSnapshot:
    """
    Sum wager amounts overall and for each side label.

    Side sums are only computed for labels that are given, so a score-type
    market (no labels) reports zero for both sides.  When both labels are
    equal the wager counts toward side A only, keeping
    ``total >= side_a + side_b``.
    """
    total = _ZERO
    side_a = _ZERO
    side_b = _ZERO

    for wager in wagers:
        amount = _amount(wager)
        total += amount
        side = wager.side
        if side is None:
            continue
        if side_a_label is not None and side == side_a_label:
            side_a += amount
        elif side_b_label is not None and side == side_b_label:
            side_b += amount

    return VolumeSnapshot(total=total, side_a=side_a, side_b=side_b)
