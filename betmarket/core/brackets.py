"""Score bracket table for score-type markets.

Brackets are 1-indexed everywhere outside this module: the stored
``predicted_score`` column, the form value and the API payload all carry
the 1-based index, never the label.
"""

from __future__ import annotations

from typing import Final, Optional, Tuple

#: Combined final-score ranges, in display order.
SCORE_BRACKETS: Final[Tuple[str, ...]] = (
    "0 - 50",
    "51 - 80",
    "81 - 100",
    "101 - 120",
    "121 - 140",
    "141 - 160",
    "161 - 180",
    "181 - 200",
    "201 - 220",
    "221 - 240",
    "241+",
)

FIRST_BRACKET: Final[int] = 1
LAST_BRACKET: Final[int] = len(SCORE_BRACKETS)


def is_valid_bracket(index: int) -> bool:
    """True if ``index`` addresses one of the 11 brackets (1-based)."""
    return FIRST_BRACKET <= index <= LAST_BRACKET


def bracket_label(index: Optional[int]) -> str:
    """
    Label for a 1-based bracket index.

    Unknown or missing indices fall back to the first bracket, matching how
    the bet feed has always rendered legacy rows with an empty score.
    """
    if index is None or not is_valid_bracket(index):
        index = FIRST_BRACKET
    return SCORE_BRACKETS[index - 1]
