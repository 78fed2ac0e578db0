"""Market configuration: every environment-driven setting in one place.

:class:`MarketSettings` is a frozen dataclass built once from the
environment and passed explicitly into each :class:`MarketSession`; nothing
in the core reads ``os.environ`` on its own.  Override single values with
:func:`dataclasses.replace`::

    from dataclasses import replace
    from betmarket.config import MarketSettings

    settings = replace(MarketSettings.from_env(), theme="light")

Failure policy
--------------
Fetches degrade quietly (a failed balance read leaves the old balance on
screen) while a failed submit is always reported to the bettor.  That
asymmetry is recorded per operation in :attr:`MarketSettings.failure_policy`
instead of being implied by control flow.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Final, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_DATABASE_URL: Final[str] = "sqlite:///./betmarket.db"


class FailurePolicy(str, Enum):
    LOG_ONLY = "log_only"   # log and keep prior state
    SURFACE = "surface"     # log and set the session error message


OP_FETCH_GAME: Final[str] = "fetch_game"
OP_FETCH_BALANCE: Final[str] = "fetch_balance"
OP_FETCH_WAGERS: Final[str] = "fetch_wagers"
OP_SUBMIT: Final[str] = "submit"


def _default_failure_policy() -> Dict[str, FailurePolicy]:
    return {
        OP_FETCH_GAME: FailurePolicy.LOG_ONLY,
        OP_FETCH_BALANCE: FailurePolicy.LOG_ONLY,
        OP_FETCH_WAGERS: FailurePolicy.LOG_ONLY,
        OP_SUBMIT: FailurePolicy.SURFACE,
    }


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class MarketSettings:
    """Injected configuration for a market session.

    Attributes:
        database_url: SQLAlchemy URL for the SQL store.
        currency_symbol: Prefix for amounts in the display layer.
        theme: ``"dark"`` or ``"light"``; passed through to the view.
        enforce_team_membership: Reject win picks that name neither side.
        default_predicted_percentage: Stored on every win wager.  Constant
            until the product defines what it should mean.
        failure_policy: Operation name → :class:`FailurePolicy`.
    """

    database_url: str = DEFAULT_DATABASE_URL
    currency_symbol: str = "₹"
    theme: str = "dark"
    enforce_team_membership: bool = True
    default_predicted_percentage: Optional[int] = 50
    failure_policy: Dict[str, FailurePolicy] = field(default_factory=_default_failure_policy)

    @classmethod
    def from_env(cls) -> "MarketSettings":
        pct = os.getenv("DEFAULT_PREDICTED_PERCENTAGE", "50").strip()
        return cls(
            database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
            currency_symbol=os.getenv("CURRENCY_SYMBOL", "₹"),
            theme=os.getenv("THEME", "dark"),
            enforce_team_membership=_env_bool("ENFORCE_TEAM_MEMBERSHIP", "true"),
            default_predicted_percentage=int(pct) if pct else None,
        )

    def policy_for(self, operation: str) -> FailurePolicy:
        return self.failure_policy.get(operation, FailurePolicy.SURFACE)
