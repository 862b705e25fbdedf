"""
State engine for Watch Commander.

Each module holds reducers for one slice of the campaign. Reducers take a
GameState (plus any generated result) and return the next GameState; they
never mutate their input and never await. Precondition failures raise
PreconditionError subclasses with a player-facing message.
"""

from .base import (
    EngineError,
    InsufficientFundsError,
    NotFoundError,
    PreconditionError,
    QuotaExceededError,
)
from . import campaign, city, custody, missions, roster, rules, shift

__all__ = [
    "EngineError",
    "InsufficientFundsError",
    "NotFoundError",
    "PreconditionError",
    "QuotaExceededError",
    "campaign",
    "city",
    "custody",
    "missions",
    "roster",
    "rules",
    "shift",
]
