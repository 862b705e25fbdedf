"""
Shared engine plumbing: error types and small state helpers.

Reducers never mutate their input. Each one takes a deep working copy,
edits it, and returns it.
"""

from __future__ import annotations

import random

from ..state.schema import GameState, LogEntry, LogType, clamp


class EngineError(Exception):
    """Error raised by a state reducer."""
    pass


class PreconditionError(EngineError):
    """The intent is not valid against the current state. Nothing changed."""
    pass


class NotFoundError(PreconditionError):
    """A referenced officer, mission, event or suspect does not exist."""
    pass


class QuotaExceededError(PreconditionError):
    """The daily mission quota is used up."""
    pass


class InsufficientFundsError(PreconditionError):
    """The budget cannot cover a purchase."""

    def __init__(self, message: str, needed: int, available: int):
        self.needed = needed
        self.available = available
        super().__init__(message)


def working_copy(state: GameState) -> GameState:
    return state.model_copy(deep=True)


def add_log(state: GameState, log_type: LogType, message: str) -> None:
    """Prepend a log entry to a working copy, keeping the cap."""
    state.game_log.insert(0, LogEntry(type=log_type, message=message))
    del state.game_log[GameState.LOG_LIMIT:]


def adjust_reputation(state: GameState, delta: int) -> None:
    state.reputation = clamp(state.reputation + delta, 0, 100)


def require_funds(state: GameState, cost: int, message: str) -> None:
    if state.budget < cost:
        raise InsufficientFundsError(message, needed=cost, available=state.budget)


def resolve_rng(rng: random.Random | None) -> random.Random:
    return rng if rng is not None else random.Random()
