"""
Campaign lifecycle reducers: new game, import bookkeeping, result dismissal.
"""

from __future__ import annotations

from ..state.schema import GameState, LogType, MoraleEvent
from .base import PreconditionError, add_log, working_copy
from .city import seed_districts
from .rules import MORALE_EVENT_CATALOGUE


def morale_catalogue() -> list[MoraleEvent]:
    return [
        MoraleEvent(
            type=event_type,
            name=name,
            description=description,
            cost=cost,
            morale_boost=boost,
            duration=duration,
            icon=icon,
        )
        for event_type, name, description, cost, boost, duration, icon in MORALE_EVENT_CATALOGUE
    ]


def initial_state() -> GameState:
    """A blank campaign with the city and morale catalogue in place."""
    return GameState(
        districts=seed_districts(),
        morale_events=morale_catalogue(),
    )


def start_new_game(
    commander_name: str,
    squad_name: str,
    squad_motto: str | None = None,
) -> GameState:
    commander_name = commander_name.strip()
    squad_name = squad_name.strip()
    if not commander_name or not squad_name:
        raise PreconditionError("A commander name and a squad name are required.")

    state = initial_state()
    state.commander_name = commander_name
    state.squad_name = squad_name
    state.squad_motto = (squad_motto or "").strip() or None
    add_log(state, LogType.INFO, f"Commander {commander_name} has taken command of {squad_name}.")
    return state


def record_error(state: GameState, message: str) -> GameState:
    """Leave a failed generation request in the log trail."""
    state = working_copy(state)
    add_log(state, LogType.ERROR, message)
    return state


def record_export(state: GameState) -> GameState:
    state = working_copy(state)
    add_log(state, LogType.SUCCESS, "Tactical data exported to external storage.")
    return state


def record_import(state: GameState) -> GameState:
    state = working_copy(state)
    add_log(state, LogType.SUCCESS, "External tactical data synchronized. Squad status updated.")
    return state


def clear_mission_result(state: GameState) -> GameState:
    if state.last_mission_result is None:
        return state
    state = working_copy(state)
    state.last_mission_result = None
    return state


def export_filename(state: GameState) -> str:
    slug = "-".join(state.squad_name.lower().split()) or "squad"
    return f"swat-save-day-{state.day}-{slug}.json"
