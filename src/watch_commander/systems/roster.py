"""
Roster reducers: recruitment, dismissal, rehire, memorials and gear.
"""

from __future__ import annotations

from ..state.schema import (
    GameState,
    GearTrack,
    LogType,
    MAX_GEAR_LEVEL,
    Officer,
    OfficerStatus,
)
from .base import (
    NotFoundError,
    PreconditionError,
    add_log,
    require_funds,
    working_copy,
)
from .rules import GEAR_COST_PER_LEVEL, RECRUIT_COST


def check_recruit_funds(state: GameState) -> None:
    require_funds(
        state,
        RECRUIT_COST,
        f"Insufficient funds to recruit. Need ${RECRUIT_COST:,}.",
    )


def recruit_officer(state: GameState, officer: Officer) -> GameState:
    """Add a generated recruit and pay the recruitment cost."""
    check_recruit_funds(state)

    state = working_copy(state)
    state.officers.append(officer.model_copy(deep=True))
    state.budget -= RECRUIT_COST
    add_log(
        state,
        LogType.SUCCESS,
        f"Recruited {officer.name} ({officer.specialization.value}) to the squad!",
    )
    return state


def check_dismissable(state: GameState, officer_id: str) -> Officer:
    officer = state.get_officer(officer_id)
    if officer is None:
        raise NotFoundError("Officer not found.")
    if officer.is_kia:
        raise PreconditionError(
            f"{officer.name} fell in the line of duty. Honor them instead of dismissing them."
        )
    if officer.status == OfficerStatus.ON_MISSION:
        raise PreconditionError(f"{officer.name} is deployed and cannot be dismissed mid-operation.")
    return officer


def dismiss_officer(
    state: GameState,
    officer_id: str,
    reason: str,
    dialogue: str | None = None,
) -> GameState:
    """
    Remove an officer and park them in the single-slot undo buffer.

    The previous occupant of the slot is lost.
    """
    officer = check_dismissable(state, officer_id)

    state = working_copy(state)
    state.officers = [o for o in state.officers if o.id != officer_id]
    for event in state.available_events:
        if officer_id in event.assigned_officers:
            event.assigned_officers.remove(officer_id)

    dismissed = officer.model_copy(deep=True)
    if dismissed.status == OfficerStatus.ON_EVENT:
        dismissed.status = OfficerStatus.AVAILABLE
    state.last_dismissed_officer = dismissed

    add_log(state, LogType.WARNING, f"Dismissed {officer.name}: {reason}")
    if dialogue:
        add_log(state, LogType.INFO, f'{officer.name}: "{dialogue}"')
    return state


def rehire_last_officer(state: GameState) -> GameState:
    officer = state.last_dismissed_officer
    if officer is None:
        return state

    state = working_copy(state)
    state.officers.append(state.last_dismissed_officer)
    state.last_dismissed_officer = None
    add_log(state, LogType.SUCCESS, f"Re-hired {officer.name}! Welcome back to the squad.")
    return state


def honor_fallen(state: GameState, officer_id: str) -> GameState:
    """Retire a KIA officer from the roster for good. No undo."""
    officer = state.get_officer(officer_id)
    if officer is None or not officer.is_kia:
        return state

    state = working_copy(state)
    state.officers = [o for o in state.officers if o.id != officer_id]
    add_log(state, LogType.INFO, f"{officer.name} was laid to rest with full honors. End of watch.")
    return state


def gear_upgrade_cost(officer: Officer, track: GearTrack) -> int:
    return officer.gear.level(track) * GEAR_COST_PER_LEVEL


def upgrade_gear(state: GameState, officer_id: str, track: GearTrack | str) -> GameState:
    """
    Raise one gear track by a level.

    Missing or KIA officers and maxed tracks are silent no-ops; only the
    budget gate raises.
    """
    track = GearTrack(track)
    officer = state.get_officer(officer_id)
    if officer is None or officer.is_kia:
        return state

    level = officer.gear.level(track)
    if level >= MAX_GEAR_LEVEL:
        return state

    cost = gear_upgrade_cost(officer, track)
    require_funds(state, cost, f"Insufficient funds for {track.value} upgrade. Need ${cost:,}.")

    state = working_copy(state)
    officer = state.get_officer(officer_id)
    setattr(officer.gear, f"{track.value}_level", level + 1)
    state.budget -= cost
    add_log(
        state,
        LogType.SUCCESS,
        f"Upgraded {officer.name}'s {track.value} to Level {level + 1}.",
    )
    return state
