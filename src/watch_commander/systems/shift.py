"""
Shift rotation and between-mission squad life.

advance_day is the batch transition that closes a day: payroll, city
funding, community event payouts, injury recovery, quota reset, expiry of
unaccepted offers. It runs on a single working copy, so observers only
ever see the day before or the day after.
"""

from __future__ import annotations

import random

from ..state.schema import (
    CommunityEvent,
    CommunityEventStatus,
    GameState,
    LogType,
    MissionStatus,
    NemesisStatus,
    OfficerStatus,
    RandomEvent,
    RandomEventEffects,
    clamp,
)
from .base import (
    NotFoundError,
    PreconditionError,
    add_log,
    adjust_reputation,
    require_funds,
    resolve_rng,
    working_copy,
)
from .rules import (
    CITY_FUNDING,
    DAILY_MORALE_RECOVERY,
    INJURED_DAILY_HEALING,
    RECOVERY_HEALING,
)


# -----------------------------------------------------------------------------
# Day advance
# -----------------------------------------------------------------------------

def advance_day(state: GameState) -> GameState:
    state = working_copy(state)

    scheduled = [e for e in state.available_events if e.status == CommunityEventStatus.SCHEDULED]
    payroll = state.daily_payroll
    event_budget = sum(e.rewards.budget for e in scheduled)
    event_reputation = sum(e.rewards.reputation for e in scheduled)

    state.budget += CITY_FUNDING + event_budget - payroll
    adjust_reputation(state, event_reputation)
    for event in scheduled:
        add_log(
            state,
            LogType.SUCCESS,
            f"{event.title} wrapped up: +${event.rewards.budget:,}, "
            f"+{event.rewards.reputation} reputation.",
        )

    state.missions_attempted_today = 0
    expired = [m for m in state.active_missions if m.status != MissionStatus.IN_PROGRESS]
    state.active_missions = [m for m in state.active_missions if m.status == MissionStatus.IN_PROGRESS]
    for mission in expired:
        nemesis = state.get_nemesis(mission.nemesis_id) if mission.nemesis_id else None
        if nemesis is not None and nemesis.status == NemesisStatus.PLOTTING:
            nemesis.status = NemesisStatus.AT_LARGE
    state.available_events = []

    for officer in state.officers:
        if officer.is_kia:
            continue
        if officer.is_injured:
            officer.injury_days = max(0, officer.injury_days - 1)
            if officer.injury_days == 0:
                officer.is_injured = False
                officer.status = OfficerStatus.AVAILABLE
                officer.health = min(100, officer.health + RECOVERY_HEALING)
                add_log(state, LogType.INFO, f"{officer.name} has recovered and is cleared for duty.")
            else:
                officer.health = min(100, officer.health + INJURED_DAILY_HEALING)
        else:
            if officer.status in (OfficerStatus.ON_MISSION, OfficerStatus.ON_EVENT):
                officer.status = OfficerStatus.AVAILABLE
            officer.morale = min(100, officer.morale + DAILY_MORALE_RECOVERY)

    state.day += 1
    add_log(
        state,
        LogType.INFO,
        "New shift rotation begins. Payroll processed. Dispatch radio refreshed.",
    )
    return state


# -----------------------------------------------------------------------------
# Community events
# -----------------------------------------------------------------------------

def add_community_event(state: GameState, event: CommunityEvent) -> GameState:
    state = working_copy(state)
    state.available_events.append(event.model_copy(deep=True))
    return state


def schedule_event(state: GameState, event_id: str, officer_ids: list[str]) -> GameState:
    """Commit Available officers to a community event."""
    event = state.get_community_event(event_id)
    if event is None:
        raise NotFoundError("Community event not found.")
    if event.status != CommunityEventStatus.AVAILABLE:
        raise PreconditionError(f"{event.title} is already scheduled.")

    chosen = []
    for officer_id in dict.fromkeys(officer_ids):
        officer = state.get_officer(officer_id)
        if officer is not None and officer.is_eligible_for_assignment:
            chosen.append(officer_id)
    if len(chosen) < event.requirements.min_officers:
        raise PreconditionError(
            f"{event.title} needs at least {event.requirements.min_officers} available officers."
        )

    state = working_copy(state)
    event = state.get_community_event(event_id)
    event.status = CommunityEventStatus.SCHEDULED
    event.assigned_officers = chosen
    for officer_id in chosen:
        state.get_officer(officer_id).status = OfficerStatus.ON_EVENT
    add_log(state, LogType.INFO, "Officers assigned to community event.")
    return state


def cancel_event(state: GameState, event_id: str) -> GameState:
    event = state.get_community_event(event_id)
    if event is None:
        raise NotFoundError("Community event not found.")
    if event.status != CommunityEventStatus.SCHEDULED:
        raise PreconditionError(f"{event.title} is not scheduled.")

    state = working_copy(state)
    event = state.get_community_event(event_id)
    for officer_id in event.assigned_officers:
        officer = state.get_officer(officer_id)
        if officer is not None and officer.status == OfficerStatus.ON_EVENT:
            officer.status = OfficerStatus.AVAILABLE
    event.assigned_officers = []
    event.status = CommunityEventStatus.AVAILABLE
    add_log(state, LogType.INFO, "Community event cancelled.")
    return state


# -----------------------------------------------------------------------------
# Morale events
# -----------------------------------------------------------------------------

def host_morale_event(state: GameState, event_id: str) -> GameState:
    event = next((e for e in state.morale_events if e.id == event_id), None)
    if event is None:
        raise NotFoundError("Morale event not found.")
    require_funds(state, event.cost, f"Not enough budget for {event.name}. Need ${event.cost:,}.")

    state = working_copy(state)
    state.budget -= event.cost
    for officer in state.active_officers:
        officer.morale = clamp(officer.morale + event.morale_boost, 0, 100)
    add_log(state, LogType.SUCCESS, f"{event.name} held! Squad morale +{event.morale_boost}.")
    return state


# -----------------------------------------------------------------------------
# Random events
# -----------------------------------------------------------------------------

def set_random_event(state: GameState, event: RandomEvent) -> GameState:
    state = working_copy(state)
    state.pending_random_event = event.model_copy(deep=True)
    add_log(state, LogType.WARNING, f"BREAKING: {event.title}")
    return state


def _negated(effects: RandomEventEffects) -> RandomEventEffects:
    return RandomEventEffects(
        budget_change=-effects.budget_change,
        reputation_change=-effects.reputation_change,
        morale_change=-effects.morale_change,
        officer_affected=effects.officer_affected,
    )


def _apply_effects(state: GameState, effects: RandomEventEffects) -> None:
    state.budget += effects.budget_change
    adjust_reputation(state, effects.reputation_change)
    if effects.morale_change:
        targets = state.active_officers
        if effects.officer_affected:
            targets = [o for o in targets if o.matches_name(effects.officer_affected)]
        for officer in targets:
            officer.morale = clamp(officer.morale + effects.morale_change, 0, 100)
    if effects.bonus_mission is not None:
        state.active_missions.append(effects.bonus_mission.model_copy(deep=True))


def resolve_random_event(
    state: GameState,
    choice_id: str | None = None,
    rng: random.Random | None = None,
) -> GameState:
    """
    Settle the pending random event.

    Without a choice the event's own effects apply. A chosen response
    backfires with probability risk/100, applying its effects reversed.
    """
    event = state.pending_random_event
    if event is None:
        return state

    backfired = False
    label = None
    if choice_id is None:
        effects = event.effects
    else:
        choice = next((c for c in event.choices if c.id == choice_id), None)
        if choice is None:
            raise NotFoundError("That response is not an option.")
        label = choice.label
        effects = choice.effects
        if choice.risk and resolve_rng(rng).randint(1, 100) <= choice.risk:
            backfired = True
            effects = _negated(effects)

    state = working_copy(state)
    _apply_effects(state, effects)
    state.pending_random_event = None
    if backfired:
        add_log(state, LogType.ERROR, f"{event.title}: '{label}' backfired!")
    else:
        add_log(state, LogType.INFO, f"{event.title} resolved.")
    return state
