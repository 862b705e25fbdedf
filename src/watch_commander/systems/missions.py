"""
Mission lifecycle reducers.

Available → In Progress → {Completed, Failed}, or Available → Declined.

Decision resolution is the heaviest transition in the engine: it can
kill and wound officers, close the mission, pay out, promote, shift the
district and nemesis, and leave an after-action snapshot behind.
"""

from __future__ import annotations

import random
from datetime import datetime

from ..state.schema import (
    DecisionResult,
    GameState,
    LogType,
    Mission,
    MissionEvent,
    MissionEventType,
    MissionResult,
    MissionRewards,
    MissionStatus,
    Nemesis,
    NemesisStatus,
    Officer,
    OfficerStatus,
    Sentiment,
    calculate_salary,
    clamp,
)
from .base import (
    NotFoundError,
    PreconditionError,
    QuotaExceededError,
    add_log,
    adjust_reputation,
    resolve_rng,
    working_copy,
)
from .city import apply_district_outcome, publish_news
from .rules import (
    DECLINE_REPUTATION_PENALTY,
    DISPATCH_OVERLOADED,
    FAILURE_REPUTATION_PENALTY,
    INJURY_DAYS_MAX,
    INJURY_DAYS_MIN,
    INJURY_HEALTH_FLOOR,
    INJURY_HEALTH_LOSS,
    MORALE_FAILURE,
    MORALE_SUCCESS,
    PROMOTIONS,
    XP_FAILURE,
    XP_SUCCESS,
)

_TERMINAL_EVENT_TYPES = (MissionEventType.SUCCESS, MissionEventType.FAILURE)


# -----------------------------------------------------------------------------
# Dispatch
# -----------------------------------------------------------------------------

def check_mission_quota(state: GameState) -> None:
    if state.quota_reached:
        raise QuotaExceededError(DISPATCH_OVERLOADED)


def receive_mission(
    state: GameState,
    mission: Mission,
    rng: random.Random | None = None,
    log_message: str | None = None,
) -> GameState:
    """
    Put a generated mission on the board and count it against today's quota.

    Missions without a district are posted to a random one.
    """
    check_mission_quota(state)
    rng = resolve_rng(rng)

    state = working_copy(state)
    mission = mission.model_copy(deep=True)
    if mission.district_id is None and state.districts:
        mission.district_id = rng.choice(state.districts).id

    state.active_missions.append(mission)
    state.missions_attempted_today += 1
    add_log(
        state,
        LogType.MISSION,
        log_message
        or f"New mission available: {mission.title} ({mission.priority.value} priority)",
    )
    return state


def receive_custom_mission(
    state: GameState, mission: Mission, rng: random.Random | None = None
) -> GameState:
    return receive_mission(
        state, mission, rng,
        log_message=f"New custom directive received and processed: {mission.title}",
    )


def check_nemesis_at_large(state: GameState, nemesis_id: str) -> Nemesis:
    nemesis = state.get_nemesis(nemesis_id)
    if nemesis is None:
        raise NotFoundError("Nemesis not found.")
    if nemesis.status != NemesisStatus.AT_LARGE:
        raise PreconditionError(f"{nemesis.name} is not at large right now.")
    check_mission_quota(state)
    return nemesis


def receive_nemesis_mission(
    state: GameState, mission: Mission, rng: random.Random | None = None
) -> GameState:
    nemesis = check_nemesis_at_large(state, mission.nemesis_id or "")
    state = receive_mission(
        state, mission, rng,
        log_message=f"NEMESIS SIGHTED: {nemesis.name} is making a move. {mission.title} added to dispatch.",
    )
    state.get_nemesis(nemesis.id).status = NemesisStatus.PLOTTING
    return state


def decline_mission(state: GameState, mission_id: str) -> GameState:
    mission = state.get_active_mission(mission_id)
    if mission is None:
        raise NotFoundError("Mission not found.")
    if mission.status != MissionStatus.AVAILABLE:
        raise PreconditionError("Only missions that have not been accepted can be declined.")

    state = working_copy(state)
    state.active_missions = [m for m in state.active_missions if m.id != mission_id]
    adjust_reputation(state, -DECLINE_REPUTATION_PENALTY)
    if mission.nemesis_id:
        nemesis = state.get_nemesis(mission.nemesis_id)
        if nemesis is not None and nemesis.status == NemesisStatus.PLOTTING:
            nemesis.status = NemesisStatus.AT_LARGE
    add_log(state, LogType.WARNING, "Mission declined. Public trust decreased.")
    return state


# -----------------------------------------------------------------------------
# Deployment
# -----------------------------------------------------------------------------

def assign_officers_to_mission(
    state: GameState, mission_id: str, officer_ids: list[str]
) -> GameState:
    """
    Deploy officers. The id list is trusted as given: team size and
    specializations are the caller's business.
    """
    mission = state.get_active_mission(mission_id)
    if mission is None:
        raise NotFoundError("Mission not found.")
    if mission.status != MissionStatus.AVAILABLE:
        raise PreconditionError(f"{mission.title} is already underway.")

    deployed = list(dict.fromkeys(i for i in officer_ids if state.get_officer(i)))
    if not deployed:
        raise PreconditionError("Select at least one officer to deploy.")

    state = working_copy(state)
    mission = state.get_active_mission(mission_id)
    mission.status = MissionStatus.IN_PROGRESS
    mission.assigned_officers = deployed
    for officer_id in deployed:
        state.get_officer(officer_id).status = OfficerStatus.ON_MISSION
    add_log(state, LogType.INFO, "Officers deployed to mission")
    return state


def check_can_generate_event(state: GameState, mission_id: str) -> Mission:
    """The mission must be underway with no development left unresolved."""
    mission = state.get_active_mission(mission_id)
    if mission is None:
        raise NotFoundError("Mission not found.")
    if mission.status != MissionStatus.IN_PROGRESS:
        raise PreconditionError(f"{mission.title} is not in progress.")
    if state.unresolved_event_for(mission_id) is not None:
        raise PreconditionError(
            "Resolve the current situation before requesting the next development."
        )
    return mission


def add_mission_event(state: GameState, mission_id: str, event: MissionEvent) -> GameState:
    check_can_generate_event(state, mission_id)

    state = working_copy(state)
    state.current_mission_events.append(
        event.model_copy(update={"mission_id": mission_id, "resolved": False})
    )
    return state


# -----------------------------------------------------------------------------
# Decisions
# -----------------------------------------------------------------------------

def check_decision(state: GameState, event_id: str) -> tuple[MissionEvent, Mission]:
    event = state.get_mission_event(event_id)
    if event is None:
        raise NotFoundError("Mission event not found.")
    if event.resolved:
        raise PreconditionError("That situation has already been resolved.")
    mission = state.get_active_mission(event.mission_id)
    if mission is None or mission.status != MissionStatus.IN_PROGRESS:
        raise PreconditionError("The mission for this event is no longer in progress.")
    return event, mission


def _named(officer: Officer, names: list[str]) -> bool:
    return any(officer.matches_name(name) for name in names)


def promote(officer: Officer) -> bool:
    """Apply the first promotion the officer qualifies for. Returns True if promoted."""
    for threshold, rank, eligible in PROMOTIONS:
        if officer.experience >= threshold and officer.rank in eligible:
            officer.rank = rank
            officer.salary = calculate_salary(rank)
            return True
    return False


def make_decision(
    state: GameState,
    event_id: str,
    result: DecisionResult,
    rng: random.Random | None = None,
) -> GameState:
    """
    Apply a generated decision outcome.

    Casualties are checked before injuries, so a name in both lists dies.
    Names match the on-record full name exactly, ignoring case and
    surrounding whitespace.
    """
    event, mission = check_decision(state, event_id)
    rng = resolve_rng(rng)

    state = working_copy(state)
    event = state.get_mission_event(event_id)
    event.resolved = True
    event.outcome = result.outcome

    killed: list[str] = []
    wounded: list[str] = []

    for officer in state.officers:
        if not officer.is_kia and _named(officer, result.casualties):
            officer.status = OfficerStatus.KIA
            officer.health = 0
            officer.is_injured = False
            officer.injury_days = 0
            killed.append(officer.name)

    for officer in state.officers:
        if not officer.is_kia and _named(officer, result.injuries):
            officer.is_injured = True
            officer.status = OfficerStatus.INJURED
            officer.health = max(INJURY_HEALTH_FLOOR, officer.health - INJURY_HEALTH_LOSS)
            officer.injury_days = rng.randint(INJURY_DAYS_MIN, INJURY_DAYS_MAX)
            wounded.append(officer.name)

    for name in killed:
        add_log(state, LogType.ERROR, f"Officer {name} was KIA.")
    for name in wounded:
        add_log(state, LogType.WARNING, f"Officer {name} was injured.")

    complete = result.mission_complete or event.type in _TERMINAL_EVENT_TYPES
    if complete:
        success = result.success if result.mission_complete else event.type == MissionEventType.SUCCESS
        _close_mission(state, mission.id, success, result.outcome, killed, wounded)

    return state


def _close_mission(
    state: GameState,
    mission_id: str,
    success: bool,
    outcome: str,
    killed: list[str],
    wounded: list[str],
) -> None:
    mission = state.get_active_mission(mission_id)
    state.active_missions = [m for m in state.active_missions if m.id != mission_id]
    mission.status = MissionStatus.COMPLETED if success else MissionStatus.FAILED
    (state.completed_missions if success else state.failed_missions).append(mission)

    # Officers released by a shift change may already be out on another call
    still_deployed = {
        officer_id
        for m in state.active_missions
        if m.status == MissionStatus.IN_PROGRESS
        for officer_id in m.assigned_officers
    }

    for officer_id in mission.assigned_officers:
        officer = state.get_officer(officer_id)
        if officer is None or officer.is_kia:
            continue
        officer.experience = min(100, officer.experience + (XP_SUCCESS if success else XP_FAILURE))
        if promote(officer):
            add_log(
                state,
                LogType.SUCCESS,
                f"PROMOTION: {officer.name} has been promoted to {officer.rank.value}!",
            )
        officer.morale = clamp(
            officer.morale + (MORALE_SUCCESS if success else MORALE_FAILURE), 0, 100
        )
        officer.missions_completed += 1
        if officer.is_injured:
            officer.status = OfficerStatus.INJURED
        elif officer.status == OfficerStatus.ON_MISSION and officer_id not in still_deployed:
            officer.status = OfficerStatus.AVAILABLE

    if success:
        adjust_reputation(state, mission.rewards.reputation)
        state.budget += mission.rewards.budget
        state.lucky_streak += 1
        state.unlucky_streak = 0
        rewards = mission.rewards.model_copy()
        add_log(
            state,
            LogType.SUCCESS,
            f"Mission {mission.title} completed brilliantly. Reward: ${mission.rewards.budget:,}",
        )
    else:
        adjust_reputation(state, -FAILURE_REPUTATION_PENALTY)
        state.unlucky_streak += 1
        state.lucky_streak = 0
        rewards = MissionRewards(reputation=-FAILURE_REPUTATION_PENALTY)
        add_log(
            state,
            LogType.ERROR,
            f"Mission {mission.title} failed. Heavy consequences for the department.",
        )

    state.current_mission_events = [
        e for e in state.current_mission_events if e.mission_id != mission_id
    ]
    state.last_mission_result = MissionResult(
        mission=mission.model_copy(deep=True),
        success=success,
        outcome=outcome,
        casualties=killed,
        injuries=wounded,
        rewards=rewards,
    )

    apply_district_outcome(state, mission, success)
    _report_in_news(state, mission, success, killed)
    if mission.nemesis_id:
        _settle_nemesis(state, mission.nemesis_id, success)


def _report_in_news(state: GameState, mission: Mission, success: bool, killed: list[str]) -> None:
    if killed:
        sentiment = Sentiment.NEGATIVE
        headline = f"Officers down in {mission.location}"
    elif success:
        sentiment = Sentiment.POSITIVE
        headline = f"SWAT team closes {mission.title}"
    else:
        sentiment = Sentiment.NEGATIVE
        headline = f"Botched operation at {mission.location}"
    publish_news(state, headline, mission.description or mission.briefing, sentiment)


def _settle_nemesis(state: GameState, nemesis_id: str, success: bool) -> None:
    nemesis = state.get_nemesis(nemesis_id)
    if nemesis is None:
        return
    nemesis.encounter_count += 1
    nemesis.last_encounter = datetime.now()
    if success:
        nemesis.status = NemesisStatus.CAPTURED
        add_log(state, LogType.SUCCESS, f"NEMESIS DOWN: {nemesis.name} is finally behind bars.")
    else:
        nemesis.status = NemesisStatus.AT_LARGE
        nemesis.grudge_level = min(10, nemesis.grudge_level + 1)
        add_log(state, LogType.WARNING, f"{nemesis.name} slipped away again. The grudge deepens.")
