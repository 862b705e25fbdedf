"""
Normalization of untrusted payloads into domain objects.

Everything that arrives from outside the engine passes through here:
generator replies (loosely shaped JSON) and persisted saves (possibly
written by an older version, or in the camelCase browser format).
Numbers are clamped, missing optional fields get defaults, date strings
become datetimes, enum strings are matched case-insensitively.
"""

import math
import re
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

from .schema import (
    CommunityEvent,
    CommunityEventRequirements,
    CommunityEventRewards,
    CommunityEventStatus,
    CommunityEventType,
    DecisionResult,
    EventOption,
    GameState,
    Gear,
    InterrogationResult,
    MAX_GEAR_LEVEL,
    Mission,
    MissionEvent,
    MissionEventType,
    MissionRewards,
    MissionStatus,
    MissionType,
    Nemesis,
    NemesisStatus,
    Officer,
    OfficerStatus,
    Priority,
    RandomEvent,
    RandomEventChoice,
    RandomEventEffects,
    RandomEventType,
    Rank,
    Skills,
    Specialization,
    Suspect,
    SuspectStatus,
    TrialOutcome,
    TrialVerdict,
    calculate_salary,
    clamp,
    generate_id,
)

E = TypeVar("E", bound=Enum)


class NormalizationError(ValueError):
    """Payload is missing something no default can stand in for."""
    pass


# -----------------------------------------------------------------------------
# Primitive coercions
# -----------------------------------------------------------------------------

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def snake_keys(value: Any) -> Any:
    """Recursively convert camelCase dict keys to snake_case."""
    if isinstance(value, dict):
        return {
            _CAMEL_BOUNDARY.sub(r"_\1", str(k)).lower(): snake_keys(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [snake_keys(v) for v in value]
    return value


def as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        # json.loads accepts NaN, Infinity and 1e999
        return int(round(value)) if math.isfinite(value) else default
    if isinstance(value, str):
        match = re.search(r"-?\d+(\.\d+)?", value.replace(",", ""))
        if match:
            return as_int(float(match.group()), default)
    return default


def as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def as_optional_str(value: Any) -> str | None:
    text = as_str(value)
    return text or None


def as_bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "1"):
            return True
        if lowered in ("false", "no", "0"):
            return False
    if isinstance(value, (int, float)):
        return bool(value)
    return default


def as_str_list(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [as_str(v) for v in value if as_str(v)]


def as_datetime(value: Any, default: datetime | None = None) -> datetime:
    """Parse ISO strings (with or without a trailing Z) and epoch millis."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            # Persisted timestamps are naive local time
            return parsed.astimezone().replace(tzinfo=None) if parsed.tzinfo else parsed
        except ValueError:
            pass
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = value / 1000 if value > 1e11 else value
        try:
            return datetime.fromtimestamp(seconds)
        except (OverflowError, OSError, ValueError):
            pass
    return default or datetime.now()


def coerce_enum(enum_cls: type[E], value: Any, default: E) -> E:
    """Match an enum by value or member name, ignoring case, spaces and dashes."""
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return default

    def key(text: str) -> str:
        return re.sub(r"[\s_\-]+", "", text).lower()

    wanted = key(value)
    for member in enum_cls:
        if key(str(member.value)) == wanted or key(member.name) == wanted:
            return member
    return default


def _mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


# -----------------------------------------------------------------------------
# Officers
# -----------------------------------------------------------------------------

def normalize_skills(data: Any) -> Skills:
    data = _mapping(data)
    return Skills(**{
        name: clamp(as_int(data.get(name), 50), 0, 100)
        for name in Skills.model_fields
    })


def normalize_gear(data: Any) -> Gear:
    data = _mapping(data)
    return Gear(**{
        name: clamp(as_int(data.get(name), 1), 1, MAX_GEAR_LEVEL)
        for name in Gear.model_fields
    })


def normalize_officer(data: Any, *, fresh: bool = True) -> Officer:
    """
    Build an Officer from a loose payload.

    With fresh=True (generated recruits) a new id is issued and lifecycle
    fields start clean; with fresh=False (persisted saves) they are kept.
    """
    data = snake_keys(_mapping(data))
    name = as_str(data.get("name"))
    if not name:
        raise NormalizationError("officer payload has no name")

    rank = coerce_enum(Rank, data.get("rank"), Rank.ROOKIE)
    officer = Officer(
        id=generate_id() if fresh else as_str(data.get("id"), generate_id()),
        name=name,
        nickname=as_optional_str(data.get("nickname")),
        rank=rank,
        specialization=coerce_enum(
            Specialization, data.get("specialization"), Specialization.ASSAULT
        ),
        experience=clamp(as_int(data.get("experience"), 0), 0, 100),
        morale=clamp(as_int(data.get("morale"), 75), 0, 100),
        health=clamp(as_int(data.get("health"), 100), 0, 100),
        skills=normalize_skills(data.get("skills")),
        backstory=as_optional_str(data.get("backstory")),
        gear=normalize_gear(data.get("gear")),
        salary=calculate_salary(rank),
    )
    if fresh:
        return officer

    officer.missions_completed = max(0, as_int(data.get("missions_completed"), 0))
    officer.is_injured = as_bool(data.get("is_injured"))
    officer.injury_days = max(0, as_int(data.get("injury_days"), 0))
    officer.status = coerce_enum(OfficerStatus, data.get("status"), OfficerStatus.AVAILABLE)
    officer.salary = max(0, as_int(data.get("salary"), 0)) or calculate_salary(rank)
    officer.kill_count = max(0, as_int(data.get("kill_count"), 0))
    officer.lives_saved = max(
        0, as_int(data.get("lives_saved", data.get("livesaved")), 0)
    )
    return officer


# -----------------------------------------------------------------------------
# Missions
# -----------------------------------------------------------------------------

def normalize_rewards(data: Any, *, allow_negative_reputation: bool = False) -> MissionRewards:
    data = _mapping(data)
    reputation = as_int(data.get("reputation"), 0)
    if allow_negative_reputation:
        reputation = clamp(reputation, -50, 50)
    else:
        reputation = max(0, reputation)
    return MissionRewards(
        experience=max(0, as_int(data.get("experience"), 0)),
        reputation=reputation,
        budget=max(0, as_int(data.get("budget"), 0)),
    )


def normalize_mission(
    data: Any,
    *,
    default_type: MissionType = MissionType.HIGH_RISK_WARRANT,
    allow_negative_reputation: bool = False,
    default_required: int = 4,
    max_required: int | None = None,
) -> Mission:
    """Build a fresh Available mission from a generated payload."""
    data = snake_keys(_mapping(data))
    title = as_str(data.get("title"))
    if not title:
        raise NormalizationError("mission payload has no title")

    required = max(1, as_int(data.get("required_officers"), default_required))
    if max_required is not None:
        required = max(1, min(required, max_required))

    specs = data.get("required_specializations")
    required_specs = []
    for raw in specs if isinstance(specs, list) else []:
        specialization = coerce_enum(Specialization, raw, None)
        if specialization is not None and specialization not in required_specs:
            required_specs.append(specialization)

    time_limit = as_int(data.get("time_limit"), 0)
    return Mission(
        title=title,
        description=as_str(data.get("description")),
        type=coerce_enum(MissionType, data.get("type"), default_type),
        priority=coerce_enum(Priority, data.get("priority"), Priority.MEDIUM),
        location=as_str(data.get("location"), "Unknown location"),
        estimated_duration=as_str(data.get("estimated_duration"), "1-2 hours"),
        required_officers=required,
        required_specializations=required_specs,
        risk_level=clamp(as_int(data.get("risk_level"), 5), 1, 10),
        rewards=normalize_rewards(
            data.get("rewards"), allow_negative_reputation=allow_negative_reputation
        ),
        briefing=as_str(data.get("briefing"), as_str(data.get("description"))),
        status=MissionStatus.AVAILABLE,
        time_limit=time_limit if time_limit > 0 else None,
    )


def normalize_mission_event(data: Any, mission_id: str) -> MissionEvent:
    data = snake_keys(_mapping(data))
    description = as_str(data.get("description"))
    if not description:
        raise NormalizationError("mission event payload has no description")

    options = []
    raw_options = data.get("options")
    for raw in raw_options if isinstance(raw_options, list) else []:
        raw = _mapping(raw)
        label = as_str(raw.get("label"))
        if not label:
            continue
        options.append(EventOption(
            id=as_str(raw.get("id"), generate_id()),
            label=label,
            description=as_str(raw.get("description")),
            risk_level=clamp(as_int(raw.get("risk_level"), 5), 1, 10),
            required_specialization=coerce_enum(
                Specialization, raw.get("required_specialization"), None
            ),
        ))

    return MissionEvent(
        mission_id=mission_id,
        description=description,
        type=coerce_enum(MissionEventType, data.get("type"), MissionEventType.INFO),
        options=options,
    )


def normalize_decision(data: Any) -> DecisionResult:
    data = snake_keys(_mapping(data))
    outcome = as_str(data.get("outcome"))
    if not outcome:
        raise NormalizationError("decision payload has no outcome")
    return DecisionResult(
        outcome=outcome,
        casualties=as_str_list(data.get("casualties")),
        injuries=as_str_list(data.get("injuries")),
        mission_complete=as_bool(data.get("mission_complete")),
        success=as_bool(data.get("success")),
    )


# -----------------------------------------------------------------------------
# Community events
# -----------------------------------------------------------------------------

def normalize_community_event(data: Any) -> CommunityEvent:
    data = snake_keys(_mapping(data))
    title = as_str(data.get("title"))
    if not title:
        raise NormalizationError("community event payload has no title")
    requirements = _mapping(data.get("requirements"))
    rewards = _mapping(data.get("rewards"))
    return CommunityEvent(
        title=title,
        description=as_str(data.get("description")),
        type=coerce_enum(
            CommunityEventType, data.get("type"), CommunityEventType.PUBLIC_RELATIONS
        ),
        requirements=CommunityEventRequirements(
            min_officers=clamp(as_int(requirements.get("min_officers"), 1), 1, 10),
            required_specialization=coerce_enum(
                Specialization, requirements.get("required_specialization"), None
            ),
        ),
        rewards=CommunityEventRewards(
            budget=max(0, as_int(rewards.get("budget"), 0)),
            reputation=max(0, as_int(rewards.get("reputation"), 0)),
        ),
        status=CommunityEventStatus.AVAILABLE,
    )


# -----------------------------------------------------------------------------
# Custody
# -----------------------------------------------------------------------------

def normalize_suspect(data: Any, mission_id: str | None = None) -> Suspect:
    data = snake_keys(_mapping(data))
    name = as_str(data.get("name"))
    if not name:
        raise NormalizationError("suspect payload has no name")
    return Suspect(
        name=name,
        crime=as_str(data.get("crime"), "Unknown charges"),
        personality=as_str(data.get("personality")),
        intel_level=clamp(as_int(data.get("intel_level"), 50), 0, 100),
        resistance=clamp(as_int(data.get("resistance"), 50), 0, 100),
        status=SuspectStatus.CUSTODY,
        mission_id=mission_id,
    )


def normalize_interrogation(data: Any, *, squad_size: int) -> InterrogationResult:
    data = snake_keys(_mapping(data))
    intel = as_str(data.get("intel"))
    if not intel:
        raise NormalizationError("interrogation payload has no intel")

    unlocked = None
    raw_mission = _mapping(data.get("unlocked_mission"))
    if as_str(raw_mission.get("title")):
        unlocked = raw_mission

    return InterrogationResult(
        success=as_bool(data.get("success")),
        intel=intel,
        reputation_bonus=clamp(as_int(data.get("reputation_bonus"), 0), 0, 15),
        budget_bonus=clamp(as_int(data.get("budget_bonus"), 0), 0, 10000),
        unlocked_mission=(
            _intel_mission(unlocked, data, squad_size) if unlocked else None
        ),
    )


def _intel_mission(raw: dict, data: dict, squad_size: int) -> Mission:
    """Mission unlocked by a cracked suspect."""
    mission = normalize_mission(raw, default_required=max(2, int(squad_size * 0.6)))
    mission.priority = Priority.HIGH
    mission.estimated_duration = "2-4 hours"
    mission.required_officers = max(2, int(squad_size * 0.6))
    mission.rewards = MissionRewards(
        experience=150,
        reputation=clamp(as_int(data.get("reputation_bonus"), 0), 0, 15),
        budget=max(0, as_int(raw.get("reward_budget"), 0)),
    )
    return mission


def normalize_trial(data: Any) -> TrialOutcome:
    data = snake_keys(_mapping(data))
    verdict = coerce_enum(TrialVerdict, data.get("verdict"), None)
    if verdict is None:
        raise NormalizationError("trial payload has no recognizable verdict")
    return TrialOutcome(
        verdict=verdict,
        sentence=as_str(data.get("sentence"), "No sentence recorded"),
        reputation_impact=clamp(as_int(data.get("reputation_impact"), 0), -10, 20),
        budget_impact=clamp(as_int(data.get("budget_impact"), 0), -5000, 15000),
    )


def normalize_nemesis(data: Any, suspect: Suspect) -> Nemesis:
    data = snake_keys(_mapping(data))
    return Nemesis(
        original_suspect_id=suspect.id,
        name=as_str(data.get("name"), suspect.name),
        alias=as_optional_str(data.get("alias")),
        grudge_level=clamp(as_int(data.get("grudge_level"), 5), 1, 10),
        signature=as_str(data.get("signature")),
        backstory=as_str(data.get("backstory")),
        status=NemesisStatus.AT_LARGE,
    )


# -----------------------------------------------------------------------------
# Random events
# -----------------------------------------------------------------------------

def normalize_effects(data: Any) -> RandomEventEffects:
    data = _mapping(data)
    bonus = None
    raw_bonus = _mapping(data.get("bonus_mission"))
    if as_str(raw_bonus.get("title")):
        bonus = normalize_mission(raw_bonus)
    return RandomEventEffects(
        budget_change=clamp(as_int(data.get("budget_change"), 0), -50000, 50000),
        reputation_change=clamp(as_int(data.get("reputation_change"), 0), -25, 25),
        morale_change=clamp(as_int(data.get("morale_change"), 0), -30, 30),
        officer_affected=as_optional_str(data.get("officer_affected")),
        bonus_mission=bonus,
    )


def normalize_random_event(data: Any) -> RandomEvent:
    data = snake_keys(_mapping(data))
    title = as_str(data.get("title"))
    if not title:
        raise NormalizationError("random event payload has no title")

    choices = []
    raw_choices = data.get("choices")
    for raw in raw_choices if isinstance(raw_choices, list) else []:
        raw = _mapping(raw)
        label = as_str(raw.get("label"))
        if not label:
            continue
        choices.append(RandomEventChoice(
            id=as_str(raw.get("id"), generate_id()),
            label=label,
            effects=normalize_effects(raw.get("effects")),
            risk=clamp(as_int(raw.get("risk"), 0), 0, 100),
        ))

    return RandomEvent(
        type=coerce_enum(RandomEventType, data.get("type"), RandomEventType.DRAMA),
        title=title,
        description=as_str(data.get("description")),
        effects=normalize_effects(data.get("effects")),
        choices=choices,
    )


# -----------------------------------------------------------------------------
# Persisted state
# -----------------------------------------------------------------------------

def _persisted_officer(data: Any) -> dict:
    return normalize_officer(data, fresh=False).model_dump()


def normalize_game_state(data: Any) -> GameState:
    """
    Hydrate a persisted save.

    Accepts both the snake_case layout written by this package and the
    camelCase browser layout. Missing fields take their model defaults;
    officers are re-normalized so stats land back in range and salaries
    are filled for saves that predate payroll.
    """
    if not isinstance(data, dict):
        raise NormalizationError("save payload is not an object")
    data = snake_keys(data)

    for key in ("officers",):
        if isinstance(data.get(key), list):
            data[key] = [_persisted_officer(o) for o in data[key] if isinstance(o, dict)]
    if isinstance(data.get("last_dismissed_officer"), dict):
        data["last_dismissed_officer"] = _persisted_officer(data["last_dismissed_officer"])

    _coerce_dates(data)
    state = GameState.model_validate(data)
    _clamp_persisted(state)
    state.game_log = state.game_log[: GameState.LOG_LIMIT]
    return state


def _clamp_persisted(state: GameState) -> None:
    """Pull every bounded stat of a loaded save back into range."""
    state.reputation = clamp(state.reputation, 0, 100)
    state.day = max(1, state.day)
    for mission in state.active_missions + state.completed_missions + state.failed_missions:
        mission.risk_level = clamp(mission.risk_level, 1, 10)
        mission.required_officers = max(1, mission.required_officers)
    for event in state.current_mission_events:
        for option in event.options:
            option.risk_level = clamp(option.risk_level, 1, 10)
    for event in state.available_events:
        event.requirements.min_officers = clamp(event.requirements.min_officers, 1, 10)
    for suspect in state.suspects_in_custody:
        suspect.intel_level = clamp(suspect.intel_level, 0, 100)
        suspect.resistance = clamp(suspect.resistance, 0, 100)
    for nemesis in state.nemeses:
        nemesis.grudge_level = clamp(nemesis.grudge_level, 1, 10)
    for district in state.districts:
        district.crime_level = clamp(district.crime_level, 0, 100)
    if state.pending_random_event is not None:
        for choice in state.pending_random_event.choices:
            choice.risk = clamp(choice.risk, 0, 100)


_DATE_FIELDS = {
    "created_at", "timestamp", "captured_at", "collected_at",
    "last_encounter", "published_at",
}


def _coerce_dates(value: Any) -> None:
    """Rewrite every known date field in place so epoch numbers parse too."""
    if isinstance(value, dict):
        for key, item in value.items():
            if key in _DATE_FIELDS and item is not None:
                value[key] = as_datetime(item)
            else:
                _coerce_dates(item)
    elif isinstance(value, list):
        for item in value:
            _coerce_dates(item)
