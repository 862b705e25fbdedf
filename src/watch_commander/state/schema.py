"""
Pydantic models for Watch Commander campaign state.

All state is versioned for migration support.
GameState is the aggregate root and serializes to a single JSON blob.
"""

from datetime import datetime
from enum import Enum
from typing import ClassVar
from pydantic import BaseModel, Field, model_validator
from uuid import uuid4


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class Rank(str, Enum):
    ROOKIE = "Rookie"
    OFFICER = "Officer"
    SENIOR_OFFICER = "Senior Officer"
    SERGEANT = "Sergeant"
    LIEUTENANT = "Lieutenant"


class Specialization(str, Enum):
    ASSAULT = "Assault"
    SNIPER = "Sniper"
    BREACHER = "Breacher"
    MEDIC = "Medic"
    NEGOTIATOR = "Negotiator"
    TECH_SPECIALIST = "Tech Specialist"


class OfficerStatus(str, Enum):
    AVAILABLE = "Available"
    ON_MISSION = "On Mission"
    ON_EVENT = "On Event"
    INJURED = "Injured"
    ON_LEAVE = "On Leave"
    KIA = "KIA"


class MissionType(str, Enum):
    HOSTAGE_RESCUE = "Hostage Rescue"
    HIGH_RISK_WARRANT = "High-Risk Warrant"
    ACTIVE_SHOOTER = "Active Shooter"
    BARRICADED_SUSPECT = "Barricaded Suspect"
    VIP_PROTECTION = "VIP Protection"
    DRUG_RAID = "Drug Raid"
    BOMB_THREAT = "Bomb Threat"
    CUSTOM_OPERATION = "Custom Operation"


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class MissionStatus(str, Enum):
    AVAILABLE = "Available"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    FAILED = "Failed"
    DECLINED = "Declined"


class MissionEventType(str, Enum):
    INFO = "Info"
    DECISION = "Decision"
    COMBAT = "Combat"
    CASUALTY = "Casualty"
    SUCCESS = "Success"
    FAILURE = "Failure"


class CommunityEventType(str, Enum):
    CHARITY = "Charity"
    PUBLIC_RELATIONS = "Public Relations"
    TRAINING_DEMO = "Training Demo"
    RECRUITMENT_DRIVE = "Recruitment Drive"


class CommunityEventStatus(str, Enum):
    AVAILABLE = "Available"
    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"


class SuspectStatus(str, Enum):
    CUSTODY = "Custody"
    INTERROGATED = "Interrogated"
    CHARGED = "Charged"
    SENTENCED = "Sentenced"
    RELEASED = "Released"
    CI = "CI"
    ARCHIVED = "Archived"


class TrialVerdict(str, Enum):
    GUILTY = "Guilty"
    NOT_GUILTY = "Not Guilty"
    CASE_DISMISSED = "Case Dismissed"


class EvidenceStatus(str, Enum):
    STORED = "Stored"
    ANALYZED = "Analyzed"


class DistrictStatus(str, Enum):
    STABLE = "Stable"
    RISING = "Rising"
    CRITICAL = "Critical"


class Sentiment(str, Enum):
    POSITIVE = "Positive"
    NEUTRAL = "Neutral"
    NEGATIVE = "Negative"


class RandomEventType(str, Enum):
    WINDFALL = "Windfall"
    DISASTER = "Disaster"
    OPPORTUNITY = "Opportunity"
    DRAMA = "Drama"
    CHAOS = "Chaos"
    MORALE = "Morale"


class NemesisStatus(str, Enum):
    AT_LARGE = "At Large"
    PLOTTING = "Plotting"
    CAPTURED = "Captured"
    ELIMINATED = "Eliminated"


class MoraleEventType(str, Enum):
    PIZZA_PARTY = "Pizza Party"
    BBQ = "BBQ"
    TRAINING_DAY = "Training Day"
    AWARDS_CEREMONY = "Awards Ceremony"
    DAY_OFF = "Day Off"
    TEAM_BUILDING = "Team Building"


class LogType(str, Enum):
    INFO = "Info"
    WARNING = "Warning"
    ERROR = "Error"
    SUCCESS = "Success"
    MISSION = "Mission"


class GearTrack(str, Enum):
    ARMOR = "armor"
    WEAPON = "weapon"
    UTILITY = "utility"


# -----------------------------------------------------------------------------
# Pure helpers
# -----------------------------------------------------------------------------

SALARY_BY_RANK: dict[Rank, int] = {
    Rank.ROOKIE: 500,
    Rank.OFFICER: 1200,
    Rank.SENIOR_OFFICER: 2000,
    Rank.SERGEANT: 3500,
    Rank.LIEUTENANT: 5000,
}

DEFAULT_SALARY = 1000
MAX_GEAR_LEVEL = 3


def calculate_salary(rank: Rank | str) -> int:
    """Daily salary for a rank. Unknown ranks get the default rate."""
    try:
        return SALARY_BY_RANK[Rank(rank)]
    except ValueError:
        return DEFAULT_SALARY


def clamp(value: int | float, low: int, high: int) -> int:
    """Clamp a number into [low, high] and round it to an int."""
    return int(max(low, min(high, round(value))))


def generate_id() -> str:
    return str(uuid4())[:8]


# -----------------------------------------------------------------------------
# Officers
# -----------------------------------------------------------------------------

class Skills(BaseModel):
    """Officer skill vector, each in [0, 100]."""
    marksmanship: int = 50
    tactics: int = 50
    fitness: int = 50
    leadership: int = 50
    composure: int = 50


class Gear(BaseModel):
    """Three independently leveled equipment tracks (1-3)."""
    armor_level: int = 1
    weapon_level: int = 1
    utility_level: int = 1

    def level(self, track: GearTrack) -> int:
        return getattr(self, f"{GearTrack(track).value}_level")


class Officer(BaseModel):
    """A roster member."""
    id: str = Field(default_factory=generate_id)
    name: str
    nickname: str | None = None
    rank: Rank = Rank.ROOKIE
    specialization: Specialization = Specialization.ASSAULT
    experience: int = 0
    morale: int = 75
    health: int = 100
    skills: Skills = Field(default_factory=Skills)
    missions_completed: int = 0
    is_injured: bool = False
    injury_days: int = 0
    status: OfficerStatus = OfficerStatus.AVAILABLE
    salary: int = 0                   # Filled from rank when absent (older saves)
    backstory: str | None = None
    gear: Gear = Field(default_factory=Gear)
    kill_count: int = 0
    lives_saved: int = 0

    @model_validator(mode="after")
    def _default_salary(self) -> "Officer":
        if not self.salary:
            self.salary = calculate_salary(self.rank)
        return self

    @property
    def is_kia(self) -> bool:
        return self.status == OfficerStatus.KIA

    @property
    def is_eligible_for_assignment(self) -> bool:
        """Only Available officers may be deployed or scheduled."""
        return self.status == OfficerStatus.AVAILABLE

    def matches_name(self, name: str) -> bool:
        """Exact, trimmed, case-insensitive match on full name."""
        return self.name.strip().lower() == name.strip().lower()


# -----------------------------------------------------------------------------
# Missions
# -----------------------------------------------------------------------------

class MissionRewards(BaseModel):
    experience: int = 0
    reputation: int = 0   # May be negative for custom and nemesis missions
    budget: int = 0


class Mission(BaseModel):
    """A job offer or an engagement in progress."""
    id: str = Field(default_factory=generate_id)
    title: str
    description: str = ""
    type: MissionType = MissionType.HIGH_RISK_WARRANT
    priority: Priority = Priority.MEDIUM
    location: str = "Unknown location"
    district_id: str | None = None
    estimated_duration: str = "1-2 hours"
    required_officers: int = 2
    required_specializations: list[Specialization] = Field(default_factory=list)
    risk_level: int = 5
    rewards: MissionRewards = Field(default_factory=MissionRewards)
    briefing: str = ""
    status: MissionStatus = MissionStatus.AVAILABLE
    assigned_officers: list[str] = Field(default_factory=list)
    time_limit: int | None = None
    nemesis_id: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)


class EventOption(BaseModel):
    """A branching choice offered by a mission event."""
    id: str = Field(default_factory=generate_id)
    label: str
    description: str = ""
    risk_level: int = 5
    required_specialization: Specialization | None = None


class MissionEvent(BaseModel):
    """One beat in an in-progress mission's narrative chain."""
    id: str = Field(default_factory=generate_id)
    mission_id: str
    timestamp: datetime = Field(default_factory=datetime.now)
    description: str
    type: MissionEventType = MissionEventType.INFO
    options: list[EventOption] = Field(default_factory=list)
    resolved: bool = False
    outcome: str | None = None


class DecisionResult(BaseModel):
    """Generated outcome of a commander's decision."""
    outcome: str
    casualties: list[str] = Field(default_factory=list)
    injuries: list[str] = Field(default_factory=list)
    mission_complete: bool = False
    success: bool = False


class MissionResult(BaseModel):
    """Snapshot of a finished mission, kept for the after-action report."""
    mission: Mission
    success: bool
    outcome: str
    casualties: list[str] = Field(default_factory=list)
    injuries: list[str] = Field(default_factory=list)
    rewards: MissionRewards = Field(default_factory=MissionRewards)


# -----------------------------------------------------------------------------
# Community and morale
# -----------------------------------------------------------------------------

class CommunityEventRequirements(BaseModel):
    min_officers: int = 1
    required_specialization: Specialization | None = None


class CommunityEventRewards(BaseModel):
    budget: int = 0
    reputation: int = 0


class CommunityEvent(BaseModel):
    """Outreach work that earns budget and reputation at shift change."""
    id: str = Field(default_factory=generate_id)
    title: str
    description: str = ""
    type: CommunityEventType = CommunityEventType.PUBLIC_RELATIONS
    requirements: CommunityEventRequirements = Field(
        default_factory=CommunityEventRequirements
    )
    rewards: CommunityEventRewards = Field(default_factory=CommunityEventRewards)
    assigned_officers: list[str] = Field(default_factory=list)
    status: CommunityEventStatus = CommunityEventStatus.AVAILABLE


class MoraleEvent(BaseModel):
    """A purchasable squad morale boost from the fixed catalogue."""
    id: str = Field(default_factory=generate_id)
    type: MoraleEventType
    name: str
    description: str = ""
    cost: int = 0
    morale_boost: int = 0
    duration: str = "1 shift"
    icon: str = ""


class RandomEventEffects(BaseModel):
    budget_change: int = 0
    reputation_change: int = 0
    morale_change: int = 0
    officer_affected: str | None = None   # Officer name; None means whole squad
    bonus_mission: Mission | None = None


class RandomEventChoice(BaseModel):
    id: str = Field(default_factory=generate_id)
    label: str
    effects: RandomEventEffects = Field(default_factory=RandomEventEffects)
    risk: int = 0   # 0-100 chance the choice backfires


class RandomEvent(BaseModel):
    """An unplanned incident surfaced at shift change."""
    id: str = Field(default_factory=generate_id)
    type: RandomEventType = RandomEventType.DRAMA
    title: str
    description: str = ""
    effects: RandomEventEffects = Field(default_factory=RandomEventEffects)
    choices: list[RandomEventChoice] = Field(default_factory=list)
    resolved: bool = False


# -----------------------------------------------------------------------------
# Custody pipeline
# -----------------------------------------------------------------------------

class Suspect(BaseModel):
    """A suspect taken into custody after a mission."""
    id: str = Field(default_factory=generate_id)
    name: str
    crime: str = "Unknown charges"
    personality: str = ""
    intel_level: int = 50
    resistance: int = 50
    status: SuspectStatus = SuspectStatus.CUSTODY
    intel_revealed: str | None = None
    trial_verdict: TrialVerdict | None = None
    trial_sentence: str | None = None
    mission_id: str | None = None
    captured_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_dangerous(self) -> bool:
        """Dangerous suspects can be released as a nemesis."""
        return self.resistance >= 60 or self.intel_level >= 50


class EvidenceItem(BaseModel):
    id: str = Field(default_factory=generate_id)
    name: str
    description: str = ""
    suspect_id: str | None = None
    mission_id: str | None = None
    status: EvidenceStatus = EvidenceStatus.STORED
    collected_at: datetime = Field(default_factory=datetime.now)


class InterrogationMessage(BaseModel):
    role: str   # "Commander" or "Suspect"
    text: str


class InterrogationResult(BaseModel):
    success: bool
    intel: str
    reputation_bonus: int = 0
    budget_bonus: int = 0
    unlocked_mission: Mission | None = None


class TrialOutcome(BaseModel):
    verdict: TrialVerdict
    sentence: str
    reputation_impact: int = 0
    budget_impact: int = 0


class Nemesis(BaseModel):
    """A released suspect who returns as a recurring antagonist."""
    id: str = Field(default_factory=generate_id)
    original_suspect_id: str
    name: str
    alias: str | None = None
    grudge_level: int = 5
    encounter_count: int = 0
    last_encounter: datetime = Field(default_factory=datetime.now)
    status: NemesisStatus = NemesisStatus.AT_LARGE
    signature: str = ""
    backstory: str = ""


# -----------------------------------------------------------------------------
# City
# -----------------------------------------------------------------------------

class District(BaseModel):
    id: str = Field(default_factory=generate_id)
    name: str
    crime_level: int = 30
    status: DistrictStatus = DistrictStatus.STABLE
    active_kingpin: str | None = None


class NewsStory(BaseModel):
    id: str = Field(default_factory=generate_id)
    headline: str
    summary: str = ""
    sentiment: Sentiment = Sentiment.NEUTRAL
    day: int = 1
    published_at: datetime = Field(default_factory=datetime.now)


class LogEntry(BaseModel):
    id: str = Field(default_factory=generate_id)
    timestamp: datetime = Field(default_factory=datetime.now)
    type: LogType = LogType.INFO
    message: str


# -----------------------------------------------------------------------------
# Aggregate root
# -----------------------------------------------------------------------------

class GameState(BaseModel):
    """
    The whole campaign.

    Owned by the state engine; the session replaces it wholesale on every
    transition. Fields added in later versions must carry defaults so older
    saves still load.
    """
    SCHEMA_VERSION: ClassVar[str] = "1.0.0"
    LOG_LIMIT: ClassVar[int] = 100

    schema_version: str = SCHEMA_VERSION

    commander_name: str = ""
    squad_name: str = ""
    squad_motto: str | None = None

    officers: list[Officer] = Field(default_factory=list)
    active_missions: list[Mission] = Field(default_factory=list)
    completed_missions: list[Mission] = Field(default_factory=list)
    failed_missions: list[Mission] = Field(default_factory=list)

    reputation: int = 50
    budget: int = 100000
    day: int = 1

    current_mission_events: list[MissionEvent] = Field(default_factory=list)
    game_log: list[LogEntry] = Field(default_factory=list)   # Most recent first
    last_mission_result: MissionResult | None = None

    missions_attempted_today: int = 0
    max_missions_per_day: int = 5
    last_dismissed_officer: Officer | None = None

    available_events: list[CommunityEvent] = Field(default_factory=list)
    suspects_in_custody: list[Suspect] = Field(default_factory=list)
    evidence_locker: list[EvidenceItem] = Field(default_factory=list)
    recent_news: list[NewsStory] = Field(default_factory=list)
    districts: list[District] = Field(default_factory=list)
    nemeses: list[Nemesis] = Field(default_factory=list)
    pending_random_event: RandomEvent | None = None
    morale_events: list[MoraleEvent] = Field(default_factory=list)

    lucky_streak: int = 0
    unlucky_streak: int = 0

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_officer(self, officer_id: str) -> Officer | None:
        return next((o for o in self.officers if o.id == officer_id), None)

    def get_active_mission(self, mission_id: str) -> Mission | None:
        return next((m for m in self.active_missions if m.id == mission_id), None)

    def get_mission_event(self, event_id: str) -> MissionEvent | None:
        return next((e for e in self.current_mission_events if e.id == event_id), None)

    def get_community_event(self, event_id: str) -> CommunityEvent | None:
        return next((e for e in self.available_events if e.id == event_id), None)

    def get_suspect(self, suspect_id: str) -> Suspect | None:
        return next((s for s in self.suspects_in_custody if s.id == suspect_id), None)

    def get_nemesis(self, nemesis_id: str) -> Nemesis | None:
        return next((n for n in self.nemeses if n.id == nemesis_id), None)

    def get_district(self, district_id: str) -> District | None:
        return next((d for d in self.districts if d.id == district_id), None)

    def events_for_mission(self, mission_id: str) -> list[MissionEvent]:
        return [e for e in self.current_mission_events if e.mission_id == mission_id]

    def unresolved_event_for(self, mission_id: str) -> MissionEvent | None:
        return next(
            (e for e in self.events_for_mission(mission_id) if not e.resolved),
            None,
        )

    @property
    def active_officers(self) -> list[Officer]:
        """Everyone still on the roster who is not KIA."""
        return [o for o in self.officers if not o.is_kia]

    @property
    def daily_payroll(self) -> int:
        return sum(o.salary for o in self.active_officers)

    @property
    def quota_reached(self) -> bool:
        return self.missions_attempted_today >= self.max_missions_per_day

    @property
    def has_commander(self) -> bool:
        return bool(self.commander_name)
