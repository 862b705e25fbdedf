"""Campaign state: domain model, normalization, storage, observers."""

from .schema import (
    CommunityEvent,
    CommunityEventStatus,
    DecisionResult,
    District,
    EvidenceItem,
    GameState,
    Gear,
    GearTrack,
    LogEntry,
    LogType,
    Mission,
    MissionEvent,
    MissionResult,
    MissionStatus,
    MoraleEvent,
    Nemesis,
    NewsStory,
    Officer,
    OfficerStatus,
    RandomEvent,
    Rank,
    Specialization,
    Suspect,
    SuspectStatus,
    calculate_salary,
    generate_id,
)
from .normalize import NormalizationError, normalize_game_state
from .store import (
    SAVE_KEY,
    FileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    SaveFormatError,
    StoreError,
    dump_state,
    load_state,
)
from .event_bus import EventBus, EventType, SessionEvent

__all__ = [
    # Schema
    "CommunityEvent",
    "CommunityEventStatus",
    "DecisionResult",
    "District",
    "EvidenceItem",
    "GameState",
    "Gear",
    "GearTrack",
    "LogEntry",
    "LogType",
    "Mission",
    "MissionEvent",
    "MissionResult",
    "MissionStatus",
    "MoraleEvent",
    "Nemesis",
    "NewsStory",
    "Officer",
    "OfficerStatus",
    "RandomEvent",
    "Rank",
    "Specialization",
    "Suspect",
    "SuspectStatus",
    "calculate_salary",
    "generate_id",
    # Normalization
    "NormalizationError",
    "normalize_game_state",
    # Storage
    "SAVE_KEY",
    "FileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SaveFormatError",
    "StoreError",
    "dump_state",
    "load_state",
    # Observers
    "EventBus",
    "EventType",
    "SessionEvent",
]
