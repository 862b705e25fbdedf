"""Tests for schema helpers and payload normalization."""

from datetime import datetime

import pytest

from watch_commander.state.normalize import (
    NormalizationError,
    as_datetime,
    as_int,
    coerce_enum,
    normalize_community_event,
    normalize_decision,
    normalize_game_state,
    normalize_interrogation,
    normalize_mission,
    normalize_mission_event,
    normalize_officer,
    normalize_random_event,
    normalize_suspect,
    normalize_trial,
    snake_keys,
)
from watch_commander.state.schema import (
    CommunityEventStatus,
    MissionEventType,
    MissionStatus,
    MissionType,
    OfficerStatus,
    Priority,
    Rank,
    Specialization,
    SuspectStatus,
    TrialVerdict,
    calculate_salary,
    clamp,
)


class TestHelpers:
    """Test small schema and coercion helpers."""

    def test_salary_by_rank(self):
        """Each rank has its daily rate."""
        assert calculate_salary(Rank.ROOKIE) == 500
        assert calculate_salary("Sergeant") == 3500
        assert calculate_salary(Rank.LIEUTENANT) == 5000

    def test_salary_unknown_rank(self):
        """Unknown ranks fall back to the default rate."""
        assert calculate_salary("Captain") == 1000

    def test_clamp_rounds(self):
        assert clamp(101.4, 0, 100) == 100
        assert clamp(-3, 0, 100) == 0
        assert clamp(42.6, 0, 100) == 43

    def test_as_int_from_prose(self):
        """Numbers buried in strings are recovered."""
        assert as_int("$12,500", 0) == 12500
        assert as_int("about 7", 0) == 7
        assert as_int("none", 3) == 3
        assert as_int(True, 3) == 3

    def test_coerce_enum_is_forgiving(self):
        """Enum matching ignores case, spaces and dashes."""
        assert coerce_enum(MissionType, "high risk warrant", None) == MissionType.HIGH_RISK_WARRANT
        assert coerce_enum(Specialization, "TECH_SPECIALIST", None) == Specialization.TECH_SPECIALIST
        assert coerce_enum(Priority, "urgent", Priority.MEDIUM) == Priority.MEDIUM

    def test_snake_keys_recursive(self):
        data = snake_keys({"squadName": "A", "officers": [{"injuryDays": 2}]})
        assert data == {"squad_name": "A", "officers": [{"injury_days": 2}]}

    def test_as_datetime_formats(self):
        """ISO strings, Z suffixes and epoch millis all parse."""
        assert as_datetime("2024-05-01T10:00:00") == datetime(2024, 5, 1, 10, 0)
        assert isinstance(as_datetime("2024-05-01T10:00:00.000Z"), datetime)
        assert as_datetime(1714557600000).year == 2024

    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan"), "1" * 400])
    def test_as_int_non_finite_falls_back(self, value):
        assert as_int(value, 3) == 3

    def test_as_datetime_out_of_range_epoch(self):
        default = datetime(2024, 1, 1)
        assert as_datetime(1e20, default) == default


class TestNormalizeOfficer:
    """Test recruit normalization."""

    def test_clamps_stats(self):
        officer = normalize_officer({
            "name": "Ana Ruiz",
            "rank": "officer",
            "specialization": "medic",
            "morale": 140,
            "health": -5,
            "skills": {"marksmanship": 250},
            "gear": {"armorLevel": 9},
        })
        assert officer.rank == Rank.OFFICER
        assert officer.specialization == Specialization.MEDIC
        assert officer.morale == 100
        assert officer.health == 0
        assert officer.skills.marksmanship == 100
        assert officer.gear.armor_level == 3
        assert officer.salary == 1200

    def test_fresh_recruit_starts_clean(self):
        """Generated recruits get a new id and Available status."""
        officer = normalize_officer({"id": "x", "name": "Ana Ruiz", "status": "KIA"})
        assert officer.id != "x"
        assert officer.status == OfficerStatus.AVAILABLE

    def test_requires_name(self):
        with pytest.raises(NormalizationError):
            normalize_officer({"rank": "Rookie"})


class TestNormalizeMission:
    """Test mission normalization."""

    def test_defaults_and_clamps(self):
        mission = normalize_mission({
            "title": "Bank Job",
            "type": "Hostage Rescue",
            "riskLevel": 15,
            "requiredOfficers": "3 officers",
            "rewards": {"reputation": -4, "budget": "8000"},
            "status": "Completed",
        })
        assert mission.type == MissionType.HOSTAGE_RESCUE
        assert mission.risk_level == 10
        assert mission.required_officers == 3
        assert mission.rewards.reputation == 0
        assert mission.rewards.budget == 8000
        assert mission.status == MissionStatus.AVAILABLE
        assert mission.assigned_officers == []

    def test_negative_reputation_allowed_when_asked(self):
        mission = normalize_mission(
            {"title": "Sting", "rewards": {"reputation": -80}},
            allow_negative_reputation=True,
        )
        assert mission.rewards.reputation == -50

    def test_required_officers_capped(self):
        mission = normalize_mission({"title": "Sting", "required_officers": 9}, max_required=3)
        assert mission.required_officers == 3

    def test_requires_title(self):
        with pytest.raises(NormalizationError):
            normalize_mission({"description": "no title"})


class TestNormalizeEvents:
    """Test situation, decision and community payloads."""

    def test_mission_event(self):
        event = normalize_mission_event({
            "description": "Shots fired on the second floor.",
            "type": "combat",
            "options": [
                {"label": "Push up the stairs", "riskLevel": 8},
                {"description": "no label, dropped"},
            ],
        }, "m1")
        assert event.mission_id == "m1"
        assert event.type == MissionEventType.COMBAT
        assert len(event.options) == 1
        assert event.resolved is False

    def test_decision_accepts_string_booleans(self):
        result = normalize_decision({
            "outcome": "Suspect down.",
            "missionComplete": "true",
            "success": "yes",
            "casualties": "Dana Cole",
        })
        assert result.mission_complete is True
        assert result.success is True
        assert result.casualties == ["Dana Cole"]
        assert result.injuries == []

    def test_community_event_is_available(self):
        event = normalize_community_event({
            "title": "Food Drive",
            "requirements": {"minOfficers": 0},
            "rewards": {"budget": 2000, "reputation": 3},
        })
        assert event.status == CommunityEventStatus.AVAILABLE
        assert event.requirements.min_officers == 1
        assert event.rewards.budget == 2000


class TestNormalizeCustody:
    """Test suspect, interrogation and trial payloads."""

    def test_suspect_linked_to_mission(self):
        suspect = normalize_suspect({"name": "Rico", "resistance": 130}, mission_id="m1")
        assert suspect.mission_id == "m1"
        assert suspect.resistance == 100
        assert suspect.status == SuspectStatus.CUSTODY

    def test_interrogation_unlocks_intel_mission(self):
        result = normalize_interrogation({
            "success": True,
            "intel": "The stash is at the docks.",
            "reputationBonus": 40,
            "budgetBonus": 99999,
            "unlockedMission": {"title": "Dockside Stash", "rewardBudget": 6000},
        }, squad_size=5)
        assert result.reputation_bonus == 15
        assert result.budget_bonus == 10000
        unlocked = result.unlocked_mission
        assert unlocked.priority == Priority.HIGH
        assert unlocked.estimated_duration == "2-4 hours"
        assert unlocked.required_officers == 3
        assert unlocked.rewards.experience == 150
        assert unlocked.rewards.budget == 6000

    def test_interrogation_small_squad_needs_two(self):
        result = normalize_interrogation({
            "success": True,
            "intel": "x",
            "unlocked_mission": {"title": "Lead"},
        }, squad_size=1)
        assert result.unlocked_mission.required_officers == 2

    def test_trial_requires_verdict(self):
        with pytest.raises(NormalizationError):
            normalize_trial({"sentence": "10 years"})

    def test_trial_clamps_impacts(self):
        outcome = normalize_trial({
            "verdict": "not guilty",
            "reputationImpact": -40,
            "budgetImpact": 50000,
        })
        assert outcome.verdict == TrialVerdict.NOT_GUILTY
        assert outcome.reputation_impact == -10
        assert outcome.budget_impact == 15000


class TestNormalizeRandomEvent:
    """Test random event payloads."""

    def test_choices_and_effects(self):
        event = normalize_random_event({
            "title": "Viral Video",
            "effects": {"reputation_change": 90},
            "choices": [
                {"label": "Hold a presser", "risk": 140, "effects": {"budget_change": -2000}},
            ],
        })
        assert event.effects.reputation_change == 25
        assert event.choices[0].risk == 100
        assert event.choices[0].effects.budget_change == -2000


class TestNormalizeGameState:
    """Test save hydration."""

    def test_camel_case_browser_save(self):
        state = normalize_game_state({
            "commanderName": "Reyes",
            "squadName": "Bravo",
            "reputation": 180,
            "day": 0,
            "officers": [{"id": "o1", "name": "Ana", "rank": "Sergeant", "status": "Injured",
                          "isInjured": True, "injuryDays": 2}],
            "gameLog": [{"type": "Info", "message": "hi", "timestamp": "2024-05-01T10:00:00Z"}],
        })
        assert state.commander_name == "Reyes"
        assert state.reputation == 100
        assert state.day == 1
        officer = state.officers[0]
        assert officer.id == "o1"
        assert officer.status == OfficerStatus.INJURED
        assert officer.injury_days == 2
        assert officer.salary == 3500
        assert isinstance(state.game_log[0].timestamp, datetime)

    def test_rejects_non_object(self):
        with pytest.raises(NormalizationError):
            normalize_game_state(["not", "a", "save"])
