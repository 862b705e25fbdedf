"""Tests for mission lifecycle reducers."""

import random

import pytest

from watch_commander.state.schema import (
    DecisionResult,
    LogType,
    MissionEvent,
    MissionEventType,
    MissionStatus,
    Nemesis,
    NemesisStatus,
    OfficerStatus,
    Rank,
    Sentiment,
)
from watch_commander.systems import (
    NotFoundError,
    PreconditionError,
    QuotaExceededError,
    missions,
    shift,
)
from watch_commander.systems.rules import DISPATCH_OVERLOADED


def open_event(state, mission_id, event_type=MissionEventType.DECISION):
    event = MissionEvent(mission_id=mission_id, description="Contact on the stairs.", type=event_type)
    return missions.add_mission_event(state, mission_id, event), event


def assert_invariants(state):
    """Bounds and mission/event consistency hold."""
    assert 0 <= state.reputation <= 100
    for officer in state.officers:
        assert 0 <= officer.health <= 100
        assert 0 <= officer.morale <= 100
        assert 0 <= officer.experience <= 100
    for mission in state.active_missions + state.completed_missions + state.failed_missions:
        staffed = mission.status in (
            MissionStatus.IN_PROGRESS, MissionStatus.COMPLETED, MissionStatus.FAILED
        )
        assert bool(mission.assigned_officers) == staffed
    for mission in state.active_missions:
        open_events = [e for e in state.events_for_mission(mission.id) if not e.resolved]
        assert len(open_events) <= 1


class TestDispatch:
    """Test receiving and declining missions."""

    def test_receive_counts_against_quota(self, base_state, mission, rng):
        new = missions.receive_mission(base_state, mission, rng)
        assert new.missions_attempted_today == 1
        assert new.active_missions[0].district_id in {d.id for d in new.districts}
        assert new.game_log[0].type == LogType.MISSION

    def test_quota_blocks(self, base_state, mission):
        base_state.missions_attempted_today = base_state.max_missions_per_day
        with pytest.raises(QuotaExceededError) as exc:
            missions.receive_mission(base_state, mission)
        assert str(exc.value) == DISPATCH_OVERLOADED

    def test_decline_costs_reputation(self, base_state, mission):
        base_state.active_missions = [mission]
        new = missions.decline_mission(base_state, mission.id)
        assert new.active_missions == []
        assert new.reputation == 45

    def test_decline_floors_reputation(self, base_state, mission):
        base_state.active_missions = [mission]
        base_state.reputation = 3
        assert missions.decline_mission(base_state, mission.id).reputation == 0

    def test_cannot_decline_underway(self, deployed_state):
        with pytest.raises(PreconditionError):
            missions.decline_mission(deployed_state, deployed_state.active_missions[0].id)


class TestAssignment:
    """Test deployment."""

    def test_assign_deploys_officers(self, staffed_state, mission, rookie, veteran):
        staffed_state.active_missions = [mission]
        new = missions.assign_officers_to_mission(
            staffed_state, mission.id, [rookie.id, veteran.id, rookie.id, "ghost"]
        )
        deployed = new.get_active_mission(mission.id)
        assert deployed.status == MissionStatus.IN_PROGRESS
        assert deployed.assigned_officers == [rookie.id, veteran.id]
        assert new.get_officer(rookie.id).status == OfficerStatus.ON_MISSION
        assert_invariants(new)

    def test_assign_requires_someone(self, staffed_state, mission):
        staffed_state.active_missions = [mission]
        with pytest.raises(PreconditionError):
            missions.assign_officers_to_mission(staffed_state, mission.id, [])

    def test_assign_unknown_mission(self, staffed_state, rookie):
        with pytest.raises(NotFoundError):
            missions.assign_officers_to_mission(staffed_state, "nope", [rookie.id])


class TestMissionEvents:
    """Test situation reports."""

    def test_one_open_event_at_a_time(self, deployed_state):
        mission_id = deployed_state.active_missions[0].id
        state, _ = open_event(deployed_state, mission_id)
        with pytest.raises(PreconditionError):
            open_event(state, mission_id)

    def test_event_needs_mission_underway(self, staffed_state, mission):
        staffed_state.active_missions = [mission]
        with pytest.raises(PreconditionError):
            open_event(staffed_state, mission.id)


class TestMakeDecision:
    """Test decision resolution."""

    def test_success_end_to_end(self, deployed_state, rookie, mission):
        """Mission closes, officer returns Available with XP, rewards paid."""
        mission_id = deployed_state.active_missions[0].id
        state, event = open_event(deployed_state, mission_id)
        result = DecisionResult(outcome="Clean entry.", mission_complete=True, success=True)

        new = missions.make_decision(state, event.id, result, random.Random(1))

        assert new.get_active_mission(mission_id) is None
        assert [m.id for m in new.completed_missions] == [mission_id]
        officer = new.get_officer(rookie.id)
        assert officer.status == OfficerStatus.AVAILABLE
        assert officer.experience == 30
        assert officer.missions_completed == 1
        assert officer.morale == 75
        assert new.reputation == state.reputation + mission.rewards.reputation
        assert new.budget == state.budget + mission.rewards.budget
        assert new.events_for_mission(mission_id) == []
        assert new.last_mission_result.success is True
        assert new.lucky_streak == 1
        assert new.recent_news[0].sentiment == Sentiment.POSITIVE
        assert_invariants(new)

    def test_success_reputation_clamped(self, deployed_state):
        deployed_state.reputation = 97
        mission_id = deployed_state.active_missions[0].id
        state, event = open_event(deployed_state, mission_id)
        result = DecisionResult(outcome="Done.", mission_complete=True, success=True)
        assert missions.make_decision(state, event.id, result).reputation == 100

    def test_casualty_beats_injury(self, deployed_state, rookie):
        """A name in both lists ends KIA, not Injured."""
        mission_id = deployed_state.active_missions[0].id
        state, event = open_event(deployed_state, mission_id)
        result = DecisionResult(
            outcome="Ambush.",
            casualties=["  dana cole "],
            injuries=["Dana Cole"],
        )
        new = missions.make_decision(state, event.id, result)
        officer = new.get_officer(rookie.id)
        assert officer.status == OfficerStatus.KIA
        assert officer.health == 0
        assert officer.is_injured is False
        assert new.game_log[0].message == "Officer Dana Cole was KIA."

    def test_injury(self, deployed_state, rookie):
        mission_id = deployed_state.active_missions[0].id
        state, event = open_event(deployed_state, mission_id)
        result = DecisionResult(outcome="Graze wound.", injuries=["Dana Cole"])
        new = missions.make_decision(state, event.id, result, random.Random(3))
        officer = new.get_officer(rookie.id)
        assert officer.status == OfficerStatus.INJURED
        assert officer.health == 70
        assert 3 <= officer.injury_days <= 7
        # Mission continues; the event is resolved
        assert new.get_active_mission(mission_id) is not None
        assert new.get_mission_event(event.id).resolved

    def test_nickname_does_not_match(self, deployed_state, rookie):
        """Only exact full names count."""
        mission_id = deployed_state.active_missions[0].id
        state, event = open_event(deployed_state, mission_id)
        result = DecisionResult(outcome="Ambush.", casualties=["Cole"])
        new = missions.make_decision(state, event.id, result)
        assert new.get_officer(rookie.id).status == OfficerStatus.ON_MISSION

    def test_failure_event_type_closes_mission(self, deployed_state):
        mission_id = deployed_state.active_missions[0].id
        district_id = deployed_state.active_missions[0].district_id
        before = deployed_state.get_district(district_id).crime_level
        state, event = open_event(deployed_state, mission_id, MissionEventType.FAILURE)
        new = missions.make_decision(state, event.id, DecisionResult(outcome="Suspects escaped."))
        assert [m.id for m in new.failed_missions] == [mission_id]
        assert new.reputation == state.reputation - 10
        assert new.last_mission_result.rewards.reputation == -10
        assert new.unlucky_streak == 1
        assert new.get_district(district_id).crime_level == before + 11
        assert_invariants(new)

    def test_resolved_event_rejected(self, deployed_state):
        mission_id = deployed_state.active_missions[0].id
        state, event = open_event(deployed_state, mission_id)
        state = missions.make_decision(state, event.id, DecisionResult(outcome="ok"))
        with pytest.raises(PreconditionError):
            missions.make_decision(state, event.id, DecisionResult(outcome="again"))

    def test_close_keeps_officer_on_other_mission(self, deployed_state, rookie, mission):
        """An officer freed by a shift change and redeployed stays out on the new call."""
        first_id = deployed_state.active_missions[0].id
        state = shift.advance_day(deployed_state)
        assert state.get_officer(rookie.id).status == OfficerStatus.AVAILABLE

        second = mission.model_copy(update={"id": "bank-standoff", "title": "Bank Standoff"})
        state = missions.receive_mission(state, second, random.Random(1))
        state = missions.assign_officers_to_mission(state, second.id, [rookie.id])
        state, event = open_event(state, first_id)
        result = DecisionResult(outcome="Clean entry.", mission_complete=True, success=True)

        new = missions.make_decision(state, event.id, result, random.Random(1))

        assert new.get_officer(rookie.id).status == OfficerStatus.ON_MISSION
        assert new.get_active_mission(second.id).status == MissionStatus.IN_PROGRESS
        assert [m.id for m in new.completed_missions] == [first_id]
        assert_invariants(new)


class TestPromotion:
    """Test rank progression."""

    def test_promotion_on_threshold(self, rookie):
        rookie.experience = 25
        assert missions.promote(rookie) is True
        assert rookie.rank == Rank.OFFICER
        assert rookie.salary == 1200

    def test_top_threshold_first(self, rookie):
        rookie.experience = 96
        missions.promote(rookie)
        assert rookie.rank == Rank.LIEUTENANT

    def test_no_demotion(self, rookie):
        rookie.rank = Rank.SERGEANT
        rookie.experience = 60
        assert missions.promote(rookie) is False
        assert rookie.rank == Rank.SERGEANT

    def test_promotion_logged_on_close(self, deployed_state, rookie):
        deployed_state.get_officer(rookie.id).experience = 45
        mission_id = deployed_state.active_missions[0].id
        state, event = open_event(deployed_state, mission_id)
        result = DecisionResult(outcome="Done.", mission_complete=True, success=True)
        new = missions.make_decision(state, event.id, result)
        assert new.get_officer(rookie.id).rank == Rank.SENIOR_OFFICER
        assert any("PROMOTION" in entry.message for entry in new.game_log)


class TestNemesisMissions:
    """Test nemesis-linked operations."""

    def test_nemesis_plotting_then_captured(self, deployed_state, mission):
        nemesis = Nemesis(original_suspect_id="s1", name="Rico Salas")
        deployed_state.nemeses = [nemesis]
        hunt = mission.model_copy(update={"id": "hunt", "nemesis_id": nemesis.id})

        state = missions.receive_nemesis_mission(deployed_state, hunt)
        assert state.get_nemesis(nemesis.id).status == NemesisStatus.PLOTTING
        with pytest.raises(PreconditionError):
            missions.check_nemesis_at_large(state, nemesis.id)

        officer_id = state.officers[1].id
        state = missions.assign_officers_to_mission(state, "hunt", [officer_id])
        state, event = open_event(state, "hunt")
        result = DecisionResult(outcome="Cuffed.", mission_complete=True, success=True)
        state = missions.make_decision(state, event.id, result)

        caught = state.get_nemesis(nemesis.id)
        assert caught.status == NemesisStatus.CAPTURED
        assert caught.encounter_count == 1

    def test_declined_hunt_returns_nemesis(self, base_state, mission):
        nemesis = Nemesis(original_suspect_id="s1", name="Rico Salas")
        base_state.nemeses = [nemesis]
        hunt = mission.model_copy(update={"nemesis_id": nemesis.id})
        state = missions.receive_nemesis_mission(base_state, hunt)
        state = missions.decline_mission(state, hunt.id)
        assert state.get_nemesis(nemesis.id).status == NemesisStatus.AT_LARGE
