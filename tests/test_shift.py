"""Tests for shift rotation, community, morale and random events."""

import random

import pytest

from watch_commander.state.schema import (
    CommunityEventRequirements,
    CommunityEventRewards,
    CommunityEventStatus,
    Mission,
    NemesisStatus,
    Nemesis,
    OfficerStatus,
    RandomEvent,
    RandomEventChoice,
    RandomEventEffects,
)
from watch_commander.systems import InsufficientFundsError, NotFoundError, PreconditionError, shift
from watch_commander.systems.rules import CITY_FUNDING


class TestAdvanceDay:
    """Test the batch day transition."""

    def test_budget_conservation(self, deployed_state):
        """Budget moves by exactly funding minus payroll."""
        payroll = sum(o.salary for o in deployed_state.officers)
        new = shift.advance_day(deployed_state)
        assert new.budget - deployed_state.budget == CITY_FUNDING - payroll
        assert new.missions_attempted_today == 0
        assert new.day == deployed_state.day + 1

    def test_busy_officers_become_available(self, deployed_state, rookie, veteran, community_event):
        community_event.status = CommunityEventStatus.SCHEDULED
        community_event.assigned_officers = [veteran.id]
        deployed_state.available_events = [community_event]
        deployed_state.get_officer(veteran.id).status = OfficerStatus.ON_EVENT

        new = shift.advance_day(deployed_state)
        assert new.get_officer(rookie.id).status == OfficerStatus.AVAILABLE
        assert new.get_officer(veteran.id).status == OfficerStatus.AVAILABLE
        assert new.available_events == []

    def test_in_progress_missions_survive(self, deployed_state, mission):
        waiting = Mission(title="Stale Warrant")
        deployed_state.active_missions.append(waiting)
        new = shift.advance_day(deployed_state)
        assert [m.title for m in new.active_missions] == [mission.title]

    def test_scheduled_event_rewards(self, staffed_state, community_event):
        community_event.status = CommunityEventStatus.SCHEDULED
        community_event.rewards = CommunityEventRewards(budget=3000, reputation=4)
        staffed_state.available_events = [community_event]
        payroll = staffed_state.daily_payroll
        new = shift.advance_day(staffed_state)
        assert new.budget == staffed_state.budget + CITY_FUNDING + 3000 - payroll
        assert new.reputation == staffed_state.reputation + 4

    def test_injured_heal_and_recover(self, staffed_state, rookie, veteran):
        hurt = staffed_state.get_officer(rookie.id)
        hurt.status = OfficerStatus.INJURED
        hurt.is_injured = True
        hurt.injury_days = 1
        hurt.health = 40
        slow = staffed_state.get_officer(veteran.id)
        slow.status = OfficerStatus.INJURED
        slow.is_injured = True
        slow.injury_days = 3
        slow.health = 40

        new = shift.advance_day(staffed_state)
        recovered = new.get_officer(rookie.id)
        assert recovered.status == OfficerStatus.AVAILABLE
        assert recovered.is_injured is False
        assert recovered.health == 60
        still = new.get_officer(veteran.id)
        assert still.injury_days == 2
        assert still.health == 45
        assert still.status == OfficerStatus.INJURED

    def test_kia_untouched(self, staffed_state, rookie):
        fallen = staffed_state.get_officer(rookie.id)
        fallen.status = OfficerStatus.KIA
        fallen.health = 0
        new = shift.advance_day(staffed_state)
        assert new.get_officer(rookie.id).status == OfficerStatus.KIA
        assert new.get_officer(rookie.id).morale == fallen.morale

    def test_morale_recovers(self, staffed_state, rookie):
        new = shift.advance_day(staffed_state)
        assert new.get_officer(rookie.id).morale == rookie.morale + 2

    def test_expired_hunt_releases_nemesis(self, base_state):
        nemesis = Nemesis(original_suspect_id="s1", name="Rico", status=NemesisStatus.PLOTTING)
        base_state.nemeses = [nemesis]
        base_state.active_missions = [Mission(title="Hunt", nemesis_id=nemesis.id)]
        new = shift.advance_day(base_state)
        assert new.get_nemesis(nemesis.id).status == NemesisStatus.AT_LARGE


class TestCommunityEvents:
    """Test scheduling and cancelling."""

    def test_schedule(self, staffed_state, community_event, rookie):
        staffed_state.available_events = [community_event]
        new = shift.schedule_event(staffed_state, community_event.id, [rookie.id])
        event = new.get_community_event(community_event.id)
        assert event.status == CommunityEventStatus.SCHEDULED
        assert new.get_officer(rookie.id).status == OfficerStatus.ON_EVENT

    def test_schedule_needs_minimum(self, deployed_state, community_event, rookie, veteran):
        """Deployed officers do not count toward the minimum."""
        community_event.requirements = CommunityEventRequirements(min_officers=2)
        deployed_state.available_events = [community_event]
        with pytest.raises(PreconditionError):
            shift.schedule_event(deployed_state, community_event.id, [rookie.id, veteran.id])

    def test_cancel_frees_officers(self, staffed_state, community_event, rookie):
        staffed_state.available_events = [community_event]
        state = shift.schedule_event(staffed_state, community_event.id, [rookie.id])
        state = shift.cancel_event(state, community_event.id)
        assert state.get_officer(rookie.id).status == OfficerStatus.AVAILABLE
        assert state.get_community_event(community_event.id).status == CommunityEventStatus.AVAILABLE

    def test_cancel_unscheduled(self, staffed_state, community_event):
        staffed_state.available_events = [community_event]
        with pytest.raises(PreconditionError):
            shift.cancel_event(staffed_state, community_event.id)


class TestMoraleEvents:
    """Test hosting morale events."""

    def test_host_boosts_living_officers(self, staffed_state, rookie, veteran):
        staffed_state.get_officer(veteran.id).status = OfficerStatus.KIA
        pizza = staffed_state.morale_events[0]
        new = shift.host_morale_event(staffed_state, pizza.id)
        assert new.budget == staffed_state.budget - pizza.cost
        assert new.get_officer(rookie.id).morale == rookie.morale + pizza.morale_boost
        assert new.get_officer(veteran.id).morale == veteran.morale

    def test_host_needs_funds(self, staffed_state):
        staffed_state.budget = 0
        with pytest.raises(InsufficientFundsError):
            shift.host_morale_event(staffed_state, staffed_state.morale_events[0].id)


class TestRandomEvents:
    """Test incident resolution."""

    def _incident(self, risk=0):
        return RandomEvent(
            title="Viral Video",
            effects=RandomEventEffects(reputation_change=-5),
            choices=[RandomEventChoice(
                id="presser",
                label="Hold a press conference",
                risk=risk,
                effects=RandomEventEffects(budget_change=-1000, reputation_change=6),
            )],
        )

    def test_accept_base_effects(self, staffed_state):
        state = shift.set_random_event(staffed_state, self._incident())
        new = shift.resolve_random_event(state)
        assert new.reputation == staffed_state.reputation - 5
        assert new.pending_random_event is None

    def test_safe_choice(self, staffed_state):
        state = shift.set_random_event(staffed_state, self._incident(risk=0))
        new = shift.resolve_random_event(state, "presser", random.Random(1))
        assert new.budget == staffed_state.budget - 1000
        assert new.reputation == staffed_state.reputation + 6

    def test_certain_backfire_negates(self, staffed_state):
        state = shift.set_random_event(staffed_state, self._incident(risk=100))
        new = shift.resolve_random_event(state, "presser", random.Random(1))
        assert new.budget == staffed_state.budget + 1000
        assert new.reputation == staffed_state.reputation - 6
        assert "backfired" in new.game_log[0].message

    def test_unknown_choice(self, staffed_state):
        state = shift.set_random_event(staffed_state, self._incident())
        with pytest.raises(NotFoundError):
            shift.resolve_random_event(state, "nope")

    def test_nothing_pending_is_noop(self, staffed_state):
        assert shift.resolve_random_event(staffed_state) is staffed_state

    def test_affected_officer_only(self, staffed_state, rookie, veteran):
        incident = RandomEvent(
            title="Family Emergency",
            effects=RandomEventEffects(morale_change=-10, officer_affected="Dana Cole"),
        )
        state = shift.set_random_event(staffed_state, incident)
        new = shift.resolve_random_event(state)
        assert new.get_officer(rookie.id).morale == rookie.morale - 10
        assert new.get_officer(veteran.id).morale == veteran.morale
