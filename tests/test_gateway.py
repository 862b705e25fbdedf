"""Tests for the generation gateway."""

import time

import pytest

from watch_commander.gateway import (
    GatewayFailure,
    GenerationGateway,
    RequestKind,
    StrictJsonExtractor,
)
from watch_commander.llm import MockLLMClient
from watch_commander.llm.base import LLMResponse
from watch_commander.state.schema import (
    InterrogationMessage,
    MissionEvent,
    MissionType,
    Nemesis,
    Officer,
)

from conftest import as_reply


class SlowClient(MockLLMClient):
    """Mock that blocks longer than the gateway will wait."""

    def chat(self, messages, system=None, temperature=0.8, max_tokens=2048):
        time.sleep(0.5)
        return LLMResponse(content='{"name": "Too Late"}')


class TestGatewayFailures:
    """Every failure mode comes back as a value."""

    @pytest.mark.asyncio
    async def test_connection_error(self, gateway, mock_llm):
        mock_llm.set_responses([ConnectionError("Cannot connect to backend")])
        result = await gateway.recruit_officer([], 50)
        assert isinstance(result, GatewayFailure)
        assert result.request == RequestKind.RECRUIT_OFFICER
        assert "Cannot connect" in result.reason

    @pytest.mark.asyncio
    async def test_no_json(self, gateway, mock_llm):
        mock_llm.set_responses(["I'd rather not."])
        result = await gateway.generate_mission(50, 1, 4)
        assert isinstance(result, GatewayFailure)
        assert result.request == RequestKind.GENERATE_MISSION

    @pytest.mark.asyncio
    async def test_schema_mismatch(self, gateway, mock_llm):
        """JSON without the required fields is a failure, not an exception."""
        mock_llm.set_responses([as_reply({"description": "no title"})])
        result = await gateway.generate_mission(50, 1, 4)
        assert isinstance(result, GatewayFailure)
        assert "schema" in result.reason

    @pytest.mark.asyncio
    async def test_timeout(self):
        gateway = GenerationGateway(SlowClient(), timeout=0.05)
        result = await gateway.recruit_officer([], 50)
        assert isinstance(result, GatewayFailure)
        assert "timed out" in result.reason

    @pytest.mark.asyncio
    async def test_empty_text_reply(self, gateway, mock_llm, rookie):
        mock_llm.set_responses(["   "])
        result = await gateway.generate_funeral_eulogy(rookie, "Bravo Team")
        assert isinstance(result, GatewayFailure)

    @pytest.mark.asyncio
    async def test_strict_extractor_rejects_prose(self, mock_llm):
        gateway = GenerationGateway(mock_llm, extractor=StrictJsonExtractor())
        mock_llm.set_responses([as_reply({"name": "Ana Ruiz"})])
        result = await gateway.recruit_officer([], 50)
        assert isinstance(result, GatewayFailure)

    @pytest.mark.asyncio
    async def test_builder_overflow_is_a_failure(self, gateway, mock_llm):
        def build(data):
            return int(float("inf"))

        mock_llm.set_responses([as_reply({"name": "Ana Ruiz"})])
        result = await gateway._generate_json(RequestKind.RECRUIT_OFFICER, [], build)
        assert isinstance(result, GatewayFailure)
        assert "schema" in result.reason


class TestGatewayRequests:
    """Successful requests come back normalized."""

    @pytest.mark.asyncio
    async def test_recruit_officer(self, gateway, mock_llm):
        mock_llm.set_responses([as_reply({
            "name": "Ana Ruiz",
            "rank": "Rookie",
            "specialization": "Negotiator",
            "backstory": "Former crisis counselor.",
        })])
        officer = await gateway.recruit_officer(["Dana Cole"], 60)
        assert isinstance(officer, Officer)
        assert officer.name == "Ana Ruiz"
        assert officer.salary == 500
        # Existing names are passed so the generator avoids duplicates
        assert "Dana Cole" in mock_llm.calls[0]["messages"][-1].content

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["Infinity", "-Infinity", "NaN", "1e999"])
    async def test_recruit_non_finite_stat(self, gateway, mock_llm, raw):
        mock_llm.set_responses(['{"name": "Ana Ruiz", "experience": %s, "health": %s}' % (raw, raw)])
        officer = await gateway.recruit_officer([], 60)
        assert isinstance(officer, Officer)
        assert officer.experience == 0
        assert officer.health == 100

    @pytest.mark.asyncio
    async def test_custom_mission_is_tagged(self, gateway, mock_llm):
        mock_llm.set_responses([as_reply({
            "title": "Undercover Buy",
            "type": "Drug Raid",
            "requiredOfficers": 8,
            "rewards": {"reputation": -5},
        })])
        mission = await gateway.generate_custom_mission("buy-bust at the motel", 3, 50)
        assert mission.type == MissionType.CUSTOM_OPERATION
        assert mission.required_officers == 3
        assert mission.rewards.reputation == -5

    @pytest.mark.asyncio
    async def test_nemesis_mission_is_linked(self, gateway, mock_llm):
        nemesis = Nemesis(original_suspect_id="s1", name="Rico Salas", alias="The Ghost")
        mock_llm.set_responses([as_reply({"title": "Ghost Protocol"})])
        mission = await gateway.generate_nemesis_mission(nemesis, 50, 4)
        assert mission.nemesis_id == nemesis.id

    @pytest.mark.asyncio
    async def test_mission_event_bound_to_mission(self, gateway, mock_llm, mission, rookie):
        mock_llm.set_responses([as_reply({
            "description": "A door is barricaded.",
            "type": "Decision",
            "options": [{"label": "Breach"}, {"label": "Wait"}],
        })])
        event = await gateway.generate_mission_event(mission, [rookie], [])
        assert isinstance(event, MissionEvent)
        assert event.mission_id == mission.id
        assert [o.label for o in event.options] == ["Breach", "Wait"]

    @pytest.mark.asyncio
    async def test_free_text_order(self, gateway, mock_llm, mission, rookie):
        """A string option is sent as the commander's own order."""
        event = MissionEvent(mission_id=mission.id, description="Standoff.")
        mock_llm.set_responses([as_reply({"outcome": "It worked.", "missionComplete": False})])
        result = await gateway.resolve_decision(mission, event, "Cut the power", [rookie], 1)
        assert result.outcome == "It worked."
        assert "Cut the power" in mock_llm.calls[0]["messages"][-1].content

    @pytest.mark.asyncio
    async def test_interrogation_turn_is_plain_text(self, gateway, mock_llm, suspect):
        mock_llm.set_responses(["  I want my lawyer.  "])
        history = [
            InterrogationMessage(role="Commander", text="Where were you?"),
            InterrogationMessage(role="Suspect", text="Home."),
        ]
        reply = await gateway.interrogate_suspect(suspect, history, "Try again.")
        assert reply == "I want my lawyer."
        call = mock_llm.calls[0]
        assert suspect.name in call["system"]
        assert [m.role for m in call["messages"]] == ["user", "assistant", "user"]
        assert call["temperature"] == 0.9

    @pytest.mark.asyncio
    async def test_suspect_linked_to_mission(self, gateway, mock_llm, mission):
        mock_llm.set_responses([as_reply({"name": "Rico Salas", "crime": "Robbery"})])
        suspect = await gateway.generate_suspect(mission)
        assert suspect.mission_id == mission.id

    @pytest.mark.asyncio
    async def test_nemesis_defaults_to_suspect_name(self, gateway, mock_llm, suspect):
        mock_llm.set_responses([as_reply({"alias": "The Ghost", "grudgeLevel": 12})])
        nemesis = await gateway.generate_nemesis(suspect)
        assert nemesis.name == suspect.name
        assert nemesis.original_suspect_id == suspect.id
        assert nemesis.grudge_level == 10
