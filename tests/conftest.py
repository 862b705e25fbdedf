"""
Pytest fixtures for Watch Commander tests.

Provides in-memory stores, mock clients and seeded campaigns for
isolated testing. Nothing here touches the network.
"""

import json
import random

import pytest

from watch_commander.gateway import GenerationGateway
from watch_commander.llm import MockLLMClient
from watch_commander.session import CampaignSession
from watch_commander.state import (
    SAVE_KEY,
    GameState,
    MemoryKeyValueStore,
    Mission,
    Officer,
    dump_state,
)
from watch_commander.state.schema import (
    CommunityEvent,
    Gear,
    MissionRewards,
    MissionStatus,
    OfficerStatus,
    Specialization,
    Suspect,
)
from watch_commander.systems import campaign


def as_reply(payload: dict, prose: str = "Here you go:") -> str:
    """Wrap a payload the way a chatty model does."""
    return f"{prose}\n```json\n{json.dumps(payload)}\n```\nLet me know if you need more."


@pytest.fixture
def memory_store():
    """In-memory key-value store for testing."""
    return MemoryKeyValueStore()


@pytest.fixture
def mock_llm():
    """Mock LLM client; tests set responses as needed."""
    return MockLLMClient()


@pytest.fixture
def gateway(mock_llm):
    """Gateway over the mock client with a short timeout."""
    return GenerationGateway(mock_llm, timeout=5)


@pytest.fixture
def rng():
    return random.Random(7)


@pytest.fixture
def base_state():
    """A running campaign with no roster."""
    state = campaign.start_new_game("Reyes", "Bravo Team", "First in, last out")
    state.game_log = []
    return state


@pytest.fixture
def rookie():
    return Officer(
        name="Dana Cole",
        specialization=Specialization.BREACHER,
        experience=20,
        morale=70,
        salary=500,
    )


@pytest.fixture
def veteran():
    return Officer(
        name="Marcus Vance",
        specialization=Specialization.SNIPER,
        experience=60,
        morale=80,
        salary=2000,
        gear=Gear(armor_level=2),
    )


@pytest.fixture
def mission():
    return Mission(
        title="Warehouse Raid",
        description="Armed suspects holed up in a warehouse.",
        location="Pier 9",
        required_officers=2,
        risk_level=6,
        rewards=MissionRewards(experience=100, reputation=8, budget=12000),
    )


@pytest.fixture
def staffed_state(base_state, rookie, veteran):
    """Campaign with two officers on the roster."""
    base_state.officers = [rookie, veteran]
    return base_state


@pytest.fixture
def deployed_state(staffed_state, rookie, mission):
    """Campaign with the rookie deployed on an in-progress mission."""
    deployed = mission.model_copy(update={
        "status": MissionStatus.IN_PROGRESS,
        "assigned_officers": [rookie.id],
        "district_id": staffed_state.districts[0].id,
    })
    staffed_state.active_missions = [deployed]
    staffed_state.get_officer(rookie.id).status = OfficerStatus.ON_MISSION
    staffed_state.missions_attempted_today = 1
    return staffed_state


@pytest.fixture
def community_event():
    return CommunityEvent(title="Youth League Clinic", description="Coach a game.")


@pytest.fixture
def suspect():
    return Suspect(
        name="Rico Salas",
        crime="Armed robbery",
        personality="Cocky",
        intel_level=40,
        resistance=70,
    )


@pytest.fixture
def make_session(memory_store, gateway):
    """Build a session, optionally over a pre-saved campaign."""

    def _make(state: GameState | None = None, rng_seed: int = 7) -> CampaignSession:
        if state is not None:
            memory_store.set(SAVE_KEY, dump_state(state))
        return CampaignSession(
            gateway,
            memory_store,
            rng=random.Random(rng_seed),
            day_transition_delay=0,
        )

    return _make
