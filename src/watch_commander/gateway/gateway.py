"""
Generation gateway.

Turns domain requests into one call against the configured LLM backend
and turns the raw reply into a normalized domain object. Every public
method returns either the object or a GatewayFailure; nothing raises
past this boundary.

The LLM clients are blocking (urllib), so calls run in a worker thread
via asyncio.to_thread and are bounded by asyncio.wait_for.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, TypeVar, Union

from pydantic import ValidationError

from ..llm.base import LLMClient, Message
from ..state.normalize import (
    NormalizationError,
    normalize_community_event,
    normalize_decision,
    normalize_interrogation,
    normalize_mission,
    normalize_mission_event,
    normalize_nemesis,
    normalize_officer,
    normalize_random_event,
    normalize_suspect,
    normalize_trial,
)
from ..state.schema import (
    CommunityEvent,
    DecisionResult,
    EventOption,
    InterrogationMessage,
    InterrogationResult,
    Mission,
    MissionEvent,
    MissionType,
    Nemesis,
    Officer,
    RandomEvent,
    Suspect,
    TrialOutcome,
)
from . import prompts
from .extraction import BraceScanExtractor, JsonExtractor

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestKind(str, Enum):
    RECRUIT_OFFICER = "RecruitOfficer"
    GENERATE_MISSION = "GenerateMission"
    GENERATE_MISSION_EVENT = "GenerateMissionEvent"
    RESOLVE_DECISION = "ResolveDecision"
    GENERATE_COMMUNITY_EVENT = "GenerateCommunityEvent"
    GENERATE_CUSTOM_MISSION = "GenerateCustomMission"
    GENERATE_SUSPECT = "GenerateSuspect"
    INTERROGATE_SUSPECT_TURN = "InterrogateSuspectTurn"
    RESOLVE_INTERROGATION = "ResolveInterrogation"
    GENERATE_TRIAL_OUTCOME = "GenerateTrialOutcome"
    GENERATE_RANDOM_EVENT = "GenerateRandomEvent"
    GENERATE_NEMESIS = "GenerateNemesis"
    GENERATE_NEMESIS_MISSION = "GenerateNemesisMission"
    GENERATE_FUNERAL_EULOGY = "GenerateFuneralEulogy"
    GENERATE_DISMISSAL_DIALOGUE = "GenerateDismissalDialogue"


@dataclass(frozen=True)
class GatewayFailure:
    """A generation request that produced nothing usable."""
    request: RequestKind
    reason: str

    def __str__(self) -> str:
        return f"{self.request.value} failed: {self.reason}"


GatewayResult = Union[T, GatewayFailure]


class GenerationGateway:
    """
    Stateless adapter between domain requests and the generation backend.

    Args:
        client: Any LLMClient backend
        extractor: JSON extraction strategy (defaults to brace scanning)
        timeout: Seconds before a call counts as failed
        temperature: Default sampling temperature
        max_tokens: Response token budget
    """

    def __init__(
        self,
        client: LLMClient,
        extractor: JsonExtractor | None = None,
        timeout: float = 60,
        temperature: float = 0.8,
        max_tokens: int = 2048,
    ):
        self.client = client
        self.extractor = extractor or BraceScanExtractor()
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    async def _complete(
        self,
        kind: RequestKind,
        messages: list[Message],
        system: str = prompts.SYSTEM_PROMPT,
        temperature: float | None = None,
    ) -> str | GatewayFailure:
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    self.client.chat,
                    messages,
                    system=system,
                    temperature=self.temperature if temperature is None else temperature,
                    max_tokens=self.max_tokens,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("%s timed out after %ss", kind.value, self.timeout)
            return GatewayFailure(kind, f"timed out after {self.timeout}s")
        except Exception as e:
            logger.warning("%s failed: %s", kind.value, e)
            return GatewayFailure(kind, str(e) or type(e).__name__)

        logger.debug("%s raw reply: %r", kind.value, response.content[:500])
        return response.content

    async def _generate_json(
        self,
        kind: RequestKind,
        messages: list[Message],
        build: Callable[[dict], T],
        temperature: float | None = None,
    ) -> GatewayResult[T]:
        text = await self._complete(kind, messages, temperature=temperature)
        if isinstance(text, GatewayFailure):
            return text

        data = self.extractor.extract(text)
        if data is None:
            logger.warning("%s reply had no JSON object", kind.value)
            return GatewayFailure(kind, "no parseable JSON object in reply")

        try:
            return build(data)
        except (NormalizationError, ValidationError, ValueError, TypeError, OverflowError) as e:
            logger.warning("%s schema mismatch: %s", kind.value, e)
            return GatewayFailure(kind, f"schema mismatch: {e}")

    async def _generate_text(
        self,
        kind: RequestKind,
        messages: list[Message],
        system: str = prompts.SYSTEM_PROMPT,
        temperature: float | None = None,
    ) -> GatewayResult[str]:
        text = await self._complete(kind, messages, system=system, temperature=temperature)
        if isinstance(text, GatewayFailure):
            return text
        text = text.strip()
        if not text:
            return GatewayFailure(kind, "empty reply")
        return text

    # -------------------------------------------------------------------------
    # Roster
    # -------------------------------------------------------------------------

    async def recruit_officer(self, existing_names: list[str], reputation: int) -> GatewayResult[Officer]:
        return await self._generate_json(
            RequestKind.RECRUIT_OFFICER,
            prompts.recruit_officer(existing_names, reputation),
            normalize_officer,
        )

    async def generate_dismissal_dialogue(self, officer: Officer, reason: str) -> GatewayResult[str]:
        return await self._generate_text(
            RequestKind.GENERATE_DISMISSAL_DIALOGUE,
            prompts.dismissal_dialogue(officer, reason),
            temperature=0.9,
        )

    async def generate_funeral_eulogy(self, officer: Officer, squad_name: str) -> GatewayResult[str]:
        return await self._generate_text(
            RequestKind.GENERATE_FUNERAL_EULOGY,
            prompts.funeral_eulogy(officer, squad_name),
        )

    # -------------------------------------------------------------------------
    # Missions
    # -------------------------------------------------------------------------

    async def generate_mission(self, reputation: int, day: int, squad_size: int) -> GatewayResult[Mission]:
        return await self._generate_json(
            RequestKind.GENERATE_MISSION,
            prompts.generate_mission(reputation, day, squad_size),
            normalize_mission,
        )

    async def generate_custom_mission(
        self, description: str, squad_size: int, reputation: int
    ) -> GatewayResult[Mission]:
        def build(data: dict) -> Mission:
            mission = normalize_mission(
                data,
                allow_negative_reputation=True,
                default_required=min(max(squad_size, 1), 4),
                max_required=max(squad_size, 1),
            )
            mission.type = MissionType.CUSTOM_OPERATION
            return mission

        return await self._generate_json(
            RequestKind.GENERATE_CUSTOM_MISSION,
            prompts.custom_mission(description, squad_size, reputation),
            build,
        )

    async def generate_nemesis_mission(
        self, nemesis: Nemesis, reputation: int, squad_size: int
    ) -> GatewayResult[Mission]:
        def build(data: dict) -> Mission:
            mission = normalize_mission(data, allow_negative_reputation=True)
            mission.nemesis_id = nemesis.id
            return mission

        return await self._generate_json(
            RequestKind.GENERATE_NEMESIS_MISSION,
            prompts.nemesis_mission(nemesis, reputation, squad_size),
            build,
        )

    async def generate_mission_event(
        self,
        mission: Mission,
        officers: list[Officer],
        prior_events: list[MissionEvent],
    ) -> GatewayResult[MissionEvent]:
        return await self._generate_json(
            RequestKind.GENERATE_MISSION_EVENT,
            prompts.mission_event(mission, officers, prior_events),
            lambda data: normalize_mission_event(data, mission.id),
        )

    async def resolve_decision(
        self,
        mission: Mission,
        event: MissionEvent,
        option: EventOption | str,
        officers: list[Officer],
        event_count: int,
    ) -> GatewayResult[DecisionResult]:
        """Resolve a chosen option, or a free-text order when option is a string."""
        label = option if isinstance(option, str) else f"{option.label}: {option.description}"
        return await self._generate_json(
            RequestKind.RESOLVE_DECISION,
            prompts.resolve_decision(mission, event, label, officers, event_count),
            normalize_decision,
        )

    # -------------------------------------------------------------------------
    # Community and incidents
    # -------------------------------------------------------------------------

    async def generate_community_event(self, reputation: int) -> GatewayResult[CommunityEvent]:
        return await self._generate_json(
            RequestKind.GENERATE_COMMUNITY_EVENT,
            prompts.community_event(reputation),
            normalize_community_event,
        )

    async def generate_random_event(
        self, day: int, budget: int, reputation: int, officer_names: list[str]
    ) -> GatewayResult[RandomEvent]:
        return await self._generate_json(
            RequestKind.GENERATE_RANDOM_EVENT,
            prompts.random_event(day, budget, reputation, officer_names),
            normalize_random_event,
        )

    # -------------------------------------------------------------------------
    # Custody
    # -------------------------------------------------------------------------

    async def generate_suspect(self, mission: Mission) -> GatewayResult[Suspect]:
        return await self._generate_json(
            RequestKind.GENERATE_SUSPECT,
            prompts.captured_suspect(mission),
            lambda data: normalize_suspect(data, mission_id=mission.id),
        )

    async def interrogate_suspect(
        self,
        suspect: Suspect,
        history: list[InterrogationMessage],
        message: str,
    ) -> GatewayResult[str]:
        return await self._generate_text(
            RequestKind.INTERROGATE_SUSPECT_TURN,
            prompts.interrogation_turn(history, message),
            system=prompts.interrogation_system(suspect),
            temperature=0.9,
        )

    async def resolve_interrogation(
        self,
        suspect: Suspect,
        history: list[InterrogationMessage],
        squad_size: int,
    ) -> GatewayResult[InterrogationResult]:
        return await self._generate_json(
            RequestKind.RESOLVE_INTERROGATION,
            prompts.resolve_interrogation(suspect, history, squad_size),
            lambda data: normalize_interrogation(data, squad_size=squad_size),
        )

    async def generate_trial_outcome(self, suspect: Suspect) -> GatewayResult[TrialOutcome]:
        return await self._generate_json(
            RequestKind.GENERATE_TRIAL_OUTCOME,
            prompts.trial_outcome(suspect),
            normalize_trial,
            temperature=0.7,
        )

    async def generate_nemesis(self, suspect: Suspect) -> GatewayResult[Nemesis]:
        return await self._generate_json(
            RequestKind.GENERATE_NEMESIS,
            prompts.nemesis_profile(suspect),
            lambda data: normalize_nemesis(data, suspect),
        )
