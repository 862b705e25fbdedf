"""
Campaign session: the single owner of the live GameState.

Every action follows the same template:
1. Check preconditions against the current state (no gateway call if they fail)
2. Raise the loading flag and await the generation gateway
3. On failure: error slot + Error log entry, state otherwise untouched
4. On success: run the reducer against the state as it is *now*, replace
   it wholesale, persist, notify observers
5. Drop the loading flag whatever happened

Reducers never await, so two transitions can never interleave even when
several gateway calls are in flight.

Usage:
    session = CampaignSession(gateway, FileKeyValueStore("saves"))
    await session.start_new_game("Reyes", "Bravo Team")
    officer = await session.recruit_officer()
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import random
from contextlib import contextmanager
from typing import Coroutine, Iterator

from .gateway import GatewayFailure, GenerationGateway
from .state.event_bus import EventBus, EventType
from .state.schema import (
    DecisionResult,
    GameState,
    GearTrack,
    InterrogationMessage,
    InterrogationResult,
    Mission,
    MissionEvent,
    Officer,
    Suspect,
)
from .state.store import (
    SAVE_KEY,
    KeyValueStore,
    SaveFormatError,
    StoreError,
    dump_state,
    load_state,
    validate_import,
)
from .systems import PreconditionError, NotFoundError, campaign, custody, missions, roster, shift
from .systems.rules import RANDOM_EVENT_CHANCE, SUSPECT_CAPTURE_CHANCE

logger = logging.getLogger(__name__)

IMPORT_FAILED = "Failed to import save file. The file may be corrupted or invalid."
SAVE_FAILED = "Campaign could not be saved. Progress since the last save may be lost."


def _surfaces_errors(func):
    """Route engine precondition errors into the session's error slot."""
    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(self: "CampaignSession", *args, **kwargs):
            try:
                return await func(self, *args, **kwargs)
            except PreconditionError as e:
                self._set_error(str(e))
                return None
        return async_wrapper

    @functools.wraps(func)
    def wrapper(self: "CampaignSession", *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except PreconditionError as e:
            self._set_error(str(e))
            return None
    return wrapper


class CampaignSession:
    """
    Orchestrates the state engine against the generation gateway.

    Args:
        gateway: Generation gateway (async, never raises)
        store: Key-value store holding the campaign save
        bus: Event bus for observers (a private one is created if omitted)
        rng: Random source for dice the session rolls itself
        day_transition_delay: Seconds the day advance holds before applying
        save_key: Store key for the campaign blob
    """

    def __init__(
        self,
        gateway: GenerationGateway,
        store: KeyValueStore,
        bus: EventBus | None = None,
        rng: random.Random | None = None,
        day_transition_delay: float = 3.0,
        save_key: str = SAVE_KEY,
    ):
        self.gateway = gateway
        self.store = store
        self.bus = bus or EventBus()
        self.rng = rng or random.Random()
        self.day_transition_delay = day_transition_delay
        self.save_key = save_key

        self._loading_count = 0
        self._is_advancing_day = False
        self._error: str | None = None
        # Bumped on reset/import/new game so stale background results are dropped
        self._epoch = 0
        self._background: set[asyncio.Task] = set()

        self._state = self._load_saved()

    # -------------------------------------------------------------------------
    # Observables
    # -------------------------------------------------------------------------

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._loading_count > 0

    @property
    def is_advancing_day(self) -> bool:
        return self._is_advancing_day

    @property
    def error(self) -> str | None:
        return self._error

    def clear_error(self) -> None:
        if self._error is not None:
            self._error = None
            self.bus.emit(EventType.ERROR_CHANGED, day=self._state.day, error=None)

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    def _load_saved(self) -> GameState:
        """Read the save, or start fresh if there is none or it is unreadable."""
        try:
            blob = self.store.get(self.save_key)
        except StoreError as e:
            logger.warning("Could not read save: %s", e)
            return campaign.initial_state()
        if blob is None:
            return campaign.initial_state()
        try:
            state = load_state(blob)
        except SaveFormatError as e:
            logger.warning("Discarding unreadable save: %s", e)
            return campaign.initial_state()
        logger.info("Loaded campaign for %s (day %d)", state.squad_name, state.day)
        self.bus.emit(EventType.CAMPAIGN_LOADED, day=state.day)
        return state

    def _commit(self, new_state: GameState) -> None:
        """Replace the held state wholesale, persist it, notify observers."""
        if new_state is self._state:
            return
        self._state = new_state
        self._persist()
        self.bus.emit(EventType.STATE_CHANGED, day=new_state.day, state=new_state)

    def _persist(self) -> None:
        if not self._state.has_commander:
            return
        try:
            self.store.set(self.save_key, dump_state(self._state))
        except StoreError as e:
            logger.error("Save failed: %s", e)
            self._set_error(SAVE_FAILED)
            return
        self.bus.emit(EventType.CAMPAIGN_SAVED, day=self._state.day)

    def _set_error(self, message: str) -> None:
        self._error = message
        self.bus.emit(EventType.ERROR_CHANGED, day=self._state.day, error=message)

    def _fail(self, failure: GatewayFailure, message: str) -> None:
        """Surface a gateway failure: error slot plus an Error log entry."""
        logger.warning("%s", failure)
        self._set_error(message)
        self._commit(campaign.record_error(self._state, message))

    @contextmanager
    def _loading(self) -> Iterator[None]:
        self._loading_count += 1
        if self._loading_count == 1:
            self.bus.emit(EventType.LOADING_CHANGED, day=self._state.day, loading=True)
        try:
            yield
        finally:
            self._loading_count -= 1
            if self._loading_count == 0:
                self.bus.emit(EventType.LOADING_CHANGED, day=self._state.day, loading=False)

    def _set_advancing(self, value: bool) -> None:
        self._is_advancing_day = value
        self.bus.emit(EventType.ADVANCING_DAY_CHANGED, day=self._state.day, advancing=value)

    def _spawn(self, coro: Coroutine) -> None:
        """Fire-and-forget a background task, keeping a reference until it ends."""
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def drain(self) -> None:
        """Wait for background work (suspect captures) to land."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def _squad_size(self) -> int:
        return len(self._state.active_officers)

    # -------------------------------------------------------------------------
    # Campaign lifecycle
    # -------------------------------------------------------------------------

    @_surfaces_errors
    async def start_new_game(
        self,
        commander_name: str,
        squad_name: str,
        squad_motto: str | None = None,
    ) -> bool:
        state = campaign.start_new_game(commander_name, squad_name, squad_motto)
        self._epoch += 1
        self._commit(state)

        epoch = self._epoch
        with self._loading():
            event = await self.gateway.generate_community_event(state.reputation)
        if isinstance(event, GatewayFailure):
            logger.info("No opening community event: %s", event)
        elif epoch == self._epoch:
            self._commit(shift.add_community_event(self._state, event))
        return True

    def reset_game(self) -> None:
        """Wipe the save and return to a blank campaign."""
        self._epoch += 1
        self.store.remove(self.save_key)
        self._commit(campaign.initial_state())
        self.clear_error()

    def export_save(self) -> tuple[str, str]:
        """Return (suggested filename, JSON text) for the current campaign."""
        filename = campaign.export_filename(self._state)
        text = dump_state(self._state).decode("utf-8")
        self._commit(campaign.record_export(self._state))
        return filename, text

    def import_save(self, text: str | bytes) -> bool:
        """Replace the campaign with an exported one. Bad files change nothing."""
        try:
            state = validate_import(text)
        except SaveFormatError as e:
            logger.warning("Import rejected: %s", e)
            self._set_error(IMPORT_FAILED)
            return False
        self._epoch += 1
        self._commit(campaign.record_import(state))
        return True

    def clear_mission_result(self) -> None:
        self._commit(campaign.clear_mission_result(self._state))

    # -------------------------------------------------------------------------
    # Roster
    # -------------------------------------------------------------------------

    @_surfaces_errors
    async def recruit_officer(self) -> Officer | None:
        roster.check_recruit_funds(self._state)

        with self._loading():
            officer = await self.gateway.recruit_officer(
                [o.name for o in self._state.officers], self._state.reputation
            )
        if isinstance(officer, GatewayFailure):
            self._fail(officer, "Failed to recruit officer. Dispatch could not reach HR.")
            return None

        self._commit(roster.recruit_officer(self._state, officer))
        return officer

    @_surfaces_errors
    async def dismiss_officer(self, officer_id: str, reason: str) -> str | None:
        """Dismiss an officer. Returns their parting words (or a stock line)."""
        officer = roster.check_dismissable(self._state, officer_id)

        with self._loading():
            dialogue = await self.gateway.generate_dismissal_dialogue(officer, reason)
        if isinstance(dialogue, GatewayFailure):
            logger.info("Dismissal dialogue unavailable: %s", dialogue)
            dialogue = f"{officer.name} hands over the badge without a word."

        self._commit(roster.dismiss_officer(self._state, officer_id, reason, dialogue))
        return dialogue

    def rehire_last_officer(self) -> None:
        self._commit(roster.rehire_last_officer(self._state))

    async def honor_fallen(self, officer_id: str) -> str | None:
        """Retire a KIA officer. Returns the eulogy read at the service."""
        officer = self._state.get_officer(officer_id)
        if officer is None or not officer.is_kia:
            return None

        with self._loading():
            eulogy = await self.gateway.generate_funeral_eulogy(officer, self._state.squad_name)
        if isinstance(eulogy, GatewayFailure):
            logger.info("Eulogy unavailable: %s", eulogy)
            eulogy = f"{officer.name} served with honor and distinction. End of watch."

        self._commit(roster.honor_fallen(self._state, officer_id))
        return eulogy

    @_surfaces_errors
    def upgrade_gear(self, officer_id: str, track: GearTrack | str) -> None:
        self._commit(roster.upgrade_gear(self._state, officer_id, track))

    # -------------------------------------------------------------------------
    # Missions
    # -------------------------------------------------------------------------

    @_surfaces_errors
    async def generate_mission(self) -> Mission | None:
        missions.check_mission_quota(self._state)

        with self._loading():
            mission = await self.gateway.generate_mission(
                self._state.reputation, self._state.day, self._squad_size()
            )
        if isinstance(mission, GatewayFailure):
            self._fail(mission, "Failed to generate mission. Dispatch is not responding.")
            return None

        self._commit(missions.receive_mission(self._state, mission, self.rng))
        return mission

    @_surfaces_errors
    async def create_custom_mission(self, description: str) -> Mission | None:
        missions.check_mission_quota(self._state)

        with self._loading():
            mission = await self.gateway.generate_custom_mission(
                description, self._squad_size(), self._state.reputation
            )
        if isinstance(mission, GatewayFailure):
            self._fail(mission, "Failed to process custom mission directive.")
            return None

        self._commit(missions.receive_custom_mission(self._state, mission, self.rng))
        return mission

    @_surfaces_errors
    def assign_officers_to_mission(self, mission_id: str, officer_ids: list[str]) -> None:
        self._commit(missions.assign_officers_to_mission(self._state, mission_id, officer_ids))

    @_surfaces_errors
    def decline_mission(self, mission_id: str) -> None:
        self._commit(missions.decline_mission(self._state, mission_id))

    @_surfaces_errors
    async def generate_mission_event(self, mission_id: str) -> MissionEvent | None:
        mission = missions.check_can_generate_event(self._state, mission_id)
        team = [o for o in self._state.officers if o.id in mission.assigned_officers]

        with self._loading():
            event = await self.gateway.generate_mission_event(
                mission, team, self._state.events_for_mission(mission_id)
            )
        if isinstance(event, GatewayFailure):
            self._fail(event, "Failed to get a situation report from the field.")
            return None

        self._commit(missions.add_mission_event(self._state, mission_id, event))
        return event

    @_surfaces_errors
    async def make_decision(
        self,
        event_id: str,
        option_id: str | None = None,
        custom_order: str | None = None,
    ) -> DecisionResult | None:
        """Resolve the current situation with one of its options or a free-text order."""
        event, mission = missions.check_decision(self._state, event_id)
        if option_id is not None:
            option = next((o for o in event.options if o.id == option_id), None)
            if option is None:
                raise NotFoundError("That option is not available.")
        elif custom_order and custom_order.strip():
            option = custom_order.strip()
        else:
            raise PreconditionError("Choose an option or give an order.")

        team = [o for o in self._state.officers if o.id in mission.assigned_officers]
        with self._loading():
            result = await self.gateway.resolve_decision(
                mission, event, option, team,
                len(self._state.events_for_mission(mission.id)),
            )
        if isinstance(result, GatewayFailure):
            self._fail(result, "Failed to resolve decision. Comms with the team are down.")
            return None

        self._commit(missions.make_decision(self._state, event_id, result, self.rng))

        won = any(m.id == mission.id for m in self._state.completed_missions)
        if won and self.rng.random() < SUSPECT_CAPTURE_CHANCE:
            self._spawn(self._capture_suspect(mission, self._epoch))
        return result

    async def _capture_suspect(self, mission: Mission, epoch: int) -> None:
        """Background: profile a suspect taken alive. Never fails the mission."""
        suspect = await self.gateway.generate_suspect(mission)
        if epoch != self._epoch:
            logger.info("Dropping suspect capture from a previous campaign")
            return
        if isinstance(suspect, GatewayFailure):
            logger.warning("Suspect capture skipped: %s", suspect)
            return
        self._commit(custody.capture_suspect(self._state, suspect))

    @_surfaces_errors
    async def trigger_nemesis_mission(self, nemesis_id: str) -> Mission | None:
        nemesis = missions.check_nemesis_at_large(self._state, nemesis_id)

        with self._loading():
            mission = await self.gateway.generate_nemesis_mission(
                nemesis, self._state.reputation, self._squad_size()
            )
        if isinstance(mission, GatewayFailure):
            self._fail(mission, f"Failed to track down {nemesis.name}.")
            return None

        self._commit(missions.receive_nemesis_mission(self._state, mission, self.rng))
        return mission

    # -------------------------------------------------------------------------
    # Shift rotation
    # -------------------------------------------------------------------------

    async def advance_day(self) -> bool:
        """
        Close the day. The batch transition itself is atomic; the delay only
        gives the presentation layer time to animate.
        """
        if self._is_advancing_day:
            return False

        epoch = self._epoch
        self._set_advancing(True)
        try:
            await asyncio.sleep(self.day_transition_delay)
            if epoch != self._epoch:
                return False
            self._commit(shift.advance_day(self._state))
        finally:
            self._set_advancing(False)

        await self._refresh_offers(epoch)
        return True

    async def _refresh_offers(self, epoch: int) -> None:
        """Best-effort: a fresh community event and maybe a random incident."""
        with self._loading():
            event = await self.gateway.generate_community_event(self._state.reputation)
            if isinstance(event, GatewayFailure):
                logger.info("No community event today: %s", event)
            elif epoch == self._epoch:
                self._commit(shift.add_community_event(self._state, event))

            if self._state.pending_random_event is not None:
                return
            if self.rng.random() >= RANDOM_EVENT_CHANCE:
                return
            incident = await self.gateway.generate_random_event(
                self._state.day,
                self._state.budget,
                self._state.reputation,
                [o.name for o in self._state.active_officers],
            )
            if isinstance(incident, GatewayFailure):
                logger.info("No random event today: %s", incident)
            elif epoch == self._epoch:
                self._commit(shift.set_random_event(self._state, incident))

    @_surfaces_errors
    async def generate_community_event(self) -> bool:
        with self._loading():
            event = await self.gateway.generate_community_event(self._state.reputation)
        if isinstance(event, GatewayFailure):
            self._fail(event, "Failed to generate community event")
            return False
        self._commit(shift.add_community_event(self._state, event))
        return True

    @_surfaces_errors
    def schedule_event(self, event_id: str, officer_ids: list[str]) -> None:
        self._commit(shift.schedule_event(self._state, event_id, officer_ids))

    @_surfaces_errors
    def cancel_event(self, event_id: str) -> None:
        self._commit(shift.cancel_event(self._state, event_id))

    @_surfaces_errors
    def host_morale_event(self, event_id: str) -> None:
        self._commit(shift.host_morale_event(self._state, event_id))

    @_surfaces_errors
    def resolve_random_event(self, choice_id: str | None = None) -> None:
        self._commit(shift.resolve_random_event(self._state, choice_id, self.rng))

    # -------------------------------------------------------------------------
    # Custody
    # -------------------------------------------------------------------------

    @_surfaces_errors
    async def interrogate_suspect(
        self,
        suspect_id: str,
        history: list[InterrogationMessage],
        message: str,
    ) -> str | None:
        """One exchange in the interrogation room. Returns the suspect's reply."""
        suspect = custody.check_open_case(self._state, suspect_id)

        with self._loading():
            reply = await self.gateway.interrogate_suspect(suspect, history, message)
        if isinstance(reply, GatewayFailure):
            self._fail(reply, "Interrogation failed.")
            return None

        self._commit(custody.mark_interrogated(self._state, suspect_id))
        return reply

    @_surfaces_errors
    async def resolve_interrogation(
        self,
        suspect_id: str,
        history: list[InterrogationMessage],
    ) -> InterrogationResult | None:
        suspect = custody.check_open_case(self._state, suspect_id)

        with self._loading():
            result = await self.gateway.resolve_interrogation(suspect, history, self._squad_size())
        if isinstance(result, GatewayFailure):
            self._fail(result, "Failed to conclude interrogation.")
            return None

        self._commit(custody.conclude_interrogation(self._state, suspect_id, result))
        return result

    @_surfaces_errors
    def charge_suspect(self, suspect_id: str) -> None:
        self._commit(custody.charge_suspect(self._state, suspect_id))

    @_surfaces_errors
    def release_suspect(self, suspect_id: str) -> None:
        self._commit(custody.release_suspect(self._state, suspect_id))

    @_surfaces_errors
    async def release_as_nemesis(self, suspect_id: str) -> Suspect | None:
        """Let a dangerous suspect walk, knowing they will be back."""
        suspect = custody.check_nemesis_release(self._state, suspect_id)

        with self._loading():
            nemesis = await self.gateway.generate_nemesis(suspect)
        if isinstance(nemesis, GatewayFailure):
            self._fail(nemesis, f"Failed to profile {suspect.name}.")
            return None

        self._commit(custody.release_as_nemesis(self._state, suspect_id, nemesis))
        return self._state.get_suspect(suspect_id)

    @_surfaces_errors
    async def process_trial(self, suspect_id: str) -> bool:
        suspect = custody.check_trial_ready(self._state, suspect_id)

        with self._loading():
            outcome = await self.gateway.generate_trial_outcome(suspect)
        if isinstance(outcome, GatewayFailure):
            self._fail(outcome, "Failed to process trial.")
            return False

        self._commit(custody.process_trial(self._state, suspect_id, outcome))
        return True

    @_surfaces_errors
    def recruit_ci(self, suspect_id: str) -> None:
        self._commit(custody.recruit_ci(self._state, suspect_id))

    @_surfaces_errors
    def archive_suspect(self, suspect_id: str) -> None:
        self._commit(custody.archive_suspect(self._state, suspect_id))

    @_surfaces_errors
    def analyze_evidence(self, evidence_id: str) -> None:
        self._commit(custody.analyze_evidence(self._state, evidence_id))
