"""
Event bus for campaign session changes.

Provides decoupled communication between the session and whatever is
rendering it. Observers subscribe to events and react without the
session knowing who they are.

Usage:
    bus = session.bus
    bus.on(EventType.STATE_CHANGED, redraw)

    def redraw(event: SessionEvent):
        render(event.data["state"])
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Session events that can be published."""

    STATE_CHANGED = "state.changed"
    LOADING_CHANGED = "loading.changed"
    ADVANCING_DAY_CHANGED = "advancing_day.changed"
    ERROR_CHANGED = "error.changed"
    CAMPAIGN_SAVED = "campaign.saved"
    CAMPAIGN_LOADED = "campaign.loaded"


@dataclass
class SessionEvent:
    """
    Event payload for the event bus.

    Attributes:
        type: The event type (from EventType enum)
        data: Event-specific payload as dict
        day: In-game day when the event was emitted
        timestamp: When the event was emitted
    """

    type: EventType
    data: dict = field(default_factory=dict)
    day: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"[{self.type.value}] {self.data}"


EventHandler = Callable[[SessionEvent], None]


class EventBus:
    """
    Synchronous event bus.

    Listeners are called immediately on emit(). A failing listener is
    logged and skipped so one bad observer cannot break the others.
    """

    def __init__(self):
        self._listeners: dict[EventType, list[EventHandler]] = {}
        self._history: list[SessionEvent] = []
        self._history_limit = 100

    def on(self, event_type: EventType, handler: EventHandler) -> None:
        """Subscribe to an event type."""
        handlers = self._listeners.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)

    def off(self, event_type: EventType, handler: EventHandler) -> None:
        """Unsubscribe from an event type."""
        if handler in self._listeners.get(event_type, []):
            self._listeners[event_type].remove(handler)

    def emit(self, event_type: EventType, day: int = 0, **data) -> SessionEvent:
        """
        Emit an event to all subscribers.

        Returns:
            The emitted SessionEvent (for chaining/testing)
        """
        event = SessionEvent(type=event_type, data=data, day=day)

        self._history.append(event)
        if len(self._history) > self._history_limit:
            self._history = self._history[-self._history_limit :]

        for handler in list(self._listeners.get(event_type, [])):
            try:
                handler(event)
            except Exception:
                logger.exception("Error in handler for %s", event_type.value)

        return event

    def clear(self) -> None:
        """Clear all listeners. Useful for testing."""
        self._listeners.clear()

    def get_history(self, event_type: EventType | None = None) -> list[SessionEvent]:
        """Recent events, optionally filtered by type."""
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if e.type == event_type]

    def listener_count(self, event_type: EventType) -> int:
        return len(self._listeners.get(event_type, []))
