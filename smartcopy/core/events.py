"""
In-process notifications for presentation surfaces.

The dispatcher, transport, history log, settings holder and session publish
events here; the sidebar, toasts, the CLI progress printer and the WebSocket
bridge subscribe without the core knowing about any of them.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, DefaultDict, Dict, List
import logging
import time

logger = logging.getLogger(__name__)


class EventType(Enum):
    # Chunked translation
    TRANSLATION_STARTED = "translation_started"
    CHUNK_TRANSLATED = "chunk_translated"
    CHUNK_FAILED = "chunk_failed"
    TRANSLATION_COMPLETED = "translation_completed"

    TRANSPORT_RETRY = "transport_retry"

    # Shared store
    HISTORY_CHANGED = "history_changed"
    SETTINGS_CHANGED = "settings_changed"

    TOAST_SHOWN = "toast_shown"
    TOAST_DISMISSED = "toast_dismissed"


@dataclass
class Event:
    """A published notification; `source` names the publishing component."""
    type: EventType
    data: Dict[str, Any] = field(default_factory=dict)
    source: str = "unknown"
    timestamp: float = field(default_factory=time.time)


Listener = Callable[[Event], None]


class EventBus:
    """Synchronous publish/subscribe keyed by EventType.

    Listeners run in subscription order on the publisher's thread. With
    recording enabled every published event is also kept for inspection.
    """

    def __init__(self):
        self._listeners: DefaultDict[EventType, List[Listener]] = defaultdict(list)
        self._recorded: List[Event] = []
        self._recording = False

    def subscribe(self, event_type: EventType, callback: Listener) -> None:
        self._listeners[event_type].append(callback)

    def unsubscribe(self, event_type: EventType, callback: Listener) -> None:
        listeners = self._listeners.get(event_type, [])
        if callback in listeners:
            listeners.remove(callback)

    def publish(self, event: Event) -> None:
        """Deliver an event; a listener that raises is logged and skipped."""
        if self._recording:
            self._recorded.append(event)
        for listener in tuple(self._listeners.get(event.type, ())):
            try:
                listener(event)
            except Exception as e:
                logger.exception(f"{event.type.value} listener failed: {e}")

    def emit(self, event_type: EventType, source: str = "unknown", **data) -> Event:
        event = Event(type=event_type, data=data, source=source)
        self.publish(event)
        return event

    def enable_history(self) -> None:
        """Start recording published events (tests and diagnostics)."""
        self._recording = True

    def get_events_by_type(self, event_type: EventType) -> List[Event]:
        return [event for event in self._recorded if event.type is event_type]
