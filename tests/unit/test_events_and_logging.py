"""
Unit tests for the event bus and the unified logger callback.
"""

from smartcopy.core.events import EventBus, EventType
from smartcopy.utils.unified_logger import LogLevel, UnifiedLogger


def test_subscribers_receive_emitted_events():
    bus = EventBus()
    received = []
    bus.subscribe(EventType.HISTORY_CHANGED, received.append)
    bus.emit(EventType.HISTORY_CHANGED, source="history", action="add")
    bus.emit(EventType.SETTINGS_CHANGED, source="settings")
    assert [event.data["action"] for event in received] == ["add"]


def test_failing_listener_does_not_stop_others():
    bus = EventBus()
    received = []

    def broken(event):
        raise RuntimeError("listener bug")

    bus.subscribe(EventType.TOAST_SHOWN, broken)
    bus.subscribe(EventType.TOAST_SHOWN, received.append)
    bus.emit(EventType.TOAST_SHOWN, message="hi")
    assert len(received) == 1


def test_unsubscribe():
    bus = EventBus()
    received = []
    bus.subscribe(EventType.TOAST_SHOWN, received.append)
    bus.unsubscribe(EventType.TOAST_SHOWN, received.append)
    bus.emit(EventType.TOAST_SHOWN)
    assert received == []


def test_legacy_callback_maps_levels():
    entries = []
    logger = UnifiedLogger(console_output=False, min_level=LogLevel.INFO, web_callback=entries.append)
    callback = logger.create_legacy_callback()
    callback("warning", "chunk 2 failed")
    callback("debug", "hidden below min level")
    callback("something-else", "defaults to info")
    assert [(e['level'], e['message']) for e in entries] == [
        ("WARNING", "chunk 2 failed"),
        ("INFO", "defaults to info"),
    ]
