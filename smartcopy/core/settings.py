"""
User settings snapshot and its live-updating holder.

Settings are persisted in the shared store so any surface can edit them.
Operations receive an immutable `Settings` snapshot; `LiveSettings` swaps the
snapshot whenever the store reports a change to one of the setting keys.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional
import logging

from smartcopy.config import (
    DEFAULT_TARGET_LANGUAGE,
    SETTING_ACTIVE,
    SETTING_DARK_MODE,
    SETTING_DBLCLICK_ACTION,
    SETTING_DBLCLICK_ENABLED,
    SETTING_GRANULARITY,
    SETTING_TARGET_LANGUAGE,
    SETTINGS_KEYS,
)
from smartcopy.core.events import EventBus, EventType
from smartcopy.core.models import Granularity, LookupAction

logger = logging.getLogger(__name__)


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    if isinstance(value, (int, float)):
        return bool(value)
    return default


@dataclass(frozen=True)
class Settings:
    """Immutable configuration snapshot."""
    granularity: Granularity = Granularity.SENTENCE
    active: bool = True
    dblclick_enabled: bool = True
    dblclick_action: LookupAction = LookupAction.DEFINITION
    target_lang: str = DEFAULT_TARGET_LANGUAGE
    dark_mode: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Settings":
        """Build a snapshot from stored values; invalid values fall back to defaults."""
        defaults = cls()
        try:
            action = LookupAction(str(data.get(SETTING_DBLCLICK_ACTION, defaults.dblclick_action.value)).lower())
        except ValueError:
            action = defaults.dblclick_action

        target = data.get(SETTING_TARGET_LANGUAGE)
        target = target.strip() if isinstance(target, str) else ""

        return cls(
            granularity=Granularity.parse(data.get(SETTING_GRANULARITY), defaults.granularity),
            active=_as_bool(data.get(SETTING_ACTIVE), defaults.active),
            dblclick_enabled=_as_bool(data.get(SETTING_DBLCLICK_ENABLED), defaults.dblclick_enabled),
            dblclick_action=action,
            target_lang=target or defaults.target_lang,
            dark_mode=_as_bool(data.get(SETTING_DARK_MODE), defaults.dark_mode),
        )

    def to_mapping(self) -> Dict[str, Any]:
        """Convert to the persisted key layout."""
        return {
            SETTING_GRANULARITY: self.granularity.value,
            SETTING_ACTIVE: self.active,
            SETTING_DBLCLICK_ENABLED: self.dblclick_enabled,
            SETTING_DBLCLICK_ACTION: self.dblclick_action.value,
            SETTING_TARGET_LANGUAGE: self.target_lang,
            SETTING_DARK_MODE: self.dark_mode,
        }

    def merged(self, updates: Mapping[str, Any]) -> "Settings":
        """Return a new snapshot with persisted-key updates applied."""
        data = self.to_mapping()
        data.update({k: v for k, v in updates.items() if k in SETTINGS_KEYS})
        return Settings.from_mapping(data)


class LiveSettings:
    """Holds the current Settings snapshot and keeps it in sync with the store."""

    def __init__(self, store, event_bus: Optional[EventBus] = None):
        """
        Args:
            store: KeyValueStore holding the settings keys
            event_bus: Optional bus receiving SETTINGS_CHANGED events
        """
        self.store = store
        self.event_bus = event_bus
        self._snapshot = Settings()
        self._listeners: List[Callable[[Settings], None]] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def current(self) -> Settings:
        return self._snapshot

    async def load(self) -> Settings:
        """Read the settings at startup and start following store changes."""
        stored = await self.store.get_many(SETTINGS_KEYS)
        self._replace(Settings.from_mapping(stored))
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._on_store_change)
        return self._snapshot

    async def update(self, **changes) -> Settings:
        """
        Persist new values given by persisted key name (e.g. copyMode="word").

        Unknown keys are ignored. The snapshot refreshes through the store
        notification, like an edit made by any other surface.
        """
        snapshot = self._snapshot.merged(changes)
        await self.store.set_many(snapshot.to_mapping())
        # Stores without notifications still leave us consistent
        if snapshot != self._snapshot:
            self._replace(snapshot)
        return self._snapshot

    def subscribe(self, listener: Callable[[Settings], None]):
        self._listeners.append(listener)

    def close(self):
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_store_change(self, changes: Dict[str, Any]):
        relevant = {key: new for key, (old, new) in changes.items() if key in SETTINGS_KEYS}
        if not relevant:
            return
        self._replace(self._snapshot.merged(relevant))

    def _replace(self, snapshot: Settings):
        if snapshot == self._snapshot:
            return
        self._snapshot = snapshot
        logger.debug(f"Settings changed: {snapshot}")
        if self.event_bus:
            self.event_bus.emit(EventType.SETTINGS_CHANGED, source="settings",
                                settings=snapshot.to_mapping())
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.exception(f"Settings listener failed: {e}")
