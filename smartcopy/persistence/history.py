"""
Bounded history log of extracted text, newest first.

Entries are keyed by `(text, timestamp)`. A translation arriving later is
matched back to its entry by text equality (the round trip carries no
request id): the first untranslated entry with the same text, in storage
order, receives it. Duplicate pending texts therefore resolve to the newest
one only.

The log is a read-modify-write over one store key with no isolation between
surfaces; concurrent writers can lose an update.
"""

from typing import Callable, List, Optional
import logging
import time

from smartcopy.config import HISTORY_KEY, HISTORY_LIMIT
from smartcopy.core.events import EventBus, EventType
from smartcopy.core.exceptions import CorrelationMiss
from smartcopy.core.models import HistoryEntry, TranslationResult
from .storage import KeyValueStore

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def correlate(entries: List[HistoryEntry], result: TranslationResult) -> HistoryEntry:
    """
    Find the entry a translation result belongs to.

    Raises:
        CorrelationMiss: No untranslated entry has the result's original text
    """
    for entry in entries:
        if entry.text == result.original and not entry.is_translated:
            return entry
    raise CorrelationMiss("No pending history entry for result", {'original': result.original[:40]})


class HistoryLog:
    """History log persisted under a single store key."""

    def __init__(
        self,
        store: KeyValueStore,
        limit: int = HISTORY_LIMIT,
        key: str = HISTORY_KEY,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], int] = _now_ms
    ):
        """
        Args:
            store: Shared key-value store
            limit: Maximum entries kept; the oldest are evicted
            key: Store key holding the entry list
            event_bus: Optional bus receiving HISTORY_CHANGED events
            clock: Epoch-milliseconds clock
        """
        self.store = store
        self.limit = limit
        self.key = key
        self.event_bus = event_bus
        self._clock = clock

    async def entries(self) -> List[HistoryEntry]:
        raw = await self.store.get(self.key, [])
        if not isinstance(raw, list):
            logger.warning(f"Ignoring malformed history value of type {type(raw).__name__}")
            return []
        return [HistoryEntry.from_dict(item) for item in raw if isinstance(item, dict)]

    async def _save(self, entries: List[HistoryEntry], action: str, **data):
        await self.store.set(self.key, [entry.to_dict() for entry in entries[:self.limit]])
        if self.event_bus:
            self.event_bus.emit(EventType.HISTORY_CHANGED, source="history", action=action, **data)

    async def add(self, text: str, mode: str, url: Optional[str] = None,
                  title: Optional[str] = None) -> HistoryEntry:
        """Prepend a new entry, evicting the oldest beyond the limit."""
        entries = await self.entries()
        timestamp = self._clock()
        if entries and timestamp <= entries[0].timestamp:
            # Keep timestamps unique so they stay usable as keys
            timestamp = entries[0].timestamp + 1

        entry = HistoryEntry(text=text, mode=mode, timestamp=timestamp, url=url, title=title)
        entries.insert(0, entry)
        if len(entries) > self.limit:
            logger.debug(f"History full, evicting {len(entries) - self.limit} oldest entries")
        await self._save(entries, "add", timestamp=timestamp)
        return entry

    async def get(self, timestamp: int) -> Optional[HistoryEntry]:
        for entry in await self.entries():
            if entry.timestamp == timestamp:
                return entry
        return None

    async def delete(self, timestamp: int) -> bool:
        entries = await self.entries()
        remaining = [e for e in entries if e.timestamp != timestamp]
        if len(remaining) == len(entries):
            return False
        await self._save(remaining, "delete", timestamp=timestamp)
        return True

    async def set_note(self, timestamp: int, note: str) -> Optional[HistoryEntry]:
        """Attach a note; a blank note removes it."""
        entries = await self.entries()
        for entry in entries:
            if entry.timestamp == timestamp:
                entry.note = (note or "").strip() or None
                await self._save(entries, "note", timestamp=timestamp)
                return entry
        return None

    async def set_translation(self, timestamp: int, translated: str) -> Optional[HistoryEntry]:
        """Store a translation for a specific entry, overwriting any previous one."""
        entries = await self.entries()
        for entry in entries:
            if entry.timestamp == timestamp:
                entry.translated = translated
                entry.translated_at = self._clock()
                await self._save(entries, "translate", timestamp=timestamp)
                return entry
        return None

    async def clear(self):
        await self._save([], "clear")

    async def apply_result(self, result: TranslationResult) -> Optional[HistoryEntry]:
        """
        Correlate a translation result into the log.

        Failed results are not recorded. A result with no pending match is
        skipped silently, which also makes repeated application a no-op.

        Returns:
            The updated entry, or None when nothing matched
        """
        if not result.ok:
            logger.debug(f"Not recording failed translation: {result.error}")
            return None

        entries = await self.entries()
        try:
            entry = correlate(entries, result)
        except CorrelationMiss as e:
            logger.debug(str(e))
            return None

        entry.translated = result.translated
        entry.translated_at = self._clock()
        await self._save(entries, "translated", timestamp=entry.timestamp)
        return entry
