"""
Key-value stores shared by every surface.

Settings and the history log live here. Writers notify subscribers with a
`{key: (old_value, new_value)}` mapping so other surfaces can re-read.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Tuple
import copy
import json
import logging
import os
import sqlite3
import threading

logger = logging.getLogger(__name__)

Changes = Dict[str, Tuple[Any, Any]]
ChangeListener = Callable[[Changes], None]

_MISSING = object()


class KeyValueStore(ABC):
    """Async get/set store with change subscriptions."""

    def __init__(self):
        self._listeners: List[ChangeListener] = []

    @abstractmethod
    async def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    async def get_many(self, keys) -> Dict[str, Any]:
        """Return the stored values for the keys that exist."""
        pass

    async def set(self, key: str, value: Any) -> None:
        await self.set_many({key: value})

    @abstractmethod
    async def set_many(self, values: Mapping[str, Any]) -> None:
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        pass

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            Function removing the listener again
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, changes: Changes):
        if not changes:
            return
        for listener in list(self._listeners):
            try:
                listener(changes)
            except Exception as e:
                logger.exception(f"Store listener failed: {e}")


class MemoryStore(KeyValueStore):
    """Dictionary-backed store; values are deep-copied in and out."""

    def __init__(self, initial: Mapping[str, Any] = None):
        super().__init__()
        self._data: Dict[str, Any] = copy.deepcopy(dict(initial or {}))

    async def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    async def get_many(self, keys) -> Dict[str, Any]:
        return {k: copy.deepcopy(self._data[k]) for k in keys if k in self._data}

    async def set_many(self, values: Mapping[str, Any]) -> None:
        changes: Changes = {}
        for key, value in values.items():
            old = self._data.get(key)
            self._data[key] = copy.deepcopy(value)
            if old != value:
                changes[key] = (old, copy.deepcopy(value))
        self._notify(changes)

    async def remove(self, key: str) -> None:
        if key in self._data:
            old = self._data.pop(key)
            self._notify({key: (old, None)})


class SQLiteStore(KeyValueStore):
    """
    SQLite-backed store with JSON values.
    Thread-safe for concurrent access.
    """

    def __init__(self, db_path: str = "data/smartcopy.db"):
        """
        Args:
            db_path: Path to SQLite database file
        """
        super().__init__()
        self.db_path = db_path
        self._local = threading.local()
        self._lock = threading.RLock()

        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        self._initialize_schema()

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if not hasattr(self._local, 'connection') or self._local.connection is None:
            self._local.connection = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
                timeout=30.0
            )
            self._local.connection.row_factory = sqlite3.Row
        return self._local.connection

    def _initialize_schema(self):
        """Create the key-value table if it doesn't exist."""
        with self._lock:
            conn = self._get_connection()
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value JSON NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()

    def _read(self, key: str) -> Any:
        cursor = self._get_connection().execute("SELECT value FROM kv WHERE key = ?", (key,))
        row = cursor.fetchone()
        return json.loads(row['value']) if row else _MISSING

    async def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            value = self._read(key)
        return default if value is _MISSING else value

    async def get_many(self, keys) -> Dict[str, Any]:
        result = {}
        with self._lock:
            for key in keys:
                value = self._read(key)
                if value is not _MISSING:
                    result[key] = value
        return result

    async def set_many(self, values: Mapping[str, Any]) -> None:
        changes: Changes = {}
        with self._lock:
            conn = self._get_connection()
            for key, value in values.items():
                old = self._read(key)
                old = None if old is _MISSING else old
                conn.execute("""
                    INSERT INTO kv (key, value, updated_at)
                    VALUES (?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = CURRENT_TIMESTAMP
                """, (key, json.dumps(value, ensure_ascii=False)))
                if old != value:
                    changes[key] = (old, value)
            conn.commit()
        self._notify(changes)

    async def remove(self, key: str) -> None:
        with self._lock:
            old = self._read(key)
            if old is _MISSING:
                return
            conn = self._get_connection()
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()
        self._notify({key: (old, None)})

    def close(self):
        """Close database connection."""
        if hasattr(self._local, 'connection') and self._local.connection:
            self._local.connection.close()
            self._local.connection = None
