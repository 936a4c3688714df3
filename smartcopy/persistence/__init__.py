"""
Persistence layer: shared key-value store and the history log built on it.
"""
from .storage import KeyValueStore, MemoryStore, SQLiteStore
from .history import HistoryLog, correlate

__all__ = ['KeyValueStore', 'MemoryStore', 'SQLiteStore', 'HistoryLog', 'correlate']
