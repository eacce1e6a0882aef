"""Key-value store providers.

MemoryKeyValueStore keeps everything in a dict (tests, throwaway runs);
SQLiteKeyValueStore persists to a local database file across runs.
"""

from nsaide.providers.kv_store.memory_kv_store import MemoryKeyValueStore
from nsaide.providers.kv_store.sqlite_kv_store import SQLiteKeyValueStore

__all__ = ["MemoryKeyValueStore", "SQLiteKeyValueStore"]
