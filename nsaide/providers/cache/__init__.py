"""Cache providers.

MemoryCache is the per-process tier (bounded, insertion-ordered).  TTLCache
keeps one JSON entry per key in the key-value store.  IndexedBoundedStore
layers a per-namespace ordered index over TTLCache to cap how many entries
a namespace may keep on disk.
"""

from nsaide.providers.cache.indexed_store import CacheNamespace, IndexedBoundedStore
from nsaide.providers.cache.memory_cache import MemoryCache
from nsaide.providers.cache.ttl_cache import TTLCache

__all__ = ["CacheNamespace", "IndexedBoundedStore", "MemoryCache", "TTLCache"]
