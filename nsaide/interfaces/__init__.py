"""Public interface definitions for external collaborators.

Business logic depends only on these abstract base classes; concrete
adapters live in ``nsaide/providers/`` and are wired together in
``nsaide/main.py``.

    Interface            →  Concrete implementations
    ─────────────────────────────────────────────────────────────
    IKeyValueStore       →  MemoryKeyValueStore, SQLiteKeyValueStore
    ICacheProvider       →  MemoryCache, TTLCache
    IResourceFetcher     →  HttpResourceFetcher
    IUserInfoProvider    →  NodeSeekUserInfoProvider
    IFeatureModule       →  UserDataService
"""

from nsaide.interfaces.cache_provider import ICacheProvider
from nsaide.interfaces.feature_module import IFeatureModule
from nsaide.interfaces.kv_store import IKeyValueStore
from nsaide.interfaces.resource_fetcher import IResourceFetcher
from nsaide.interfaces.user_info_provider import IUserInfoProvider

__all__ = [
    "ICacheProvider",
    "IFeatureModule",
    "IKeyValueStore",
    "IResourceFetcher",
    "IUserInfoProvider",
]
