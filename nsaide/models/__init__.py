"""Data models shared across nsaide."""

from nsaide.models.cache import (
    CacheEntry,
    CacheResult,
    CacheStats,
    CacheStatus,
    ReconcileReport,
)
from nsaide.models.module import (
    BootstrapReport,
    ModuleDescriptor,
    ModuleInfo,
    ModuleInitOutcome,
    ModuleManifest,
)

__all__ = [
    "BootstrapReport",
    "CacheEntry",
    "CacheResult",
    "CacheStats",
    "CacheStatus",
    "ModuleDescriptor",
    "ModuleInfo",
    "ModuleInitOutcome",
    "ModuleManifest",
    "ReconcileReport",
]
