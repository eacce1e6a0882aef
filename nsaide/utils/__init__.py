"""Utility modules for nsaide.

- **errors** -- exception hierarchy rooted at NSaideError.
- **concurrency** -- ``settle_all`` failure-isolating gather and the
  one-shot ``ReadinessSignal``.
- **logging** -- structlog setup (console in development, JSON in production).
- **clock** -- epoch-millisecond clock used for cache entry timestamps.
"""

from nsaide.utils.clock import Clock, epoch_ms
from nsaide.utils.concurrency import ReadinessSignal, settle_all
from nsaide.utils.errors import (
    CacheCorruptionError,
    CacheError,
    CacheIndexError,
    ConfigurationError,
    ManifestError,
    ModuleLoadError,
    NSaideError,
    ReadinessTimeoutError,
    TransportError,
)
from nsaide.utils.logging import configure_logging, get_logger

__all__ = [
    "CacheCorruptionError",
    "CacheError",
    "CacheIndexError",
    "Clock",
    "ConfigurationError",
    "ManifestError",
    "ModuleLoadError",
    "NSaideError",
    "ReadinessSignal",
    "ReadinessTimeoutError",
    "TransportError",
    "configure_logging",
    "epoch_ms",
    "get_logger",
    "settle_all",
]
