"""Custom exception hierarchy for nsaide.

All application exceptions inherit from :class:`NSaideError`, which carries
an optional ``provider_name`` so log lines can say which adapter (e.g.
``"nodeseek_user_info"``, ``"sqlite_kv_store"``) raised the failure.

    NSaideError  (base)
    +-- TransportError          (non-2xx response, network failure)
    +-- CacheError              (cache-internal fault, never shown to consumers)
    |   +-- CacheCorruptionError  (stored entry is not a valid CacheEntry)
    |   +-- CacheIndexError       (namespace index unreadable or unwritable)
    +-- ManifestError           (module manifest missing or malformed)
    +-- ModuleLoadError         (module payload fetch or plugin lookup failed)
    +-- ReadinessTimeoutError   (module system not ready before the deadline)
    +-- ConfigurationError      (invalid settings or namespace declarations)

Transport errors are retry-safe and are never cached.  Cache errors are
reported through :class:`~nsaide.models.cache.CacheResult` rather than
raised to callers of the coalescer.
"""


class NSaideError(Exception):
    """Base exception for all nsaide errors.

    Subclasses override ``default_message``; ``__str__`` prefixes the
    provider name in brackets, e.g.
    ``[nodeseek_user_info] HTTP 503 for /api/account/getInfo/42``.
    """

    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, provider_name: str | None = None) -> None:
        self._message = message or self.default_message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------

class TransportError(NSaideError):
    """Raised when an HTTP fetch fails or returns a non-success status.

    ``status_code`` is ``None`` when no response arrived at all.
    """

    default_message = "Remote request failed"

    def __init__(
        self,
        message: str | None = None,
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self.status_code = status_code


# ---------------------------------------------------------------------------
# Cache internals
# ---------------------------------------------------------------------------

class CacheError(NSaideError):
    """Raised inside the cache layer; surfaced only as a tagged result."""

    default_message = "Cache operation failed"


class CacheCorruptionError(CacheError):
    default_message = "Cached entry is corrupt"


class CacheIndexError(CacheError):
    default_message = "Cache index unavailable"


# ---------------------------------------------------------------------------
# Module system
# ---------------------------------------------------------------------------

class ManifestError(NSaideError):
    default_message = "Module manifest is unavailable or malformed"


class ModuleLoadError(NSaideError):
    """Raised when a manifest entry cannot be turned into a registered module."""

    default_message = "Module failed to load"

    def __init__(
        self,
        message: str | None = None,
        provider_name: str | None = None,
        module_id: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self.module_id = module_id


class ReadinessTimeoutError(NSaideError):
    default_message = "Timed out waiting for the module system"


class ConfigurationError(NSaideError):
    """Raised when configuration is invalid or missing at startup."""

    default_message = "Invalid or missing configuration"
