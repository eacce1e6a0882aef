"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Values are read from (highest priority first):
#
#   1. Environment variables, prefixed with ``NSAIDE_``
#      e.g. NSAIDE_USER_CACHE_MAX_STORAGE_ENTRIES=1000
#   2. A ``.env`` file in the working directory
#   3. The defaults below
#
# ``APP_ENV`` and ``LOG_LEVEL`` are shared with the logging setup and are
# read without the prefix.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """nsaide runtime settings."""

    model_config = SettingsConfigDict(
        env_prefix="NSAIDE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # === Remote resources ===
    config_url: str = (
        "https://raw.githubusercontent.com/dengshu2/NSaide/main/modules/config.json"
    )
    forum_base_url: str = "https://www.nodeseek.com"
    # Cookie header sent with user-info lookups (the forum API needs a session).
    forum_session_cookie: str = ""
    http_timeout_seconds: float = 30.0

    # === Resource cache (manifest + module payloads) ===
    resource_cache_ttl_seconds: int = 30 * 60
    module_cache_key_prefix: str = "ns_module_cache_"
    config_cache_key: str = "ns_config_cache"

    # === User data cache ===
    user_cache_ttl_seconds: int = 30 * 60
    user_cache_max_memory_entries: int = 200
    user_cache_max_storage_entries: int = 500
    user_cache_storage_key: str = "ns_user_data_cache"
    user_cache_index_key: str = "ns_user_data_cache_index"

    # === Key-value store ===
    # "sqlite" persists across runs; "memory" is process-local.
    kv_backend: str = "sqlite"
    kv_db_path: str = "data/nsaide_kv.db"

    # === Module system ===
    readiness_timeout_seconds: float = 5.0

    # === Application ===
    app_env: str = Field(
        default="development",
        validation_alias=AliasChoices("APP_ENV", "NSAIDE_APP_ENV"),
    )
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "NSAIDE_LOG_LEVEL"),
    )

    def user_info_url(self, user_id: str) -> str:
        """Return the forum API URL for one user's profile."""
        return f"{self.forum_base_url.rstrip('/')}/api/account/getInfo/{user_id}"
