"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
#   1. config/config.yaml  - static defaults checked into the repo
#   2. .env file           - local overrides (not committed)
#   3. Environment vars    - NSAIDE_* at deploy time
#
# load_config() reads the YAML file first, then deep-merges the values
# resolved by Settings (layers 2 and 3) on top.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from nsaide.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  A missing file yields
              the Settings-derived values alone.
        settings: Pre-built settings; a fresh ``Settings()`` is read when
                  omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "remote": {
            "config_url": settings.config_url,
            "http_timeout_seconds": settings.http_timeout_seconds,
        },
        "cache": {
            "resources": {
                "ttl_seconds": settings.resource_cache_ttl_seconds,
                "module_key_prefix": settings.module_cache_key_prefix,
                "config_key": settings.config_cache_key,
            },
            "user_data": {
                "ttl_seconds": settings.user_cache_ttl_seconds,
                "max_memory_entries": settings.user_cache_max_memory_entries,
                "max_storage_entries": settings.user_cache_max_storage_entries,
                "key_prefix": settings.user_cache_storage_key,
                "index_key": settings.user_cache_index_key,
            },
        },
        "kv_store": {
            "backend": settings.kv_backend,
            "db_path": settings.kv_db_path,
        },
        "modules": {
            "readiness_timeout_seconds": settings.readiness_timeout_seconds,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
