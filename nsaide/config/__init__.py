"""Configuration module - exports Settings and load_config."""

from nsaide.config.loader import load_config
from nsaide.config.settings import Settings

__all__ = ["Settings", "load_config"]
