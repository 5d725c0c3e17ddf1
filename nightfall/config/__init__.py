"""Configuration loading for Nightfall.

Configuration is loaded from TOML files with environment variable overrides.

Usage:
    from nightfall.config import get_settings

    settings = get_settings()
    threshold = settings.router.min_score
"""

from functools import lru_cache

from nightfall.config.loader import load_config
from nightfall.config.settings import Settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, cached until ``get_settings.cache_clear()``."""
    return Settings.from_toml(load_config())


def reload_settings() -> Settings:
    """Drop the cached settings and read every layer again."""
    get_settings.cache_clear()
    return get_settings()


__all__ = ["Settings", "get_settings", "reload_settings"]
