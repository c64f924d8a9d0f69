"""
Configuration package for karaoke-remix

Settings are loaded from YAML files, a .env file and environment variables,
in that order of increasing precedence.

    from karaoke_remix.config import get_settings

    settings = get_settings()
"""

from .settings import (
    get_settings,
    reload_settings,
    Settings,
    ALLOWED_MODELS,
    DEFAULT_MODEL,
    PROVIDER_IDS,
)

__all__ = [
    'get_settings',
    'reload_settings',
    'Settings',
    'ALLOWED_MODELS',
    'DEFAULT_MODEL',
    'PROVIDER_IDS',
]
