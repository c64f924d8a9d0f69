# karaoke_remix/lyrics/__init__.py
"""
Lyrics retrieval package

Key components:
- ProviderRegistry: resolves a provider identifier and runs the lookup
- LyricsOvhProvider, FlyLyricsProvider, AudDProvider, GeniusProvider
- LyricsCache: process-local store of successful lookups
- LyricsResult: found / not found / failed outcome of one lookup
"""

from .models import LyricsSource, SongQuery, LyricsResult
from .cache import LyricsCache
from .base import LyricsProvider
from .lyrics_ovh import LyricsOvhProvider
from .flylyrics import FlyLyricsProvider
from .audd import AudDProvider
from .genius import GeniusProvider, extract_lyrics
from .registry import ProviderRegistry, PROVIDER_CLASSES

__all__ = [
    'LyricsSource',
    'SongQuery',
    'LyricsResult',
    'LyricsCache',
    'LyricsProvider',
    'LyricsOvhProvider',
    'FlyLyricsProvider',
    'AudDProvider',
    'GeniusProvider',
    'extract_lyrics',
    'ProviderRegistry',
    'PROVIDER_CLASSES',
]
