"""
In-memory lyrics cache

Maps (provider, artist, title), using cleaned values, to lyrics text.
Entries are only ever written after a successful lookup with non-empty
text, so a provider failure or a miss never poisons later requests. The
cache lives as long as the process; there is no eviction and no expiry.
"""

from typing import Dict, Optional, Tuple

from ..utils.logger import get_logger
from .models import SongQuery


class LyricsCache:
    """
    Process-local lyrics store shared by all requests

    The server creates one instance per application and hands it to the
    pipeline; tests create a fresh one per case.
    """

    def __init__(self):
        self._entries: Dict[Tuple[str, str, str], str] = {}
        self.hits = 0
        self.misses = 0
        self.logger = get_logger(__name__)

    @staticmethod
    def _key(provider: str, song: SongQuery) -> Tuple[str, str, str]:
        return (provider, song.artist, song.title)

    def get(self, provider: str, song: SongQuery) -> Optional[str]:
        """
        Look up cached lyrics

        Args:
            provider: Canonical provider identifier
            song: Normalized song identity

        Returns:
            Cached lyrics text or None
        """
        text = self._entries.get(self._key(provider, song))
        if text is None:
            self.misses += 1
        else:
            self.hits += 1
        return text

    def put(self, provider: str, song: SongQuery, text: str) -> bool:
        """
        Store lyrics for a song

        Blank text is refused so that a miss can never be cached.

        Returns:
            True if the entry was stored
        """
        if not isinstance(text, str) or not text.strip():
            self.logger.debug(f"Refusing to cache empty lyrics for {song.cache_key(provider)}")
            return False
        self._entries[self._key(provider, song)] = text
        self.logger.debug(f"Cached lyrics for {song.cache_key(provider)}")
        return True

    def summary(self) -> str:
        return f"{len(self)} entries ({self.hits} hits, {self.misses} misses)"

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)
