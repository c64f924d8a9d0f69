"""
Data models shared by the lyrics providers and the rewrite pipeline

A provider lookup has three possible outcomes: lyrics were found, the
provider answered but has no lyrics for the song, or the provider could not
be used at all (network failure, malformed response, missing credential).
LyricsResult keeps the last two apart so the HTTP layer can answer 404 for
the first and 500 for the second.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..utils.exceptions import RemixError


class LyricsSource(Enum):
    """
    Enumeration of supported lyrics providers

    Values are the canonical identifiers used in configuration, in cache
    keys and in the request body's "provider" field.
    """
    LYRICS_OVH = "lyrics_ovh"
    FLYLYRICS = "flylyrics"
    AUDD = "audd"
    GENIUS = "genius"

    @classmethod
    def from_request(cls, value: Optional[str]) -> Optional['LyricsSource']:
        """
        Resolve a client-supplied provider identifier

        Matching is case-insensitive after trimming, and the dotted
        spelling "lyrics.ovh" is accepted for lyrics_ovh.

        Args:
            value: Identifier as sent by the client

        Returns:
            Matching LyricsSource, or None for unknown identifiers
        """
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        key = PROVIDER_ALIASES.get(key, key)
        for source in cls:
            if source.value == key:
                return source
        return None


PROVIDER_ALIASES = {
    "lyrics.ovh": LyricsSource.LYRICS_OVH.value,
}


@dataclass(frozen=True)
class SongQuery:
    """
    Normalized song identity used for lookups, cache keys and prompts

    Attributes:
        title: Cleaned title
        artist: Cleaned artist
    """
    title: str
    artist: str

    def cache_key(self, provider: str) -> str:
        """Readable identity of this song under a provider, used in log messages"""
        return f"{provider}::{self.artist}::{self.title}"


@dataclass(frozen=True)
class LyricsResult:
    """
    Outcome of a single provider lookup

    Exactly one of three states:
    - found: text holds non-empty lyrics
    - not found: text and error are both None
    - failed: error holds the RemixError describing the failure

    Use the found(), not_found() and failed() constructors rather than
    building instances directly.
    """
    text: Optional[str] = None
    error: Optional[RemixError] = None
    source: Optional[str] = None

    @classmethod
    def found(cls, text: str, source: Optional[str] = None) -> 'LyricsResult':
        """
        Build a found result, downgrading blank text to not-found

        Args:
            text: Lyrics text as returned by the provider
            source: Provider identifier

        Returns:
            Found result with trimmed text, or a not-found result
        """
        if not isinstance(text, str) or not text.strip():
            return cls(source=source)
        return cls(text=text.strip(), source=source)

    @classmethod
    def not_found(cls, source: Optional[str] = None) -> 'LyricsResult':
        return cls(source=source)

    @classmethod
    def failed(cls, error: RemixError, source: Optional[str] = None) -> 'LyricsResult':
        return cls(error=error, source=source)

    @property
    def is_found(self) -> bool:
        return self.text is not None

    @property
    def is_not_found(self) -> bool:
        return self.text is None and self.error is None

    @property
    def is_error(self) -> bool:
        return self.error is not None
