"""
Common machinery for lyrics providers

Every provider shares the application's aiohttp ClientSession and turns
each lookup into a LyricsResult. Provider code signals failure by raising
RemixError subclasses; fetch() converts those into failed results, so
callers never see an exception from a provider.
"""

import asyncio
import json
from typing import Any, Dict, Optional, Tuple

import aiohttp

from ..utils.exceptions import ProviderUnavailable, RemixError
from ..utils.helpers import truncate_body
from ..utils.logger import get_logger
from .models import LyricsResult, SongQuery


class LyricsProvider:
    """
    Base class for lyrics providers

    Subclasses set name and implement _lookup(), which returns lyrics text
    (possibly blank) or None for "not found", and raises RemixError for
    failures.

    Attributes:
        name: Canonical provider identifier
        session: Shared aiohttp session, owned by the caller
        settings: Application settings
    """

    name = "base"

    def __init__(self, session: aiohttp.ClientSession, settings):
        self.session = session
        self.settings = settings
        self.logger = get_logger(f"karaoke_remix.lyrics.{self.name}")

    async def fetch(self, song: SongQuery) -> LyricsResult:
        """
        Look up lyrics for a normalized song

        Args:
            song: Cleaned title and artist

        Returns:
            LyricsResult in exactly one of the found, not-found or failed states
        """
        try:
            text = await self._lookup(song)
        except RemixError as e:
            self.logger.error(f"{self.name} lookup failed for '{song.title}' by {song.artist}: {e}")
            return LyricsResult.failed(e, source=self.name)

        if text is None:
            self.logger.info(f"{self.name} has no lyrics for '{song.title}' by {song.artist}")
            return LyricsResult.not_found(source=self.name)

        result = LyricsResult.found(text, source=self.name)
        if result.is_not_found:
            self.logger.info(f"{self.name} returned blank lyrics for '{song.title}' by {song.artist}")
        return result

    async def _lookup(self, song: SongQuery) -> Optional[str]:
        raise NotImplementedError

    async def _get(
        self,
        url: str,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Tuple[int, str]:
        """
        Issue a single GET and read the whole body

        Args:
            url: Absolute URL
            params: Query parameters
            headers: Extra request headers

        Returns:
            Tuple of (status, body text)

        Raises:
            ProviderUnavailable: On connection errors, timeouts or an
                undecodable body
        """
        try:
            async with self.session.get(url, params=params, headers=headers) as response:
                body = await response.text()
                self.logger.debug(f"GET {url} -> {response.status}")
                return response.status, body
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderUnavailable(
                f"Could not reach {self.name}",
                {'provider': self.name, 'error': str(e) or type(e).__name__}
            )
        except UnicodeDecodeError as e:
            raise ProviderUnavailable(
                f"Undecodable response from {self.name}",
                {'provider': self.name, 'body': truncate_body(e.object)}
            )

    def _parse_json(self, body: str) -> Any:
        """
        Decode a JSON response body

        Raises:
            ProviderUnavailable: If the body is not JSON
        """
        try:
            return json.loads(body)
        except ValueError:
            raise ProviderUnavailable(
                f"Malformed response from {self.name}",
                {'provider': self.name, 'body': truncate_body(body)}
            )
