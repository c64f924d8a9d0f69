"""
Provider registry

Maps canonical provider identifiers to provider instances for one
deployment. Only providers listed in lyrics.enabled_providers are built; a
request naming any other provider is answered as "not found" without an
upstream call.
"""

from typing import Dict, List, Optional, Type

import aiohttp

from ..utils.logger import get_logger
from .audd import AudDProvider
from .base import LyricsProvider
from .flylyrics import FlyLyricsProvider
from .genius import GeniusProvider
from .lyrics_ovh import LyricsOvhProvider
from .models import LyricsResult, LyricsSource, SongQuery


PROVIDER_CLASSES: Dict[LyricsSource, Type[LyricsProvider]] = {
    LyricsSource.LYRICS_OVH: LyricsOvhProvider,
    LyricsSource.FLYLYRICS: FlyLyricsProvider,
    LyricsSource.AUDD: AudDProvider,
    LyricsSource.GENIUS: GeniusProvider,
}


class ProviderRegistry:
    """
    Enabled lyrics providers for one application

    Example:
        registry = ProviderRegistry(session, settings)
        result = await registry.fetch("lyrics.ovh", SongQuery("Yesterday", "The Beatles"))
    """

    def __init__(self, session: aiohttp.ClientSession, settings):
        self.settings = settings
        self.logger = get_logger(__name__)
        self._providers: Dict[LyricsSource, LyricsProvider] = {}

        for provider_id in settings.lyrics.enabled_providers:
            source = LyricsSource.from_request(provider_id)
            if source is None:
                self.logger.warning(f"Ignoring unknown lyrics provider in configuration: {provider_id}")
                continue
            self._providers[source] = PROVIDER_CLASSES[source](session, settings)

    @property
    def enabled(self) -> List[str]:
        return [source.value for source in self._providers]

    def get(self, provider_id: Optional[str]) -> Optional[LyricsProvider]:
        """
        Resolve a client-supplied identifier to an enabled provider

        Returns:
            The provider, or None for unknown or disabled identifiers
        """
        source = LyricsSource.from_request(provider_id)
        if source is None:
            return None
        return self._providers.get(source)

    async def fetch(self, provider_id: Optional[str], song: SongQuery) -> LyricsResult:
        """
        Fetch lyrics through the named provider

        Unknown and disabled providers yield a not-found result.
        """
        provider = self.get(provider_id)
        if provider is None:
            self.logger.warning(f"Lyrics provider not available: {provider_id!r}")
            return LyricsResult.not_found(source=provider_id)
        return await provider.fetch(song)
