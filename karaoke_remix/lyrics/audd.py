"""
AudD lyrics provider

Uses the findLyrics endpoint, which needs an API token:

    GET {base}/findLyrics/?q={artist} {title}&api_token=...

A successful answer looks like {"status": "success", "result": [{"lyrics": ...}]};
an empty result list means the song is unknown. {"status": "error"} is an
upstream failure (bad token, quota exhausted).
"""

from typing import Optional

from ..utils.exceptions import ConfigurationError, ProviderUnavailable
from ..utils.helpers import is_success_status, truncate_body
from .base import LyricsProvider
from .models import LyricsSource, SongQuery


class AudDProvider(LyricsProvider):
    """AudD findLyrics lookups; the first result wins"""

    name = LyricsSource.AUDD.value

    async def _lookup(self, song: SongQuery) -> Optional[str]:
        token = self.settings.lyrics.audd_api_token
        if not token:
            raise ConfigurationError(
                "AudD API token is not configured (set AUDD_API_TOKEN)",
                {'provider': self.name, 'missing': 'AUDD_API_TOKEN'}
            )

        url = f"{self.settings.lyrics.audd_url.rstrip('/')}/findLyrics/"
        status, body = await self._get(url, params={'q': f"{song.artist} {song.title}", 'api_token': token})

        if not is_success_status(status):
            raise ProviderUnavailable(
                f"AudD answered {status}",
                {'provider': self.name, 'body': truncate_body(body)}
            )

        data = self._parse_json(body)
        if not isinstance(data, dict):
            raise ProviderUnavailable("Unexpected response from AudD", {'body': truncate_body(body)})

        if data.get('status') == 'error':
            error = data.get('error') or {}
            message = error.get('error_message') if isinstance(error, dict) else None
            raise ProviderUnavailable(f"AudD error: {message or 'unknown'}", {'provider': self.name})

        results = data.get('result')
        if not isinstance(results, list) or not results:
            return None

        first = results[0]
        lyrics = first.get('lyrics') if isinstance(first, dict) else None
        return lyrics if isinstance(lyrics, str) else None
