"""
lyrics.ovh provider

Free, unauthenticated API: GET {base}/v1/{artist}/{title} returns
{"lyrics": "..."} or a non-2xx status when the song is unknown.
"""

from typing import Optional
from urllib.parse import quote

from ..utils.helpers import is_success_status, truncate_body
from .base import LyricsProvider
from .models import LyricsSource, SongQuery


class LyricsOvhProvider(LyricsProvider):
    """lyrics.ovh lookups; a non-2xx answer means the song is unknown"""

    name = LyricsSource.LYRICS_OVH.value

    def build_url(self, song: SongQuery) -> str:
        base = self.settings.lyrics.lyrics_ovh_url.rstrip('/')
        artist = quote(song.artist, safe='')
        title = quote(song.title, safe='')
        return f"{base}/v1/{artist}/{title}"

    async def _lookup(self, song: SongQuery) -> Optional[str]:
        status, body = await self._get(self.build_url(song))

        if not is_success_status(status):
            self.logger.warning(f"lyrics.ovh answered {status}: {truncate_body(body)}")
            return None

        data = self._parse_json(body)
        lyrics = data.get('lyrics') if isinstance(data, dict) else None
        return lyrics if isinstance(lyrics, str) else None
