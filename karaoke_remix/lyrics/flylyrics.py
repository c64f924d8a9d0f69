"""
FlyLyrics provider

GET {base}?title=..&artist=.. returning {"lyrics": "..."}.
"""

from typing import Optional

from ..utils.helpers import is_success_status, truncate_body
from .base import LyricsProvider
from .models import LyricsSource, SongQuery


class FlyLyricsProvider(LyricsProvider):
    name = LyricsSource.FLYLYRICS.value

    async def _lookup(self, song: SongQuery) -> Optional[str]:
        status, body = await self._get(
            self.settings.lyrics.flylyrics_url,
            params={'title': song.title, 'artist': song.artist}
        )

        if not is_success_status(status):
            self.logger.warning(f"FlyLyrics answered {status}: {truncate_body(body)}")
            return None

        data = self._parse_json(body)
        lyrics = data.get('lyrics') if isinstance(data, dict) else None
        return lyrics if isinstance(lyrics, str) else None
