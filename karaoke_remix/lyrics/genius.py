"""
Genius lyrics provider

Genius does not serve lyrics through its API, so a lookup takes two steps:

1. Search the API (Bearer token) for "{title} {artist}" and take the path of
   the first hit.
2. Fetch the public song page and scrape the lyrics out of the HTML.

The page markup has changed over the years. The legacy layout keeps the
lyrics in a single ".lyrics" element; the current layout splits them over
several [data-lyrics-container="true"] blocks with <br> line breaks. Both
are handled, legacy first.

Scraping is fragile by nature: a layout change shows up here as "not found",
never as a crash.
"""

from typing import List, Optional

from bs4 import BeautifulSoup

from ..utils.exceptions import ConfigurationError, ProviderUnavailable
from ..utils.helpers import is_success_status, truncate_body
from .base import LyricsProvider
from .models import LyricsSource, SongQuery


LEGACY_SELECTOR = '.lyrics'
CONTAINER_SELECTOR = '[data-lyrics-container="true"]'


def extract_lyrics(html: str) -> str:
    """
    Pull lyrics text out of a Genius song page

    Args:
        html: Song page markup

    Returns:
        Lyrics text, empty when neither layout matches
    """
    soup = BeautifulSoup(html, 'html.parser')

    for br in soup.find_all('br'):
        br.replace_with('\n')

    legacy = soup.select(LEGACY_SELECTOR)
    text = ''.join(element.get_text() for element in legacy).strip()
    if text:
        return text

    containers = soup.select(CONTAINER_SELECTOR)
    blocks: List[str] = [element.get_text().strip() for element in containers]
    return '\n'.join(block for block in blocks if block).strip()


class GeniusProvider(LyricsProvider):
    """
    Genius search plus page scrape

    Requires GENIUS_ACCESS_TOKEN. Search errors and page errors are
    provider failures; an empty hit list or a page without lyrics is
    "not found".
    """

    name = LyricsSource.GENIUS.value

    async def search_path(self, song: SongQuery) -> Optional[str]:
        """
        Find the song page path of the best search hit

        Returns:
            Path like "/Artist-title-lyrics", or None when nothing matched
        """
        token = self.settings.lyrics.genius_access_token
        if not token:
            raise ConfigurationError(
                "Genius access token is not configured (set GENIUS_ACCESS_TOKEN)",
                {'provider': self.name, 'missing': 'GENIUS_ACCESS_TOKEN'}
            )

        url = f"{self.settings.lyrics.genius_api_url.rstrip('/')}/search"
        status, body = await self._get(
            url,
            params={'q': f"{song.title} {song.artist}"},
            headers={'Authorization': f"Bearer {token}"}
        )
        if not is_success_status(status):
            raise ProviderUnavailable(
                f"Genius search answered {status}",
                {'provider': self.name, 'body': truncate_body(body)}
            )

        data = self._parse_json(body)
        try:
            hits = data['response']['hits']
        except (KeyError, TypeError):
            raise ProviderUnavailable("Unexpected Genius search response", {'body': truncate_body(body)})

        if not isinstance(hits, list) or not hits:
            return None

        first = hits[0]
        result = first.get('result') if isinstance(first, dict) else None
        path = result.get('path') if isinstance(result, dict) else None
        return path if isinstance(path, str) and path else None

    async def _lookup(self, song: SongQuery) -> Optional[str]:
        path = await self.search_path(song)
        if path is None:
            return None

        page_url = f"{self.settings.lyrics.genius_web_url.rstrip('/')}{path}"
        status, html = await self._get(page_url)
        if not is_success_status(status):
            raise ProviderUnavailable(
                f"Genius page answered {status}",
                {'provider': self.name, 'url': page_url}
            )

        return extract_lyrics(html) or None
