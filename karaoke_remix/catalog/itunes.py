"""
iTunes Search API client

Used for the song search endpoint that backs autocomplete, and for the
companion Apple Music link attached to a successful rewrite. The API is
public and unauthenticated:

    GET https://itunes.apple.com/search?term=..&entity=song&limit=5

It answers {"resultCount": n, "results": [{trackId, trackName, artistName,
trackViewUrl, ...}]} with a text/javascript content type, so the body is
decoded by hand.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiohttp

from ..utils.exceptions import ProviderUnavailable
from ..utils.helpers import is_success_status, truncate_body
from ..utils.logger import get_logger


MIN_TERM_LENGTH = 2


@dataclass(frozen=True)
class CatalogTrack:
    """
    One song from the catalog

    Attributes:
        track_id: iTunes track identifier
        title: Track name
        artist: Artist name
        url: Apple Music / iTunes track page
    """
    track_id: int
    title: str
    artist: str
    url: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> Optional['CatalogTrack']:
        """Build from an API record; None when a required field is missing"""
        try:
            return cls(
                track_id=data['trackId'],
                title=data['trackName'],
                artist=data['artistName'],
                url=data.get('trackViewUrl') or '',
            )
        except (KeyError, TypeError):
            return None

    def to_response(self) -> Dict[str, Any]:
        """Shape used by the search endpoint"""
        return {
            'id': self.track_id,
            'title': self.title,
            'artist': self.artist,
            'appleMusicUrl': self.url,
        }


class CatalogClient:
    """
    Song catalog search over the shared aiohttp session
    """

    def __init__(self, session: aiohttp.ClientSession, settings):
        self.session = session
        self.settings = settings
        self.logger = get_logger(__name__)

    async def search(self, term: str, limit: Optional[int] = None) -> List[CatalogTrack]:
        """
        Search songs by free text

        Args:
            term: Search text; shorter than two characters returns nothing
            limit: Maximum results, catalog.limit when omitted

        Returns:
            Matching tracks in catalog order

        Raises:
            ProviderUnavailable: On network failure, non-2xx status or malformed body
        """
        term = (term or '').strip()
        if len(term) < MIN_TERM_LENGTH:
            return []

        params = {
            'term': term,
            'entity': self.settings.catalog.entity,
            'limit': str(limit or self.settings.catalog.limit),
        }

        try:
            async with self.session.get(self.settings.catalog.search_url, params=params) as response:
                status = response.status
                body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderUnavailable("Could not reach the song catalog", {'error': str(e) or type(e).__name__})
        except UnicodeDecodeError as e:
            raise ProviderUnavailable("Undecodable song catalog response", {'body': truncate_body(e.object)})

        if not is_success_status(status):
            raise ProviderUnavailable(
                f"Song catalog answered {status}",
                {'body': truncate_body(body)}
            )

        try:
            data = json.loads(body)
        except ValueError:
            raise ProviderUnavailable("Malformed song catalog response", {'body': truncate_body(body)})

        records = data.get('results') if isinstance(data, dict) else None
        if not isinstance(records, list):
            raise ProviderUnavailable("Malformed song catalog response", {'body': truncate_body(body)})

        tracks = [CatalogTrack.from_api(record) for record in records if isinstance(record, dict)]
        tracks = [track for track in tracks if track is not None]
        self.logger.debug(f"Catalog search '{term}' returned {len(tracks)} tracks")
        return tracks

    async def find_link(self, title: str, artist: str) -> Optional[str]:
        """
        Apple Music link for a song, from the first search hit

        Raises:
            ProviderUnavailable: When the search itself fails
        """
        tracks = await self.search(f"{title} {artist}", limit=1)
        for track in tracks:
            if track.url:
                return track.url
        return None
