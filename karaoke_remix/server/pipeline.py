"""
Rewrite pipeline orchestration

One request runs these stages in order, each at most once:

    normalize -> cache -> provider (on miss) -> prompt -> model -> completion -> catalog

Every terminal failure is raised as a RemixError subclass carrying its HTTP
status; the server turns it into a JSON error body. The catalog stage is
optional and never fails a rewrite that already succeeded.

Collaborators (cache, providers, router, catalog, observer) are injected so
the host application owns their lifetime and tests can swap any of them.
"""

import json
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Union

import aiohttp

from ..catalog.itunes import CatalogClient
from ..lyrics.cache import LyricsCache
from ..lyrics.models import LyricsSource, SongQuery
from ..lyrics.registry import ProviderRegistry
from ..rewrite.models import RewriteRequest, resolve_model
from ..rewrite.router import CompletionRouter
from ..utils.exceptions import ConfigurationError, InvalidRequest, LyricsNotFound, ProviderUnavailable
from ..utils.helpers import normalize
from ..utils.logger import LoggingObserver, PipelineObserver, StageTimer, get_logger


REQUIRED_FIELDS = ('title', 'artist', 'theme')


@dataclass(frozen=True)
class RewriteInput:
    """
    Validated inbound request, still holding the raw user strings

    Attributes:
        title: Title as typed by the user
        artist: Artist as typed by the user
        theme: Theme for the rewrite
        provider: Requested lyrics provider identifier
        model: Value of the x-model header, if any
    """
    title: str
    artist: str
    theme: str
    provider: str
    model: Optional[str] = None


@dataclass(frozen=True)
class RewriteOutput:
    """Successful rewrite and the facts about how it was produced"""
    lyrics: str
    model: str
    provider: str
    cached: bool = False
    apple_music_url: Optional[str] = None

    def to_response(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {'lyrics': self.lyrics}
        if self.apple_music_url:
            body['appleMusicUrl'] = self.apple_music_url
        return body


def parse_rewrite_input(
    content_type: Optional[str],
    raw_body: Union[bytes, str],
    model_header: Optional[str],
    default_provider: str
) -> RewriteInput:
    """
    Validate an inbound rewrite request

    Args:
        content_type: Request MIME type without parameters
        raw_body: Request body, raw bytes or already decoded text
        model_header: Value of the x-model header
        default_provider: Provider used when the body names none

    Returns:
        RewriteInput

    Raises:
        InvalidRequest: For a non-JSON content type, a body that is not
            UTF-8, unparsable JSON, a body that is not an object, or
            missing/non-string fields
    """
    if (content_type or '').lower() != 'application/json':
        raise InvalidRequest("Expected application/json", {'content_type': content_type})

    if isinstance(raw_body, bytes):
        try:
            raw_body = raw_body.decode('utf-8')
        except UnicodeDecodeError:
            raise InvalidRequest("Request body is not valid UTF-8")

    try:
        payload = json.loads(raw_body)
    except ValueError:
        raise InvalidRequest("Request body is not valid JSON")

    if not isinstance(payload, dict):
        raise InvalidRequest("Request body must be a JSON object")

    missing = [name for name in REQUIRED_FIELDS if not isinstance(payload.get(name), str)]
    if missing:
        raise InvalidRequest(f"Missing or invalid fields: {', '.join(missing)}", {'fields': missing})

    provider = payload.get('provider')
    if provider is None:
        provider = default_provider
    elif not isinstance(provider, str):
        raise InvalidRequest("Field 'provider' must be a string")

    return RewriteInput(
        title=payload['title'],
        artist=payload['artist'],
        theme=payload['theme'],
        provider=provider,
        model=model_header or None,
    )


class RewritePipeline:
    """
    Runs one rewrite from raw song fields to themed lyrics

    Example:
        pipeline = RewritePipeline.from_session(session, settings, cache=LyricsCache())
        output = await pipeline.run(RewriteInput("Yesterday", "The Beatles", "Cats", "lyrics_ovh"))
        print(output.lyrics)
    """

    def __init__(
        self,
        settings,
        providers: ProviderRegistry,
        cache: LyricsCache,
        router: CompletionRouter,
        catalog: Optional[CatalogClient] = None,
        observer: Optional[PipelineObserver] = None
    ):
        self.settings = settings
        self.providers = providers
        self.cache = cache
        self.router = router
        self.catalog = catalog
        self.observer = observer or LoggingObserver()
        self.logger = get_logger(__name__)

    @classmethod
    def from_session(
        cls,
        session: aiohttp.ClientSession,
        settings,
        cache: Optional[LyricsCache] = None,
        observer: Optional[PipelineObserver] = None
    ) -> 'RewritePipeline':
        """
        Wire the default collaborators around one shared session

        Args:
            session: aiohttp session owned by the caller
            settings: Application settings
            cache: Lyrics cache; a fresh one when omitted
            observer: Stage observer; LoggingObserver when omitted
        """
        return cls(
            settings=settings,
            providers=ProviderRegistry(session, settings),
            cache=cache if cache is not None else LyricsCache(),
            router=CompletionRouter.from_settings(session, settings),
            catalog=CatalogClient(session, settings),
            observer=observer,
        )

    async def run(self, request: RewriteInput) -> RewriteOutput:
        """
        Execute the pipeline once

        Raises:
            LyricsNotFound: The provider has no lyrics, or is unknown/disabled
            ProviderUnavailable: The provider call failed
            ConfigurationError: A required credential is missing
            CompletionFailure: The model call failed or returned nothing
        """
        with StageTimer(self.observer, 'normalize'):
            song = SongQuery(title=normalize(request.title), artist=normalize(request.artist))

        source = LyricsSource.from_request(request.provider)
        provider_id = source.value if source else request.provider.strip().lower()

        with StageTimer(self.observer, 'cache') as timer:
            original = self.cache.get(provider_id, song)
            timer.outcome = 'hit' if original is not None else 'miss'

        cached = original is not None
        if original is None:
            original = await self._fetch_original(provider_id, song)

        rewrite = RewriteRequest(
            title=song.title,
            artist=song.artist,
            theme=request.theme,
            original_lyrics=original,
        )

        with StageTimer(self.observer, 'prompt'):
            prompt = rewrite.render_prompt()

        with StageTimer(self.observer, 'model') as timer:
            completion_settings = self.settings.completion
            model = resolve_model(request.model, completion_settings.allowed_models, completion_settings.default_model)
            if request.model and model != request.model:
                timer.outcome = 'fallback'
                self.logger.warning(f"Model {request.model!r} is not allowed, using {model}")

        rewrite = replace(rewrite, model=model)

        with StageTimer(self.observer, 'completion') as timer:
            result = await self.router.complete(rewrite.model, prompt)
            if not result.ok:
                timer.outcome = 'config_error' if isinstance(result.error, ConfigurationError) else 'error'
                raise result.error

        return RewriteOutput(
            lyrics=result.text,
            model=rewrite.model,
            provider=provider_id,
            cached=cached,
            apple_music_url=await self._companion_link(song),
        )

    async def _fetch_original(self, provider_id: str, song: SongQuery) -> str:
        with StageTimer(self.observer, 'provider') as timer:
            result = await self.providers.fetch(provider_id, song)

            if result.is_error:
                timer.outcome = 'config_error' if isinstance(result.error, ConfigurationError) else 'error'
                raise result.error

            if result.is_not_found:
                timer.outcome = 'not_found'
                raise LyricsNotFound(
                    "Original lyrics not found.",
                    {'provider': provider_id, 'title': song.title, 'artist': song.artist}
                )

        self.cache.put(provider_id, song, result.text)
        return result.text

    async def _companion_link(self, song: SongQuery) -> Optional[str]:
        if self.catalog is None or not self.settings.catalog.include_link:
            return None

        with StageTimer(self.observer, 'catalog') as timer:
            try:
                url = await self.catalog.find_link(song.title, song.artist)
            except ProviderUnavailable as e:
                timer.outcome = 'skipped'
                self.logger.warning(f"Apple Music link lookup failed for '{song.title}': {e}")
                return None
            if url is None:
                timer.outcome = 'not_found'
            return url
