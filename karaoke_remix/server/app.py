"""
aiohttp application serving the rewrite API

Routes (paths configurable under server.*):
    POST /api/lyrics   rewrite lyrics; JSON in, JSON out
    GET  /api/lyrics   liveness check, {"ok": true}
    GET  /api/search   song catalog search for autocomplete

One aiohttp ClientSession is opened when the application starts and closed
on cleanup; every provider, backend and catalog call goes through it.
"""

from typing import Optional

import aiohttp
from aiohttp import web

from ..catalog.itunes import CatalogClient
from ..config.settings import get_settings
from ..lyrics.cache import LyricsCache
from ..utils.exceptions import RemixError
from ..utils.logger import PipelineObserver, get_logger
from .pipeline import RewritePipeline, parse_rewrite_input


logger = get_logger(__name__)

SETTINGS_KEY = web.AppKey('settings', object)
CACHE_KEY = web.AppKey('cache', LyricsCache)
OBSERVER_KEY = web.AppKey('observer', object)
SESSION_KEY = web.AppKey('session', aiohttp.ClientSession)
PIPELINE_KEY = web.AppKey('pipeline', RewritePipeline)
CATALOG_KEY = web.AppKey('catalog', CatalogClient)


async def upstream_session(app: web.Application):
    """Cleanup context owning the shared ClientSession and its collaborators"""
    settings = app[SETTINGS_KEY]
    session = aiohttp.ClientSession(headers={'User-Agent': settings.network.user_agent})
    app[SESSION_KEY] = session
    app[CATALOG_KEY] = CatalogClient(session, settings)
    app[PIPELINE_KEY] = RewritePipeline.from_session(
        session,
        settings,
        cache=app[CACHE_KEY],
        observer=app[OBSERVER_KEY],
    )
    logger.debug("Upstream HTTP session opened")

    yield

    await session.close()
    logger.debug("Upstream HTTP session closed")
    logger.info(f"Lyrics cache at shutdown: {app[CACHE_KEY].summary()}")


def error_response(error: RemixError) -> web.Response:
    return web.json_response({'lyrics': None, 'error': error.message}, status=error.status)


async def rewrite_lyrics(request: web.Request) -> web.Response:
    """POST handler: validate, run the pipeline, map the outcome to JSON"""
    settings = request.app[SETTINGS_KEY]
    try:
        rewrite_input = parse_rewrite_input(
            request.content_type,
            await request.read(),
            request.headers.get('x-model'),
            settings.lyrics.default_provider,
        )
        output = await request.app[PIPELINE_KEY].run(rewrite_input)
    except RemixError as e:
        if e.status >= 500:
            logger.error(f"Rewrite failed ({e.status}): {e.message} {e.details or ''}")
        else:
            logger.info(f"Rewrite rejected ({e.status}): {e.message}")
        return error_response(e)
    except Exception:
        logger.exception("Unexpected error while rewriting lyrics")
        return web.json_response({'lyrics': None, 'error': "Internal server error"}, status=500)

    logger.info(
        f"Rewrote lyrics with {output.model} via {output.provider}"
        f"{' (cached lyrics)' if output.cached else ''}"
    )
    return web.json_response(output.to_response())


async def health(request: web.Request) -> web.Response:
    return web.json_response({'ok': True})


async def search_songs(request: web.Request) -> web.Response:
    """GET handler for catalog search; term shorter than 2 chars yields []"""
    term = request.query.get('term', '')
    try:
        tracks = await request.app[CATALOG_KEY].search(term)
    except RemixError as e:
        logger.error(f"Song search failed for '{term}': {e}")
        return web.json_response({'results': [], 'error': e.message}, status=e.status)

    return web.json_response({'results': [track.to_response() for track in tracks]})


def create_app(
    settings=None,
    cache: Optional[LyricsCache] = None,
    observer: Optional[PipelineObserver] = None
) -> web.Application:
    """
    Build the aiohttp application

    Args:
        settings: Settings instance; the global one when omitted
        cache: Lyrics cache shared by all requests; fresh when omitted
        observer: Stage observer handed to the pipeline

    Returns:
        Configured web.Application
    """
    settings = settings or get_settings()

    app = web.Application()
    app[SETTINGS_KEY] = settings
    app[CACHE_KEY] = cache if cache is not None else LyricsCache()
    app[OBSERVER_KEY] = observer
    app.cleanup_ctx.append(upstream_session)

    app.router.add_post(settings.server.lyrics_path, rewrite_lyrics)
    app.router.add_get(settings.server.lyrics_path, health)
    app.router.add_get(settings.server.search_path, search_songs)
    return app


def run_server(settings=None) -> None:
    """Serve the application until interrupted"""
    settings = settings or get_settings()
    logger.info(f"Serving on http://{settings.server.host}:{settings.server.port}{settings.server.lyrics_path}")
    web.run_app(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        print=None,
    )
