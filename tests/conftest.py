"""Test configuration and fixtures"""

import json
from collections import defaultdict

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from karaoke_remix.config.settings import Settings
from karaoke_remix.lyrics.cache import LyricsCache
from karaoke_remix.server.app import create_app
from karaoke_remix.server.pipeline import RewritePipeline
from karaoke_remix.utils.logger import PipelineObserver


CREDENTIAL_ENV_VARS = [
    'GENIUS_ACCESS_TOKEN',
    'AUDD_API_TOKEN',
    'OPENAI_API_KEY',
    'OPENROUTER_API_KEY',
    'KARAOKE_REMIX_DEFAULT_MODEL',
    'KARAOKE_REMIX_HOST',
    'KARAOKE_REMIX_PORT',
]

ORIGINAL_LYRICS = (
    "Yesterday, all my troubles seemed so far away\n"
    "Now it looks as though they're here to stay"
)

REWRITTEN_LYRICS = (
    "Yesterday, all my kittens seemed so far away\n"
    "Now they're clawing at the couch to stay"
)

APPLE_MUSIC_URL = "https://music.apple.com/us/album/yesterday/1441164426?i=1441164430"

GENIUS_PAGE = """
<html><body>
  <div data-lyrics-container="true">Yesterday, all my troubles seemed so far away<br/>Now it looks as though they're here to stay</div>
  <div data-lyrics-container="true"><a href="#">Oh, I believe</a> in yesterday</div>
</body></html>
"""


class RecordingObserver(PipelineObserver):
    """Observer that remembers (stage, outcome) pairs in order"""

    def __init__(self):
        self.events = []

    def stage_finished(self, stage, outcome, elapsed):
        assert elapsed >= 0
        self.events.append((stage, outcome))

    @property
    def stages(self):
        return [stage for stage, _ in self.events]

    def outcome_of(self, stage):
        for name, outcome in reversed(self.events):
            if name == stage:
                return outcome
        return None


class FakeUpstream:
    """
    One in-process aiohttp app standing in for every external service

    Each route has a name; responses are configured per name with respond()
    and every request is recorded under that name.
    """

    def __init__(self):
        self.server = None
        self.requests = defaultdict(list)
        self.responses = {
            'lyrics_ovh': (200, {'lyrics': ORIGINAL_LYRICS}, 'application/json'),
            'flylyrics': (200, {'lyrics': ORIGINAL_LYRICS}, 'application/json'),
            'audd': (200, {'status': 'success', 'result': [{'lyrics': ORIGINAL_LYRICS}]}, 'application/json'),
            'genius_search': (
                200,
                {'response': {'hits': [{'result': {'path': '/The-beatles-yesterday-lyrics'}}]}},
                'application/json',
            ),
            'genius_page': (200, GENIUS_PAGE, 'text/html'),
            'openai': (200, {'choices': [{'message': {'content': f"  {REWRITTEN_LYRICS}\n"}}]}, 'application/json'),
            'openrouter': (200, {'choices': [{'message': {'content': f"\n{REWRITTEN_LYRICS}  "}}]}, 'application/json'),
            'catalog': (
                200,
                {'resultCount': 1, 'results': [{
                    'trackId': 1441164430,
                    'trackName': 'Yesterday',
                    'artistName': 'The Beatles',
                    'trackViewUrl': APPLE_MUSIC_URL,
                }]},
                'text/javascript',
            ),
        }

    def respond(self, name, status=200, body=None, content_type='application/json'):
        self.responses[name] = (status, body if body is not None else {}, content_type)

    def calls(self, name):
        return len(self.requests[name])

    def last(self, name):
        return self.requests[name][-1]

    def url(self, path):
        return str(self.server.make_url(path))

    def _handler(self, name):
        async def handle(request):
            entry = {
                'query': dict(request.query),
                'headers': dict(request.headers),
                'match_info': dict(request.match_info),
            }
            if request.method == 'POST':
                entry['json'] = await request.json()
            self.requests[name].append(entry)

            status, body, content_type = self.responses[name]
            if isinstance(body, bytes):
                return web.Response(status=status, body=body, content_type=content_type, charset='utf-8')
            text = body if isinstance(body, str) else json.dumps(body)
            return web.Response(status=status, text=text, content_type=content_type)
        return handle

    def build_app(self):
        app = web.Application()
        app.router.add_get('/ovh/v1/{artist}/{title}', self._handler('lyrics_ovh'))
        app.router.add_get('/fly', self._handler('flylyrics'))
        app.router.add_get('/audd/findLyrics/', self._handler('audd'))
        app.router.add_get('/genius-api/search', self._handler('genius_search'))
        app.router.add_get('/genius-web/{path:.*}', self._handler('genius_page'))
        app.router.add_post('/openai/chat/completions', self._handler('openai'))
        app.router.add_post('/openrouter/chat/completions', self._handler('openrouter'))
        app.router.add_get('/itunes/search', self._handler('catalog'))
        return app


@pytest.fixture
def settings(tmp_path, monkeypatch):
    """Settings with defaults only: empty config file, no credentials in the environment"""
    for var in CREDENTIAL_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    config_file = tmp_path / "config.yaml"
    config_file.write_text("{}\n", encoding="utf-8")
    return Settings(str(config_file))


@pytest_asyncio.fixture
async def upstream():
    """Running fake upstream server"""
    fake = FakeUpstream()
    server = TestServer(fake.build_app())
    await server.start_server()
    fake.server = server
    yield fake
    await server.close()


@pytest.fixture
def wired_settings(settings, upstream):
    """Settings pointing every external URL at the fake upstream, with all credentials set"""
    settings.lyrics.lyrics_ovh_url = upstream.url('/ovh')
    settings.lyrics.flylyrics_url = upstream.url('/fly')
    settings.lyrics.audd_url = upstream.url('/audd')
    settings.lyrics.genius_api_url = upstream.url('/genius-api')
    settings.lyrics.genius_web_url = upstream.url('/genius-web')
    settings.lyrics.genius_access_token = 'genius-test-token'
    settings.lyrics.audd_api_token = 'audd-test-token'
    settings.completion.openai_url = upstream.url('/openai/chat/completions')
    settings.completion.openrouter_url = upstream.url('/openrouter/chat/completions')
    settings.completion.openai_api_key = 'openai-test-key'
    settings.completion.openrouter_api_key = 'openrouter-test-key'
    settings.catalog.search_url = upstream.url('/itunes/search')
    return settings


@pytest.fixture
def cache():
    """Fresh lyrics cache"""
    return LyricsCache()


@pytest.fixture
def recorder():
    return RecordingObserver()


@pytest_asyncio.fixture
async def session():
    """Client session for code under test"""
    async with aiohttp.ClientSession() as client_session:
        yield client_session


@pytest.fixture
def pipeline(session, wired_settings, cache, recorder):
    """Pipeline wired to the fake upstream"""
    return RewritePipeline.from_session(session, wired_settings, cache=cache, observer=recorder)


@pytest_asyncio.fixture
async def client(wired_settings, cache, recorder):
    """Test client for the HTTP application"""
    app = create_app(wired_settings, cache=cache, observer=recorder)
    async with TestClient(TestServer(app)) as test_client:
        yield test_client
