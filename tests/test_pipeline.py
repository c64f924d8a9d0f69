# tests/test_pipeline.py
"""Test the rewrite pipeline end to end against fake upstreams"""

import pytest

from karaoke_remix.config.settings import DEFAULT_MODEL
from karaoke_remix.lyrics.models import SongQuery
from karaoke_remix.server.pipeline import RewriteInput, parse_rewrite_input
from karaoke_remix.utils.exceptions import (
    CompletionFailure,
    ConfigurationError,
    InvalidRequest,
    LyricsNotFound,
    ProviderUnavailable,
)

from conftest import APPLE_MUSIC_URL, ORIGINAL_LYRICS, REWRITTEN_LYRICS


def make_input(title="Yesterday (Remastered)", artist="The Beatles", theme="Cats", provider="lyrics.ovh", model=None):
    return RewriteInput(title=title, artist=artist, theme=theme, provider=provider, model=model)


class TestParseRewriteInput:
    """Test inbound request validation"""

    def test_valid(self):
        parsed = parse_rewrite_input(
            'application/json',
            '{"title": "Yesterday", "artist": "The Beatles", "theme": "Cats", "provider": "genius"}',
            'openai/gpt-4o',
            'lyrics_ovh',
        )
        assert parsed == RewriteInput("Yesterday", "The Beatles", "Cats", "genius", "openai/gpt-4o")

    def test_bytes_body(self):
        parsed = parse_rewrite_input('application/json', '{"title": "Für Elise", "artist": "b", "theme": "c"}'.encode(), None, 'lyrics_ovh')
        assert parsed.title == "Für Elise"

    def test_default_provider(self):
        parsed = parse_rewrite_input('application/json', '{"title": "a", "artist": "b", "theme": "c"}', None, 'lyrics_ovh')
        assert parsed.provider == 'lyrics_ovh'
        assert parsed.model is None

    @pytest.mark.parametrize("content_type, body", [
        ('text/plain', '{"title": "a", "artist": "b", "theme": "c"}'),
        (None, '{"title": "a", "artist": "b", "theme": "c"}'),
        ('application/json', 'not json'),
        ('application/json', '["a", "b"]'),
        ('application/json', '{"title": "a", "artist": "b"}'),
        ('application/json', '{"title": 1, "artist": "b", "theme": "c"}'),
        ('application/json', '{"title": "a", "artist": "b", "theme": "c", "provider": 5}'),
        ('application/json', b'{"title": "\xff\xfe", "artist": "b", "theme": "c"}'),
    ])
    def test_invalid(self, content_type, body):
        with pytest.raises(InvalidRequest):
            parse_rewrite_input(content_type, body, None, 'lyrics_ovh')


class TestRewritePipeline:
    """Test stage sequencing and outcomes"""

    @pytest.mark.asyncio
    async def test_scenario_a_success_then_cached(self, pipeline, upstream, cache, recorder):
        """Test a second identical request makes no provider call"""
        first = await pipeline.run(make_input())

        assert first.lyrics == REWRITTEN_LYRICS
        assert first.apple_music_url == APPLE_MUSIC_URL
        assert first.model == DEFAULT_MODEL
        assert not first.cached
        assert upstream.last('lyrics_ovh')['match_info'] == {'artist': 'The Beatles', 'title': 'Yesterday'}
        assert cache.get('lyrics_ovh', SongQuery("Yesterday", "The Beatles")) == ORIGINAL_LYRICS

        second = await pipeline.run(make_input())

        assert second.lyrics == REWRITTEN_LYRICS
        assert second.cached
        assert upstream.calls('lyrics_ovh') == 1
        assert upstream.calls('openrouter') == 2

    @pytest.mark.asyncio
    async def test_spellings_share_cache_entry(self, pipeline, upstream):
        """Test raw spellings that normalize alike reuse one lookup"""
        await pipeline.run(make_input(title="Yesterday (Remastered 2009)"))
        await pipeline.run(make_input(title="Yesterday [Live] ", artist=" The Beatles"))
        await pipeline.run(make_input(title="Yesterday feat. Nobody", provider="LYRICS_OVH"))

        assert upstream.calls('lyrics_ovh') == 1

    @pytest.mark.asyncio
    async def test_stage_events(self, pipeline, recorder):
        await pipeline.run(make_input())

        assert recorder.stages == ['normalize', 'cache', 'provider', 'prompt', 'model', 'completion', 'catalog']
        assert recorder.outcome_of('cache') == 'miss'

        await pipeline.run(make_input())

        assert recorder.events[-6:] == [
            ('normalize', 'ok'),
            ('cache', 'hit'),
            ('prompt', 'ok'),
            ('model', 'ok'),
            ('completion', 'ok'),
            ('catalog', 'ok'),
        ]

    @pytest.mark.asyncio
    async def test_prompt_uses_clean_fields(self, pipeline, upstream):
        await pipeline.run(make_input(theme="Tax season"))

        prompt = upstream.last('openrouter')['json']['messages'][0]['content']
        assert '"Yesterday" by The Beatles' in prompt
        assert '"Tax season"' in prompt
        assert prompt.endswith(ORIGINAL_LYRICS)

    @pytest.mark.asyncio
    async def test_scenario_b_provider_404(self, pipeline, upstream, cache, recorder):
        upstream.respond('lyrics_ovh', status=404, body={'error': 'No lyrics found'})

        with pytest.raises(LyricsNotFound) as exc_info:
            await pipeline.run(make_input())

        assert exc_info.value.status == 404
        assert recorder.outcome_of('provider') == 'not_found'
        assert len(cache) == 0
        assert upstream.calls('openrouter') == 0

    @pytest.mark.asyncio
    async def test_scenario_c_missing_audd_token(self, pipeline, wired_settings, upstream, cache, recorder):
        wired_settings.lyrics.audd_api_token = ""

        with pytest.raises(ConfigurationError) as exc_info:
            await pipeline.run(make_input(provider="audd"))

        assert exc_info.value.status == 500
        assert "AUDD_API_TOKEN" in exc_info.value.message
        assert recorder.outcome_of('provider') == 'config_error'
        assert len(cache) == 0
        assert upstream.calls('audd') == 0

    @pytest.mark.asyncio
    async def test_cache_hit_skips_credential_check(self, pipeline, wired_settings, upstream, cache):
        """Test a cached song needs no provider credential"""
        await pipeline.run(make_input(provider="audd"))
        wired_settings.lyrics.audd_api_token = ""

        output = await pipeline.run(make_input(provider="audd"))

        assert output.cached
        assert upstream.calls('audd') == 1

    @pytest.mark.asyncio
    async def test_scenario_d_empty_choices(self, pipeline, upstream, cache):
        upstream.respond('openrouter', body={'choices': []})

        with pytest.raises(CompletionFailure) as exc_info:
            await pipeline.run(make_input())

        assert exc_info.value.status == 500
        assert upstream.calls('catalog') == 0
        # Lyrics were fetched successfully, so they stay cached
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_scenario_e_unknown_model_uses_default(self, pipeline, upstream, recorder):
        output = await pipeline.run(make_input(model="made-up/model-9000"))

        assert output.lyrics == REWRITTEN_LYRICS
        assert output.model == DEFAULT_MODEL
        assert upstream.last('openrouter')['json']['model'] == DEFAULT_MODEL
        assert recorder.outcome_of('model') == 'fallback'

    @pytest.mark.asyncio
    async def test_openai_model_routed_first_party(self, pipeline, upstream):
        output = await pipeline.run(make_input(model="openai/gpt-4o"))

        assert output.model == "openai/gpt-4o"
        assert upstream.last('openai')['json']['model'] == "gpt-4o"
        assert upstream.calls('openrouter') == 0

    @pytest.mark.asyncio
    async def test_missing_backend_key(self, pipeline, wired_settings):
        wired_settings.completion.openrouter_api_key = ""

        with pytest.raises(ConfigurationError):
            await pipeline.run(make_input())

    @pytest.mark.asyncio
    async def test_provider_failure(self, pipeline, upstream, cache, recorder):
        upstream.respond('genius_search', status=500, body={'error': 'boom'})

        with pytest.raises(ProviderUnavailable):
            await pipeline.run(make_input(provider="genius"))

        assert recorder.outcome_of('provider') == 'error'
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_unknown_provider_is_not_found(self, pipeline, upstream):
        with pytest.raises(LyricsNotFound):
            await pipeline.run(make_input(provider="musixmatch"))

        assert sum(len(requests) for requests in upstream.requests.values()) == 0

    @pytest.mark.asyncio
    async def test_catalog_failure_keeps_rewrite(self, pipeline, upstream, recorder):
        upstream.respond('catalog', status=500, body="down", content_type='text/plain')

        output = await pipeline.run(make_input())

        assert output.lyrics == REWRITTEN_LYRICS
        assert output.apple_music_url is None
        assert output.to_response() == {'lyrics': REWRITTEN_LYRICS}
        assert recorder.outcome_of('catalog') == 'skipped'

    @pytest.mark.asyncio
    async def test_catalog_link_disabled(self, pipeline, wired_settings, upstream, recorder):
        wired_settings.catalog.include_link = False

        output = await pipeline.run(make_input())

        assert output.apple_music_url is None
        assert upstream.calls('catalog') == 0
        assert 'catalog' not in recorder.stages
