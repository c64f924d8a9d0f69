# tests/test_rewrite.py
"""Test prompt rendering, model selection and completion routing"""

from unittest.mock import AsyncMock, Mock

import pytest

from karaoke_remix.config.settings import ALLOWED_MODELS, DEFAULT_MODEL
from karaoke_remix.rewrite import (
    CompletionResult,
    CompletionRouter,
    OpenAIBackend,
    OpenRouterBackend,
    RewriteRequest,
    build_prompt,
    resolve_model,
)
from karaoke_remix.utils.exceptions import CompletionFailure, ConfigurationError

from conftest import REWRITTEN_LYRICS


class TestBuildPrompt:
    """Test prompt rendering"""

    def test_fields_embedded(self):
        prompt = build_prompt("Yesterday", "The Beatles", "Cats", "line one\nline two")

        assert prompt.startswith('Take the following lyrics from the song "Yesterday" by The Beatles')
        assert 'in the theme of "Cats"' in prompt
        assert "rhythm, syllable count, and rhyme structure" in prompt
        assert prompt.endswith("Original lyrics:\nline one\nline two")

    def test_deterministic(self):
        args = ("Yesterday", "The Beatles", "Cats", "la la")
        assert build_prompt(*args) == build_prompt(*args)

    def test_braces_in_input_are_literal(self):
        prompt = build_prompt("{title}", "{artist}", "{theme}", "{lyrics}")
        assert '"{title}" by {artist}' in prompt
        assert prompt.endswith("Original lyrics:\n{lyrics}")

    def test_request_renders_same_prompt(self):
        request = RewriteRequest(title="Yesterday", artist="The Beatles", theme="Cats", original_lyrics="la la")

        assert request.model is None
        assert request.render_prompt() == build_prompt("Yesterday", "The Beatles", "Cats", "la la")


class TestResolveModel:
    """Test allow-list model resolution"""

    @pytest.mark.parametrize("model", ALLOWED_MODELS)
    def test_allowed_model_kept(self, model):
        assert resolve_model(model, ALLOWED_MODELS, DEFAULT_MODEL) == model

    @pytest.mark.parametrize("model", [
        None,
        "",
        "openai/gpt-5",
        "OPENAI/GPT-4O",
        " openai/gpt-4o",
        "tngtech/deepseek-r1t2-chimera",
    ])
    def test_other_models_fall_back(self, model):
        assert resolve_model(model, ALLOWED_MODELS, DEFAULT_MODEL) == DEFAULT_MODEL


class TestCompletionRouter:
    """Test backend dispatch by model namespace"""

    def make_router(self):
        openai = Mock(name="openai")
        openai.complete = AsyncMock(return_value=CompletionResult(text="from openai"))
        fallback = Mock(name="openrouter")
        fallback.complete = AsyncMock(return_value=CompletionResult(text="from openrouter"))
        return CompletionRouter({'openai': openai}, fallback), openai, fallback

    @pytest.mark.parametrize("model", ["openai/gpt-4o", "openai/gpt-4o-mini"])
    def test_openai_namespace(self, model):
        router, openai, _ = self.make_router()
        assert router.select(model) is openai

    @pytest.mark.parametrize("model", [
        "tngtech/deepseek-r1t2-chimera:free",
        "meta-llama/llama-3.2-3b-instruct:free",
        "openaix/model",
        "openai",
        "gpt-4o",
    ])
    def test_other_namespaces_use_fallback(self, model):
        router, _, fallback = self.make_router()
        assert router.select(model) is fallback

    @pytest.mark.asyncio
    async def test_complete_passes_model_unchanged(self):
        router, openai, fallback = self.make_router()

        result = await router.complete("google/gemini-2.0-flash-exp:free", "prompt")

        assert result.text == "from openrouter"
        fallback.complete.assert_awaited_once_with("google/gemini-2.0-flash-exp:free", "prompt")
        openai.complete.assert_not_called()


class TestOpenAIBackend:
    """Test the first-party backend"""

    def test_wire_model_strips_namespace(self, settings):
        backend = OpenAIBackend(Mock(), settings)
        assert backend.wire_model("openai/gpt-4o") == "gpt-4o"

    @pytest.mark.asyncio
    async def test_request_shape(self, session, wired_settings, upstream):
        result = await OpenAIBackend(session, wired_settings).complete("openai/gpt-4o", "the prompt")

        assert result.ok
        assert result.text == REWRITTEN_LYRICS
        request = upstream.last('openai')
        assert request['json'] == {
            'model': 'gpt-4o',
            'messages': [{'role': 'user', 'content': 'the prompt'}],
        }
        assert request['headers']['Authorization'] == 'Bearer openai-test-key'
        assert 'X-Title' not in request['headers']

    @pytest.mark.asyncio
    async def test_missing_key(self, session, wired_settings, upstream):
        wired_settings.completion.openai_api_key = ""
        result = await OpenAIBackend(session, wired_settings).complete("openai/gpt-4o", "p")

        assert isinstance(result.error, ConfigurationError)
        assert "OPENAI_API_KEY" in str(result.error)
        assert upstream.calls('openai') == 0


class TestOpenRouterBackend:
    """Test the aggregator backend"""

    @pytest.mark.asyncio
    async def test_request_shape(self, session, wired_settings, upstream):
        model = "meta-llama/llama-3.2-3b-instruct:free"
        result = await OpenRouterBackend(session, wired_settings).complete(model, "the prompt")

        assert result.text == REWRITTEN_LYRICS
        request = upstream.last('openrouter')
        assert request['json']['model'] == model
        assert request['headers']['Authorization'] == 'Bearer openrouter-test-key'
        assert request['headers']['HTTP-Referer'] == 'http://localhost:3000'
        assert request['headers']['X-Title'] == 'Karaoke AI Lyrics'

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {'choices': []},
        {'choices': [{'message': {'content': '   '}}]},
        {'choices': [{'message': {}}]},
        {},
    ])
    async def test_no_text_is_failure(self, session, wired_settings, upstream, body):
        upstream.respond('openrouter', body=body)
        result = await OpenRouterBackend(session, wired_settings).complete(DEFAULT_MODEL, "p")

        assert not result.ok
        assert isinstance(result.error, CompletionFailure)

    @pytest.mark.asyncio
    async def test_error_object(self, session, wired_settings, upstream):
        upstream.respond('openrouter', status=429, body={'error': {'message': 'Rate limit exceeded', 'code': 429}})
        result = await OpenRouterBackend(session, wired_settings).complete(DEFAULT_MODEL, "p")

        assert isinstance(result.error, CompletionFailure)
        assert "Rate limit exceeded" in result.error.message

    @pytest.mark.asyncio
    async def test_non_json_failure(self, session, wired_settings, upstream):
        upstream.respond('openrouter', status=502, body="Bad gateway", content_type='text/plain')
        result = await OpenRouterBackend(session, wired_settings).complete(DEFAULT_MODEL, "p")

        assert isinstance(result.error, CompletionFailure)
        assert result.error.details['body'] == "Bad gateway"

    @pytest.mark.asyncio
    async def test_undecodable_body_is_failure(self, session, wired_settings, upstream):
        upstream.respond('openrouter', body=b'{"choices": [{"message": {"content": "\xff"}}]}')
        result = await OpenRouterBackend(session, wired_settings).complete(DEFAULT_MODEL, "p")

        assert not result.ok
        assert isinstance(result.error, CompletionFailure)
        assert "Undecodable" in result.error.message
