"""
Chat-completion backends

Both backends speak the OpenAI chat-completions wire format: a POST with
Authorization: Bearer <key> and {"model": ..., "messages": [{"role": "user",
"content": prompt}]}, answered by {"choices": [{"message": {"content": ...}}]}.
They differ in endpoint, credential, the model identifier they send, and
the attribution headers OpenRouter asks for.

A backend never raises: every failure becomes a CompletionResult carrying
a RemixError.
"""

import asyncio
import json
from typing import Any, Dict

import aiohttp

from ..utils.exceptions import CompletionFailure, ConfigurationError, RemixError
from ..utils.helpers import is_success_status, truncate_body
from ..utils.logger import get_logger
from .models import CompletionResult


class CompletionBackend:
    """
    Base class for completion backends

    Subclasses provide the endpoint, the API key, and the wire model name.
    """

    name = "base"
    credential_env = ""

    def __init__(self, session: aiohttp.ClientSession, settings):
        self.session = session
        self.settings = settings
        self.logger = get_logger(f"karaoke_remix.rewrite.{self.name}")

    @property
    def endpoint(self) -> str:
        raise NotImplementedError

    @property
    def api_key(self) -> str:
        raise NotImplementedError

    def wire_model(self, model: str) -> str:
        return model

    def extra_headers(self) -> Dict[str, str]:
        return {}

    def build_payload(self, model: str, prompt: str) -> Dict[str, Any]:
        return {
            'model': self.wire_model(model),
            'messages': [{'role': 'user', 'content': prompt}],
        }

    async def complete(self, model: str, prompt: str) -> CompletionResult:
        """
        Run one completion

        Args:
            model: Allow-listed model identifier, namespace included
            prompt: Rendered rewrite prompt

        Returns:
            CompletionResult with the trimmed text, or the error
        """
        try:
            text = await self._complete(model, prompt)
        except RemixError as e:
            self.logger.error(f"{self.name} completion failed for {model}: {e}")
            return CompletionResult(error=e, backend=self.name)
        return CompletionResult(text=text, backend=self.name)

    async def _complete(self, model: str, prompt: str) -> str:
        if not self.api_key:
            raise ConfigurationError(
                f"{self.name} API key is not configured (set {self.credential_env})",
                {'backend': self.name, 'missing': self.credential_env}
            )

        headers = {'Authorization': f"Bearer {self.api_key}"}
        headers.update(self.extra_headers())

        try:
            async with self.session.post(
                self.endpoint,
                json=self.build_payload(model, prompt),
                headers=headers
            ) as response:
                status = response.status
                body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise CompletionFailure(
                f"Could not reach {self.name}",
                {'backend': self.name, 'error': str(e) or type(e).__name__}
            )
        except UnicodeDecodeError as e:
            raise CompletionFailure(
                f"Undecodable response from {self.name}",
                {'backend': self.name, 'body': truncate_body(e.object)}
            )

        self.logger.debug(f"POST {self.endpoint} ({model}) -> {status}")
        return self.extract_text(status, body)

    def extract_text(self, status: int, body: str) -> str:
        """
        Pull the generated text out of a completion response

        Raises:
            CompletionFailure: On non-2xx status, an error object, a
                malformed body, or empty content
        """
        try:
            data = json.loads(body)
        except ValueError:
            data = None

        if isinstance(data, dict) and data.get('error'):
            error = data['error']
            message = error.get('message') if isinstance(error, dict) else str(error)
            raise CompletionFailure(
                f"{self.name} error: {message or 'unknown'}",
                {'backend': self.name, 'status': status}
            )

        if not is_success_status(status) or not isinstance(data, dict):
            raise CompletionFailure(
                f"{self.name} answered {status}",
                {'backend': self.name, 'body': truncate_body(body)}
            )

        try:
            content = data['choices'][0]['message']['content']
        except (KeyError, IndexError, TypeError):
            content = None

        if not isinstance(content, str) or not content.strip():
            raise CompletionFailure("Model returned no lyrics", {'backend': self.name})

        return content.strip()


class OpenAIBackend(CompletionBackend):
    """First-party OpenAI endpoint; receives the bare model name"""

    name = "openai"
    credential_env = "OPENAI_API_KEY"

    @property
    def endpoint(self) -> str:
        return self.settings.completion.openai_url

    @property
    def api_key(self) -> str:
        return self.settings.completion.openai_api_key

    def wire_model(self, model: str) -> str:
        # "openai/gpt-4o" -> "gpt-4o"
        return model.split('/', 1)[1] if '/' in model else model


class OpenRouterBackend(CompletionBackend):
    """OpenRouter aggregator; receives the full namespaced identifier"""

    name = "openrouter"
    credential_env = "OPENROUTER_API_KEY"

    @property
    def endpoint(self) -> str:
        return self.settings.completion.openrouter_url

    @property
    def api_key(self) -> str:
        return self.settings.completion.openrouter_api_key

    def extra_headers(self) -> Dict[str, str]:
        return {
            'HTTP-Referer': self.settings.completion.referer,
            'X-Title': self.settings.completion.app_title,
        }
