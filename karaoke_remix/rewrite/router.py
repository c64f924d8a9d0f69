"""
Completion routing

The namespace before the first "/" of a model identifier picks the backend
from a mapping table; namespaces without an entry go to the aggregator.
The router trusts its input: allow-list checks happen in resolve_model().
"""

from typing import Dict, Optional

import aiohttp

from ..utils.logger import get_logger
from .backends import CompletionBackend, OpenAIBackend, OpenRouterBackend
from .models import CompletionResult


class CompletionRouter:
    """
    Dispatches completions to the backend owning a model namespace

    Attributes:
        backends: Namespace -> backend table
        fallback: Backend for every namespace not in the table
    """

    def __init__(self, backends: Dict[str, CompletionBackend], fallback: CompletionBackend):
        self.backends = backends
        self.fallback = fallback
        self.logger = get_logger(__name__)

    @classmethod
    def from_settings(cls, session: aiohttp.ClientSession, settings) -> 'CompletionRouter':
        return cls(
            backends={'openai': OpenAIBackend(session, settings)},
            fallback=OpenRouterBackend(session, settings),
        )

    @staticmethod
    def namespace(model: str) -> Optional[str]:
        if '/' not in model:
            return None
        return model.split('/', 1)[0]

    def select(self, model: str) -> CompletionBackend:
        return self.backends.get(self.namespace(model), self.fallback)

    async def complete(self, model: str, prompt: str) -> CompletionResult:
        backend = self.select(model)
        self.logger.info(f"Requesting rewrite from {backend.name} using {model}")
        return await backend.complete(model, prompt)
