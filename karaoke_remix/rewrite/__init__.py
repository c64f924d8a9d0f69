# karaoke_remix/rewrite/__init__.py
"""
Lyric rewriting package: prompt rendering, model selection and
completion routing
"""

from .prompt import build_prompt, PROMPT_TEMPLATE
from .models import resolve_model, RewriteRequest, CompletionResult
from .backends import CompletionBackend, OpenAIBackend, OpenRouterBackend
from .router import CompletionRouter

__all__ = [
    'build_prompt',
    'PROMPT_TEMPLATE',
    'resolve_model',
    'RewriteRequest',
    'CompletionResult',
    'CompletionBackend',
    'OpenAIBackend',
    'OpenRouterBackend',
    'CompletionRouter',
]
