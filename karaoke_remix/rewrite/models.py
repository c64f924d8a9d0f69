"""
Model selection and completion data types
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from ..utils.exceptions import RemixError
from .prompt import build_prompt


def resolve_model(requested: Optional[str], allowed: Sequence[str], default: str) -> str:
    """
    Pick the model for a request

    The requested identifier is used only when it is an exact member of the
    allow-list; anything else (missing, empty, misspelled, different case)
    falls back to the default.

    Args:
        requested: Value of the "x-model" request header, if any
        allowed: Allow-listed model identifiers
        default: Fallback model identifier

    Returns:
        Model identifier to send to a completion backend
    """
    if requested and requested in allowed:
        return requested
    return default


@dataclass(frozen=True)
class RewriteRequest:
    """
    Everything a completion needs, assembled by the pipeline

    Attributes:
        title: Cleaned title
        artist: Cleaned artist
        theme: Theme text exactly as supplied
        original_lyrics: Lyrics fetched from a provider or the cache
        model: Resolved, allow-listed model identifier; set once the
            model stage has run
    """
    title: str
    artist: str
    theme: str
    original_lyrics: str
    model: Optional[str] = None

    def render_prompt(self) -> str:
        return build_prompt(self.title, self.artist, self.theme, self.original_lyrics)


@dataclass(frozen=True)
class CompletionResult:
    """
    Outcome of one completion call

    Holds either non-empty text or the error that prevented it.
    """
    text: Optional[str] = None
    error: Optional[RemixError] = None
    backend: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.text is not None
