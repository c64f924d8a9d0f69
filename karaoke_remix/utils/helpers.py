"""
Utility functions and helpers for karaoke-remix
String normalization for song lookups and small formatting helpers
"""

import re


# Parenthetical or bracketed annotations: "(Remastered 2009)", "[Live]"
ANNOTATION_PATTERN = re.compile(r'\(.*?\)|\[.*?\]')

# Collaborator suffix marker, matched case-sensitively
FEATURING_TOKEN = 'feat.'

MAX_LOGGED_BODY = 200


def normalize(raw: str) -> str:
    """
    Normalize a song title or artist name for lookups and prompts

    Removes every parenthetical or bracketed annotation, drops everything
    from the first "feat." onward, then trims surrounding whitespace.
    Pure and idempotent; never raises.

    Args:
        raw: Title or artist exactly as the user supplied it

    Returns:
        Cleaned string (empty for empty or non-string input)

    Example:
        >>> normalize("Yesterday (Remastered 2009)")
        'Yesterday'
        >>> normalize("Stay feat. Justin Bieber")
        'Stay'
    """
    if not isinstance(raw, str) or not raw:
        return ""

    cleaned = ANNOTATION_PATTERN.sub('', raw)
    cleaned = cleaned.split(FEATURING_TOKEN, 1)[0]
    return cleaned.strip()


def truncate_body(body, limit: int = MAX_LOGGED_BODY) -> str:
    """
    Shorten an upstream response body for log messages

    Args:
        body: Response text, or raw bytes that failed to decode
        limit: Maximum number of characters kept

    Returns:
        The body, cut to limit characters with an ellipsis when longer
    """
    if body is None:
        return ""
    if isinstance(body, (bytes, bytearray)):
        body = body.decode("utf-8", errors="replace")
    body = body.strip()
    if len(body) <= limit:
        return body
    return body[:limit] + "..."


def is_success_status(status: int) -> bool:
    """True for 2xx HTTP statuses"""
    return 200 <= status < 300
