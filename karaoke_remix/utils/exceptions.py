"""
Exception classes for karaoke-remix.

Every failure in the rewrite pipeline is one of these exceptions. Each
class carries the HTTP status the server answers with, so the web layer
never has to guess how to map an error.

Exception Hierarchy:
    RemixError (base)
        InvalidRequest - Malformed inbound request body (400)
        LyricsNotFound - Provider has no match for the song (404)
        ProviderUnavailable - Network/parsing failure talking to a provider (500)
        ConfigurationError - Required credential or setting absent (500)
        CompletionFailure - Model call failed or returned no usable text (500)

None of these errors is retried. They are terminal for the request that
raised them.
"""


class RemixError(Exception):
    """
    Base exception for all karaoke-remix errors.

    Attributes:
        message: Human-readable error description, safe to return to callers.
        details: Optional dictionary with additional context (provider, url,
                 truncated response body). Logged, never sent to the client.
        status: HTTP-equivalent status code for this kind of failure.

    Example:
        try:
            lyrics = await pipeline.run(request)
        except RemixError as e:
            logger.error(f"Rewrite failed: {e.message}")
            return e.status
    """

    status = 500

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'provider': Lyrics provider or completion backend name
                     - 'url': Endpoint that was called
                     - 'body': Truncated upstream response body
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class InvalidRequest(RemixError):
    """
    Raised when the inbound request body cannot be used.

    Common causes:
        - Content type is not application/json
        - Body is not valid JSON, or not a JSON object
        - title, artist or theme missing or not strings
    """

    status = 400


class LyricsNotFound(RemixError):
    """
    Raised when the lyrics provider explicitly has no match.

    Also used for provider identifiers that are unknown or disabled in
    configuration, so that an unsupported provider looks exactly like a
    provider with an empty catalog.

    Example:
        raise LyricsNotFound(
            "Original lyrics not found.",
            details={'provider': 'lyrics_ovh', 'title': 'Yesterday', 'artist': 'The Beatles'}
        )
    """

    status = 404


class ProviderUnavailable(RemixError):
    """
    Raised when talking to a lyrics provider failed.

    Covers connection errors, non-success statuses on endpoints where the
    provider is expected to answer, and bodies that are not the JSON or
    markup we expected. Distinct from LyricsNotFound: the provider may well
    have the song, we just could not ask it.
    """

    pass


class ConfigurationError(RemixError):
    """
    Raised when a required credential or setting is absent.

    Missing credentials degrade to this error for the request that needed
    them; they never prevent the process from starting.

    Example:
        raise ConfigurationError(
            "AudD API token is not configured (set AUDD_API_TOKEN).",
            details={'provider': 'audd', 'missing': 'AUDD_API_TOKEN'}
        )
    """

    pass


class CompletionFailure(RemixError):
    """
    Raised when the completion backend failed or produced no usable text.

    This stage has no not-found concept: an empty choices array, an empty
    message, an upstream error object and a transport failure all end here.
    """

    pass
