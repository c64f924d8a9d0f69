# karaoke_remix/utils/__init__.py
"""
Utilities package
Logging, exceptions, and string helpers
"""

from .logger import (
    get_logger,
    configure_from_settings,
    setup_logging,
    get_current_log_file,
    parse_size,
    PipelineObserver,
    LoggingObserver,
    StageTimer,
)
from .helpers import (
    normalize,
    truncate_body,
    is_success_status,
)
from .exceptions import (
    RemixError,
    InvalidRequest,
    LyricsNotFound,
    ProviderUnavailable,
    ConfigurationError,
    CompletionFailure,
)

__all__ = [
    # Logger exports
    'get_logger',
    'configure_from_settings',
    'setup_logging',
    'get_current_log_file',
    'parse_size',
    'PipelineObserver',
    'LoggingObserver',
    'StageTimer',

    # Helper exports
    'normalize',
    'truncate_body',
    'is_success_status',

    # Exceptions
    'RemixError',
    'InvalidRequest',
    'LyricsNotFound',
    'ProviderUnavailable',
    'ConfigurationError',
    'CompletionFailure',
]
