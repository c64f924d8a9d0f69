"""
Logging configuration and utilities for karaoke-remix
Provides colored console output, rotating file logging, and the stage hooks
the rewrite pipeline reports through
"""

import logging
import logging.handlers
import re
import sys
import time
from pathlib import Path
from typing import Optional
import colorama
from colorama import Fore, Back, Style


# Initialize colorama for Windows compatibility
colorama.init()


# Libraries that are chatty at INFO/DEBUG; capped at WARNING
EXTERNAL_LIBS = [
    'asyncio', 'aiohttp.client', 'aiohttp.internal', 'charset_normalizer',
    'urllib3', 'bs4',
]

FILE_LOG_FORMAT = '%(asctime)s | %(name)-30s | %(levelname)-8s | %(funcName)-20s | %(message)s'
FILE_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
CONSOLE_LOG_FORMAT = '%(levelname)s: %(message)s'


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colored output for console"""

    # Color mapping for log levels
    COLORS = {
        'DEBUG': Fore.CYAN,
        'INFO': Fore.GREEN,
        'WARNING': Fore.YELLOW,
        'ERROR': Fore.RED,
        'CRITICAL': Fore.RED + Back.WHITE + Style.BRIGHT,
    }

    def __init__(self, fmt: Optional[str] = None, use_colors: bool = True):
        """
        Initialize colored formatter

        Args:
            fmt: Log format string
            use_colors: Whether to use colored output
        """
        super().__init__()
        self.use_colors = use_colors
        self.fmt = fmt or CONSOLE_LOG_FORMAT

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors"""
        formatter = logging.Formatter(self.fmt)
        if self.use_colors and record.levelname in self.COLORS:
            # Copy the record so other handlers see the plain level name
            record_copy = logging.makeLogRecord(record.__dict__)
            record_copy.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{Style.RESET_ALL}"
            return formatter.format(record_copy)
        return formatter.format(record)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    console_output: bool = True,
    colored_output: bool = True,
    max_size: str = "10MB",
    backup_count: int = 3
) -> None:
    """
    Setup application logging configuration

    Args:
        level: Logging level for the console (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (None to disable file logging)
        console_output: Enable console logging
        colored_output: Enable colored console output
        max_size: Maximum log file size before rotation
        backup_count: Number of backup log files to keep
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture everything, filter at handler level

    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(ColoredFormatter(use_colors=colored_output))
        root_logger.addHandler(console_handler)

    # File handler with full detail logging
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=parse_size(max_size),
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(fmt=FILE_LOG_FORMAT, datefmt=FILE_DATE_FORMAT))
        root_logger.addHandler(file_handler)

    for lib in EXTERNAL_LIBS:
        logging.getLogger(lib).setLevel(logging.WARNING)

    logger = logging.getLogger('karaoke_remix')
    logger.debug(f"Logging initialized - Level: {level}, Console: {console_output}, File: {log_file}")


def get_current_log_file() -> Optional[Path]:
    """
    Get the current log file path from active file handlers

    Returns:
        Path to current log file or None if no file logging
    """
    for handler in logging.getLogger().handlers:
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            return Path(handler.baseFilename)
    return None


def parse_size(size_str: str) -> int:
    """
    Parse size string to bytes

    Args:
        size_str: Size string like "10MB", "1GB", "500KB"

    Returns:
        Size in bytes

    Raises:
        ValueError: If the string is not a number followed by a unit
    """
    size_str = size_str.upper().strip()

    multipliers = {
        'B': 1,
        'KB': 1024,
        'MB': 1024 ** 2,
        'GB': 1024 ** 3,
        'TB': 1024 ** 4,
    }

    match = re.match(r'^(\d+(?:\.\d+)?)\s*([KMGT]?B)$', size_str)
    if not match:
        raise ValueError(f"Invalid size format: {size_str}")

    number, unit = match.groups()
    return int(float(number) * multipliers[unit])


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance for a module

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def configure_from_settings(settings=None) -> None:
    """
    Configure logging from application settings

    Args:
        settings: Settings instance; the global one when omitted
    """
    if settings is None:
        from ..config.settings import get_settings
        settings = get_settings()

    log_file_path = None
    if settings.logging.file:
        if Path(settings.logging.file).is_absolute():
            log_file_path = settings.logging.file
        else:
            log_file_path = settings.get_config_directory() / settings.logging.file

    setup_logging(
        level=settings.logging.level,
        log_file=str(log_file_path) if log_file_path else None,
        console_output=settings.logging.console_output,
        colored_output=settings.logging.colored_output,
        max_size=settings.logging.max_size,
        backup_count=settings.logging.backup_count
    )


class PipelineObserver:
    """
    Receives one event per pipeline stage boundary

    Subclass and override stage_finished() to export stage timings
    elsewhere. The base class ignores every event.
    """

    def stage_finished(self, stage: str, outcome: str, elapsed: float) -> None:
        """
        Called when a stage completes

        Args:
            stage: Stage name (normalize, cache, provider, prompt, model, completion, catalog)
            outcome: Short outcome label (ok, hit, miss, not_found, error, ...)
            elapsed: Stage latency in seconds
        """
        pass


class LoggingObserver(PipelineObserver):
    """Writes one leveled log line per stage"""

    # Outcomes that are not plain success
    WARNING_OUTCOMES = {'not_found', 'fallback', 'skipped'}
    ERROR_OUTCOMES = {'error', 'config_error'}

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_logger('karaoke_remix.pipeline')

    def stage_finished(self, stage: str, outcome: str, elapsed: float) -> None:
        if outcome in self.ERROR_OUTCOMES:
            level = logging.ERROR
        elif outcome in self.WARNING_OUTCOMES:
            level = logging.WARNING
        else:
            level = logging.DEBUG
        self.logger.log(level, f"stage={stage} outcome={outcome} elapsed={elapsed * 1000:.1f}ms")


class StageTimer:
    """
    Context manager timing one pipeline stage

    The outcome defaults to "ok"; set timer.outcome inside the block to
    report something else. A block that exits with an exception reports
    "error" unless the outcome was already changed.

    Example:
        with StageTimer(observer, "provider") as timer:
            result = await provider.fetch(title, artist)
            timer.outcome = "not_found" if result.is_not_found else "ok"
    """

    def __init__(self, observer: PipelineObserver, stage: str):
        self.observer = observer
        self.stage = stage
        self.outcome = "ok"
        self.start_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None and self.outcome == "ok":
            self.outcome = "error"
        self.observer.stage_finished(self.stage, self.outcome, time.perf_counter() - self.start_time)
        return False
