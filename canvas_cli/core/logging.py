"""Logging setup for the canvas CLI.

The CLI logs to stderr so that command output on stdout stays clean.
HTTP client libraries are noisy at INFO; their records are downgraded
to DEBUG and only surface with ``--verbose``.
"""

import logging

NOISY_HTTP_LOGGERS = (
    "httpx",
    "httpcore",
    "httpcore.http11",
    "httpcore.connection",
    "keyring",
)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def set_noisy_http_logger_levels(current_log_level: str) -> None:
    """Ensure HTTP client noise only surfaces at DEBUG level."""

    noisy_level = logging.DEBUG if current_log_level == "DEBUG" else logging.WARNING
    for logger_name in NOISY_HTTP_LOGGERS:
        logging.getLogger(logger_name).setLevel(noisy_level)


class HttpRequestLogDowngradeFilter(logging.Filter):
    """Downgrade noisy third-party HTTP logs to DEBUG."""

    def __init__(self, *prefixes: str) -> None:
        super().__init__()
        self.prefixes = prefixes

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno == logging.INFO:
            for prefix in self.prefixes:
                if record.name.startswith(prefix):
                    record.levelno = logging.DEBUG
                    record.levelname = logging.getLevelName(logging.DEBUG)
                    break
        return True


def parse_log_level(value: str | None, default: str = "WARNING") -> str:
    """Parse a log level name, ignoring trailing comments (e.g. from .env files)."""
    if not value or not value.split():
        return default
    level = value.split()[0].upper()
    return level if level in VALID_LOG_LEVELS else default


def configure_root_logging(level: str = "WARNING") -> logging.Handler:
    """Install the CLI log handler on the root logger.

    Replaces any handlers already present, so calling it twice is safe.

    Returns:
        The installed handler
    """
    log_level = parse_log_level(level)

    handler = logging.StreamHandler()
    handler.addFilter(HttpRequestLogDowngradeFilter(*NOISY_HTTP_LOGGERS))
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level))

    set_noisy_http_logger_levels(log_level)
    return handler
