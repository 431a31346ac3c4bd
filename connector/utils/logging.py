"""Structured logging for jarvis-connector.

Provides JSON or text formatted logging with context support for
following checks and submissions through the dispatch engine.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

# LogRecord attributes that are not user-supplied ``extra`` context.
_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "created", "filename",
    "funcName", "levelname", "levelno", "lineno",
    "module", "msecs", "pathname", "process",
    "processName", "relativeCreated", "stack_info",
    "thread", "threadName", "exc_info", "exc_text",
    "message", "asctime", "taskName",
))

# Third-party loggers that log every request at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore")


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(self, include_extras: bool = True):
        """Initialize JSON formatter.

        Args:
            include_extras: Include extra fields in output
        """
        super().__init__()
        self._include_extras = include_extras

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted string
        """
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }

        # Add location info
        if record.pathname:
            log_data["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add extra fields
        if self._include_extras:
            extras = {}
            for key, value in record.__dict__.items():
                if key in _RESERVED_ATTRS:
                    continue
                try:
                    json.dumps(value)  # Check if serializable
                    extras[key] = value
                except (TypeError, ValueError):
                    extras[key] = str(value)

            if extras:
                log_data["context"] = extras

        return json.dumps(log_data)


class TextFormatter(logging.Formatter):
    """Text formatter with context support."""

    def __init__(self):
        """Initialize text formatter."""
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as text.

        Args:
            record: Log record to format

        Returns:
            Formatted string
        """
        # Get base formatted message
        base = super().format(record)

        # Add context if present
        extras = [
            f"{key}={value}"
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS
        ]

        if extras:
            return f"{base} | {' '.join(extras)}"

        return base


def setup_logging(
    level: str = "INFO",
    format: str = "text",
    file: str | Path | None = None,
    rotate_size_mb: int = 10,
    retain_count: int = 5,
) -> None:
    """Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: Log format ('json' or 'text')
        file: Log file path (None for stdout only)
        rotate_size_mb: Log rotation size in MB
        retain_count: Number of rotated files to retain
    """
    # Get root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers
    root_logger.handlers.clear()

    # Create formatter
    if format == "json":
        formatter = JSONFormatter()
    else:
        formatter = TextFormatter()

    # Console handler (stderr, so --list output on stdout stays clean)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler (if specified)
    if file:
        file_path = Path(file)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=rotate_size_mb * 1024 * 1024,
            backupCount=retain_count,
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Request-level HTTP logging only when debugging
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(
            logging.DEBUG if root_logger.level <= logging.DEBUG else logging.WARNING
        )

