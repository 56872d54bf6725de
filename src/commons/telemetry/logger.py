"""Structured logging with JSON output and request-scoped context."""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import IO, Any, ClassVar

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
log_context_var: ContextVar[dict[str, Any]] = ContextVar("log_context")

REDACTED = "[redacted]"

# Extra keys whose values must never reach a log sink
SENSITIVE_KEYS = frozenset(
    {"authorization", "token", "jwt", "secret", "secret_key", "password"}
)

_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


def get_correlation_id() -> str | None:
    """Get the current correlation ID."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current context.

    Args:
        correlation_id: Optional correlation ID. Generated if not provided.

    Returns:
        The correlation ID that was set.
    """
    cid = correlation_id or str(uuid.uuid4())
    correlation_id_var.set(cid)
    return cid


def get_log_context() -> dict[str, Any]:
    """Get a copy of the fields attached to every log line in this context."""
    return dict(log_context_var.get({}))


def set_log_context(**kwargs: Any) -> None:
    """Attach fields to every subsequent log line in this context."""
    log_context_var.set({**log_context_var.get({}), **kwargs})


def clear_log_context() -> None:
    log_context_var.set({})


def record_extras(record: logging.LogRecord) -> dict[str, Any]:
    """Fields passed through ``extra=``, with credentials masked."""
    return {
        key: REDACTED if key.lower() in SENSITIVE_KEYS else value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_ATTRS
    }


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, UTC)


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def __init__(self, *, include_path: bool = True) -> None:
        """Initialize the JSON formatter.

        Args:
            include_path: Include file path and line number.
        """
        super().__init__()
        self.include_path = include_path

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _timestamp(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.include_path:
            entry["path"] = f"{record.pathname}:{record.lineno}"

        cid = get_correlation_id()
        if cid:
            entry["correlation_id"] = cid

        context = get_log_context()
        if context:
            entry["context"] = context

        entry.update(record_extras(record))

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Colored single-line output for local development.

    Context and extra fields are appended as ``key=value`` pairs.
    """

    COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET: ClassVar[str] = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        parts = [
            _timestamp(record).strftime("%Y-%m-%d %H:%M:%S"),
            f"{color}{record.levelname:8}{self.RESET}",
            f"[{record.name}]",
        ]

        cid = get_correlation_id()
        if cid:
            parts.append(f"[{cid[:8]}]")

        parts.append(record.getMessage())

        fields = {**get_log_context(), **record_extras(record)}
        parts.extend(f"{key}={value}" for key, value in fields.items())

        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(
    level: str = "INFO",
    format_type: str = "json",
    logger_name: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Install a single stream handler on a logger.

    Calling it again replaces the handler rather than adding a second one.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        format_type: 'json' or 'text'.
        logger_name: Logger to configure; the root logger if None.
        stream: Where to write; stdout by default.

    Returns:
        The configured logger.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(JsonFormatter() if format_type == "json" else TextFormatter())

    logger = logging.getLogger(logger_name)
    logger.setLevel(numeric_level)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger by name (usually ``__name__``)."""
    return logging.getLogger(name)
