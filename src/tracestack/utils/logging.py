"""Structured logging configuration with URL sanitization.

This module provides logging configuration for tracestack:
- Configurable log levels and output formats (JSON/console)
- Credentials and query strings stripped from logged URLs
- Context injection for correlation

Module loggers wrap stdlib loggers under the ``tracestack`` namespace, which
carries only a NullHandler. Events follow the application's stdlib logging
setup; without one nothing is printed. Applications that want tracestack
output call configure_logging() once at startup.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from enum import StrEnum
from typing import Any, cast

import structlog
from structlog.typing import WrappedLogger

from tracestack.utils.security import redact_urls

logging.getLogger("tracestack").addHandler(logging.NullHandler())


class LogFormat(StrEnum):
    """Log output format options."""

    JSON = "json"
    CONSOLE = "console"


class LogLevel(StrEnum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def sanitize_log_value(value: Any) -> Any:
    """Recursively strip credentials and query strings from URLs.

    Args:
        value: Value to sanitize (can be nested dict/list/str)

    Returns:
        Sanitized value of the same shape
    """
    if isinstance(value, str):
        return redact_urls(value)
    elif isinstance(value, dict):
        return {k: sanitize_log_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return type(value)(sanitize_log_value(v) for v in value)
    else:
        return value


def url_sanitizer(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Structlog processor that sanitizes URLs in every log entry.

    Source URLs reported by browsers can carry session tokens in their
    query strings, so they are reduced to scheme, host and path.

    Args:
        logger: Logger instance (unused)
        method_name: Log method name (unused)
        event_dict: Event dictionary to process

    Returns:
        Sanitized event dictionary
    """
    result = sanitize_log_value(event_dict)
    return cast(MutableMapping[str, Any], result)


def add_context_processor(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Add the library name and version to all log entries."""
    event_dict["service"] = "tracestack"

    try:
        from tracestack._version import __version__

        event_dict["version"] = __version__
    except (ImportError, RuntimeError):
        pass

    return event_dict


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    log_format: LogFormat | str = LogFormat.JSON,
) -> None:
    """Configure structured logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format (json or console)

    Example:
        # For development (colored console output)
        configure_logging(level="DEBUG", log_format="console")

        # For production (JSON for log aggregation)
        configure_logging(level="INFO", log_format="json")
    """
    if isinstance(level, str):
        level = LogLevel(level.upper())
    if isinstance(log_format, str):
        log_format = LogFormat(log_format.lower())

    numeric_level = getattr(logging, level.value)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_context_processor,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        url_sanitizer,
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == LogFormat.JSON:
        shared_processors.append(structlog.processors.JSONRenderer())
    else:
        shared_processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True, exception_formatter=structlog.dev.plain_traceback
            )
        )

    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)

    logging.basicConfig(
        format="%(message)s",
        level=numeric_level,
        handlers=[console_handler],
        force=True,
    )


def get_logger(name: str) -> WrappedLogger:
    """Get a structured logger backed by the stdlib logger ``name``.

    Args:
        name: Logger name, normally the calling module's ``__name__``

    Returns:
        structlog logger that emits through stdlib logging
    """
    return cast(WrappedLogger, structlog.wrap_logger(logging.getLogger(name)))


def bind_context(**kwargs: Any) -> None:
    """Bind contextual variables for all subsequent log calls.

    Example:
        bind_context(request_id="r-123")
        tracer.trace(error)  # log entries include request_id
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove contextual variables."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound contextual variables."""
    structlog.contextvars.clear_contextvars()


class LogEventNames:
    """Standard log event names used across tracestack."""

    # Dialect detection
    DIALECT_DETECTED = "dialect_detected"
    DIALECT_OVERRIDDEN = "dialect_overridden"
    UNKNOWN_MODE_IGNORED = "unknown_mode_ignored"

    # Pipeline
    TRACE_COMPLETE = "trace_complete"
    TRACE_FAILED = "trace_failed"

    # Name guessing
    NAME_GUESSED = "name_guessed"
    NAME_GUESS_SKIPPED = "name_guess_skipped"
    NAME_GUESS_FAILED = "name_guess_failed"

    # Source cache
    SOURCE_CACHE_HIT = "source_cache_hit"
    SOURCE_FETCHED = "source_fetched"
    SOURCE_FETCH_ERROR = "source_fetch_error"
    SOURCE_FETCH_RETRY = "source_fetch_retry"

    # Monitoring
    MONITOR_ATTACHED = "monitor_attached"
    MONITOR_DETACHED = "monitor_detached"
