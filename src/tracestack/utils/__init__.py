"""Utility functions and helpers.

This module provides various utilities for tracestack:
- errors: Exception hierarchy
- security: Same-origin checks and URL redaction
- logging: Structured logging with URL sanitization
"""

from tracestack.utils.errors import (
    ConfigurationError,
    EnvironmentMismatchError,
    FrameFormatError,
    SourceFetchError,
    TraceStackError,
)
from tracestack.utils.logging import (
    LogEventNames,
    LogFormat,
    LogLevel,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)
from tracestack.utils.security import is_same_origin, origin_of, redact_url

__all__ = [
    # Errors
    "ConfigurationError",
    "EnvironmentMismatchError",
    "FrameFormatError",
    "SourceFetchError",
    "TraceStackError",
    # Logging
    "LogEventNames",
    "LogFormat",
    "LogLevel",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
    # Security
    "is_same_origin",
    "origin_of",
    "redact_url",
]
