"""Dialect detection from the shape of an error payload.

Browsers disagree on how they print stacks, but each one leaves its own
marker properties on error objects. Detection looks only at which of those
properties are present, never at the stack text itself.
"""

from __future__ import annotations

import threading
from typing import Any

from tracestack.core.dialects import NEW_LINES, Dialect
from tracestack.models.payload import ErrorPayload
from tracestack.utils.logging import LogEventNames, get_logger

log = get_logger(__name__)

# Only Opera 11 stack traces link frames with this phrase
OPERA11_MARKER = "called from line"


def detect_dialect(raw: Any) -> Dialect:
    """Determine which dialect produced an error payload.

    Markers are tested in a fixed priority order. Presence follows the
    source runtime's truthiness, so empty strings and zero count as absent.

    Args:
        raw: Error-like object (mapping, object or ErrorPayload)

    Returns:
        The detected Dialect; Dialect.OTHER if no marker is present
    """
    payload = ErrorPayload.coerce(raw)

    if payload.stack:
        if payload.arguments:
            return Dialect.CHROME
        if payload.source_url:
            return Dialect.SAFARI
        if payload.number:
            return Dialect.IE
        if payload.file_name:
            return Dialect.FIREFOX
        if payload.message and payload.stacktrace:
            if OPERA11_MARKER not in payload.stacktrace:
                return Dialect.OPERA10B
            return Dialect.OPERA11
        return Dialect.CHROME

    if payload.message and payload.opera_sourceloc:
        if not payload.stacktrace:
            return Dialect.OPERA9
        message_lines = len(NEW_LINES.split(payload.message))
        if message_lines > 1 and message_lines > len(NEW_LINES.split(payload.stacktrace)):
            return Dialect.OPERA9
        return Dialect.OPERA10A

    return Dialect.OTHER


class DialectDetector:
    """Detects the dialect once and remembers it.

    A detector stands for one runtime environment: the first payload it
    sees decides the dialect, and every later call returns that answer.

    Example:
        detector = DialectDetector()
        detector.detect({"stack": "...", "arguments": ["x"]})  # Dialect.CHROME
        detector.detect({})  # still Dialect.CHROME
    """

    def __init__(self, dialect: Dialect | None = None) -> None:
        """Initialize the detector.

        Args:
            dialect: Known dialect to start with, skipping detection
        """
        self._dialect = dialect
        self._lock = threading.Lock()

    @property
    def cached(self) -> Dialect | None:
        """The remembered dialect, or None before the first detection."""
        return self._dialect

    def detect(self, raw: Any) -> Dialect:
        """Return the cached dialect, detecting it from ``raw`` on first use."""
        if self._dialect is not None:
            return self._dialect

        with self._lock:
            # First writer wins
            if self._dialect is None:
                self._dialect = detect_dialect(raw)
                log.debug(LogEventNames.DIALECT_DETECTED, dialect=str(self._dialect))
            return self._dialect

    def reset(self) -> None:
        """Forget the cached dialect."""
        with self._lock:
            self._dialect = None
