"""Exception hierarchy for the tracestack pipeline.

Only ConfigurationError subclasses are meant to reach callers: they signal
programmer errors such as handing the frame parser something that is not a
canonical line. Everything else is raised inside dialect or resolver code
and handled at the tracer boundary.
"""

from __future__ import annotations


class TraceStackError(Exception):
    """Base exception for all tracestack errors."""


class ConfigurationError(TraceStackError, TypeError):
    """A caller passed input the pipeline cannot work with."""


class FrameFormatError(ConfigurationError):
    """A line is not in the canonical ``name@file:line:column`` format.

    Attributes:
        line: The offending value, if one was given.
    """

    def __init__(self, message: str, line: object = None) -> None:
        super().__init__(message)
        self.line = line


class EnvironmentMismatchError(TraceStackError):
    """The error payload lacks a field the selected dialect needs.

    Attributes:
        dialect: Name of the dialect that was selected.
        field: Payload field that was missing or empty.
    """

    def __init__(self, dialect: str, field: str) -> None:
        super().__init__(f"Dialect {dialect!r} requires the {field!r} field")
        self.dialect = dialect
        self.field = field


class SourceFetchError(TraceStackError):
    """Source text for name guessing could not be fetched."""
