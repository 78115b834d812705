"""Normalized stack traces from engine-specific error reports."""

from tracestack._version import __version__
from tracestack.core import (
    TRACE_FAILURE,
    Dialect,
    StackMonitor,
    StackTracer,
    TraceOptions,
    monitor,
    trace_stack,
    unwrap,
)
from tracestack.models import CallSite, ErrorPayload, Resolution, StackTrace

__all__ = [
    "CallSite",
    "Dialect",
    "ErrorPayload",
    "Resolution",
    "StackMonitor",
    "StackTrace",
    "StackTracer",
    "TRACE_FAILURE",
    "TraceOptions",
    "__version__",
    "monitor",
    "trace_stack",
    "unwrap",
]
