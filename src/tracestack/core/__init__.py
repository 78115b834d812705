"""Core tracing pipeline.

This module exports the pipeline stages:
- StackTracer: Orchestrates detection, normalization, parsing and naming
- DialectDetector: Decides which engine produced an error payload
- LineNormalizer: Rewrites raw stack text into canonical lines
- FrameParser: Turns canonical lines into CallSite records
- NameResolver: Guesses names for anonymous frames from source text
- StackMonitor: Reports call-site traces for a wrapped value
"""

from tracestack.core.detector import DialectDetector, detect_dialect
from tracestack.core.dialects import DEFAULT_REGISTRY, Dialect, DialectProfile, DialectRegistry
from tracestack.core.frame_parser import FrameParser
from tracestack.core.monitor import StackMonitor, monitor, unwrap
from tracestack.core.name_resolver import NameResolver, SourceCache, find_function_name
from tracestack.core.normalizer import LineNormalizer
from tracestack.core.tracer import TRACE_FAILURE, StackTracer, TraceOptions, trace_stack

__all__ = [
    "DEFAULT_REGISTRY",
    "Dialect",
    "DialectDetector",
    "DialectProfile",
    "DialectRegistry",
    "FrameParser",
    "LineNormalizer",
    "NameResolver",
    "SourceCache",
    "StackMonitor",
    "StackTracer",
    "TRACE_FAILURE",
    "TraceOptions",
    "detect_dialect",
    "find_function_name",
    "monitor",
    "trace_stack",
    "unwrap",
]
