"""Stack tracing pipeline.

This module implements the StackTracer, which wires the dialect detector,
line normalizer, frame parser and name resolver together:

    payload -> dialect -> canonical lines -> limit -> CallSite records

A trace either succeeds with a StackTrace or fails with the TRACE_FAILURE
string. Nothing raised inside the pipeline reaches the caller.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from tracestack.config.schema import TracerConfig
from tracestack.core.detector import DialectDetector
from tracestack.core.dialects import DEFAULT_REGISTRY, Dialect, DialectRegistry
from tracestack.core.frame_parser import FrameParser
from tracestack.core.live_frames import caller_frame, walk_live_frames
from tracestack.core.monitor import StackMonitor, TraceCallback
from tracestack.core.name_resolver import NameResolver
from tracestack.core.normalizer import LineNormalizer
from tracestack.models.call_site import StackTrace
from tracestack.models.payload import ErrorPayload
from tracestack.utils.logging import LogEventNames, get_logger

log = get_logger(__name__)

TRACE_FAILURE = "tracestack may not be configured to work properly with this environment"

# Innermost captured frames that belong to the capture hook itself
CAPTURE_FRAMES = 3

# Produces an error payload carrying the current stack
Capture = Callable[[], Any]


def _empty_capture() -> dict[str, Any]:
    # A bare Python process has no stack text; this detects as ``other``
    return {}


class TraceOptions(BaseModel):
    """Options for a single trace.

    Attributes:
        e: Error-like object to trace; captured from the environment if None
        guess: Resolve anonymous function names immediately
        mode: Dialect override; unknown names fall back to detection
        limit: Maximum number of frames; None or non-positive for all
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    e: Any = None
    guess: bool = True
    mode: str | None = None
    limit: int | None = None

    @field_validator("limit")
    @classmethod
    def normalize_limit(cls, v: int | None) -> int | None:
        """Treat non-positive limits as no limit."""
        if v is not None and v <= 0:
            return None
        return v


class StackTracer:
    """Turns error payloads into normalized stack traces.

    A tracer keeps two cached dialects. The first error payload it is
    given decides the dialect for all later payloads, and the first
    capture decides the dialect for traces made without a payload. A trace
    that names a mode explicitly bypasses both.

    Example:
        tracer = StackTracer()
        trace = tracer.trace({"stack": "TypeError: x\\n    at foo (http://a/b.js:1:2)"})
        if isinstance(trace, StackTrace):
            print(trace.render("TypeError: x"))
    """

    def __init__(
        self,
        config: TracerConfig | None = None,
        *,
        registry: DialectRegistry = DEFAULT_REGISTRY,
        resolver: NameResolver | None = None,
        capture: Capture | None = None,
        detector: DialectDetector | None = None,
        environment: DialectDetector | None = None,
    ) -> None:
        """Initialize the StackTracer.

        Args:
            config: Tracer configuration; defaults are read from the environment
            registry: Dialect profiles available to this tracer
            resolver: Name resolver for anonymous frames
            capture: Hook that captures an error payload from the running
                environment when a trace is not given one. Its three innermost
                frames are treated as capture machinery and dropped.
            detector: Dialect detector caching the dialect of given payloads
            environment: Dialect detector caching the dialect of captures
        """
        self._config = config or TracerConfig()
        self._registry = registry
        self._resolver = resolver or NameResolver(self._config.resolver)
        self._capture = capture or _empty_capture
        self._detector = detector or DialectDetector()
        self._environment = environment or DialectDetector()
        self._normalizer = LineNormalizer()
        self._parser = FrameParser(self._resolver)

    @property
    def config(self) -> TracerConfig:
        """The tracer configuration."""
        return self._config

    @property
    def detector(self) -> DialectDetector:
        """The detector caching the dialect of payloads given to trace()."""
        return self._detector

    @property
    def environment(self) -> DialectDetector:
        """The detector caching the dialect of captured payloads."""
        return self._environment

    @property
    def resolver(self) -> NameResolver:
        """The resolver used for anonymous frames."""
        return self._resolver

    def trace(
        self,
        e: Any = None,
        *,
        guess: bool | None = None,
        mode: str | None = None,
        limit: int | None = None,
    ) -> StackTrace | str:
        """Trace the stack of ``e``, or of the caller if ``e`` is None.

        Args:
            e: Error-like object (mapping, object or ErrorPayload)
            guess: Resolve anonymous names now; defaults to the config
            mode: Dialect name overriding detection for this trace
            limit: Maximum number of frames; defaults to the config

        Returns:
            StackTrace on success, TRACE_FAILURE on any failure
        """
        if guess is None:
            guess = self._config.guess
        if mode is None and self._config.mode is not None:
            mode = str(self._config.mode)
        if limit is None:
            limit = self._config.limit
        limit = limit if limit and limit > 0 else 0

        try:
            return self._run(e, guess=guess, mode=mode, limit=limit)
        except Exception as exc:
            log.warning(
                LogEventNames.TRACE_FAILED,
                mode=mode,
                exception_type=type(exc).__name__,
                exception_message=str(exc),
            )
            return TRACE_FAILURE

    def run(self, options: TraceOptions | Mapping[str, Any] | None = None) -> StackTrace | str:
        """Trace with a TraceOptions object or mapping of options."""
        try:
            if not isinstance(options, TraceOptions):
                options = TraceOptions.model_validate(dict(options or {}))
        except Exception as exc:
            log.warning(
                LogEventNames.TRACE_FAILED,
                exception_type=type(exc).__name__,
                exception_message=str(exc),
            )
            return TRACE_FAILURE
        return self.trace(options.e, guess=options.guess, mode=options.mode, limit=options.limit)

    def monitor(self, value: Any, callback: TraceCallback) -> StackMonitor:
        """Wrap ``value`` so every use reports a trace to ``callback``.

        Args:
            value: Callable to call through, or plain value to guard
            callback: Receives this tracer's trace on every use

        Returns:
            The StackMonitor handle; ``unwrap()`` gives ``value`` back
        """
        return StackMonitor(value, callback, self)

    def _select_dialect(self, e: Any, mode: str | None) -> tuple[Dialect, Any]:
        """Pick the dialect for a trace and the payload to read, if known yet."""
        override = self._registry.resolve_mode(mode)
        if override is not None:
            log.debug(LogEventNames.DIALECT_OVERRIDDEN, dialect=str(override))
            return override, e
        if mode:
            log.debug(LogEventNames.UNKNOWN_MODE_IGNORED, mode=mode)

        if e is not None:
            return self._detector.detect(e), e

        if self._environment.cached is not None:
            return self._environment.cached, None
        captured = self._capture()
        return self._environment.detect(captured), captured

    def _run(self, e: Any, *, guess: bool, mode: str | None, limit: int) -> StackTrace:
        dialect, source = self._select_dialect(e, mode)
        profile = self._registry.get(dialect)

        if profile.live:
            lines = walk_live_frames(caller_frame(), limit)
        else:
            shift = 0 if e is not None else CAPTURE_FRAMES
            raw = source if source is not None else self._capture()
            payload = ErrorPayload.coerce(raw)
            widened = limit + shift if limit else 0
            lines = self._normalizer.normalize(payload, profile, widened)
            lines = lines[shift : shift + limit] if limit else lines[shift:]

        frames = self._parser.parse_all(lines, guess=guess)
        log.debug(LogEventNames.TRACE_COMPLETE, dialect=str(dialect), frames=len(frames))
        return StackTrace(frames)


_default_tracer: StackTracer | None = None
_default_lock = threading.Lock()


def get_default_tracer() -> StackTracer:
    """Get or create the shared tracer used by trace_stack()."""
    global _default_tracer
    if _default_tracer is None:
        with _default_lock:
            if _default_tracer is None:
                _default_tracer = StackTracer()
    return _default_tracer


def trace_stack(
    options: TraceOptions | Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> StackTrace | str:
    """Trace a stack with the shared tracer.

    Options may be given as a TraceOptions, a mapping, or keyword
    arguments (``e``, ``guess``, ``mode``, ``limit``).

    Returns:
        StackTrace on success, TRACE_FAILURE on any failure

    Example:
        trace = trace_stack(e=error_report, guess=False)
        if trace == TRACE_FAILURE:
            ...
    """
    if options is None:
        options = kwargs
    elif kwargs:
        base = options.model_dump() if isinstance(options, TraceOptions) else dict(options)
        options = {**base, **kwargs}
    return get_default_tracer().run(options)
