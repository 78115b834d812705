"""Call-site reporting for functions and values."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from tracestack.utils.logging import LogEventNames, get_logger

if TYPE_CHECKING:
    from tracestack.core.tracer import StackTracer
    from tracestack.models.call_site import StackTrace

log = get_logger(__name__)

_MISSING = object()

TraceCallback = Callable[["StackTrace | str"], Any]


class StackMonitor:
    """Reports a stack trace to a callback every time a value is used.

    A monitored callable is called through; a monitored plain value is
    read with ``monitor()`` and replaced with ``monitor(new_value)``.
    Either way ``callback`` first receives a trace of the call site.

    Example:
        traced = tracer.monitor(save_user, lambda trace: print(trace))
        traced(user)             # prints the trace, then calls save_user
        save_user = traced.unwrap()
    """

    def __init__(
        self,
        value: Any,
        callback: TraceCallback,
        tracer: StackTracer | None = None,
    ) -> None:
        """Initialize the StackMonitor.

        Args:
            value: Callable or value to monitor; a StackMonitor is unwrapped first
            callback: Receives the trace (or the failure string) on each use
            tracer: Tracer producing the traces; a new one is created if omitted

        Raises:
            TypeError: If ``callback`` is not callable
        """
        if not callable(callback):
            raise TypeError("Callback must be a valid function")
        if tracer is None:
            from tracestack.core.tracer import StackTracer

            tracer = StackTracer()
        if isinstance(value, StackMonitor):
            value = value.unwrap()

        self._value = value
        self._callback = callback
        self._tracer = tracer
        log.debug(
            LogEventNames.MONITOR_ATTACHED,
            target=getattr(value, "__qualname__", type(value).__name__),
        )

    @property
    def wrapped(self) -> Any:
        """The monitored callable or current value."""
        return self._value

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        self._callback(self._tracer.trace())
        if callable(self._value):
            return self._value(*args, **kwargs)
        return self._access(*args)

    def _access(self, new_value: Any = _MISSING) -> Any:
        if new_value is not _MISSING:
            self._value = new_value
        return self._value

    def unwrap(self) -> Any:
        """Stop monitoring and return the original callable or current value."""
        log.debug(LogEventNames.MONITOR_DETACHED)
        return self._value

    def __repr__(self) -> str:
        return f"StackMonitor({self._value!r})"


def monitor(value: Any, callback: TraceCallback, tracer: StackTracer | None = None) -> StackMonitor:
    """Monitor ``value``, reporting each use to ``callback``."""
    return StackMonitor(value, callback, tracer)


def unwrap(handle: Any) -> Any:
    """Return the original of a monitored value; other values pass through."""
    if isinstance(handle, StackMonitor):
        return handle.unwrap()
    return handle
