"""Canonical lines from the live Python call chain.

The ``other`` dialect has no stack text to parse. Instead it walks the
interpreter's frames from the caller outward and formats each one as
``name(args)@file:line:``, rendering argument values the way browser stack
tracers did for engines without a stack property.
"""

from __future__ import annotations

import inspect
from collections.abc import Mapping, Sequence
from types import FrameType
from typing import Any

from tracestack.core.dialects import GLOBAL_CODE
from tracestack.models.call_site import ANONYMOUS

# Deepest chain the walker will follow
MAX_LIVE_FRAMES = 10

PACKAGE = __name__.partition(".")[0]


class _Undefined:
    """Marker for a parameter with no bound value."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


def stringify_argument(arg: Any) -> str:
    """Render one argument value for a live frame signature."""
    if arg is UNDEFINED:
        return "undefined"
    if arg is None:
        return "null"
    if isinstance(arg, str):
        return f'"{arg}"'
    if isinstance(arg, (int, float)):
        return str(arg)
    if isinstance(arg, (list, tuple)):
        if len(arg) < 3:
            return f"[{stringify_arguments(arg)}]"
        return f"[{stringify_arguments(arg[:1])}...{stringify_arguments(arg[-1:])}]"
    if isinstance(arg, Mapping):
        return "#object"
    if callable(arg):
        return "#function"
    return "#object"


def stringify_arguments(args: Sequence[Any]) -> str:
    """Render argument values as a comma-separated list.

    Example:
        stringify_arguments([None, "a", [1, 2, 3, 4], {"k": 1}, len])
        # 'null,"a",[1...4],#object,#function'
    """
    return ",".join(stringify_argument(arg) for arg in args)


def frame_arguments(frame: FrameType) -> list[Any]:
    """Return the values a frame's parameters are currently bound to."""
    info = inspect.getargvalues(frame)
    values = [info.locals.get(name, UNDEFINED) for name in info.args]
    if info.varargs:
        extra = info.locals.get(info.varargs, ())
        if isinstance(extra, tuple):
            values.extend(extra)
    return values


def frame_function_name(frame: FrameType) -> str:
    """Qualified name of the function a frame is executing."""
    code = frame.f_code
    if code.co_name == "<module>":
        return GLOBAL_CODE
    if code.co_name == "<lambda>":
        return ANONYMOUS
    return getattr(code, "co_qualname", code.co_name)


def format_live_frame(frame: FrameType) -> str:
    """Format a frame as a canonical line without a column."""
    name = frame_function_name(frame)
    args = stringify_arguments(frame_arguments(frame))
    return f"{name}({args})@{frame.f_code.co_filename}:{frame.f_lineno}:"


def is_internal(frame: FrameType) -> bool:
    """True if ``frame`` runs code from this package."""
    module = frame.f_globals.get("__name__", "")
    return module == PACKAGE or module.startswith(PACKAGE + ".")


def caller_frame() -> FrameType | None:
    """Return the innermost frame outside this package."""
    frame = inspect.currentframe()
    try:
        while frame is not None and is_internal(frame):
            frame = frame.f_back
        return frame
    finally:
        del frame


def walk_live_frames(start: FrameType | None, limit: int = 0) -> list[str]:
    """Format the call chain from ``start`` outward.

    Args:
        start: Innermost frame to report
        limit: Maximum number of frames; capped at MAX_LIVE_FRAMES

    Returns:
        Canonical lines, innermost first
    """
    max_frames = limit if 0 < limit < MAX_LIVE_FRAMES else MAX_LIVE_FRAMES
    lines: list[str] = []
    frame = start
    while frame is not None and len(lines) < max_frames:
        lines.append(format_live_frame(frame))
        frame = frame.f_back
    return lines
