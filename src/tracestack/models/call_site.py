"""Data models for parsed call sites and stack traces."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import overload

# Name committed when an anonymous function could not be named
ANONYMOUS = "{anonymous}"
# Function signature dialect normalizers emit for anonymous frames
ANONYMOUS_PLACEHOLDER = ANONYMOUS + "()"
# Name guessed when the source was read but no pattern named the function
UNKNOWN_NAME = "(?)"

# Resolves (file, line) to a function name, or None if it cannot
NameGuesser = Callable[[str, int | None], str | None]


class Resolution(Enum):
    """Where a call site's function name came from."""

    RESOLVED = "resolved"  # name taken from the trace or guessed
    UNRESOLVED = "unresolved"  # anonymous, guessing deferred
    FAILED = "failed"  # anonymous, guessing attempted and found no name

    @classmethod
    def of_guess(cls, name: str | None) -> Resolution:
        """Classify the outcome of a name guess."""
        if name and name != UNKNOWN_NAME:
            return cls.RESOLVED
        return cls.FAILED


@dataclass(frozen=True)
class CallSite:
    """A single frame of a normalized stack trace."""

    function_name: str
    file: str = ""
    line: int | None = None
    column: int | None = None
    resolution: Resolution = Resolution.RESOLVED
    _guesser: NameGuesser | None = field(default=None, repr=False, compare=False)

    @property
    def is_anonymous(self) -> bool:
        """True if no name was found for this frame."""
        return self.function_name in (ANONYMOUS, ANONYMOUS_PLACEHOLDER)

    def guess(self) -> CallSite:
        """Resolve a deferred anonymous name.

        Only the first call on an UNRESOLVED record does any work. If the
        guess fails the record commits to the anonymous marker, or to
        ``"(?)"`` when the source named nothing, and later calls leave it
        alone.

        Returns:
            This call site, for chaining
        """
        if self.resolution is not Resolution.UNRESOLVED:
            return self

        name = self._guesser(self.file, self.line) if self._guesser else None
        # The only mutation a CallSite allows: UNRESOLVED -> RESOLVED | FAILED
        object.__setattr__(self, "function_name", name or ANONYMOUS)
        object.__setattr__(self, "resolution", Resolution.of_guess(name))
        object.__setattr__(self, "_guesser", None)
        return self

    def __str__(self) -> str:
        text = f"at {self.function_name}"
        if not self.file:
            return text
        location = self.file
        if self.line is not None:
            location += f":{self.line}"
            if self.column is not None:
                location += f":{self.column}"
        return f"{text} ({location})"


class StackTrace(Sequence[CallSite]):
    """An ordered, immutable sequence of call sites.

    Index 0 is the immediate call site; the outermost caller comes last.
    """

    def __init__(self, frames: Sequence[CallSite] = ()) -> None:
        self._frames = tuple(frames)

    @overload
    def __getitem__(self, index: int) -> CallSite: ...

    @overload
    def __getitem__(self, index: slice) -> StackTrace: ...

    def __getitem__(self, index: int | slice) -> CallSite | StackTrace:
        if isinstance(index, slice):
            return StackTrace(self._frames[index])
        return self._frames[index]

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[CallSite]:
        return iter(self._frames)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, StackTrace):
            return self._frames == other._frames
        if isinstance(other, (list, tuple)):
            return list(self._frames) == list(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"StackTrace({list(self._frames)!r})"

    @property
    def innermost(self) -> CallSite:
        """The immediate call site."""
        if not self._frames:
            raise ValueError("Stack trace has no frames")
        return self._frames[0]

    def guess_all(self) -> StackTrace:
        """Resolve every deferred anonymous name in the trace."""
        for frame in self._frames:
            frame.guess()
        return self

    def render(self, heading: str | None = None) -> str:
        """Render one ``at name (file:line:column)`` line per frame.

        Args:
            heading: Optional first line; frames are then indented by a tab.

        Returns:
            Human-readable multi-line text
        """
        lines = [str(frame) for frame in self._frames]
        if heading:
            return "\n\t".join([heading, *lines])
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.render()
