"""Parser for canonical ``name@file:line:column`` lines."""

from __future__ import annotations

from typing import Any

from tracestack.models.call_site import (
    ANONYMOUS,
    ANONYMOUS_PLACEHOLDER,
    CallSite,
    NameGuesser,
    Resolution,
)
from tracestack.utils.errors import FrameFormatError

SEPARATOR = "@"


def _to_int(text: str) -> int | None:
    text = text.strip()
    return int(text) if text.isascii() and text.isdigit() else None


def split_location(location: str) -> tuple[str, int | None, int | None]:
    """Split ``file:line:column`` from the right.

    The file keeps any further colons, so ``http://host:8080/a.js:3:9``
    yields ``("http://host:8080/a.js", 3, 9)``.

    Args:
        location: Text after the last ``@`` of a canonical line

    Returns:
        Tuple of (file, line, column); unparseable numbers become None
    """
    parts = location.rsplit(":", 2)
    column = parts.pop() if parts else ""
    line = parts.pop() if parts else ""
    file = parts.pop() if parts else ""
    return file, _to_int(line), _to_int(column)


class FrameParser:
    """Converts canonical lines into CallSite records.

    Anonymous frames carry the placeholder ``{anonymous}()``. With guessing
    enabled the parser asks the guesser for a name straight away; without
    it the record is left UNRESOLVED so the caller can run
    ``CallSite.guess()`` later.

    Example:
        parser = FrameParser()
        site = parser.parse("foo@http://x/y.js:12:5")
        assert (site.function_name, site.line, site.column) == ("foo", 12, 5)
    """

    def __init__(self, guesser: NameGuesser | None = None) -> None:
        """Initialize the FrameParser.

        Args:
            guesser: Callable resolving (file, line) to a function name
        """
        self._guesser = guesser

    def parse(self, line: Any, guess: bool = True) -> CallSite:
        """Parse one canonical line.

        Args:
            line: Canonical ``name@file:line:column`` line
            guess: Resolve anonymous names now rather than on demand

        Returns:
            The parsed CallSite

        Raises:
            FrameFormatError: If ``line`` is not a string or has no ``@``
        """
        if not isinstance(line, str):
            raise FrameFormatError(
                f"Call sites require a canonical string, got {type(line).__name__}", line
            )
        if SEPARATOR not in line:
            raise FrameFormatError(f"No location separator in line: {line!r}", line)

        function_name, _, location = line.rpartition(SEPARATOR)
        file, line_number, column = split_location(location)

        if function_name != ANONYMOUS_PLACEHOLDER:
            return CallSite(
                function_name=function_name or ANONYMOUS,
                file=file,
                line=line_number,
                column=column,
            )

        if not guess:
            return CallSite(
                function_name=ANONYMOUS_PLACEHOLDER,
                file=file,
                line=line_number,
                column=column,
                resolution=Resolution.UNRESOLVED,
                _guesser=self._guesser,
            )

        name = self._guesser(file, line_number) if self._guesser else None
        return CallSite(
            function_name=name or ANONYMOUS,
            file=file,
            line=line_number,
            column=column,
            resolution=Resolution.of_guess(name),
        )

    def parse_all(self, lines: list[str], guess: bool = True) -> list[CallSite]:
        """Parse a sequence of canonical lines, preserving order."""
        return [self.parse(line, guess=guess) for line in lines]
