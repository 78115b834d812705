"""Stack text dialects and their normalization profiles.

Every profile rewrites one runtime's stack text into canonical lines of the
form ``name@file:line:column``, one call frame per line. Text dialects do
this with ordered regex rewrite rules; the Opera dialects print two
physical lines per frame and use a line extractor instead.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType

from tracestack.models.call_site import ANONYMOUS, ANONYMOUS_PLACEHOLDER

# Every code point browsers treat as a line break
NEW_LINES = re.compile(r"\r\n|[\n\r\u2028\u2029]")

# Name given to frames that run at the top level of a script
GLOBAL_CODE = "global code"


class Dialect(StrEnum):
    """The closed set of stack dialects."""

    CHROME = "chrome"
    SAFARI = "safari"
    IE = "ie"
    FIREFOX = "firefox"
    OPERA9 = "opera9"
    OPERA10A = "opera10a"
    OPERA10B = "opera10b"
    OPERA11 = "opera11"
    OTHER = "other"

    @classmethod
    def lookup(cls, name: str | None) -> Dialect | None:
        """Return the dialect called ``name``, or None if there is none."""
        if not name:
            return None
        try:
            return cls(name.lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class RewriteRule:
    """One regex substitution applied to stack text.

    Attributes:
        pattern: Compiled pattern to search for.
        replacement: Replacement template; empty deletes the match.
        count: Maximum substitutions, 0 for all of them.
    """

    pattern: re.Pattern[str]
    replacement: str = ""
    count: int = 0

    @classmethod
    def compile(
        cls,
        pattern: str,
        replacement: str = "",
        *,
        first_only: bool = False,
        flags: int = re.MULTILINE,
    ) -> RewriteRule:
        """Build a rule from a pattern string."""
        return cls(re.compile(pattern, flags), replacement, 1 if first_only else 0)

    def apply(self, text: str) -> str:
        """Return ``text`` with this rule applied."""
        return self.pattern.sub(self.replacement, text, count=self.count)


def apply_rules(text: str, rules: tuple[RewriteRule, ...]) -> str:
    """Apply rewrite rules to ``text`` in order."""
    for rule in rules:
        text = rule.apply(text)
    return text


# Post steps operate on the split, non-blank lines


def drop_header(lines: list[str]) -> list[str]:
    """Drop the leading ``SomeError: message`` line."""
    return lines[1:]


_HAS_COLUMN = re.compile(r":\d+:\d*$")


def pad_missing_column(lines: list[str]) -> list[str]:
    """Append an empty column to lines that only carry a line number.

    Engines that report ``name@file:line`` would otherwise have their line
    number read as the column.
    """
    return [line if _HAS_COLUMN.search(line) else line + ":" for line in lines]


# Extractors for paired dialects: (text, limit) -> canonical lines

_OPERA11_LINE = re.compile(r"^.*line (\d+), column (\d+)(?: in (.+))? in (\S+):$")
_OPERA10B_LINE = re.compile(r"^(.*)@(.+):(\d+)$")
_OPERA10A_LINE = re.compile(
    r"Line (\d+).*script (?:in )?(\S+)(?:: In function (\S+))?$", re.IGNORECASE
)
_OPERA9_LINE = re.compile(r"Line (\d+).*script (?:in )?(\S+)", re.IGNORECASE)

_NAMED_ANONYMOUS = re.compile(r"<anonymous function: (\S+)>")
_UNNAMED_ANONYMOUS = re.compile(r"<anonymous function>")
_ARGUMENT_LIST = re.compile(r"\(.*\)$")


def _opera_function_name(raw: str) -> str:
    """Strip Opera's argument list and anonymous-function decorations."""
    name = _ARGUMENT_LIST.sub("", raw.strip())
    name = _NAMED_ANONYMOUS.sub(r"\1", name)
    name = _UNNAMED_ANONYMOUS.sub(ANONYMOUS, name)
    if name == ANONYMOUS:
        return ANONYMOUS_PLACEHOLDER
    return name


def _description_lines(text: str) -> Iterator[str]:
    """Yield the first line of each description/detail pair."""
    lines = NEW_LINES.split(text)
    for index in range(0, len(lines), 2):
        if lines[index]:
            yield lines[index]


def extract_opera11(text: str, limit: int = 0) -> list[str]:
    """Canonicalize an Opera 11 ``stacktrace``."""
    result: list[str] = []
    for line in _description_lines(text):
        if limit and len(result) >= limit:
            break
        match = _OPERA11_LINE.match(line)
        if match:
            name = _opera_function_name(match.group(3)) if match.group(3) else GLOBAL_CODE
            result.append(f"{name}@{match.group(4)}:{match.group(1)}:{match.group(2)}")
    return result


def extract_opera10b(text: str, limit: int = 0) -> list[str]:
    """Canonicalize an Opera 10 beta ``stacktrace`` (one line per frame)."""
    result: list[str] = []
    for line in NEW_LINES.split(text):
        if limit and len(result) >= limit:
            break
        match = _OPERA10B_LINE.match(line)
        if match:
            if not match.group(1):
                name = GLOBAL_CODE
            else:
                name = _opera_function_name(match.group(1))
                if name != ANONYMOUS_PLACEHOLDER:
                    name += "()"
            result.append(f"{name}@{match.group(2)}:{match.group(3)}:")
    return result


def extract_opera10a(text: str, limit: int = 0) -> list[str]:
    """Canonicalize an Opera 10 alpha ``stacktrace``."""
    result: list[str] = []
    for line in _description_lines(text):
        if limit and len(result) >= limit:
            break
        match = _OPERA10A_LINE.search(line)
        if match:
            name = match.group(3) or ANONYMOUS
            result.append(f"{name}()@{match.group(2)}:{match.group(1)}:")
    return result


def extract_opera9(text: str, limit: int = 0) -> list[str]:
    """Canonicalize an Opera 9 ``message``; frames carry no names."""
    result: list[str] = []
    for line in _description_lines(text):
        if limit and len(result) >= limit:
            break
        match = _OPERA9_LINE.search(line)
        if match:
            result.append(f"{ANONYMOUS_PLACEHOLDER}@{match.group(2)}:{match.group(1)}:")
    return result


LineExtractor = Callable[[str, int], list[str]]
PostStep = Callable[[list[str]], list[str]]


@dataclass(frozen=True)
class DialectProfile:
    """How one runtime prints its stack and how to canonicalize it.

    Attributes:
        dialect: Which dialect this profile handles.
        source_field: Payload field carrying the stack text.
        pre: Rules applied to the whole raw text before limiting.
        rules: Rules applied after limiting that reshape each line.
        post: Optional step run on the final list of lines.
        extract: Line extractor replacing the rewrite rules entirely.
        paired: True if each frame spans a description and a detail line.
    """

    dialect: Dialect
    source_field: str = "stack"
    pre: tuple[RewriteRule, ...] = ()
    rules: tuple[RewriteRule, ...] = ()
    post: PostStep | None = None
    extract: LineExtractor | None = None
    paired: bool = False

    @property
    def live(self) -> bool:
        """True for the dialect that walks live frames instead of text."""
        return self.dialect is Dialect.OTHER


CHROME = DialectProfile(
    dialect=Dialect.CHROME,
    pre=(
        # A stack with no frame lines is only the error message
        RewriteRule.compile(r"\A(?![\s\S]*?(?:\A|\n)\s*at\s)[\s\S]+", first_only=True, flags=0),
        RewriteRule.compile(r"^[\s\S]+?\s+at\s+", " at ", first_only=True, flags=0),
    ),
    rules=(
        RewriteRule.compile(r"^\s+(at eval )?at\s+"),
        # Bare locations: ``at http://host/file.js:1:2``
        RewriteRule.compile(r"^([^(@\n]+?)$", ANONYMOUS_PLACEHOLDER + r" (\1)"),
        RewriteRule.compile(
            r"^Object\.<anonymous>\s*\(([^)]+)\)", ANONYMOUS_PLACEHOLDER + r" (\1)"
        ),
        RewriteRule.compile(r"^(.+) \((.+)\)$", r"\1@\2"),
    ),
)

SAFARI = DialectProfile(
    dialect=Dialect.SAFARI,
    pre=(
        RewriteRule.compile(r"^\[native code\]$\n?"),
        RewriteRule.compile(r"^(?=\w+Error:).*$\n", first_only=True),
    ),
    rules=(RewriteRule.compile(r"^@", ANONYMOUS_PLACEHOLDER + "@"),),
    post=pad_missing_column,
)

IE = DialectProfile(
    dialect=Dialect.IE,
    pre=(RewriteRule.compile(r"^\s*at\s+(.*)$", r"\1"),),
    rules=(
        RewriteRule.compile(r"^Anonymous function\s+", ANONYMOUS_PLACEHOLDER + " "),
        RewriteRule.compile(r"^(.+)\s+\((.+)\)$", r"\1@\2"),
    ),
    post=drop_header,
)

FIREFOX = DialectProfile(
    dialect=Dialect.FIREFOX,
    pre=(RewriteRule.compile(r"(?:\n@:0)?\s+$", first_only=True),),
    rules=(RewriteRule.compile(r"^(?:\((\S*)\))?@", ANONYMOUS + r"(\1)@"),),
    post=pad_missing_column,
)

OPERA11 = DialectProfile(
    dialect=Dialect.OPERA11, source_field="stacktrace", extract=extract_opera11, paired=True
)
OPERA10B = DialectProfile(
    dialect=Dialect.OPERA10B, source_field="stacktrace", extract=extract_opera10b
)
OPERA10A = DialectProfile(
    dialect=Dialect.OPERA10A, source_field="stacktrace", extract=extract_opera10a, paired=True
)
OPERA9 = DialectProfile(
    dialect=Dialect.OPERA9, source_field="message", extract=extract_opera9, paired=True
)
OTHER = DialectProfile(dialect=Dialect.OTHER, source_field="")


@dataclass(frozen=True, eq=False)
class DialectRegistry:
    """Immutable lookup of dialect profiles."""

    profiles: Mapping[Dialect, DialectProfile] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "profiles", MappingProxyType(dict(self.profiles)))

    def __contains__(self, dialect: object) -> bool:
        return dialect in self.profiles

    def __iter__(self) -> Iterator[Dialect]:
        return iter(self.profiles)

    def __len__(self) -> int:
        return len(self.profiles)

    def get(self, dialect: Dialect) -> DialectProfile:
        """Return the profile for ``dialect``.

        Raises:
            KeyError: If the registry has no such profile
        """
        return self.profiles[dialect]

    def resolve_mode(self, mode: str | None) -> Dialect | None:
        """Map a mode override to a registered dialect, or None."""
        dialect = Dialect.lookup(mode)
        return dialect if dialect in self.profiles else None


DEFAULT_REGISTRY = DialectRegistry(
    {
        profile.dialect: profile
        for profile in (
            CHROME,
            SAFARI,
            IE,
            FIREFOX,
            OPERA9,
            OPERA10A,
            OPERA10B,
            OPERA11,
            OTHER,
        )
    }
)
