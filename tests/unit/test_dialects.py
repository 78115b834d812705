"""Tests for dialect profiles and golden normalization per dialect."""

import re
from types import MappingProxyType

import pytest

from tracestack.core.dialects import (
    DEFAULT_REGISTRY,
    Dialect,
    DialectRegistry,
    RewriteRule,
    apply_rules,
    drop_header,
    extract_opera9,
    extract_opera10a,
    extract_opera10b,
    extract_opera11,
    pad_missing_column,
)
from tracestack.core.frame_parser import FrameParser
from tracestack.core.normalizer import LineNormalizer
from tracestack.models.call_site import ANONYMOUS_PLACEHOLDER, Resolution
from tracestack.models.payload import ErrorPayload


def normalize(payload: dict, dialect: Dialect, limit: int = 0) -> list[str]:
    profile = DEFAULT_REGISTRY.get(dialect)
    return LineNormalizer().normalize(ErrorPayload.coerce(payload), profile, limit)


def fields(lines: list[str]) -> list[tuple]:
    sites = FrameParser().parse_all(lines, guess=False)
    return [(s.function_name, s.file, s.line, s.column) for s in sites]


class TestDialect:
    """Test the Dialect enum."""

    def test_lookup_known_name(self) -> None:
        """Test that known names resolve regardless of case."""
        assert Dialect.lookup("chrome") is Dialect.CHROME
        assert Dialect.lookup("Opera10a") is Dialect.OPERA10A

    def test_lookup_unknown_name(self) -> None:
        """Test that unknown or empty names give None."""
        assert Dialect.lookup("netscape") is None
        assert Dialect.lookup("") is None
        assert Dialect.lookup(None) is None

    def test_closed_set(self) -> None:
        """Test the full set of dialect names."""
        assert {str(d) for d in Dialect} == {
            "chrome",
            "safari",
            "ie",
            "firefox",
            "opera9",
            "opera10a",
            "opera10b",
            "opera11",
            "other",
        }


class TestDialectRegistry:
    """Test DialectRegistry lookups."""

    def test_default_registry_covers_every_dialect(self) -> None:
        """Test that every dialect has a profile."""
        assert len(DEFAULT_REGISTRY) == len(Dialect)
        for dialect in Dialect:
            assert dialect in DEFAULT_REGISTRY
            assert DEFAULT_REGISTRY.get(dialect).dialect is dialect

    def test_profiles_are_read_only(self) -> None:
        """Test that the registry mapping cannot be modified."""
        assert isinstance(DEFAULT_REGISTRY.profiles, MappingProxyType)
        with pytest.raises(TypeError):
            DEFAULT_REGISTRY.profiles[Dialect.CHROME] = None  # type: ignore[index]

    def test_resolve_mode(self) -> None:
        """Test mode resolution against registered profiles."""
        assert DEFAULT_REGISTRY.resolve_mode("firefox") is Dialect.FIREFOX
        assert DEFAULT_REGISTRY.resolve_mode("bogus") is None
        assert DEFAULT_REGISTRY.resolve_mode(None) is None

    def test_resolve_mode_unregistered(self) -> None:
        """Test that a valid dialect without a profile is not resolved."""
        registry = DialectRegistry({Dialect.CHROME: DEFAULT_REGISTRY.get(Dialect.CHROME)})
        assert registry.resolve_mode("chrome") is Dialect.CHROME
        assert registry.resolve_mode("firefox") is None

    def test_only_other_is_live(self) -> None:
        """Test that only the generic dialect walks live frames."""
        live = [d for d in DEFAULT_REGISTRY if DEFAULT_REGISTRY.get(d).live]
        assert live == [Dialect.OTHER]


class TestRewriteRule:
    """Test RewriteRule application."""

    def test_global_by_default(self):
        rule = RewriteRule.compile(r"^x", "y")
        assert rule.apply("x1\nx2") == "y1\ny2"

    def test_first_only(self):
        rule = RewriteRule.compile(r"^x", "y", first_only=True)
        assert rule.apply("x1\nx2") == "y1\nx2"

    def test_empty_replacement_deletes(self):
        rule = RewriteRule.compile(r"\d")
        assert rule.apply("a1b2") == "ab"

    def test_rules_apply_in_order(self):
        rules = (RewriteRule.compile("a", "b"), RewriteRule.compile("b", "c"))
        assert apply_rules("a", rules) == "c"

    def test_custom_flags(self):
        rule = RewriteRule.compile("A", "b", flags=re.IGNORECASE)
        assert rule.apply("aA") == "bb"


class TestPostSteps:
    """Test post-processing steps."""

    def test_drop_header(self):
        assert drop_header(["Error: x", "a@b:1:2"]) == ["a@b:1:2"]

    def test_pad_missing_column(self):
        lines = ["a@http://x/y.js:1:2", "b@http://x/y.js:3", "c@http://x:8080/y.js:4"]
        assert pad_missing_column(lines) == [
            "a@http://x/y.js:1:2",
            "b@http://x/y.js:3:",
            "c@http://x:8080/y.js:4:",
        ]

    def test_pad_keeps_empty_column(self):
        assert pad_missing_column(["a@http://x/y.js:3:"]) == ["a@http://x/y.js:3:"]


class TestChromeDialect:
    """Golden tests for V8 stacks."""

    def test_normalize(self, chrome_payload) -> None:
        """Test canonical lines for every V8 frame shape."""
        assert normalize(chrome_payload, Dialect.CHROME) == [
            "foo@http://a/b.js:10:3",
            "bar@http://a/b.js:20:1",
            "{anonymous}()@http://a/b.js:3:5",
            "{anonymous}()@http://a/c.js:1:1",
            "run@http://a/d.js:7:2",
        ]

    def test_parse(self, chrome_payload) -> None:
        """Test the parsed records."""
        assert fields(normalize(chrome_payload, Dialect.CHROME)) == [
            ("foo", "http://a/b.js", 10, 3),
            ("bar", "http://a/b.js", 20, 1),
            (ANONYMOUS_PLACEHOLDER, "http://a/b.js", 3, 5),
            (ANONYMOUS_PLACEHOLDER, "http://a/c.js", 1, 1),
            ("run", "http://a/d.js", 7, 2),
        ]

    def test_last_line_bare_location(self) -> None:
        """Test that a bare location on the final line is still named."""
        payload = {"stack": "Error: x\n    at foo (http://a/b.js:1:1)\n    at http://a/b.js:2:2"}
        assert normalize(payload, Dialect.CHROME)[-1] == "{anonymous}()@http://a/b.js:2:2"

    def test_header_only(self) -> None:
        """Test that a stack holding only the error message has no frames."""
        assert normalize({"stack": "Error: boom"}, Dialect.CHROME) == []
        assert normalize({"stack": "Error: failed at start\nsecond line"}, Dialect.CHROME) == []

    def test_frames_without_indent(self) -> None:
        """Test that frame lines are found without leading whitespace."""
        payload = {"stack": "Error: boom\nat foo (http://a/b.js:1:2)"}
        assert normalize(payload, Dialect.CHROME) == ["foo@http://a/b.js:1:2"]


class TestSafariDialect:
    """Golden tests for JavaScriptCore stacks."""

    def test_normalize(self, safari_payload) -> None:
        """Test that native frames are dropped and columns padded."""
        assert normalize(safari_payload, Dialect.SAFARI) == [
            "foo@http://a/b.js:10:3",
            "{anonymous}()@http://a/b.js:20:",
            "bar@http://a/b.js:30:1",
        ]

    def test_parse(self, safari_payload) -> None:
        """Test the parsed records."""
        assert fields(normalize(safari_payload, Dialect.SAFARI)) == [
            ("foo", "http://a/b.js", 10, 3),
            (ANONYMOUS_PLACEHOLDER, "http://a/b.js", 20, None),
            ("bar", "http://a/b.js", 30, 1),
        ]

    def test_error_header_removed(self) -> None:
        """Test that a leading error message line is removed."""
        payload = {"stack": "TypeError: boom\nfoo@http://a/b.js:1:2"}
        assert normalize(payload, Dialect.SAFARI) == ["foo@http://a/b.js:1:2"]


class TestIEDialect:
    """Golden tests for IE stacks."""

    def test_normalize(self, ie_payload) -> None:
        """Test that the header is dropped and anonymous frames marked."""
        assert normalize(ie_payload, Dialect.IE) == [
            "foo@http://a/b.js:10:3",
            "{anonymous}()@http://a/b.js:20:1",
            "Global code@http://a/b.js:30:1",
        ]

    def test_parse(self, ie_payload) -> None:
        """Test the parsed records."""
        assert fields(normalize(ie_payload, Dialect.IE)) == [
            ("foo", "http://a/b.js", 10, 3),
            (ANONYMOUS_PLACEHOLDER, "http://a/b.js", 20, 1),
            ("Global code", "http://a/b.js", 30, 1),
        ]


class TestFirefoxDialect:
    """Golden tests for SpiderMonkey stacks."""

    def test_normalize(self, firefox_payload) -> None:
        """Test the trailing @:0 frame and missing columns."""
        assert normalize(firefox_payload, Dialect.FIREFOX) == [
            "foo@http://a/b.js:10:3",
            "{anonymous}()@http://a/b.js:20:",
            "{anonymous}(3)@http://a/b.js:30:",
        ]

    def test_parse(self, firefox_payload) -> None:
        """Test that only the bare anonymous frame awaits a guess."""
        sites = FrameParser().parse_all(normalize(firefox_payload, Dialect.FIREFOX), guess=False)
        assert [s.resolution for s in sites] == [
            Resolution.RESOLVED,
            Resolution.UNRESOLVED,
            Resolution.RESOLVED,
        ]
        assert (sites[1].line, sites[1].column) == (20, None)


class TestOpera11Dialect:
    """Golden tests for Opera 11 stacktraces."""

    def test_normalize(self, opera11_payload) -> None:
        """Test description lines and anonymous function decorations."""
        assert normalize(opera11_payload, Dialect.OPERA11) == [
            "{anonymous}()@http://a/b.js:42:12",
            "ex1@http://a/b.js:27:8",
            "run@http://a/b.js:18:4",
            "global code@http://a/b.js:10:0",
        ]

    def test_limit_counts_frames(self, opera11_payload) -> None:
        """Test that the limit counts logical frames, not physical lines."""
        assert extract_opera11(opera11_payload["stacktrace"], 3) == [
            "{anonymous}()@http://a/b.js:42:12",
            "ex1@http://a/b.js:27:8",
            "run@http://a/b.js:18:4",
        ]


class TestOpera10bDialect:
    """Golden tests for Opera 10 beta stacktraces."""

    def test_normalize(self, opera10b_payload) -> None:
        """Test argument lists stripped and names marked as calls."""
        assert normalize(opera10b_payload, Dialect.OPERA10B) == [
            "run()@http://a/b.js:27:",
            "foo()@http://a/b.js:18:",
            "{anonymous}()@http://a/b.js:9:",
            "global code@http://a/b.js:4:",
        ]

    def test_limit(self, opera10b_payload) -> None:
        """Test that extraction stops at the limit."""
        assert extract_opera10b(opera10b_payload["stacktrace"], 1) == ["run()@http://a/b.js:27:"]


class TestOpera10aDialect:
    """Golden tests for Opera 10 alpha stacktraces."""

    def test_normalize(self, opera10a_payload) -> None:
        """Test named and unnamed frames."""
        assert normalize(opera10a_payload, Dialect.OPERA10A) == [
            "foo()@http://a/b.js:27:",
            "{anonymous}()@http://a/b.js:11:",
        ]

    def test_limit(self, opera10a_payload) -> None:
        """Test that extraction stops at the limit."""
        assert extract_opera10a(opera10a_payload["stacktrace"], 1) == ["foo()@http://a/b.js:27:"]


class TestOpera9Dialect:
    """Golden tests for Opera 9 messages."""

    def test_normalize(self, opera9_payload) -> None:
        """Test that every frame is anonymous."""
        assert normalize(opera9_payload, Dialect.OPERA9) == [
            "{anonymous}()@http://a/b.js:44:",
            "{anonymous}()@http://a/c.html:31:",
        ]

    def test_parse(self, opera9_payload) -> None:
        """Test the parsed records."""
        assert fields(normalize(opera9_payload, Dialect.OPERA9)) == [
            (ANONYMOUS_PLACEHOLDER, "http://a/b.js", 44, None),
            (ANONYMOUS_PLACEHOLDER, "http://a/c.html", 31, None),
        ]

    def test_limit(self, opera9_payload) -> None:
        """Test that extraction stops at the limit."""
        assert len(extract_opera9(opera9_payload["message"], 1)) == 1


@pytest.mark.parametrize(
    ("dialect", "fixture"),
    [
        (Dialect.CHROME, "chrome_payload"),
        (Dialect.SAFARI, "safari_payload"),
        (Dialect.IE, "ie_payload"),
        (Dialect.FIREFOX, "firefox_payload"),
    ],
)
def test_rules_idempotent_on_canonical_text(dialect, fixture, request) -> None:
    """Per-line rules leave canonical text unchanged."""
    canonical = "\n".join(normalize(request.getfixturevalue(fixture), dialect))
    rules = DEFAULT_REGISTRY.get(dialect).rules
    once = apply_rules(canonical, rules)
    assert once == canonical
    assert apply_rules(once, rules) == once
