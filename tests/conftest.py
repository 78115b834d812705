"""Shared test fixtures for tracestack."""

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from tracestack.config.schema import ResolverConfig
from tracestack.core.name_resolver import NameResolver, SourceCache

ORIGIN = "http://a"

CHROME_STACK = (
    "TypeError: Cannot read property 'x' of undefined\n"
    "    at foo (http://a/b.js:10:3)\n"
    "    at bar (http://a/b.js:20:1)\n"
    "    at http://a/b.js:3:5\n"
    "    at Object.<anonymous> (http://a/c.js:1:1)\n"
    "    at eval at run (http://a/d.js:7:2)"
)

SAFARI_STACK = (
    "foo@http://a/b.js:10:3\n"
    "[native code]\n"
    "@http://a/b.js:20\n"
    "bar@http://a/b.js:30:1"
)

IE_STACK = (
    "TypeError: Object doesn't support this property or method\n"
    "   at foo (http://a/b.js:10:3)\n"
    "   at Anonymous function (http://a/b.js:20:1)\n"
    "   at Global code (http://a/b.js:30:1)"
)

FIREFOX_STACK = "foo@http://a/b.js:10:3\n@http://a/b.js:20\n(3)@http://a/b.js:30\n@:0\n"

OPERA11_STACKTRACE = (
    "Error thrown at line 42, column 12 in <anonymous function>() in http://a/b.js:\n"
    "    this.undef();\n"
    "called from line 27, column 8 in ex1(arg1) in http://a/b.js:\n"
    "    ex2();\n"
    "called from line 18, column 4 in <anonymous function: run>() in http://a/b.js:\n"
    "    ex1();\n"
    "called from line 10, column 0 in http://a/b.js:\n"
    "    run();"
)

OPERA10B_STACKTRACE = (
    "<anonymous function: run>([arguments not available])@http://a/b.js:27\n"
    "foo([arguments not available])@http://a/b.js:18\n"
    "<anonymous function>([arguments not available])@http://a/b.js:9\n"
    "@http://a/b.js:4"
)

OPERA10A_STACKTRACE = (
    "  Line 27 of linked script http://a/b.js: In function foo\n"
    "    this.undef();\n"
    "  Line 11 of linked script http://a/b.js\n"
    "    foo();"
)

OPERA9_MESSAGE = (
    "Statement on line 44: Undefined variable: x\n"
    "Backtrace:\n"
    "  Line 44 of linked script http://a/b.js\n"
    "    x.y = 1;\n"
    "  Line 31 of inline#1 script in http://a/c.html\n"
    "    foo();\n"
)

SCRIPT_SOURCE = "\n".join(
    [
        "var config = {};",
        "var handler = function() {",
        "  throw new Error('boom');",
        "};",
        "function named(a, b) {",
        "  // comment with a = function",
        "  return a + b;",
        "}",
    ]
)


@pytest.fixture
def chrome_payload() -> dict[str, Any]:
    """Error captured in a V8 engine."""
    return {
        "stack": CHROME_STACK,
        "message": "Cannot read property 'x' of undefined",
        "arguments": ["x"],
    }


@pytest.fixture
def safari_payload() -> dict[str, Any]:
    """Error captured in JavaScriptCore."""
    return {"stack": SAFARI_STACK, "sourceURL": "http://a/b.js", "line": 10}


@pytest.fixture
def ie_payload() -> dict[str, Any]:
    """Error captured in IE 10+."""
    return {"stack": IE_STACK, "number": -2146827850, "description": "boom"}


@pytest.fixture
def firefox_payload() -> dict[str, Any]:
    """Error captured in SpiderMonkey."""
    return {"stack": FIREFOX_STACK, "fileName": "http://a/b.js", "lineNumber": 10}


@pytest.fixture
def opera11_payload() -> dict[str, Any]:
    """Error captured in Opera 11."""
    return {
        "stack": "<anonymous function>([arguments not available])@http://a/b.js:42",
        "message": "Statement on line 42: Type mismatch",
        "stacktrace": OPERA11_STACKTRACE,
    }


@pytest.fixture
def opera10b_payload() -> dict[str, Any]:
    """Error captured in Opera 10 beta."""
    return {
        "stack": "@http://a/b.js:4",
        "message": "Statement on line 27: Type mismatch",
        "stacktrace": OPERA10B_STACKTRACE,
    }


@pytest.fixture
def opera10a_payload() -> dict[str, Any]:
    """Error captured in Opera 10 alpha."""
    return {
        "message": "Statement on line 27: Undefined variable: undef",
        "opera#sourceloc": 27,
        "stacktrace": OPERA10A_STACKTRACE,
    }


@pytest.fixture
def opera9_payload() -> dict[str, Any]:
    """Error captured in Opera 9."""
    return {"message": OPERA9_MESSAGE, "opera#sourceloc": 44}


@pytest.fixture
def script_source() -> str:
    """Script text served from the test origin."""
    return SCRIPT_SOURCE


@pytest.fixture
def requests_seen() -> list[str]:
    """URLs requested through the mock transport."""
    return []


@pytest.fixture
def source_handler(
    requests_seen: list[str], script_source: str
) -> Callable[[httpx.Request], httpx.Response]:
    """Serve SCRIPT_SOURCE for http://a/b.js and 404 for everything else."""

    def handler(request: httpx.Request) -> httpx.Response:
        requests_seen.append(str(request.url))
        if request.url.path == "/b.js":
            return httpx.Response(200, text=script_source)
        return httpx.Response(404, text="not found")

    return handler


@pytest.fixture
def source_cache(source_handler: Callable[[httpx.Request], httpx.Response]) -> SourceCache:
    """SourceCache backed by a mock transport."""
    client = httpx.Client(transport=httpx.MockTransport(source_handler))
    return SourceCache(client=client, max_attempts=2)


@pytest.fixture
def resolver(source_cache: SourceCache) -> NameResolver:
    """NameResolver allowed to fetch from the test origin."""
    return NameResolver(ResolverConfig(origin=ORIGIN), source_cache=source_cache)
