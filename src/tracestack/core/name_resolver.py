"""Best-effort names for anonymous functions.

Engines print anonymous frames without a name. The resolver re-reads the
script the frame points into and scans upward from the reported line for
the assignment or declaration that most likely named the function.

Source text is fetched synchronously, only from the configured origin, and
kept for the lifetime of the SourceCache.
"""

from __future__ import annotations

import re
import threading
from typing import TYPE_CHECKING

import httpx
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tracestack.config.schema import ResolverConfig
from tracestack.models.call_site import UNKNOWN_NAME
from tracestack.utils.errors import SourceFetchError
from tracestack.utils.logging import LogEventNames, get_logger
from tracestack.utils.security import is_same_origin, redact_url

if TYPE_CHECKING:
    from collections.abc import Sequence

log = get_logger(__name__)

# name = function ... / name: function ...
FUNCTION_EXPRESSION = re.compile(
    r"""['"]?([$_A-Za-z][$_A-Za-z0-9]*)['"]?\s*[:=]\s*function\b"""
)
# function name(args)
FUNCTION_DECLARATION = re.compile(r"function\s+([^(]*?)\s*\(([^)]*)\)")
# name = eval(...) / name = new Function(...)
FUNCTION_EVALUATION = re.compile(
    r"""['"]?([$_A-Za-z][$_A-Za-z0-9]*)['"]?\s*[:=]\s*(?:eval|new Function)\b"""
)

NAME_PATTERNS = (FUNCTION_EXPRESSION, FUNCTION_DECLARATION, FUNCTION_EVALUATION)


def find_function_name(source: Sequence[str], line_number: int, max_lines: int = 20) -> str:
    """Scan upward from ``line_number`` for the name of the enclosing function.

    Each non-empty line (with any ``//`` comment removed) is prepended to a
    growing code window, and the window is tested against the expression,
    declaration and evaluation patterns in that order.

    Args:
        source: Lines of the script
        line_number: 1-based line the frame points at
        max_lines: Maximum number of lines to scan

    Returns:
        The guessed name, or ``"(?)"`` if no pattern matched

    Raises:
        IndexError: If ``line_number`` lies outside ``source``
    """
    if line_number < 1 or line_number > len(source):
        raise IndexError(f"Line {line_number} outside source of {len(source)} lines")

    code = ""
    for offset in range(min(line_number, max_lines)):
        line = source[line_number - offset - 1]
        comment = line.find("//")
        if comment >= 0:
            line = line[:comment]
        if not line:
            continue

        code = line + code
        for pattern in NAME_PATTERNS:
            match = pattern.search(code)
            if match and match.group(1):
                return match.group(1)

    return UNKNOWN_NAME


def _log_retry(retry_state: RetryCallState) -> None:
    """Log source fetch retries."""
    if retry_state.outcome is None:
        return

    exception = retry_state.outcome.exception()
    if exception:
        log.debug(
            LogEventNames.SOURCE_FETCH_RETRY,
            attempt=retry_state.attempt_number,
            exception_type=type(exception).__name__,
        )


class SourceCache:
    """Lazily fetched, never invalidated map of URL to source lines.

    Failed fetches are not cached, so a later trace may try again.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        timeout: float = 5.0,
        max_attempts: int = 2,
    ) -> None:
        """Initialize the cache.

        Args:
            client: HTTP client to fetch with (one is created if omitted)
            timeout: Request timeout in seconds for the created client
            max_attempts: Attempts per URL on timeouts and network errors
        """
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._lines: dict[str, list[str]] = {}
        self._lock = threading.Lock()
        self._fetch = retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
            before_sleep=_log_retry,
            reraise=True,
        )(self._get_text)

    def __contains__(self, url: object) -> bool:
        return url in self._lines

    def __len__(self) -> int:
        return len(self._lines)

    def get_lines(self, url: str) -> list[str]:
        """Return the lines of ``url``, fetching them on first use.

        Raises:
            SourceFetchError: If the source could not be fetched
        """
        cached = self._lines.get(url)
        if cached is not None:
            log.debug(LogEventNames.SOURCE_CACHE_HIT, url=url)
            return cached

        with self._lock:
            # First writer wins
            if url not in self._lines:
                try:
                    text = self._fetch(url)
                except (httpx.HTTPError, httpx.InvalidURL) as e:
                    log.warning(
                        LogEventNames.SOURCE_FETCH_ERROR,
                        url=url,
                        exception_type=type(e).__name__,
                    )
                    raise SourceFetchError(
                        f"Could not fetch {redact_url(url)}: {type(e).__name__}"
                    ) from e
                self._lines[url] = text.split("\n")
                log.debug(LogEventNames.SOURCE_FETCHED, url=url, lines=len(self._lines[url]))
            return self._lines[url]

    def _get_text(self, url: str) -> str:
        if self._client is None:
            self._client = httpx.Client(timeout=self._timeout, follow_redirects=True)
        response = self._client.get(url)
        response.raise_for_status()
        return response.text

    def close(self) -> None:
        """Close the HTTP client if this cache created it."""
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None


class NameResolver:
    """Guesses names for anonymous frames from their source text.

    Example:
        resolver = NameResolver(ResolverConfig(origin="https://app.example.com"))
        resolver.resolve("https://app.example.com/app.js", 42)  # "handleClick"
    """

    def __init__(
        self,
        config: ResolverConfig | None = None,
        source_cache: SourceCache | None = None,
    ) -> None:
        """Initialize the NameResolver.

        Args:
            config: Resolver configuration (origin, timeouts, scan depth)
            source_cache: Cache to read source through; one is created
                from ``config`` if omitted
        """
        self._config = config or ResolverConfig()
        if source_cache is None:
            source_cache = SourceCache(
                timeout=self._config.timeout,
                max_attempts=self._config.max_attempts,
            )
        self._sources = source_cache

    @property
    def sources(self) -> SourceCache:
        """The cache source text is read through."""
        return self._sources

    def resolve(self, file: str, line: int | None) -> str | None:
        """Guess the function name for a frame at ``file:line``.

        Args:
            file: URL of the script
            line: 1-based line of the frame

        Returns:
            The guessed name, ``"(?)"`` if the source named nothing, or None
            if the source could not be consulted at all
        """
        if not file or line is None:
            return None

        if not is_same_origin(file, self._config.origin):
            log.debug(LogEventNames.NAME_GUESS_SKIPPED, file=file, reason="cross_origin")
            return None

        try:
            source = self._sources.get_lines(file)
            name = find_function_name(source, line, self._config.scan_lines)
        except (SourceFetchError, IndexError) as e:
            log.debug(LogEventNames.NAME_GUESS_FAILED, file=file, line=line, error=str(e))
            return None

        log.debug(LogEventNames.NAME_GUESSED, file=file, line=line, name=name)
        return name

    __call__ = resolve
