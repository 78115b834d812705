"""URL helpers for same-origin checks and log-safe URLs.

Name guessing only ever fetches source from the configured origin. These
helpers fail closed: anything that cannot be parsed is treated as foreign.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit, urlunsplit


# Only these schemes may be used to fetch source text
FETCHABLE_SCHEMES = frozenset({"http", "https"})

DEFAULT_PORTS = {"http": 80, "https": 443}

URL_PATTERN = re.compile(r"https?://[^\s()<>\"']+")


def origin_of(url: str) -> tuple[str, str, int] | None:
    """Return the ``(scheme, host, port)`` origin of a URL.

    Args:
        url: Absolute URL to inspect.

    Returns:
        The origin tuple, or None if the URL is not an absolute
        http(s) URL.
    """
    if not url:
        return None

    try:
        parts = urlsplit(url)
        scheme = parts.scheme.lower()
        host = parts.hostname
        port = parts.port
    except ValueError:
        # Malformed port or bracketed host
        return None

    if scheme not in FETCHABLE_SCHEMES or not host:
        return None

    return (scheme, host.lower(), port if port is not None else DEFAULT_PORTS[scheme])


def is_same_origin(url: str, origin: str | None) -> bool:
    """Check whether ``url`` shares the origin of ``origin``.

    An environment without an http(s) origin (for example a page loaded
    from ``file://``) has nothing it may fetch from, so this returns False.

    Args:
        url: URL of the source file.
        origin: Origin of the current environment, e.g. ``https://app.example.com``.

    Returns:
        True only if both are http(s) URLs with equal scheme, host and port.
    """
    if not origin:
        return False

    expected = origin_of(origin)
    if expected is None:
        return False

    return origin_of(url) == expected


def redact_url(url: str) -> str:
    """Strip credentials, query and fragment from a URL for logging.

    Args:
        url: The URL to redact.

    Returns:
        The URL without userinfo, query string or fragment. Text that is
        not a URL is returned unchanged.
    """
    if not url:
        return url

    try:
        parts = urlsplit(url)
    except ValueError:
        return url

    if not parts.scheme or not parts.netloc:
        return url

    netloc = parts.netloc.rpartition("@")[2]
    return urlunsplit((parts.scheme, netloc, parts.path, "", ""))


def redact_urls(text: str) -> str:
    """Apply :func:`redact_url` to every http(s) URL found in ``text``."""
    if not text:
        return text
    return URL_PATTERN.sub(lambda match: redact_url(match.group(0)), text)
