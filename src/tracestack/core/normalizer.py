"""Rewrites raw stack text into canonical ``name@file:line:column`` lines."""

from __future__ import annotations

from tracestack.core.dialects import NEW_LINES, DialectProfile, apply_rules
from tracestack.models.payload import ErrorPayload
from tracestack.utils.errors import EnvironmentMismatchError


def limit_lines(text: str, limit: int) -> str:
    """Keep the first ``limit + 1`` physical lines of ``text``.

    The extra line leaves room for a leading error-message header, which
    some dialects only drop in their post step.

    Args:
        text: Raw stack text
        limit: Maximum number of frames; 0 keeps everything

    Returns:
        The truncated text, joined with ``\\n``
    """
    if not limit:
        return text
    return "\n".join(NEW_LINES.split(text)[: limit + 1])


class LineNormalizer:
    """Turns a payload's stack text into canonical lines for one dialect.

    The live ``other`` dialect has no text to normalize; the tracer walks
    the Python call chain for it instead.
    """

    def normalize(
        self,
        payload: ErrorPayload,
        profile: DialectProfile,
        limit: int = 0,
    ) -> list[str]:
        """Canonicalize the stack text carried by ``payload``.

        Args:
            payload: Error payload holding the stack text
            profile: Profile of the dialect the payload is written in
            limit: Maximum number of frames; 0 for no limit

        Returns:
            Canonical lines, innermost frame first

        Raises:
            EnvironmentMismatchError: If the payload lacks the field the
                dialect reads its stack from
        """
        if profile.live:
            raise EnvironmentMismatchError(str(profile.dialect), "stack")

        text = payload.text_of(profile.source_field)
        if not text:
            raise EnvironmentMismatchError(str(profile.dialect), profile.source_field)

        if profile.extract is not None:
            return profile.extract(text, limit)

        return self.rewrite(text, profile, limit)

    def rewrite(self, text: str, profile: DialectProfile, limit: int = 0) -> list[str]:
        """Run a profile's rewrite pipeline over raw text.

        pre rules -> limit -> per-line rules -> split -> post step
        """
        text = "\n".join(NEW_LINES.split(text))
        text = apply_rules(text, profile.pre)
        text = limit_lines(text, limit)
        text = apply_rules(text, profile.rules)

        lines = [line for line in NEW_LINES.split(text) if line.strip()]
        if profile.post is not None:
            lines = profile.post(lines)
        return lines
