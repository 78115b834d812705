"""Data models and transfer objects."""

from .call_site import (
    ANONYMOUS,
    ANONYMOUS_PLACEHOLDER,
    UNKNOWN_NAME,
    CallSite,
    Resolution,
    StackTrace,
)
from .payload import ErrorPayload

__all__ = [
    # Call site models
    "ANONYMOUS",
    "ANONYMOUS_PLACEHOLDER",
    "UNKNOWN_NAME",
    "CallSite",
    "Resolution",
    "StackTrace",
    # Input models
    "ErrorPayload",
]
