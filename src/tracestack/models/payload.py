"""Validated view of a raw error-like object."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorPayload(BaseModel):
    """The stack-related fields of an error captured in some runtime.

    Field aliases are the property names browsers put on their error
    objects, so a decoded JSON error report validates as-is.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        arbitrary_types_allowed=True,
    )

    stack: str | None = None
    message: str | None = None
    file_name: str | None = Field(None, alias="fileName")
    source_url: str | None = Field(None, alias="sourceURL")
    number: int | None = None
    arguments: Any = None
    stacktrace: str | None = None
    opera_sourceloc: Any = Field(None, alias="opera#sourceloc")

    @classmethod
    def coerce(cls, raw: Any) -> ErrorPayload:
        """Build a payload from a mapping, an object or an existing payload.

        Args:
            raw: Mapping keyed by browser property names, an object exposing
                those names as attributes, or None for an empty payload.

        Returns:
            Validated ErrorPayload

        Raises:
            pydantic.ValidationError: If a field has an unusable type
        """
        if isinstance(raw, cls):
            return raw
        if raw is None:
            return cls()
        if isinstance(raw, Mapping):
            return cls.model_validate(dict(raw))

        values: dict[str, Any] = {}
        for name, field in cls.model_fields.items():
            key = field.alias or name
            for attr in (key, name):
                value = getattr(raw, attr, None)
                if value is not None:
                    values[key] = value
                    break
        return cls.model_validate(values)

    def text_of(self, field: str) -> str | None:
        """Return the named text field, accepting either alias or field name."""
        for name, info in type(self).model_fields.items():
            if field in (name, info.alias):
                value = getattr(self, name)
                return value if isinstance(value, str) else None
        raise KeyError(field)
