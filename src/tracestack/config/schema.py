"""Pydantic models for configuration schema."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tracestack.core.dialects import Dialect


class ResolverConfig(BaseModel):
    """Anonymous function name guessing configuration."""

    origin: str | None = Field(
        None, description="Origin source files may be fetched from, e.g. https://app.example.com"
    )
    timeout: float = Field(5.0, gt=0.0, le=120.0, description="HTTP timeout in seconds")
    max_attempts: int = Field(2, ge=1, le=5)
    scan_lines: int = Field(20, ge=1, le=200, description="Lines scanned above a frame")

    @field_validator("origin")
    @classmethod
    def validate_origin(cls, v: str | None) -> str | None:
        """Only http(s) origins can serve source text."""
        from ..utils.security import origin_of

        if v is not None and origin_of(v) is None:
            raise ValueError(f"Invalid origin: {v}. Expected an http(s) URL")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "json"


class TracerConfig(BaseSettings):
    """Root configuration for a StackTracer."""

    mode: Dialect | None = None
    guess: bool = True
    limit: int = Field(0, ge=0, description="Maximum frames per trace, 0 for all")
    resolver: ResolverConfig = ResolverConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = SettingsConfigDict(
        env_prefix="TRACESTACK_",
        env_nested_delimiter="__",
    )
