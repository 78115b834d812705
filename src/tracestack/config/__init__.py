"""Configuration loading and validation."""

from .loader import load_config
from .schema import LoggingConfig, ResolverConfig, TracerConfig

__all__ = [
    # Loader
    "load_config",
    # Root config
    "TracerConfig",
    # Sections
    "LoggingConfig",
    "ResolverConfig",
]
