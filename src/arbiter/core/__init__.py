"""Arbiter core module - shared Result type and errors."""

from arbiter.core.errors import (
    ArbiterError,
    ConfigError,
    ProviderError,
    ValidationError,
)
from arbiter.core.types import JsonPayload, Result

__all__ = [
    # Types
    "Result",
    "JsonPayload",
    # Errors
    "ArbiterError",
    "ProviderError",
    "ConfigError",
    "ValidationError",
]
