"""Error hierarchy for Arbiter.

Ranking never raises for "no suitable model" or for malformed telemetry;
those are empty lists and Err results. Exceptions are for configuration files
that cannot be loaded and for completion calls, which the classifier catches
and logs.

    ArbiterError
    ├── ProviderError     completion call failed
    ├── ConfigError       config file missing, unreadable or not a mapping
    └── ValidationError   Err payload of the payload parsers
"""

from __future__ import annotations

from typing import Any


class ArbiterError(Exception):
    """Base exception for all Arbiter errors.

    Attributes:
        message: Human-readable error description.
        details: Extra context for logs.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class ProviderError(ArbiterError):
    """A completion call failed.

    Attributes:
        provider: Provider the call was routed to (e.g. "openai").
        status_code: HTTP status code, when the provider reported one.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.provider = provider
        self.status_code = status_code

    @classmethod
    def from_exception(cls, exc: Exception, *, provider: str | None = None) -> ProviderError:
        """Wrap any exception raised by a completion function.

        The status code is taken from ``exc.status_code`` when present
        (litellm and httpx-style errors carry one) and ``__cause__`` is set.
        """
        error = cls(
            str(exc),
            provider=provider,
            status_code=getattr(exc, "status_code", None),
            details={"original_exception": type(exc).__name__},
        )
        error.__cause__ = exc
        return error


class ConfigError(ArbiterError):
    """A router config file could not be loaded.

    Attributes:
        config_file: Path of the offending file.
        config_key: Offending key, when the problem is a single field.
    """

    def __init__(
        self,
        message: str,
        *,
        config_file: str | None = None,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.config_file = config_file
        self.config_key = config_key


class ValidationError(ArbiterError):
    """An untrusted payload is structurally unusable.

    ``value`` keeps the offending payload for callers; ``str()`` and logs use
    ``safe_value``, which never dumps large telemetry blobs.
    """

    _MAX_VALUE_CHARS = 50

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field
        self.value = value

    @property
    def safe_value(self) -> str:
        """Short rendering: long strings truncated, containers shown as ``<type>``."""
        value = self.value
        if value is None:
            return "<None>"
        if isinstance(value, str):
            if len(value) > self._MAX_VALUE_CHARS:
                return f"{value[:20]}...({len(value)} chars)"
            return repr(value)
        if isinstance(value, bool | int | float):
            return repr(value)
        return f"<{type(value).__name__}>"

    def __str__(self) -> str:
        text = self.message
        if self.field:
            text = f"{text} (field: {self.field}, value: {self.safe_value})"
        if self.details:
            text = f"{text} (details: {self.details})"
        return text
