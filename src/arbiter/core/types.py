"""Core types for Arbiter.

Result[T, E] carries the outcome of parsing an untrusted payload (override
files, telemetry snapshots, policy overrides, router config). Only a
structurally unusable root is an Err; bad individual fields are dropped by
the parsers and never surface here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, cast

T = TypeVar("T")
E = TypeVar("E")

JsonPayload = Any
"""Decoded JSON/YAML of unknown shape (dicts, lists, scalars, None)."""


@dataclass(frozen=True, slots=True)
class Result(Generic[T, E]):
    """Either an Ok value or an Err error.

    Usage:
        result = parse_model_matrix_overrides(payload)
        if result.is_err:
            log.warning("matrix.overrides.rejected", reason=result.error.message)
        overrides = result.unwrap_or({})

        # Optional inputs: invalid is treated the same as absent
        snapshot = sanitize_routing_signals_snapshot(raw).ok_or_none()
    """

    _value: T | None
    _error: E | None
    _is_ok: bool

    @classmethod
    def ok(cls, value: T) -> Result[T, E]:
        return cls(_value=value, _error=None, _is_ok=True)

    @classmethod
    def err(cls, error: E) -> Result[T, E]:
        return cls(_value=None, _error=error, _is_ok=False)

    @property
    def is_ok(self) -> bool:
        return self._is_ok

    @property
    def is_err(self) -> bool:
        return not self._is_ok

    @property
    def value(self) -> T:
        """The Ok value.

        Raises:
            ValueError: If this Result is Err.
        """
        if not self._is_ok:
            msg = f"Cannot access value on Err result: {self._error}"
            raise ValueError(msg)
        return cast(T, self._value)

    @property
    def error(self) -> E:
        """The Err error.

        Raises:
            ValueError: If this Result is Ok.
        """
        if self._is_ok:
            msg = "Cannot access error on Ok result"
            raise ValueError(msg)
        return cast(E, self._error)

    def unwrap_or(self, default: T) -> T:
        """Return the Ok value, or default when Err."""
        return cast(T, self._value) if self._is_ok else default

    def ok_or_none(self) -> T | None:
        """Return the Ok value, or None when Err."""
        return cast(T, self._value) if self._is_ok else None

    def __repr__(self) -> str:
        if self._is_ok:
            return f"Ok({self._value!r})"
        return f"Err({self._error!r})"
