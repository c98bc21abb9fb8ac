"""Pydantic models for Arbiter configuration.

Classes:
    RouterConfig: Host-level selection defaults (exclusions, overrides,
        provider preference, cost preference, routing mode)
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from arbiter.routing.selector import SelectionOptions
from arbiter.routing.types import (
    MAX_COMPLEXITY,
    MIN_COMPLEXITY,
    CostPreference,
    RoutingMode,
    TaskType,
)


class RouterConfig(BaseModel, frozen=True):
    """Selection defaults a host agent loads once and reuses per call.

    Attributes:
        exclude: Provider or model prefixes never to select.
        matrix_overrides: Per-prefix capability overrides (None removes a prefix).
        preferred_providers: Providers preferred on ties, earliest first.
        cost_preference: Legacy cost preference and routing-mode tie-break.
        routing_mode: Score-based routing mode; legacy ranking when None.
    """

    exclude: list[str] = Field(default_factory=list)
    matrix_overrides: dict[str, dict[TaskType, int] | None] | None = None
    preferred_providers: list[str] = Field(default_factory=list)
    cost_preference: CostPreference = CostPreference.BALANCED
    routing_mode: RoutingMode | None = None

    @field_validator("matrix_overrides")
    @classmethod
    def validate_tiers(
        cls, v: dict[str, dict[TaskType, int] | None] | None
    ) -> dict[str, dict[TaskType, int] | None] | None:
        """Ensure every override tier is within 1-5."""
        if v is None:
            return v
        for prefix, ratings in v.items():
            if ratings is None:
                continue
            for task, tier in ratings.items():
                if not MIN_COMPLEXITY <= tier <= MAX_COMPLEXITY:
                    msg = f"Tier for {prefix}.{task} must be between 1 and 5, got {tier}"
                    raise ValueError(msg)
        return v

    def to_selection_options(self, **kwargs: object) -> SelectionOptions:
        """Build SelectionOptions from this config.

        Args:
            **kwargs: Extra SelectionOptions fields (pool, routing_signals, ...).

        Returns:
            SelectionOptions carrying the configured defaults.
        """
        return SelectionOptions(
            matrix_overrides=self.matrix_overrides,
            preferred_providers=tuple(self.preferred_providers),
            exclude=tuple(self.exclude),
            routing_mode=self.routing_mode,
            **kwargs,  # type: ignore[arg-type]
        )


def get_config_dir() -> Path:
    """Get the Arbiter configuration directory (~/.arbiter/)."""
    return Path.home() / ".arbiter"
