"""Value types shared by the matrix, codec, resolver, selector and classifier.

Every type here is an immutable value built per call; nothing carries
identity beyond its fields.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class TaskType(StrEnum):
    """LLM capability needed by a task."""

    CODE = "code"
    VISION = "vision"
    TEXT = "text"


class CostPreference(StrEnum):
    """Caller's cost preference for legacy ranking."""

    ECO = "eco"
    BALANCED = "balanced"
    PREMIUM = "premium"


class RoutingMode(StrEnum):
    """Named weighting/constraint profile for score-based routing."""

    BALANCED = "balanced"
    CHEAP = "cheap"
    FAST = "fast"
    QUALITY = "quality"
    RELIABLE = "reliable"


class ScoreComponent(StrEnum):
    """Components of the routing-mode weighted score."""

    CAPABILITY = "capability"
    COST = "cost"
    LATENCY = "latency"
    RELIABILITY = "reliability"
    THROUGHPUT = "throughput"


TASK_TYPES: tuple[TaskType, ...] = tuple(TaskType)
MIN_COMPLEXITY = 1
MAX_COMPLEXITY = 5

ModelRatings = dict[TaskType, int]
"""Per-task capability tiers (1-5). A missing task type means unsupported."""

ModelArenaScores = dict[TaskType, float]
"""Raw benchmark scores per task type, used for within-tier resolution."""

MatrixOverrides = dict[str, ModelRatings | None]
"""Model-prefix overrides: ratings replace the prefix, None removes it."""


@dataclass(frozen=True, slots=True)
class ModelCost:
    """Per-unit input/output price of a model."""

    input: float = 0.0
    output: float = 0.0

    @property
    def effective(self) -> float:
        """Mean of input and output unit cost."""
        return (self.input + self.output) / 2


@dataclass(frozen=True, slots=True)
class CandidateModel:
    """A model offered by the caller's runtime.

    Attributes:
        provider: Provider id (e.g. "anthropic", "openrouter").
        id: Provider-scoped model id.
        name: Human-readable model name.
        cost: Unit prices; candidates without cost cannot be ranked by the selector.
    """

    provider: str
    id: str
    name: str = ""
    cost: ModelCost | None = None


ModelSource = Callable[[], Sequence[CandidateModel]]
"""Zero-argument callable returning the live candidate list."""


@dataclass(frozen=True, slots=True)
class ResolvedModel:
    """An exact provider/model pair. Identity is ``(provider, id)``."""

    provider: str
    id: str

    @property
    def display_name(self) -> str:
        return f"{self.provider}/{self.id}"

    @classmethod
    def from_candidate(cls, candidate: CandidateModel) -> ResolvedModel:
        return cls(provider=candidate.provider, id=candidate.id)


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """Task type and complexity produced by the classifier or the caller.

    Attributes:
        type: Required capability.
        complexity: Integer 1-5.
        reasoning: Free-text rationale (prefixed "fallback:" on classifier failure).
    """

    type: TaskType
    complexity: int
    reasoning: str = ""


@dataclass(frozen=True, slots=True)
class RouteSignal:
    """Telemetry for one provider/model delivery path."""

    observed_at_ms: float
    error_rate: float | None = None
    fallback_rate: float | None = None
    latency_p50_ms: float | None = None
    latency_p90_ms: float | None = None
    throughput_p50_tps: float | None = None
    throughput_p90_tps: float | None = None
    uptime: float | None = None
    window_ms: float | None = None
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Render in wire shape (camelCase), omitting absent fields."""
        wire = {
            "observedAtMs": self.observed_at_ms,
            "errorRate": self.error_rate,
            "fallbackRate": self.fallback_rate,
            "latencyP50Ms": self.latency_p50_ms,
            "latencyP90Ms": self.latency_p90_ms,
            "throughputP50Tps": self.throughput_p50_tps,
            "throughputP90Tps": self.throughput_p90_tps,
            "uptime": self.uptime,
            "windowMs": self.window_ms,
            "source": self.source,
        }
        return {key: value for key, value in wire.items() if value is not None}


@dataclass(frozen=True, slots=True)
class ModelSignal:
    """Telemetry for an abstract model, independent of provider."""

    observed_at_ms: float
    output_tps_median: float | None = None
    ttft_median_ms: float | None = None
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Render in wire shape (camelCase), omitting absent fields."""
        wire = {
            "observedAtMs": self.observed_at_ms,
            "outputTpsMedian": self.output_tps_median,
            "ttftMedianMs": self.ttft_median_ms,
            "source": self.source,
        }
        return {key: value for key, value in wire.items() if value is not None}


@dataclass(frozen=True, slots=True)
class RoutingSignalsSnapshot:
    """Timestamped telemetry bundle.

    ``routes`` is keyed by canonical ``provider/modelid`` and ``models`` by
    canonical ``modelid``. An empty map is represented as None.
    """

    generated_at_ms: float
    routes: dict[str, RouteSignal] | None = None
    models: dict[str, ModelSignal] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Render in wire shape (camelCase).

        Entries that are not signal objects are passed through unchanged so
        the sanitizer can judge them like any other wire payload.
        """
        wire: dict[str, Any] = {"generatedAtMs": self.generated_at_ms}
        if self.routes:
            wire["routes"] = _signals_to_wire(self.routes)
        if self.models:
            wire["models"] = _signals_to_wire(self.models)
        return wire


def _signals_to_wire(signals: Any) -> Any:
    if not isinstance(signals, Mapping):
        return signals
    return {
        key: signal.to_dict() if isinstance(signal, RouteSignal | ModelSignal) else signal
        for key, signal in signals.items()
    }


@dataclass(frozen=True, slots=True)
class RoutingModeConstraints:
    """Hard constraints, each enforced only when telemetry for it exists."""

    max_error_rate: float | None = None
    max_latency_p90_ms: float | None = None
    min_uptime: float | None = None


@dataclass(frozen=True, slots=True)
class RoutingScoreWeights:
    """Weights over the five score components. They need not sum to 1."""

    capability: float = 0.0
    cost: float = 0.0
    latency: float = 0.0
    reliability: float = 0.0
    throughput: float = 0.0


@dataclass(frozen=True, slots=True)
class RoutingModePolicy:
    """Complete policy for one routing mode."""

    complexity_bias: float
    constraints: RoutingModeConstraints
    task_floors: Mapping[TaskType, float]
    weights: RoutingScoreWeights


@dataclass(frozen=True, slots=True)
class RoutingModePolicyOverride:
    """Partial policy merged field-by-field on top of a built-in mode.

    Nested maps hold only the keys the caller supplied; keys use the
    snake_case attribute names of RoutingModeConstraints/RoutingScoreWeights.
    """

    complexity_bias: float | None = None
    constraints: dict[str, float] = field(default_factory=dict)
    task_floors: dict[TaskType, float] = field(default_factory=dict)
    weights: dict[str, float] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return (
            self.complexity_bias is None
            and not self.constraints
            and not self.task_floors
            and not self.weights
        )
