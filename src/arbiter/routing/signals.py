"""Routing signal keys and telemetry/policy payload sanitizers.

Telemetry arrives from outside the process (dashboards, sidecars, config
files), so every field is validated independently: an out-of-range value
drops that field only, and an invalid entry drops that entry only. A payload
is rejected as a whole only when its root is unusable.

Numbers must be real JSON numbers: ``bool`` values, NaN and infinities are
rejected, and nothing is clamped into range.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
import math
from typing import Any

from arbiter.core.errors import ValidationError
from arbiter.core.types import JsonPayload, Result
from arbiter.observability.logging import get_logger
from arbiter.routing.types import (
    MAX_COMPLEXITY,
    MIN_COMPLEXITY,
    TASK_TYPES,
    ModelSignal,
    RouteSignal,
    RoutingModePolicyOverride,
    RoutingSignalsSnapshot,
    ScoreComponent,
    TaskType,
)

log = get_logger(__name__)

_ROUTE_SEPARATORS = ("/", "|")

# Wire key -> attribute name for policy constraints.
_CONSTRAINT_FIELDS: dict[str, str] = {
    "maxErrorRate": "max_error_rate",
    "maxLatencyP90Ms": "max_latency_p90_ms",
    "minUptime": "min_uptime",
}


@dataclass(frozen=True, slots=True)
class RouteSignalKeyParts:
    """Normalized provider and model id parsed from a route key."""

    provider: str
    model_id: str


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


def build_route_signal_key(provider: str, model_id: str) -> str:
    """Build the canonical route key ``provider/modelid`` (trimmed, lowercase)."""
    return f"{provider.strip().lower()}/{model_id.strip().lower()}"


def build_model_signal_key(model_id: str) -> str:
    """Build the canonical model key (trimmed, lowercase)."""
    return model_id.strip().lower()


def build_provider_model_signal_key(provider: str, model_id: str) -> str:
    """Build the provider-scoped model key; same format as the route key."""
    return build_route_signal_key(provider, model_id)


def parse_route_signal_key(key: str) -> RouteSignalKeyParts | None:
    """Parse a route key in canonical (``a/b``) or legacy (``a|b``) form.

    The earliest separator wins, so ``openrouter/z-ai/glm-5`` parses to
    provider ``openrouter`` and model ``z-ai/glm-5``.

    Args:
        key: Raw route key.

    Returns:
        Normalized parts, or None when either side is empty or no separator exists.
    """
    trimmed = key.strip()
    positions = [trimmed.find(sep) for sep in _ROUTE_SEPARATORS if sep in trimmed]
    if not positions:
        return None

    index = min(positions)
    provider = trimmed[:index].strip().lower()
    model_id = trimmed[index + 1 :].strip().lower()
    if not provider or not model_id:
        return None
    return RouteSignalKeyParts(provider=provider, model_id=model_id)


# ---------------------------------------------------------------------------
# Field validators
# ---------------------------------------------------------------------------


def _is_record(value: Any) -> bool:
    return isinstance(value, Mapping)


def parse_finite_number(value: Any) -> float | None:
    """Return value as a finite number, or None (bools rejected)."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if not math.isfinite(value):
        return None
    return value


def parse_non_negative_number(value: Any) -> float | None:
    """Return value when it is a finite number >= 0, else None."""
    parsed = parse_finite_number(value)
    if parsed is None or parsed < 0:
        return None
    return parsed


def parse_unit_interval(value: Any) -> float | None:
    """Return value when it is a finite number in [0, 1], else None."""
    parsed = parse_finite_number(value)
    if parsed is None or parsed < 0 or parsed > 1:
        return None
    return parsed


def parse_optional_string(value: Any) -> str | None:
    """Return the trimmed string, or None when empty or not a string."""
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def _parse_task_floor(value: Any) -> float | None:
    parsed = parse_finite_number(value)
    if parsed is None or parsed < MIN_COMPLEXITY or parsed > MAX_COMPLEXITY:
        return None
    return parsed


_ROUTE_FIELDS: dict[str, tuple[str, Callable[[Any], Any]]] = {
    "errorRate": ("error_rate", parse_unit_interval),
    "fallbackRate": ("fallback_rate", parse_unit_interval),
    "latencyP50Ms": ("latency_p50_ms", parse_non_negative_number),
    "latencyP90Ms": ("latency_p90_ms", parse_non_negative_number),
    "throughputP50Tps": ("throughput_p50_tps", parse_non_negative_number),
    "throughputP90Tps": ("throughput_p90_tps", parse_non_negative_number),
    "uptime": ("uptime", parse_unit_interval),
    "windowMs": ("window_ms", parse_non_negative_number),
    "source": ("source", parse_optional_string),
}

_MODEL_FIELDS: dict[str, tuple[str, Callable[[Any], Any]]] = {
    "outputTpsMedian": ("output_tps_median", parse_non_negative_number),
    "ttftMedianMs": ("ttft_median_ms", parse_non_negative_number),
    "source": ("source", parse_optional_string),
}


def _parse_fields(
    raw: Mapping[str, Any], fields: dict[str, tuple[str, Callable[[Any], Any]]]
) -> dict[str, Any]:
    parsed: dict[str, Any] = {}
    for wire_key, (attr, parser) in fields.items():
        value = parser(raw.get(wire_key))
        if value is not None:
            parsed[attr] = value
    return parsed


def _sanitize_route_signal(raw: Any) -> RouteSignal | None:
    if not _is_record(raw):
        return None
    observed_at_ms = parse_non_negative_number(raw.get("observedAtMs"))
    if observed_at_ms is None:
        return None
    return RouteSignal(observed_at_ms=observed_at_ms, **_parse_fields(raw, _ROUTE_FIELDS))


def _sanitize_model_signal(raw: Any) -> ModelSignal | None:
    if not _is_record(raw):
        return None
    observed_at_ms = parse_non_negative_number(raw.get("observedAtMs"))
    if observed_at_ms is None:
        return None
    return ModelSignal(observed_at_ms=observed_at_ms, **_parse_fields(raw, _MODEL_FIELDS))


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


def _sanitize_routes(raw_routes: Any) -> tuple[dict[str, RouteSignal], int]:
    routes: dict[str, RouteSignal] = {}
    dropped = 0
    if not _is_record(raw_routes):
        return routes, dropped

    for raw_key, raw_signal in raw_routes.items():
        parts = parse_route_signal_key(raw_key) if isinstance(raw_key, str) else None
        signal = _sanitize_route_signal(raw_signal) if parts else None
        if parts is None or signal is None:
            dropped += 1
            continue
        routes[build_route_signal_key(parts.provider, parts.model_id)] = signal
    return routes, dropped


def _sanitize_models(raw_models: Any) -> tuple[dict[str, ModelSignal], int]:
    models: dict[str, ModelSignal] = {}
    dropped = 0
    if not _is_record(raw_models):
        return models, dropped

    for raw_key, raw_signal in raw_models.items():
        key = build_model_signal_key(raw_key) if isinstance(raw_key, str) else ""
        signal = _sanitize_model_signal(raw_signal) if key else None
        if signal is None:
            dropped += 1
            continue
        models[key] = signal
    return models, dropped


def sanitize_routing_signals_snapshot(
    payload: JsonPayload | RoutingSignalsSnapshot,
) -> Result[RoutingSignalsSnapshot, ValidationError]:
    """Validate a telemetry snapshot.

    Route keys are canonicalized (``provider|model`` becomes
    ``provider/model``) and model keys lowercased. Invalid entries are dropped
    individually; empty maps come back as None.

    Args:
        payload: Wire-shape mapping, or an already-built snapshot to re-validate.

    Returns:
        Ok with the sanitized snapshot, or Err when the root is not a mapping
        or ``generatedAtMs`` is missing, negative or non-finite.
    """
    if isinstance(payload, RoutingSignalsSnapshot):
        payload = payload.to_dict()

    if not _is_record(payload):
        return Result.err(
            ValidationError("Routing signals snapshot must be an object", value=payload)
        )

    generated_at_ms = parse_non_negative_number(payload.get("generatedAtMs"))
    if generated_at_ms is None:
        return Result.err(
            ValidationError(
                "generatedAtMs must be a finite non-negative number",
                field="generatedAtMs",
                value=payload.get("generatedAtMs"),
            )
        )

    routes, dropped_routes = _sanitize_routes(payload.get("routes"))
    models, dropped_models = _sanitize_models(payload.get("models"))

    if dropped_routes or dropped_models:
        log.debug(
            "signals.snapshot.entries_dropped",
            dropped_routes=dropped_routes,
            dropped_models=dropped_models,
        )

    return Result.ok(
        RoutingSignalsSnapshot(
            generated_at_ms=generated_at_ms,
            routes=routes or None,
            models=models or None,
        )
    )


# ---------------------------------------------------------------------------
# Policy override
# ---------------------------------------------------------------------------


def routing_mode_policy_override_to_dict(override: RoutingModePolicyOverride) -> dict[str, Any]:
    """Render an override in wire shape (camelCase), omitting empty parts."""
    wire: dict[str, Any] = {}
    if override.complexity_bias is not None:
        wire["complexityBias"] = override.complexity_bias
    if override.constraints:
        attr_to_wire = {attr: key for key, attr in _CONSTRAINT_FIELDS.items()}
        wire["constraints"] = {
            attr_to_wire.get(attr, attr): value for attr, value in override.constraints.items()
        }
    if override.task_floors:
        wire["taskFloors"] = {str(task): floor for task, floor in override.task_floors.items()}
    if override.weights:
        wire["weights"] = dict(override.weights)
    return wire


def sanitize_routing_mode_policy_override(
    payload: JsonPayload | RoutingModePolicyOverride,
) -> Result[RoutingModePolicyOverride, ValidationError]:
    """Validate a partial routing-mode policy.

    Field rules:
        complexityBias: any finite number.
        constraints: maxErrorRate and minUptime in [0, 1]; maxLatencyP90Ms >= 0.
        taskFloors: numbers in [1, 5] for known task types.
        weights: finite numbers >= 0 for known score components.

    Args:
        payload: Wire-shape mapping, or an already-built override to re-validate.

    Returns:
        Ok with the override, or Err when nothing valid remains.
    """
    if isinstance(payload, RoutingModePolicyOverride):
        payload = routing_mode_policy_override_to_dict(payload)

    if not _is_record(payload):
        return Result.err(
            ValidationError("Routing mode policy override must be an object", value=payload)
        )

    complexity_bias = parse_finite_number(payload.get("complexityBias"))

    constraints: dict[str, float] = {}
    raw_constraints = payload.get("constraints")
    if _is_record(raw_constraints):
        for wire_key, attr in _CONSTRAINT_FIELDS.items():
            parser = (
                parse_non_negative_number if attr == "max_latency_p90_ms" else parse_unit_interval
            )
            value = parser(raw_constraints.get(wire_key))
            if value is not None:
                constraints[attr] = value

    task_floors: dict[TaskType, float] = {}
    raw_floors = payload.get("taskFloors")
    if _is_record(raw_floors):
        for task in TASK_TYPES:
            floor = _parse_task_floor(raw_floors.get(task.value))
            if floor is not None:
                task_floors[task] = floor

    weights: dict[str, float] = {}
    raw_weights = payload.get("weights")
    if _is_record(raw_weights):
        for component in ScoreComponent:
            weight = parse_non_negative_number(raw_weights.get(component.value))
            if weight is not None:
                weights[component.value] = weight

    override = RoutingModePolicyOverride(
        complexity_bias=complexity_bias,
        constraints=constraints,
        task_floors=task_floors,
        weights=weights,
    )
    if override.is_empty():
        return Result.err(ValidationError("Routing mode policy override has no valid fields"))
    return Result.ok(override)
