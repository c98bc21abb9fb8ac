"""Unit tests for routing signal keys and payload sanitizers."""

import math

import pytest

from arbiter.routing.signals import (
    RouteSignalKeyParts,
    build_model_signal_key,
    build_provider_model_signal_key,
    build_route_signal_key,
    parse_route_signal_key,
    routing_mode_policy_override_to_dict,
    sanitize_routing_mode_policy_override,
    sanitize_routing_signals_snapshot,
)
from arbiter.routing.types import (
    ModelSignal,
    RouteSignal,
    RoutingModePolicyOverride,
    RoutingSignalsSnapshot,
    TaskType,
)


class TestSignalKeys:
    """Test canonical key builders and parsing."""

    def test_route_key_is_trimmed_and_lowercased(self) -> None:
        """Route keys are canonical provider/modelid."""
        assert build_route_signal_key(" OpenAI ", " GPT-5.2 ") == "openai/gpt-5.2"
        assert build_provider_model_signal_key("Anthropic", "Claude-Opus-4-6") == (
            "anthropic/claude-opus-4-6"
        )

    def test_model_key(self) -> None:
        """Model keys are trimmed and lowercased."""
        assert build_model_signal_key("  GLM-5 ") == "glm-5"

    def test_parse_canonical_key(self) -> None:
        """Canonical keys parse into normalized parts."""
        assert parse_route_signal_key("OpenAI/GPT-5.2") == RouteSignalKeyParts(
            provider="openai", model_id="gpt-5.2"
        )

    def test_parse_legacy_pipe_key(self) -> None:
        """Legacy pipe-separated keys parse too."""
        assert parse_route_signal_key("openai|gpt-5.2") == RouteSignalKeyParts(
            provider="openai", model_id="gpt-5.2"
        )

    def test_earliest_separator_wins(self) -> None:
        """The first separator splits provider from model id."""
        parts = parse_route_signal_key("openrouter/z-ai/glm-5")
        assert parts == RouteSignalKeyParts(provider="openrouter", model_id="z-ai/glm-5")

        parts = parse_route_signal_key("a|b/c")
        assert parts == RouteSignalKeyParts(provider="a", model_id="b/c")

    @pytest.mark.parametrize("key", ["", "   ", "openai", "/gpt-5", "openai/", " | "])
    def test_invalid_keys(self, key: str) -> None:
        """Keys without both sides are rejected."""
        assert parse_route_signal_key(key) is None


class TestSanitizeSnapshot:
    """Test sanitize_routing_signals_snapshot."""

    def test_valid_snapshot(self) -> None:
        """A valid snapshot round-trips its fields."""
        result = sanitize_routing_signals_snapshot(
            {
                "generatedAtMs": 1000,
                "routes": {
                    "openai/gpt-5.2": {
                        "observedAtMs": 900,
                        "errorRate": 0.02,
                        "latencyP90Ms": 1500,
                        "uptime": 0.99,
                        "source": " dashboard ",
                    }
                },
                "models": {"GPT-5.2": {"observedAtMs": 900, "outputTpsMedian": 80}},
            }
        )

        assert result.is_ok
        snapshot = result.value
        assert snapshot.generated_at_ms == 1000
        assert snapshot.routes == {
            "openai/gpt-5.2": RouteSignal(
                observed_at_ms=900,
                error_rate=0.02,
                latency_p90_ms=1500,
                uptime=0.99,
                source="dashboard",
            )
        }
        assert snapshot.models == {"gpt-5.2": ModelSignal(observed_at_ms=900, output_tps_median=80)}

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            [],
            "snapshot",
            {},
            {"generatedAtMs": -1},
            {"generatedAtMs": math.nan},
            {"generatedAtMs": math.inf},
            {"generatedAtMs": "1000"},
            {"generatedAtMs": True},
        ],
    )
    def test_invalid_root_is_err(self, payload: object) -> None:
        """Unusable roots are rejected as a whole."""
        result = sanitize_routing_signals_snapshot(payload)

        assert result.is_err

    def test_out_of_range_fields_are_dropped_not_clamped(self) -> None:
        """Invalid fields are dropped individually."""
        result = sanitize_routing_signals_snapshot(
            {
                "generatedAtMs": 1,
                "routes": {
                    "openai/gpt-5.2": {
                        "observedAtMs": 1,
                        "errorRate": 1.5,
                        "fallbackRate": -0.1,
                        "uptime": True,
                        "latencyP50Ms": -5,
                        "latencyP90Ms": math.inf,
                        "throughputP50Tps": 40,
                        "windowMs": "60000",
                        "source": "   ",
                    }
                },
            }
        )

        route = result.value.routes["openai/gpt-5.2"]  # type: ignore[index]
        assert route == RouteSignal(observed_at_ms=1, throughput_p50_tps=40)

    def test_pipe_route_keys_are_canonicalized(self) -> None:
        """Legacy route keys become provider/modelid."""
        result = sanitize_routing_signals_snapshot(
            {"generatedAtMs": 1, "routes": {"OpenAI|GPT-5.2": {"observedAtMs": 1}}}
        )

        assert list(result.value.routes or {}) == ["openai/gpt-5.2"]

    def test_invalid_entries_are_dropped(self) -> None:
        """Entries without observedAtMs or with bad keys are dropped."""
        result = sanitize_routing_signals_snapshot(
            {
                "generatedAtMs": 1,
                "routes": {
                    "no-separator": {"observedAtMs": 1},
                    "openai/gpt-5": {"errorRate": 0.1},
                    "openai/gpt-5.2": "fast",
                },
                "models": {"   ": {"observedAtMs": 1}, "glm-5": {"observedAtMs": -1}},
            }
        )

        assert result.is_ok
        assert result.value.routes is None
        assert result.value.models is None

    def test_non_mapping_sections_are_ignored(self) -> None:
        """routes/models that are not objects are treated as absent."""
        result = sanitize_routing_signals_snapshot({"generatedAtMs": 5, "routes": [1, 2]})

        assert result.value == RoutingSignalsSnapshot(generated_at_ms=5)

    def test_snapshot_object_is_revalidated(self) -> None:
        """Already-built snapshots pass through the same checks."""
        snapshot = RoutingSignalsSnapshot(
            generated_at_ms=10,
            routes={"OpenAI/GPT-5": RouteSignal(observed_at_ms=1, error_rate=0.5)},
        )

        result = sanitize_routing_signals_snapshot(snapshot)

        expected = RouteSignal(observed_at_ms=1, error_rate=0.5)
        assert result.value.routes == {"openai/gpt-5": expected}

    def test_snapshot_object_with_wire_entries(self) -> None:
        """Plain mappings inside a snapshot object are validated like wire input."""
        snapshot = RoutingSignalsSnapshot(
            generated_at_ms=10,
            routes={
                "zai/glm-5": {"observedAtMs": 1, "errorRate": 0.5},  # type: ignore[dict-item]
                "openai/gpt-5": RouteSignal(observed_at_ms=2, uptime=0.9),
            },
            models={"glm-5": "garbage"},  # type: ignore[dict-item]
        )

        result = sanitize_routing_signals_snapshot(snapshot)

        assert result.value.routes == {
            "zai/glm-5": RouteSignal(observed_at_ms=1, error_rate=0.5),
            "openai/gpt-5": RouteSignal(observed_at_ms=2, uptime=0.9),
        }
        assert result.value.models is None

    def test_snapshot_object_with_non_mapping_sections(self) -> None:
        """Non-mapping sections on a snapshot object are treated as absent."""
        snapshot = RoutingSignalsSnapshot(
            generated_at_ms=3,
            routes=[1, 2],  # type: ignore[arg-type]
        )

        assert sanitize_routing_signals_snapshot(snapshot).value == RoutingSignalsSnapshot(
            generated_at_ms=3
        )

    def test_sanitize_is_idempotent(self) -> None:
        """Sanitizing a sanitized snapshot changes nothing."""
        first = sanitize_routing_signals_snapshot(
            {
                "generatedAtMs": 1,
                "routes": {"a|b": {"observedAtMs": 2, "uptime": 0.9}},
                "models": {"B": {"observedAtMs": 2, "ttftMedianMs": 300}},
            }
        ).value

        assert sanitize_routing_signals_snapshot(first.to_dict()).value == first


class TestSanitizePolicyOverride:
    """Test sanitize_routing_mode_policy_override."""

    def test_valid_override(self) -> None:
        """All valid fields are kept."""
        result = sanitize_routing_mode_policy_override(
            {
                "complexityBias": -2,
                "constraints": {"maxErrorRate": 0.2, "maxLatencyP90Ms": 2500, "minUptime": 0.5},
                "taskFloors": {"code": 4, "text": 1.5},
                "weights": {"latency": 0.9, "cost": 0},
            }
        )

        assert result.is_ok
        override = result.value
        assert override.complexity_bias == -2
        assert override.constraints == {
            "max_error_rate": 0.2,
            "max_latency_p90_ms": 2500,
            "min_uptime": 0.5,
        }
        assert override.task_floors == {TaskType.CODE: 4, TaskType.TEXT: 1.5}
        assert override.weights == {"latency": 0.9, "cost": 0}

    def test_invalid_fields_are_dropped(self) -> None:
        """Out-of-range and unknown fields are dropped individually."""
        result = sanitize_routing_mode_policy_override(
            {
                "complexityBias": math.nan,
                "constraints": {"maxErrorRate": 2, "minUptime": -1, "maxLatencyP90Ms": 100},
                "taskFloors": {"code": 0, "vision": 6, "audio": 3},
                "weights": {"capability": -1, "speed": 1, "throughput": True},
            }
        )

        assert result.is_ok
        assert result.value == RoutingModePolicyOverride(
            constraints={"max_latency_p90_ms": 100}
        )

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            "fast",
            {},
            {"complexityBias": "1"},
            {"weights": {"capability": -1}},
            {"taskFloors": {"code": 9}},
        ],
    )
    def test_nothing_valid_is_err(self, payload: object) -> None:
        """An override with no valid field is an error."""
        assert sanitize_routing_mode_policy_override(payload).is_err

    def test_override_object_is_revalidated(self) -> None:
        """Already-built overrides round-trip through their wire form."""
        override = RoutingModePolicyOverride(
            complexity_bias=1,
            constraints={"min_uptime": 0.99, "max_error_rate": 3.0},
            task_floors={TaskType.VISION: 3},
            weights={"reliability": 0.7},
        )

        result = sanitize_routing_mode_policy_override(override)

        assert result.value == RoutingModePolicyOverride(
            complexity_bias=1,
            constraints={"min_uptime": 0.99},
            task_floors={TaskType.VISION: 3},
            weights={"reliability": 0.7},
        )
        assert routing_mode_policy_override_to_dict(result.value)["constraints"] == {
            "minUptime": 0.99
        }
