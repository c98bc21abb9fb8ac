"""Routing module for Arbiter.

This module ranks LLM models for a task, including:
- Capability matrix with per-task tiers and arena priors
- Routing signal keys and telemetry/policy sanitizers
- Fuzzy resolution of human-typed model names
- Legacy cost-preference and score-based routing-mode selection
- Task classification via one cheap LLM call
"""

from arbiter.routing.classifier import (
    CheapestModel,
    build_classification_prompt,
    classify_task,
    extract_json_object,
    find_cheapest_model,
)
from arbiter.routing.matrix import (
    MODEL_ARENA_PRIORS,
    MODEL_MATRIX,
    apply_model_matrix_overrides,
    create_model_arena_priors_lookup,
    create_model_matrix_override_template,
    create_model_ratings_lookup,
    get_model_arena_priors,
    get_model_ratings,
    model_supports_task,
    parse_model_matrix_overrides,
)
from arbiter.routing.resolver import (
    find_candidates,
    list_available_models,
    pick_best,
    resolve_model_candidates,
    resolve_model_fuzzy,
)
from arbiter.routing.selector import (
    DEFAULT_MODE_POLICIES,
    SelectionOptions,
    get_effective_mode_policy,
    select_models,
)
from arbiter.routing.signals import (
    RouteSignalKeyParts,
    build_model_signal_key,
    build_provider_model_signal_key,
    build_route_signal_key,
    parse_route_signal_key,
    sanitize_routing_mode_policy_override,
    sanitize_routing_signals_snapshot,
)
from arbiter.routing.types import (
    CandidateModel,
    ClassificationResult,
    CostPreference,
    ModelCost,
    ModelSignal,
    ResolvedModel,
    RouteSignal,
    RoutingMode,
    RoutingModeConstraints,
    RoutingModePolicy,
    RoutingModePolicyOverride,
    RoutingScoreWeights,
    RoutingSignalsSnapshot,
    TaskType,
)

__all__ = [
    # Types
    "TaskType",
    "CostPreference",
    "RoutingMode",
    "ModelCost",
    "CandidateModel",
    "ResolvedModel",
    "ClassificationResult",
    "RouteSignal",
    "ModelSignal",
    "RoutingSignalsSnapshot",
    "RoutingModeConstraints",
    "RoutingScoreWeights",
    "RoutingModePolicy",
    "RoutingModePolicyOverride",
    # Matrix
    "MODEL_MATRIX",
    "MODEL_ARENA_PRIORS",
    "get_model_ratings",
    "create_model_ratings_lookup",
    "apply_model_matrix_overrides",
    "model_supports_task",
    "get_model_arena_priors",
    "create_model_arena_priors_lookup",
    "parse_model_matrix_overrides",
    "create_model_matrix_override_template",
    # Signals
    "RouteSignalKeyParts",
    "build_route_signal_key",
    "build_model_signal_key",
    "build_provider_model_signal_key",
    "parse_route_signal_key",
    "sanitize_routing_signals_snapshot",
    "sanitize_routing_mode_policy_override",
    # Resolver
    "find_candidates",
    "pick_best",
    "resolve_model_fuzzy",
    "resolve_model_candidates",
    "list_available_models",
    # Selector
    "DEFAULT_MODE_POLICIES",
    "SelectionOptions",
    "get_effective_mode_policy",
    "select_models",
    # Classifier
    "CheapestModel",
    "find_cheapest_model",
    "build_classification_prompt",
    "extract_json_object",
    "classify_task",
]
