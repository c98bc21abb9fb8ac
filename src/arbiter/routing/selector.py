"""Model selection for a classified task.

Ranks the caller's candidate models by suitability. Callers use the first
result and fall back to the rest in order.

Two ranking paths:

Legacy (no routing mode):
    1. Keep candidates whose rating for the task type >= complexity
    2. Sort by cost preference:
       - eco: ascending effective cost
       - premium: descending effective cost
       - balanced: exact rating == complexity first, then ascending cost
    3. Ties go to preferred providers, then source order

Routing mode (``options.routing_mode`` set):
    1. Merge the built-in mode policy with the sanitized override
    2. Apply complexity bias and the per-task floor
    3. Apply hard constraints where route telemetry exists (relaxed when
       nothing survives)
    4. Score capability, reliability, latency, throughput and cost
    5. Sort by score, then provider preference, cost direction, provider, id

Usage:
    from arbiter.routing.selector import SelectionOptions, select_models

    ranked = select_models(
        ClassificationResult(TaskType.CODE, 3),
        CostPreference.ECO,
        source=models,
        options=SelectionOptions(routing_mode=RoutingMode.FAST, routing_signals=snapshot),
    )
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from arbiter.observability.logging import get_logger
from arbiter.routing.matrix import (
    ArenaPriorsLookup,
    RatingsLookup,
    create_model_arena_priors_lookup,
    create_model_ratings_lookup,
)
from arbiter.routing.resolver import CandidateSource, load_candidates
from arbiter.routing.signals import (
    build_model_signal_key,
    build_provider_model_signal_key,
    build_route_signal_key,
    sanitize_routing_mode_policy_override,
    sanitize_routing_signals_snapshot,
)
from arbiter.routing.types import (
    MAX_COMPLEXITY,
    MIN_COMPLEXITY,
    ClassificationResult,
    CostPreference,
    ModelArenaScores,
    ModelRatings,
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

log = get_logger(__name__)


def _floors(value: float) -> Mapping[TaskType, float]:
    return MappingProxyType({TaskType.CODE: value, TaskType.VISION: value, TaskType.TEXT: value})


DEFAULT_MODE_POLICIES: Mapping[RoutingMode, RoutingModePolicy] = MappingProxyType(
    {
        RoutingMode.BALANCED: RoutingModePolicy(
            complexity_bias=0,
            constraints=RoutingModeConstraints(max_error_rate=0.08, min_uptime=0.92),
            task_floors=_floors(2),
            weights=RoutingScoreWeights(
                capability=0.5, cost=0.05, latency=0.15, reliability=0.2, throughput=0.1
            ),
        ),
        RoutingMode.CHEAP: RoutingModePolicy(
            complexity_bias=-1,
            constraints=RoutingModeConstraints(max_error_rate=0.1, min_uptime=0.88),
            task_floors=_floors(1),
            weights=RoutingScoreWeights(
                capability=0.25, cost=0.45, latency=0.1, reliability=0.15, throughput=0.05
            ),
        ),
        RoutingMode.FAST: RoutingModePolicy(
            complexity_bias=0,
            constraints=RoutingModeConstraints(
                max_error_rate=0.1, max_latency_p90_ms=4000, min_uptime=0.9
            ),
            task_floors=_floors(2),
            weights=RoutingScoreWeights(
                capability=0.25, cost=0.05, latency=0.45, reliability=0.15, throughput=0.1
            ),
        ),
        RoutingMode.QUALITY: RoutingModePolicy(
            complexity_bias=1,
            constraints=RoutingModeConstraints(max_error_rate=0.06, min_uptime=0.94),
            task_floors=_floors(3),
            weights=RoutingScoreWeights(
                capability=0.65, cost=0.02, latency=0.08, reliability=0.2, throughput=0.05
            ),
        ),
        RoutingMode.RELIABLE: RoutingModePolicy(
            complexity_bias=0,
            constraints=RoutingModeConstraints(max_error_rate=0.03, min_uptime=0.97),
            task_floors=_floors(2),
            weights=RoutingScoreWeights(
                capability=0.3, cost=0.05, latency=0.1, reliability=0.5, throughput=0.05
            ),
        ),
    }
)

# Arena score boundaries of tiers 2, 3, 4 and 5 for each leaderboard.
ARENA_TIER_BOUNDARIES: Mapping[TaskType, tuple[float, float, float, float]] = MappingProxyType(
    {
        TaskType.CODE: (1180, 1280, 1370, 1440),
        TaskType.TEXT: (1320, 1370, 1410, 1460),
        TaskType.VISION: (1100, 1150, 1200, 1250),
    }
)

NEUTRAL_SIGNAL_SCORE = 0.5


@dataclass(frozen=True, slots=True)
class SelectionOptions:
    """Optional inputs for select_models.

    Attributes:
        pool: Pre-resolved models for scoped routing (e.g. resolver output).
        matrix_overrides: Per-prefix matrix overrides from host configuration.
        preferred_providers: Providers preferred on ties, earliest first.
        exclude: Provider or model prefixes to remove before ranking.
        routing_mode: Score-based mode; legacy ranking when None.
        routing_signals: Telemetry snapshot (wire mapping or snapshot object).
        routing_mode_policy_override: Partial policy merged into the mode.
    """

    pool: Sequence[ResolvedModel] | None = None
    matrix_overrides: Mapping[str, Mapping[TaskType, int] | None] | None = None
    preferred_providers: Sequence[str] = field(default_factory=tuple)
    exclude: Sequence[str] = field(default_factory=tuple)
    routing_mode: RoutingMode | None = None
    routing_signals: RoutingSignalsSnapshot | Mapping[str, Any] | None = None
    routing_mode_policy_override: RoutingModePolicyOverride | Mapping[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class ScoredCandidate:
    """Candidate enriched with ratings, priors and effective cost."""

    resolved: ResolvedModel
    ratings: ModelRatings
    effective_cost: float
    arena_scores: ModelArenaScores | None = None


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return min(high, max(low, value))


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


def get_effective_mode_policy(
    mode: RoutingMode,
    override: RoutingModePolicyOverride | None = None,
) -> RoutingModePolicy:
    """Merge a built-in mode policy with a partial override.

    Scalars are replaced; constraints, task floors and weights merge key by key.

    Args:
        mode: Active routing mode.
        override: Sanitized partial override.

    Returns:
        The effective policy.
    """
    base = DEFAULT_MODE_POLICIES[RoutingMode(mode)]
    if override is None or override.is_empty():
        return base

    return RoutingModePolicy(
        complexity_bias=(
            override.complexity_bias
            if override.complexity_bias is not None
            else base.complexity_bias
        ),
        constraints=replace(base.constraints, **override.constraints),
        task_floors=MappingProxyType({**base.task_floors, **override.task_floors}),
        weights=replace(base.weights, **override.weights),
    )


# ---------------------------------------------------------------------------
# Candidates
# ---------------------------------------------------------------------------


def _normalize_patterns(patterns: Sequence[str]) -> list[str]:
    return [p.strip().lower() for p in patterns if isinstance(p, str) and p.strip()]


def is_excluded(provider: str, model_id: str, patterns: Sequence[str]) -> bool:
    """Return True if a provider/model pair matches any exclusion pattern.

    A pattern containing "/" matches ``provider/id`` exactly or as a prefix;
    any other pattern matches a provider or model id prefix.
    """
    provider = provider.lower()
    model_id = model_id.lower()
    qualified = f"{provider}/{model_id}"
    for pattern in _normalize_patterns(patterns):
        if "/" in pattern:
            if qualified == pattern or qualified.startswith(pattern):
                return True
        elif provider.startswith(pattern) or model_id.startswith(pattern):
            return True
    return False


def _enumerate_candidates(
    source: CandidateSource | None,
    pool: Sequence[ResolvedModel] | None,
    ratings_for: RatingsLookup,
    priors_for: ArenaPriorsLookup,
) -> list[ScoredCandidate]:
    models = load_candidates(source)

    if pool is None:
        entries = [
            (ResolvedModel.from_candidate(m), m.cost.effective)
            for m in models
            if m.cost is not None
        ]
    else:
        cost_index = {
            (m.provider, m.id): m.cost.effective for m in models if m.cost is not None
        }
        entries = []
        for resolved in pool:
            cost = cost_index.get((resolved.provider, resolved.id))
            if cost is None:
                log.debug("selector.pool.entry_skipped", model=resolved.display_name)
                continue
            entries.append((resolved, cost))

    candidates: list[ScoredCandidate] = []
    for resolved, cost in entries:
        ratings = ratings_for(resolved.id)
        if ratings is None:
            continue
        candidates.append(
            ScoredCandidate(
                resolved=resolved,
                ratings=ratings,
                effective_cost=cost,
                arena_scores=priors_for(resolved.id),
            )
        )
    return candidates


# ---------------------------------------------------------------------------
# Telemetry lookup
# ---------------------------------------------------------------------------


def _route_signal(
    candidate: ScoredCandidate, signals: RoutingSignalsSnapshot | None
) -> RouteSignal | None:
    if signals is None or not signals.routes:
        return None
    return signals.routes.get(
        build_route_signal_key(candidate.resolved.provider, candidate.resolved.id)
    )


def _model_signal(
    candidate: ScoredCandidate, signals: RoutingSignalsSnapshot | None
) -> ModelSignal | None:
    if signals is None or not signals.models:
        return None
    models = signals.models

    model_key = build_model_signal_key(candidate.resolved.id)
    if model_key in models:
        return models[model_key]

    provider_key = build_provider_model_signal_key(
        candidate.resolved.provider, candidate.resolved.id
    )
    if provider_key in models:
        return models[provider_key]

    prefixes = [key for key in models if model_key.startswith(key)]
    if not prefixes:
        return None
    return models[max(prefixes, key=len)]


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def normalize_arena_prior(task_type: TaskType, raw_score: float) -> float:
    """Map a raw arena score onto [0, 1] through five linear bands.

    Band edges sit on the tier boundaries, so a tier-N model lands in
    [(N-1)/5, N/5) and models within a tier keep their relative order.
    """
    tier2, tier3, tier4, tier5 = ARENA_TIER_BOUNDARIES[task_type]

    if raw_score < tier2:
        return clamp(raw_score / tier2 * 0.2, 0, 0.2)
    if raw_score < tier3:
        return clamp(0.2 + (raw_score - tier2) / (tier3 - tier2) * 0.2, 0.2, 0.4)
    if raw_score < tier4:
        return clamp(0.4 + (raw_score - tier3) / (tier4 - tier3) * 0.2, 0.4, 0.6)
    if raw_score < tier5:
        return clamp(0.6 + (raw_score - tier4) / (tier5 - tier4) * 0.2, 0.6, 0.8)
    return clamp(0.8 + (raw_score - tier5) / (tier5 - tier4) * 0.2, 0.8, 1.0)


def capability_score(task_type: TaskType, rating: int, arena_score: float | None = None) -> float:
    """Capability component: normalized arena prior, else ``rating / 5``."""
    if arena_score is not None:
        return normalize_arena_prior(task_type, arena_score)
    return clamp(rating / MAX_COMPLEXITY, 0, 1)


def reliability_score(route: RouteSignal | None) -> float:
    """Mean of uptime, 1 - error rate and 1 - fallback rate (0.5 when absent)."""
    uptime = route.uptime if route is not None else None
    error_rate = route.error_rate if route is not None else None
    fallback_rate = route.fallback_rate if route is not None else None

    parts = (
        NEUTRAL_SIGNAL_SCORE if uptime is None else clamp(uptime, 0, 1),
        NEUTRAL_SIGNAL_SCORE if error_rate is None else clamp(1 - error_rate, 0, 1),
        NEUTRAL_SIGNAL_SCORE if fallback_rate is None else clamp(1 - fallback_rate, 0, 1),
    )
    return sum(parts) / len(parts)


def _first_present(*values: float | None) -> float | None:
    for value in values:
        if value is not None:
            return value
    return None


def latency_score(route: RouteSignal | None, model: ModelSignal | None) -> float:
    """``1 / (1 + ms / 1000)`` using p90, then p50, then model TTFT."""
    latency_ms = _first_present(
        route.latency_p90_ms if route is not None else None,
        route.latency_p50_ms if route is not None else None,
        model.ttft_median_ms if model is not None else None,
    )
    if latency_ms is None:
        return NEUTRAL_SIGNAL_SCORE
    return clamp(1 / (1 + latency_ms / 1000), 0, 1)


def throughput_score(route: RouteSignal | None, model: ModelSignal | None) -> float:
    """``tps / (tps + 50)`` using p50, then p90, then model median output tps."""
    tps = _first_present(
        route.throughput_p50_tps if route is not None else None,
        route.throughput_p90_tps if route is not None else None,
        model.output_tps_median if model is not None else None,
    )
    if tps is None:
        return NEUTRAL_SIGNAL_SCORE
    return clamp(tps / (tps + 50), 0, 1)


def cost_score(effective_cost: float) -> float:
    """Reciprocal cost score; 1 for free models, approaching 0 as cost grows."""
    return clamp(1 / (1 + max(0.0, effective_cost)), 0, 1)


def _passes_constraints(
    candidate: ScoredCandidate,
    constraints: RoutingModeConstraints,
    signals: RoutingSignalsSnapshot | None,
) -> bool:
    route = _route_signal(candidate, signals)
    if route is None:
        return True

    if (
        constraints.max_latency_p90_ms is not None
        and route.latency_p90_ms is not None
        and route.latency_p90_ms > constraints.max_latency_p90_ms
    ):
        return False
    if (
        constraints.max_error_rate is not None
        and route.error_rate is not None
        and route.error_rate > constraints.max_error_rate
    ):
        return False
    if (
        constraints.min_uptime is not None
        and route.uptime is not None
        and route.uptime < constraints.min_uptime
    ):
        return False
    return True


def compute_mode_score(
    candidate: ScoredCandidate,
    task_type: TaskType,
    policy: RoutingModePolicy,
    signals: RoutingSignalsSnapshot | None,
) -> float:
    """Weighted sum of the five score components for one candidate."""
    route = _route_signal(candidate, signals)
    model = _model_signal(candidate, signals)
    arena_score = candidate.arena_scores.get(task_type) if candidate.arena_scores else None
    weights = policy.weights

    return (
        weights.capability
        * capability_score(task_type, candidate.ratings.get(task_type, 0), arena_score)
        + weights.reliability * reliability_score(route)
        + weights.latency * latency_score(route, model)
        + weights.throughput * throughput_score(route, model)
        + weights.cost * cost_score(candidate.effective_cost)
    )


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


def _provider_priority(preference: Mapping[str, int], provider: str) -> float:
    return preference.get(provider, float("inf"))


def _sort_legacy(
    candidates: list[ScoredCandidate],
    cost_preference: CostPreference,
    classification: ClassificationResult,
    preference: Mapping[str, int],
) -> list[ScoredCandidate]:
    def key(c: ScoredCandidate) -> tuple[float, ...]:
        priority = _provider_priority(preference, c.resolved.provider)
        if cost_preference == CostPreference.ECO:
            return (c.effective_cost, priority)
        if cost_preference == CostPreference.PREMIUM:
            return (-c.effective_cost, priority)
        exact = 0 if c.ratings.get(classification.type) == classification.complexity else 1
        return (exact, c.effective_cost, priority)

    return sorted(candidates, key=key)


def _mode_tie_break(mode: RoutingMode, fallback: CostPreference) -> CostPreference:
    if mode == RoutingMode.CHEAP:
        return CostPreference.ECO
    if mode == RoutingMode.QUALITY:
        return CostPreference.PREMIUM
    return fallback


def _select_with_mode(
    candidates: list[ScoredCandidate],
    classification: ClassificationResult,
    cost_preference: CostPreference,
    options: SelectionOptions,
    preference: Mapping[str, int],
) -> list[ScoredCandidate]:
    mode = RoutingMode(options.routing_mode)
    signals = (
        sanitize_routing_signals_snapshot(options.routing_signals).ok_or_none()
        if options.routing_signals is not None
        else None
    )
    override = (
        sanitize_routing_mode_policy_override(options.routing_mode_policy_override).ok_or_none()
        if options.routing_mode_policy_override is not None
        else None
    )
    policy = get_effective_mode_policy(mode, override)

    task_type = classification.type
    effective_complexity = clamp(
        classification.complexity + policy.complexity_bias, MIN_COMPLEXITY, MAX_COMPLEXITY
    )
    floor = max(policy.task_floors.get(task_type, MIN_COMPLEXITY), effective_complexity)

    capable = [c for c in candidates if task_type in c.ratings and c.ratings[task_type] >= floor]
    if not capable:
        log.debug("selector.mode.no_capable_candidates", routing_mode=mode.value, floor=floor)
        return []

    constrained = [c for c in capable if _passes_constraints(c, policy.constraints, signals)]
    if not constrained:
        log.info(
            "selector.constraints.relaxed",
            routing_mode=mode.value,
            candidate_count=len(capable),
        )
        constrained = capable

    scores = {id(c): compute_mode_score(c, task_type, policy, signals) for c in constrained}
    descending_cost = _mode_tie_break(mode, cost_preference) == CostPreference.PREMIUM

    def key(c: ScoredCandidate) -> tuple[Any, ...]:
        return (
            -scores[id(c)],
            _provider_priority(preference, c.resolved.provider),
            -c.effective_cost if descending_cost else c.effective_cost,
            c.resolved.provider,
            c.resolved.id,
        )

    return sorted(constrained, key=key)


def select_models(
    classification: ClassificationResult,
    cost_preference: CostPreference | str,
    source: CandidateSource | None = None,
    options: SelectionOptions | None = None,
) -> list[ResolvedModel]:
    """Rank candidate models for a classified task.

    Never raises for "no suitable model"; an empty list means nothing fits.

    Args:
        classification: Task type and complexity.
        cost_preference: eco, balanced or premium.
        source: Candidate sequence or zero-argument callable returning one.
        options: Pool, overrides, provider preference, exclusions and routing mode.

    Returns:
        Ranked models, best first.
    """
    options = options or SelectionOptions()
    cost_preference = CostPreference(cost_preference)
    preference: dict[str, int] = {}
    for index, provider in enumerate(options.preferred_providers):
        preference.setdefault(provider, index)

    candidates = _enumerate_candidates(
        source,
        options.pool,
        create_model_ratings_lookup(options.matrix_overrides),
        create_model_arena_priors_lookup(),
    )
    if options.exclude:
        candidates = [
            c
            for c in candidates
            if not is_excluded(c.resolved.provider, c.resolved.id, options.exclude)
        ]

    if options.routing_mode is None:
        task_type = classification.type
        eligible = [
            c
            for c in candidates
            if task_type in c.ratings and c.ratings[task_type] >= classification.complexity
        ]
        ranked = _sort_legacy(eligible, cost_preference, classification, preference)
    else:
        ranked = _select_with_mode(
            candidates, classification, cost_preference, options, preference
        )

    log.debug(
        "selector.models.ranked",
        task_type=str(classification.type),
        complexity=classification.complexity,
        routing_mode=options.routing_mode,
        candidate_count=len(ranked),
    )
    return [c.resolved for c in ranked]
