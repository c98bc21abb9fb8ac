"""Fuzzy model name resolution.

Resolves human-friendly names like "opus" or "sonnet 4.5" to exact
provider/model-id pairs through a deterministic matching cascade. The first
tier that matches anything wins and later tiers are never consulted:

    1. Exact id
    2. Case-insensitive id
    3. Separator-insensitive id ("glm5" -> "glm-5")
    4. provider/id ("anthropic/claude-sonnet-4-5")
    5. Token overlap (id/name tokens score 2, provider-only tokens score 1)
    6. Substring of id or name
    7. Separator-stripped substring of id or name

Usage:
    from arbiter.routing.resolver import resolve_model_fuzzy

    model = resolve_model_fuzzy("opus", source=models, preferred_providers=["anthropic"])
    if model is not None:
        print(model.display_name)
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
import re

from arbiter.observability.logging import get_logger
from arbiter.routing.matrix import create_model_ratings_lookup
from arbiter.routing.types import (
    CandidateModel,
    ModelRatings,
    ModelSource,
    ResolvedModel,
    TaskType,
)

log = get_logger(__name__)

CandidateSource = Sequence[CandidateModel] | ModelSource

_SEPARATORS = re.compile(r"[\s\-_.]+")
_LETTER_DIGIT = re.compile(r"([a-z])(\d)")
_DIGIT_LETTER = re.compile(r"(\d)([a-z])")
_DIGIT_RUNS = re.compile(r"(\d+)")


def load_candidates(source: CandidateSource | None) -> list[CandidateModel]:
    """Materialize a candidate source, calling it once if it is callable."""
    if source is None:
        return []
    if callable(source):
        return list(source())
    return list(source)


def normalize_name(value: str) -> str:
    """Lowercase and strip separators: ``claude-sonnet-4.5`` -> ``claudesonnet45``."""
    return _SEPARATORS.sub("", value.lower())


def tokenize(value: str) -> list[str]:
    """Split into lowercase tokens on separators and letter/digit boundaries.

    Example:
        tokenize("codex5 mini")  # ["codex", "5", "mini"]
    """
    spaced = _LETTER_DIGIT.sub(r"\1 \2", value.lower())
    spaced = _DIGIT_LETTER.sub(r"\1 \2", spaced)
    return [token for token in _SEPARATORS.split(spaced) if token]


# ---------------------------------------------------------------------------
# Cascade tiers
# ---------------------------------------------------------------------------

Tier = Callable[[str, list[CandidateModel]], list[CandidateModel]]


def _match_exact_id(query: str, models: list[CandidateModel]) -> list[CandidateModel]:
    return [m for m in models if m.id == query]


def _match_case_insensitive_id(query: str, models: list[CandidateModel]) -> list[CandidateModel]:
    lowered = query.lower()
    return [m for m in models if m.id.lower() == lowered]


def _match_normalized_id(query: str, models: list[CandidateModel]) -> list[CandidateModel]:
    normalized = normalize_name(query)
    return [m for m in models if normalize_name(m.id) == normalized]


def _match_provider_and_id(query: str, models: list[CandidateModel]) -> list[CandidateModel]:
    if "/" not in query:
        return []
    provider, model_id = query.split("/", 1)
    provider, model_id = provider.lower(), model_id.lower()
    return [m for m in models if m.provider.lower() == provider and m.id.lower() == model_id]


def _match_token_overlap(query: str, models: list[CandidateModel]) -> list[CandidateModel]:
    tokens = tokenize(query)
    if not tokens:
        return []

    best_score = 0
    best: list[CandidateModel] = []
    for model in models:
        id_and_name = f"{model.id} {model.name}".lower()
        provider = model.provider.lower()
        score = 0
        for token in tokens:
            if token in id_and_name:
                score += 2
            elif token in provider:
                score += 1

        if score > best_score:
            best_score = score
            best = [model]
        elif score == best_score and score > 0:
            best.append(model)
    return best


def _match_substring(query: str, models: list[CandidateModel]) -> list[CandidateModel]:
    lowered = query.lower()
    return [m for m in models if lowered in m.id.lower() or lowered in m.name.lower()]


def _match_normalized_substring(query: str, models: list[CandidateModel]) -> list[CandidateModel]:
    normalized = normalize_name(query)
    return [
        m
        for m in models
        if normalized in normalize_name(m.id) or normalized in normalize_name(m.name)
    ]


RESOLUTION_TIERS: tuple[tuple[str, Tier], ...] = (
    ("exact_id", _match_exact_id),
    ("case_insensitive_id", _match_case_insensitive_id),
    ("normalized_id", _match_normalized_id),
    ("provider_id", _match_provider_and_id),
    ("token_overlap", _match_token_overlap),
    ("substring", _match_substring),
    ("normalized_substring", _match_normalized_substring),
)


def find_candidates(query: str, models: Sequence[CandidateModel]) -> list[CandidateModel]:
    """Return every candidate tied in the first cascade tier that matches.

    Args:
        query: Human-typed model name.
        models: Candidate models to search.

    Returns:
        Matching candidates in source order, or an empty list.
    """
    trimmed = query.strip()
    if not trimmed or not models:
        return []

    pool = list(models)
    for tier_name, tier in RESOLUTION_TIERS:
        matches = tier(trimmed, pool)
        if matches:
            log.debug(
                "resolver.tier.matched",
                query=trimmed,
                tier=tier_name,
                candidate_count=len(matches),
            )
            return matches

    log.debug("resolver.query.unmatched", query=trimmed, candidate_count=len(pool))
    return []


# ---------------------------------------------------------------------------
# Tie-breaking
# ---------------------------------------------------------------------------


def _capability_score(ratings: ModelRatings | None) -> int:
    if ratings is None:
        return 0
    return sum(ratings.values())


def natural_sort_key(model_id: str) -> tuple[str | int, ...]:
    """Numeric-aware, case-insensitive key: ``5.10`` sorts above ``5.2``."""
    parts = _DIGIT_RUNS.split(model_id.lower())
    return tuple(int(part) if index % 2 else part for index, part in enumerate(parts))


def provider_priority(provider: str, preferred_providers: Sequence[str]) -> float:
    """Index of provider in the preference list; unlisted providers sort last."""
    try:
        return preferred_providers.index(provider)
    except ValueError:
        return float("inf")


def pick_best(
    models: Sequence[CandidateModel],
    preferred_providers: Sequence[str] | None = None,
    matrix_overrides: Mapping[str, Mapping[TaskType, int] | None] | None = None,
) -> CandidateModel:
    """Pick the best model first, then the best provider serving it.

    Model order: highest summed capability, then numerically greater id
    (newer version), then shorter id, then lexicographically greater id.
    Provider order: lowest index in preferred_providers; equals keep
    source order.

    Args:
        models: Non-empty candidate list.
        preferred_providers: Ordered provider preference.
        matrix_overrides: Optional matrix overrides for capability scores.

    Returns:
        The winning candidate.
    """
    ratings_for = create_model_ratings_lookup(matrix_overrides)
    best = max(
        models,
        key=lambda m: (
            _capability_score(ratings_for(m.id)),
            natural_sort_key(m.id),
            -len(m.id),
            m.id,
        ),
    )

    if not preferred_providers:
        return best

    same_model = [m for m in models if m.id == best.id]
    if len(same_model) <= 1:
        return best
    return min(same_model, key=lambda m: provider_priority(m.provider, preferred_providers))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def resolve_model_fuzzy(
    query: str,
    source: CandidateSource | None = None,
    preferred_providers: Sequence[str] | None = None,
    *,
    matrix_overrides: Mapping[str, Mapping[TaskType, int] | None] | None = None,
) -> ResolvedModel | None:
    """Resolve a human-typed name to one exact provider/model pair.

    Args:
        query: Name such as "opus", "sonnet 4.5" or "anthropic/claude-opus-4-6".
        source: Candidate sequence or zero-argument callable returning one.
        preferred_providers: Ordered provider preference for the final pick.
        matrix_overrides: Optional matrix overrides for capability tie-breaks.

    Returns:
        The resolved model, or None when nothing matches.
    """
    candidates = find_candidates(query, load_candidates(source))
    if not candidates:
        return None
    best = pick_best(candidates, preferred_providers, matrix_overrides)
    return ResolvedModel.from_candidate(best)


def resolve_model_candidates(
    query: str,
    source: CandidateSource | None = None,
) -> list[ResolvedModel]:
    """Resolve a name to every candidate tied in the first matching tier.

    Used for scoped routing: "codex" resolves to all codex models, and the
    selector then picks the right one for the task.
    """
    candidates = find_candidates(query, load_candidates(source))
    return [ResolvedModel.from_candidate(m) for m in candidates]


def list_available_models(source: CandidateSource | None = None) -> list[str]:
    """List ``provider/id`` strings for every candidate, for error messages."""
    return [f"{m.provider}/{m.id}" for m in load_candidates(source)]
