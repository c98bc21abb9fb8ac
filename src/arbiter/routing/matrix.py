"""Multi-dimensional model capability matrix.

Maps model-id prefixes to per-task capability tiers (1-5) and, separately,
to raw arena benchmark priors.

Tier boundaries per leaderboard (each leaderboard has its own scale):
    Code:   5=>=1440  4=1370-1439  3=1280-1369  2=1180-1279  1=<1180
    Vision: 5=>=1250  4=1200-1249  3=1150-1199  2=1100-1149  1=<1100
    Text:   5=>=1460  4=1410-1459  3=1370-1409  2=1320-1369  1=<1320

Ratings use base model scores (no extended thinking, default effort).

Lookup strips every provider segment from the model id (the text after the
last "/"), then picks the longest matrix key that prefixes the bare id, so
"claude-haiku-4-5-20250514" resolves to "claude-haiku-4-5" and never to a
shorter sibling such as "claude-haiku-4".

Usage:
    from arbiter.routing.matrix import get_model_ratings, model_supports_task

    ratings = get_model_ratings("anthropic/claude-sonnet-4-5-20250929")
    # {TaskType.CODE: 4, TaskType.VISION: 3, TaskType.TEXT: 4}

    model_supports_task("glm-5", TaskType.VISION, 1)  # False
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any, TypeVar

from arbiter.core.errors import ValidationError
from arbiter.core.types import JsonPayload, Result
from arbiter.observability.logging import get_logger
from arbiter.routing.types import (
    MAX_COMPLEXITY,
    MIN_COMPLEXITY,
    TASK_TYPES,
    MatrixOverrides,
    ModelArenaScores,
    ModelRatings,
    TaskType,
)

log = get_logger(__name__)

V = TypeVar("V")

OVERRIDES_FIELD = "matrixOverrides"

RatingsLookup = Callable[[str], ModelRatings | None]
ArenaPriorsLookup = Callable[[str], ModelArenaScores | None]


def _freeze(table: dict[str, dict[str, V]]) -> Mapping[str, Mapping[TaskType, V]]:
    return MappingProxyType(
        {
            prefix: MappingProxyType({TaskType(task): value for task, value in entry.items()})
            for prefix, entry in table.items()
        }
    )


MODEL_MATRIX: Mapping[str, Mapping[TaskType, int]] = _freeze(
    {
        # Anthropic
        "claude-opus-4-6": {"code": 5, "vision": 3, "text": 5},
        "claude-opus-4-5": {"code": 5, "vision": 3, "text": 5},
        "claude-opus-4-1": {"code": 4, "vision": 3, "text": 4},
        "claude-sonnet-4-6": {"code": 5, "vision": 3, "text": 5},
        "claude-sonnet-4-5": {"code": 4, "vision": 3, "text": 4},
        "claude-haiku-4-5": {"code": 3, "vision": 2, "text": 3},
        # OpenAI
        "gpt-5.2": {"code": 4, "vision": 4, "text": 4},
        "gpt-5": {"code": 4, "vision": 4, "text": 4},
        "gpt-5.1": {"code": 3, "vision": 4, "text": 4},
        "gpt-5.3-codex": {"code": 4, "text": 4},
        "gpt-5.3-codex-spark": {"code": 2, "text": 2},
        "gpt-5.2-codex": {"code": 3, "text": 3},
        "gpt-5.1-codex-max": {"code": 4, "text": 4},
        "gpt-5.1-codex": {"code": 3, "text": 3},
        "gpt-5.1-codex-mini": {"code": 2, "text": 2},
        # Google
        "gemini-3-pro": {"code": 5, "vision": 5, "text": 5},
        "gemini-3-flash": {"code": 5, "vision": 5, "text": 5},
        "gemini-2.5-pro": {"code": 2, "vision": 4, "text": 4},
        "gemini-2.5-flash": {"vision": 4, "text": 4},
        # Z.ai (Zhipu)
        "glm-5": {"code": 5, "text": 5},
        "glm-4.7": {"code": 5, "text": 4},
        "glm-4.6": {"code": 3, "vision": 3, "text": 4},
        # DeepSeek
        "deepseek-reasoner": {"code": 4, "text": 4},
        "deepseek-chat": {"code": 3, "text": 4},
        # MiniMax
        "minimax-m2.1": {"code": 4, "text": 3},
        "minimax-m2": {"code": 3, "text": 2},
        # Moonshot (Kimi)
        "kimi-k2.5": {"code": 4, "text": 4},
        "kimi-k2": {"code": 3, "text": 4},
        # Qwen (Alibaba)
        "qwen3-coder": {"code": 3, "text": 3},
        "qwen3-max": {"text": 4},
        # xAI
        "grok-4.1": {"code": 2, "text": 5},
        "grok-4": {"code": 1, "text": 4},
        # Mistral
        "mistral-large-3": {"code": 2, "text": 4},
        "devstral-2": {"code": 2},
        "devstral-medium": {"code": 1},
    }
)

# Raw arena scores, same snapshot as the tiers above. Only used by the
# selector's routing modes to separate models that share a tier.
MODEL_ARENA_PRIORS: Mapping[str, Mapping[TaskType, float]] = _freeze(
    {
        "claude-opus-4-6": {"code": 1468, "vision": 1172, "text": 1482},
        "claude-opus-4-5": {"code": 1461, "vision": 1165, "text": 1470},
        "claude-opus-4-1": {"code": 1421, "vision": 1160, "text": 1447},
        "claude-sonnet-4-6": {"code": 1455, "vision": 1168, "text": 1466},
        "claude-sonnet-4-5": {"code": 1408, "vision": 1162, "text": 1438},
        "claude-haiku-4-5": {"code": 1322, "vision": 1121, "text": 1391},
        "gpt-5.2": {"code": 1432, "vision": 1228, "text": 1441},
        "gpt-5": {"code": 1405, "vision": 1221, "text": 1430},
        "gpt-5.1": {"code": 1351, "vision": 1217, "text": 1436},
        "gpt-5.3-codex": {"code": 1437, "text": 1425},
        "gpt-5.1-codex": {"code": 1318, "text": 1380},
        "gemini-3-pro": {"code": 1444, "vision": 1288, "text": 1486},
        "gemini-3-flash": {"code": 1449, "vision": 1270, "text": 1472},
        "gemini-2.5-pro": {"code": 1235, "vision": 1226, "text": 1452},
        "gemini-2.5-flash": {"vision": 1208, "text": 1415},
        "glm-5": {"code": 1456, "text": 1462},
        "glm-4.7": {"code": 1447, "text": 1428},
        "deepseek-reasoner": {"code": 1398, "text": 1424},
        "deepseek-chat": {"code": 1330, "text": 1418},
        "kimi-k2.5": {"code": 1412, "text": 1433},
        "kimi-k2": {"code": 1345, "text": 1417},
        "qwen3-max": {"text": 1431},
        "grok-4.1": {"code": 1226, "text": 1475},
        "grok-4": {"code": 1150, "text": 1429},
        "mistral-large-3": {"code": 1210, "text": 1414},
    }
)


def _is_record(value: Any) -> bool:
    return isinstance(value, Mapping)


def _copy_ratings(ratings: Mapping[TaskType, int]) -> ModelRatings:
    return {task: ratings[task] for task in TASK_TYPES if task in ratings}


def _copy_matrix(matrix: Mapping[str, Mapping[TaskType, int]]) -> dict[str, ModelRatings]:
    return {prefix: _copy_ratings(ratings) for prefix, ratings in matrix.items()}


def resolve_bare_model_id(model_id: str) -> str:
    """Strip every provider segment: ``openrouter/z-ai/glm-5`` -> ``glm-5``."""
    return model_id.rsplit("/", 1)[-1]


def _keys_longest_first(keys: list[str]) -> list[str]:
    # sorted() is stable, so equal-length keys keep table order.
    return sorted(keys, key=len, reverse=True)


def _find_longest_prefix(sorted_keys: list[str], bare_id: str) -> str | None:
    for key in sorted_keys:
        if bare_id.startswith(key):
            return key
    return None


def apply_model_matrix_overrides(
    base_matrix: Mapping[str, Mapping[TaskType, int]],
    overrides: Mapping[str, Mapping[TaskType, int] | None] | None = None,
) -> dict[str, ModelRatings]:
    """Apply overrides on top of a copy of the base matrix.

    - ``overrides[key] = ratings`` adds or replaces that prefix (whole rating,
      no per-task merge)
    - ``overrides[key] = None`` removes that prefix

    The base matrix is never mutated; each call returns an independent copy.

    Args:
        base_matrix: Base matrix (usually MODEL_MATRIX).
        overrides: Optional override map.

    Returns:
        Effective matrix after overrides.
    """
    merged = _copy_matrix(base_matrix)
    if not overrides:
        return merged

    for prefix, override in overrides.items():
        if override is None:
            merged.pop(prefix, None)
            continue
        merged[prefix] = _copy_ratings({TaskType(task): v for task, v in override.items()})

    log.debug(
        "matrix.overrides.applied",
        override_count=len(overrides),
        removed=[prefix for prefix, value in overrides.items() if value is None],
    )
    return merged


def create_model_ratings_lookup(
    matrix_overrides: Mapping[str, Mapping[TaskType, int] | None] | None = None,
) -> RatingsLookup:
    """Build a ratings lookup over the effective matrix.

    The effective matrix and its longest-first key order are computed once,
    so the returned function is cheap to call per candidate.

    Args:
        matrix_overrides: Optional override map.

    Returns:
        Function resolving a model id to a fresh ratings dict, or None.
    """
    matrix: Mapping[str, Mapping[TaskType, int]] = (
        apply_model_matrix_overrides(MODEL_MATRIX, matrix_overrides)
        if matrix_overrides
        else MODEL_MATRIX
    )
    sorted_keys = _keys_longest_first(list(matrix))

    def lookup(model_id: str) -> ModelRatings | None:
        key = _find_longest_prefix(sorted_keys, resolve_bare_model_id(model_id))
        if key is None:
            return None
        return _copy_ratings(matrix[key])

    return lookup


_BASE_LOOKUP = create_model_ratings_lookup()


def get_model_ratings(
    model_id: str,
    matrix_overrides: Mapping[str, Mapping[TaskType, int] | None] | None = None,
) -> ModelRatings | None:
    """Get capability ratings for a model id.

    Args:
        model_id: Model id, optionally provider-qualified and/or date-suffixed.
        matrix_overrides: Optional override map.

    Returns:
        Ratings for the longest matching prefix, or None if the model is unknown.

    Example:
        get_model_ratings("openrouter/z-ai/glm-5")  # {CODE: 5, TEXT: 5}
        get_model_ratings("claude-opus-4-6", {"claude-opus-4-6": None})  # None
    """
    if not matrix_overrides:
        return _BASE_LOOKUP(model_id)
    return create_model_ratings_lookup(matrix_overrides)(model_id)


def model_supports_task(
    model_id: str,
    task_type: TaskType | str,
    min_rating: float,
    matrix_overrides: Mapping[str, Mapping[TaskType, int] | None] | None = None,
) -> bool:
    """Return True if the model has a rating for task_type >= min_rating."""
    ratings = get_model_ratings(model_id, matrix_overrides)
    if ratings is None:
        return False
    rating = ratings.get(TaskType(task_type))
    return rating is not None and rating >= min_rating


def create_model_arena_priors_lookup() -> ArenaPriorsLookup:
    """Build an arena-priors lookup using the same longest-prefix rule."""
    sorted_keys = _keys_longest_first(list(MODEL_ARENA_PRIORS))

    def lookup(model_id: str) -> ModelArenaScores | None:
        key = _find_longest_prefix(sorted_keys, resolve_bare_model_id(model_id))
        if key is None:
            return None
        return dict(MODEL_ARENA_PRIORS[key])

    return lookup


_BASE_PRIORS_LOOKUP = create_model_arena_priors_lookup()


def get_model_arena_priors(model_id: str) -> ModelArenaScores | None:
    """Get raw arena priors for a model id, or None when unknown."""
    return _BASE_PRIORS_LOOKUP(model_id)


def _parse_tier(value: Any) -> int | None:
    # bool is an int subclass; JSON true/false are not tiers.
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        return None
    if value < MIN_COMPLEXITY or value > MAX_COMPLEXITY:
        return None
    return value


def _parse_ratings(raw: Mapping[str, Any]) -> ModelRatings:
    ratings: ModelRatings = {}
    for task in TASK_TYPES:
        tier = _parse_tier(raw.get(task.value))
        if tier is not None:
            ratings[task] = tier
    return ratings


def parse_model_matrix_overrides(
    payload: JsonPayload,
) -> Result[MatrixOverrides, ValidationError]:
    """Parse an untrusted override payload into a validated override map.

    Accepts either a direct map ``{"model-prefix": {"code": 4, "text": 5}}``
    or the template file shape ``{"matrixOverrides": {...}}``.

    Invalid entries (non-object values, tiers outside 1-5 or non-integer,
    entries with no valid tier) are dropped individually. ``null`` entries
    are kept as removals.

    Args:
        payload: Decoded JSON/YAML value.

    Returns:
        Ok with the override map (possibly empty), or Err when the root
        is not an object.
    """
    wrapped = _is_record(payload) and OVERRIDES_FIELD in payload
    root = payload[OVERRIDES_FIELD] if wrapped else payload

    if not _is_record(root):
        return Result.err(
            ValidationError(
                "Matrix overrides must be an object",
                field=OVERRIDES_FIELD if wrapped else None,
                value=root,
            )
        )

    parsed: MatrixOverrides = {}
    dropped: list[str] = []
    for prefix, raw_override in root.items():
        if not isinstance(prefix, str):
            continue
        if raw_override is None:
            parsed[prefix] = None
            continue
        if not _is_record(raw_override):
            dropped.append(prefix)
            continue
        ratings = _parse_ratings(raw_override)
        if ratings:
            parsed[prefix] = ratings
        else:
            dropped.append(prefix)

    if dropped:
        log.debug("matrix.overrides.entries_dropped", prefixes=dropped)

    return Result.ok(parsed)


def create_model_matrix_override_template(
    include_current_matrix: bool = True,
) -> dict[str, dict[str, dict[str, int] | None]]:
    """Create a JSON-friendly template users can edit.

    Args:
        include_current_matrix: Copy the base matrix into the template.

    Returns:
        ``{"matrixOverrides": {...}}`` with plain string keys.
    """
    overrides: dict[str, dict[str, int] | None] = {}
    if include_current_matrix:
        for prefix, ratings in MODEL_MATRIX.items():
            overrides[prefix] = {
                task.value: ratings[task] for task in TASK_TYPES if task in ratings
            }
    return {OVERRIDES_FIELD: overrides}
