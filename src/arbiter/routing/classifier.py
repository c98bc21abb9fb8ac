"""Task classification via one cheap LLM call.

Determines a task's type (code/vision/text) and complexity (1-5) using the
cheapest model the caller can reach. The model lister and the completion
function are injected, so this module never talks to a provider directly.

Any failure (no models, completion error, unparseable or invalid output)
yields ``ClassificationResult(primary_type, 3, "fallback: ...")``.

Usage:
    from arbiter.providers import LiteLLMCompleter
    from arbiter.routing.classifier import classify_task

    result = await classify_task(
        "Refactor the auth module",
        TaskType.CODE,
        list_models=lambda: models,
        complete=LiteLLMCompleter(),
    )
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
import inspect
import json
import re
from typing import Any

from arbiter.core.errors import ProviderError
from arbiter.observability.logging import get_logger
from arbiter.routing.types import (
    MAX_COMPLEXITY,
    MIN_COMPLEXITY,
    CandidateModel,
    ClassificationResult,
    TaskType,
)

log = get_logger(__name__)

FALLBACK_COMPLEXITY = 3

CompletionFunction = Callable[[str, str, str], str | Awaitable[str]]
"""``complete(provider, model_id, prompt)`` returning text or an awaitable of text."""

ModelLister = Callable[[], Sequence[CandidateModel]]

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)
_BRACED_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


@dataclass(frozen=True, slots=True)
class CheapestModel:
    """Provider and id of the model used for classification."""

    provider: str
    id: str


def find_cheapest_model(list_models: ModelLister) -> CheapestModel | None:
    """Find the model with the lowest effective cost.

    Models without cost metadata are ignored; the first model wins ties.

    Args:
        list_models: Zero-argument callable returning candidate models.

    Returns:
        The cheapest model, or None when no model has cost metadata.
    """
    cheapest: CheapestModel | None = None
    cheapest_cost = float("inf")
    for model in list_models():
        if model.cost is None:
            continue
        if model.cost.effective < cheapest_cost:
            cheapest_cost = model.cost.effective
            cheapest = CheapestModel(provider=model.provider, id=model.id)
    return cheapest


def build_classification_prompt(
    task: str,
    primary_type: TaskType,
    agent_role: str | None = None,
) -> str:
    """Build the classification prompt.

    Args:
        task: Task description.
        primary_type: The agent's default task type.
        agent_role: Optional role of the calling agent.

    Returns:
        Prompt asking for ``{"type", "complexity", "reasoning"}`` JSON.
    """
    role_line = f"\nAgent role: {agent_role}" if agent_role else ""
    return f"""Classify this task on two axes.

TYPE - what LLM capability is needed:
- code: writing, refactoring, debugging, reviewing code
- vision: analyzing images, screenshots, UI mockups
- text: writing docs, planning, general reasoning, research

COMPLEXITY (1-5):
1 = Trivial (rename file, simple lookup, basic edit)
2 = Simple (single-file change, add test, fix typo)
3 = Moderate (multi-file change, implement function, debug)
4 = Complex (design + implement feature, architecture)
5 = Expert (cross-system design, security audit, optimization)

Default type for this agent: {TaskType(primary_type).value}
Use the default unless the task clearly requires a different type.

Task: {task}{role_line}

Respond with JSON only: {{"type": "<type>", "complexity": <1-5>, "reasoning": "<one line>"}}"""


def _loads_object(text: str) -> dict[str, Any] | None:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Extract a JSON object from LLM output.

    Tries a fenced code block first, then the whole text, then the widest
    brace-delimited span.

    Args:
        text: Raw completion text.

    Returns:
        The parsed object, or None if no object could be parsed.
    """
    fenced = _FENCED_BLOCK.search(text)
    if fenced:
        parsed = _loads_object(fenced.group(1).strip())
        if parsed is not None:
            return parsed

    parsed = _loads_object(text.strip())
    if parsed is not None:
        return parsed

    braced = _BRACED_OBJECT.search(text)
    if braced:
        return _loads_object(braced.group(0))
    return None


def _parse_classification(payload: dict[str, Any]) -> ClassificationResult | None:
    raw_type = payload.get("type")
    raw_complexity = payload.get("complexity")

    if not isinstance(raw_type, str) or raw_type not in {task.value for task in TaskType}:
        return None
    if isinstance(raw_complexity, bool):
        return None
    if isinstance(raw_complexity, str) and raw_complexity.strip().isdecimal():
        raw_complexity = int(raw_complexity.strip())
    if isinstance(raw_complexity, float) and raw_complexity.is_integer():
        raw_complexity = int(raw_complexity)
    if not isinstance(raw_complexity, int):
        return None
    if not MIN_COMPLEXITY <= raw_complexity <= MAX_COMPLEXITY:
        return None

    reasoning = payload.get("reasoning")
    return ClassificationResult(
        type=TaskType(raw_type),
        complexity=raw_complexity,
        reasoning="" if reasoning is None else str(reasoning),
    )


def _fallback(primary_type: TaskType, reason: str) -> ClassificationResult:
    log.warning("classifier.fallback.used", task_type=str(primary_type), reason=reason)
    return ClassificationResult(
        type=TaskType(primary_type),
        complexity=FALLBACK_COMPLEXITY,
        reasoning=f"fallback: {reason}",
    )


async def classify_task(
    task: str,
    primary_type: TaskType,
    *,
    list_models: ModelLister,
    complete: CompletionFunction,
    agent_role: str | None = None,
) -> ClassificationResult:
    """Classify a task's type and complexity with the cheapest model.

    Args:
        task: Task description.
        primary_type: Default type, also used on fallback.
        list_models: Zero-argument callable returning candidate models.
        complete: ``complete(provider, model_id, prompt)``; may be sync or async.
        agent_role: Optional role of the calling agent.

    Returns:
        The classification, or the fallback classification on any failure.
    """
    cheapest = find_cheapest_model(list_models)
    if cheapest is None:
        return _fallback(primary_type, "no models with cost metadata available")

    prompt = build_classification_prompt(task, primary_type, agent_role)

    try:
        response = complete(cheapest.provider, cheapest.id, prompt)
        if inspect.isawaitable(response):
            response = await response
    except Exception as exc:
        error = ProviderError.from_exception(exc, provider=cheapest.provider)
        log.warning(
            "classifier.completion.failed",
            provider=error.provider,
            model=cheapest.id,
            error=error.message,
            status_code=error.status_code,
        )
        return _fallback(primary_type, "classification unavailable")

    if not isinstance(response, str):
        return _fallback(primary_type, "completion returned no text")

    payload = extract_json_object(response)
    if payload is None:
        return _fallback(primary_type, "unparseable classifier output")

    result = _parse_classification(payload)
    if result is None:
        return _fallback(primary_type, "invalid classification fields")

    log.debug(
        "classifier.task.classified",
        model=f"{cheapest.provider}/{cheapest.id}",
        task_type=result.type.value,
        complexity=result.complexity,
    )
    return result
