"""LiteLLM-backed completion function for the classifier.

LiteLLMCompleter satisfies the classifier's ``complete(provider, model_id,
prompt)`` contract by sending a single user message through
``litellm.acompletion``. It makes exactly one attempt; the classifier turns
any failure into its fallback classification.
"""

from __future__ import annotations

from typing import Any

import litellm

from arbiter.core.errors import ProviderError
from arbiter.observability.logging import get_logger

log = get_logger(__name__)


class LiteLLMCompleter:
    """Completion function using LiteLLM for unified provider access.

    API keys are read by LiteLLM from the usual environment variables
    (ANTHROPIC_API_KEY, OPENAI_API_KEY, OPENROUTER_API_KEY, ...) unless an
    explicit key is given.

    Example:
        completer = LiteLLMCompleter(timeout=15.0)
        text = await completer("anthropic", "claude-haiku-4-5", "Say hi")
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        api_base: str | None = None,
        timeout: float = 30.0,
        max_tokens: int = 256,
    ) -> None:
        """Initialize the completer.

        Args:
            api_key: Optional API key (overrides environment variables).
            api_base: Optional API base URL for custom endpoints.
            timeout: Request timeout in seconds.
            max_tokens: Completion token cap; classifier replies are one short object.
        """
        self._api_key = api_key
        self._api_base = api_base
        self._timeout = timeout
        self._max_tokens = max_tokens

    def _build_completion_kwargs(self, model: str, prompt: str) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": 0,
            "max_tokens": self._max_tokens,
            "timeout": self._timeout,
        }
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self._api_base:
            kwargs["api_base"] = self._api_base
        return kwargs

    async def __call__(self, provider: str, model_id: str, prompt: str) -> str:
        """Send the prompt and return the reply text.

        Args:
            provider: Provider id, used as the LiteLLM model prefix.
            model_id: Provider-scoped model id.
            prompt: Prompt text.

        Returns:
            The message content of the first choice ("" when empty).

        Raises:
            ProviderError: If the LiteLLM call fails.
        """
        model = f"{provider}/{model_id}"
        log.debug("llm.request.started", model=model)

        try:
            response = await litellm.acompletion(**self._build_completion_kwargs(model, prompt))
        except litellm.AuthenticationError as e:
            raise ProviderError(
                "Authentication failed - check API key",
                provider=provider,
                status_code=401,
                details={"original_exception": type(e).__name__},
            ) from e
        except Exception as e:
            raise ProviderError.from_exception(e, provider=provider) from e

        choice = response.choices[0]
        log.debug("llm.request.completed", model=model, finish_reason=choice.finish_reason)
        return choice.message.content or ""
