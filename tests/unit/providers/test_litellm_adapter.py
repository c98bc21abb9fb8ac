"""Unit tests for arbiter.providers.litellm_adapter module."""

from unittest.mock import AsyncMock, MagicMock, patch

import litellm
import pytest

from arbiter.core.errors import ProviderError
from arbiter.providers.litellm_adapter import LiteLLMCompleter
from arbiter.routing.classifier import classify_task
from arbiter.routing.types import CandidateModel, ModelCost, TaskType


def create_mock_response(content: str | None = "Hello!", finish_reason: str = "stop") -> MagicMock:
    """Create a mock LiteLLM response."""
    mock_response = MagicMock()
    mock_response.choices = [MagicMock()]
    mock_response.choices[0].message.content = content
    mock_response.choices[0].finish_reason = finish_reason
    return mock_response


class TestLiteLLMCompleterInit:
    """Test LiteLLMCompleter initialization."""

    def test_init_defaults(self) -> None:
        completer = LiteLLMCompleter()

        assert completer._api_key is None
        assert completer._api_base is None
        assert completer._timeout == 30.0
        assert completer._max_tokens == 256

    def test_init_custom_values(self) -> None:
        completer = LiteLLMCompleter(
            api_key="test-key", api_base="https://api.example.com", timeout=5.0
        )

        assert completer._api_key == "test-key"
        assert completer._api_base == "https://api.example.com"
        assert completer._timeout == 5.0


class TestLiteLLMCompleterCall:
    """Test LiteLLMCompleter.__call__."""

    async def test_returns_content(self) -> None:
        """The provider prefixes the model and the prompt is one user message."""
        completer = LiteLLMCompleter(api_key="k", api_base="https://proxy.local")

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = create_mock_response('{"type": "code"}')

            text = await completer("anthropic", "claude-haiku-4-5", "Classify this")

        assert text == '{"type": "code"}'
        kwargs = mock_acompletion.call_args.kwargs
        assert kwargs["model"] == "anthropic/claude-haiku-4-5"
        assert kwargs["messages"] == [{"role": "user", "content": "Classify this"}]
        assert kwargs["temperature"] == 0
        assert kwargs["api_key"] == "k"
        assert kwargs["api_base"] == "https://proxy.local"

    async def test_omits_unset_credentials(self) -> None:
        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = create_mock_response()

            await LiteLLMCompleter()("openai", "gpt-5-mini", "hi")

        kwargs = mock_acompletion.call_args.kwargs
        assert "api_key" not in kwargs
        assert "api_base" not in kwargs

    async def test_empty_content(self) -> None:
        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = create_mock_response(None)

            assert await LiteLLMCompleter()("openai", "gpt-5-mini", "hi") == ""

    async def test_auth_error(self) -> None:
        """Authentication failures become a 401 ProviderError."""
        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.side_effect = litellm.AuthenticationError(
                message="Invalid API key",
                llm_provider="openai",
                model="gpt-5-mini",
            )

            with pytest.raises(ProviderError) as exc_info:
                await LiteLLMCompleter()("openai", "gpt-5-mini", "hi")

        assert exc_info.value.status_code == 401
        assert exc_info.value.provider == "openai"
        assert "Authentication failed" in exc_info.value.message

    async def test_api_error(self) -> None:
        """Other failures keep the original status code."""
        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.side_effect = litellm.APIError(
                message="Internal server error",
                status_code=500,
                llm_provider="openai",
                model="gpt-5-mini",
            )

            with pytest.raises(ProviderError) as exc_info:
                await LiteLLMCompleter()("openai", "gpt-5-mini", "hi")

        assert exc_info.value.status_code == 500
        assert isinstance(exc_info.value.__cause__, litellm.APIError)


class TestClassifierIntegration:
    """Test LiteLLMCompleter as the classifier's completion function."""

    async def test_classify_with_completer(self) -> None:
        models = [CandidateModel("openai", "gpt-5-mini", "GPT-5 Mini", ModelCost(0.25, 2))]

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = create_mock_response(
                '{"type": "code", "complexity": 5, "reasoning": "audit"}'
            )

            result = await classify_task(
                "Audit auth", TaskType.TEXT, list_models=lambda: models, complete=LiteLLMCompleter()
            )

        assert result.type == TaskType.CODE
        assert result.complexity == 5

    async def test_provider_failure_falls_back(self) -> None:
        models = [CandidateModel("openai", "gpt-5-mini", "GPT-5 Mini", ModelCost(0.25, 2))]

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.side_effect = litellm.AuthenticationError(
                message="Invalid API key",
                llm_provider="openai",
                model="gpt-5-mini",
            )

            result = await classify_task(
                "Audit auth", TaskType.TEXT, list_models=lambda: models, complete=LiteLLMCompleter()
            )

        assert result.type == TaskType.TEXT
        assert result.complexity == 3
        assert result.reasoning == "fallback: classification unavailable"
