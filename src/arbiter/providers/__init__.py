"""LLM provider adapters for Arbiter.

Arbiter only calls a model to classify tasks. LiteLLMCompleter is a ready-made
``complete`` function for ``classify_task``; any callable with the same
signature works.
"""

from arbiter.providers.litellm_adapter import LiteLLMCompleter

__all__ = ["LiteLLMCompleter"]
