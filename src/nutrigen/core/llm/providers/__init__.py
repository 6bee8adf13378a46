"""LLM provider implementations."""

from nutrigen.core.llm.providers.anthropic import AnthropicProvider
from nutrigen.core.llm.providers.mock import MockProvider
from nutrigen.core.llm.providers.openai import OpenAIProvider

__all__ = ["AnthropicProvider", "MockProvider", "OpenAIProvider"]
