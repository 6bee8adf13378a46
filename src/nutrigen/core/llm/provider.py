"""Provider protocol and factory for the narrative LLM call."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-5-20250929"
DEFAULT_OPENAI_MODEL = "gpt-4o"


@dataclass
class ProviderResponse:
    """Text and token accounting returned by one provider call."""

    content: str
    input_tokens: int
    output_tokens: int
    model: str
    latency_ms: float


@runtime_checkable
class LLMProvider(Protocol):
    """Anything that can turn a system and user message into a completion."""

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> ProviderResponse: ...


def create_provider(
    provider_name: str,
    api_key: str = "",
    model: str = "",
    base_url: str = "",
    *,
    timeout_seconds: float | None = None,
    json_mode: bool = False,
) -> LLMProvider:
    """Build the provider named by ``LLM_PROVIDER``.

    SDK modules are imported only for the provider actually selected, so a
    mock-only deployment never loads anthropic or openai.

    Args:
        provider_name: "anthropic", "openai", or "mock".
        api_key: Provider API key. Ignored by the mock.
        model: Model id; empty selects the provider default.
        base_url: OpenAI-compatible endpoint override (e.g. OpenRouter).
        timeout_seconds: Per-request HTTP timeout passed to the SDK client.
        json_mode: Ask OpenAI-compatible endpoints for a JSON object response.

    Raises:
        ValueError: For an unrecognized provider name.
    """
    if provider_name == "anthropic":
        from nutrigen.core.llm.providers.anthropic import AnthropicProvider

        return AnthropicProvider(
            api_key=api_key,
            model=model or DEFAULT_ANTHROPIC_MODEL,
            timeout_seconds=timeout_seconds,
        )
    elif provider_name == "openai":
        from nutrigen.core.llm.providers.openai import OpenAIProvider

        return OpenAIProvider(
            api_key=api_key,
            model=model or DEFAULT_OPENAI_MODEL,
            base_url=base_url or None,
            timeout_seconds=timeout_seconds,
            json_mode=json_mode,
        )
    elif provider_name == "mock":
        from nutrigen.core.llm.providers.mock import MockProvider

        return MockProvider()
    else:
        raise ValueError(f"Unknown LLM provider: {provider_name}")
