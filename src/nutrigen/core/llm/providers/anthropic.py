"""Anthropic Claude provider."""

from __future__ import annotations

import logging
import time

from nutrigen.core.llm.provider import DEFAULT_ANTHROPIC_MODEL, ProviderResponse

logger = logging.getLogger(__name__)


class AnthropicProvider:
    """Claude provider using the Anthropic SDK.

    SDK retries are off by default: the narrative enhancer owns the time
    budget and falls back locally instead of waiting on a retry.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_ANTHROPIC_MODEL,
        *,
        timeout_seconds: float | None = None,
        max_retries: int = 0,
    ) -> None:
        import anthropic

        client_kwargs: dict = {"api_key": api_key, "max_retries": max_retries}
        if timeout_seconds is not None:
            client_kwargs["timeout"] = timeout_seconds
        self.client = anthropic.AsyncAnthropic(**client_kwargs)
        self.model = model

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> ProviderResponse:
        start = time.monotonic()
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_message,
            messages=[{"role": "user", "content": user_message}],
        )
        elapsed_ms = (time.monotonic() - start) * 1000

        if response.stop_reason == "max_tokens":
            logger.warning("Anthropic narrative truncated at max_tokens=%d", max_tokens)

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        return ProviderResponse(
            content=text,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            model=response.model or self.model,
            latency_ms=elapsed_ms,
        )
