"""OpenAI-compatible chat provider (OpenAI, OpenRouter, local gateways)."""

from __future__ import annotations

import logging
import time

from nutrigen.core.llm.provider import DEFAULT_OPENAI_MODEL, ProviderResponse

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """OpenAI provider using the OpenAI SDK.

    ``base_url`` points the client at any OpenAI-compatible endpoint,
    e.g. ``https://openrouter.ai/api/v1``. ``json_mode`` requests a JSON
    object response where the endpoint supports ``response_format``.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_OPENAI_MODEL,
        base_url: str | None = None,
        *,
        timeout_seconds: float | None = None,
        max_retries: int = 0,
        json_mode: bool = False,
    ) -> None:
        import openai

        client_kwargs: dict = {"api_key": api_key, "base_url": base_url, "max_retries": max_retries}
        if timeout_seconds is not None:
            client_kwargs["timeout"] = timeout_seconds
        self.client = openai.AsyncOpenAI(**client_kwargs)
        self.model = model
        self.json_mode = json_mode

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> ProviderResponse:
        request: dict = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [
                {"role": "system", "content": system_message},
                {"role": "user", "content": user_message},
            ],
        }
        if self.json_mode:
            request["response_format"] = {"type": "json_object"}

        start = time.monotonic()
        response = await self.client.chat.completions.create(**request)
        elapsed_ms = (time.monotonic() - start) * 1000

        choice = response.choices[0] if response.choices else None
        if choice is not None and choice.finish_reason == "length":
            logger.warning("OpenAI narrative truncated at max_tokens=%d", max_tokens)

        usage = response.usage
        return ProviderResponse(
            content=(choice.message.content or "") if choice else "",
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            model=response.model or self.model,
            latency_ms=elapsed_ms,
        )
