"""Narrative LLM client — the bridge between the report engine and LLM calls."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from nutrigen.core.llm.provider import LLMProvider, ProviderResponse
from nutrigen.core.llm.system_prompt import build_full_system_prompt

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Raw response from the narrative LLM plus call metadata."""

    content: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)
    latency_ms: float = 0.0


class NarrativeLLMClient:
    """Invokes the LLM with a task prompt and a JSON payload."""

    def __init__(self, provider: LLMProvider, provider_name: str = "") -> None:
        self.provider = provider
        self.provider_name = provider_name or type(provider).__name__.lower()

    @property
    def discloses_data(self) -> bool:
        """True when calls leave the process (any provider but the mock)."""
        return self.provider_name != "mock"

    async def invoke(
        self,
        task_instructions: str,
        payload: dict[str, Any],
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> LLMResponse:
        """Call the LLM with the task prompt and the payload rendered as JSON."""
        user_message = json.dumps(payload, indent=2, ensure_ascii=False)

        provider_response: ProviderResponse = await self.provider.generate(
            system_message=build_full_system_prompt(task_instructions),
            user_message=user_message,
            max_tokens=max_tokens,
            temperature=temperature,
        )

        logger.info(
            "Narrative LLM call: provider=%s, model=%s, tokens=%d+%d, latency=%.0fms",
            self.provider_name,
            provider_response.model,
            provider_response.input_tokens,
            provider_response.output_tokens,
            provider_response.latency_ms,
        )

        return LLMResponse(
            content=provider_response.content,
            model=provider_response.model,
            usage={
                "input_tokens": provider_response.input_tokens,
                "output_tokens": provider_response.output_tokens,
            },
            latency_ms=provider_response.latency_ms,
        )
