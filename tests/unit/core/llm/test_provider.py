"""Tests for the provider factory, the mock provider and the narrative client."""

from __future__ import annotations

import asyncio
import json

import pytest

from nutrigen.core.llm.client import NarrativeLLMClient
from nutrigen.core.llm.provider import DEFAULT_ANTHROPIC_MODEL, LLMProvider, create_provider
from nutrigen.core.llm.providers.mock import DEFAULT_MOCK_RESPONSE, MockProvider
from nutrigen.core.llm.system_prompt import NUTRITION_DOMAIN_SYSTEM_PROMPT


def _run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class TestCreateProvider:
    def test_mock(self):
        provider = create_provider("mock")
        assert isinstance(provider, MockProvider)
        assert isinstance(provider, LLMProvider)

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            create_provider("carrier-pigeon")

    def test_openai_options_reach_sdk_client(self):
        provider = create_provider(
            "openai",
            api_key="sk-test",
            base_url="http://127.0.0.1:9/v1",
            timeout_seconds=4.0,
            json_mode=True,
        )
        assert provider.model == "gpt-4o"
        assert provider.json_mode is True
        assert provider.client.timeout == 4.0
        assert provider.client.max_retries == 0
        assert str(provider.client.base_url).startswith("http://127.0.0.1:9/v1")

    def test_anthropic_uses_default_model(self):
        provider = create_provider("anthropic", api_key="sk-ant-test", timeout_seconds=3.0)
        assert provider.model == DEFAULT_ANTHROPIC_MODEL
        assert provider.client.timeout == 3.0


class TestMockProvider:
    def test_default_response_is_narrative_json(self):
        data = json.loads(DEFAULT_MOCK_RESPONSE)
        assert "keyInsights" in data

    def test_records_messages(self):
        provider = MockProvider("hello")
        response = _run(provider.generate("system", "user message"))
        assert response.content == "hello"
        assert response.model == "mock"
        assert provider.last_user_message == "user message"
        assert provider.call_count == 1

    def test_error_raised(self):
        provider = MockProvider(error=RuntimeError("down"))
        with pytest.raises(RuntimeError, match="down"):
            _run(provider.generate("s", "u"))


class TestNarrativeLLMClient:
    def test_invoke_renders_payload_and_system_prompt(self):
        provider = MockProvider('{"keyInsights": ["x"]}')
        client = NarrativeLLMClient(provider, provider_name="mock")
        response = _run(client.invoke("## Task\nWrite it.", {"geneticInsights": [{"marker": "MTHFR"}]}))

        assert response.content == '{"keyInsights": ["x"]}'
        assert response.usage["output_tokens"] > 0
        assert json.loads(provider.last_user_message) == {"geneticInsights": [{"marker": "MTHFR"}]}
        assert provider.last_system_message.startswith(NUTRITION_DOMAIN_SYSTEM_PROMPT)
        assert "## Task" in provider.last_system_message

    def test_discloses_data(self):
        assert NarrativeLLMClient(MockProvider(), provider_name="mock").discloses_data is False
        assert NarrativeLLMClient(MockProvider(), provider_name="anthropic").discloses_data is True

    def test_provider_name_defaults_to_class_name(self):
        assert NarrativeLLMClient(MockProvider()).provider_name == "mockprovider"
