"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from nutrigen.core.config.settings import Settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("LLM_PROVIDER", raising=False)
    settings = Settings(_env_file=None)
    assert settings.llm_provider == "anthropic"
    assert settings.nutrigen_host == "127.0.0.1"
    assert settings.default_privacy_mode == "strict"
    assert settings.narrative_timeout_seconds == 20.0


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("NARRATIVE_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("DEFAULT_PRIVACY_MODE", "standard")
    settings = Settings(_env_file=None)
    assert settings.llm_provider == "mock"
    assert settings.narrative_timeout_seconds == 2.5
    assert settings.default_privacy_mode == "standard"


def test_rejects_unknown_privacy_mode(monkeypatch):
    monkeypatch.setenv("DEFAULT_PRIVACY_MODE", "everything")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_openai_json_mode_from_env(monkeypatch):
    monkeypatch.setenv("OPENAI_JSON_MODE", "true")
    assert Settings(_env_file=None).openai_json_mode is True
