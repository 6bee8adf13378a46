"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """nutrigen server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Server
    # Default to loopback: reports are derived from genetic data and there is
    # no auth layer. Opt into `0.0.0.0` explicitly when you intend remote access.
    nutrigen_host: str = "127.0.0.1"
    nutrigen_port: int = 8001
    nutrigen_log_level: str = "info"
    # If binding to non-loopback, refuse to start unless this is set true.
    nutrigen_allow_insecure_bind: bool = False

    # Narrative LLM
    llm_provider: Literal["anthropic", "openai", "mock"] = "anthropic"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    # Any OpenAI-compatible endpoint, e.g. https://openrouter.ai/api/v1
    openai_base_url: str = ""
    # Request response_format=json_object (not every compatible endpoint supports it)
    openai_json_mode: bool = False

    # Narrative enhancement
    narrative_enabled: bool = True
    narrative_timeout_seconds: float = 20.0
    narrative_max_tokens: int = 2048

    # Privacy
    default_privacy_mode: Literal["strict", "standard", "explicit"] = "strict"

    # Risk-weight calibration (YAML); empty uses the built-in weights
    risk_weights_path: str = ""


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
