"""nutrigen MCP Server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery (`fastmcp run .../app.py:mcp`)
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from nutrigen.core.audit.logger import AuditLogger
from nutrigen.core.config.settings import Settings, get_settings
from nutrigen.core.llm.client import NarrativeLLMClient
from nutrigen.core.llm.provider import LLMProvider, create_provider
from nutrigen.domains.nutrigenomics.domain_logic.calibration import load_risk_weights
from nutrigen.domains.nutrigenomics.domain_logic.catalog import MARKER_CATALOG
from nutrigen.domains.nutrigenomics.domain_logic.marker_interpreter import MarkerInterpreter
from nutrigen.domains.nutrigenomics.domain_logic.models import REPORT_VERSION
from nutrigen.domains.nutrigenomics.domain_logic.narrative import NarrativeEnhancer
from nutrigen.domains.nutrigenomics.domain_logic.report_composer import ReportComposer
from nutrigen.domains.nutrigenomics.domain_logic.risk_scorer import RiskScorer
from nutrigen.domains.nutrigenomics.prompts.nutrition_prompts import register_nutrition_prompts
from nutrigen.domains.nutrigenomics.resources.catalog import register_catalog_resources
from nutrigen.domains.nutrigenomics.tools.audit_tools import register_audit_tools
from nutrigen.domains.nutrigenomics.tools.nutrition_report_tools import (
    register_nutrigenomics_tools,
)

logger = logging.getLogger(__name__)

SERVER_NAME = "nutrigen"
SERVER_VERSION = "0.1.0"


def _select_provider(settings: Settings) -> tuple[str, str, str]:
    """Return (provider_name, api_key, model); mock when the key is missing."""
    if settings.llm_provider == "mock":
        return "mock", "", ""
    if settings.llm_provider == "anthropic":
        api_key, model = settings.anthropic_api_key, settings.anthropic_model
    elif settings.llm_provider == "openai":
        api_key, model = settings.openai_api_key, settings.openai_model
    else:  # pragma: no cover
        raise ValueError(f"Unknown LLM provider: {settings.llm_provider!r}")

    if not api_key:
        logger.warning(
            "No API key configured for provider '%s'; falling back to mock provider",
            settings.llm_provider,
        )
        return "mock", "", ""
    return settings.llm_provider, api_key, model


def create_app(
    *,
    settings_override: Settings | None = None,
    llm_provider_override: LLMProvider | None = None,
    audit_logger_override: AuditLogger | None = None,
) -> FastMCP:
    """Create and configure the nutrigen MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Loads the risk-weight calibration (built-in weights by default)
    3. Builds the interpreter, scorer and report composer
    4. Creates the narrative LLM client and enhancer
    5. Registers all tools, resources, and prompts
    """
    settings = settings_override or get_settings()

    # --- Server instance ---
    server = FastMCP(
        "nutrigen",
        instructions=(
            "Genotype-driven nutrition report engine. Validates genetic marker "
            "readings, scores cardiovascular, metabolic, neurological and "
            "nutritional risk, and produces prioritized nutrition, supplement "
            "and monitoring guidance. Wellness information, not medical advice."
        ),
    )

    # --- Deterministic core ---
    risk_weights = load_risk_weights(settings.risk_weights_path)
    composer = ReportComposer(
        interpreter=MarkerInterpreter(),
        scorer=RiskScorer(weights=risk_weights),
    )

    # --- Narrative LLM ---
    if llm_provider_override is not None:
        provider = llm_provider_override
        provider_name = type(provider).__name__.removesuffix("Provider").lower()
    else:
        provider_name, api_key, model = _select_provider(settings)
        provider = create_provider(
            provider_name=provider_name,
            api_key=api_key,
            model=model,
            base_url=settings.openai_base_url,
            timeout_seconds=settings.narrative_timeout_seconds,
            json_mode=settings.openai_json_mode,
        )

    llm_client = NarrativeLLMClient(provider=provider, provider_name=provider_name)
    enhancer = NarrativeEnhancer(
        llm_client if settings.narrative_enabled else None,
        timeout_seconds=settings.narrative_timeout_seconds,
        max_tokens=settings.narrative_max_tokens,
        default_privacy_mode=settings.default_privacy_mode,
    )
    logger.info(
        "Narrative enhancement %s (provider=%s, timeout=%.1fs)",
        "enabled" if settings.narrative_enabled else "disabled",
        provider_name,
        settings.narrative_timeout_seconds,
    )

    audit_logger = audit_logger_override or AuditLogger()

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "report_version": REPORT_VERSION,
            "markers_supported": len(MARKER_CATALOG),
            "llm_provider": provider_name,
            "narrative_enabled": settings.narrative_enabled,
            "calibration": settings.risk_weights_path or "built-in",
        }

    register_nutrigenomics_tools(
        server,
        composer,
        enhancer,
        audit_logger,
        default_privacy_mode=settings.default_privacy_mode,
    )
    register_audit_tools(server, audit_logger)
    logger.info("Nutrigenomics tools registered")

    # --- Register resources ---
    register_catalog_resources(server, risk_weights)

    # --- Register prompts ---
    register_nutrition_prompts(server)

    return server


# Module-level instance for FastMCP discovery (`fastmcp run src/nutrigen/core/server/app.py:mcp`).
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
