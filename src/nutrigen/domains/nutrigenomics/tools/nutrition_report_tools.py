"""MCP tools for genotype validation, risk assessment and nutrition reports."""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from nutrigen.core.audit.logger import AuditLogger
    from nutrigen.domains.nutrigenomics.domain_logic.narrative import NarrativeEnhancer
    from nutrigen.domains.nutrigenomics.domain_logic.report_composer import ReportComposer

from nutrigen.core.privacy.policy import PrivacyMode, validate_privacy_mode
from nutrigen.domains.nutrigenomics.connectors.mock_data import (
    get_sample_genotype,
    get_sample_health_profile,
)
from nutrigen.domains.nutrigenomics.domain_logic.models import (
    FallbackReport,
    HealthProfile,
    to_plain,
)
from nutrigen.domains.nutrigenomics.domain_logic.narrative import (
    NarrativeResult,
    format_local_narrative,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Input helpers
# ---------------------------------------------------------------------------

def _resolve_inputs(
    genotype: dict[str, Any] | None,
    health_profile: dict[str, Any] | None,
    sample: str | None,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Pick the explicit genotype, or a named sample when one is requested."""
    if sample:
        resolved_profile = health_profile if health_profile is not None else get_sample_health_profile(sample)
        return get_sample_genotype(sample), resolved_profile
    if genotype is None:
        raise ValueError("Provide a genotype mapping (marker -> variant) or a sample name")
    return genotype, health_profile or {}


def _audit_input(genotype: Any, health_profile: Any, privacy_mode: str | None = None) -> dict[str, Any]:
    return {"genotype": genotype, "health_profile": health_profile, "privacy_mode": privacy_mode}


def register_nutrigenomics_tools(
    mcp: FastMCP,
    composer: ReportComposer,
    enhancer: NarrativeEnhancer,
    audit_logger: AuditLogger | None = None,
    *,
    default_privacy_mode: PrivacyMode = "strict",
) -> None:
    """Register nutrigenomics tools on the MCP server."""

    @mcp.tool
    async def validate_genotype(
        ctx: Context,
        genotype: dict[str, Any] | None = None,
    ) -> str:
        """Check a genotype for completeness and unrecognized markers or variants.

        Never fails on unknown entries: they are reported as warnings.

        Args:
            genotype: Mapping of marker code to variant code,
                e.g. {"MTHFR": "CT", "APOE": "E3/E4"}.
        """
        start_time = time.monotonic()
        result = composer.interpreter.validate(genotype)
        if audit_logger is not None:
            audit_logger.log_tool_call(
                tool_name="validate_genotype",
                tool_input=_audit_input(genotype, None),
                duration_ms=(time.monotonic() - start_time) * 1000,
                metadata={"is_valid": result.is_valid, "warnings": len(result.warnings)},
            )
        return json.dumps(to_plain(result), indent=2)

    @mcp.tool
    async def genetic_risk_assessment(
        ctx: Context,
        genotype: dict[str, Any] | None = None,
        health_profile: dict[str, Any] | None = None,
        sample: str | None = None,
    ) -> str:
        """Score cardiovascular, metabolic, neurological and nutritional risk.

        Each category score (0-15) combines genetic factor weights, an age
        band and lifestyle factors, and maps to low / moderate / high /
        very_high. Scores are uncalibrated wellness indicators, not a
        diagnosis.

        Args:
            genotype: Mapping of marker code to variant code.
            health_profile: Optional profile (age, weight, height,
                activityLevel, healthGoals, existingConditions, medications,
                allergies). camelCase or snake_case keys.
            sample: Use a built-in sample instead ('high_risk', 'reference', 'partial').
        """
        start_time = time.monotonic()
        genotype, health_profile = _resolve_inputs(genotype, health_profile, sample)

        try:
            validation = composer.interpreter.validate(genotype)
            if not validation.is_valid:
                payload: dict[str, Any] = {"status": "invalid", "validation": to_plain(validation)}
            else:
                profile = composer.interpreter.interpret(genotype)
                risk = composer.scorer.assess_risks(profile, HealthProfile.from_dict(health_profile))
                payload = {
                    "status": "ok",
                    "validation": to_plain(validation),
                    "genetic_profile": to_plain(profile),
                    "risk_assessment": to_plain(risk),
                }
        except Exception as exc:
            if audit_logger is not None:
                audit_logger.log_tool_call(
                    tool_name="genetic_risk_assessment",
                    tool_input=_audit_input(genotype, health_profile),
                    duration_ms=(time.monotonic() - start_time) * 1000,
                    status="failure",
                    error_type=type(exc).__name__,
                )
            raise

        if audit_logger is not None:
            audit_logger.log_tool_call(
                tool_name="genetic_risk_assessment",
                tool_input=_audit_input(genotype, health_profile),
                duration_ms=(time.monotonic() - start_time) * 1000,
                metadata={"status": payload["status"]},
            )
        return json.dumps(payload, indent=2)

    @mcp.tool
    async def nutrition_report(
        ctx: Context,
        genotype: dict[str, Any] | None = None,
        health_profile: dict[str, Any] | None = None,
        sample: str | None = None,
        privacy_mode: str | None = None,
        enhance: bool = True,
    ) -> str:
        """Generate a comprehensive genotype-driven nutrition report.

        Always returns a report: if analysis cannot complete, a generic
        fallback report is returned instead. The narrative section is
        written by the configured LLM when available and falls back to a
        deterministic local summary on timeout, error or malformed output.

        Args:
            genotype: Mapping of marker code to variant code.
            health_profile: Optional profile, see genetic_risk_assessment.
            sample: Use a built-in sample instead ('high_risk', 'reference', 'partial').
            privacy_mode: Controls what reaches the narrative LLM.
                'strict' (default): phenotypes, risk summary, age band, activity.
                'standard': adds raw variant codes and health goals.
                'explicit': full health profile reaches the LLM.
            enhance: Set False to skip the LLM and use the local narrative only.
        """
        start_time = time.monotonic()
        effective_privacy_mode = validate_privacy_mode(privacy_mode, default=default_privacy_mode)
        genotype, health_profile = _resolve_inputs(genotype, health_profile, sample)

        report = composer.generate_comprehensive_report(genotype, health_profile)

        try:
            profile = HealthProfile.from_dict(health_profile)
        except (AttributeError, TypeError):
            logger.warning("Unusable health profile passed to narrative, using an empty profile")
            profile = HealthProfile()

        if enhance:
            result = await enhancer.enhance(report, profile, effective_privacy_mode)
        else:
            result = NarrativeResult(narrative=format_local_narrative(report), source="local")

        if audit_logger is not None:
            audit_logger.log_tool_call(
                tool_name="nutrition_report",
                tool_input=_audit_input(genotype, health_profile, effective_privacy_mode),
                privacy_mode=effective_privacy_mode,
                llm_provider=enhancer.provider_name if enhance else None,
                llm_disclosed=result.llm_disclosed,
                report_id=report.report_id,
                duration_ms=(time.monotonic() - start_time) * 1000,
                metadata={
                    "report_type": report.type,
                    "narrative_source": result.source,
                    "guardrail_flags": len(result.guardrail_flags),
                },
            )

        return json.dumps({
            "status": "fallback" if isinstance(report, FallbackReport) else "ok",
            "report": to_plain(report),
            "narrative": result.narrative,
            "narrative_source": result.source,
            "narrative_error": result.error,
            "guardrail_flags": list(result.guardrail_flags),
        }, indent=2, ensure_ascii=False)
