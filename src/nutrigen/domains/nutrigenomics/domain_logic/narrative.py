"""Narrative enhancement: structured report -> user-facing nutrition narrative.

The narrative shape is shared by the LLM path and the local path::

    {recommendedFoods[], avoidFoods[], supplements[], mealTiming,
     dietaryPattern, keyInsights[], riskMitigation[]}

``format_local_narrative`` produces it deterministically from a report. The
LLM path (``NarrativeEnhancer``) is bounded by a timeout and merges its
answer onto the local narrative; any failure degrades to the local result.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from nutrigen.core.llm.client import NarrativeLLMClient
from nutrigen.core.llm.response import extract_json_object, sanitize_structure
from nutrigen.core.privacy.policy import (
    PrivacyMode,
    build_llm_genetic_context,
    build_llm_profile_context,
)
from nutrigen.domains.nutrigenomics.domain_logic.errors import NarrativeEnhancementError
from nutrigen.domains.nutrigenomics.domain_logic.models import (
    CATEGORY_ORDER,
    FallbackReport,
    HealthProfile,
    NutritionReport,
    Priority,
    RiskCategory,
    to_plain,
)

logger = logging.getLogger(__name__)

LIST_FIELDS: tuple[str, ...] = (
    "recommendedFoods",
    "avoidFoods",
    "supplements",
    "keyInsights",
    "riskMitigation",
)
TEXT_FIELDS: tuple[str, ...] = ("mealTiming", "dietaryPattern")

# Field -> key that identifies an item (None: the item is a plain string).
_ITEM_KEYS: dict[str, str | None] = {
    "recommendedFoods": "food",
    "avoidFoods": "food",
    "supplements": "supplement",
    "keyInsights": None,
    "riskMitigation": "strategy",
}

DIETARY_PATTERNS: dict[RiskCategory, str] = {
    RiskCategory.CARDIOVASCULAR: "Mediterranean-style diet with DASH principles",
    RiskCategory.METABOLIC: "Higher-protein, low-glycemic whole-foods diet",
    RiskCategory.NEUROLOGICAL: "MIND diet emphasizing berries, leafy greens and fatty fish",
    RiskCategory.NUTRITIONAL: "Nutrient-dense whole-foods diet with targeted supplementation",
}
BALANCED_PATTERN = "Balanced whole-foods diet"

NARRATIVE_TASK_PROMPT = """\
## Task

Using the genetic insights, overall risk summary and health profile in the \
user message, write personalized nutrition guidance.

Respond with a single JSON object and nothing else, using exactly this structure:
{
  "recommendedFoods": [{"food": "food name", "reason": "genetic reason", "frequency": "how often"}],
  "avoidFoods": [{"food": "food name", "reason": "genetic reason"}],
  "supplements": [{"supplement": "name", "dosage": "amount", "reason": "why needed"}],
  "mealTiming": "suggestions",
  "dietaryPattern": "recommended pattern",
  "keyInsights": ["one plain-language sentence per insight"],
  "riskMitigation": [{"category": "risk category", "strategy": "what to do", "priority": "critical|high|moderate"}]
}
"""

# Generic guidance for reports produced without genetic analysis.
_FALLBACK_NARRATIVE: dict[str, Any] = {
    "recommendedFoods": [
        {"food": "Leafy greens", "reason": "Rich in folate for DNA methylation", "frequency": "Daily"},
        {"food": "Fatty fish", "reason": "Omega-3s for inflammation control", "frequency": "2-3 times per week"},
        {"food": "Berries", "reason": "Antioxidants for cellular protection", "frequency": "Daily"},
    ],
    "avoidFoods": [
        {"food": "Processed meats", "reason": "May increase inflammation markers"},
    ],
    "supplements": [
        {"supplement": "Vitamin D3", "dosage": "1000-2000 IU", "reason": "Support immune function"},
    ],
    "mealTiming": "Eat within 12-hour window to support circadian rhythms",
    "dietaryPattern": "Mediterranean-style diet with emphasis on whole foods",
}


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

def build_narrative_request(
    report: NutritionReport,
    health_profile: HealthProfile | None,
    privacy_mode: PrivacyMode = "strict",
) -> dict[str, Any]:
    """Privacy-minimized payload for the narrative LLM."""
    insights = [
        {
            "marker": analysis.marker.value,
            "name": analysis.name,
            "variant": analysis.variant.value,
            "finding": analysis.phenotype,
            "implication": analysis.implication.summary,
        }
        for analysis in report.genetic_profile.markers.values()
    ]
    return {
        "geneticInsights": build_llm_genetic_context(insights=insights, privacy_mode=privacy_mode),
        "riskOverall": to_plain(report.risk_profile.overall),
        "healthProfile": build_llm_profile_context(
            full_profile=to_plain(health_profile or HealthProfile()),
            privacy_mode=privacy_mode,
        ),
    }


# ---------------------------------------------------------------------------
# Local formatter
# ---------------------------------------------------------------------------

def _append_unique(items: list[dict[str, Any]], key: str, item: dict[str, Any]) -> None:
    if all(existing[key].lower() != item[key].lower() for existing in items):
        items.append(item)


def format_local_narrative(report: NutritionReport | FallbackReport) -> dict[str, Any]:
    """Deterministic narrative built only from the structured report."""
    if isinstance(report, FallbackReport):
        narrative = to_plain(_FALLBACK_NARRATIVE)
        narrative["keyInsights"] = [report.message, report.recommendations.general]
        narrative["riskMitigation"] = [{
            "category": "general",
            "strategy": report.recommendations.monitoring,
            "priority": Priority.MODERATE.value,
        }]
        return narrative

    recs = report.nutrition_recommendations
    recommended: list[dict[str, Any]] = []
    for directive in recs.all_directives():
        if directive.direction == "restrict":
            continue
        for item in directive.food_sources:
            _append_unique(recommended, "food", {
                "food": item.food,
                "reason": directive.rationale,
                "frequency": "Daily" if directive.priority >= Priority.HIGH else "Several times per week",
            })
    for category in recs.food_categories.values():
        for item in category.foods:
            _append_unique(recommended, "food", {
                "food": item.food,
                "reason": category.rationale,
                "frequency": category.frequency,
            })

    avoid: list[dict[str, Any]] = [
        {"food": a.item, "reason": a.reason} for a in recs.avoidance_list.values()
    ]
    for directive in recs.all_directives():
        if directive.direction == "restrict":
            _append_unique(avoid, "food", {
                "food": f"Foods high in {directive.nutrient.replace('_', ' ')}",
                "reason": f"{directive.rationale} (target {directive.target})",
            })

    protocol = report.supplement_protocol
    supplements = [
        {"supplement": s.supplement, "dosage": s.dosage, "reason": s.rationale}
        for s in protocol.core + protocol.conditional
    ]

    timing = report.meal_plans.timing
    overall = report.risk_profile.overall
    if overall.overall_level.is_elevated:
        pattern = DIETARY_PATTERNS[overall.primary_risk_category]
    else:
        pattern = BALANCED_PATTERN

    insights = [
        f"{i.name} ({i.marker.value}): {i.finding}"
        for i in report.educational_content.key_insights
    ]
    insights.extend(report.educational_content.interaction_advice)

    mitigation = [
        {
            "category": category.value,
            "strategy": strategy.strategy,
            "priority": strategy.priority.value,
        }
        for category in CATEGORY_ORDER
        for strategy in report.risk_profile.categories[category].mitigation_strategies
    ]
    mitigation.sort(key=lambda m: Priority(m["priority"]), reverse=True)

    return {
        "recommendedFoods": recommended,
        "avoidFoods": avoid,
        "supplements": supplements,
        "mealTiming": f"{timing.pattern}, {timing.timing.lower()}. {timing.rationale}.",
        "dietaryPattern": pattern,
        "keyInsights": insights,
        "riskMitigation": mitigation,
    }


# ---------------------------------------------------------------------------
# Parse and merge
# ---------------------------------------------------------------------------

def parse_narrative_response(text: str) -> dict[str, Any]:
    """Validate an LLM answer against the narrative shape.

    Unknown keys are ignored and list items missing their identifying key
    are dropped.

    Raises:
        NarrativeEnhancementError: invalid JSON, wrong field types, or no
            recognizable narrative field at all.
    """
    try:
        data = extract_json_object(text or "")
    except ValueError as exc:
        raise NarrativeEnhancementError(str(exc)) from exc

    parsed: dict[str, Any] = {}
    for name in TEXT_FIELDS:
        if name not in data or data[name] is None:
            continue
        if not isinstance(data[name], str):
            raise NarrativeEnhancementError(f"Field {name!r} must be a string")
        if data[name].strip():
            parsed[name] = data[name].strip()

    for name in LIST_FIELDS:
        if name not in data or data[name] is None:
            continue
        if not isinstance(data[name], list):
            raise NarrativeEnhancementError(f"Field {name!r} must be a list")
        key = _ITEM_KEYS[name]
        items = []
        for item in data[name]:
            if key is None:
                if isinstance(item, str) and item.strip():
                    items.append(item.strip())
            elif isinstance(item, dict) and isinstance(item.get(key), str) and item[key].strip():
                items.append({k: v for k, v in item.items() if isinstance(v, (str, int, float))})
            else:
                logger.debug("Dropping malformed %s item", name)
        parsed[name] = items

    if not parsed:
        raise NarrativeEnhancementError("Response contains no narrative fields")
    return parsed


def merge_narrative(local: dict[str, Any], response: dict[str, Any]) -> dict[str, Any]:
    """Overlay a parsed LLM response on the local narrative.

    Text fields from the response win when present. List fields keep the
    response items first, then local items not already named by it.
    """
    merged = {name: local.get(name) for name in TEXT_FIELDS + LIST_FIELDS}
    for name in TEXT_FIELDS:
        if response.get(name):
            merged[name] = response[name]

    for name in LIST_FIELDS:
        key = _ITEM_KEYS[name]
        incoming = list(response.get(name) or [])
        if not incoming:
            merged[name] = list(local.get(name) or [])
            continue

        def ident(item: Any) -> str:
            return (item if key is None else item[key]).strip().lower()

        seen = {ident(item) for item in incoming}
        merged[name] = incoming + [item for item in local.get(name) or [] if ident(item) not in seen]
    return merged


# ---------------------------------------------------------------------------
# Enhancer
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NarrativeResult:
    narrative: dict[str, Any]
    source: str                          # 'llm' | 'local'
    llm_disclosed: bool = False
    guardrail_flags: tuple[str, ...] = ()
    error: str | None = None


class NarrativeEnhancer:
    """Timeout-bounded LLM narrative with a deterministic local fallback.

    Usage::

        enhancer = NarrativeEnhancer(client, timeout_seconds=20)
        result = await enhancer.enhance(report, health_profile)
    """

    def __init__(
        self,
        client: NarrativeLLMClient | None,
        *,
        timeout_seconds: float = 20.0,
        max_tokens: int = 2048,
        default_privacy_mode: PrivacyMode = "strict",
    ) -> None:
        self._client = client
        self._timeout = timeout_seconds
        self._max_tokens = max_tokens
        self._default_privacy_mode = default_privacy_mode

    @property
    def provider_name(self) -> str | None:
        return self._client.provider_name if self._client is not None else None

    async def enhance(
        self,
        report: NutritionReport | FallbackReport,
        health_profile: HealthProfile | None = None,
        privacy_mode: PrivacyMode | None = None,
    ) -> NarrativeResult:
        """Never raises: every collaborator failure yields the local narrative."""
        local = format_local_narrative(report)
        if self._client is None or isinstance(report, FallbackReport):
            return NarrativeResult(narrative=local, source="local")

        mode = privacy_mode or self._default_privacy_mode
        payload = build_narrative_request(report, health_profile, mode)
        disclosed = self._client.discloses_data

        try:
            response = await asyncio.wait_for(
                self._client.invoke(NARRATIVE_TASK_PROMPT, payload, max_tokens=self._max_tokens),
                timeout=self._timeout,
            )
            parsed = parse_narrative_response(response.content)
        except asyncio.TimeoutError:
            logger.warning("Narrative enhancement timed out after %.1fs, using local narrative", self._timeout)
            return NarrativeResult(narrative=local, source="local", llm_disclosed=disclosed, error="timeout")
        except NarrativeEnhancementError as exc:
            logger.warning("Malformed narrative response, using local narrative: %s", exc)
            return NarrativeResult(narrative=local, source="local", llm_disclosed=disclosed, error="malformed_response")
        except Exception as exc:
            logger.exception("Narrative provider failed, using local narrative")
            return NarrativeResult(
                narrative=local, source="local", llm_disclosed=disclosed, error=type(exc).__name__,
            )

        sanitized, flags = sanitize_structure(parsed)
        if flags:
            logger.warning("Guardrails redacted %d narrative passages", len(flags))
        return NarrativeResult(
            narrative=merge_narrative(local, sanitized),
            source="llm",
            llm_disclosed=disclosed,
            guardrail_flags=tuple(flags),
        )
