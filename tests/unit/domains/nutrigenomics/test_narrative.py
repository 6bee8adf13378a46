"""Tests for narrative formatting, parsing, merging and LLM enhancement."""

from __future__ import annotations

import asyncio
import json

import pytest

from nutrigen.core.llm.client import NarrativeLLMClient
from nutrigen.core.llm.providers.mock import MockProvider
from nutrigen.core.llm.response import REDACTION_TEXT
from nutrigen.domains.nutrigenomics.domain_logic.errors import NarrativeEnhancementError
from nutrigen.domains.nutrigenomics.domain_logic.models import (
    ActivityLevel,
    HealthProfile,
    RiskCategory,
)
from nutrigen.domains.nutrigenomics.domain_logic.narrative import (
    DIETARY_PATTERNS,
    LIST_FIELDS,
    TEXT_FIELDS,
    NarrativeEnhancer,
    build_narrative_request,
    format_local_narrative,
    merge_narrative,
    parse_narrative_response,
)


def _run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _enhancer(provider: MockProvider, **kwargs) -> NarrativeEnhancer:
    return NarrativeEnhancer(NarrativeLLMClient(provider, provider_name="mock"), **kwargs)


VALID_RESPONSE = json.dumps({
    "recommendedFoods": [{"food": "Wild Salmon", "reason": "Omega-3 for APOE", "frequency": "3x/week"}],
    "mealTiming": "Five smaller meals spaced through the day",
    "keyInsights": ["Your folate processing benefits from methylfolate."],
})


# ---------------------------------------------------------------------------
# Local narrative
# ---------------------------------------------------------------------------

class TestLocalNarrative:
    def test_has_every_field(self, high_risk_report):
        narrative = format_local_narrative(high_risk_report)
        assert set(narrative) == set(LIST_FIELDS) | set(TEXT_FIELDS)

    def test_content_follows_report(self, high_risk_report):
        narrative = format_local_narrative(high_risk_report)
        foods = [f["food"] for f in narrative["recommendedFoods"]]
        assert "Wild salmon" in foods
        assert len(foods) == len(set(f.lower() for f in foods))
        avoid = [a["food"] for a in narrative["avoidFoods"]]
        assert "Synthetic folic acid" in avoid
        assert "Foods high in sodium" in avoid
        assert narrative["dietaryPattern"] == DIETARY_PATTERNS[RiskCategory.NEUROLOGICAL]
        assert narrative["supplements"][0]["supplement"] == "Methylfolate (5-MTHF)"
        assert narrative["riskMitigation"][0]["priority"] == "critical"

    def test_deterministic(self, high_risk_report):
        assert format_local_narrative(high_risk_report) == format_local_narrative(high_risk_report)

    def test_fallback_report_narrative(self, composer):
        fallback = composer.generate_fallback_report()
        narrative = format_local_narrative(fallback)
        assert narrative["keyInsights"][0] == fallback.message
        assert narrative["recommendedFoods"]
        assert narrative["riskMitigation"][0]["strategy"] == fallback.recommendations.monitoring


# ---------------------------------------------------------------------------
# Request minimization
# ---------------------------------------------------------------------------

class TestNarrativeRequest:
    @pytest.fixture
    def profile(self) -> HealthProfile:
        return HealthProfile(
            age=47,
            weight=80.123,
            activity_level=ActivityLevel.LIGHT,
            health_goals="More energy",
            medications="Metformin",
        )

    def test_strict_drops_variant_and_free_text(self, high_risk_report, profile):
        payload = build_narrative_request(high_risk_report, profile, "strict")
        assert all("variant" not in i for i in payload["geneticInsights"])
        assert payload["healthProfile"] == {"age_band": "40-49", "activity_level": "light"}

    def test_standard_adds_variant_and_goals(self, high_risk_report, profile):
        payload = build_narrative_request(high_risk_report, profile, "standard")
        assert payload["geneticInsights"][0]["variant"] == "AA"
        assert payload["healthProfile"]["health_goals"] == "More energy"
        assert "medications" not in payload["healthProfile"]

    def test_explicit_sends_full_profile(self, high_risk_report, profile):
        payload = build_narrative_request(high_risk_report, profile, "explicit")
        assert payload["healthProfile"]["medications"] == "Metformin"
        assert payload["healthProfile"]["weight"] == 80.12

    def test_payload_is_json_serializable(self, high_risk_report, profile):
        json.dumps(build_narrative_request(high_risk_report, profile, "explicit"))


# ---------------------------------------------------------------------------
# Parse and merge
# ---------------------------------------------------------------------------

class TestParseNarrativeResponse:
    def test_plain_json(self):
        parsed = parse_narrative_response(VALID_RESPONSE)
        assert parsed["mealTiming"].startswith("Five smaller meals")
        assert parsed["recommendedFoods"][0]["food"] == "Wild Salmon"

    def test_fenced_json(self):
        parsed = parse_narrative_response(f"Here you go:\n```json\n{VALID_RESPONSE}\n```")
        assert "keyInsights" in parsed

    def test_unknown_keys_ignored_and_bad_items_dropped(self):
        parsed = parse_narrative_response(json.dumps({
            "keyInsights": ["ok", 3, ""],
            "supplements": [{"dosage": "no name"}, {"supplement": "Zinc", "dosage": "15mg"}],
            "extra": "ignored",
        }))
        assert parsed["keyInsights"] == ["ok"]
        assert parsed["supplements"] == [{"supplement": "Zinc", "dosage": "15mg"}]
        assert "extra" not in parsed

    @pytest.mark.parametrize("text", [
        "",
        "not json at all",
        "{broken json",
        "[1, 2, 3]",
        '{"unrelated": true}',
        '{"keyInsights": "should be a list"}',
        '{"mealTiming": ["should be text"]}',
    ])
    def test_malformed_raises(self, text):
        with pytest.raises(NarrativeEnhancementError):
            parse_narrative_response(text)


class TestMergeNarrative:
    def test_response_text_wins(self):
        local = {"mealTiming": "local timing", "dietaryPattern": "local pattern"}
        merged = merge_narrative(local, {"mealTiming": "llm timing"})
        assert merged["mealTiming"] == "llm timing"
        assert merged["dietaryPattern"] == "local pattern"

    def test_lists_deduplicated_case_insensitively(self):
        local = {"recommendedFoods": [{"food": "Wild salmon"}, {"food": "Eggs"}]}
        merged = merge_narrative(local, {"recommendedFoods": [{"food": "WILD SALMON", "reason": "x"}]})
        assert [f["food"] for f in merged["recommendedFoods"]] == ["WILD SALMON", "Eggs"]

    def test_missing_response_list_keeps_local(self):
        local = {"keyInsights": ["a", "b"]}
        assert merge_narrative(local, {})["keyInsights"] == ["a", "b"]


# ---------------------------------------------------------------------------
# Enhancer
# ---------------------------------------------------------------------------

class TestNarrativeEnhancer:
    def test_success_merges_llm_output(self, high_risk_report):
        provider = MockProvider(VALID_RESPONSE)
        result = _run(_enhancer(provider).enhance(high_risk_report, HealthProfile(age=52)))
        assert result.source == "llm"
        assert result.error is None
        assert result.llm_disclosed is False
        assert result.narrative["mealTiming"] == "Five smaller meals spaced through the day"
        foods = [f["food"] for f in result.narrative["recommendedFoods"]]
        assert foods[0] == "Wild Salmon"
        assert "wild salmon" not in [f.lower() for f in foods[1:]]
        assert provider.call_count == 1

    def test_strict_mode_keeps_variant_codes_out_of_prompt(self, high_risk_report):
        provider = MockProvider(VALID_RESPONSE)
        _run(_enhancer(provider).enhance(high_risk_report, HealthProfile(age=52, medications="Statin")))
        sent = json.loads(provider.last_user_message)
        assert all("variant" not in i for i in sent["geneticInsights"])
        assert "Statin" not in provider.last_user_message
        assert sent["healthProfile"] == {"age_band": "50-59"}

    def test_timeout_falls_back_to_local(self, high_risk_report):
        provider = MockProvider(VALID_RESPONSE, delay_seconds=1.0)
        result = _run(_enhancer(provider, timeout_seconds=0.05).enhance(high_risk_report))
        assert result.source == "local"
        assert result.error == "timeout"
        assert result.narrative == format_local_narrative(high_risk_report)

    def test_provider_error_falls_back_to_local(self, high_risk_report):
        provider = MockProvider(error=ConnectionError("unreachable"))
        result = _run(_enhancer(provider).enhance(high_risk_report))
        assert result.source == "local"
        assert result.error == "ConnectionError"

    def test_malformed_response_falls_back_to_local(self, high_risk_report):
        result = _run(_enhancer(MockProvider("I cannot help with that.")).enhance(high_risk_report))
        assert result.source == "local"
        assert result.error == "malformed_response"

    def test_guardrails_redact_prohibited_phrasing(self, high_risk_report):
        response = json.dumps({"keyInsights": [
            "You will develop heart disease without changes.",
            "Leafy greens support methylation.",
        ]})
        result = _run(_enhancer(MockProvider(response)).enhance(high_risk_report))
        assert result.source == "llm"
        assert result.guardrail_flags
        insights = result.narrative["keyInsights"]
        assert insights[0] == REDACTION_TEXT
        assert insights[1] == "Leafy greens support methylation."

    def test_fallback_report_skips_llm(self, composer):
        provider = MockProvider(VALID_RESPONSE)
        result = _run(_enhancer(provider).enhance(composer.generate_fallback_report()))
        assert result.source == "local"
        assert provider.call_count == 0

    def test_no_client_is_local(self, high_risk_report):
        result = _run(NarrativeEnhancer(None).enhance(high_risk_report))
        assert result.source == "local"
        assert result.error is None
