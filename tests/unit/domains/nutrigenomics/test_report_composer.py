"""Tests for nutrition report composition and the fallback boundary."""

from __future__ import annotations

import json
import re

import pytest

from nutrigen.domains.nutrigenomics.domain_logic import food_catalog
from nutrigen.domains.nutrigenomics.domain_logic.catalog import MarkerId
from nutrigen.domains.nutrigenomics.domain_logic.models import (
    REPORT_VERSION,
    FallbackReport,
    FoodItem,
    HealthProfile,
    NutritionReport,
    Priority,
    RiskCategory,
    to_plain,
)
from nutrigen.domains.nutrigenomics.domain_logic.report_composer import (
    FALLBACK_GENERAL,
    FALLBACK_MESSAGE,
    FALLBACK_MONITORING,
    ReportComposer,
    filter_foods,
    parse_allergens,
)
from nutrigen.domains.nutrigenomics.domain_logic.risk_scorer import RiskScorer

REPORT_ID_PATTERN = re.compile(r"^NR-\d{13}-[0-9a-f]{9}$")


class ExplodingScorer(RiskScorer):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = 0

    def assess_risks(self, profile, health_profile=None):
        self.calls += 1
        raise RuntimeError("scorer exploded")


def _without_identity(report) -> dict:
    plain = to_plain(report)
    plain.pop("report_id")
    plain.pop("timestamp")
    return plain


# ---------------------------------------------------------------------------
# Comprehensive report
# ---------------------------------------------------------------------------

class TestComprehensiveReport:
    def test_returns_full_report(self, high_risk_report):
        assert isinstance(high_risk_report, NutritionReport)
        assert high_risk_report.type == "comprehensive"
        assert high_risk_report.report_version == REPORT_VERSION
        assert REPORT_ID_PATTERN.match(high_risk_report.report_id)

    def test_folate_is_critical(self, high_risk_report):
        folate = high_risk_report.nutrition_recommendations.micronutrients["folate"]
        assert folate.priority == Priority.CRITICAL
        assert folate.risk_category == RiskCategory.NUTRITIONAL
        assert folate.form == "Methylfolate (5-MTHF)"
        assert folate.food_sources == food_catalog.GENETIC_FOOD_DATABASE[food_catalog.HIGH_FOLATE]

    def test_sodium_restricted_for_cardiovascular(self, high_risk_report):
        sodium = high_risk_report.nutrition_recommendations.micronutrients["sodium"]
        assert sodium.direction == "restrict"
        assert sodium.risk_category == RiskCategory.CARDIOVASCULAR
        assert sodium.priority == Priority.HIGH
        assert sodium.target == "<2000mg daily"

    def test_cardiovascular_override_keeps_marker_priority(self, high_risk_report):
        fiber = high_risk_report.nutrition_recommendations.macronutrients["fiber"]
        assert fiber.target == "40g daily"
        assert fiber.marker == MarkerId.FTO
        assert fiber.priority == Priority.HIGH
        assert fiber.risk_category == RiskCategory.CARDIOVASCULAR

    def test_moderate_metabolic_adds_no_carbohydrate_directive(self, high_risk_report):
        assert "carbohydrates" not in high_risk_report.nutrition_recommendations.macronutrients

    def test_avoidance_list(self, high_risk_report):
        avoid = high_risk_report.nutrition_recommendations.avoidance_list
        assert set(avoid) == {"folic_acid", "trans_fats"}

    def test_action_priorities_sorted_and_critical(self, high_risk_report):
        actions = high_risk_report.action_priorities
        assert len(actions) == 7
        assert all(a.priority == Priority.CRITICAL for a in actions)
        assert actions[0].action == "Optimize saturated fat intake"

    def test_supplement_protocol(self, high_risk_report):
        protocol = high_risk_report.supplement_protocol
        core = [s.supplement for s in protocol.core]
        assert core == [
            "Methylfolate (5-MTHF)",
            "Methylcobalamin (B12)",
            "Vitamin D3",
            "Omega-3 (EPA/DHA)",
        ]
        assert protocol.core[0].dosage == "800-1000mcg"
        assert [s.supplement for s in protocol.conditional] == ["Magnesium glycinate"]

    def test_monitoring_plan(self, high_risk_report):
        plan = high_risk_report.monitoring_plan
        assert [b.test for b in plan.biomarkers] == [
            "Homocysteine", "Lipid Panel", "25-OH Vitamin D", "Home blood pressure",
        ]
        assert plan.risk_based_tests == high_risk_report.risk_profile.monitoring_plan

    def test_meal_plans(self, high_risk_report):
        plans = high_risk_report.meal_plans
        assert plans.timing.key == food_catalog.HIGH_PROTEIN_FREQUENT
        assert [d.day for d in plans.weekly] == list(range(1, 8))
        assert set(plans.templates) == {"breakfast", "lunch", "dinner", "snacks"}
        guidelines = plans.templates["dinner"].guidelines
        assert "Limit sodium (<2000mg daily)" in guidelines

    def test_educational_content(self, high_risk_report):
        content = high_risk_report.educational_content
        assert len(content.key_insights) == 7
        assert len(content.interaction_advice) == 2

    def test_deterministic_apart_from_identity(self, composer, high_risk_genotype):
        first = composer.generate_comprehensive_report(high_risk_genotype, {"age": 52})
        second = composer.generate_comprehensive_report(high_risk_genotype, {"age": 52})
        assert isinstance(first, NutritionReport)
        assert isinstance(second, NutritionReport)
        assert first.report_id != second.report_id
        assert _without_identity(first) == _without_identity(second)

    def test_report_is_json_serializable(self, high_risk_report):
        encoded = json.dumps(to_plain(high_risk_report))
        decoded = json.loads(encoded)
        assert decoded["risk_profile"]["overall"]["primary_risk_category"] == "neurological"
        assert decoded["genetic_profile"]["markers"]["MTHFR"]["variant"] == "TT"


class TestPartialReport:
    @pytest.fixture
    def report(self, composer, partial_genotype, partial_health_profile):
        return composer.generate_comprehensive_report(partial_genotype, partial_health_profile)

    def test_partial_data_still_reports(self, report):
        assert isinstance(report, NutritionReport)
        assert {w.marker for w in report.genetic_profile.warnings} == {"LCT", "ACE"}

    def test_allergens_filtered_from_food_sources(self, report):
        omega3 = report.nutrition_recommendations.macronutrients["omega3"]
        foods = [f.food for f in omega3.food_sources]
        assert "Walnuts" not in foods
        assert "Wild salmon" in foods

    def test_fasting_goal_selects_time_restricted(self, report):
        assert report.meal_plans.timing.key == food_catalog.TIME_RESTRICTED

    def test_medications_add_supplement_note(self, report):
        assert any("medications" in note for note in report.supplement_protocol.notes)

    def test_heterozygous_methylfolate_dosage(self, report):
        methylfolate = report.supplement_protocol.core[0]
        assert methylfolate.dosage == "400-600mcg"
        assert methylfolate.priority == Priority.HIGH


# ---------------------------------------------------------------------------
# Fallback boundary
# ---------------------------------------------------------------------------

class TestFallback:
    @pytest.mark.parametrize("genotype", [None, {}, "not a genotype"])
    def test_invalid_genotype_yields_fallback(self, composer, genotype):
        report = composer.generate_comprehensive_report(genotype)
        assert isinstance(report, FallbackReport)
        assert report.type == "fallback"

    def test_same_genotype_reports_without_injected_failure(self, interpreter, high_risk_genotype):
        composer = ReportComposer(interpreter=interpreter, scorer=RiskScorer())
        assert isinstance(composer.generate_comprehensive_report(high_risk_genotype), NutritionReport)

    def test_internal_failure_yields_fallback(self, interpreter, high_risk_genotype):
        scorer = ExplodingScorer()
        composer = ReportComposer(interpreter=interpreter, scorer=scorer)
        report = composer.generate_comprehensive_report(high_risk_genotype)
        assert scorer.calls == 1
        assert isinstance(report, FallbackReport)
        assert report.message == FALLBACK_MESSAGE
        assert report.recommendations.general == FALLBACK_GENERAL
        assert report.recommendations.monitoring == FALLBACK_MONITORING
        assert REPORT_ID_PATTERN.match(report.report_id)

    def test_failure_in_later_stage_yields_fallback(self, composer, high_risk_genotype, monkeypatch):
        reached = []

        def broken(*args, **kwargs):
            reached.append(True)
            raise KeyError("template")

        monkeypatch.setattr(composer, "generate_meal_plans", broken)
        report = composer.generate_comprehensive_report(high_risk_genotype)
        assert reached == [True]
        assert isinstance(report, FallbackReport)

    def test_failure_is_logged(self, interpreter, high_risk_genotype, caplog):
        composer = ReportComposer(interpreter=interpreter, scorer=ExplodingScorer())
        with caplog.at_level("ERROR"):
            composer.generate_comprehensive_report(high_risk_genotype)
        assert "returning fallback report" in caplog.text
        assert "scorer exploded" in caplog.text


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestAllergens:
    def test_parse_allergens(self):
        assert parse_allergens("Walnuts, shellfish; Eggs") == ("walnuts", "shellfish", "eggs")
        assert parse_allergens("None") == ()
        assert parse_allergens("") == ()

    def test_filter_foods_substring_match(self):
        foods = (
            FoodItem("Walnuts", "omega-3", "2.5g/oz"),
            FoodItem("Eggs", "protein", "6g/egg"),
        )
        assert filter_foods(foods, ("walnut",)) == (foods[1],)
        assert filter_foods(foods, ()) == foods


class TestMealTiming:
    @pytest.mark.parametrize("genotype, goals, expected", [
        ({"FTO": "AA", "COMT": "Met/Met"}, "fasting", food_catalog.HIGH_PROTEIN_FREQUENT),
        ({"COMT": "Met/Met"}, "fasting", food_catalog.CIRCADIAN_OPTIMIZED),
        ({"MTHFR": "CT"}, "Intermittent Fasting", food_catalog.TIME_RESTRICTED),
        ({"MTHFR": "CT"}, "", food_catalog.STANDARD),
    ])
    def test_first_matching_rule_wins(self, interpreter, genotype, goals, expected):
        profile = interpreter.interpret(genotype)
        timing = ReportComposer.select_meal_timing(profile, HealthProfile(health_goals=goals))
        assert timing.key == expected


class TestPrioritizeActions:
    def test_only_critical_directives(self, composer, interpreter, scorer):
        profile = interpreter.interpret({"MC1R": "TT"})
        risk = scorer.assess_risks(profile)
        recommendations = composer.generate_nutrition_recommendations(profile, risk)
        assert ReportComposer.prioritize_actions(risk, recommendations) == ()
