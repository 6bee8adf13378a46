"""Tests for the weighted multi-factor risk scorer."""

from __future__ import annotations

import itertools
import math

import pytest

from nutrigen.domains.nutrigenomics.domain_logic.calibration import merge_risk_weights
from nutrigen.domains.nutrigenomics.domain_logic.models import (
    MAX_RISK_SCORE,
    ActivityLevel,
    HealthProfile,
    Priority,
    RiskCategory,
    RiskLevel,
    sort_by_priority,
)
from nutrigen.domains.nutrigenomics.domain_logic.risk_scorer import (
    MITIGATION_STRATEGIES,
    RiskScorer,
    age_factor,
    categorize_risk,
    clamp_score,
    get_mitigation_strategies,
    lifestyle_factor,
)

CV = RiskCategory.CARDIOVASCULAR
MET = RiskCategory.METABOLIC
NEURO = RiskCategory.NEUROLOGICAL
NUTR = RiskCategory.NUTRITIONAL


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestClampAndCategorize:
    @pytest.mark.parametrize("raw, expected", [
        (-5.0, 0.0),
        (0.0, 0.0),
        (7.4567, 7.46),
        (15.0, 15.0),
        (42.0, MAX_RISK_SCORE),
        (float("nan"), 0.0),
    ])
    def test_clamp(self, raw, expected):
        assert clamp_score(raw) == expected

    @pytest.mark.parametrize("score, level", [
        (0.0, RiskLevel.LOW),
        (3.0, RiskLevel.LOW),
        (3.01, RiskLevel.MODERATE),
        (6.0, RiskLevel.MODERATE),
        (6.01, RiskLevel.HIGH),
        (10.0, RiskLevel.HIGH),
        (10.01, RiskLevel.VERY_HIGH),
        (15.0, RiskLevel.VERY_HIGH),
    ])
    def test_band_boundaries(self, score, level):
        assert categorize_risk(score) == level

    def test_bands_are_exhaustive_and_monotonic(self):
        order = list(RiskLevel)
        previous = 0
        for step in range(0, 1501):
            level = categorize_risk(step / 100)
            rank = order.index(level)
            assert rank >= previous
            previous = rank

    def test_nan_rejected(self):
        with pytest.raises(ValueError):
            categorize_risk(math.nan)


class TestMitigationLookup:
    def test_very_high_reuses_high(self):
        for category in RiskCategory:
            assert get_mitigation_strategies(category, RiskLevel.VERY_HIGH) == \
                get_mitigation_strategies(category, RiskLevel.HIGH)

    def test_missing_level_is_empty(self):
        assert get_mitigation_strategies(MET, RiskLevel.LOW) == ()
        assert RiskLevel.LOW not in MITIGATION_STRATEGIES[NEURO]

    def test_cardiovascular_low_has_prevention(self):
        strategies = get_mitigation_strategies(CV, RiskLevel.LOW)
        assert [s.category for s in strategies] == ["Prevention"]


class TestAgeAndLifestyle:
    @pytest.mark.parametrize("age, category, points", [
        (None, CV, 0.0),
        (39, CV, 0.0),
        (40, CV, 1.0),
        (50, CV, 1.5),
        (65, CV, 2.0),
        (44, MET, 0.0),
        (45, MET, 1.0),
        (60, MET, 1.5),
        (49, NEURO, 0.0),
        (69, NEURO, 2.0),
        (70, NEURO, 3.0),
        (90, NUTR, 0.0),
    ])
    def test_age_bands(self, age, category, points):
        assert age_factor(age, category) == points

    def test_activity_penalties(self):
        assert lifestyle_factor(HealthProfile(activity_level=ActivityLevel.SEDENTARY)) == 1.5
        assert lifestyle_factor(HealthProfile(activity_level=ActivityLevel.LIGHT)) == 0.5
        assert lifestyle_factor(HealthProfile(activity_level=ActivityLevel.VERY)) == 0.0
        assert lifestyle_factor(HealthProfile()) == 0.0

    def test_condition_keywords_case_insensitive(self):
        profile = HealthProfile(existing_conditions="Type 2 DIABETES, Obesity")
        assert lifestyle_factor(profile) == 1.5

    def test_each_keyword_group_counts_once(self):
        profile = HealthProfile(existing_conditions="diabetes and hypertension")
        assert lifestyle_factor(profile) == 1.0


# ---------------------------------------------------------------------------
# assess_risks
# ---------------------------------------------------------------------------

class TestAssessRisks:
    def test_high_risk_sample_scores(self, interpreter, scorer, high_risk_genotype):
        risk = scorer.assess_risks(interpreter.interpret(high_risk_genotype))
        scores = {c: risk.categories[c].score for c in RiskCategory}
        assert scores == {CV: 7.5, MET: 5.0, NEURO: 8.7, NUTR: 6.5}
        assert risk.categories[CV].level == RiskLevel.HIGH
        assert risk.categories[MET].level == RiskLevel.MODERATE
        assert risk.categories[NEURO].level == RiskLevel.HIGH
        assert risk.categories[NUTR].level == RiskLevel.HIGH

    def test_overall_max_wins(self, interpreter, scorer, high_risk_genotype):
        overall = scorer.assess_risks(interpreter.interpret(high_risk_genotype)).overall
        assert overall.primary_risk_category == NEURO
        assert overall.max_risk_score == 8.7
        assert overall.overall_level == RiskLevel.HIGH
        assert overall.average_risk_score == pytest.approx(6.925)
        assert overall.risk_distribution[NEURO].percentage == 58
        assert overall.risk_distribution[MET].percentage == 33

    def test_homozygous_multiplier_recorded_in_factors(self, interpreter, scorer):
        risk = scorer.assess_risks(interpreter.interpret({"APOE": "E4/E4"}))
        factor = risk.categories[NEURO].factors[0]
        assert factor.factor == "APOE E4/E4 variant"
        assert factor.contribution == 6.0

    def test_reference_sample_is_all_low(self, interpreter, scorer, reference_genotype):
        risk = scorer.assess_risks(
            interpreter.interpret(reference_genotype),
            HealthProfile(age=34, activity_level=ActivityLevel.MODERATE),
        )
        assert all(c.score == 0.0 for c in risk.categories.values())
        assert risk.overall.overall_level == RiskLevel.LOW
        # Ties resolve to the first category in canonical order.
        assert risk.overall.primary_risk_category == CV
        assert risk.prioritized_actions == ()
        assert risk.monitoring_plan == ()

    def test_age_and_lifestyle_contribute(self, interpreter, scorer, partial_genotype, partial_health_profile):
        risk = scorer.assess_risks(
            interpreter.interpret(partial_genotype),
            HealthProfile.from_dict(partial_health_profile),
        )
        assert risk.categories[CV].score == 9.0
        assert risk.categories[MET].score == 5.0
        assert risk.categories[NEURO].score == 6.5
        assert risk.categories[NUTR].score == 3.0
        assert risk.overall.primary_risk_category == CV
        factor_names = [f.factor for f in risk.categories[CV].factors]
        assert factor_names == ["APOE E4 variant", "MTHFR variant", "Age", "Lifestyle"]

    def test_lifestyle_only_affects_cardiometabolic(self, interpreter, scorer):
        risk = scorer.assess_risks(
            interpreter.interpret({"COMT": "Val/Val"}),
            HealthProfile(activity_level=ActivityLevel.SEDENTARY, existing_conditions="diabetes"),
        )
        assert risk.categories[CV].score == 2.5
        assert risk.categories[MET].score == 2.5
        assert risk.categories[NEURO].score == 0.0
        assert risk.categories[NUTR].score == 0.0

    def test_scores_stay_in_range(self, interpreter, scorer):
        worst = HealthProfile(
            age=90,
            activity_level=ActivityLevel.SEDENTARY,
            existing_conditions="diabetes, obesity",
        )
        for apoe, mthfr, ace, fto in itertools.product(
            ("E3/E3", "E3/E4", "E4/E4"), ("CC", "CT", "TT"), ("II", "DD"), ("TT", "AA"),
        ):
            profile = interpreter.interpret({"APOE": apoe, "MTHFR": mthfr, "ACE": ace, "FTO": fto})
            for health in (None, worst):
                risk = scorer.assess_risks(profile, health)
                for category_score in risk.categories.values():
                    assert 0.0 <= category_score.score <= MAX_RISK_SCORE
                    assert category_score.level == categorize_risk(category_score.score)

    def test_inflated_weights_clamp_to_very_high(self, interpreter):
        weights = merge_risk_weights({"cardiovascular": {"APOE_E4": 100}})
        risk = RiskScorer(weights).assess_risks(interpreter.interpret({"APOE": "E4/E4"}))
        cv = risk.categories[CV]
        assert cv.score == MAX_RISK_SCORE
        assert cv.level == RiskLevel.VERY_HIGH
        assert cv.mitigation_strategies == get_mitigation_strategies(CV, RiskLevel.HIGH)


class TestPlans:
    def test_action_plan_only_critical_from_elevated(self, interpreter, scorer, high_risk_genotype):
        risk = scorer.assess_risks(interpreter.interpret(high_risk_genotype))
        actions = risk.prioritized_actions
        assert all(a.priority == Priority.CRITICAL for a in actions)
        assert [a.category for a in actions] == [CV, CV, NEURO, NUTR]
        assert MET not in {a.category for a in actions}

    def test_monitoring_plan_for_elevated_categories(self, interpreter, scorer, high_risk_genotype):
        risk = scorer.assess_risks(interpreter.interpret(high_risk_genotype))
        tests = [t.test for t in risk.monitoring_plan]
        assert tests == [
            "Lipid Panel", "Homocysteine",
            "Cognitive Assessment", "Omega-3 Index",
            "B Vitamin Panel", "Vitamin D",
        ]


class TestSortByPriority:
    def test_descending_and_stable(self):
        class Item:
            def __init__(self, name, priority):
                self.name = name
                self.priority = priority

        items = [
            Item("a", Priority.MODERATE),
            Item("b", Priority.CRITICAL),
            Item("c", Priority.MODERATE),
            Item("d", Priority.LOW),
            Item("e", Priority.CRITICAL),
        ]
        assert [i.name for i in sort_by_priority(items)] == ["b", "e", "a", "c", "d"]

    def test_priority_ordering(self):
        assert Priority.CRITICAL > Priority.HIGH > Priority.MODERATE > Priority.LOW
        assert max(Priority) == Priority.CRITICAL
