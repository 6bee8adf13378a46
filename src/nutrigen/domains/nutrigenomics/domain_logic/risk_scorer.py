"""Weighted multi-factor risk scoring across four health categories.

Score per category = sum of genetic factor weights + age band + lifestyle
penalty, clamped to [0, 15]. Each category owns an independent weight table:
the same marker deliberately carries a different weight in different
categories. The weights are uncalibrated product constants and can be
replaced wholesale through ``calibration.load_risk_weights``.

All computation is deterministic. No LLM, no randomness.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from nutrigen.domains.nutrigenomics.domain_logic.catalog import (
    APOE_E4_CARRIERS,
    ACEVariant,
    APOEVariant,
    COMTVariant,
    CYP1A2Variant,
    FTOVariant,
    MarkerId,
    MTHFRVariant,
)
from nutrigen.domains.nutrigenomics.domain_logic.marker_interpreter import (
    MC1R_NON_REFERENCE,
    MTHFR_NON_REFERENCE,
)
from nutrigen.domains.nutrigenomics.domain_logic.models import (
    CATEGORY_ORDER,
    MAX_RISK_SCORE,
    ActionItem,
    ActivityLevel,
    CategoryDistribution,
    GeneticProfile,
    HealthProfile,
    MitigationStrategy,
    MonitoringTest,
    OverallRisk,
    Priority,
    RiskAssessment,
    RiskCategory,
    RiskCategoryScore,
    RiskFactor,
    RiskLevel,
    sort_by_priority,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Weight tables (one per category, intentionally not unified)
# ---------------------------------------------------------------------------

CARDIOVASCULAR_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "APOE_E4": 3.0,
    "MTHFR_variant": 2.0,
    "ACE_DD": 2.5,
})

METABOLIC_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "FTO_AA": 3.5,
    "APOE_E4": 1.5,
})

NEUROLOGICAL_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "APOE_E4": 4.0,
    "MTHFR_variant": 1.5,
    "COMT_MetMet": 1.2,
})

NUTRITIONAL_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "MTHFR_variant": 3.0,
    "MC1R_variant": 2.0,
    "CYP1A2_variant": 1.5,
})

RISK_WEIGHTS: Mapping[RiskCategory, Mapping[str, float]] = MappingProxyType({
    RiskCategory.CARDIOVASCULAR: CARDIOVASCULAR_WEIGHTS,
    RiskCategory.METABOLIC: METABOLIC_WEIGHTS,
    RiskCategory.NEUROLOGICAL: NEUROLOGICAL_WEIGHTS,
    RiskCategory.NUTRITIONAL: NUTRITIONAL_WEIGHTS,
})

# Applied on top of a weight for homozygous risk genotypes (APOE E4/E4, MTHFR TT).
HOMOZYGOUS_MULTIPLIER = 1.5


@dataclass(frozen=True)
class GeneticFactorRule:
    marker: MarkerId
    variants: tuple[Enum, ...]
    weight_key: str
    factor: str
    description: str
    multiplier: float = 1.0


_APOE_HETEROZYGOUS_E4 = tuple(v for v in APOE_E4_CARRIERS if v != APOEVariant.E4_E4)

FACTOR_RULES: Mapping[RiskCategory, tuple[GeneticFactorRule, ...]] = MappingProxyType({
    RiskCategory.CARDIOVASCULAR: (
        GeneticFactorRule(
            MarkerId.APOE, APOE_E4_CARRIERS, "APOE_E4", "APOE E4 variant",
            "Impaired lipid clearance and increased inflammation",
        ),
        GeneticFactorRule(
            MarkerId.MTHFR, MTHFR_NON_REFERENCE, "MTHFR_variant", "MTHFR variant",
            "Elevated homocysteine risk",
        ),
        GeneticFactorRule(
            MarkerId.ACE, (ACEVariant.DD,), "ACE_DD", "ACE DD variant",
            "Increased sodium sensitivity and hypertension risk",
        ),
    ),
    RiskCategory.METABOLIC: (
        GeneticFactorRule(
            MarkerId.FTO, (FTOVariant.AA,), "FTO_AA", "FTO AA variant",
            "Increased appetite and obesity risk",
        ),
        GeneticFactorRule(
            MarkerId.APOE, APOE_E4_CARRIERS, "APOE_E4", "APOE E4 variant",
            "Metabolic dysfunction risk",
        ),
    ),
    RiskCategory.NEUROLOGICAL: (
        GeneticFactorRule(
            MarkerId.APOE, (APOEVariant.E4_E4,), "APOE_E4", "APOE E4/E4 variant",
            "15x increased Alzheimer's risk", multiplier=HOMOZYGOUS_MULTIPLIER,
        ),
        GeneticFactorRule(
            MarkerId.APOE, _APOE_HETEROZYGOUS_E4, "APOE_E4", "APOE E4 variant",
            "3-4x increased Alzheimer's risk",
        ),
        GeneticFactorRule(
            MarkerId.MTHFR, MTHFR_NON_REFERENCE, "MTHFR_variant", "MTHFR variant",
            "Cognitive function and mood impact",
        ),
        GeneticFactorRule(
            MarkerId.COMT, (COMTVariant.MET_MET,), "COMT_MetMet", "COMT Met/Met variant",
            "Stress sensitivity and cognitive effects",
        ),
    ),
    RiskCategory.NUTRITIONAL: (
        GeneticFactorRule(
            MarkerId.MTHFR, (MTHFRVariant.TT,), "MTHFR_variant", "MTHFR TT variant",
            "Severe folate processing impairment", multiplier=HOMOZYGOUS_MULTIPLIER,
        ),
        GeneticFactorRule(
            MarkerId.MTHFR, (MTHFRVariant.CT,), "MTHFR_variant", "MTHFR CT variant",
            "Moderate folate processing impairment",
        ),
        GeneticFactorRule(
            MarkerId.MC1R, MC1R_NON_REFERENCE, "MC1R_variant", "MC1R variant",
            "Reduced vitamin D synthesis",
        ),
        GeneticFactorRule(
            MarkerId.CYP1A2, (CYP1A2Variant.CC,), "CYP1A2_variant", "CYP1A2 slow metabolizer",
            "Caffeine sensitivity and processing issues",
        ),
    ),
})


# ---------------------------------------------------------------------------
# Age and lifestyle
# ---------------------------------------------------------------------------

# (minimum age, points), checked top-down; first match wins.
AGE_BANDS: Mapping[RiskCategory, tuple[tuple[float, float], ...]] = MappingProxyType({
    RiskCategory.CARDIOVASCULAR: ((65, 2.0), (50, 1.5), (40, 1.0)),
    RiskCategory.METABOLIC: ((60, 1.5), (45, 1.0)),
    RiskCategory.NEUROLOGICAL: ((70, 3.0), (60, 2.0), (50, 1.0)),
    RiskCategory.NUTRITIONAL: (),
})

_AGE_DESCRIPTIONS = {
    RiskCategory.CARDIOVASCULAR: "Age-related cardiovascular risk",
    RiskCategory.METABOLIC: "Age-related metabolic changes",
    RiskCategory.NEUROLOGICAL: "Age-related neurological risk",
    RiskCategory.NUTRITIONAL: "Age-related nutritional changes",
}

ACTIVITY_PENALTIES: Mapping[ActivityLevel, float] = MappingProxyType({
    ActivityLevel.SEDENTARY: 1.5,
    ActivityLevel.LIGHT: 0.5,
})

CONDITION_PENALTIES: tuple[tuple[tuple[str, ...], float], ...] = (
    (("diabetes", "hypertension"), 1.0),
    (("obesity", "overweight"), 0.5),
)

# Categories whose score includes the lifestyle penalty.
LIFESTYLE_DESCRIPTIONS: Mapping[RiskCategory, str] = MappingProxyType({
    RiskCategory.CARDIOVASCULAR: "Modifiable risk factors",
    RiskCategory.METABOLIC: "Diet and activity level impact",
})


# ---------------------------------------------------------------------------
# Levels, strategies, monitoring
# ---------------------------------------------------------------------------

# Inclusive upper bound of each band; anything above the last is very_high.
RISK_BANDS: tuple[tuple[float, RiskLevel], ...] = (
    (3.0, RiskLevel.LOW),
    (6.0, RiskLevel.MODERATE),
    (10.0, RiskLevel.HIGH),
)


def _s(category: str, strategy: str, priority: Priority, evidence: str) -> MitigationStrategy:
    return MitigationStrategy(category=category, strategy=strategy, priority=priority, evidence=evidence)


MITIGATION_STRATEGIES: Mapping[RiskCategory, Mapping[RiskLevel, tuple[MitigationStrategy, ...]]] = MappingProxyType({
    RiskCategory.CARDIOVASCULAR: MappingProxyType({
        RiskLevel.HIGH: (
            _s("Diet", "Mediterranean diet with <7% saturated fat", Priority.CRITICAL,
               "Strong clinical evidence for APOE E4 carriers"),
            _s("Supplements", "Omega-3 fatty acids (2-3g EPA/DHA daily)", Priority.HIGH,
               "Reduces inflammation and supports lipid metabolism"),
            _s("Monitoring", "Lipid panel every 6 months, homocysteine annually", Priority.CRITICAL,
               "Early detection of metabolic changes"),
        ),
        RiskLevel.MODERATE: (
            _s("Diet", "DASH diet with moderate sodium restriction", Priority.HIGH,
               "Proven blood pressure and lipid benefits"),
            _s("Exercise", "150 minutes moderate cardio + 2 days strength training", Priority.HIGH,
               "Cardiovascular protection and metabolic benefits"),
        ),
        RiskLevel.LOW: (
            _s("Prevention", "Standard heart-healthy diet and regular exercise", Priority.MODERATE,
               "General population guidelines"),
        ),
    }),
    RiskCategory.METABOLIC: MappingProxyType({
        RiskLevel.HIGH: (
            _s("Diet", "High protein (25-30%), low glycemic index foods", Priority.CRITICAL,
               "Improves satiety and glucose control in FTO variants"),
            _s("Meal Timing", "Intermittent fasting or time-restricted eating", Priority.HIGH,
               "Metabolic benefits for obesity-prone individuals"),
            _s("Monitoring", "HbA1c and fasting glucose every 6 months", Priority.CRITICAL,
               "Early diabetes detection"),
        ),
        RiskLevel.MODERATE: (
            _s("Diet", "Portion control and balanced macronutrients", Priority.HIGH,
               "Weight management and metabolic health"),
            _s("Exercise", "Combination cardio and resistance training", Priority.HIGH,
               "Improves insulin sensitivity"),
        ),
    }),
    RiskCategory.NEUROLOGICAL: MappingProxyType({
        RiskLevel.HIGH: (
            _s("Diet", "MIND diet with emphasis on berries and leafy greens", Priority.CRITICAL,
               "Neuroprotective for APOE E4 carriers"),
            _s("Supplements", "Curcumin, omega-3, vitamin D optimization", Priority.HIGH,
               "Anti-inflammatory and neuroprotective effects"),
            _s("Lifestyle", "Cognitive training and stress management", Priority.HIGH,
               "Cognitive reserve and neuroplasticity"),
        ),
        RiskLevel.MODERATE: (
            _s("Diet", "Antioxidant-rich foods and omega-3 sources", Priority.MODERATE,
               "General brain health support"),
        ),
    }),
    RiskCategory.NUTRITIONAL: MappingProxyType({
        RiskLevel.HIGH: (
            _s("Supplements", "Methylfolate, B12, vitamin D based on genetic needs", Priority.CRITICAL,
               "Compensates for genetic processing deficiencies"),
            _s("Monitoring", "B vitamins, homocysteine, vitamin D levels annually", Priority.HIGH,
               "Prevents deficiency-related complications"),
        ),
        RiskLevel.MODERATE: (
            _s("Diet", "Nutrient-dense whole foods, varied diet", Priority.MODERATE,
               "Supports overall nutritional status"),
        ),
    }),
})

MONITORING_TESTS: Mapping[RiskCategory, tuple[MonitoringTest, ...]] = MappingProxyType({
    RiskCategory.CARDIOVASCULAR: (
        MonitoringTest("Lipid Panel", "Every 6 months", "Monitor cholesterol and triglycerides"),
        MonitoringTest("Homocysteine", "Annually", "MTHFR variant monitoring"),
    ),
    RiskCategory.METABOLIC: (
        MonitoringTest("HbA1c", "Every 6 months", "Diabetes risk monitoring"),
        MonitoringTest("Fasting Glucose", "Every 6 months", "Metabolic health tracking"),
    ),
    RiskCategory.NEUROLOGICAL: (
        MonitoringTest("Cognitive Assessment", "Annually", "Track cognitive function over time"),
        MonitoringTest("Omega-3 Index", "Annually", "Confirm omega-3 status for neuroprotection"),
    ),
    RiskCategory.NUTRITIONAL: (
        MonitoringTest("B Vitamin Panel", "Annually", "MTHFR and folate status"),
        MonitoringTest("Vitamin D", "Every 6 months", "MC1R variant monitoring"),
    ),
})


def clamp_score(score: float) -> float:
    """Clamp to [0, 15], rounded to 2 decimals so bands are stable."""
    if math.isnan(score):
        return 0.0
    return round(max(0.0, min(MAX_RISK_SCORE, score)), 2)


def categorize_risk(score: float) -> RiskLevel:
    """Map a score to its band: low [0,3], moderate (3,6], high (6,10], very_high (10,15]."""
    if math.isnan(score):
        raise ValueError("Cannot categorize a NaN risk score")
    for upper, level in RISK_BANDS:
        if score <= upper:
            return level
    return RiskLevel.VERY_HIGH


def get_mitigation_strategies(category: RiskCategory, level: RiskLevel) -> tuple[MitigationStrategy, ...]:
    """Table lookup; very_high reuses the high-level strategies."""
    table = MITIGATION_STRATEGIES.get(category, {})
    if level == RiskLevel.VERY_HIGH:
        level = RiskLevel.HIGH
    return table.get(level, ())


def age_factor(age: float | None, category: RiskCategory) -> float:
    if age is None or math.isnan(age):
        return 0.0
    for minimum, points in AGE_BANDS.get(category, ()):
        if age >= minimum:
            return points
    return 0.0


def lifestyle_factor(health_profile: HealthProfile) -> float:
    """Additive penalty from activity level and existing-condition keywords."""
    score = ACTIVITY_PENALTIES.get(health_profile.activity_level, 0.0)
    conditions = health_profile.existing_conditions.lower()
    if conditions:
        for keywords, penalty in CONDITION_PENALTIES:
            if any(keyword in conditions for keyword in keywords):
                score += penalty
    return score


# ---------------------------------------------------------------------------
# Scorer
# ---------------------------------------------------------------------------

class RiskScorer:
    """Scores a genetic profile plus health profile into a RiskAssessment.

    Usage::

        scorer = RiskScorer()
        assessment = scorer.assess_risks(genetic_profile, HealthProfile(age=52))
    """

    def __init__(self, weights: Mapping[RiskCategory, Mapping[str, float]] = RISK_WEIGHTS) -> None:
        self._weights = weights

    def assess_risks(
        self,
        profile: GeneticProfile,
        health_profile: HealthProfile | None = None,
    ) -> RiskAssessment:
        health_profile = health_profile or HealthProfile()

        categories = MappingProxyType({
            category: self.score_category(category, profile, health_profile)
            for category in CATEGORY_ORDER
        })
        overall = self.calculate_overall(categories)

        logger.debug(
            "Risk assessment: primary=%s max=%.2f level=%s",
            overall.primary_risk_category.value,
            overall.max_risk_score,
            overall.overall_level.value,
        )

        return RiskAssessment(
            categories=categories,
            overall=overall,
            prioritized_actions=self.generate_action_plan(categories),
            monitoring_plan=self.generate_monitoring_plan(categories),
        )

    def score_category(
        self,
        category: RiskCategory,
        profile: GeneticProfile,
        health_profile: HealthProfile,
    ) -> RiskCategoryScore:
        weights = self._weights[category]
        score = 0.0
        factors: list[RiskFactor] = []

        for rule in FACTOR_RULES[category]:
            if not profile.has_variant(rule.marker, *rule.variants):
                continue
            contribution = weights[rule.weight_key] * rule.multiplier
            score += contribution
            factors.append(RiskFactor(rule.factor, contribution, rule.description))

        age_points = age_factor(health_profile.age, category)
        if age_points > 0:
            score += age_points
            factors.append(RiskFactor(
                "Age",
                age_points,
                f"{_AGE_DESCRIPTIONS[category]} ({health_profile.age:g} years)",
            ))

        if category in LIFESTYLE_DESCRIPTIONS:
            lifestyle_points = lifestyle_factor(health_profile)
            if lifestyle_points > 0:
                score += lifestyle_points
                factors.append(RiskFactor("Lifestyle", lifestyle_points, LIFESTYLE_DESCRIPTIONS[category]))

        score = clamp_score(score)
        level = categorize_risk(score)
        return RiskCategoryScore(
            category=category,
            score=score,
            level=level,
            factors=tuple(factors),
            mitigation_strategies=get_mitigation_strategies(category, level),
        )

    @staticmethod
    def calculate_overall(categories: Mapping[RiskCategory, RiskCategoryScore]) -> OverallRisk:
        scores = [categories[c].score for c in CATEGORY_ORDER]
        max_score = max(scores)
        # max() returns the first maximal element, i.e. canonical order on ties.
        primary = max(CATEGORY_ORDER, key=lambda c: categories[c].score)
        distribution = MappingProxyType({
            c: CategoryDistribution(
                level=categories[c].level,
                score=categories[c].score,
                percentage=round(categories[c].score / MAX_RISK_SCORE * 100),
            )
            for c in CATEGORY_ORDER
        })
        return OverallRisk(
            max_risk_score=max_score,
            average_risk_score=round(sum(scores) / len(scores), 4),
            primary_risk_category=primary,
            overall_level=categorize_risk(max_score),
            risk_distribution=distribution,
        )

    @staticmethod
    def generate_action_plan(categories: Mapping[RiskCategory, RiskCategoryScore]) -> tuple[ActionItem, ...]:
        """Critical strategies of elevated categories, highest priority first."""
        actions = [
            ActionItem(
                action=strategy.strategy,
                priority=strategy.priority,
                timeline="immediate",
                category=category,
                evidence=strategy.evidence,
            )
            for category in CATEGORY_ORDER
            if categories[category].level.is_elevated
            for strategy in categories[category].mitigation_strategies
            if strategy.priority == Priority.CRITICAL
        ]
        return sort_by_priority(actions)

    @staticmethod
    def generate_monitoring_plan(categories: Mapping[RiskCategory, RiskCategoryScore]) -> tuple[MonitoringTest, ...]:
        return tuple(
            test
            for category in CATEGORY_ORDER
            if categories[category].level.is_elevated
            for test in MONITORING_TESTS.get(category, ())
        )
