"""Report composition: genotype + health profile -> NutritionReport.

Orchestrates MarkerInterpreter and RiskScorer, then derives the full-fidelity
nutrition recommendations, meal plans, supplement protocol, monitoring plan,
action priorities and educational content.

``generate_comprehensive_report`` is the single failure boundary of the
pipeline: every exception below it is converted into a ``FallbackReport``.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable

from nutrigen.domains.nutrigenomics.domain_logic import food_catalog
from nutrigen.domains.nutrigenomics.domain_logic.catalog import (
    APOE_E4_CARRIERS,
    ACEVariant,
    COMTVariant,
    CYP1A2Variant,
    FTOVariant,
    MarkerId,
    MC1RVariant,
    MTHFRVariant,
)
from nutrigen.domains.nutrigenomics.domain_logic.marker_interpreter import (
    MC1R_NON_REFERENCE,
    MTHFR_NON_REFERENCE,
    MarkerInterpreter,
)
from nutrigen.domains.nutrigenomics.domain_logic.models import (
    ActionItem,
    Avoidance,
    BiomarkerTarget,
    DayPlan,
    EducationalContent,
    FallbackRecommendations,
    FallbackReport,
    FoodCategory,
    FoodItem,
    GeneticProfile,
    HealthProfile,
    MarkerAnalysis,
    MarkerInsight,
    Meal,
    MealPlans,
    MealTemplate,
    MealTimingTemplate,
    NutrientDirective,
    NutritionalMonitoringPlan,
    NutritionRecommendations,
    NutritionReport,
    Priority,
    RiskAssessment,
    RiskCategory,
    SpecialConsideration,
    SupplementProtocol,
    SupplementRecommendation,
    sort_by_priority,
)
from nutrigen.domains.nutrigenomics.domain_logic.risk_scorer import RiskScorer

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Using general recommendations due to analysis limitations"
FALLBACK_GENERAL = (
    "Follow a balanced, whole-foods based diet with adequate protein, "
    "healthy fats, and complex carbohydrates."
)
FALLBACK_MONITORING = "Consider basic health screening annually"

EDUCATIONAL_OVERVIEW = (
    "Your genetic profile influences how your body processes nutrients "
    "and responds to different foods."
)

_ALLERGY_SPLIT = re.compile(r"[,;/\n]+")


def parse_allergens(allergies: str) -> tuple[str, ...]:
    """Split free-text allergies into lowercase keywords."""
    return tuple(
        token.strip().lower()
        for token in _ALLERGY_SPLIT.split(allergies or "")
        if token.strip() and token.strip().lower() not in ("none", "n/a", "no")
    )


def filter_foods(foods: tuple[FoodItem, ...], allergens: tuple[str, ...]) -> tuple[FoodItem, ...]:
    if not allergens:
        return foods
    return tuple(f for f in foods if not any(a in f.food.lower() for a in allergens))


def _rotate(pool: tuple[str, ...], start: int, count: int) -> tuple[str, ...]:
    return tuple(pool[(start + i) % len(pool)] for i in range(count))


class _RecommendationDraft:
    """Mutable working state for one ``generate_nutrition_recommendations`` call."""

    def __init__(self, allergens: tuple[str, ...]) -> None:
        self.allergens = allergens
        self.macronutrients: dict[str, NutrientDirective] = {}
        self.micronutrients: dict[str, NutrientDirective] = {}
        self.food_categories: dict[str, FoodCategory] = {}
        self.avoidance_list: dict[str, Avoidance] = {}
        self.special_considerations: list[SpecialConsideration] = []

    def foods(self, group: str) -> tuple[FoodItem, ...]:
        return filter_foods(food_catalog.GENETIC_FOOD_DATABASE[group], self.allergens)

    def freeze(self) -> NutritionRecommendations:
        return NutritionRecommendations(
            macronutrients=MappingProxyType(dict(self.macronutrients)),
            micronutrients=MappingProxyType(dict(self.micronutrients)),
            food_categories=MappingProxyType(dict(self.food_categories)),
            avoidance_list=MappingProxyType(dict(self.avoidance_list)),
            special_considerations=tuple(self.special_considerations),
        )


# ---------------------------------------------------------------------------
# Per-marker recommendation rules
# ---------------------------------------------------------------------------

def _mthfr_rules(draft: _RecommendationDraft, analysis: MarkerAnalysis) -> None:
    if analysis.variant not in MTHFR_NON_REFERENCE:
        return
    draft.micronutrients["folate"] = NutrientDirective(
        nutrient="folate",
        target="Increased (800-1000mcg daily)",
        rationale=f"{analysis.phenotype} - requires bioactive folate forms",
        priority=Priority.CRITICAL,
        form="Methylfolate (5-MTHF)",
        food_sources=draft.foods(food_catalog.HIGH_FOLATE),
        marker=MarkerId.MTHFR,
        risk_category=RiskCategory.NUTRITIONAL,
    )
    draft.micronutrients["b12"] = NutrientDirective(
        nutrient="b12",
        target="Increased (1000mcg daily)",
        rationale="Works synergistically with methylfolate",
        priority=Priority.HIGH,
        form="Methylcobalamin",
        marker=MarkerId.MTHFR,
        risk_category=RiskCategory.NUTRITIONAL,
    )
    draft.avoidance_list["folic_acid"] = Avoidance(
        item="Synthetic folic acid",
        reason="May interfere with methylfolate utilization",
        alternatives="Choose methylfolate supplements instead",
    )
    draft.special_considerations.append(SpecialConsideration(
        consideration="Homocysteine monitoring",
        recommendation="Check homocysteine levels",
        rationale="Tracks methylation status",
        frequency="Every 6-12 months",
        target="<10 μmol/L",
    ))


def _apoe_rules(draft: _RecommendationDraft, analysis: MarkerAnalysis) -> None:
    if analysis.variant not in APOE_E4_CARRIERS:
        return
    draft.macronutrients["saturated_fat"] = NutrientDirective(
        nutrient="saturated_fat",
        target="<7% of total calories",
        rationale="Impaired lipid clearance in APOE E4 carriers",
        priority=Priority.CRITICAL,
        direction="restrict",
        marker=MarkerId.APOE,
        risk_category=RiskCategory.CARDIOVASCULAR,
    )
    draft.macronutrients["omega3"] = NutrientDirective(
        nutrient="omega3",
        target="High (2-3g EPA/DHA daily)",
        rationale="Neuroprotection and lipid management",
        priority=Priority.CRITICAL,
        food_sources=draft.foods(food_catalog.OMEGA3_RICH),
        marker=MarkerId.APOE,
        risk_category=RiskCategory.NEUROLOGICAL,
    )
    draft.food_categories["neuroprotective"] = FoodCategory(
        name="neuroprotective",
        foods=draft.foods(food_catalog.ANTIOXIDANT_RICH),
        frequency="Daily",
        rationale="Cognitive protection for APOE E4 carriers",
    )
    draft.avoidance_list["trans_fats"] = Avoidance(
        item="Trans fats",
        reason="Particularly harmful for APOE E4 carriers",
        alternatives="Use olive oil, avocado oil instead",
    )


def _fto_rules(draft: _RecommendationDraft, analysis: MarkerAnalysis) -> None:
    if analysis.variant != FTOVariant.AA:
        return
    draft.macronutrients["protein"] = NutrientDirective(
        nutrient="protein",
        target="25-30% of total calories",
        rationale="Enhanced satiety for appetite control",
        priority=Priority.HIGH,
        timing="At each meal",
        food_sources=draft.foods(food_catalog.HIGH_PROTEIN),
        marker=MarkerId.FTO,
        risk_category=RiskCategory.METABOLIC,
    )
    draft.macronutrients["fiber"] = NutrientDirective(
        nutrient="fiber",
        target="35-40g daily",
        rationale="Improved satiety and glucose control",
        priority=Priority.HIGH,
        marker=MarkerId.FTO,
        risk_category=RiskCategory.METABOLIC,
    )
    draft.special_considerations.append(SpecialConsideration(
        consideration="Meal frequency",
        recommendation="5-6 smaller meals",
        rationale="Better appetite and blood sugar control",
    ))


def _ace_rules(draft: _RecommendationDraft, analysis: MarkerAnalysis) -> None:
    if analysis.variant != ACEVariant.DD:
        return
    draft.micronutrients["sodium"] = NutrientDirective(
        nutrient="sodium",
        target="<2000mg daily",
        rationale="Increased sodium sensitivity",
        priority=Priority.HIGH,
        direction="restrict",
        marker=MarkerId.ACE,
        risk_category=RiskCategory.CARDIOVASCULAR,
    )
    draft.micronutrients["potassium"] = NutrientDirective(
        nutrient="potassium",
        target="3500-4700mg daily",
        rationale="Blood pressure regulation",
        priority=Priority.HIGH,
        food_sources=draft.foods(food_catalog.LOW_SODIUM),
        marker=MarkerId.ACE,
        risk_category=RiskCategory.CARDIOVASCULAR,
    )
    draft.food_categories["dash_foods"] = FoodCategory(
        name="dash_foods",
        foods=draft.foods(food_catalog.LOW_SODIUM),
        frequency="Daily",
        rationale="DASH diet emphasis, proven benefits for ACE DD variant",
    )


def _mc1r_rules(draft: _RecommendationDraft, analysis: MarkerAnalysis) -> None:
    if analysis.variant not in MC1R_NON_REFERENCE:
        return
    draft.micronutrients["vitamin_d"] = NutrientDirective(
        nutrient="vitamin_d",
        target="3000-4000 IU daily" if analysis.variant == MC1RVariant.TT else "2000-3000 IU daily",
        rationale="Reduced synthesis capacity",
        priority=Priority.HIGH,
        form="Vitamin D3 (cholecalciferol)",
        marker=MarkerId.MC1R,
        risk_category=RiskCategory.NUTRITIONAL,
    )
    draft.micronutrients["calcium"] = NutrientDirective(
        nutrient="calcium",
        target="1200mg daily",
        rationale="Support bone health with vitamin D",
        priority=Priority.MODERATE,
        marker=MarkerId.MC1R,
        risk_category=RiskCategory.NUTRITIONAL,
    )


def _cyp1a2_rules(draft: _RecommendationDraft, analysis: MarkerAnalysis) -> None:
    if analysis.variant != CYP1A2Variant.CC:
        return
    draft.avoidance_list["high_caffeine"] = Avoidance(
        item="High-caffeine drinks",
        reason="Slow caffeine metabolism",
        alternatives="Herbal teas, decaf options",
        limit="<200mg daily",
    )
    draft.special_considerations.append(SpecialConsideration(
        consideration="Caffeine timing",
        recommendation="No caffeine after 12 PM",
        rationale="Prevent sleep disruption",
    ))


def _comt_rules(draft: _RecommendationDraft, analysis: MarkerAnalysis) -> None:
    if analysis.variant != COMTVariant.MET_MET:
        return
    draft.micronutrients["magnesium"] = NutrientDirective(
        nutrient="magnesium",
        target="400-600mg daily",
        rationale="Stress response support",
        priority=Priority.MODERATE,
        marker=MarkerId.COMT,
        risk_category=RiskCategory.NEUROLOGICAL,
    )
    foods = ("Green tea (L-theanine)", "Dark chocolate", "Chamomile tea")
    draft.special_considerations.append(SpecialConsideration(
        consideration="Stress-reducing foods",
        recommendation="Include calming foods during stressful periods",
        rationale="Support stress-sensitive phenotype",
        foods=tuple(f for f in foods if not any(a in f.lower() for a in draft.allergens)),
    ))


MARKER_RECOMMENDATION_RULES: dict[Enum, Callable[[_RecommendationDraft, MarkerAnalysis], None]] = {
    MarkerId.MTHFR: _mthfr_rules,
    MarkerId.APOE: _apoe_rules,
    MarkerId.FTO: _fto_rules,
    MarkerId.ACE: _ace_rules,
    MarkerId.MC1R: _mc1r_rules,
    MarkerId.CYP1A2: _cyp1a2_rules,
    MarkerId.COMT: _comt_rules,
}


def _apply_risk_overrides(draft: _RecommendationDraft, risk: RiskAssessment) -> None:
    if risk.categories[RiskCategory.CARDIOVASCULAR].level.is_elevated:
        existing = draft.macronutrients.get("fiber")
        draft.macronutrients["fiber"] = NutrientDirective(
            nutrient="fiber",
            target="40g daily",
            rationale="Cholesterol management",
            priority=existing.priority if existing else Priority.HIGH,
            marker=existing.marker if existing else None,
            risk_category=RiskCategory.CARDIOVASCULAR,
        )
    if risk.categories[RiskCategory.METABOLIC].level.is_elevated:
        draft.macronutrients["carbohydrates"] = NutrientDirective(
            nutrient="carbohydrates",
            target="Low glycemic index",
            rationale="Glucose control",
            priority=Priority.HIGH,
            direction="adjust",
            timing="Earlier in day",
            risk_category=RiskCategory.METABOLIC,
        )


# ---------------------------------------------------------------------------
# Composer
# ---------------------------------------------------------------------------

class ReportComposer:
    """Builds comprehensive nutrition reports.

    Usage::

        composer = ReportComposer()
        report = composer.generate_comprehensive_report(
            {"MTHFR": "TT", "APOE": "E3/E4"}, {"age": 45}
        )
    """

    def __init__(
        self,
        interpreter: MarkerInterpreter | None = None,
        scorer: RiskScorer | None = None,
    ) -> None:
        self._interpreter = interpreter or MarkerInterpreter()
        self._scorer = scorer or RiskScorer()

    @property
    def interpreter(self) -> MarkerInterpreter:
        return self._interpreter

    @property
    def scorer(self) -> RiskScorer:
        return self._scorer

    def generate_comprehensive_report(
        self, genotype: Any, health_profile: Any = None
    ) -> NutritionReport | FallbackReport:
        """Run the whole pipeline. Never raises: failures yield a FallbackReport."""
        try:
            validation = self._interpreter.validate(genotype)
            if not validation.is_valid:
                logger.warning("Genotype rejected: %s", "; ".join(validation.errors))
                return self.generate_fallback_report(health_profile)

            health = HealthProfile.from_dict(health_profile)
            profile = self._interpreter.interpret(genotype)
            risk = self._scorer.assess_risks(profile, health)
            recommendations = self.generate_nutrition_recommendations(profile, risk, health)

            report = NutritionReport(
                report_id=self._generate_report_id(),
                timestamp=_now_iso(),
                genetic_profile=profile,
                risk_profile=risk,
                nutrition_recommendations=recommendations,
                meal_plans=self.generate_meal_plans(profile, recommendations, health),
                supplement_protocol=self.generate_supplement_protocol(profile, risk, health),
                monitoring_plan=self.generate_nutritional_monitoring_plan(profile, risk),
                action_priorities=self.prioritize_actions(risk, recommendations),
                educational_content=self.generate_educational_content(profile),
            )
        except Exception:
            logger.exception("Report generation failed, returning fallback report")
            return self.generate_fallback_report(health_profile)

        logger.info(
            "Generated report %s: %d markers, primary=%s (%s)",
            report.report_id,
            len(profile.markers),
            risk.overall.primary_risk_category.value,
            risk.overall.overall_level.value,
        )
        return report

    def generate_nutrition_recommendations(
        self,
        profile: GeneticProfile,
        risk: RiskAssessment,
        health_profile: HealthProfile | None = None,
    ) -> NutritionRecommendations:
        health_profile = health_profile or HealthProfile()
        draft = _RecommendationDraft(parse_allergens(health_profile.allergies))

        for marker, analysis in profile.markers.items():
            rule = MARKER_RECOMMENDATION_RULES.get(marker)
            if rule is not None:
                rule(draft, analysis)

        _apply_risk_overrides(draft, risk)
        return draft.freeze()

    @staticmethod
    def select_meal_timing(
        profile: GeneticProfile, health_profile: HealthProfile | None = None
    ) -> MealTimingTemplate:
        """First matching rule wins; the standard template otherwise."""
        templates = food_catalog.MEAL_TIMING_TEMPLATES
        if profile.has_variant(MarkerId.FTO, FTOVariant.AA):
            return templates[food_catalog.HIGH_PROTEIN_FREQUENT]
        if profile.has_variant(MarkerId.COMT, COMTVariant.MET_MET):
            return templates[food_catalog.CIRCADIAN_OPTIMIZED]
        if health_profile is not None and "fasting" in health_profile.health_goals.lower():
            return templates[food_catalog.TIME_RESTRICTED]
        return templates[food_catalog.STANDARD]

    def generate_meal_plans(
        self,
        profile: GeneticProfile,
        recommendations: NutritionRecommendations,
        health_profile: HealthProfile | None = None,
    ) -> MealPlans:
        health_profile = health_profile or HealthProfile()
        allergens = parse_allergens(health_profile.allergies)

        names: list[str] = []
        sources = [d.food_sources for d in recommendations.all_directives()]
        sources += [c.foods for c in recommendations.food_categories.values()]
        for foods in sources:
            for item in foods:
                if item.food not in names:
                    names.append(item.food)
        for staple in food_catalog.BALANCED_STAPLES:
            if staple not in names and not any(a in staple.lower() for a in allergens):
                names.append(staple)
        pool = tuple(names) or food_catalog.BALANCED_STAPLES

        focus = {
            d.nutrient for d in recommendations.all_directives()
            if d.priority >= Priority.HIGH and d.direction != "restrict"
        }
        focus_text = ", ".join(sorted(focus)) if focus else "balanced nutrition"

        weekly = []
        for day in range(1, 8):
            base = (day - 1) * 5
            weekly.append(DayPlan(
                day=day,
                breakfast=Meal(f"Breakfast day {day}", _rotate(pool, base, 2), focus_text),
                lunch=Meal(f"Lunch day {day}", _rotate(pool, base + 2, 3), focus_text),
                dinner=Meal(f"Dinner day {day}", _rotate(pool, base + 5, 3), focus_text),
                snacks=(
                    Meal("Morning snack", _rotate(pool, base + 8, 1), "satiety"),
                    Meal("Afternoon snack", _rotate(pool, base + 9, 1), "satiety"),
                ),
            ))

        extra_guidelines = tuple(
            f"Limit {d.nutrient.replace('_', ' ')} ({d.target})"
            for d in recommendations.all_directives()
            if d.direction == "restrict"
        )
        templates = MappingProxyType({
            meal_type: MealTemplate(
                meal_type=meal_type,
                guidelines=guidelines + extra_guidelines,
                examples=_rotate(pool, index * 3, 3),
            )
            for index, (meal_type, guidelines) in enumerate(food_catalog.MEAL_GUIDELINES.items())
        })

        return MealPlans(
            timing=self.select_meal_timing(profile, health_profile),
            templates=templates,
            weekly=tuple(weekly),
        )

    def generate_supplement_protocol(
        self,
        profile: GeneticProfile,
        risk: RiskAssessment,
        health_profile: HealthProfile | None = None,
    ) -> SupplementProtocol:
        core: list[SupplementRecommendation] = []
        conditional: list[SupplementRecommendation] = []

        mthfr = profile.variant_of(MarkerId.MTHFR)
        if mthfr in MTHFR_NON_REFERENCE:
            homozygous = mthfr == MTHFRVariant.TT
            core.append(SupplementRecommendation(
                supplement="Methylfolate (5-MTHF)",
                dosage="800-1000mcg" if homozygous else "400-600mcg",
                timing="With breakfast",
                rationale="Compensate for reduced folate processing",
                priority=Priority.CRITICAL if homozygous else Priority.HIGH,
                marker=MarkerId.MTHFR,
            ))
            core.append(SupplementRecommendation(
                supplement="Methylcobalamin (B12)",
                dosage="1000mcg",
                timing="With methylfolate",
                rationale="Works synergistically with methylfolate",
                priority=Priority.HIGH,
                marker=MarkerId.MTHFR,
            ))

        mc1r = profile.variant_of(MarkerId.MC1R)
        if mc1r in MC1R_NON_REFERENCE:
            core.append(SupplementRecommendation(
                supplement="Vitamin D3",
                dosage="3000-4000 IU" if mc1r == MC1RVariant.TT else "2000-3000 IU",
                timing="With fat-containing meal",
                rationale="Reduced synthesis capacity",
                priority=Priority.HIGH,
                marker=MarkerId.MC1R,
            ))

        if risk.categories[RiskCategory.CARDIOVASCULAR].level.is_elevated:
            core.append(SupplementRecommendation(
                supplement="Omega-3 (EPA/DHA)",
                dosage="2-3g daily",
                timing="With meals",
                rationale="Cardiovascular protection",
                priority=Priority.HIGH,
            ))

        if profile.has_variant(MarkerId.COMT, COMTVariant.MET_MET):
            conditional.append(SupplementRecommendation(
                supplement="Magnesium glycinate",
                dosage="400mg",
                timing="Evening",
                rationale="Stress response support",
                priority=Priority.MODERATE,
                marker=MarkerId.COMT,
            ))

        if any(MarkerId.CYP1A2 in i.markers and MarkerId.COMT in i.markers for i in profile.interactions):
            conditional.append(SupplementRecommendation(
                supplement="L-theanine",
                dosage="100-200mg",
                timing="With caffeinated drinks",
                rationale="Offsets high caffeine sensitivity",
                priority=Priority.MODERATE,
            ))

        notes = ["Discuss any new supplement with a healthcare provider before starting"]
        if health_profile is not None and health_profile.medications.strip():
            notes.append("Review supplement interactions with your current medications")

        return SupplementProtocol(
            core=sort_by_priority(core),
            conditional=sort_by_priority(conditional),
            notes=tuple(notes),
        )

    @staticmethod
    def generate_nutritional_monitoring_plan(
        profile: GeneticProfile, risk: RiskAssessment
    ) -> NutritionalMonitoringPlan:
        biomarkers: list[BiomarkerTarget] = []
        if profile.has_variant(MarkerId.MTHFR, *MTHFR_NON_REFERENCE):
            biomarkers.append(BiomarkerTarget(
                "Homocysteine", "Every 6 months", "<10 μmol/L", "Monitor folate status",
            ))
        if profile.has_variant(MarkerId.APOE, *APOE_E4_CARRIERS):
            biomarkers.append(BiomarkerTarget(
                "Lipid Panel", "Every 6 months", "LDL <100 mg/dL", "Cardiovascular risk management",
            ))
        if profile.has_variant(MarkerId.MC1R, *MC1R_NON_REFERENCE):
            biomarkers.append(BiomarkerTarget(
                "25-OH Vitamin D", "Every 6 months", "40-60 ng/mL", "Confirm supplementation is sufficient",
            ))
        if profile.has_variant(MarkerId.ACE, ACEVariant.DD):
            biomarkers.append(BiomarkerTarget(
                "Home blood pressure", "Weekly", "<120/80 mmHg", "Sodium sensitivity tracking",
            ))
        return NutritionalMonitoringPlan(
            biomarkers=tuple(biomarkers),
            risk_based_tests=risk.monitoring_plan,
        )

    @staticmethod
    def prioritize_actions(
        risk: RiskAssessment, recommendations: NutritionRecommendations
    ) -> tuple[ActionItem, ...]:
        """Critical nutrient directives plus the scorer's critical actions, highest first."""
        actions = [
            ActionItem(
                action=f"Optimize {d.nutrient.replace('_', ' ')} intake",
                priority=d.priority,
                timeline="immediate",
                category=d.risk_category,
                evidence=d.rationale,
            )
            for d in recommendations.all_directives()
            if d.priority == Priority.CRITICAL
        ]
        actions.extend(a for a in risk.prioritized_actions if a.priority == Priority.CRITICAL)
        return sort_by_priority(actions)

    @staticmethod
    def generate_educational_content(profile: GeneticProfile) -> EducationalContent:
        return EducationalContent(
            overview=EDUCATIONAL_OVERVIEW,
            key_insights=tuple(
                MarkerInsight(
                    marker=analysis.marker,
                    name=analysis.name,
                    finding=analysis.phenotype,
                    implication=analysis.implication,
                    confidence=analysis.confidence,
                )
                for analysis in profile.markers.values()
            ),
            interaction_advice=tuple(
                f"{i.effect}: {i.recommendation}" for i in profile.interactions
            ),
        )

    def generate_fallback_report(self, health_profile: Any = None) -> FallbackReport:
        """Minimal generic report. Never depends on the failed pipeline state."""
        return FallbackReport(
            report_id=self._generate_report_id(),
            timestamp=_now_iso(),
            message=FALLBACK_MESSAGE,
            recommendations=FallbackRecommendations(
                general=FALLBACK_GENERAL,
                monitoring=FALLBACK_MONITORING,
            ),
        )

    @staticmethod
    def _generate_report_id() -> str:
        return f"NR-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
