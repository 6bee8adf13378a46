"""Typed records and enumerations shared by the nutrigenomics pipeline.

Every record is a frozen dataclass. ``to_plain`` renders any of them (or any
nesting of them) as a JSON-compatible structure for tools and the narrative
collaborator.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from nutrigen.domains.nutrigenomics.domain_logic.errors import (
    PartialDataWarning,
    ValidationError,
)

REPORT_VERSION = "1.0.0"

MAX_RISK_SCORE = 15.0


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Priority(str, Enum):
    """Totally ordered priority shared by every component that sorts."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def weight(self) -> int:
        return _PRIORITY_WEIGHTS[self]

    def __lt__(self, other):
        if not isinstance(other, Priority):
            return NotImplemented
        return self.weight < other.weight

    def __le__(self, other):
        if not isinstance(other, Priority):
            return NotImplemented
        return self.weight <= other.weight

    def __gt__(self, other):
        if not isinstance(other, Priority):
            return NotImplemented
        return self.weight > other.weight

    def __ge__(self, other):
        if not isinstance(other, Priority):
            return NotImplemented
        return self.weight >= other.weight


_PRIORITY_WEIGHTS = {
    Priority.LOW: 0,
    Priority.MODERATE: 1,
    Priority.HIGH: 2,
    Priority.CRITICAL: 3,
}


def sort_by_priority(items):
    """Highest priority first; equal priorities keep their input order."""
    return tuple(sorted(items, key=lambda item: item.priority, reverse=True))


class RiskLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"

    @property
    def is_elevated(self) -> bool:
        """True for the two levels that trigger actions and monitoring."""
        return self in (RiskLevel.HIGH, RiskLevel.VERY_HIGH)


class RiskCategory(str, Enum):
    """The four independently scored health domains, in canonical order."""

    CARDIOVASCULAR = "cardiovascular"
    METABOLIC = "metabolic"
    NEUROLOGICAL = "neurological"
    NUTRITIONAL = "nutritional"


CATEGORY_ORDER: tuple[RiskCategory, ...] = tuple(RiskCategory)


class ActivityLevel(str, Enum):
    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    VERY = "very"
    EXTREMELY = "extremely"

    @classmethod
    def parse(cls, value: Any) -> ActivityLevel | None:
        """Lenient parse: accepts form values and the ``*_active`` spellings."""
        if isinstance(value, ActivityLevel):
            return value
        if not isinstance(value, str) or not value.strip():
            return None
        key = value.strip().lower().replace(" ", "_")
        key = _ACTIVITY_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return None


_ACTIVITY_ALIASES = {
    "lightly_active": "light",
    "moderately_active": "moderate",
    "very_active": "very",
    "extremely_active": "extremely",
}


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Genotype:
    """Raw marker code -> raw variant code, as supplied by the caller.

    Codes are kept as strings here; resolution against the catalog happens in
    the interpreter so unknown entries can be reported rather than rejected.
    """

    markers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_mapping(cls, raw: Any) -> Genotype:
        """Build a Genotype from a flat mapping or a ``{"markers": {...}}`` envelope.

        Raises:
            ValidationError: if ``raw`` is absent or not a mapping.
        """
        if isinstance(raw, Genotype):
            return raw
        if raw is None:
            raise ValidationError("No genetic data provided")
        if not isinstance(raw, Mapping):
            raise ValidationError(
                f"Genetic data must be a mapping of marker to variant, got {type(raw).__name__}"
            )
        nested = raw.get("markers")
        if isinstance(nested, Mapping):
            raw = nested
        markers = {
            str(marker).strip(): "" if variant is None else str(variant).strip()
            for marker, variant in raw.items()
        }
        return cls(markers=MappingProxyType(markers))

    def __len__(self) -> int:
        return len(self.markers)

    def items(self):
        return self.markers.items()


def _num(val: Any) -> float | None:
    """Convert to float, returning None for missing or non-numeric values."""
    if val is None or isinstance(val, bool):
        return None
    try:
        return float(val)
    except (TypeError, ValueError):
        return None


def _text(val: Any) -> str:
    if val is None:
        return ""
    if isinstance(val, (list, tuple)):
        return ", ".join(str(v) for v in val if v is not None)
    return str(val)


@dataclass(frozen=True)
class HealthProfile:
    """Self-reported health profile. Every field is optional."""

    age: float | None = None
    weight: float | None = None
    height: float | None = None
    activity_level: ActivityLevel | None = None
    health_goals: str = ""
    existing_conditions: str = ""
    medications: str = ""
    allergies: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> HealthProfile:
        """Build from form data; camelCase and snake_case keys are both accepted."""
        if isinstance(data, HealthProfile):
            return data
        if not data:
            return cls()

        def pick(snake: str, camel: str) -> Any:
            return data.get(snake, data.get(camel))

        return cls(
            age=_num(data.get("age")),
            weight=_num(data.get("weight")),
            height=_num(data.get("height")),
            activity_level=ActivityLevel.parse(pick("activity_level", "activityLevel")),
            health_goals=_text(pick("health_goals", "healthGoals")),
            existing_conditions=_text(pick("existing_conditions", "existingConditions")),
            medications=_text(data.get("medications")),
            allergies=_text(data.get("allergies")),
        )


# ---------------------------------------------------------------------------
# Marker interpretation
# ---------------------------------------------------------------------------

class ImplicationDomain(str, Enum):
    CAFFEINE = "caffeine"
    FOLATE = "folate"
    LIPIDS = "lipids"
    SODIUM = "sodium"
    WEIGHT = "weight"
    VITAMIN_D = "vitamin_d"
    STRESS = "stress"


@dataclass(frozen=True)
class Implication:
    """Functional implication of a variant, tagged by the domain it concerns."""

    domain: ImplicationDomain
    summary: str
    recommendations: tuple[str, ...] = ()
    risks: tuple[str, ...] = ()


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    completeness: float = 0.0


@dataclass(frozen=True)
class MarkerAnalysis:
    marker: Enum
    name: str
    variant: Enum
    phenotype: str
    implication: Implication
    confidence: float
    risk_allele_copies: int = 0


@dataclass(frozen=True)
class NeedDirective:
    """A preliminary nutritional-needs directive tied to one marker."""

    nutrient: str
    direction: str          # 'increase' | 'restrict'
    target: str
    reason: str
    marker: Enum
    form: str | None = None


@dataclass(frozen=True)
class SupplementNeed:
    name: str
    dosage: str
    reason: str
    marker: Enum


@dataclass(frozen=True)
class NutritionalNeeds:
    macronutrients: Mapping[str, NeedDirective] = field(default_factory=lambda: MappingProxyType({}))
    micronutrients: Mapping[str, NeedDirective] = field(default_factory=lambda: MappingProxyType({}))
    supplements: tuple[SupplementNeed, ...] = ()
    dietary_patterns: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (
            self.macronutrients
            or self.micronutrients
            or self.supplements
            or self.dietary_patterns
        )


@dataclass(frozen=True)
class CategoryHint:
    """Coarse preliminary risk level for one category (not the weighted score)."""

    level: RiskLevel = RiskLevel.LOW
    factors: tuple[str, ...] = ()


@dataclass(frozen=True)
class Interaction:
    markers: tuple[Enum, ...]
    effect: str
    recommendation: str
    priority: Priority


@dataclass(frozen=True)
class GeneticProfile:
    markers: Mapping[Enum, MarkerAnalysis]
    confidence: float
    nutritional_needs: NutritionalNeeds
    preliminary_risk: Mapping[RiskCategory, CategoryHint]
    interactions: tuple[Interaction, ...] = ()
    warnings: tuple[PartialDataWarning, ...] = ()

    def variant_of(self, marker: Enum) -> Enum | None:
        """Resolved variant for ``marker``, or None when it was not analysed."""
        analysis = self.markers.get(marker)
        return analysis.variant if analysis is not None else None

    def has_variant(self, marker: Enum, *variants: Enum) -> bool:
        return self.variant_of(marker) in variants

    def risk_copies(self, marker: Enum) -> int:
        analysis = self.markers.get(marker)
        return analysis.risk_allele_copies if analysis is not None else 0


# ---------------------------------------------------------------------------
# Risk assessment
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RiskFactor:
    factor: str
    contribution: float
    description: str


@dataclass(frozen=True)
class MitigationStrategy:
    category: str           # intervention kind: Diet, Supplements, Monitoring...
    strategy: str
    priority: Priority
    evidence: str


@dataclass(frozen=True)
class RiskCategoryScore:
    category: RiskCategory
    score: float
    level: RiskLevel
    factors: tuple[RiskFactor, ...] = ()
    mitigation_strategies: tuple[MitigationStrategy, ...] = ()


@dataclass(frozen=True)
class CategoryDistribution:
    level: RiskLevel
    score: float
    percentage: int


@dataclass(frozen=True)
class OverallRisk:
    max_risk_score: float
    average_risk_score: float
    primary_risk_category: RiskCategory
    overall_level: RiskLevel
    risk_distribution: Mapping[RiskCategory, CategoryDistribution]


@dataclass(frozen=True)
class ActionItem:
    action: str
    priority: Priority
    timeline: str = "immediate"
    category: RiskCategory | None = None
    evidence: str = ""


@dataclass(frozen=True)
class MonitoringTest:
    test: str
    frequency: str
    reason: str


@dataclass(frozen=True)
class RiskAssessment:
    categories: Mapping[RiskCategory, RiskCategoryScore]
    overall: OverallRisk
    prioritized_actions: tuple[ActionItem, ...] = ()
    monitoring_plan: tuple[MonitoringTest, ...] = ()


# ---------------------------------------------------------------------------
# Nutrition report
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FoodItem:
    food: str
    nutrient: str
    amount: str
    note: str = ""


@dataclass(frozen=True)
class NutrientDirective:
    nutrient: str
    target: str
    rationale: str
    priority: Priority
    direction: str = "increase"     # 'increase' | 'restrict' | 'adjust'
    form: str | None = None
    timing: str | None = None
    food_sources: tuple[FoodItem, ...] = ()
    marker: Enum | None = None
    risk_category: RiskCategory | None = None


@dataclass(frozen=True)
class FoodCategory:
    name: str
    foods: tuple[FoodItem, ...]
    frequency: str
    rationale: str


@dataclass(frozen=True)
class Avoidance:
    item: str
    reason: str
    alternatives: str
    limit: str | None = None


@dataclass(frozen=True)
class SpecialConsideration:
    consideration: str
    recommendation: str
    rationale: str = ""
    frequency: str | None = None
    target: str | None = None
    foods: tuple[str, ...] = ()


@dataclass(frozen=True)
class NutritionRecommendations:
    macronutrients: Mapping[str, NutrientDirective]
    micronutrients: Mapping[str, NutrientDirective]
    food_categories: Mapping[str, FoodCategory]
    avoidance_list: Mapping[str, Avoidance]
    special_considerations: tuple[SpecialConsideration, ...] = ()

    def all_directives(self) -> tuple[NutrientDirective, ...]:
        return tuple(self.macronutrients.values()) + tuple(self.micronutrients.values())


@dataclass(frozen=True)
class MealTimingTemplate:
    key: str
    pattern: str
    timing: str
    rationale: str


@dataclass(frozen=True)
class Meal:
    name: str
    foods: tuple[str, ...]
    focus: str


@dataclass(frozen=True)
class DayPlan:
    day: int
    breakfast: Meal
    lunch: Meal
    dinner: Meal
    snacks: tuple[Meal, ...]


@dataclass(frozen=True)
class MealTemplate:
    meal_type: str
    guidelines: tuple[str, ...]
    examples: tuple[str, ...]


@dataclass(frozen=True)
class MealPlans:
    timing: MealTimingTemplate
    templates: Mapping[str, MealTemplate]
    weekly: tuple[DayPlan, ...]


@dataclass(frozen=True)
class SupplementRecommendation:
    supplement: str
    dosage: str
    timing: str
    rationale: str
    priority: Priority
    marker: Enum | None = None


@dataclass(frozen=True)
class SupplementProtocol:
    core: tuple[SupplementRecommendation, ...] = ()
    conditional: tuple[SupplementRecommendation, ...] = ()
    notes: tuple[str, ...] = ()


@dataclass(frozen=True)
class BiomarkerTarget:
    test: str
    frequency: str
    target: str
    rationale: str


@dataclass(frozen=True)
class NutritionalMonitoringPlan:
    biomarkers: tuple[BiomarkerTarget, ...] = ()
    risk_based_tests: tuple[MonitoringTest, ...] = ()


@dataclass(frozen=True)
class MarkerInsight:
    marker: Enum
    name: str
    finding: str
    implication: Implication
    confidence: float


@dataclass(frozen=True)
class EducationalContent:
    overview: str
    key_insights: tuple[MarkerInsight, ...] = ()
    interaction_advice: tuple[str, ...] = ()


@dataclass(frozen=True)
class NutritionReport:
    report_id: str
    timestamp: str
    genetic_profile: GeneticProfile
    risk_profile: RiskAssessment
    nutrition_recommendations: NutritionRecommendations
    meal_plans: MealPlans
    supplement_protocol: SupplementProtocol
    monitoring_plan: NutritionalMonitoringPlan
    action_priorities: tuple[ActionItem, ...]
    educational_content: EducationalContent
    report_version: str = REPORT_VERSION
    type: str = "comprehensive"


@dataclass(frozen=True)
class FallbackRecommendations:
    general: str
    monitoring: str


@dataclass(frozen=True)
class FallbackReport:
    report_id: str
    timestamp: str
    message: str
    recommendations: FallbackRecommendations
    type: str = "fallback"
    report_version: str = REPORT_VERSION


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def to_plain(obj: Any) -> Any:
    """Render records, enums and read-only mappings as JSON-compatible data."""
    if isinstance(obj, Enum):
        return obj.value
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_plain(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, Mapping):
        return {
            (k.value if isinstance(k, Enum) else str(k)): to_plain(v)
            for k, v in obj.items()
        }
    if isinstance(obj, (list, tuple)):
        return [to_plain(v) for v in obj]
    return obj
