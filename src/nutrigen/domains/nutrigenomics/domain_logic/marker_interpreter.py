"""Marker interpretation: raw genotype codes -> resolved genetic profile.

All rules are table-driven. Adding a nutritional-needs rule, a preliminary
risk hint or a marker-pair interaction means adding a row to the matching
table below, not a new branch.

Unknown markers and unknown variants never abort interpretation; they are
dropped and reported as ``PartialDataWarning`` records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from nutrigen.domains.nutrigenomics.domain_logic.catalog import (
    APOE_E4_CARRIERS,
    MARKER_CATALOG,
    ACEVariant,
    COMTVariant,
    CYP1A2Variant,
    FTOVariant,
    MarkerDefinition,
    MarkerId,
    MC1RVariant,
    MTHFRVariant,
    VariantDefinition,
    parse_marker_id,
)
from nutrigen.domains.nutrigenomics.domain_logic.errors import (
    PartialDataWarning,
    ValidationError,
)
from nutrigen.domains.nutrigenomics.domain_logic.models import (
    CATEGORY_ORDER,
    CategoryHint,
    GeneticProfile,
    Genotype,
    Interaction,
    MarkerAnalysis,
    NeedDirective,
    NutritionalNeeds,
    Priority,
    RiskCategory,
    RiskLevel,
    SupplementNeed,
    ValidationResult,
)

logger = logging.getLogger(__name__)

MTHFR_NON_REFERENCE = (MTHFRVariant.CT, MTHFRVariant.TT)
MC1R_NON_REFERENCE = (MC1RVariant.CT, MC1RVariant.TT)


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NeedRule:
    marker: MarkerId
    variants: tuple[Enum, ...]
    section: str            # 'macronutrients' | 'micronutrients'
    nutrient: str
    direction: str
    target: str
    reason: str
    form: str | None = None


NEED_RULES: tuple[NeedRule, ...] = (
    NeedRule(
        MarkerId.MTHFR, MTHFR_NON_REFERENCE, "micronutrients", "folate", "increase",
        "400-800mcg DFE", "Reduced folate processing ability", form="methylfolate",
    ),
    NeedRule(
        MarkerId.FTO, (FTOVariant.AA,), "macronutrients", "protein", "increase",
        "25-30% of calories", "Better satiety and appetite control",
    ),
    NeedRule(
        MarkerId.APOE, APOE_E4_CARRIERS, "macronutrients", "saturated_fat", "restrict",
        "<7% of calories", "Impaired lipid clearance",
    ),
    NeedRule(
        MarkerId.APOE, APOE_E4_CARRIERS, "micronutrients", "omega3", "increase",
        "2-3g daily", "Neuroprotection and lipid management",
    ),
    NeedRule(
        MarkerId.MC1R, (MC1RVariant.CT,), "micronutrients", "vitamin_d", "increase",
        "2000-3000 IU", "Reduced synthesis capacity",
    ),
    NeedRule(
        MarkerId.MC1R, (MC1RVariant.TT,), "micronutrients", "vitamin_d", "increase",
        "3000-4000 IU", "Significantly reduced synthesis capacity",
    ),
    NeedRule(
        MarkerId.ACE, (ACEVariant.DD,), "micronutrients", "sodium", "restrict",
        "<2300mg daily", "Increased sodium sensitivity",
    ),
    NeedRule(
        MarkerId.ACE, (ACEVariant.DD,), "micronutrients", "potassium", "increase",
        "3500-4700mg", "Blood pressure regulation",
    ),
)


@dataclass(frozen=True)
class SupplementRule:
    marker: MarkerId
    variants: tuple[Enum, ...]
    name: str
    dosage: str
    reason: str


SUPPLEMENT_NEED_RULES: tuple[SupplementRule, ...] = (
    SupplementRule(
        MarkerId.MTHFR, MTHFR_NON_REFERENCE, "Methylfolate", "400-800mcg",
        "Compensate for reduced MTHFR activity",
    ),
)


@dataclass(frozen=True)
class PatternRule:
    marker: MarkerId
    variants: tuple[Enum, ...]
    pattern: str


DIETARY_PATTERN_RULES: tuple[PatternRule, ...] = (
    PatternRule(MarkerId.FTO, (FTOVariant.AA,), "High protein, frequent small meals"),
)


@dataclass(frozen=True)
class HintRule:
    """Preliminary risk hint.

    ``mode`` is ``'raise'`` (lift to at least ``level``) or ``'bump'``
    (low -> moderate, anything else -> high).
    """

    marker: MarkerId
    variants: tuple[Enum, ...]
    category: RiskCategory
    mode: str
    factor: str
    level: RiskLevel = RiskLevel.HIGH


HINT_RULES: tuple[HintRule, ...] = (
    HintRule(MarkerId.APOE, APOE_E4_CARRIERS, RiskCategory.CARDIOVASCULAR, "raise", "APOE E4 variant"),
    HintRule(MarkerId.APOE, APOE_E4_CARRIERS, RiskCategory.NEUROLOGICAL, "raise", "Increased Alzheimer's risk"),
    HintRule(MarkerId.MTHFR, MTHFR_NON_REFERENCE, RiskCategory.CARDIOVASCULAR, "bump", "Elevated homocysteine risk"),
    HintRule(
        MarkerId.MTHFR, MTHFR_NON_REFERENCE, RiskCategory.NUTRITIONAL, "raise",
        "Folate deficiency risk", level=RiskLevel.MODERATE,
    ),
    HintRule(MarkerId.FTO, (FTOVariant.AA,), RiskCategory.METABOLIC, "raise", "Increased obesity risk"),
    HintRule(MarkerId.ACE, (ACEVariant.DD,), RiskCategory.CARDIOVASCULAR, "bump", "Hypertension susceptibility"),
)

_LEVEL_RANK = {level: rank for rank, level in enumerate(RiskLevel)}


@dataclass(frozen=True)
class InteractionRule:
    first: tuple[MarkerId, tuple[Enum, ...]]
    second: tuple[MarkerId, tuple[Enum, ...]]
    effect: str
    recommendation: str
    priority: Priority


INTERACTION_RULES: tuple[InteractionRule, ...] = (
    InteractionRule(
        first=(MarkerId.APOE, APOE_E4_CARRIERS),
        second=(MarkerId.MTHFR, MTHFR_NON_REFERENCE),
        effect="Compound cardiovascular risk",
        recommendation="Aggressive folate supplementation and lipid management",
        priority=Priority.HIGH,
    ),
    InteractionRule(
        first=(MarkerId.FTO, (FTOVariant.AA,)),
        second=(MarkerId.COMT, (COMTVariant.MET_MET,)),
        effect="Stress-induced eating tendency",
        recommendation="Stress management techniques and structured meal planning",
        priority=Priority.MODERATE,
    ),
    InteractionRule(
        first=(MarkerId.CYP1A2, (CYP1A2Variant.CC,)),
        second=(MarkerId.COMT, (COMTVariant.MET_MET,)),
        effect="High caffeine sensitivity",
        recommendation="Strict caffeine limitation, consider L-theanine",
        priority=Priority.MODERATE,
    ),
)


def _matches(markers: Mapping[Enum, MarkerAnalysis], marker: Enum, variants: tuple[Enum, ...]) -> bool:
    analysis = markers.get(marker)
    return analysis is not None and analysis.variant in variants


# ---------------------------------------------------------------------------
# Interpreter
# ---------------------------------------------------------------------------

class MarkerInterpreter:
    """Resolves genotypes against the marker catalog.

    Usage::

        interpreter = MarkerInterpreter()
        result = interpreter.validate({"MTHFR": "TT"})
        profile = interpreter.interpret({"MTHFR": "TT", "APOE": "E3/E4"})
    """

    def __init__(self, catalog: Mapping[MarkerId, MarkerDefinition] = MARKER_CATALOG) -> None:
        self._catalog = catalog

    def validate(self, genotype: Any) -> ValidationResult:
        """Check a genotype for completeness and unrecognized entries.

        Never raises: an absent or empty genotype is reported as
        ``is_valid=False`` with an error message.
        """
        try:
            parsed = Genotype.from_mapping(genotype)
        except ValidationError as exc:
            return ValidationResult(is_valid=False, errors=(str(exc),))

        if not len(parsed):
            return ValidationResult(is_valid=False, errors=("No genetic markers found",))

        warnings: list[str] = []
        provided = {parse_marker_id(code) for code in parsed.markers}
        missing = [m.value for m in self._catalog if m not in provided]
        if missing:
            warnings.append(f"Missing markers: {', '.join(missing)}")

        resolved, partial = self._resolve(parsed)
        warnings.extend(str(w) for w in partial)

        completeness = round(len(resolved) / len(self._catalog) * 100, 1) if self._catalog else 0.0
        return ValidationResult(
            is_valid=True,
            errors=(),
            warnings=tuple(warnings),
            completeness=completeness,
        )

    def interpret(self, genotype: Any) -> GeneticProfile:
        """Resolve every recognized marker; unmatched entries are skipped.

        Raises:
            ValidationError: if ``genotype`` is absent or not a mapping.
        """
        parsed = Genotype.from_mapping(genotype)
        resolved, partial = self._resolve(parsed)

        markers: dict[Enum, MarkerAnalysis] = {}
        for marker_id, (definition, variant_def) in resolved.items():
            markers[marker_id] = MarkerAnalysis(
                marker=marker_id,
                name=definition.name,
                variant=variant_def.variant,
                phenotype=variant_def.phenotype,
                implication=variant_def.implication,
                confidence=variant_def.confidence,
                risk_allele_copies=variant_def.risk_allele_copies,
            )

        confidences = [a.confidence for a in markers.values()]
        confidence = sum(confidences) / len(confidences) if confidences else 0.0
        frozen_markers = MappingProxyType(markers)

        if partial:
            logger.info("Dropped %d unrecognized genotype entries", len(partial))
        logger.debug(
            "Interpreted %d/%d markers (confidence=%.3f)",
            len(markers), len(parsed), confidence,
        )

        return GeneticProfile(
            markers=frozen_markers,
            confidence=confidence,
            nutritional_needs=self.derive_nutritional_needs(frozen_markers),
            preliminary_risk=self.assess_preliminary_risk(frozen_markers),
            interactions=self.get_interactions(frozen_markers),
            warnings=tuple(partial),
        )

    def derive_nutritional_needs(self, markers: Mapping[Enum, MarkerAnalysis]) -> NutritionalNeeds:
        """Preliminary nutritional-needs directives from ``NEED_RULES``."""
        sections: dict[str, dict[str, NeedDirective]] = {
            "macronutrients": {},
            "micronutrients": {},
        }
        for rule in NEED_RULES:
            if _matches(markers, rule.marker, rule.variants):
                sections[rule.section][rule.nutrient] = NeedDirective(
                    nutrient=rule.nutrient,
                    direction=rule.direction,
                    target=rule.target,
                    reason=rule.reason,
                    marker=rule.marker,
                    form=rule.form,
                )

        supplements = tuple(
            SupplementNeed(name=rule.name, dosage=rule.dosage, reason=rule.reason, marker=rule.marker)
            for rule in SUPPLEMENT_NEED_RULES
            if _matches(markers, rule.marker, rule.variants)
        )
        patterns = tuple(
            rule.pattern
            for rule in DIETARY_PATTERN_RULES
            if _matches(markers, rule.marker, rule.variants)
        )

        return NutritionalNeeds(
            macronutrients=MappingProxyType(sections["macronutrients"]),
            micronutrients=MappingProxyType(sections["micronutrients"]),
            supplements=supplements,
            dietary_patterns=patterns,
        )

    def assess_preliminary_risk(
        self, markers: Mapping[Enum, MarkerAnalysis]
    ) -> Mapping[RiskCategory, CategoryHint]:
        """Coarse per-category hints. RiskScorer computes the weighted scores."""
        levels = {category: RiskLevel.LOW for category in CATEGORY_ORDER}
        factors: dict[RiskCategory, list[str]] = {category: [] for category in CATEGORY_ORDER}

        for rule in HINT_RULES:
            if not _matches(markers, rule.marker, rule.variants):
                continue
            current = levels[rule.category]
            if rule.mode == "bump":
                new = RiskLevel.MODERATE if current == RiskLevel.LOW else RiskLevel.HIGH
            else:
                new = rule.level
            if _LEVEL_RANK[new] > _LEVEL_RANK[current]:
                levels[rule.category] = new
            factors[rule.category].append(rule.factor)

        return MappingProxyType({
            category: CategoryHint(level=levels[category], factors=tuple(factors[category]))
            for category in CATEGORY_ORDER
        })

    def get_interactions(self, markers: Mapping[Enum, MarkerAnalysis]) -> tuple[Interaction, ...]:
        """Evaluate the fixed marker-pair table against resolved markers."""
        return tuple(
            Interaction(
                markers=(rule.first[0], rule.second[0]),
                effect=rule.effect,
                recommendation=rule.recommendation,
                priority=rule.priority,
            )
            for rule in INTERACTION_RULES
            if _matches(markers, *rule.first) and _matches(markers, *rule.second)
        )

    # ------------------------------------------------------------------

    def _resolve(
        self, genotype: Genotype
    ) -> tuple[dict[MarkerId, tuple[MarkerDefinition, VariantDefinition]], list[PartialDataWarning]]:
        resolved: dict[MarkerId, tuple[MarkerDefinition, VariantDefinition]] = {}
        partial: list[PartialDataWarning] = []

        for code, variant_code in genotype.items():
            marker_id = parse_marker_id(code)
            definition = self._catalog.get(marker_id) if marker_id is not None else None
            if definition is None:
                partial.append(PartialDataWarning(
                    marker=code, variant=variant_code, message=f"Unknown marker: {code}",
                ))
                continue
            if marker_id in resolved:
                partial.append(PartialDataWarning(
                    marker=code, variant=variant_code,
                    message=f"Duplicate entry for marker {marker_id.value} ignored",
                ))
                continue
            variant_def = definition.resolve(variant_code)
            if variant_def is None:
                partial.append(PartialDataWarning(
                    marker=code, variant=variant_code,
                    message=f"Unknown variant {variant_code} for marker {marker_id.value}",
                ))
                continue
            resolved[marker_id] = (definition, variant_def)

        return resolved, partial
