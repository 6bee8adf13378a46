"""Marker catalog: the static, read-only genetic marker database.

Each marker has its own variant enumeration so resolution is a lookup in an
immutable table rather than string comparison. ``risk_allele_copies`` encodes
variant severity (0 = reference, 1 = heterozygous, 2 = homozygous for the
allele of interest) and drives the severity-banded rules downstream.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from nutrigen.domains.nutrigenomics.domain_logic.models import (
    Implication,
    ImplicationDomain,
)


class MarkerId(str, Enum):
    CYP1A2 = "CYP1A2"
    MTHFR = "MTHFR"
    APOE = "APOE"
    ACE = "ACE"
    FTO = "FTO"
    MC1R = "MC1R"
    COMT = "COMT"


class CYP1A2Variant(str, Enum):
    AA = "AA"
    AC = "AC"
    CC = "CC"


class MTHFRVariant(str, Enum):
    CC = "CC"
    CT = "CT"
    TT = "TT"


class APOEVariant(str, Enum):
    E2_E2 = "E2/E2"
    E2_E3 = "E2/E3"
    E3_E3 = "E3/E3"
    E2_E4 = "E2/E4"
    E3_E4 = "E3/E4"
    E4_E4 = "E4/E4"


class ACEVariant(str, Enum):
    II = "II"
    ID = "ID"
    DD = "DD"


class FTOVariant(str, Enum):
    TT = "TT"
    AT = "AT"
    AA = "AA"


class MC1RVariant(str, Enum):
    CC = "CC"
    CT = "CT"
    TT = "TT"


class COMTVariant(str, Enum):
    VAL_VAL = "Val/Val"
    VAL_MET = "Val/Met"
    MET_MET = "Met/Met"


APOE_E4_CARRIERS = (APOEVariant.E2_E4, APOEVariant.E3_E4, APOEVariant.E4_E4)


@dataclass(frozen=True)
class VariantDefinition:
    variant: Enum
    phenotype: str
    implication: Implication
    confidence: float
    risk_allele_copies: int = 0


@dataclass(frozen=True)
class MarkerDefinition:
    marker: MarkerId
    name: str
    variant_type: type[Enum]
    reference_variant: Enum
    variants: Mapping[Enum, VariantDefinition]

    def resolve(self, code: str) -> VariantDefinition | None:
        """Look up a raw variant code; None when the catalog does not know it."""
        try:
            variant = self.variant_type(code)
        except ValueError:
            return None
        return self.variants.get(variant)


def _variant(
    variant: Enum,
    phenotype: str,
    domain: ImplicationDomain,
    summary: str,
    recommendations: tuple[str, ...],
    risks: tuple[str, ...],
    confidence: float,
    copies: int = 0,
) -> VariantDefinition:
    return VariantDefinition(
        variant=variant,
        phenotype=phenotype,
        implication=Implication(
            domain=domain,
            summary=summary,
            recommendations=recommendations,
            risks=risks,
        ),
        confidence=confidence,
        risk_allele_copies=copies,
    )


def _marker(
    marker: MarkerId,
    name: str,
    variant_type: type[Enum],
    reference: Enum,
    *variants: VariantDefinition,
) -> MarkerDefinition:
    return MarkerDefinition(
        marker=marker,
        name=name,
        variant_type=variant_type,
        reference_variant=reference,
        variants=MappingProxyType({v.variant: v for v in variants}),
    )


_D = ImplicationDomain

_CATALOG = {
    MarkerId.CYP1A2: _marker(
        MarkerId.CYP1A2, "Caffeine Metabolism", CYP1A2Variant, CYP1A2Variant.AA,
        _variant(
            CYP1A2Variant.AA, "Fast metabolizer", _D.CAFFEINE,
            "Can tolerate higher caffeine intake (up to 400mg/day)",
            ("Green tea", "Coffee", "Dark chocolate"),
            ("May need higher doses for stimulant effects",),
            0.9,
        ),
        _variant(
            CYP1A2Variant.AC, "Intermediate metabolizer", _D.CAFFEINE,
            "Moderate caffeine tolerance (200-300mg/day)",
            ("Moderate coffee intake", "Green tea preferred"),
            ("Monitor for jitters or sleep disruption",),
            0.85, copies=1,
        ),
        _variant(
            CYP1A2Variant.CC, "Slow metabolizer", _D.CAFFEINE,
            "Low caffeine tolerance (less than 200mg/day)",
            ("Limit coffee", "Herbal teas", "Decaf options"),
            ("Increased anxiety", "Sleep disruption", "Cardiovascular stress"),
            0.9, copies=2,
        ),
    ),
    MarkerId.MTHFR: _marker(
        MarkerId.MTHFR, "Folate Metabolism", MTHFRVariant, MTHFRVariant.CC,
        _variant(
            MTHFRVariant.CC, "Normal folate processing", _D.FOLATE,
            "Standard folate requirements",
            ("Leafy greens", "Legumes", "Fortified grains"),
            ("Standard population risks",),
            0.8,
        ),
        _variant(
            MTHFRVariant.CT, "Reduced folate processing (30-40%)", _D.FOLATE,
            "Increased folate needs, prefer methylfolate",
            ("Dark leafy greens", "Methylfolate supplements", "Liver", "Asparagus"),
            ("Elevated homocysteine", "Cardiovascular risk", "Neural tube defects"),
            0.9, copies=1,
        ),
        _variant(
            MTHFRVariant.TT, "Significantly reduced folate processing (70%)", _D.FOLATE,
            "High folate needs, methylfolate essential",
            ("High-folate foods daily", "Methylfolate supplements", "B-complex vitamins"),
            ("High homocysteine", "Cardiovascular disease", "Depression risk"),
            0.95, copies=2,
        ),
    ),
    MarkerId.APOE: _marker(
        MarkerId.APOE, "Alzheimer's Risk & Lipid Metabolism", APOEVariant, APOEVariant.E3_E3,
        _variant(
            APOEVariant.E2_E2, "Protective variant", _D.LIPIDS,
            "Lower cholesterol levels, better lipid clearance",
            ("Mediterranean diet", "Omega-3 rich foods", "Antioxidant-rich foods"),
            ("Lower Alzheimer's risk",),
            0.85,
        ),
        _variant(
            APOEVariant.E2_E3, "Mildly protective variant", _D.LIPIDS,
            "Slightly better lipid clearance than average",
            ("Mediterranean diet", "Regular omega-3 intake"),
            ("Below-average Alzheimer's risk",),
            0.8,
        ),
        _variant(
            APOEVariant.E3_E3, "Standard risk", _D.LIPIDS,
            "Normal lipid metabolism",
            ("Balanced diet", "Regular omega-3 intake", "Antioxidants"),
            ("Average Alzheimer's risk",),
            0.8,
        ),
        _variant(
            APOEVariant.E2_E4, "Mixed risk variant", _D.LIPIDS,
            "Variable lipid clearance, one E4 allele",
            ("Low saturated fat", "High omega-3", "Antioxidant-rich foods"),
            ("Moderately increased Alzheimer's risk",),
            0.85, copies=1,
        ),
        _variant(
            APOEVariant.E3_E4, "Elevated risk variant", _D.LIPIDS,
            "Reduced lipid clearance, higher LDL tendency",
            ("Low saturated fat", "High omega-3", "Blueberries", "Walnuts"),
            ("3-4x higher Alzheimer's risk", "Cardiovascular disease"),
            0.9, copies=1,
        ),
        _variant(
            APOEVariant.E4_E4, "High risk variant", _D.LIPIDS,
            "Impaired lipid clearance, higher cholesterol",
            ("Low saturated fat", "High omega-3", "Curcumin", "Blueberries", "Walnuts"),
            ("15x higher Alzheimer's risk", "Cardiovascular disease"),
            0.95, copies=2,
        ),
    ),
    MarkerId.ACE: _marker(
        MarkerId.ACE, "Blood Pressure Regulation", ACEVariant, ACEVariant.II,
        _variant(
            ACEVariant.II, "Lower ACE activity", _D.SODIUM,
            "Less sodium sensitive",
            ("Standard sodium intake", "Focus on overall diet quality"),
            ("Lower hypertension risk",),
            0.8,
        ),
        _variant(
            ACEVariant.ID, "Intermediate ACE activity", _D.SODIUM,
            "Moderate sodium sensitivity",
            ("Moderate sodium restriction", "Balanced electrolytes"),
            ("Moderate hypertension risk",),
            0.75, copies=1,
        ),
        _variant(
            ACEVariant.DD, "Higher ACE activity", _D.SODIUM,
            "More sensitive to sodium intake",
            ("Low sodium diet", "DASH diet", "Potassium-rich foods", "Magnesium"),
            ("Hypertension", "Cardiovascular disease"),
            0.8, copies=2,
        ),
    ),
    MarkerId.FTO: _marker(
        MarkerId.FTO, "Weight Management & Appetite", FTOVariant, FTOVariant.TT,
        _variant(
            FTOVariant.TT, "Lower obesity risk", _D.WEIGHT,
            "Better appetite control, lower BMI tendency",
            ("Standard caloric intake", "Regular meal timing"),
            ("Lower obesity risk",),
            0.8,
        ),
        _variant(
            FTOVariant.AT, "Moderate obesity risk", _D.WEIGHT,
            "Moderate appetite control challenges",
            ("Portion control", "High protein meals", "Regular exercise"),
            ("Moderate weight gain tendency",),
            0.85, copies=1,
        ),
        _variant(
            FTOVariant.AA, "Higher obesity risk", _D.WEIGHT,
            "Increased appetite, slower satiety signals",
            ("High protein diet", "Frequent small meals", "High fiber foods", "Mindful eating"),
            ("Higher obesity risk", "Metabolic syndrome"),
            0.9, copies=2,
        ),
    ),
    MarkerId.MC1R: _marker(
        MarkerId.MC1R, "Vitamin D Synthesis", MC1RVariant, MC1RVariant.CC,
        _variant(
            MC1RVariant.CC, "Normal vitamin D synthesis", _D.VITAMIN_D,
            "Standard vitamin D requirements",
            ("Moderate sun exposure", "Vitamin D rich foods"),
            ("Standard deficiency risk",),
            0.8,
        ),
        _variant(
            MC1RVariant.CT, "Reduced vitamin D synthesis", _D.VITAMIN_D,
            "Increased vitamin D needs",
            ("Vitamin D supplements", "Fatty fish", "Fortified foods", "Safe sun exposure"),
            ("Higher deficiency risk", "Bone health issues"),
            0.85, copies=1,
        ),
        _variant(
            MC1RVariant.TT, "Significantly reduced synthesis", _D.VITAMIN_D,
            "High vitamin D supplementation needs",
            ("High-dose vitamin D3", "Regular monitoring", "Calcium-rich foods"),
            ("Very high deficiency risk", "Osteoporosis risk"),
            0.9, copies=2,
        ),
    ),
    MarkerId.COMT: _marker(
        MarkerId.COMT, "Stress Response & Dopamine", COMTVariant, COMTVariant.VAL_VAL,
        _variant(
            COMTVariant.VAL_VAL, "Fast dopamine clearance", _D.STRESS,
            "Better stress tolerance, may need more stimulation",
            ("Moderate caffeine OK", "Challenging activities", "Varied diet"),
            ("May seek more stimulation",),
            0.8,
        ),
        _variant(
            COMTVariant.VAL_MET, "Intermediate dopamine clearance", _D.STRESS,
            "Balanced stress response",
            ("Moderate stimulants", "Balanced lifestyle", "Stress management"),
            ("Moderate stress sensitivity",),
            0.75, copies=1,
        ),
        _variant(
            COMTVariant.MET_MET, "Slow dopamine clearance", _D.STRESS,
            "Higher stress sensitivity, better focus",
            ("Limit caffeine", "Stress-reducing foods", "Magnesium", "L-theanine"),
            ("Anxiety", "Stress-related disorders"),
            0.85, copies=2,
        ),
    ),
}

MARKER_CATALOG: Mapping[MarkerId, MarkerDefinition] = MappingProxyType(_CATALOG)


def parse_marker_id(code: str) -> MarkerId | None:
    """Case-insensitive marker lookup; None for markers outside the catalog."""
    try:
        return MarkerId(code.strip().upper())
    except (AttributeError, ValueError):
        return None
