"""Sample genotypes and health profiles for development, demos and testing.

``high_risk`` carries a risk allele at every catalog marker; ``reference``
is all reference variants; ``partial`` mixes known, unknown and malformed
entries to exercise the partial-results path.
"""

from __future__ import annotations

SAMPLE_GENOTYPES: dict[str, dict[str, str]] = {
    "high_risk": {
        "CYP1A2": "AA",
        "MTHFR": "TT",
        "APOE": "E4/E4",
        "ACE": "DD",
        "FTO": "AA",
        "MC1R": "TT",
        "COMT": "Met/Met",
    },
    "reference": {
        "CYP1A2": "AA",
        "MTHFR": "CC",
        "APOE": "E3/E3",
        "ACE": "II",
        "FTO": "TT",
        "MC1R": "CC",
        "COMT": "Val/Val",
    },
    "partial": {
        "MTHFR": "CT",
        "APOE": "E3/E4",
        "LCT": "CT",
        "ACE": "XX",
    },
}

SAMPLE_HEALTH_PROFILES: dict[str, dict] = {
    "high_risk": {},
    "reference": {
        "age": 34,
        "activityLevel": "moderate",
        "healthGoals": "Maintain energy",
    },
    "partial": {
        "age": 58,
        "weight": 82,
        "height": 176,
        "activityLevel": "sedentary",
        "healthGoals": "Lose weight, try intermittent fasting",
        "existingConditions": "Hypertension",
        "medications": "Lisinopril",
        "allergies": "walnuts",
    },
}


def get_sample_genotype(name: str = "high_risk") -> dict[str, str]:
    """Return a copy of a named sample genotype."""
    try:
        return dict(SAMPLE_GENOTYPES[name])
    except KeyError:
        raise ValueError(
            f"Unknown sample {name!r}; choose one of: {', '.join(SAMPLE_GENOTYPES)}"
        ) from None


def get_sample_health_profile(name: str = "high_risk") -> dict:
    """Return a copy of the health profile paired with a named sample."""
    return dict(SAMPLE_HEALTH_PROFILES.get(name, {}))
