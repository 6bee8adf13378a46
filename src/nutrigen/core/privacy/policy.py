"""Privacy policy for controlling what data is exposed to the narrative LLM.

The narrative LLM should generally operate on:
- phenotype-level marker findings (not raw genotype codes)
- the computed overall risk summary
- a coarse health profile (age band, activity level)

Raw genotype codes and the free-text parts of the health profile are only
placed into prompts when the user explicitly opts in.
"""

from __future__ import annotations

from typing import Any, Literal

PrivacyMode = Literal["strict", "standard", "explicit"]

PRIVACY_MODES: tuple[str, ...] = ("strict", "standard", "explicit")


def validate_privacy_mode(value: str | None, default: str = "strict") -> PrivacyMode:
    """Validate and default a privacy_mode parameter."""
    if value in (None, ""):
        value = default
    if value not in PRIVACY_MODES:
        raise ValueError("privacy_mode must be one of: strict | standard | explicit")
    return value  # type: ignore[return-value]


def _round_floats(obj: Any, ndigits: int = 2) -> Any:
    if isinstance(obj, float):
        return round(obj, ndigits)
    if isinstance(obj, dict):
        return {k: _round_floats(v, ndigits=ndigits) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_round_floats(v, ndigits=ndigits) for v in obj]
    return obj


def age_band(age: float | None) -> str | None:
    """Coarsen an age to a decade band ('40-49'); None when unknown."""
    if age is None or age < 0:
        return None
    if age < 30:
        return "under 30"
    if age >= 70:
        return "70+"
    low = int(age // 10) * 10
    return f"{low}-{low + 9}"


def build_llm_profile_context(
    *,
    full_profile: dict[str, Any],
    privacy_mode: PrivacyMode,
) -> dict[str, Any]:
    """Build the minimized health profile that will be rendered into the LLM prompt."""
    base: dict[str, Any] = {
        "age_band": age_band(full_profile.get("age")),
        "activity_level": full_profile.get("activity_level"),
    }

    if privacy_mode == "strict":
        # No weight/height, no free-text conditions, medications or allergies.
        return {k: v for k, v in base.items() if v is not None}

    if privacy_mode == "standard":
        base["health_goals"] = full_profile.get("health_goals") or None
        return {k: v for k, v in base.items() if v is not None}

    # explicit
    return _round_floats(dict(full_profile), ndigits=2)


def build_llm_genetic_context(
    *,
    insights: list[dict[str, Any]],
    privacy_mode: PrivacyMode,
) -> list[dict[str, Any]]:
    """Minimize per-marker insights; strict mode drops the raw variant code."""
    if privacy_mode == "strict":
        return [{k: v for k, v in item.items() if k != "variant"} for item in insights]
    return [dict(item) for item in insights]
