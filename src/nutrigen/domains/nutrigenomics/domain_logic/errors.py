"""Error taxonomy for the nutrigenomics pipeline."""

from __future__ import annotations

from dataclasses import dataclass


class NutrigenError(Exception):
    """Base class for all nutrigen errors."""


class ValidationError(NutrigenError):
    """Raised when a genotype is absent or has no entries."""


class CalibrationError(NutrigenError):
    """Raised when a risk-weight calibration file is malformed."""


class NarrativeEnhancementError(NutrigenError):
    """Raised when the narrative collaborator fails or returns malformed output."""


@dataclass(frozen=True)
class PartialDataWarning:
    """An unrecognized marker or variant, recorded and dropped (non-fatal)."""

    marker: str
    variant: str | None
    message: str

    def __str__(self) -> str:
        return self.message
