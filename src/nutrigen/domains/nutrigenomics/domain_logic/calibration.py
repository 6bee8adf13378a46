"""Risk-weight calibration loader, reads YAML overrides from disk.

File format (every section and key optional; values replace the defaults)::

    cardiovascular:
      APOE_E4: 3.0
      ACE_DD: 2.5
    neurological:
      COMT_MetMet: 1.2
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from nutrigen.domains.nutrigenomics.domain_logic.errors import CalibrationError
from nutrigen.domains.nutrigenomics.domain_logic.models import RiskCategory
from nutrigen.domains.nutrigenomics.domain_logic.risk_scorer import RISK_WEIGHTS

logger = logging.getLogger(__name__)

WeightTables = Mapping[RiskCategory, Mapping[str, float]]


def merge_risk_weights(overrides: Any, base: WeightTables = RISK_WEIGHTS) -> WeightTables:
    """Validate ``overrides`` and merge them onto ``base``.

    Raises:
        CalibrationError: unknown category or weight key, or a value that is
            not a finite, non-negative number.
    """
    if overrides is None:
        return base
    if not isinstance(overrides, Mapping):
        raise CalibrationError("Calibration data must be a mapping of category to weights")

    merged = {category: dict(weights) for category, weights in base.items()}
    for raw_category, weights in overrides.items():
        try:
            category = RiskCategory(str(raw_category).lower())
        except ValueError:
            raise CalibrationError(f"Unknown risk category: {raw_category}") from None
        if not isinstance(weights, Mapping):
            raise CalibrationError(f"Weights for {category.value} must be a mapping")

        for key, value in weights.items():
            if key not in merged[category]:
                raise CalibrationError(f"Unknown weight {key!r} for category {category.value}")
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise CalibrationError(f"Weight {category.value}.{key} must be a number, got {value!r}")
            if not math.isfinite(value) or value < 0:
                raise CalibrationError(f"Weight {category.value}.{key} must be finite and >= 0")
            merged[category][key] = float(value)

    return MappingProxyType({c: MappingProxyType(w) for c, w in merged.items()})


def load_risk_weights(path: str | Path | None) -> WeightTables:
    """Load calibrated weights from a YAML file, or the defaults when ``path`` is empty."""
    if not path:
        return RISK_WEIGHTS
    path = Path(path).expanduser()
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise CalibrationError(f"Cannot read calibration file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise CalibrationError(f"Invalid YAML in calibration file {path}: {exc}") from exc

    weights = merge_risk_weights(data)
    logger.info("Loaded risk-weight calibration from %s", path)
    return weights
