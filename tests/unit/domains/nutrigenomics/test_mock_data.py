"""Tests for the built-in sample genotypes."""

from __future__ import annotations

import pytest

from nutrigen.domains.nutrigenomics.connectors.mock_data import (
    SAMPLE_GENOTYPES,
    get_sample_genotype,
    get_sample_health_profile,
)


def test_samples_are_copies():
    sample = get_sample_genotype("high_risk")
    sample["MTHFR"] = "CC"
    assert SAMPLE_GENOTYPES["high_risk"]["MTHFR"] == "TT"


def test_unknown_sample_raises():
    with pytest.raises(ValueError, match="Unknown sample"):
        get_sample_genotype("nope")


def test_unknown_profile_is_empty():
    assert get_sample_health_profile("nope") == {}


@pytest.mark.parametrize("name", sorted(SAMPLE_GENOTYPES))
def test_every_sample_validates(interpreter, name):
    assert interpreter.validate(get_sample_genotype(name)).is_valid
