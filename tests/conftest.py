"""Shared test fixtures for nutrigen tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "mock")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("RISK_WEIGHTS_PATH", "")
    monkeypatch.setenv("NARRATIVE_ENABLED", "true")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from nutrigen.domains.nutrigenomics.connectors.mock_data import (  # noqa: E402
    get_sample_genotype,
    get_sample_health_profile,
)
from nutrigen.domains.nutrigenomics.domain_logic.marker_interpreter import (  # noqa: E402
    MarkerInterpreter,
)
from nutrigen.domains.nutrigenomics.domain_logic.report_composer import (  # noqa: E402
    ReportComposer,
)
from nutrigen.domains.nutrigenomics.domain_logic.risk_scorer import RiskScorer  # noqa: E402


# ---------------------------------------------------------------------------
# Sample inputs
# ---------------------------------------------------------------------------

@pytest.fixture
def high_risk_genotype() -> dict[str, str]:
    """Risk allele at every catalog marker (CYP1A2 AA is the fast reference)."""
    return get_sample_genotype("high_risk")


@pytest.fixture
def reference_genotype() -> dict[str, str]:
    return get_sample_genotype("reference")


@pytest.fixture
def partial_genotype() -> dict[str, str]:
    """Two resolvable markers, one unknown marker, one unknown variant."""
    return get_sample_genotype("partial")


@pytest.fixture
def partial_health_profile() -> dict:
    """58, sedentary, hypertension, walnut allergy, fasting goal."""
    return get_sample_health_profile("partial")


# ---------------------------------------------------------------------------
# Pipeline components
# ---------------------------------------------------------------------------

@pytest.fixture
def interpreter() -> MarkerInterpreter:
    return MarkerInterpreter()


@pytest.fixture
def scorer() -> RiskScorer:
    return RiskScorer()


@pytest.fixture
def composer(interpreter: MarkerInterpreter, scorer: RiskScorer) -> ReportComposer:
    return ReportComposer(interpreter=interpreter, scorer=scorer)


@pytest.fixture
def high_risk_report(composer: ReportComposer, high_risk_genotype):
    return composer.generate_comprehensive_report(high_risk_genotype, {})
