"""MCP Resources for marker catalog and risk-weight discovery."""

from __future__ import annotations

import json
from typing import Mapping

from fastmcp import FastMCP

from nutrigen.domains.nutrigenomics.domain_logic.catalog import MARKER_CATALOG
from nutrigen.domains.nutrigenomics.domain_logic.models import RiskCategory


def register_catalog_resources(
    mcp: FastMCP,
    risk_weights: Mapping[RiskCategory, Mapping[str, float]],
) -> None:
    """Register catalog discovery resources on the MCP server."""

    @mcp.resource("catalog://nutrigenomics/markers")
    def marker_catalog_resource() -> str:
        """Every supported genetic marker with its known variants and phenotypes."""
        return json.dumps(
            {
                "marker_count": len(MARKER_CATALOG),
                "markers": [
                    {
                        "marker": definition.marker.value,
                        "name": definition.name,
                        "reference_variant": definition.reference_variant.value,
                        "variants": [
                            {
                                "variant": v.variant.value,
                                "phenotype": v.phenotype,
                                "domain": v.implication.domain.value,
                                "summary": v.implication.summary,
                                "confidence": v.confidence,
                            }
                            for v in definition.variants.values()
                        ],
                    }
                    for definition in MARKER_CATALOG.values()
                ],
            },
            indent=2,
        )

    @mcp.resource("catalog://nutrigenomics/risk-weights")
    def risk_weights_resource() -> str:
        """The genetic factor weights in use for each risk category."""
        return json.dumps(
            {
                "note": "Uncalibrated product constants, pending domain-expert review.",
                "weights": {
                    category.value: dict(weights) for category, weights in risk_weights.items()
                },
            },
            indent=2,
        )
