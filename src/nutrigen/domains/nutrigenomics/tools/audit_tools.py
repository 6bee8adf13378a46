"""MCP tool for viewing the audit trail.

The trail is genotype-free. It records which tools were used,
when, and whether report data was sent to an external LLM, with inputs
reduced to a SHA-256 fingerprint.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from nutrigen.core.audit.logger import AuditLogger


def register_audit_tools(mcp: FastMCP, audit_logger: AuditLogger) -> None:
    """Register audit trail tools on the MCP server."""

    @mcp.tool
    async def audit_summary(ctx: Context, limit: int = 20) -> str:
        """View recent tool invocations and LLM disclosure counts for this process.

        Args:
            limit: Maximum number of recent events to return (default: 20).
        """
        recent_events = audit_logger.get_events(limit=max(1, limit))

        display_events = [
            {
                "timestamp": event.get("timestamp"),
                "tool_name": event.get("tool_name"),
                "privacy_mode": event.get("privacy_mode"),
                "llm_provider": event.get("llm_provider"),
                "llm_disclosed": bool(event.get("llm_disclosed")),
                "status": event.get("status"),
                "duration_ms": event.get("duration_ms"),
            }
            for event in recent_events
        ]

        return json.dumps({
            "status": "ok",
            "total_events": audit_logger.count_events(),
            "llm_disclosures": audit_logger.count_disclosures(),
            "recent_events": display_events,
            "note": (
                "This audit trail contains no genetic or health data. "
                "It tracks tool usage and whether data was sent to external LLMs."
            ),
        }, indent=2)
