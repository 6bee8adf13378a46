"""Genotype-free audit trail for tool invocations.

Each event is written as one compact JSON line on the ``nutrigen.audit``
logger and also kept in a bounded in-memory ring for the ``audit_summary``
tool. The engine persists nothing itself. Attach a file handler to
``nutrigen.audit`` for a durable trail.

Events never carry a genotype or health profile. Inputs are reduced to a
SHA-256 fingerprint (``tool_input_hash``), and ``llm_disclosed`` records
whether report data was handed to an external LLM under ``privacy_mode``.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import uuid
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

audit_log = logging.getLogger("nutrigen.audit")

DEFAULT_BUFFER_SIZE = 1000


def _hash_input(data: Any) -> str:
    """Fingerprint a tool input as SHA-256 over sorted, compact JSON.

    Returns an empty string when ``data`` cannot be rendered as JSON, so an
    odd input never blocks the audit write.
    """
    try:
        canonical = json.dumps(data, sort_keys=True, separators=(",", ":"))
    except (TypeError, ValueError):
        logger.debug("Audit input is not JSON-serializable; leaving hash empty")
        return ""
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass
class AuditEvent:
    """One audit record. ``metadata`` must hold only non-sensitive counters and labels."""

    action: str
    tool_name: str = ""
    tool_input_hash: str = ""
    privacy_mode: str | None = None
    llm_provider: str | None = None
    llm_disclosed: bool = False
    report_id: str | None = None
    duration_ms: float | None = None
    status: str = "success"  # or "failure"
    error_type: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class AuditLogger:
    """Thread-safe audit sink with a bounded buffer of recent events.

    The oldest events drop off once ``buffer_size`` is reached; the
    ``nutrigen.audit`` log stream still carries every event.
    """

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        self._events: deque[dict[str, Any]] = deque(maxlen=buffer_size)
        self._lock = threading.Lock()

    def log_event(self, event: AuditEvent) -> str:
        """Emit ``event`` and return the id assigned to it."""
        event_id = str(uuid.uuid4())
        record: dict[str, Any] = {
            "id": event_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        record.update(asdict(event))
        if not record["metadata"]:
            del record["metadata"]

        audit_log.info(json.dumps(record, separators=(",", ":"), default=str))
        with self._lock:
            self._events.append(record)
        return event_id

    def log_tool_call(
        self,
        tool_name: str,
        tool_input: Any = None,
        *,
        privacy_mode: str | None = None,
        llm_provider: str | None = None,
        llm_disclosed: bool = False,
        report_id: str | None = None,
        duration_ms: float | None = None,
        status: str = "success",
        error_type: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Record one MCP tool invocation.

        ``tool_input`` is only fingerprinted; the raw value is discarded.
        ``duration_ms`` is rounded to microsecond precision.
        """
        event = AuditEvent(
            action="tool_invocation",
            tool_name=tool_name,
            tool_input_hash=_hash_input(tool_input) if tool_input else "",
            privacy_mode=privacy_mode,
            llm_provider=llm_provider,
            llm_disclosed=llm_disclosed,
            report_id=report_id,
            duration_ms=round(duration_ms, 3) if duration_ms is not None else None,
            status=status,
            error_type=error_type,
            metadata=dict(metadata or {}),
        )
        return self.log_event(event)

    def get_events(self, *, tool_name: str | None = None, limit: int = 50) -> list[dict[str, Any]]:
        """Buffered events, newest first, optionally for a single tool."""
        with self._lock:
            snapshot = list(self._events)
        newest_first = reversed(snapshot)
        if tool_name:
            newest_first = (e for e in newest_first if e.get("tool_name") == tool_name)
        return [e for _, e in zip(range(limit), newest_first)]

    def count_events(self) -> int:
        with self._lock:
            return len(self._events)

    def count_disclosures(self) -> int:
        """Buffered events whose report data reached an external LLM."""
        with self._lock:
            return sum(1 for e in self._events if e.get("llm_disclosed"))
