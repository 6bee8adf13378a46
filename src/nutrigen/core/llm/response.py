"""Response parsing and guardrail enforcement for LLM output."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

REDACTION_TEXT = "[Removed: contains prohibited health guidance]"

# Heuristic detection of unsafe phrasing. The narrative is consumer
# wellness guidance, never diagnosis, prescription or prognosis.
PROHIBITED_INDICATORS: dict[str, tuple[str, ...]] = {
    "making medical diagnoses": (
        "you have been diagnosed",
        "you are suffering from",
        "this is a sign of",
        "you have a condition",
    ),
    "prescribing treatments": (
        "take this medication",
        "stop taking your medication",
        "i prescribe",
        "instead of your medication",
    ),
    "making disease predictions": (
        "you will develop",
        "you are at high risk of dying",
        "guaranteed to cure",
        "this will cure",
    ),
}

_FENCE = re.compile(r"^\s*```(?:json|JSON)?\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)


@dataclass
class GuardrailCheck:
    """Result of checking text against the prohibited-pattern table."""

    passed: bool
    flags: list[str] = field(default_factory=list)


def check_guardrails(content: str) -> GuardrailCheck:
    """Check LLM response text for prohibited diagnostic or prescriptive phrasing."""
    flags: list[str] = []
    content_lower = content.lower()

    for action, patterns in PROHIBITED_INDICATORS.items():
        for pattern in patterns:
            if pattern in content_lower:
                flags.append(f"prohibited_pattern_detected: {action} ('{pattern}')")

    if flags:
        logger.warning("Guardrail flags: %s", flags)

    return GuardrailCheck(passed=not flags, flags=flags)


def sanitize_content(content: str, guardrail_check: GuardrailCheck) -> str:
    """Redact sentences containing the prohibited phrases that were detected.

    If the guardrail check passed, return content unchanged.
    """
    if guardrail_check.passed:
        return content

    prohibited_phrases: list[str] = []
    for flag in guardrail_check.flags:
        match = re.search(r"\('([^']+)'\)", flag)
        if match:
            prohibited_phrases.append(match.group(1))

    sanitized = content
    for phrase in prohibited_phrases:
        pattern = re.compile(
            r"[^.!?\n]*" + re.escape(phrase) + r"[^.!?\n]*[.!?]?",
            re.IGNORECASE,
        )
        sanitized = pattern.sub(REDACTION_TEXT, sanitized)

    return sanitized


def sanitize_structure(data: Any) -> tuple[Any, list[str]]:
    """Apply guardrails to every string inside a parsed JSON structure.

    Returns: (sanitized copy, flags)
    """
    flags: list[str] = []

    def _walk(value: Any) -> Any:
        if isinstance(value, str):
            check = check_guardrails(value)
            if check.passed:
                return value
            flags.extend(check.flags)
            return sanitize_content(value, check)
        if isinstance(value, dict):
            return {k: _walk(v) for k, v in value.items()}
        if isinstance(value, list):
            return [_walk(v) for v in value]
        return value

    return _walk(data), flags


def extract_json_object(content: str) -> dict[str, Any]:
    """Parse a JSON object from LLM output, tolerating markdown code fences.

    Raises:
        ValueError: if no JSON object can be decoded.
    """
    text = content.strip()
    fenced = _FENCE.match(text)
    if fenced:
        text = fenced.group(1).strip()
    elif not text.startswith("{"):
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise ValueError("No JSON object found in LLM response")
        text = text[start:end + 1]

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"LLM response is not valid JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data
