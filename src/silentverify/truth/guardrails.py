"""Readers for the external guardrails outcome payload."""

from typing import Any, Mapping, Optional


def is_downgraded(guardrails_outcome: Optional[Mapping[str, Any]]) -> bool:
    return isinstance(guardrails_outcome, Mapping) and bool(guardrails_outcome.get("downgraded"))


def confidence_delta(guardrails_outcome: Optional[Mapping[str, Any]]) -> float:
    """The numeric ``confidenceDelta``, 0 when absent or not a number."""
    if not isinstance(guardrails_outcome, Mapping):
        return 0.0
    delta = guardrails_outcome.get("confidenceDelta")
    if isinstance(delta, bool) or not isinstance(delta, (int, float)):
        return 0.0
    return float(delta)
