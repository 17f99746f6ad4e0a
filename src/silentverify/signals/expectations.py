"""Expectation strength classification."""

from enum import Enum
from typing import Any, Mapping, Optional

from silentverify.domain.models import PROVEN_EXPECTATION


class ExpectationStrength(Enum):
    PROVEN = "PROVEN"
    OBSERVED = "OBSERVED"
    WEAK = "WEAK"
    UNKNOWN = "UNKNOWN"


# 0 means "fall back to the finding-type base score"
STRENGTH_BASE_SCORES = {
    ExpectationStrength.PROVEN: 70,
    ExpectationStrength.OBSERVED: 55,
    ExpectationStrength.WEAK: 50,
    ExpectationStrength.UNKNOWN: 0,
}


def classify_expectation(expectation: Optional[Mapping[str, Any]]) -> ExpectationStrength:
    """Map an expectation record to its strength.

    The caller's explicit ``expectationStrength: "OBSERVED"`` marker is honoured
    before any proof metadata is considered.
    """
    if not expectation or not isinstance(expectation, Mapping):
        return ExpectationStrength.UNKNOWN

    if expectation.get("expectationStrength") == ExpectationStrength.OBSERVED.value:
        return ExpectationStrength.OBSERVED

    if expectation.get("proof") == PROVEN_EXPECTATION:
        return ExpectationStrength.PROVEN

    if expectation.get("explicit") is True or expectation.get("sourceRef"):
        return ExpectationStrength.PROVEN

    evidence = expectation.get("evidence")
    if isinstance(evidence, Mapping) and evidence.get("source"):
        return ExpectationStrength.PROVEN

    return ExpectationStrength.WEAK


def base_score_for_strength(strength: ExpectationStrength) -> int:
    return STRENGTH_BASE_SCORES[strength]
