"""Explanation strings for the rule-based scorer."""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from silentverify.domain.models import ConfidenceLevel
from silentverify.signals.expectations import ExpectationStrength
from silentverify.signals.sensors import SensorPresence

MAX_EXPLAIN = 8

DEFAULT_WHY = "Confidence based on available evidence"
DEFAULT_INCREASE = "Already at maximum confidence for available evidence"
DEFAULT_REDUCE = "No factors would reduce confidence further"

_SENSOR_LABELS = {"network": "network", "console": "console", "ui": "UI"}
_SENSOR_REMEDIES = {
    "network": "network monitoring",
    "console": "console error detection",
    "ui": "UI change detection",
}


def ordered_explain(
    boosts: Sequence[str],
    penalties: Sequence[str],
    strength: ExpectationStrength,
) -> List[str]:
    """Penalties, then boosts, then the unproven-strength note; duplicates dropped in order."""
    items = list(penalties) + list(boosts)
    if strength is not ExpectationStrength.PROVEN:
        items.append(f"Expectation: {strength.value}")
    return list(dict.fromkeys(items))


def _not_repeated(attempt_meta: Optional[Mapping[str, Any]]) -> bool:
    return not (attempt_meta or {}).get("repeated")


def build_confidence_explanation(
    *,
    level: ConfidenceLevel,
    strength: ExpectationStrength,
    with_data: SensorPresence,
    boosts: Sequence[str],
    penalties: Sequence[str],
    attempt_meta: Optional[Mapping[str, Any]] = None,
    boundary_explanation: Optional[str] = None,
) -> Dict[str, List[str]]:
    """Why this level, what would raise it, what would lower it."""
    proven = strength is ExpectationStrength.PROVEN
    missing = with_data.missing()
    why: List[str] = []
    increase: List[str] = []
    reduce: List[str] = []

    if boundary_explanation:
        why.append(boundary_explanation)

    if level is ConfidenceLevel.HIGH:
        why.append("High confidence: expectation is proven and all sensors captured evidence")
        if proven:
            why.append("Expectation is proven from source code")
        if with_data.all:
            why.append("All sensors (network, console, UI) were active")
        if boosts:
            why.append(f"Strong evidence: {len(boosts)} positive signal(s)")
    elif level is ConfidenceLevel.MEDIUM:
        why.append("Medium confidence: some evidence suggests a failure, but uncertainty remains")
        if proven:
            why.append("Expectation is proven from source code")
        else:
            why.append(f"Expectation strength: {strength.value} (not proven)")
        if missing:
            why.append("Missing sensor data: " + ", ".join(_SENSOR_LABELS[m] for m in missing))
        if penalties:
            why.append(f"Reducing factors: {len(penalties)} uncertainty signal(s)")
    else:
        why.append("Low confidence: limited evidence or expectation not proven")
        if not proven:
            why.append(f"Expectation strength: {strength.value} (not proven from code)")
        if missing:
            why.append("Some sensors were not active, reducing confidence")
        if _not_repeated(attempt_meta):
            why.append("Not repeated (single observation may be unreliable)")

    if level is not ConfidenceLevel.HIGH:
        if not proven:
            increase.append("Make the expectation proven by adding explicit code that promises the behavior")
        if missing:
            increase.append(
                "Enable missing sensors: " + ", ".join(_SENSOR_REMEDIES[m] for m in missing)
            )
        if _not_repeated(attempt_meta) and level is ConfidenceLevel.LOW:
            increase.append("Repeat the interaction multiple times to confirm consistency")
        if not boosts:
            increase.append("Add stronger evidence signals (network requests, console errors, UI changes)")

    if level is not ConfidenceLevel.LOW:
        if proven:
            reduce.append("If expectation becomes unproven (code changes, expectation removed)")
        if with_data.all:
            reduce.append("If sensors become unavailable or disabled")
        if boosts:
            reduce.append("If positive evidence signals disappear (network succeeds, UI feedback appears)")
    if not penalties and level is ConfidenceLevel.HIGH:
        reduce.append("If uncertainty factors appear (URL changes, partial effects, missing data)")

    return {
        "whyThisConfidence": why or [DEFAULT_WHY],
        "whatWouldIncreaseConfidence": increase or [DEFAULT_INCREASE],
        "whatWouldReduceConfidence": reduce or [DEFAULT_REDUCE],
    }
