"""Rule-based confidence scoring for silent-failure findings."""

import logging
from typing import Any, Mapping, Optional, Tuple

from silentverify.domain.models import ConfidenceLevel
from silentverify.signals.evidence import extract_evidence_signals
from silentverify.signals.expectations import (
    ExpectationStrength,
    base_score_for_strength,
    classify_expectation,
)
from silentverify.signals.sensors import SensorPresence, sensors_provided, sensors_with_data

from .explanations import MAX_EXPLAIN, build_confidence_explanation, ordered_explain
from .models import ScoreResult
from .rules import RULE_TABLE, RuleContext, apply_rules, rules_for

logger = logging.getLogger(__name__)

HIGH_THRESHOLD = 80
MEDIUM_THRESHOLD = 55
SCORE_MIN, SCORE_MAX = 0, 100

MISSING_SENSOR_PENALTY = 25
NON_PROVEN_PENALTY = 10

# post-gating caps for OBSERVED expectations
OBSERVED_SINGLE_CAP = 49
OBSERVED_REPEATED_CAP = 79

MEDIUM_CEILING = 79  # score >= 80 but HIGH denied, all sensors supplied
MEDIUM_FLOOR = 76    # score >= 80 but HIGH denied, no channel had data


def _gate(
    score: int,
    strength: ExpectationStrength,
    provided: SensorPresence,
    with_data: SensorPresence,
) -> Tuple[int, ConfidenceLevel, Optional[str]]:
    """Threshold gating. Returns (possibly adjusted score, level, boundary note)."""
    proven = strength is ExpectationStrength.PROVEN

    if score >= HIGH_THRESHOLD:
        if proven and with_data.all:
            note = None
            if score < 82:
                note = (f"Near threshold: score {score:.1f} >= {HIGH_THRESHOLD} threshold, "
                        "assigned HIGH (proven expectation + all sensors)")
            return score, ConfidenceLevel.HIGH, note

        if provided.all:
            score = min(score, MEDIUM_CEILING)
        if not with_data.any:
            score = max(score, MEDIUM_FLOOR)
        if not proven:
            note = f"Assigned MEDIUM: score {score:.1f} >= {HIGH_THRESHOLD} but expectation not proven"
        else:
            note = f"Assigned MEDIUM: score {score:.1f} >= {HIGH_THRESHOLD} but sensors lack data"
        return score, ConfidenceLevel.MEDIUM, note

    if score >= MEDIUM_THRESHOLD:
        note = None
        if score < 57:
            note = (f"Near threshold: score {score:.1f} >= {MEDIUM_THRESHOLD} threshold, "
                    "assigned MEDIUM (above LOW boundary)")
        elif score > 77:
            note = (f"Near threshold: score {score:.1f} < {HIGH_THRESHOLD} threshold, "
                    "kept MEDIUM (below HIGH boundary)")
        return score, ConfidenceLevel.MEDIUM, note

    note = None
    if score > 52:
        note = (f"Near threshold: score {score:.1f} < {MEDIUM_THRESHOLD} threshold, "
                "kept LOW (below MEDIUM boundary)")
    return score, ConfidenceLevel.LOW, note


class ConfidenceScorer:
    """Legacy 0-100 rule scorer; reports its result on the canonical 0-1 scale."""

    def score(
        self,
        finding_type: str,
        *,
        expectation: Optional[Mapping[str, Any]] = None,
        sensors: Optional[Mapping[str, Any]] = None,
        comparisons: Optional[Mapping[str, Any]] = None,
        attempt_meta: Optional[Mapping[str, Any]] = None,
    ) -> ScoreResult:
        sensors = sensors or {}
        attempt_meta = attempt_meta if attempt_meta is not None else {}

        if finding_type not in RULE_TABLE:
            logger.warning("Unknown finding type %r, scoring from default base", finding_type)

        strength = classify_expectation(expectation)
        rule_set = rules_for(finding_type)
        base = base_score_for_strength(strength) or rule_set.base_score

        signals = extract_evidence_signals(sensors, comparisons)
        provided = sensors_provided(sensors)
        with_data = sensors_with_data(sensors)

        outcome = apply_rules(
            rule_set,
            RuleContext(signals=signals, strength=strength, expectation=expectation or {}),
        )
        penalties_total = outcome.total_penalties

        if not provided.all:
            penalties_total += MISSING_SENSOR_PENALTY
            outcome.penalties.append("Missing sensor data: " + ", ".join(provided.missing()))

        if strength is not ExpectationStrength.PROVEN:
            penalties_total += NON_PROVEN_PENALTY
            outcome.penalties.append(f"Expectation strength is {strength.value}, not PROVEN")

        raw = base + outcome.total_boosts - penalties_total
        points = max(SCORE_MIN, min(SCORE_MAX, raw))
        logger.debug(
            "%s: base=%d boosts=%d penalties=%d -> %d",
            finding_type, base, outcome.total_boosts, penalties_total, points,
        )

        points, level, boundary = _gate(points, strength, provided, with_data)
        explain = ordered_explain(outcome.boosts, outcome.penalties, strength)

        if strength is ExpectationStrength.OBSERVED:
            if not attempt_meta.get("repeated"):
                level = ConfidenceLevel.LOW
                points = min(points, OBSERVED_SINGLE_CAP)
            elif level is ConfidenceLevel.HIGH:
                level = ConfidenceLevel.MEDIUM
                points = min(points, OBSERVED_REPEATED_CAP)

        explanation = build_confidence_explanation(
            level=level,
            strength=strength,
            with_data=with_data,
            boosts=outcome.boosts,
            penalties=outcome.penalties,
            attempt_meta=attempt_meta,
            boundary_explanation=boundary,
        )

        return ScoreResult(
            confidence=points / 100.0,
            level=level,
            explain=explain[:MAX_EXPLAIN],
            factors={
                "expectationStrength": strength.value,
                "sensorsPresent": with_data.as_dict(),
                "evidenceSignals": signals.as_dict(),
                "penalties": list(outcome.penalties),
                "boosts": list(outcome.boosts),
            },
            confidence_explanation=explanation,
            boundary_explanation=boundary,
            points=points,
        )
