"""Enhanced truth-aware confidence computation (0-1 scale).

Order of operations for one finding:

1. weighted pillars from the policy, minus the contradiction penalty
2. truth locks: non-deterministic cap, then the guardrails confidence delta
3. tentative truth status (explicit, or derived from the confidence)
4. Evidence Law gate
5. invariant enforcement, exactly once
6. status reconciliation so the final pair is legal
7. level, reason codes and explanation from the final values
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from silentverify.config.policy import ConfidencePolicy, PolicyCache
from silentverify.domain.models import (
    CONFIDENCE_RANGES,
    NON_DETERMINISTIC,
    ConfidenceLevel,
    TruthStatus,
    clamp01,
    status_for_confidence,
)
from silentverify.signals.evidence import extract_evidence_signals

from .evidence_law import apply_evidence_law
from .explanations import bound_explanation_strings, generate_truth_aware_explanation
from .guardrails import confidence_delta
from .invariants import InvariantViolation, check_confidence_invariants, guardrails_decision
from .pillars import (
    PILLARS,
    assess_correlation_quality,
    assess_evidence_completeness,
    assess_guardrails,
    assess_observation_strength,
    assess_promise_strength,
)
from .reason_codes import generate_reason_codes

logger = logging.getLogger(__name__)

TRUTH_LOCK_NON_DETERMINISTIC_CAP = "TRUTH_LOCK_NON_DETERMINISTIC_CAP"
PRECISION = 4


@dataclass(frozen=True)
class EnhancedResult:
    confidence_before: float
    confidence_after: float
    level: ConfidenceLevel
    truth_status: TruthStatus
    invariant_violations: Tuple[InvariantViolation, ...]
    reason_codes: Tuple[str, ...]
    top_reasons: Tuple[str, ...]
    explanation: Tuple[str, ...]
    confidence_explanation: Mapping[str, Any]
    applied_policy: Mapping[str, str]
    pillars: Mapping[str, float] = field(default_factory=dict)

    @property
    def applied_invariants(self) -> List[str]:
        return [v.code for v in self.invariant_violations]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "confidenceBefore": self.confidence_before,
            "confidenceAfter": self.confidence_after,
            "confidenceLevel": self.level.value,
            "truthStatus": self.truth_status.value,
            "appliedInvariants": self.applied_invariants,
            "invariantViolations": [v.as_dict() for v in self.invariant_violations],
            "reasonCodes": list(self.reason_codes),
            "topReasons": list(self.top_reasons),
            "explanation": list(self.explanation),
            "confidenceExplanation": dict(self.confidence_explanation),
            "appliedPolicy": dict(self.applied_policy),
            "pillars": dict(self.pillars),
        }


def level_for(confidence: float, policy: ConfidencePolicy) -> ConfidenceLevel:
    thresholds = policy.thresholds
    if confidence >= thresholds["high"]:
        return ConfidenceLevel.HIGH
    if confidence >= thresholds["medium"]:
        return ConfidenceLevel.MEDIUM
    if confidence >= thresholds["low"]:
        return ConfidenceLevel.LOW
    return ConfidenceLevel.UNKNOWN


def reconcile_status(
    status: TruthStatus,
    confidence: float,
    guardrails_outcome: Optional[Mapping[str, Any]],
) -> TruthStatus:
    """Final status for an enforced confidence.

    A guardrails downgrade names the status outright. Otherwise a cap that
    pushed the value under the status floor steps the status down to the
    strongest one whose range holds the value.
    """
    decision = guardrails_decision(guardrails_outcome, status)
    if decision is not None:
        status = decision
    if confidence < CONFIDENCE_RANGES[status].minimum:
        status = status_for_confidence(confidence, ceiling=status)
    return status


class TruthAwareEngine:
    """Policy-driven confidence with truth locks, Evidence Law and invariants."""

    def __init__(self, cache: Optional[PolicyCache] = None):
        self._cache = cache if cache is not None else PolicyCache()

    @property
    def cache(self) -> PolicyCache:
        return self._cache

    def compute(
        self,
        *,
        finding_type: Optional[str] = None,
        expectation: Optional[Mapping[str, Any]] = None,
        sensors: Optional[Mapping[str, Any]] = None,
        comparisons: Optional[Mapping[str, Any]] = None,
        evidence: Optional[Mapping[str, Any]] = None,
        evidence_intent: Optional[Mapping[str, Any]] = None,
        guardrails_outcome: Optional[Mapping[str, Any]] = None,
        truth_status: Optional[Any] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> EnhancedResult:
        sensors = sensors or {}
        comparisons = comparisons or {}
        evidence = evidence or {}
        options = options or {}

        policy = self._cache.get(options.get("policyPath"), options.get("projectDir"))
        locks = policy.truth_locks
        verdict = options.get("determinismVerdict")
        violations: List[InvariantViolation] = []

        # 1. pillars
        reasons: List[str] = []
        signals = extract_evidence_signals(sensors, comparisons)
        pillars = {
            "promiseStrength": assess_promise_strength(expectation, reasons, policy),
            "observationStrength": assess_observation_strength(sensors, signals, reasons, policy),
            "correlationQuality": assess_correlation_quality(sensors, evidence, reasons, policy),
            "guardrails": assess_guardrails(finding_type, sensors, signals, reasons),
            "evidenceCompleteness": assess_evidence_completeness(sensors, evidence, reasons, policy),
        }
        base = sum(pillars[name] * policy.weights[name] for name in PILLARS)
        penalty = locks["contradictionPenalty"] if pillars["guardrails"] < 0.5 else 0.0
        score = clamp01(base - penalty)

        # 2. truth locks
        cap = locks["nonDeterministicMaxConfidence"]
        if verdict == NON_DETERMINISTIC and score > cap:
            violations.append(InvariantViolation(
                TRUTH_LOCK_NON_DETERMINISTIC_CAP,
                f"Non-deterministic execution caps confidence at {cap:g}, got {round(score, PRECISION):g}",
                cap,
            ))
            score = cap

        delta = confidence_delta(guardrails_outcome)
        if delta > 0 and locks["guardrailsMaxNegative"]:
            logger.debug("Ignoring positive guardrails delta %s", delta)
        elif delta:
            score = clamp01(score + delta)

        before = round(score, PRECISION)

        # 3. tentative status
        status = TruthStatus.parse(truth_status)
        if status is None:
            status = status_for_confidence(before)

        # 4. Evidence Law
        gate = apply_evidence_law(
            status,
            before,
            evidence=evidence,
            sensors=sensors,
            comparisons=comparisons,
            enabled=bool(locks["evidenceCompleteRequired"]),
        )
        status = gate.status
        if gate.violation is not None:
            violations.append(gate.violation)

        # 5. invariants, once
        check = check_confidence_invariants(
            before,
            status,
            expectation_proof=(expectation or {}).get("proof"),
            verification_status=options.get("verificationStatus"),
            guardrails_outcome=guardrails_outcome,
        )
        violations.extend(check.violations)
        after = check.corrected_confidence

        # 6. reconcile
        status = reconcile_status(status, after, guardrails_outcome)

        # 7. derived artifacts
        applied = [v.code for v in violations]
        reason_codes = generate_reason_codes(
            expectation=expectation,
            sensors=sensors,
            evidence=evidence,
            guardrails_outcome=guardrails_outcome,
            evidence_intent=evidence_intent,
            applied_invariants=applied,
        )
        confidence_explanation = generate_truth_aware_explanation(
            confidence=after,
            truth_status=status,
            expectation=expectation,
            sensors=sensors,
            evidence=evidence,
            guardrails_outcome=guardrails_outcome,
            evidence_intent=evidence_intent,
            applied_invariants=applied,
            determinism_verdict=verdict,
            notes=[gate.note] if gate.note else [],
        )

        logger.debug(
            "%s: before=%s after=%s status=%s invariants=%s",
            finding_type, before, after, status.value, applied,
        )

        return EnhancedResult(
            confidence_before=before,
            confidence_after=after,
            level=level_for(after, policy),
            truth_status=status,
            invariant_violations=tuple(violations),
            reason_codes=tuple(reason_codes),
            top_reasons=tuple(dict.fromkeys(reasons)),
            explanation=tuple(bound_explanation_strings(confidence_explanation)),
            confidence_explanation=confidence_explanation,
            applied_policy=policy.applied(),
            pillars={name: round(value, PRECISION) for name, value in pillars.items()},
        )
