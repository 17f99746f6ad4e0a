"""Canonical confidence API.

Every finding is scored by the legacy rule scorer first. Findings that carry
any truth-aware input (evidence intent, guardrails outcome, truth status or an
evidence package) are then run through the truth-aware engine and mapped back
to the legacy 0-100 shape. This is the only place the 0-1 value becomes a
0-100 score.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from silentverify.config.policy import PolicyCache
from silentverify.domain.models import to_legacy_score
from silentverify.scoring import ConfidenceScorer, ScoreResult
from silentverify.scoring.explanations import MAX_EXPLAIN
from silentverify.truth import EnhancedResult, TruthAwareEngine

logger = logging.getLogger(__name__)

# camelCase input keys -> compute() keyword arguments
INPUT_FIELDS = {
    "findingType": "finding_type",
    "expectation": "expectation",
    "sensors": "sensors",
    "comparisons": "comparisons",
    "attemptMeta": "attempt_meta",
    "evidenceIntent": "evidence_intent",
    "guardrailsOutcome": "guardrails_outcome",
    "truthStatus": "truth_status",
    "evidence": "evidence",
    "options": "options",
}


def needs_enhanced_path(
    *,
    evidence_intent: Optional[Mapping[str, Any]] = None,
    guardrails_outcome: Optional[Mapping[str, Any]] = None,
    truth_status: Any = None,
    evidence: Optional[Mapping[str, Any]] = None,
) -> bool:
    return bool(
        evidence_intent
        or guardrails_outcome
        or truth_status
        or (evidence or {}).get("evidencePackage")
    )


def _canonical_explain(enhanced: EnhancedResult, legacy: ScoreResult):
    for source in (enhanced.reason_codes, enhanced.top_reasons, enhanced.explanation, legacy.explain):
        if source:
            return list(source)[:MAX_EXPLAIN]
    return []


def to_canonical(enhanced: EnhancedResult, legacy: ScoreResult) -> Dict[str, Any]:
    """Map an enhanced result onto the legacy output shape plus audit fields."""
    explanation = enhanced.confidence_explanation
    return {
        "score": to_legacy_score(enhanced.confidence_after),
        "level": enhanced.level.value,
        "explain": _canonical_explain(enhanced, legacy),
        "factors": legacy.factors,
        "confidenceExplanation": {
            "whyThisConfidence": explanation.get("whyThisConfidence", ""),
            "whatWouldIncreaseConfidence": list(explanation.get("whatWouldIncreaseConfidence", [])),
            "whatWouldReduceConfidence": list(explanation.get("whatWouldReduceConfidence", [])),
        },
        "boundaryExplanation": legacy.boundary_explanation,
        "confidenceBefore": enhanced.confidence_before,
        "confidenceAfter": enhanced.confidence_after,
        "appliedInvariants": enhanced.applied_invariants,
        "truthStatus": enhanced.truth_status.value,
        "invariantViolations": [v.as_dict() for v in enhanced.invariant_violations],
        "reasonCodes": list(enhanced.reason_codes),
        "appliedPolicy": dict(enhanced.applied_policy),
    }


class ConfidenceService:
    """Single entry point for confidence. Collaborators are injected so tests
    can run against their own policy cache."""

    def __init__(
        self,
        scorer: Optional[ConfidenceScorer] = None,
        engine: Optional[TruthAwareEngine] = None,
        cache: Optional[PolicyCache] = None,
    ):
        self.scorer = scorer or ConfidenceScorer()
        self.engine = engine or TruthAwareEngine(cache)

    def compute(
        self,
        *,
        finding_type: Optional[str] = None,
        expectation: Optional[Mapping[str, Any]] = None,
        sensors: Optional[Mapping[str, Any]] = None,
        comparisons: Optional[Mapping[str, Any]] = None,
        attempt_meta: Optional[Mapping[str, Any]] = None,
        evidence_intent: Optional[Mapping[str, Any]] = None,
        guardrails_outcome: Optional[Mapping[str, Any]] = None,
        truth_status: Any = None,
        evidence: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        legacy = self.scorer.score(
            finding_type,
            expectation=expectation,
            sensors=sensors,
            comparisons=comparisons,
            attempt_meta=attempt_meta,
        )

        if not needs_enhanced_path(
            evidence_intent=evidence_intent,
            guardrails_outcome=guardrails_outcome,
            truth_status=truth_status,
            evidence=evidence,
        ):
            return legacy.as_dict()

        enhanced = self.engine.compute(
            finding_type=finding_type,
            expectation=expectation,
            sensors=sensors,
            comparisons=comparisons,
            evidence=evidence,
            evidence_intent=evidence_intent,
            guardrails_outcome=guardrails_outcome,
            truth_status=truth_status,
            options=options,
        )
        return to_canonical(enhanced, legacy)

    def compute_from_mapping(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Same as compute() for a camelCase input record; unknown keys are ignored."""
        kwargs = {INPUT_FIELDS[k]: v for k, v in params.items() if k in INPUT_FIELDS}
        return self.compute(**kwargs)


_default_service: Optional[ConfidenceService] = None


def get_default_service() -> ConfidenceService:
    global _default_service
    if _default_service is None:
        _default_service = ConfidenceService()
    return _default_service


def compute_confidence(**params) -> Dict[str, Any]:
    """Module-level shortcut over a process-wide ConfidenceService."""
    return get_default_service().compute(**params)
