import itertools
import json

import pytest

from silentverify.config.policy import PolicyCache
from silentverify.domain.models import CONFIDENCE_RANGES, ConfidenceLevel, TruthStatus
from silentverify.truth.engine import TRUTH_LOCK_NON_DETERMINISTIC_CAP, TruthAwareEngine, reconcile_status

STRONG = dict(
    finding_type="observed_break",
    expectation={"proof": "PROVEN_EXPECTATION"},
    sensors={"network": {"totalRequests": 2, "successfulRequests": 2}},
    comparisons={"hasUrlChange": True, "hasDomChange": True},
    evidence={
        "isComplete": True,
        "timing": {"deltaMs": 120},
        "correlation": {"routeMatched": True, "requestMatched": True},
        "traceId": "trace-1",
    },
)


@pytest.fixture
def engine() -> TruthAwareEngine:
    return TruthAwareEngine(PolicyCache())


def test_strong_evidence_is_confirmed_high(engine):
    result = engine.compute(**STRONG)

    assert result.confidence_before == pytest.approx(0.895)
    assert result.confidence_after == result.confidence_before
    assert result.truth_status is TruthStatus.CONFIRMED
    assert result.level is ConfidenceLevel.HIGH
    assert result.applied_invariants == []
    assert result.applied_policy == {"version": "1.0.0", "source": "default"}
    assert result.pillars["evidenceCompleteness"] == 1.0


def test_non_deterministic_verdict_caps_confidence(engine):
    result = engine.compute(**STRONG, options={"determinismVerdict": "NON_DETERMINISTIC"})

    assert result.confidence_before == 0.6
    assert result.applied_invariants == [TRUTH_LOCK_NON_DETERMINISTIC_CAP]
    assert result.truth_status is TruthStatus.SUSPECTED
    assert result.level is ConfidenceLevel.MEDIUM
    assert "NON_DETERMINISTIC_CAP" in result.reason_codes


def test_confirmed_without_evidence_becomes_suspected(engine):
    result = engine.compute(finding_type="observed_break", truth_status="CONFIRMED")

    assert result.truth_status is TruthStatus.SUSPECTED
    assert result.applied_invariants == ["EVIDENCE_REQUIRED_FOR_CONFIRMED", "INV_SUSPECTED_BELOW_MIN"]
    assert result.confidence_before == pytest.approx(0.225)
    assert result.confidence_after == 0.3
    assert result.level is ConfidenceLevel.LOW
    assert "Evidence Law" in result.confidence_explanation["whyThisConfidence"]


def test_guardrails_downgrade_sets_final_status(engine):
    result = engine.compute(
        **STRONG,
        truth_status="CONFIRMED",
        guardrails_outcome={"downgraded": True, "finalDecision": "INFORMATIONAL", "confidenceDelta": -0.1},
    )

    assert result.confidence_before == pytest.approx(0.795)
    assert result.confidence_after == 0.29
    assert result.truth_status is TruthStatus.INFORMATIONAL
    assert result.applied_invariants == ["INV_GUARDRAILS_DOWNGRADE_OVERRIDE"]
    assert result.level is ConfidenceLevel.UNKNOWN
    assert result.reason_codes[:3] == ("TRUTH_LOCK_APPLIED", "GUARDRAILS_DOWNGRADE", "GUARDRAILS_ADJUSTMENT")


def test_positive_guardrails_delta_is_ignored(engine):
    plain = engine.compute(finding_type="observed_break")
    boosted = engine.compute(finding_type="observed_break", guardrails_outcome={"confidenceDelta": 0.3})
    assert boosted.confidence_before == plain.confidence_before


def test_cap_below_status_range_steps_status_down(engine):
    strong = dict(STRONG, expectation={"proof": "UNPROVEN_EXPECTATION"})
    result = engine.compute(**strong, truth_status="CONFIRMED")

    assert result.confidence_after == 0.39
    assert result.truth_status is TruthStatus.SUSPECTED
    assert "INV_UNPROVEN_EXPECTATION_ABOVE_MAX" in result.applied_invariants
    assert result.reason_codes[:2] == ("UNPROVEN_EXPECTATION", "TRUTH_LOCK_APPLIED")


def test_reconcile_status_keeps_legal_pairs():
    assert reconcile_status(TruthStatus.CONFIRMED, 0.8, None) is TruthStatus.CONFIRMED
    assert reconcile_status(TruthStatus.CONFIRMED, 0.49, None) is TruthStatus.SUSPECTED
    assert reconcile_status(TruthStatus.SUSPECTED, 0.2, None) is TruthStatus.INFORMATIONAL
    assert reconcile_status(
        TruthStatus.CONFIRMED, 0.0, {"downgraded": True, "finalDecision": "IGNORED"}
    ) is TruthStatus.IGNORED


STATUSES = [None, "CONFIRMED", "SUSPECTED", "INFORMATIONAL", "IGNORED"]
GUARDRAILS = [
    None,
    {"downgraded": True, "finalDecision": "SUSPECTED"},
    {"downgraded": True, "recommendedStatus": "IGNORED"},
    {"downgraded": False, "confidenceDelta": -0.5},
]
PROOFS = [None, "PROVEN_EXPECTATION", "UNPROVEN_EXPECTATION"]
OPTIONS = [{}, {"determinismVerdict": "NON_DETERMINISTIC", "verificationStatus": "VERIFIED_WITH_ERRORS"}]
EVIDENCE = [{}, STRONG["evidence"]]


@pytest.mark.parametrize(
    "status, guardrails, proof, options, evidence",
    list(itertools.product(STATUSES, GUARDRAILS, PROOFS, OPTIONS, EVIDENCE)),
)
def test_final_confidence_is_always_legal_for_final_status(engine, status, guardrails, proof, options, evidence):
    result = engine.compute(
        finding_type="network_silent_failure",
        expectation={"proof": proof} if proof else None,
        sensors=STRONG["sensors"],
        evidence=evidence,
        guardrails_outcome=guardrails,
        truth_status=status,
        options=options,
    )
    assert CONFIDENCE_RANGES[result.truth_status].contains(result.confidence_after)
    if result.truth_status is TruthStatus.IGNORED:
        assert result.confidence_after == 0
    assert len(set(result.reason_codes)) == len(result.reason_codes)


def test_output_is_deterministic_across_fresh_caches():
    kwargs = dict(STRONG, truth_status="SUSPECTED", guardrails_outcome={"confidenceDelta": -0.05})
    first = TruthAwareEngine(PolicyCache()).compute(**kwargs).as_dict()
    second = TruthAwareEngine(PolicyCache()).compute(**kwargs).as_dict()
    assert json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True)


def test_custom_policy_thresholds_change_the_level(tmp_path):
    policy = {
        "version": "9.9.9",
        "baseScores": {},
        "thresholds": {"high": 0.95, "medium": 0.5, "low": 0.1},
        "weights": {
            "promiseStrength": 0.30,
            "observationStrength": 0.25,
            "correlationQuality": 0.15,
            "guardrails": 0.15,
            "evidenceCompleteness": 0.15,
        },
        "truthLocks": {
            "evidenceCompleteRequired": False,
            "nonDeterministicMaxConfidence": 1.0,
            "guardrailsMaxNegative": False,
        },
    }
    (tmp_path / "policy.json").write_text(json.dumps(policy), encoding="utf-8")
    engine = TruthAwareEngine(PolicyCache())

    result = engine.compute(**STRONG, options={"policyPath": "policy.json", "projectDir": str(tmp_path)})

    assert result.level is ConfidenceLevel.MEDIUM
    assert result.applied_policy == {"version": "9.9.9", "source": str(tmp_path / "policy.json")}

    # truth locks stay at their defaults even though the file tried to relax them
    capped = engine.compute(
        **STRONG,
        options={"policyPath": "policy.json", "projectDir": str(tmp_path), "determinismVerdict": "NON_DETERMINISTIC"},
    )
    assert capped.confidence_before == 0.6
