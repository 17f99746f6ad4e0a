from silentverify.signals.evidence import EvidenceSignals, extract_evidence_signals, has_ui_feedback
from silentverify.signals.expectations import (
    ExpectationStrength,
    base_score_for_strength,
    classify_expectation,
)


def test_classify_expectation_strength():
    assert classify_expectation(None) is ExpectationStrength.UNKNOWN
    assert classify_expectation({}) is ExpectationStrength.UNKNOWN
    assert classify_expectation({"proof": "PROVEN_EXPECTATION"}) is ExpectationStrength.PROVEN
    assert classify_expectation({"explicit": True}) is ExpectationStrength.PROVEN
    assert classify_expectation({"sourceRef": "app.js:12"}) is ExpectationStrength.PROVEN
    assert classify_expectation({"evidence": {"source": "routes.ts"}}) is ExpectationStrength.PROVEN
    assert classify_expectation({"type": "navigation"}) is ExpectationStrength.WEAK


def test_observed_marker_wins_over_proof():
    expectation = {"expectationStrength": "OBSERVED", "proof": "PROVEN_EXPECTATION"}
    assert classify_expectation(expectation) is ExpectationStrength.OBSERVED


def test_base_scores_per_strength():
    assert base_score_for_strength(ExpectationStrength.PROVEN) == 70
    assert base_score_for_strength(ExpectationStrength.OBSERVED) == 55
    assert base_score_for_strength(ExpectationStrength.WEAK) == 50
    assert base_score_for_strength(ExpectationStrength.UNKNOWN) == 0


def test_has_ui_feedback_checks_before_and_after_snapshots():
    assert not has_ui_feedback(None)
    assert not has_ui_feedback({"before": {}, "after": {}})
    assert has_ui_feedback({"after": {"hasErrorSignal": True}})
    assert has_ui_feedback({"before": {"hasDialog": True}})
    assert has_ui_feedback({"after": {"disabledElements": ["#submit"]}})


def test_extract_evidence_signals():
    signals = extract_evidence_signals(
        {
            "network": {"failedRequests": 2, "slowRequestsCount": 1},
            "console": {"hasErrors": True},
            "uiSignals": {"after": {"hasStatusSignal": True}},
        },
        {"hasUrlChange": True, "hasDomChange": False, "hasVisibleChange": True},
    )
    assert signals == EvidenceSignals(
        url_changed=True,
        dom_changed=False,
        screenshot_changed=True,
        network_failed=True,
        console_errors=True,
        ui_feedback_detected=True,
        slow_requests=True,
    )
    assert signals.as_dict()["uiFeedbackDetected"] is True


def test_extract_evidence_signals_defaults_to_false():
    assert extract_evidence_signals(None, None) == EvidenceSignals()
