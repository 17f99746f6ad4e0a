import pytest

from silentverify.domain.models import TruthStatus
from silentverify.truth.evidence_law import (
    EVIDENCE_LAW_NOTE,
    EVIDENCE_REQUIRED_FOR_CONFIRMED,
    apply_evidence_law,
    has_substantive_evidence,
)
from silentverify.truth.explanations import bound_explanation_strings, generate_truth_aware_explanation
from silentverify.truth.reason_codes import (
    REASON_CODES,
    generate_reason_codes,
    get_reason_code_metadata,
)


class TestEvidenceLaw:

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"evidence": {"isComplete": True}},
            {"evidence": {"evidencePackage": {"isComplete": True}}},
            {"comparisons": {"hasUrlChange": True}},
            {"evidence": {"beforeAfter": {"beforeScreenshot": "a.png", "afterScreenshot": "b.png"}}},
            {"sensors": {"network": {"totalRequests": 1}}},
            {"sensors": {"console": {"entries": ["x"]}}},
            {"sensors": {"uiSignals": {"diff": {"changed": True}}}},
            {"sensors": {"uiSignals": {"after": {"hasDialog": True}}}},
        ],
    )
    def test_substantive_evidence_sources(self, kwargs):
        assert has_substantive_evidence(**kwargs)

    def test_nothing_observed_is_not_substantive(self):
        assert not has_substantive_evidence()
        assert not has_substantive_evidence(
            evidence={"beforeAfter": {"beforeScreenshot": "a.png"}},
            sensors={"network": {"totalRequests": 0}, "console": {}, "uiSignals": {"diff": {}}},
            comparisons={"hasUrlChange": False},
        )

    def test_confirmed_without_evidence_is_downgraded(self):
        result = apply_evidence_law(TruthStatus.CONFIRMED, 0.9)
        assert result.status is TruthStatus.SUSPECTED
        assert result.downgraded
        assert result.violation.code == EVIDENCE_REQUIRED_FOR_CONFIRMED
        assert result.note == EVIDENCE_LAW_NOTE

    def test_other_statuses_pass(self):
        result = apply_evidence_law(TruthStatus.SUSPECTED, 0.5)
        assert result.status is TruthStatus.SUSPECTED and not result.downgraded

    def test_disabled_gate(self):
        assert apply_evidence_law(TruthStatus.CONFIRMED, 0.9, enabled=False).status is TruthStatus.CONFIRMED


class TestReasonCodes:

    def test_sorted_by_priority_without_duplicates(self):
        codes = generate_reason_codes(
            expectation={"proof": "UNPROVEN_EXPECTATION"},
            sensors={"network": {"totalRequests": 2}, "console": {}},
            evidence={"isComplete": False, "signals": {"x": 1}},
            guardrails_outcome={"downgraded": True, "confidenceDelta": -0.1},
            evidence_intent={"captureOutcomes": {"screenshot": {"captured": False}}},
            applied_invariants=["TRUTH_LOCK_NON_DETERMINISTIC_CAP", "INV_CONFIRMED_BELOW_MIN", "INV_CONFIRMED_ABOVE_MAX"],
        )
        assert codes == [
            "CONTRADICTION_DETECTED",
            "UNPROVEN_EXPECTATION",
            "TRUTH_LOCK_APPLIED",
            "NON_DETERMINISTIC_CAP",
            "EVIDENCE_COMPLETENESS_REQUIRED",
            "INCOMPLETE_EVIDENCE",
            "EVIDENCE_INTENT_FAILURES",
            "EVIDENCE_SIGNALS_PRESENT",
            "GUARDRAILS_DOWNGRADE",
            "GUARDRAILS_ADJUSTMENT",
            "GUARDRAILS_CONFIDENCE_DELTA",
            "NETWORK_DATA_PRESENT",
            "CONSOLE_DATA_ABSENT",
        ]
        priorities = [REASON_CODES[c].priority for c in codes]
        assert priorities == sorted(priorities)

    def test_absent_channel_only_reported_when_supplied(self):
        assert generate_reason_codes(sensors={}) == []
        assert generate_reason_codes(sensors={"uiSignals": {}}) == ["UI_SIGNALS_ABSENT"]

    @pytest.mark.parametrize(
        "sensors, expected",
        [
            ({"uiSignals": {"after": {"hasErrorSignal": True}}}, ["UI_SIGNALS_PRESENT"]),
            ({"uiSignals": {"diff": {"changed": False}}}, ["UI_SIGNALS_PRESENT"]),
            ({"console": {"logs": 3}}, ["CONSOLE_DATA_PRESENT"]),
            ({"console": {"logs": 0, "errors": 0}}, ["CONSOLE_DATA_ABSENT"]),
            ({"network": {"slowRequests": 1}}, ["NETWORK_DATA_PRESENT"]),
        ],
    )
    def test_sensor_channels_reported_from_their_payload(self, sensors, expected):
        assert generate_reason_codes(sensors=sensors) == expected

    def test_expectation_codes(self):
        assert generate_reason_codes(expectation={"proof": "PROVEN_EXPECTATION"}) == ["EXPECTATION_PROVEN"]
        assert generate_reason_codes(expectation={"proof": "WEAK_EXPECTATION"}) == ["EXPECTATION_WEAK"]

    def test_metadata_lookup(self):
        assert get_reason_code_metadata("GUARDRAILS_DOWNGRADE") == {
            "code": "GUARDRAILS_DOWNGRADE",
            "category": "GUARDRAILS",
            "priority": 30,
        }
        assert get_reason_code_metadata("NOT_A_CODE") is None


class TestTruthAwareExplanation:

    def test_sentences_follow_facts(self):
        explanation = generate_truth_aware_explanation(
            confidence=0.45,
            truth_status=TruthStatus.SUSPECTED,
            expectation={"proof": "OBSERVED_EXPECTATION"},
            sensors={"network": {"totalRequests": 1}},
            evidence={"isComplete": False},
            guardrails_outcome={"downgraded": True, "finalDecision": "SUSPECTED", "confidenceDelta": -0.15},
            applied_invariants=["INV_SUSPECTED_ABOVE_MAX"],
            determinism_verdict="DETERMINISTIC",
        )
        why = explanation["whyThisConfidence"]
        assert why.startswith("Status is SUSPECTED with 45% confidence; requires additional confirmation.")
        assert "Expectation is observed in sensor data." in why
        assert "Sensor data present: network activity." in why
        assert "Evidence is incomplete, reducing confidence." in why
        assert "Guardrails downgraded finding to SUSPECTED; Guardrails decreased confidence by 0.15." in why
        assert "1 invariant(s) enforced to ensure correctness." in why

        assert explanation["whatWouldIncreaseConfidence"][:3] == [
            "Upgrade to CONFIRMED status via additional evidence",
            "Achieve PROVEN expectation strength",
            "Provide complete evidence package",
        ]
        assert "Non-deterministic execution detected" in explanation["whatWouldReduceConfidence"]
        assert "Guardrails outcome requesting downgrade" in explanation["whatWouldReduceConfidence"]

    def test_ignored_status_sentence(self):
        explanation = generate_truth_aware_explanation(confidence=0.0, truth_status=TruthStatus.IGNORED)
        assert explanation["whyThisConfidence"].startswith("Status is IGNORED")
        assert "No sensor data available" in explanation["whyThisConfidence"]

    def test_bounded_strings(self):
        strings = bound_explanation_strings({
            "whyThisConfidence": "why",
            "whatWouldIncreaseConfidence": ["a", "b", "c"],
            "whatWouldReduceConfidence": ["d", "e", "f"],
        })
        assert strings == ["why", "To increase: a", "To increase: b", "To reduce: d", "To reduce: e"]
