import json
from unittest.mock import MagicMock

import pytest

import silentverify.api as api_module
from silentverify.api import ConfidenceService, compute_confidence, needs_enhanced_path
from silentverify.config.policy import PolicyCache
from silentverify.scoring import ConfidenceScorer

PROVEN = {"proof": "PROVEN_EXPECTATION"}
ALL_SENSORS = {
    "network": {"totalRequests": 3},
    "console": {"totalMessages": 2},
    "uiSignals": {"diff": {"changed": True}},
}


@pytest.fixture
def service() -> ConfidenceService:
    return ConfidenceService(cache=PolicyCache())


def test_basic_path_returns_legacy_result_unchanged(service):
    legacy = ConfidenceScorer().score(
        "no_effect_silent_failure",
        expectation=PROVEN,
        sensors=ALL_SENSORS,
        comparisons={"hasDomChange": True},
    )
    result = service.compute(
        finding_type="no_effect_silent_failure",
        expectation=PROVEN,
        sensors=ALL_SENSORS,
        comparisons={"hasDomChange": True},
    )

    assert result == legacy.as_dict()
    assert result["score"] == 85
    assert result["level"] == "HIGH"
    assert "truthStatus" not in result


@pytest.mark.parametrize(
    "kwargs, expected",
    [
        ({}, False),
        ({"evidence": {"isComplete": True}}, False),
        ({"evidence": {"evidencePackage": {"files": []}}}, True),
        ({"truth_status": "SUSPECTED"}, True),
        ({"guardrails_outcome": {"downgraded": False}}, True),
        ({"evidence_intent": {"captureOutcomes": {}}}, True),
    ],
)
def test_needs_enhanced_path(kwargs, expected):
    assert needs_enhanced_path(**kwargs) is expected


def test_enhanced_path_maps_to_canonical_shape(service):
    result = service.compute(
        finding_type="observed_break",
        sensors={"network": {"totalRequests": 1}},
        truth_status="CONFIRMED",
        options={"determinismVerdict": "NON_DETERMINISTIC"},
    )

    assert set(result) >= {
        "score", "level", "explain", "factors", "confidenceExplanation", "boundaryExplanation",
        "appliedInvariants", "invariantViolations", "reasonCodes", "truthStatus", "appliedPolicy",
    }
    assert 0 <= result["score"] <= 100
    assert result["score"] == round(result["confidenceAfter"] * 100)
    assert result["explain"] == result["reasonCodes"][:8]
    assert result["appliedPolicy"] == {"version": "1.0.0", "source": "default"}
    assert isinstance(result["confidenceExplanation"]["whyThisConfidence"], str)
    # legacy factors survive the mapping
    assert result["factors"]["expectationStrength"] == "UNKNOWN"
    assert [v["code"] for v in result["invariantViolations"]] == result["appliedInvariants"]


def test_confirmed_without_evidence_is_never_confirmed(service):
    result = service.compute(finding_type="network_silent_failure", truth_status="CONFIRMED")
    assert result["truthStatus"] == "SUSPECTED"
    assert "EVIDENCE_REQUIRED_FOR_CONFIRMED" in result["appliedInvariants"]


def test_identical_input_gives_identical_output(service):
    params = dict(
        finding_type="missing_network_action",
        expectation={"proof": "UNPROVEN_EXPECTATION"},
        sensors=ALL_SENSORS,
        comparisons={"hasUrlChange": False},
        attempt_meta={"repeated": True},
        guardrails_outcome={"downgraded": True, "finalDecision": "SUSPECTED", "confidenceDelta": -0.2},
        evidence={"evidencePackage": {"isComplete": False}, "isComplete": False},
    )
    first = json.dumps(service.compute(**params), sort_keys=True)
    second = json.dumps(ConfidenceService(cache=PolicyCache()).compute(**params), sort_keys=True)
    assert first == second


def test_compute_from_mapping_accepts_camel_case_input(service):
    record = {
        "id": "f-1",
        "findingType": "observed_break",
        "truthStatus": "IGNORED",
        "attemptMeta": {"repeated": True},
    }
    result = service.compute_from_mapping(record)
    assert result["truthStatus"] == "IGNORED"
    assert result["score"] == 0


def test_collaborators_are_injected():
    scorer = MagicMock(wraps=ConfidenceScorer())
    service = ConfidenceService(scorer=scorer, cache=PolicyCache())
    service.compute(finding_type="observed_break")
    scorer.score.assert_called_once()


def test_module_level_compute_confidence(monkeypatch):
    monkeypatch.setattr(api_module, "_default_service", ConfidenceService(cache=PolicyCache()))
    result = compute_confidence(finding_type="observed_break", truth_status="SUSPECTED")
    assert result["truthStatus"] == "SUSPECTED"
    assert api_module.get_default_service() is api_module._default_service
