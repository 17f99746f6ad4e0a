"""Five weighted pillars behind the enhanced 0-1 confidence.

Each assessor returns a value in [0, 1] and appends the names of the signals it
used to ``reasons``. Weights and per-signal scores come from the policy.
"""

from typing import Any, List, Mapping, Optional

from silentverify.config.policy import ConfidencePolicy
from silentverify.signals.evidence import EvidenceSignals
from silentverify.signals.expectations import ExpectationStrength, classify_expectation

PILLARS = (
    "promiseStrength",
    "observationStrength",
    "correlationQuality",
    "guardrails",
    "evidenceCompleteness",
)

_PROMISE_SCORES = {
    ExpectationStrength.PROVEN: ("promiseProven", "PROMISE_PROVEN"),
    ExpectationStrength.OBSERVED: ("promiseObserved", "PROMISE_OBSERVED"),
    ExpectationStrength.WEAK: ("promiseWeak", "PROMISE_WEAK"),
    ExpectationStrength.UNKNOWN: ("promiseUnknown", "PROMISE_UNKNOWN"),
}


def _m(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _positive(payload: Mapping[str, Any], key: str) -> bool:
    value = payload.get(key)
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def ui_feedback_confirmed(sensors: Mapping[str, Any], signals: EvidenceSignals) -> bool:
    score = _m(sensors.get("uiFeedback")).get("overallUiFeedbackScore") or 0
    return signals.ui_feedback_detected or (isinstance(score, (int, float)) and score > 0.5)


def assess_promise_strength(
    expectation: Optional[Mapping[str, Any]], reasons: List[str], policy: ConfidencePolicy
) -> float:
    if expectation is None:
        reasons.append("PROMISE_UNKNOWN")
        return 0.0
    key, reason = _PROMISE_SCORES[classify_expectation(expectation)]
    reasons.append(reason)
    return policy.base_scores[key]


def assess_observation_strength(
    sensors: Mapping[str, Any],
    signals: EvidenceSignals,
    reasons: List[str],
    policy: ConfidencePolicy,
) -> float:
    scores = policy.base_scores
    network = _m(sensors.get("network"))
    observed = (
        (signals.url_changed, "urlChanged", "OBS_URL_CHANGED"),
        (signals.dom_changed, "domChanged", "OBS_DOM_CHANGED"),
        (ui_feedback_confirmed(sensors, signals), "uiFeedbackConfirmed", "OBS_UI_FEEDBACK_CONFIRMED"),
        (signals.console_errors or _positive(_m(sensors.get("console")), "errors"),
         "consoleErrors", "OBS_CONSOLE_ERRORS"),
        (signals.network_failed, "networkFailure", "OBS_NETWORK_FAILURE"),
        (_positive(network, "successfulRequests") and not signals.network_failed,
         "networkSuccess", "OBS_NETWORK_SUCCESS"),
    )
    strength = 0.0
    for hit, key, reason in observed:
        if hit:
            reasons.append(reason)
            strength += scores[key]
    if not any(hit for hit, _, _ in observed):
        reasons.append("OBS_NO_SIGNALS")
        return 0.0
    return min(1.0, strength)


def assess_correlation_quality(
    sensors: Mapping[str, Any],
    evidence: Mapping[str, Any],
    reasons: List[str],
    policy: ConfidencePolicy,
) -> float:
    scores = policy.base_scores
    correlation = _m(evidence.get("correlation"))
    quality = 0.5

    if evidence.get("timing") or sensors.get("timing"):
        reasons.append("CORR_TIMING_ALIGNED")
        quality += scores["timingAligned"]
    if correlation.get("routeMatched") is True or _m(evidence.get("routeDefinition")).get("path"):
        reasons.append("CORR_ROUTE_MATCHED")
        quality += scores["routeMatched"]
    if _m(evidence.get("networkRequest")).get("matched") is True or correlation.get("requestMatched") is True:
        reasons.append("CORR_REQUEST_MATCHED")
        quality += scores["requestMatched"]
    if evidence.get("traceId") or _m(evidence.get("source")).get("file"):
        reasons.append("CORR_TRACE_LINKED")
        quality += scores["traceLinked"]

    if quality < 0.6:
        reasons.append("CORR_WEAK_CORRELATION")
    return min(1.0, quality)


def assess_guardrails(
    finding_type: Optional[str],
    sensors: Mapping[str, Any],
    signals: EvidenceSignals,
    reasons: List[str],
) -> float:
    """Starts at 1.0; each contradiction of a silent failure takes a fixed bite."""
    network = _m(sensors.get("network"))
    navigation = _m(sensors.get("navigation"))
    ui_changed = _m(_m(sensors.get("uiSignals")).get("diff")).get("changed") is True
    url_changed = navigation.get("urlChanged") is True
    silent_type = "silent_failure" in (finding_type or "")
    score = 1.0

    urls = network.get("observedRequestUrls") or []
    if any(isinstance(u, str) and "/api/analytics" in u for u in urls) and not url_changed and not ui_changed:
        reasons.append("GUARD_ANALYTICS_FILTERED")
        score -= 0.2

    if navigation.get("shallowRouting") is True and not url_changed:
        reasons.append("GUARD_SHALLOW_ROUTING")
        score -= 0.3

    feedback = ui_feedback_confirmed(sensors, signals)
    if _positive(network, "successfulRequests") and not ui_changed and not feedback and silent_type:
        reasons.append("GUARD_NETWORK_SUCCESS_NO_UI")
        score -= 0.2

    if feedback and silent_type:
        reasons.append("GUARD_UI_FEEDBACK_PRESENT")
        score -= 0.4

    if score < 0.6:
        reasons.append("GUARD_CONTRADICTION_DETECTED")
    return max(0.0, score)


def assess_evidence_completeness(
    sensors: Mapping[str, Any],
    evidence: Mapping[str, Any],
    reasons: List[str],
    policy: ConfidencePolicy,
) -> float:
    if evidence.get("isComplete") is True:
        return 1.0

    scores = policy.base_scores
    before_after = _m(evidence.get("beforeAfter"))
    completeness = 0.0

    if before_after.get("beforeScreenshot") and before_after.get("afterScreenshot"):
        reasons.append("EVIDENCE_SCREENSHOTS")
        completeness += scores["screenshots"]
    if evidence.get("traceId") or sensors.get("traceId"):
        reasons.append("EVIDENCE_TRACES")
        completeness += scores["traces"]
    if isinstance(evidence.get("signals"), Mapping) and evidence["signals"]:
        reasons.append("EVIDENCE_SIGNALS")
        completeness += scores["signals"]
    if _m(evidence.get("source")).get("astSource") or _m(evidence.get("navigationTrigger")).get("astSource"):
        reasons.append("EVIDENCE_SNIPPETS")
        completeness += scores["snippets"]

    if completeness < 0.5:
        reasons.append("EVIDENCE_INCOMPLETE")
    return min(1.0, completeness)
