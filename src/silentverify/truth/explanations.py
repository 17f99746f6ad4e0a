"""Truth-aware explanations, rendered only from computed facts."""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from silentverify.domain.models import (
    NON_DETERMINISTIC,
    OBSERVED_EXPECTATION,
    PROVEN_EXPECTATION,
    UNPROVEN_EXPECTATION,
    WEAK_EXPECTATION,
    TruthStatus,
    to_legacy_score,
)
from silentverify.signals.sensors import (
    CONSOLE,
    NETWORK,
    UI_SIGNALS,
    has_console_data,
    has_network_data,
    has_ui_data,
)

from .guardrails import confidence_delta, is_downgraded
from .reason_codes import capture_failure_count

MAX_EXPLANATION_STRINGS = 8
MAX_SUGGESTIONS_PER_SIDE = 2

_PROOF_SENTENCES = {
    PROVEN_EXPECTATION: "Expectation is proven via explicit test or declaration.",
    OBSERVED_EXPECTATION: "Expectation is observed in sensor data.",
    WEAK_EXPECTATION: "Expectation is weak or implicit.",
    UNPROVEN_EXPECTATION: "Expectation is unproven; confidence capped accordingly.",
}

_SENSOR_PHRASES = (
    (NETWORK, has_network_data, "network activity", "Provide network sensor data"),
    (CONSOLE, has_console_data, "console messages", "Provide console sensor data"),
    (UI_SIGNALS, has_ui_data, "UI signal changes", "Provide UI signal data"),
)


def _status_sentence(status: TruthStatus, score: int) -> str:
    if status is TruthStatus.CONFIRMED:
        return f"Status is CONFIRMED with {score}% confidence based on proven evidence."
    if status is TruthStatus.SUSPECTED:
        return f"Status is SUSPECTED with {score}% confidence; requires additional confirmation."
    if status is TruthStatus.INFORMATIONAL:
        return f"Status is INFORMATIONAL with {score}% confidence; insufficient for decision-making."
    return "Status is IGNORED; finding has been ruled out or suppressed."


def _guardrails_sentence(guardrails_outcome: Optional[Mapping[str, Any]]) -> Optional[str]:
    parts = []
    if is_downgraded(guardrails_outcome):
        decision = guardrails_outcome.get("finalDecision") or TruthStatus.SUSPECTED.value
        parts.append(f"Guardrails downgraded finding to {decision}")
    delta = confidence_delta(guardrails_outcome)
    if delta != 0:
        direction = "increased" if delta > 0 else "decreased"
        parts.append(f"Guardrails {direction} confidence by {abs(delta):.2f}")
    return "; ".join(parts) + "." if parts else None


def generate_truth_aware_explanation(
    *,
    confidence: float,
    truth_status: TruthStatus,
    expectation: Optional[Mapping[str, Any]] = None,
    sensors: Optional[Mapping[str, Any]] = None,
    evidence: Optional[Mapping[str, Any]] = None,
    guardrails_outcome: Optional[Mapping[str, Any]] = None,
    evidence_intent: Optional[Mapping[str, Any]] = None,
    applied_invariants: Sequence[str] = (),
    determinism_verdict: Optional[str] = None,
    notes: Iterable[str] = (),
) -> Dict[str, Any]:
    """Why this confidence (one string) and what would raise or lower it (lists).

    Sentences appear in a fixed order; a sentence whose precondition does not
    hold is left out.
    """
    expectation = expectation or {}
    sensors = sensors or {}
    evidence = evidence or {}
    proof = expectation.get("proof")
    complete = evidence.get("isComplete")

    why: List[str] = [_status_sentence(truth_status, to_legacy_score(confidence))]
    if proof:
        why.append(_PROOF_SENTENCES.get(proof, f"Expectation proof: {proof}."))

    present = [phrase for channel, has_data, phrase, _ in _SENSOR_PHRASES if has_data(sensors.get(channel))]
    if present:
        why.append(f"Sensor data present: {', '.join(present)}.")
    else:
        why.append("No sensor data available; confidence limited by absent signals.")

    if complete is False:
        why.append("Evidence is incomplete, reducing confidence.")
    elif complete is True:
        why.append("Evidence is complete.")

    guardrails = _guardrails_sentence(guardrails_outcome)
    if guardrails:
        why.append(guardrails)

    failures = capture_failure_count(evidence_intent)
    if failures:
        why.append(f"{failures} evidence capture failure(s) detected.")

    if applied_invariants:
        why.append(f"{len(applied_invariants)} invariant(s) enforced to ensure correctness.")

    why.extend(notes)

    increase: List[str] = []
    if truth_status in (TruthStatus.SUSPECTED, TruthStatus.INFORMATIONAL):
        increase.append("Upgrade to CONFIRMED status via additional evidence")
    if proof != PROVEN_EXPECTATION:
        increase.append("Achieve PROVEN expectation strength")
    if complete is False:
        increase.append("Provide complete evidence package")
    for channel, has_data, _, remedy in _SENSOR_PHRASES:
        if not has_data(sensors.get(channel)):
            increase.append(remedy)

    reduce: List[str] = []
    if determinism_verdict != NON_DETERMINISTIC:
        reduce.append("Non-deterministic execution detected")
    if proof == UNPROVEN_EXPECTATION and is_downgraded(guardrails_outcome):
        reduce.append("Contradiction between expectation strength and guardrails outcome")
    reduce.append("Loss of evidence signals or completeness")
    if is_downgraded(guardrails_outcome):
        reduce.append("Guardrails outcome requesting downgrade")

    return {
        "whyThisConfidence": " ".join(why),
        "whatWouldIncreaseConfidence": increase or ["Maintain current evidence and sensor quality"],
        "whatWouldReduceConfidence": reduce,
    }


def bound_explanation_strings(explanation: Mapping[str, Any]) -> List[str]:
    """Why, then at most two increase and two reduce suggestions; eight strings at most."""
    strings: List[str] = []
    if explanation.get("whyThisConfidence"):
        strings.append(explanation["whyThisConfidence"])
    for item in list(explanation.get("whatWouldIncreaseConfidence") or [])[:MAX_SUGGESTIONS_PER_SIDE]:
        strings.append(f"To increase: {item}")
    for item in list(explanation.get("whatWouldReduceConfidence") or [])[:MAX_SUGGESTIONS_PER_SIDE]:
        strings.append(f"To reduce: {item}")
    return strings[:MAX_EXPLANATION_STRINGS]
