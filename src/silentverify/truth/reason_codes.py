"""Canonical reason codes, fired from computed facts and ordered by priority."""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional

from silentverify.domain.models import (
    OBSERVED_EXPECTATION,
    PROVEN_EXPECTATION,
    UNPROVEN_EXPECTATION,
    WEAK_EXPECTATION,
)
from silentverify.signals.sensors import (
    CONSOLE,
    NETWORK,
    UI_SIGNALS,
    has_console_data,
    has_network_data,
)

from .guardrails import confidence_delta, is_downgraded


class ReasonCategory(Enum):
    CRITICAL = "CRITICAL"
    TRUTH_LOCK = "TRUTH_LOCK"
    EVIDENCE = "EVIDENCE"
    GUARDRAILS = "GUARDRAILS"
    SENSORS = "SENSORS"
    EXPECTATION = "EXPECTATION"


@dataclass(frozen=True)
class ReasonCode:
    code: str
    category: ReasonCategory
    priority: int

    def as_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "category": self.category.value, "priority": self.priority}


def _table(*entries) -> Mapping[str, ReasonCode]:
    return MappingProxyType({code: ReasonCode(code, cat, prio) for code, cat, prio in entries})


_C = ReasonCategory
REASON_CODES = _table(
    ("CONTRADICTION_DETECTED", _C.CRITICAL, 1),
    ("UNPROVEN_EXPECTATION", _C.CRITICAL, 2),
    ("TRUTH_LOCK_APPLIED", _C.TRUTH_LOCK, 10),
    ("NON_DETERMINISTIC_CAP", _C.TRUTH_LOCK, 11),
    ("EVIDENCE_COMPLETENESS_REQUIRED", _C.TRUTH_LOCK, 12),
    ("INCOMPLETE_EVIDENCE", _C.EVIDENCE, 20),
    ("EVIDENCE_INTENT_FAILURES", _C.EVIDENCE, 21),
    ("EVIDENCE_SIGNALS_PRESENT", _C.EVIDENCE, 22),
    ("GUARDRAILS_DOWNGRADE", _C.GUARDRAILS, 30),
    ("GUARDRAILS_ADJUSTMENT", _C.GUARDRAILS, 31),
    ("GUARDRAILS_CONFIDENCE_DELTA", _C.GUARDRAILS, 32),
    ("NETWORK_DATA_PRESENT", _C.SENSORS, 40),
    ("NETWORK_DATA_ABSENT", _C.SENSORS, 41),
    ("CONSOLE_DATA_PRESENT", _C.SENSORS, 42),
    ("CONSOLE_DATA_ABSENT", _C.SENSORS, 43),
    ("UI_SIGNALS_PRESENT", _C.SENSORS, 44),
    ("UI_SIGNALS_ABSENT", _C.SENSORS, 45),
    ("EXPECTATION_PROVEN", _C.EXPECTATION, 50),
    ("EXPECTATION_OBSERVED", _C.EXPECTATION, 51),
    ("EXPECTATION_WEAK", _C.EXPECTATION, 52),
)


def _counter(payload: Mapping[str, Any], key: str) -> bool:
    value = payload.get(key)
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def _console_reported(payload: Any) -> bool:
    if not isinstance(payload, Mapping):
        return False
    return has_console_data(payload) or _counter(payload, "logs")


def _ui_reported(payload: Any) -> bool:
    # any reported UI key counts, not only a positive delta
    return isinstance(payload, Mapping) and len(payload) > 0


_SENSOR_CODES = (
    (NETWORK, has_network_data, "NETWORK_DATA_PRESENT", "NETWORK_DATA_ABSENT"),
    (CONSOLE, _console_reported, "CONSOLE_DATA_PRESENT", "CONSOLE_DATA_ABSENT"),
    (UI_SIGNALS, _ui_reported, "UI_SIGNALS_PRESENT", "UI_SIGNALS_ABSENT"),
)

_EXPECTATION_CODES = {
    PROVEN_EXPECTATION: "EXPECTATION_PROVEN",
    OBSERVED_EXPECTATION: "EXPECTATION_OBSERVED",
    WEAK_EXPECTATION: "EXPECTATION_WEAK",
}


def capture_failure_count(evidence_intent: Optional[Mapping[str, Any]]) -> int:
    """Number of evidence-intent capture outcomes explicitly marked ``captured: false``."""
    if not isinstance(evidence_intent, Mapping):
        return 0
    outcomes = evidence_intent.get("captureOutcomes")
    if not isinstance(outcomes, Mapping):
        return 0
    return sum(
        1 for outcome in outcomes.values()
        if isinstance(outcome, Mapping) and outcome.get("captured") is False
    )


def generate_reason_codes(
    *,
    expectation: Optional[Mapping[str, Any]] = None,
    sensors: Optional[Mapping[str, Any]] = None,
    evidence: Optional[Mapping[str, Any]] = None,
    guardrails_outcome: Optional[Mapping[str, Any]] = None,
    evidence_intent: Optional[Mapping[str, Any]] = None,
    applied_invariants: Iterable[str] = (),
) -> List[str]:
    """Fired codes, each once, sorted by ascending priority."""
    expectation = expectation or {}
    sensors = sensors or {}
    evidence = evidence or {}
    applied_invariants = list(applied_invariants)
    proof = expectation.get("proof")
    fired: Dict[str, ReasonCode] = {}

    def fire(code: str) -> None:
        fired.setdefault(code, REASON_CODES[code])

    if proof == UNPROVEN_EXPECTATION:
        if is_downgraded(guardrails_outcome):
            fire("CONTRADICTION_DETECTED")
        fire("UNPROVEN_EXPECTATION")

    if applied_invariants:
        fire("TRUTH_LOCK_APPLIED")
        for code in applied_invariants:
            if "NON_DETERMINISTIC" in code:
                fire("NON_DETERMINISTIC_CAP")
            if "CONFIRMED" in code or "COMPLETENESS" in code:
                fire("EVIDENCE_COMPLETENESS_REQUIRED")

    if evidence.get("isComplete") is False:
        fire("INCOMPLETE_EVIDENCE")
    if capture_failure_count(evidence_intent) > 0:
        fire("EVIDENCE_INTENT_FAILURES")
    signals = evidence.get("signals")
    if isinstance(signals, Mapping) and signals:
        fire("EVIDENCE_SIGNALS_PRESENT")

    if is_downgraded(guardrails_outcome):
        fire("GUARDRAILS_DOWNGRADE")
    if confidence_delta(guardrails_outcome) != 0:
        fire("GUARDRAILS_CONFIDENCE_DELTA")
        fire("GUARDRAILS_ADJUSTMENT")

    for channel, has_data, present, absent in _SENSOR_CODES:
        payload = sensors.get(channel)
        if has_data(payload):
            fire(present)
        elif payload is not None:
            fire(absent)

    if proof in _EXPECTATION_CODES:
        fire(_EXPECTATION_CODES[proof])

    return [rc.code for rc in sorted(fired.values(), key=lambda rc: rc.priority)]


def get_reason_code_metadata(code: str) -> Optional[Dict[str, Any]]:
    reason = REASON_CODES.get(code)
    return reason.as_dict() if reason else None
