"""Evidence Law: CONFIRMED requires substantive observable evidence.

The gate runs before range enforcement. A CONFIRMED finding with no
substantive evidence becomes SUSPECTED and the downgrade is recorded as a
violation, so it shows up with the other applied invariants.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from silentverify.domain.models import TruthStatus

from .invariants import InvariantViolation

logger = logging.getLogger(__name__)

EVIDENCE_REQUIRED_FOR_CONFIRMED = "EVIDENCE_REQUIRED_FOR_CONFIRMED"
EVIDENCE_LAW_NOTE = (
    "Evidence Law: CONFIRMED requires substantive observable evidence; "
    "status downgraded to SUSPECTED."
)

CHANGE_FLAGS = ("hasUrlChange", "hasDomChange", "hasVisibleChange")
UI_CHANGE_FLAGS = ("changed", "hasAnyDelta", "domChanged")
UI_STATE_FLAGS = ("hasErrorSignal", "hasStatusSignal", "hasLiveRegion", "hasDialog")


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _positive(payload: Mapping[str, Any], key: str) -> bool:
    value = payload.get(key)
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def _package_complete(evidence: Mapping[str, Any]) -> bool:
    return (
        evidence.get("isComplete") is True
        or _mapping(evidence.get("evidencePackage")).get("isComplete") is True
    )


def _observed_change(evidence: Mapping[str, Any], comparisons: Mapping[str, Any]) -> bool:
    return any(
        comparisons.get(flag) is True or evidence.get(flag) is True
        for flag in CHANGE_FLAGS
    )


def _screenshots(evidence: Mapping[str, Any]) -> bool:
    before_after = _mapping(evidence.get("beforeAfter"))
    return bool(before_after.get("beforeScreenshot")) and bool(before_after.get("afterScreenshot"))


def _network_activity(network: Mapping[str, Any]) -> bool:
    return any(_positive(network, k) for k in ("totalRequests", "failedRequests", "successfulRequests"))


def _console_activity(console: Mapping[str, Any]) -> bool:
    entries = console.get("entries")
    return (
        _positive(console, "errors")
        or _positive(console, "warnings")
        or (isinstance(entries, (list, tuple)) and len(entries) > 0)
    )


def _ui_change(ui_signals: Mapping[str, Any]) -> bool:
    diff = _mapping(ui_signals.get("diff")) or ui_signals
    if any(diff.get(flag) is True for flag in UI_CHANGE_FLAGS):
        return True
    for snapshot in (_mapping(ui_signals.get("before")), _mapping(ui_signals.get("after"))):
        if any(snapshot.get(flag) is True for flag in UI_STATE_FLAGS):
            return True
    return False


def has_substantive_evidence(
    *,
    evidence: Optional[Mapping[str, Any]] = None,
    sensors: Optional[Mapping[str, Any]] = None,
    comparisons: Optional[Mapping[str, Any]] = None,
) -> bool:
    evidence = _mapping(evidence)
    sensors = _mapping(sensors)
    comparisons = _mapping(comparisons)
    return (
        _package_complete(evidence)
        or _observed_change(evidence, comparisons)
        or _screenshots(evidence)
        or _network_activity(_mapping(sensors.get("network")))
        or _console_activity(_mapping(sensors.get("console")))
        or _ui_change(_mapping(sensors.get("uiSignals")))
    )


@dataclass(frozen=True)
class EvidenceLawResult:
    status: TruthStatus
    violation: Optional[InvariantViolation] = None

    @property
    def downgraded(self) -> bool:
        return self.violation is not None

    @property
    def note(self) -> Optional[str]:
        return EVIDENCE_LAW_NOTE if self.downgraded else None


def apply_evidence_law(
    status: TruthStatus,
    confidence: float,
    *,
    evidence: Optional[Mapping[str, Any]] = None,
    sensors: Optional[Mapping[str, Any]] = None,
    comparisons: Optional[Mapping[str, Any]] = None,
    enabled: bool = True,
) -> EvidenceLawResult:
    if not enabled or status is not TruthStatus.CONFIRMED:
        return EvidenceLawResult(status)
    if has_substantive_evidence(evidence=evidence, sensors=sensors, comparisons=comparisons):
        return EvidenceLawResult(status)

    logger.debug("Evidence Law downgrade: CONFIRMED without substantive evidence")
    return EvidenceLawResult(
        TruthStatus.SUSPECTED,
        InvariantViolation(
            EVIDENCE_REQUIRED_FOR_CONFIRMED,
            "CONFIRMED status requires substantive observable evidence; downgraded to SUSPECTED",
            confidence,
        ),
    )
