"""Legal confidence ranges per truth status, plus the caps that tighten them.

``check_confidence_invariants`` runs every rule once, in a fixed order, against
the running corrected value: status range, unproven-expectation cap,
verified-with-errors cap, guardrails downgrade. It is never re-applied to its
own output.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from silentverify.domain.exceptions import ParameterValidationError
from silentverify.domain.models import (
    CONFIDENCE_RANGES,
    STATUS_ORDER,
    UNPROVEN_EXPECTATION,
    VERIFIED_WITH_ERRORS,
    ConfidenceLevel,
    TruthStatus,
)

from .guardrails import is_downgraded

logger = logging.getLogger(__name__)

INV_CONFIRMED_BELOW_MIN = "INV_CONFIRMED_BELOW_MIN"
INV_CONFIRMED_ABOVE_MAX = "INV_CONFIRMED_ABOVE_MAX"
INV_SUSPECTED_ABOVE_MAX = "INV_SUSPECTED_ABOVE_MAX"
INV_SUSPECTED_BELOW_MIN = "INV_SUSPECTED_BELOW_MIN"
INV_INFORMATIONAL_ABOVE_MAX = "INV_INFORMATIONAL_ABOVE_MAX"
INV_INFORMATIONAL_BELOW_MIN = "INV_INFORMATIONAL_BELOW_MIN"
INV_IGNORED_NON_ZERO = "INV_IGNORED_NON_ZERO"
INV_UNPROVEN_EXPECTATION_ABOVE_MAX = "INV_UNPROVEN_EXPECTATION_ABOVE_MAX"
INV_VERIFIED_WITH_ERRORS_ABOVE_MAX = "INV_VERIFIED_WITH_ERRORS_ABOVE_MAX"
INV_GUARDRAILS_DOWNGRADE_OVERRIDE = "INV_GUARDRAILS_DOWNGRADE_OVERRIDE"

UNPROVEN_EXPECTATION_CAP = 0.39
VERIFIED_WITH_ERRORS_CAP = 0.49

# level for corrected findings below LOW
UNPROVEN_LEVEL = "UNPROVEN"


def _fmt(value: float) -> str:
    return f"{value:g}"


@dataclass(frozen=True)
class InvariantViolation:
    code: str
    message: str
    corrected: float

    def as_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "corrected": self.corrected}


@dataclass(frozen=True)
class InvariantCheck:
    violations: Tuple[InvariantViolation, ...]
    corrected_confidence: float

    @property
    def violated(self) -> bool:
        return bool(self.violations)

    @property
    def codes(self) -> List[str]:
        return [v.code for v in self.violations]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "violated": self.violated,
            "violations": [v.as_dict() for v in self.violations],
            "correctedConfidence": self.corrected_confidence,
        }


def guardrails_decision(
    guardrails_outcome: Optional[Mapping[str, Any]],
    current: Optional[TruthStatus] = None,
) -> Optional[TruthStatus]:
    """Status a downgrading guardrails outcome names, if any.

    ``finalDecision`` wins over ``recommendedStatus``. Unknown names, and names
    stronger than ``current``, are not downgrades and yield None.
    """
    if not is_downgraded(guardrails_outcome):
        return None
    name = guardrails_outcome.get("finalDecision") or guardrails_outcome.get("recommendedStatus")
    if not isinstance(name, str):
        return None
    try:
        decision = TruthStatus(name.upper())
    except ValueError:
        logger.warning("Ignoring unknown guardrails decision %r", name)
        return None
    if current is not None and STATUS_ORDER.index(decision) < STATUS_ORDER.index(current):
        return None
    return decision


class _Corrector:
    """Running corrected value plus the violations that produced it."""

    def __init__(self, confidence: float):
        self.value = confidence
        self.violations: List[InvariantViolation] = []

    def correct(self, code: str, message: str, corrected: float) -> None:
        self.violations.append(InvariantViolation(code, message, corrected))
        logger.debug("%s: %s -> %s", code, _fmt(self.value), _fmt(corrected))
        self.value = corrected


def _status_range_rules(fix: _Corrector, status: TruthStatus) -> None:
    rng = CONFIDENCE_RANGES[status]
    name = status.value

    if status is TruthStatus.IGNORED:
        if fix.value != 0:
            fix.correct(
                INV_IGNORED_NON_ZERO,
                f"IGNORED status requires confidence === 0, got {_fmt(fix.value)}",
                0.0,
            )
        return

    below_code, above_code = {
        TruthStatus.CONFIRMED: (INV_CONFIRMED_BELOW_MIN, INV_CONFIRMED_ABOVE_MAX),
        TruthStatus.SUSPECTED: (INV_SUSPECTED_BELOW_MIN, INV_SUSPECTED_ABOVE_MAX),
        TruthStatus.INFORMATIONAL: (INV_INFORMATIONAL_BELOW_MIN, INV_INFORMATIONAL_ABOVE_MAX),
    }[status]

    if fix.value < rng.minimum:
        fix.correct(
            below_code,
            f"{name} status requires confidence >= {_fmt(rng.minimum)}, got {_fmt(fix.value)}",
            rng.minimum,
        )
    if fix.value > rng.maximum:
        fix.correct(
            above_code,
            f"{name} status requires confidence <= {_fmt(rng.maximum)}, got {_fmt(fix.value)}",
            rng.maximum,
        )


def check_confidence_invariants(
    confidence: float,
    status: Union[TruthStatus, str, None],
    *,
    expectation_proof: Optional[str] = None,
    verification_status: Optional[str] = None,
    guardrails_outcome: Optional[Mapping[str, Any]] = None,
) -> InvariantCheck:
    status = TruthStatus.parse(status)
    fix = _Corrector(confidence)

    # no status, no range; the caps below still apply
    if status is not None:
        _status_range_rules(fix, status)

    if expectation_proof == UNPROVEN_EXPECTATION and fix.value > UNPROVEN_EXPECTATION_CAP:
        fix.correct(
            INV_UNPROVEN_EXPECTATION_ABOVE_MAX,
            f"UNPROVEN_EXPECTATION requires confidence <= {_fmt(UNPROVEN_EXPECTATION_CAP)}, "
            f"got {_fmt(fix.value)}",
            UNPROVEN_EXPECTATION_CAP,
        )

    if verification_status == VERIFIED_WITH_ERRORS and fix.value > VERIFIED_WITH_ERRORS_CAP:
        fix.correct(
            INV_VERIFIED_WITH_ERRORS_ABOVE_MAX,
            f"VERIFIED_WITH_ERRORS requires confidence <= {_fmt(VERIFIED_WITH_ERRORS_CAP)}, "
            f"got {_fmt(fix.value)}",
            VERIFIED_WITH_ERRORS_CAP,
        )

    decision = guardrails_decision(guardrails_outcome, status)
    if decision is not None and decision is not status:
        rng = CONFIDENCE_RANGES[decision]
        if fix.value > rng.maximum:
            fix.correct(
                INV_GUARDRAILS_DOWNGRADE_OVERRIDE,
                f"Guardrails downgrade to {decision.value} requires confidence <= "
                f"{_fmt(rng.maximum)}, got {_fmt(fix.value)}",
                rng.maximum,
            )
        # zero is always legal for IGNORED, so its floor is never pushed up
        if fix.value < rng.minimum and decision is not TruthStatus.IGNORED:
            fix.correct(
                INV_GUARDRAILS_DOWNGRADE_OVERRIDE,
                f"Guardrails downgrade to {decision.value} requires confidence >= "
                f"{_fmt(rng.minimum)}, got {_fmt(fix.value)}",
                rng.minimum,
            )

    return InvariantCheck(tuple(fix.violations), fix.value)


def _finding_level(confidence: float) -> str:
    if confidence >= 0.80:
        return ConfidenceLevel.HIGH.value
    if confidence >= 0.50:
        return ConfidenceLevel.MEDIUM.value
    if confidence >= 0.20:
        return ConfidenceLevel.LOW.value
    return UNPROVEN_LEVEL


def _truth_status_or_none(value: Any) -> Optional[TruthStatus]:
    try:
        return TruthStatus.parse(value)
    except ParameterValidationError:
        logger.debug("Severity %r is not a truth status; range rules skipped", value)
        return None


def enforce_finding_invariants(
    finding: Mapping[str, Any],
    context: Optional[Mapping[str, Any]] = None,
) -> Tuple[Dict[str, Any], List[InvariantViolation]]:
    """Check a finding record and return a corrected copy plus the violations.

    Status comes from ``severity`` or ``status`` (default SUSPECTED); the proof
    and guardrails outcome from the finding first, then ``context``. A severity
    that is not a truth status (``HIGH``, ``critical``) gets no range rule, only
    the caps.
    """
    context = context or {}
    status = finding.get("severity") or finding.get("status") or TruthStatus.SUSPECTED.value
    confidence = finding.get("confidence", 0)
    expectation = finding.get("expectation") or {}

    check = check_confidence_invariants(
        confidence,
        _truth_status_or_none(status),
        expectation_proof=expectation.get("proof") or context.get("expectationProof"),
        verification_status=context.get("verificationStatus"),
        guardrails_outcome=finding.get("guardrails") or context.get("guardrailsOutcome"),
    )
    if not check.violated:
        return dict(finding), []

    corrected = dict(finding)
    corrected["confidence"] = check.corrected_confidence
    corrected["confidenceLevel"] = _finding_level(check.corrected_confidence)
    corrected["invariantViolations"] = [
        {
            "code": v.code,
            "message": v.message,
            "originalConfidence": confidence,
            "correctedConfidence": v.corrected,
        }
        for v in check.violations
    ]
    return corrected, list(check.violations)
