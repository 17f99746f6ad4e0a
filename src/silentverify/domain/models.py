"""Core domain values shared by the scoring and truth layers."""

import math
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Optional

from silentverify.domain.exceptions import ParameterValidationError


class TruthStatus(Enum):
    """Categorical verdict assigned to a finding."""
    CONFIRMED = "CONFIRMED"
    SUSPECTED = "SUSPECTED"
    INFORMATIONAL = "INFORMATIONAL"
    IGNORED = "IGNORED"

    @classmethod
    def parse(cls, value: Any) -> Optional["TruthStatus"]:
        """Accept a member, its string value (any case) or None."""
        if value is None or isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise ParameterValidationError(
            "truthStatus", value, expected_type=" | ".join(m.value for m in cls)
        )


class ConfidenceLevel(Enum):
    """Coarse confidence bucket exposed in the canonical output."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    UNKNOWN = "UNKNOWN"


# expectation.proof markers produced by promise extraction
PROVEN_EXPECTATION = "PROVEN_EXPECTATION"
OBSERVED_EXPECTATION = "OBSERVED_EXPECTATION"
WEAK_EXPECTATION = "WEAK_EXPECTATION"
UNPROVEN_EXPECTATION = "UNPROVEN_EXPECTATION"

VERIFIED_WITH_ERRORS = "VERIFIED_WITH_ERRORS"
NON_DETERMINISTIC = "NON_DETERMINISTIC"


@dataclass(frozen=True)
class ConfidenceRange:
    """Closed interval of legal confidence values for one truth status."""
    minimum: float
    maximum: float

    def contains(self, confidence: float) -> bool:
        return self.minimum <= confidence <= self.maximum


CONFIDENCE_RANGES = MappingProxyType({
    TruthStatus.CONFIRMED: ConfidenceRange(0.70, 1.00),
    TruthStatus.SUSPECTED: ConfidenceRange(0.30, 0.69),
    TruthStatus.INFORMATIONAL: ConfidenceRange(0.01, 0.29),
    TruthStatus.IGNORED: ConfidenceRange(0.00, 0.00),
})

# strongest first
STATUS_ORDER = (
    TruthStatus.CONFIRMED,
    TruthStatus.SUSPECTED,
    TruthStatus.INFORMATIONAL,
    TruthStatus.IGNORED,
)


def status_for_confidence(confidence: float, ceiling: Optional[TruthStatus] = None) -> TruthStatus:
    """Strongest status (not above ``ceiling``) whose range minimum the value meets."""
    start = STATUS_ORDER.index(ceiling) if ceiling is not None else 0
    for status in STATUS_ORDER[start:]:
        if confidence >= CONFIDENCE_RANGES[status].minimum and status is not TruthStatus.IGNORED:
            return status
    return TruthStatus.IGNORED


def clamp01(x: Optional[float]) -> float:
    return 0.0 if x is None else max(0.0, min(1.0, x))


def to_legacy_score(confidence: float) -> int:
    """The single 0-1 -> 0-100 adapter used at the API boundary (half-up rounding)."""
    return int(math.floor(clamp01(confidence) * 100 + 0.5))
