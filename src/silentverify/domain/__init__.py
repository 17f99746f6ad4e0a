"""Core domain values and the exception taxonomy."""

from .models import (
    TruthStatus,
    ConfidenceLevel,
    ConfidenceRange,
    CONFIDENCE_RANGES,
    to_legacy_score,
)

__all__ = [
    "TruthStatus",
    "ConfidenceLevel",
    "ConfidenceRange",
    "CONFIDENCE_RANGES",
    "to_legacy_score",
]
