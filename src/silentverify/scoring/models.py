"""Data models for rule-based confidence scoring."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from silentverify.domain.models import ConfidenceLevel, to_legacy_score


@dataclass(frozen=True)
class ScoreResult:
    confidence: float                   # 0..1, canonical
    level: ConfidenceLevel
    explain: List[str]                  # at most 8 entries
    factors: Dict[str, Any]
    confidence_explanation: Dict[str, List[str]]
    boundary_explanation: Optional[str] = None
    points: int = field(default=0, compare=False)  # exact rule arithmetic, 0..100

    @property
    def score(self) -> int:
        return to_legacy_score(self.confidence)

    def as_dict(self) -> Dict[str, Any]:
        """Legacy 0-100 output shape."""
        return {
            "score": self.score,
            "level": self.level.value,
            "explain": list(self.explain),
            "factors": self.factors,
            "confidenceExplanation": self.confidence_explanation,
            "boundaryExplanation": self.boundary_explanation,
        }
