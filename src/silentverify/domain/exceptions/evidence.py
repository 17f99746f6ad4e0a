"""Evidence-level exceptions.

These mark a run as untrustworthy rather than merely unsuccessful, so they carry a
fixed classification and exit code that callers map to a distinct exit path.
"""

from typing import Any, Dict, List, Optional
from .base import silentverifyError

EVIDENCE_VIOLATION = "EVIDENCE_VIOLATION"
EVIDENCE_VIOLATION_EXIT_CODE = 50


class EvidenceViolationError(silentverifyError):
    """Base class for fatal evidence violations."""

    classification = EVIDENCE_VIOLATION
    exit_code = EVIDENCE_VIOLATION_EXIT_CODE

    def _get_default_error_code(self) -> str:
        return EVIDENCE_VIOLATION


class ConsistencyViolationError(EvidenceViolationError):
    """Raised when execution records and judgments disagree."""

    def __init__(
        self,
        violations: List[Dict[str, Any]],
        *,
        message: Optional[str] = None,
        **kwargs
    ):
        message = message or (
            f"Execution-Judgment consistency violation: "
            f"{len(violations)} violation(s) detected"
        )
        super().__init__(message, **kwargs)
        self.violations = list(violations)
        self.add_context('violation_count', len(self.violations))
        self.add_context('violation_types', sorted({v.get("type") for v in self.violations}))
        self.add_suggestion("Every attempted, non-skipped promise needs exactly one judgment")
