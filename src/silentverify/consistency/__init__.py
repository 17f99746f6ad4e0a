from .outcome import (
    CoverageTruth,
    RunOutcome,
    calculate_coverage_truth,
    determine_run_outcome,
    failure_reason,
    is_legal_skip_reason,
    is_run_successful,
)
from .validator import (
    ConsistencyResult,
    consistency_statistics,
    enforce,
    format_consistency_summary,
    validate,
)

__all__ = [
    "CoverageTruth",
    "RunOutcome",
    "calculate_coverage_truth",
    "determine_run_outcome",
    "failure_reason",
    "is_legal_skip_reason",
    "is_run_successful",
    "ConsistencyResult",
    "consistency_statistics",
    "enforce",
    "format_consistency_summary",
    "validate",
]
