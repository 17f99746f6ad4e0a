"""Run-level outcome and exit code for a set of judgments."""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence

from silentverify.domain.exceptions import EVIDENCE_VIOLATION, EVIDENCE_VIOLATION_EXIT_CODE

from .validator import ConsistencyResult, validate

EXIT_SUCCESS = 0
EXIT_FINDINGS = 20
EXIT_INCOMPLETE = 30

DEFAULT_MIN_COVERAGE = 0.90

FAILURE_JUDGMENTS = frozenset({"FAILURE_SILENT", "FAILURE_MISLEADING"})
REVIEW_JUDGMENTS = frozenset({"NEEDS_REVIEW"})

# skips that do not count against coverage
LEGAL_SKIP_REASONS = frozenset({"auth_required", "infra_failure"})


def is_legal_skip_reason(reason: Any) -> bool:
    return isinstance(reason, str) and reason.lower() in LEGAL_SKIP_REASONS


@dataclass(frozen=True)
class CoverageTruth:
    total: int
    attempted: int
    observed: int
    skipped: int
    attempted_not_observed: int
    legally_skipped: int
    illegally_skipped: int

    @property
    def eligible(self) -> int:
        return self.total - self.legally_skipped

    @property
    def coverage_ratio(self) -> float:
        """Observed over everything that was not legally skipped; 0.0 when nothing is eligible."""
        if self.eligible <= 0:
            return 0.0
        return self.observed / self.eligible

    @property
    def coverage_percent(self) -> int:
        return int(self.coverage_ratio * 100 + 0.5)

    def meets(self, min_coverage: float) -> bool:
        return self.coverage_ratio >= min_coverage

    def status(self, min_coverage: float) -> str:
        if self.total == 0:
            return "INCOMPLETE"
        return "PASS" if self.meets(min_coverage) else "FAIL"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "attempted": self.attempted,
            "observed": self.observed,
            "skipped": self.skipped,
            "attemptedNotObserved": self.attempted_not_observed,
            "legallySkipped": self.legally_skipped,
            "illegallySkipped": self.illegally_skipped,
            "coverageRatio": self.coverage_ratio,
            "coveragePercent": self.coverage_percent,
        }


def calculate_coverage_truth(records: Sequence[Mapping[str, Any]]) -> CoverageTruth:
    attempted = observed = skipped = not_observed = legal = 0
    for record in records:
        if record.get("skipped"):
            skipped += 1
            if is_legal_skip_reason(record.get("skipReason")):
                legal += 1
            continue
        if record.get("attempted"):
            attempted += 1
            if record.get("observed"):
                observed += 1
            else:
                not_observed += 1
    return CoverageTruth(
        total=len(records),
        attempted=attempted,
        observed=observed,
        skipped=skipped,
        attempted_not_observed=not_observed,
        legally_skipped=legal,
        illegally_skipped=skipped - legal,
    )


@dataclass(frozen=True)
class RunOutcome:
    exit_code: int
    status: str
    consistency: ConsistencyResult
    coverage: Optional[CoverageTruth] = None
    min_coverage: float = DEFAULT_MIN_COVERAGE

    @property
    def successful(self) -> bool:
        return self.exit_code == EXIT_SUCCESS

    @property
    def coverage_passed(self) -> bool:
        return self.coverage is None or self.coverage.total == 0 or self.coverage.meets(self.min_coverage)

    def as_dict(self) -> Dict[str, Any]:
        data = {
            "exitCode": self.exit_code,
            "status": self.status,
            "consistency": self.consistency.as_dict(),
        }
        if self.coverage is not None:
            data["coverage"] = {
                "passed": self.coverage_passed,
                "minCoverage": self.min_coverage,
                "report": self.coverage.as_dict(),
            }
        return data


def is_run_successful(outcome: RunOutcome) -> bool:
    return outcome.successful


def failure_reason(outcome: RunOutcome) -> Optional[str]:
    """One line saying why the run did not succeed, or None when it did."""
    if outcome.successful:
        return None
    if not outcome.consistency.valid:
        kinds = sorted({v["type"] for v in outcome.consistency.violations})
        return f"Execution-judgment consistency violated: {', '.join(kinds)}"
    if outcome.status == "FINDINGS":
        return "Silent failures were found"
    if not outcome.coverage_passed:
        return (
            f"Coverage {outcome.coverage.coverage_percent}% is below threshold "
            f"{int(outcome.min_coverage * 100 + 0.5)}%"
        )
    return "Judgments need manual review"


def determine_run_outcome(
    judgments: Sequence[Mapping[str, Any]],
    records: Sequence[Mapping[str, Any]],
    min_coverage: float = DEFAULT_MIN_COVERAGE,
) -> RunOutcome:
    """Consistency violations outrank findings, which outrank an incomplete run.

    A run is incomplete when observed coverage falls below ``min_coverage`` or
    a judgment still needs review. An empty record set is never incomplete.
    """
    consistency = validate(records, judgments)
    coverage = calculate_coverage_truth(records)
    kinds = {j.get("judgment") for j in judgments}

    def outcome(code: int, status: str) -> RunOutcome:
        return RunOutcome(code, status, consistency, coverage, min_coverage)

    if not consistency.valid:
        return outcome(EVIDENCE_VIOLATION_EXIT_CODE, EVIDENCE_VIOLATION)
    if kinds & FAILURE_JUDGMENTS:
        return outcome(EXIT_FINDINGS, "FINDINGS")
    if coverage.total > 0 and not coverage.meets(min_coverage):
        return outcome(EXIT_INCOMPLETE, "INCOMPLETE")
    if kinds & REVIEW_JUDGMENTS:
        return outcome(EXIT_INCOMPLETE, "INCOMPLETE")
    return outcome(EXIT_SUCCESS, "SUCCESS")
