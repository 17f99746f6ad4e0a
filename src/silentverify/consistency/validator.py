"""Execution-judgment consistency.

A judgment exists if and only if its promise was attempted and not skipped.
Any disagreement means the pipeline that produced the run cannot be trusted,
so ``enforce`` raises instead of correcting.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from silentverify.domain.exceptions import ConsistencyViolationError

logger = logging.getLogger(__name__)

JUDGMENT_WITHOUT_EXECUTION = "JUDGMENT_WITHOUT_EXECUTION"
EXECUTION_WITHOUT_JUDGMENT = "EXECUTION_WITHOUT_JUDGMENT"
JUDGMENT_FOR_SKIPPED = "JUDGMENT_FOR_SKIPPED"
MISSING_OBSERVATION_ACKNOWLEDGMENT = "MISSING_OBSERVATION_ACKNOWLEDGMENT"

# judgment outcomes that claim the promise was kept
FULFILLED_OUTCOMES = frozenset({"FULFILLED", "SUCCESS", "PASS"})


@dataclass(frozen=True)
class ConsistencyResult:
    valid: bool
    violations: List[Dict[str, Any]]

    def as_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "violations": list(self.violations)}


def _violation(kind: str, promise_id: Any, message: str) -> Dict[str, Any]:
    return {"type": kind, "promiseId": promise_id, "message": message}


def _is_fulfilled(value: Any) -> bool:
    if isinstance(value, Mapping):
        value = value.get("status")
    return isinstance(value, str) and value.upper() in FULFILLED_OUTCOMES


def _claims_fulfilled(judgment: Mapping[str, Any]) -> bool:
    """Either the verdict itself or its outcome says the promise was kept."""
    return _is_fulfilled(judgment.get("judgment")) or _is_fulfilled(judgment.get("outcome"))


def validate(
    records: Sequence[Mapping[str, Any]],
    judgments: Sequence[Mapping[str, Any]],
) -> ConsistencyResult:
    """Check the four consistency rules; violations come out in record order."""
    by_promise = {r.get("promiseId"): r for r in records}
    judged = Counter(j.get("promiseId") for j in judgments)
    violations: List[Dict[str, Any]] = []

    for judgment in judgments:
        pid = judgment.get("promiseId")
        record = by_promise.get(pid)
        if record is not None and record.get("skipped"):
            violations.append(_violation(
                JUDGMENT_FOR_SKIPPED, pid,
                f"Judgment exists for skipped promise {pid}",
            ))
        elif record is None or not record.get("attempted"):
            violations.append(_violation(
                JUDGMENT_WITHOUT_EXECUTION, pid,
                f"Judgment for promise {pid} has no attempted execution",
            ))
        elif not record.get("observed") and _claims_fulfilled(judgment):
            violations.append(_violation(
                MISSING_OBSERVATION_ACKNOWLEDGMENT, pid,
                f"Promise {pid} was attempted but not observed, yet its judgment claims fulfilment",
            ))

    for record in records:
        if not record.get("attempted") or record.get("skipped"):
            continue
        pid = record.get("promiseId")
        count = judged.get(pid, 0)
        if count != 1:
            violations.append(_violation(
                EXECUTION_WITHOUT_JUDGMENT, pid,
                f"Attempted promise {pid} has {count} judgment(s), expected exactly 1",
            ))

    if violations:
        logger.debug("Consistency violations: %s", [v["type"] for v in violations])
    return ConsistencyResult(valid=not violations, violations=violations)


def enforce(
    records: Sequence[Mapping[str, Any]],
    judgments: Sequence[Mapping[str, Any]],
) -> ConsistencyResult:
    result = validate(records, judgments)
    if not result.valid:
        logger.error("Execution-Judgment consistency violated (%d)", len(result.violations))
        raise ConsistencyViolationError(result.violations)
    return result


def _count(records: Iterable[Mapping[str, Any]], key: str) -> int:
    return sum(1 for r in records if r.get(key))


def consistency_statistics(
    records: Sequence[Mapping[str, Any]],
    judgments: Sequence[Mapping[str, Any]],
) -> Dict[str, Any]:
    expected = sum(1 for r in records if r.get("attempted") and not r.get("skipped"))
    return {
        "total": len(records),
        "attempted": _count(records, "attempted"),
        "observed": _count(records, "observed"),
        "skipped": _count(records, "skipped"),
        "judged": len(judgments),
        "expectedJudgments": expected,
        "isConsistent": validate(records, judgments).valid,
    }


def format_consistency_summary(
    records: Sequence[Mapping[str, Any]],
    judgments: Sequence[Mapping[str, Any]],
) -> str:
    stats = consistency_statistics(records, judgments)
    lines = [
        "Execution-Judgment Consistency:",
        f"  Total promises:     {stats['total']}",
        f"  Attempted:          {stats['attempted']}",
        f"  Observed:           {stats['observed']}",
        f"  Skipped:            {stats['skipped']}",
        f"  Judgments:          {stats['judged']} (expected {stats['expectedJudgments']})",
        f"  Status:             {'CONSISTENT' if stats['isConsistent'] else 'INCONSISTENT'}",
    ]
    return "\n".join(lines)
