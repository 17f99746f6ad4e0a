# results/report.py
import hashlib
import json
import logging
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Tuple, Union

from silentverify.domain.exceptions import FileSystemError
from silentverify.domain.models import STATUS_ORDER, ConfidenceLevel

logger = logging.getLogger(__name__)

REPORT_VERSION = 1
LEVEL_ORDER = tuple(level.value for level in ConfidenceLevel)
CONTENT_ID_PREFIX = "finding-"


def finding_id(finding: Mapping[str, Any]) -> str:
    """
    Stable identity for one finding.

    An explicit ``id`` wins. Otherwise the id is a hash of the finding's
    sorted-key JSON, so it depends on content only and never on run order.
    """
    explicit = finding.get("id")
    if isinstance(explicit, str) and explicit:
        return explicit
    payload = json.dumps(finding, sort_keys=True, separators=(",", ":"), default=str)
    return CONTENT_ID_PREFIX + hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


def report_entry(result: Mapping[str, Any]) -> Dict[str, Any]:
    """Per-finding slice of a canonical confidence result."""
    score = result.get("score", 0)
    return {
        "score": score,
        "level": result.get("level"),
        "truthStatus": result.get("truthStatus"),
        "confidenceBefore": result.get("confidenceBefore", score / 100.0),
        "confidenceAfter": result.get("confidenceAfter", score / 100.0),
        "appliedInvariants": list(result.get("appliedInvariants") or []),
        "reasonCodes": list(result.get("reasonCodes") or []),
        "explanation": result.get("confidenceExplanation"),
        "appliedPolicy": result.get("appliedPolicy"),
    }


def _occurrence_id(fid: str, taken: Dict[str, Any]) -> str:
    """``fid`` itself on first sight, then ``fid-2``, ``fid-3`` ... in input order."""
    n = 2
    candidate = fid
    while candidate in taken:
        candidate = f"{fid}-{n}"
        n += 1
    return candidate


def build_report(results: Iterable[Tuple[str, Mapping[str, Any]]]) -> Dict[str, Any]:
    """Counts by level and truth status plus per-finding entries keyed by id.

    Every result gets an entry. Repeated ids get an occurrence suffix.
    """
    findings: Dict[str, Dict[str, Any]] = {}
    for fid, result in results:
        key = _occurrence_id(fid, findings)
        if key != fid:
            if fid.startswith(CONTENT_ID_PREFIX):
                logger.debug(f"[report] identical finding content, reported as {key}")
            else:
                logger.warning(f"[report] duplicate finding id {fid}; reported as {key}")
        findings[key] = report_entry(result)

    by_level = Counter(e["level"] for e in findings.values())
    by_status = Counter(e["truthStatus"] for e in findings.values() if e["truthStatus"])
    violations = sum(len(e["appliedInvariants"]) for e in findings.values())

    return {
        "version": REPORT_VERSION,
        "summary": {
            "totalFindings": len(findings),
            "byLevel": {lvl: by_level.get(lvl, 0) for lvl in LEVEL_ORDER},
            "byTruthStatus": {s.value: by_status.get(s.value, 0) for s in STATUS_ORDER},
            "invariantViolations": violations,
        },
        "findings": findings,
    }


def write_report(report: Mapping[str, Any], path: Union[str, Path], indent: int = 2) -> Path:
    out = Path(path)
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        with out.open("w", encoding="utf-8") as fh:
            json.dump(report, fh, indent=indent, sort_keys=True)
            fh.write("\n")
    except OSError as e:
        raise FileSystemError(
            f"Cannot write confidence report: {e}", path=str(out)
        ).add_suggestion("Check that the output directory is writable") from e
    logger.info(f"[report] wrote {report['summary']['totalFindings']} findings to {out}")
    return out
