import os
import json
import time
import logging
import psutil
from tqdm import tqdm
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from silentverify.api import ConfidenceService
from silentverify.config.policy import PolicyCache
from silentverify.config.settings import Command, Settings
from silentverify.consistency import (
    RunOutcome,
    determine_run_outcome,
    enforce,
    failure_reason,
    format_consistency_summary,
)
from silentverify.domain.exceptions import (
    ConfigurationError,
    ConsistencyViolationError,
    FileSystemError,
    InputFileNotFoundError,
    InvalidInputFormatError,
    ParameterValidationError,
    ProcessingError,
    ScoringError,
)
from silentverify.domain.models import TruthStatus
from silentverify.results.report import build_report, finding_id, write_report
from silentverify.utils.timing import section_timer, timeit

logger = logging.getLogger(__name__)
summary_logger = logging.getLogger("silentverify.summary")

INPUT_KEYS = ["findings", "executionRecords", "judgments"]


@dataclass
class ScanInput:
    """Findings plus the execution records and judgments of one scan."""
    findings: List[Mapping[str, Any]] = field(default_factory=list)
    execution_records: List[Mapping[str, Any]] = field(default_factory=list)
    judgments: List[Mapping[str, Any]] = field(default_factory=list)

    @property
    def has_execution_data(self) -> bool:
        return bool(self.execution_records or self.judgments)


@dataclass
class PipelineResult:
    """Pipeline execution result."""
    n_findings: int
    output_path: Optional[str] = None
    by_level: Dict[str, int] = field(default_factory=dict)
    by_truth_status: Dict[str, int] = field(default_factory=dict)
    invariant_violations: int = 0
    outcome: Optional[RunOutcome] = None
    processing_time: float = 0.0
    peak_memory_mb: float = 0.0
    stage_timings: Dict[str, float] = field(default_factory=dict)


def load_scan_input(path: Path) -> ScanInput:
    """
    Read a scan file.

    Either a JSON list of findings, or an object with ``findings`` and
    optional ``executionRecords`` / ``judgments`` lists.
    """
    if not path.is_file():
        raise InputFileNotFoundError(str(path))
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except json.JSONDecodeError as e:
        raise InvalidInputFormatError(str(path), f"invalid JSON ({e})") from e
    except OSError as e:
        raise FileSystemError(f"Cannot read input file: {e}", path=str(path)) from e

    if isinstance(data, list):
        data = {"findings": data}
    if not isinstance(data, dict):
        raise InvalidInputFormatError(str(path), "top level must be a list or an object", expected_keys=INPUT_KEYS)

    scan = ScanInput(
        findings=data.get("findings") or [],
        execution_records=data.get("executionRecords") or [],
        judgments=data.get("judgments") or [],
    )
    for key, items in zip(INPUT_KEYS, (scan.findings, scan.execution_records, scan.judgments)):
        if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
            raise InvalidInputFormatError(str(path), f"'{key}' must be a list of objects", expected_keys=INPUT_KEYS)
    return scan


class ScoringPipeline:
    """
    Batch confidence scoring over one scan file.

    Consistency is checked before any finding is scored, so an untrustworthy
    scan never produces a report.
    """

    def __init__(self, settings: Settings, service: Optional[ConfidenceService] = None):
        self.settings = settings
        self.service = service or ConfidenceService(cache=PolicyCache())
        self.process = psutil.Process(os.getpid())
        self.peak_rss_mb = 0.0
        self.start_time = None
        self.timings: Dict[str, float] = {}

    def run(self) -> PipelineResult:
        """Execute the configured command."""
        self.start_time = time.time()
        try:
            with section_timer("load-input", logger, self.timings):
                scan = load_scan_input(self.settings.input_file)
            summary_logger.info(
                f"[startup] {len(scan.findings)} findings, {len(scan.execution_records)} execution records, "
                f"{len(scan.judgments)} judgments"
            )
            self._memory_report("after load")

            if self.settings.command is Command.CHECK:
                return self._check(scan)

            if self.settings.scoring.enforce_consistency and scan.has_execution_data:
                enforce(scan.execution_records, scan.judgments)
                logger.info("[consistency] execution records and judgments agree")

            if self.settings.dry_run:
                summary_logger.info("[dry-run] input validated; nothing scored")
                return PipelineResult(n_findings=len(scan.findings))

            with section_timer("score", logger, self.timings):
                results = self._score_all(scan.findings)
            result = self._finalize(results, scan)
            self._log_summary(result)
            return result

        except (ProcessingError, ConfigurationError, ConsistencyViolationError,
                InvalidInputFormatError, InputFileNotFoundError, FileSystemError):
            raise
        except Exception as e:
            exc = ProcessingError(f"Unexpected pipeline error: {str(e)}", stage="pipeline_execution")
            exc.add_context('elapsed_time', time.time() - self.start_time)
            raise exc from e

    def _check(self, scan: ScanInput) -> PipelineResult:
        outcome = determine_run_outcome(
            scan.judgments, scan.execution_records, min_coverage=self.settings.scoring.min_coverage
        )
        for line in format_consistency_summary(scan.execution_records, scan.judgments).splitlines():
            summary_logger.info(line)
        for v in outcome.consistency.violations:
            logger.error(f"[consistency] {v['type']}: {v['message']}")
        reason = failure_reason(outcome)
        if reason:
            summary_logger.info(f"Run outcome: {outcome.status} ({reason})")
        return PipelineResult(
            n_findings=len(scan.findings),
            outcome=outcome,
            processing_time=time.time() - self.start_time,
            peak_memory_mb=self.peak_rss_mb,
            stage_timings=self.timings,
        )

    def _finding_params(self, finding: Mapping[str, Any]) -> Dict[str, Any]:
        """Run-wide options first, the finding's own options on top."""
        params = dict(finding)
        options = {
            "policyPath": self.settings.policy.policy_path,
            "projectDir": str(self.settings.policy.project_dir) if self.settings.policy.project_dir else None,
            "determinismVerdict": self.settings.scoring.determinism_verdict,
            "verificationStatus": self.settings.scoring.verification_status,
        }
        options = {k: v for k, v in options.items() if v is not None}
        options.update(finding.get("options") or {})
        params["options"] = options

        status = params.get("truthStatus")
        if status is not None:
            try:
                TruthStatus.parse(status)
            except ParameterValidationError:
                logger.warning(f"[input] unknown truthStatus {status!r} dropped for finding {finding_id(finding)}")
                params["truthStatus"] = None
        return params

    def _score_all(self, findings: List[Mapping[str, Any]]) -> List[Tuple[str, Dict[str, Any]]]:
        show_progress = not os.getenv('NO_PROGRESS', '').lower() in ['1', 'true', 'yes']
        results = []
        for index, finding in enumerate(tqdm(findings, desc="Scoring", unit="finding", disable=not show_progress)):
            fid = finding_id(finding)
            try:
                results.append((fid, self.service.compute_from_mapping(self._finding_params(finding))))
            except ConfigurationError:
                raise
            except Exception as e:
                raise ScoringError(
                    f"Failed to score finding {fid}: {e}", finding_index=index, finding_id=fid
                ) from e
            if index % 500 == 0:
                self._memory_report(f"finding {index}")
        return results

    @timeit(logger, "report")
    def _finalize(self, results: List[Tuple[str, Dict[str, Any]]], scan: ScanInput) -> PipelineResult:
        report = build_report(results)
        output_path = self.settings.output.output_path
        if output_path is not None:
            write_report(report, output_path, indent=self.settings.output.indent)

        outcome = None
        if scan.has_execution_data:
            outcome = determine_run_outcome(
                scan.judgments, scan.execution_records, min_coverage=self.settings.scoring.min_coverage
            )

        self._memory_report("final")
        summary = report["summary"]
        result = PipelineResult(
            n_findings=summary["totalFindings"],
            output_path=str(output_path) if output_path else None,
            by_level=summary["byLevel"],
            by_truth_status=summary["byTruthStatus"],
            invariant_violations=summary["invariantViolations"],
            outcome=outcome,
            processing_time=time.time() - self.start_time,
            peak_memory_mb=self.peak_rss_mb,
            stage_timings=self.timings,
        )
        return result

    def _memory_report(self, label: str) -> None:
        rss = self.process.memory_info().rss / 1e6  # MB
        self.peak_rss_mb = max(self.peak_rss_mb, rss)
        logger.debug(f"[mem] {label} RSS={rss:.1f}MB")

    def _log_summary(self, result: PipelineResult) -> None:
        summary_logger.info("=" * 60)
        summary_logger.info(f"Scored {result.n_findings:,} findings in {result.processing_time:.2f} s")
        summary_logger.info("Findings by confidence level:")
        for level, count in result.by_level.items():
            summary_logger.info(f"  {level}: {count:,}")
        summary_logger.info("Findings by truth status:")
        for status, count in result.by_truth_status.items():
            summary_logger.info(f"  {status}: {count:,}")
        summary_logger.info(f"Invariant corrections: {result.invariant_violations:,}")
        if result.output_path:
            summary_logger.info(f"Report: {result.output_path}")
        summary_logger.info("Stage timings:")
        for stage, seconds in result.stage_timings.items():
            summary_logger.info(f"  {stage}: {seconds:.3f} s")
        summary_logger.info(f"Peak memory: {result.peak_memory_mb:.1f}MB")
        summary_logger.info("=" * 60)


def run_scoring(settings: Settings, service: Optional[ConfidenceService] = None) -> PipelineResult:
    return ScoringPipeline(settings, service).run()
