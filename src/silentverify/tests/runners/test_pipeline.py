import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from silentverify.config.settings import Command, OutputSettings, ScoringSettings, Settings
from silentverify.domain.exceptions import (
    ConsistencyViolationError,
    InputFileNotFoundError,
    InvalidInputFormatError,
    ProcessingError,
    ScoringError,
)
from silentverify.runners.pipeline import (
    PipelineResult,
    ScanInput,
    ScoringPipeline,
    load_scan_input,
    run_scoring,
)

FINDINGS = [
    {
        "id": "f-basic",
        "findingType": "no_effect_silent_failure",
        "expectation": {"proof": "PROVEN_EXPECTATION"},
        "sensors": {
            "network": {"totalRequests": 3},
            "console": {"totalMessages": 2},
            "uiSignals": {"diff": {"changed": True}},
        },
        "comparisons": {"hasDomChange": True},
    },
    {
        "id": "f-truth",
        "findingType": "observed_break",
        "truthStatus": "CONFIRMED",
    },
]

RECORDS = [
    {"promiseId": "p1", "attempted": True, "observed": True},
    {"promiseId": "p2", "attempted": True, "observed": False},
]


def _write(path: Path, data) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def no_progress(monkeypatch):
    monkeypatch.setenv("NO_PROGRESS", "1")


@pytest.fixture
def make_settings(tmp_path):
    def _make(data, command=Command.SCORE, **kwargs) -> Settings:
        return Settings(
            command=command,
            input_file=_write(tmp_path / "scan.json", data),
            output=OutputSettings(output_path=tmp_path / "scan.confidence.json"),
            **kwargs,
        )
    return _make


class TestLoadScanInput:

    def test_list_of_findings(self, tmp_path):
        scan = load_scan_input(_write(tmp_path / "s.json", FINDINGS))
        assert len(scan.findings) == 2
        assert not scan.has_execution_data

    def test_object_with_execution_data(self, tmp_path):
        scan = load_scan_input(_write(tmp_path / "s.json", {"findings": [], "executionRecords": RECORDS}))
        assert scan.execution_records == RECORDS
        assert scan.judgments == []
        assert scan.has_execution_data

    def test_missing_file(self, tmp_path):
        with pytest.raises(InputFileNotFoundError):
            load_scan_input(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(InvalidInputFormatError, match="invalid JSON"):
            load_scan_input(path)

    @pytest.mark.parametrize("data", ["text", 3, {"findings": {"a": 1}}, {"judgments": [1, 2]}])
    def test_wrong_shape(self, tmp_path, data):
        with pytest.raises(InvalidInputFormatError):
            load_scan_input(_write(tmp_path / "s.json", data))


class TestScoringPipeline:

    def test_score_writes_report(self, make_settings):
        settings = make_settings(FINDINGS)
        result = run_scoring(settings)

        assert isinstance(result, PipelineResult)
        assert result.n_findings == 2
        assert result.outcome is None
        assert result.by_level["HIGH"] == 1
        assert result.by_truth_status["CONFIRMED"] + result.by_truth_status["SUSPECTED"] == 1

        report = json.loads(Path(result.output_path).read_text(encoding="utf-8"))
        assert report["findings"]["f-basic"]["score"] == 85
        assert report["findings"]["f-basic"]["truthStatus"] is None
        assert report["findings"]["f-truth"]["appliedPolicy"] == {"version": "1.0.0", "source": "default"}

    def test_identical_findings_each_get_an_entry(self, make_settings):
        finding = {"findingType": "observed_break", "truthStatus": "SUSPECTED"}
        result = run_scoring(make_settings([finding, dict(finding), dict(finding)]))

        assert result.n_findings == 3
        assert sum(result.by_truth_status.values()) == 3
        report = json.loads(Path(result.output_path).read_text(encoding="utf-8"))
        assert len(report["findings"]) == 3

    def test_run_context_reaches_every_finding(self, make_settings):
        settings = make_settings(FINDINGS, scoring=ScoringSettings(determinism_verdict="NON_DETERMINISTIC"))
        service = MagicMock()
        service.compute_from_mapping.return_value = {"score": 10, "level": "LOW"}

        ScoringPipeline(settings, service=service).run()

        options = [c.args[0]["options"] for c in service.compute_from_mapping.call_args_list]
        assert options == [{"determinismVerdict": "NON_DETERMINISTIC"}] * 2

    def test_finding_options_override_run_context(self, make_settings):
        findings = [dict(FINDINGS[1], options={"determinismVerdict": "DETERMINISTIC"})]
        settings = make_settings(findings, scoring=ScoringSettings(determinism_verdict="NON_DETERMINISTIC"))
        service = MagicMock()
        service.compute_from_mapping.return_value = {"score": 10, "level": "LOW"}

        ScoringPipeline(settings, service=service).run()

        params = service.compute_from_mapping.call_args.args[0]
        assert params["options"]["determinismVerdict"] == "DETERMINISTIC"

    def test_unknown_truth_status_is_dropped(self, make_settings, caplog):
        findings = [{"id": "f-odd", "findingType": "observed_break", "truthStatus": "MAYBE"}]
        with caplog.at_level("WARNING", logger="silentverify.runners.pipeline"):
            result = run_scoring(make_settings(findings))

        assert "unknown truthStatus 'MAYBE'" in caplog.text
        assert sum(result.by_truth_status.values()) == 0

    def test_scoring_failure_names_the_finding(self, make_settings):
        service = MagicMock()
        service.compute_from_mapping.side_effect = RuntimeError("boom")

        with pytest.raises(ScoringError) as exc_info:
            ScoringPipeline(make_settings(FINDINGS), service=service).run()

        assert exc_info.value.context["finding_id"] == "f-basic"
        assert exc_info.value.context["finding_index"] == 0

    def test_dry_run_scores_nothing(self, make_settings):
        settings = make_settings(FINDINGS, dry_run=True)
        result = run_scoring(settings)

        assert result.n_findings == 2
        assert result.output_path is None
        assert not settings.output.output_path.exists()

    def test_inconsistent_scan_is_rejected_before_scoring(self, make_settings):
        settings = make_settings({"findings": FINDINGS, "executionRecords": RECORDS, "judgments": []})

        with pytest.raises(ConsistencyViolationError) as exc_info:
            run_scoring(settings)

        assert len(exc_info.value.violations) == 2
        assert not settings.output.output_path.exists()

    def test_consistency_can_be_skipped(self, make_settings):
        settings = make_settings(
            {"findings": FINDINGS, "executionRecords": RECORDS, "judgments": []},
            scoring=ScoringSettings(enforce_consistency=False),
        )
        result = run_scoring(settings)

        assert result.n_findings == 2
        assert result.outcome.exit_code == 50

    def test_consistent_scan_reports_outcome(self, make_settings):
        judgments = [
            {"promiseId": "p1", "judgment": "PASS"},
            {"promiseId": "p2", "judgment": "FAILURE_SILENT"},
        ]
        result = run_scoring(make_settings({"findings": FINDINGS, "executionRecords": RECORDS, "judgments": judgments}))
        assert (result.outcome.exit_code, result.outcome.status) == (20, "FINDINGS")

    @pytest.mark.parametrize("min_coverage, expected", [(0.9, 30), (0.5, 0)])
    def test_check_applies_coverage_threshold(self, make_settings, min_coverage, expected):
        records = [RECORDS[0], {"promiseId": "p2", "attempted": False, "observed": False, "skipped": True}]
        settings = make_settings(
            {"executionRecords": records, "judgments": [{"promiseId": "p1", "judgment": "PASS"}]},
            command=Command.CHECK,
            scoring=ScoringSettings(min_coverage=min_coverage),
        )
        assert run_scoring(settings).outcome.exit_code == expected

    def test_check_command_does_not_score(self, make_settings):
        settings = make_settings({"findings": FINDINGS, "executionRecords": RECORDS, "judgments": []},
                                 command=Command.CHECK)
        result = run_scoring(settings)

        assert result.outcome.status == "EVIDENCE_VIOLATION"
        assert result.output_path is None
        assert not settings.output.output_path.exists()

    def test_unexpected_errors_are_wrapped(self, make_settings, monkeypatch):
        monkeypatch.setattr(
            "silentverify.runners.pipeline.load_scan_input",
            MagicMock(return_value=ScanInput(findings=[1])),
        )
        with pytest.raises(ProcessingError):
            run_scoring(make_settings([]))
