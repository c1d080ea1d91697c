"""Tests for report creation and server-side comparison."""

import json

import pytest

from src.comparison.report import (
    ReportCreationError,
    build_compare_payload,
    build_report_request,
    parse_compare_result,
    parse_report_result,
    report_url,
    request_report,
    request_server_comparison,
)
from src.models.report import Comparison


def _comparisons(n: int) -> list[Comparison]:
    return [
        Comparison(logical_path=f"{i}.png", baseline_upload_id=f"b{i}", candidate_upload_id=f"c{i}")
        for i in range(n)
    ]


class TestBuildReportRequest:
    def test_carries_run_metadata(self, action_config):
        request = build_report_request(action_config, "base9", _comparisons(2))
        assert request.name == "feature/login vs master"
        assert request.baseline_commit == "base9"
        assert request.candidate_branch == "feature/login"
        assert request.candidate_commit == "cand123"
        assert request.algorithm == "pixelmatch"
        assert request.threshold == 0.1
        assert len(request.comparisons) == 2


class TestRequestReport:
    """Tests for the create-report call."""

    def test_total_comparisons_round_trip(self, client, backend, action_config):
        request = build_report_request(action_config, "base9", _comparisons(5))
        result = request_report(client, "site-1", request)

        assert result.id == "rep-1"
        assert result.total_comparisons == 5
        assert result.inconsistencies == []
        (sent,) = backend.requests_to("POST", "/sites/site-1/reports")
        assert len(json.loads(sent.content)["comparisons"]) == 5

    def test_backend_error_surfaced_verbatim(self, client, backend, action_config):
        backend.report_status = 422
        backend.report_body = {"error": "Baseline upload b0 not found"}
        with pytest.raises(ReportCreationError) as exc_info:
            request_report(client, "site-1", build_report_request(action_config, "b", _comparisons(1)))
        assert exc_info.value.message == "Baseline upload b0 not found"
        assert exc_info.value.status_code == 422
        assert "reports" in str(exc_info.value)

    def test_unknown_error_without_message(self, client, backend, action_config):
        backend.report_status = 500
        backend.report_body = {}
        with pytest.raises(ReportCreationError, match="Unknown error"):
            request_report(client, "site-1", build_report_request(action_config, "b", _comparisons(1)))


class TestParseReportResult:
    def test_full_body(self):
        result = parse_report_result({"id": "r1", "totalComparisons": 3, "differencesFound": 1, "status": "done"})
        assert (result.id, result.total_comparisons, result.differences_found) == ("r1", 3, 1)
        assert result.status == "done"

    def test_missing_fields_default_to_zero(self, caplog):
        with caplog.at_level("WARNING"):
            result = parse_report_result({"id": "r1"})
        assert result.total_comparisons == 0
        assert result.differences_found == 0
        assert result.inconsistencies == ["totalComparisons", "differencesFound"]
        assert "missing field" in caplog.text

    def test_wrapped_report(self):
        result = parse_report_result({"report": {"id": "r2", "totalComparisons": 1, "differencesFound": 0}})
        assert result.id == "r2"

    def test_non_numeric_values(self):
        result = parse_report_result({"id": "r1", "totalComparisons": "lots", "differencesFound": "2"})
        assert result.total_comparisons == 0
        assert result.differences_found == 2
        assert result.inconsistencies == ["totalComparisons"]

    def test_non_dict_body(self):
        result = parse_report_result([])
        assert result.id == ""
        assert "id" in result.inconsistencies


class TestServerComparison:
    """Tests for the single-call compare flow."""

    def test_payload_includes_report_fields_when_saving(self, action_config):
        payload = build_compare_payload(action_config, "base9")
        assert payload["saveReport"] is True
        assert payload["baselineCommit"] == "base9"
        assert payload["reportName"] == "PR Visual Report: feature/login vs master"
        assert "base9" in payload["reportDescription"]

    def test_payload_uses_configured_report_name(self, action_config):
        config = action_config.model_copy(update={"report_name": "Nightly"})
        payload = build_compare_payload(config, "base9")
        assert payload["saveReport"] is True
        assert payload["reportName"] == "Nightly"

    def test_parses_stats(self, client, backend, action_config):
        backend.compare_body = {
            "totalComparisons": 4, "passedComparisons": 3, "failedComparisons": 1,
            "averageSimilarity": 97.5, "reportId": "rep-7",
        }
        result = request_server_comparison(client, action_config, "base9")
        assert result.total_comparisons == 4
        assert result.failed_comparisons == 1
        assert result.average_similarity == 97.5
        assert result.report_id == "rep-7"
        assert result.inconsistencies == []

    def test_non_numeric_stats_default(self, client, backend, action_config, caplog):
        backend.compare_body = {
            "totalComparisons": 2, "passedComparisons": "two", "failedComparisons": 0,
            "averageSimilarity": "n/a",
        }
        with caplog.at_level("WARNING"):
            result = request_server_comparison(client, action_config, "base9")
        assert result.total_comparisons == 2
        assert result.passed_comparisons == 0
        assert result.average_similarity == 0.0
        assert result.report_id is None
        assert result.inconsistencies == ["passedComparisons", "averageSimilarity"]
        assert "averageSimilarity" in caplog.text

    def test_empty_body_defaults(self):
        result = parse_compare_result([])
        assert (result.total_comparisons, result.average_similarity) == (0, 0.0)
        assert "totalComparisons" in result.inconsistencies

    def test_error_raises(self, client, backend, action_config):
        backend.compare_status = 400
        backend.compare_body = {"error": "unknown baseline"}
        with pytest.raises(ReportCreationError, match="unknown baseline"):
            request_server_comparison(client, action_config, "base9")


def test_report_url():
    assert report_url("https://app.test/", "site-1", "rep-1") == "https://app.test/sites/site-1/reports/rep-1"
