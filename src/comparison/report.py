"""Report requests — create a comparison report or run a server-side compare."""

from __future__ import annotations

import logging
from typing import Any

from src.api.client import GodiffyClient
from src.models.config import ActionConfig
from src.models.report import CompareResult, Comparison, ReportRequest, ReportResult

logger = logging.getLogger(__name__)


class ReportCreationError(Exception):
    """The backend rejected a report or compare request."""

    def __init__(self, endpoint: str, status_code: int, message: str):
        self.endpoint = endpoint
        self.status_code = status_code
        self.message = message
        super().__init__(f"Failed to create report ({endpoint}, HTTP {status_code}): {message}")


def report_url(base_url: str, site_id: str, report_id: str) -> str:
    return f"{base_url.rstrip('/')}/sites/{site_id}/reports/{report_id}"


def build_report_request(
    config: ActionConfig, baseline_commit: str, comparisons: list[Comparison]
) -> ReportRequest:
    return ReportRequest(
        name=config.effective_report_name(),
        description=config.effective_report_description(baseline_commit),
        baseline_branch=config.baseline_branch,
        baseline_commit=baseline_commit,
        candidate_branch=config.candidate_branch,
        candidate_commit=config.candidate_commit,
        algorithm=config.algorithm,
        threshold=config.threshold,
        comparisons=comparisons,
    )


def _error_message(body: Any) -> str:
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return "Unknown error"


def _int_field(body: dict, key: str, missing: list[str]) -> int:
    value = body.get(key)
    if value is None:
        missing.append(key)
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        missing.append(key)
        return 0


def _float_field(body: dict, key: str, missing: list[str]) -> float:
    value = body.get(key)
    if value is None:
        missing.append(key)
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        missing.append(key)
        return 0.0


def parse_report_result(body: Any) -> ReportResult:
    """Read id/totals from a report response, defaulting whatever is missing."""
    if not isinstance(body, dict):
        body = {}
    # some backend versions wrap the report in {"report": {...}}
    if isinstance(body.get("report"), dict) and "id" not in body:
        body = body["report"]

    missing: list[str] = []
    report_id = body.get("id")
    if not report_id:
        missing.append("id")
    total = _int_field(body, "totalComparisons", missing)
    differences = _int_field(body, "differencesFound", missing)
    if missing:
        logger.warning("Report response is missing field(s): %s", ", ".join(missing))

    return ReportResult(
        id=str(report_id or ""),
        total_comparisons=total,
        differences_found=differences,
        status=str(body.get("status") or ""),
        inconsistencies=missing,
    )


def request_report(client: GodiffyClient, site_id: str, request: ReportRequest) -> ReportResult:
    """Submit one create-report request and return the parsed result."""
    logger.info("Creating report with %d comparison(s)...", len(request.comparisons))
    response = client.create_report(site_id, request)
    if not response.ok:
        raise ReportCreationError(
            f"POST /sites/{site_id}/reports", response.status_code, _error_message(response.body)
        )
    result = parse_report_result(response.body)
    logger.info("Report %s created: %d comparison(s), %d difference(s)",
                result.id or "<no id>", result.total_comparisons, result.differences_found)
    return result


def build_compare_payload(config: ActionConfig, baseline_commit: str) -> dict[str, Any]:
    return {
        "baselineBranch": config.baseline_branch,
        "baselineCommit": baseline_commit,
        "candidateBranch": config.candidate_branch,
        "candidateCommit": config.candidate_commit,
        "algorithm": config.algorithm,
        "threshold": config.threshold,
        "saveReport": True,
        "reportName": config.report_name or (
            f"PR Visual Report: {config.candidate_branch} vs {config.baseline_branch}"
        ),
        "reportDescription": config.effective_report_description(baseline_commit),
    }


def parse_compare_result(body: Any) -> CompareResult:
    """Read compare stats, defaulting missing or non-numeric values to zero."""
    if not isinstance(body, dict):
        body = {}
    missing: list[str] = []
    result = CompareResult(
        total_comparisons=_int_field(body, "totalComparisons", missing),
        passed_comparisons=_int_field(body, "passedComparisons", missing),
        failed_comparisons=_int_field(body, "failedComparisons", missing),
        average_similarity=_float_field(body, "averageSimilarity", missing),
        report_id=str(body["reportId"]) if body.get("reportId") else None,
        inconsistencies=missing,
    )
    if missing:
        logger.warning("Compare response is missing or has invalid field(s): %s", ", ".join(missing))
    return result


def request_server_comparison(
    client: GodiffyClient, config: ActionConfig, baseline_commit: str
) -> CompareResult:
    """Let the backend resolve, match and compare in a single call."""
    response = client.compare(config.site_id, build_compare_payload(config, baseline_commit))
    if not response.ok:
        raise ReportCreationError(
            f"POST /sites/{config.site_id}/compare", response.status_code, _error_message(response.body)
        )
    result = parse_compare_result(response.body)
    logger.info("Comparisons completed: %d total, %d passed, %d failed",
                result.total_comparisons, result.passed_comparisons, result.failed_comparisons)
    return result
