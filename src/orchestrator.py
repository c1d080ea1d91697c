"""Pipeline orchestrator — coordinates upload, baseline resolution, matching and reporting."""

from __future__ import annotations

import logging
import time

from src.api.client import ApiError, GodiffyClient
from src.api.normalize import MalformedResponse
from src.api.transport import TransportFailure
from src.comparison.matcher import match_comparisons
from src.comparison.report import (
    ReportCreationError,
    build_report_request,
    report_url,
    request_report,
    request_server_comparison,
)
from src.comparison.resolver import (
    BaselineResolutionError,
    fetch_baseline_uploads,
    resolve_baseline_commit,
)
from src.github.actions import group
from src.models.config import ActionConfig
from src.models.report import ActionOutcome
from src.models.upload import UploadBatchResult
from src.uploader.uploader import upload_screenshots

logger = logging.getLogger(__name__)

UPSTREAM_ERRORS = (ApiError, TransportFailure, MalformedResponse, BaselineResolutionError, ReportCreationError)


class Orchestrator:
    """Runs the action: always upload, then optionally compare against a baseline.

    Stages return plain results; this class alone decides whether a
    condition fails the run or merely skips report generation.
    """

    def __init__(self, config: ActionConfig, client: GodiffyClient):
        self.config = config
        self.client = client

    def run(self) -> ActionOutcome:
        start = time.time()
        cfg = self.config
        logger.info("=== GoDiffy: site %s, candidate %s@%s ===",
                    cfg.site_id, cfg.candidate_branch, cfg.candidate_commit)

        # Stage 1: Upload
        with group("Uploading images"):
            uploads = self.run_upload()
        outcome = ActionOutcome(uploads=uploads)

        if not uploads.successful and not uploads.failed:
            logger.warning("No candidate uploads; nothing to compare.")
            return outcome.model_copy(update={"status": "skipped", "skip_reason": "no candidate uploads"})

        # Stage 2: Report
        if not cfg.create_report:
            logger.info("create-report is false; skipping comparison.")
        elif not cfg.is_pull_request:
            logger.info('create-report is true but event is "%s", not "pull_request"; skipping comparison.',
                        cfg.event_name)
        elif not uploads.successful:
            logger.warning("No successful candidate uploads; skipping comparison.")
            outcome = outcome.model_copy(update={"skip_reason": "no successful candidate uploads"})
        else:
            with group("Generating comparison report"):
                outcome = self._run_report(outcome)

        if outcome.status != "failed" and uploads.failed:
            message = f"{len(uploads.failed)} image(s) failed to upload"
            logger.error(message)
            outcome = outcome.model_copy(update={"status": "failed", "error_message": message})

        logger.info("=== GoDiffy finished (%s) in %.1fs ===", outcome.status, time.time() - start)
        return outcome

    def run_upload(self) -> UploadBatchResult:
        cfg = self.config
        return upload_screenshots(
            self.client, cfg.site_id, cfg.images_path, cfg.candidate_branch, cfg.candidate_commit,
        )

    def _run_report(self, outcome: ActionOutcome) -> ActionOutcome:
        cfg = self.config
        selector = cfg.baseline_selector
        try:
            baseline_commit = resolve_baseline_commit(self.client, cfg.site_id, selector)
            if baseline_commit is None:
                return outcome.model_copy(update={
                    "status": "skipped",
                    "skip_reason": f"no baseline uploads on branch {selector.branch}",
                })

            if cfg.comparison_flow == "compare":
                compare = request_server_comparison(self.client, cfg, baseline_commit)
                url = report_url(cfg.base_url, cfg.site_id, compare.report_id) if compare.report_id else None
                if compare.failed_comparisons > 0:
                    logger.warning("%d comparisons failed (average similarity: %s%%)",
                                   compare.failed_comparisons, compare.average_similarity)
                else:
                    logger.info("All comparisons passed (average similarity: %s%%)", compare.average_similarity)
                return outcome.model_copy(update={"compare": compare, "report_url": url})

            baselines = fetch_baseline_uploads(self.client, cfg.site_id, selector.branch, baseline_commit)
            match = match_comparisons(outcome.uploads.successful, baselines)
            if not match.comparisons:
                logger.warning(
                    "No matching baseline images found for %s@%s; ensure %s has uploaded screenshots.",
                    selector.branch, baseline_commit, selector.branch,
                )
                return outcome.model_copy(update={
                    "status": "skipped",
                    "skip_reason": f"no candidate matched a baseline on {selector.branch}@{baseline_commit}",
                })

            request = build_report_request(cfg, baseline_commit, match.comparisons)
            report = request_report(self.client, cfg.site_id, request)
        except UPSTREAM_ERRORS as e:
            message = (f"Report generation failed for {cfg.candidate_branch}@{cfg.candidate_commit} "
                       f"vs {selector.branch}@{selector.commit_or_latest}: {e}")
            logger.error(message)
            return outcome.model_copy(update={"status": "failed", "error_message": message})

        url = report_url(cfg.base_url, cfg.site_id, report.id) if report.id else None
        if report.differences_found > 0:
            logger.warning("%d visual differences detected", report.differences_found)
        return outcome.model_copy(update={"report": report, "report_url": url})
