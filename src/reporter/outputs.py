"""Publish a run outcome as GitHub Actions step outputs."""

from __future__ import annotations

import json
from typing import Mapping

from src.github.actions import set_output
from src.models.report import ActionOutcome


def action_outputs(outcome: ActionOutcome) -> dict[str, object]:
    """Output name -> value. Report outputs are absent when no report was made."""
    outputs: dict[str, object] = {
        "upload-count": len(outcome.uploads.successful),
        "failed-count": len(outcome.uploads.failed),
        "upload-ids": json.dumps(outcome.uploads.upload_ids),
    }
    if outcome.report is not None:
        outputs["report-id"] = outcome.report.id or None
        outputs["total-comparisons"] = outcome.report.total_comparisons
        outputs["differences-found"] = outcome.differences_found
    if outcome.compare is not None:
        outputs["report-id"] = outcome.compare.report_id
        outputs["total-comparisons"] = outcome.compare.total_comparisons
        outputs["passed-comparisons"] = outcome.compare.passed_comparisons
        outputs["failed-comparisons"] = outcome.compare.failed_comparisons
        outputs["average-similarity"] = outcome.compare.average_similarity
        outputs["differences-found"] = outcome.differences_found
    if outcome.report_url:
        outputs["report-url"] = outcome.report_url
    return outputs


def write_action_outputs(outcome: ActionOutcome, environ: Mapping[str, str] | None = None) -> dict[str, object]:
    outputs = action_outputs(outcome)
    for name, value in outputs.items():
        set_output(name, value, environ=environ)
    return outputs
