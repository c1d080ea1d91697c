"""Pair candidate uploads with baseline uploads by logical path."""

from __future__ import annotations

import logging

from src.models.report import Comparison, MatchResult
from src.models.upload import UploadRecord

logger = logging.getLogger(__name__)


def index_baselines(baselines: list[UploadRecord]) -> dict[str, UploadRecord]:
    """Map logical path -> baseline record. The first record listed for a path wins."""
    index: dict[str, UploadRecord] = {}
    for record in baselines:
        if not record.id:
            continue
        if record.logical_path in index:
            logger.warning(
                "Duplicate baseline upload for %s (keeping %s, ignoring %s)",
                record.logical_path, index[record.logical_path].id, record.id,
            )
            continue
        index[record.logical_path] = record
    return index


def match_comparisons(candidates: list[UploadRecord], baselines: list[UploadRecord]) -> MatchResult:
    """Pair each candidate with the baseline sharing its logical path.

    Comparisons keep candidate order. Candidates without a baseline are
    reported in ``unmatched`` and never fail the match.
    """
    by_path = index_baselines(baselines)
    comparisons: list[Comparison] = []
    unmatched: list[str] = []

    for candidate in candidates:
        baseline = by_path.get(candidate.logical_path)
        if baseline is None:
            logger.warning("No baseline found for %s", candidate.logical_path)
            unmatched.append(candidate.logical_path)
            continue
        comparisons.append(Comparison(
            logical_path=candidate.logical_path,
            baseline_upload_id=baseline.id,
            candidate_upload_id=candidate.id,
        ))

    logger.info("Matched %d of %d candidate(s) against %d baseline(s)",
                len(comparisons), len(candidates), len(by_path))
    return MatchResult(comparisons=comparisons, unmatched=unmatched)
