"""Baseline resolution — turn a branch plus "latest" into a concrete commit."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from src.api.client import GodiffyClient
from src.models.upload import BaselineSelector, UploadRecord

logger = logging.getLogger(__name__)


class BaselineResolutionError(Exception):
    """Baseline uploads exist but none can be ordered by creation time."""


def select_latest_commit(records: list[UploadRecord], branch: str) -> Optional[str]:
    """Return the commit of the most recently created upload on ``branch``.

    Ties on ``created_at`` go to the record the backend listed first.
    Returns None when the branch has no uploads at all.
    """
    on_branch = [r for r in records if r.branch == branch and r.commit]
    if not on_branch:
        return None

    dated = [r for r in on_branch if r.created_at is not None]
    if not dated:
        raise BaselineResolutionError(
            f"{len(on_branch)} upload(s) found on branch {branch} but none has a createdAt timestamp"
        )

    latest = dated[0]
    for record in dated[1:]:
        if _sort_key(record) > _sort_key(latest):
            latest = record
    return latest.commit


def _sort_key(record: UploadRecord) -> datetime:
    # naive timestamps are taken as UTC so they order against aware ones
    created = record.created_at
    return created if created.tzinfo else created.replace(tzinfo=timezone.utc)


def resolve_baseline_commit(
    client: GodiffyClient, site_id: str, selector: BaselineSelector
) -> Optional[str]:
    """Resolve ``selector`` to a commit id, or None if the branch has no uploads."""
    if not selector.is_latest:
        logger.info("Using pinned baseline commit %s on %s", selector.commit_or_latest, selector.branch)
        return selector.commit_or_latest

    records = client.list_uploads(site_id)
    commit = select_latest_commit(records, selector.branch)
    if commit is None:
        logger.warning(
            "No baseline uploads found for site %s on branch %s; skipping report",
            site_id, selector.branch,
        )
        return None

    logger.info("Resolved baseline commit for %s to %s", selector.branch, commit)
    return commit


def fetch_baseline_uploads(
    client: GodiffyClient, site_id: str, branch: str, commit: str
) -> list[UploadRecord]:
    """Uploads for exactly ``branch@commit``, in backend order."""
    records = client.list_uploads(site_id, branch=branch, commit=commit)
    baselines = [r for r in records if r.branch == branch and r.commit == commit]
    logger.info("Fetched %d baseline upload(s) for %s@%s", len(baselines), branch, commit)
    return baselines
