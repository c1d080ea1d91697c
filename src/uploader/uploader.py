"""Upload discovered screenshots to the backend, one request per file."""

from __future__ import annotations

import logging
from functools import reduce
from pathlib import Path

from src.api.client import GodiffyClient
from src.api.normalize import record_from_wire
from src.api.transport import TransportFailure
from src.models.upload import UploadBatchResult, UploadFailure

from .scanner import ImageFile, discover_images

logger = logging.getLogger(__name__)


class ScreenshotUploader:
    """Uploads images one at a time, accumulating successes and failures.

    Every per-file failure (HTTP error, exhausted retries, or a success
    response without an upload id) is recorded and the batch continues.
    Deciding whether failures abort the run is left to the caller.
    """

    def __init__(self, client: GodiffyClient, site_id: str, branch: str, commit: str):
        self.client = client
        self.site_id = site_id
        self.branch = branch
        self.commit = commit

    def upload_all(self, images_root: str | Path) -> UploadBatchResult:
        images = discover_images(images_root)
        result = reduce(self._upload_one, images, UploadBatchResult())
        logger.info(
            "Uploaded %d image(s) for %s@%s, %d failed",
            len(result.successful), self.branch, self.commit, len(result.failed),
        )
        return result

    def _upload_one(self, acc: UploadBatchResult, image: ImageFile) -> UploadBatchResult:
        logger.debug("Uploading %s (%s)", image.logical_path, image.content_type)
        try:
            response = self.client.upload_image(
                site_id=self.site_id,
                branch=self.branch,
                commit=self.commit,
                logical_path=image.logical_path,
                file_name=image.path.name,
                content_type=image.content_type,
                data=image.path.read_bytes(),
            )
        except (TransportFailure, OSError) as e:
            logger.error("Failed to upload %s: %s", image.logical_path, e)
            return acc.with_failure(UploadFailure(logical_path=image.logical_path, error_message=str(e)))

        if not response.ok:
            logger.error("Failed to upload %s: %s", image.logical_path, response.error_message)
            return acc.with_failure(UploadFailure(
                logical_path=image.logical_path, error_message=response.error_message,
            ))

        upload = response.body.get("upload") if isinstance(response.body, dict) else None
        if isinstance(upload, dict) and not (upload.get("path") or upload.get("objectKey")):
            upload = {**upload, "path": image.logical_path}
        record = record_from_wire(upload, branch=self.branch, commit=self.commit)
        if record is None:
            logger.warning(
                "Upload response missing expected fields for %s; got: %.200s",
                image.logical_path, response.raw_text,
            )
            return acc.with_failure(UploadFailure(
                logical_path=image.logical_path, error_message="response missing upload id",
            ))

        logger.info("Uploaded %s (id=%s)", image.logical_path, record.id)
        return acc.with_success(record)


def upload_screenshots(
    client: GodiffyClient, site_id: str, images_root: str | Path, branch: str, commit: str
) -> UploadBatchResult:
    """Upload every image under ``images_root`` for the given branch and commit."""
    return ScreenshotUploader(client, site_id, branch, commit).upload_all(images_root)
