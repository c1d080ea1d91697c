"""Upload data structures shared by the upload, resolver and matcher stages."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

LATEST = "latest"


class UploadRecord(BaseModel):
    """Backend-confirmed metadata for one stored screenshot."""

    model_config = ConfigDict(frozen=True)

    id: str
    logical_path: str  # slash-separated, relative to the images root
    branch: str = ""
    commit: str = ""
    created_at: Optional[datetime] = None


class UploadFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    logical_path: str
    error_message: str


class UploadBatchResult(BaseModel):
    """Outcome of one upload pass. Built by folding over the image files."""

    model_config = ConfigDict(frozen=True)

    successful: list[UploadRecord] = Field(default_factory=list)
    failed: list[UploadFailure] = Field(default_factory=list)

    @property
    def upload_ids(self) -> list[str]:
        return [r.id for r in self.successful]

    def with_success(self, record: UploadRecord) -> "UploadBatchResult":
        return UploadBatchResult(successful=[*self.successful, record], failed=self.failed)

    def with_failure(self, failure: UploadFailure) -> "UploadBatchResult":
        return UploadBatchResult(successful=self.successful, failed=[*self.failed, failure])


class BaselineSelector(BaseModel):
    branch: str
    commit_or_latest: str = LATEST

    @property
    def is_latest(self) -> bool:
        return self.commit_or_latest == LATEST
