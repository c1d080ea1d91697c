"""Comparison and report data structures."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.models.upload import UploadBatchResult


class Comparison(BaseModel):
    """One baseline/candidate pairing sharing a logical path."""

    model_config = ConfigDict(frozen=True)

    logical_path: str
    baseline_upload_id: str
    candidate_upload_id: str

    def to_payload(self) -> dict[str, str]:
        return {
            "path": self.logical_path,
            "baselineUploadId": self.baseline_upload_id,
            "candidateUploadId": self.candidate_upload_id,
        }


class MatchResult(BaseModel):
    comparisons: list[Comparison] = Field(default_factory=list)
    unmatched: list[str] = Field(default_factory=list)  # candidate logical paths


class ReportRequest(BaseModel):
    name: str
    description: str = ""
    baseline_branch: str
    baseline_commit: str
    candidate_branch: str
    candidate_commit: str
    algorithm: str = "pixelmatch"
    threshold: float = Field(default=0.1, ge=0.0, le=1.0)
    comparisons: list[Comparison] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        """Return the camelCase body expected by the reports endpoint."""
        return {
            "name": self.name,
            "description": self.description,
            "baselineBranch": self.baseline_branch,
            "baselineCommit": self.baseline_commit,
            "candidateBranch": self.candidate_branch,
            "candidateCommit": self.candidate_commit,
            "algorithm": self.algorithm,
            "threshold": self.threshold,
            "comparisons": [c.to_payload() for c in self.comparisons],
        }


class ReportResult(BaseModel):
    id: str = ""
    total_comparisons: int = 0
    differences_found: int = 0
    status: str = ""
    inconsistencies: list[str] = Field(default_factory=list)  # missing response fields


class CompareResult(BaseModel):
    """Aggregate stats returned by the server-side compare endpoint."""
    total_comparisons: int = 0
    passed_comparisons: int = 0
    failed_comparisons: int = 0
    average_similarity: float = 0.0
    report_id: Optional[str] = None
    inconsistencies: list[str] = Field(default_factory=list)


class ActionOutcome(BaseModel):
    status: str = "completed"  # completed, skipped, failed
    uploads: UploadBatchResult = Field(default_factory=UploadBatchResult)
    report: Optional[ReportResult] = None
    compare: Optional[CompareResult] = None
    report_url: Optional[str] = None
    skip_reason: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def differences_found(self) -> bool:
        if self.report is not None:
            return self.report.differences_found > 0
        if self.compare is not None:
            return self.compare.failed_comparisons > 0
        return False
