"""GoDiffy backend API client."""

from __future__ import annotations

import base64
import logging
from typing import Any, Optional

from src.api.normalize import parse_upload_listing
from src.api.transport import ApiResponse, ReliableClient
from src.models.config import ActionConfig
from src.models.report import ReportRequest
from src.models.upload import UploadRecord

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v2"


class ApiError(Exception):
    """The backend answered with a non-success status."""

    def __init__(self, endpoint: str, status_code: int, message: str):
        self.endpoint = endpoint
        self.status_code = status_code
        self.message = message
        super().__init__(f"{endpoint} returned HTTP {status_code}: {message}")


class GodiffyClient:
    """Thin wrapper over the upload, listing, report and compare endpoints."""

    def __init__(self, transport: ReliableClient):
        self.transport = transport

    @classmethod
    def from_config(cls, config: ActionConfig, **transport_kwargs: Any) -> "GodiffyClient":
        return cls(ReliableClient(
            base_url=config.base_url,
            api_key=config.api_key,
            max_attempts=config.max_attempts,
            backoff_base=config.backoff_base,
            backoff_cap=config.backoff_cap,
            timeout=config.timeout,
            **transport_kwargs,
        ))

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> "GodiffyClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def upload_image(
        self,
        site_id: str,
        branch: str,
        commit: str,
        logical_path: str,
        file_name: str,
        content_type: str,
        data: bytes,
    ) -> ApiResponse:
        """Create one upload. The caller inspects the response."""
        payload = {
            "siteId": site_id,
            "branch": branch,
            "commit": commit,
            "path": logical_path,
            "fileName": file_name,
            "contentType": content_type,
            "data": base64.b64encode(data).decode("ascii"),
        }
        return self.transport.request("POST", f"{API_PREFIX}/uploads", json=payload)

    def list_uploads(
        self, site_id: str, branch: Optional[str] = None, commit: Optional[str] = None
    ) -> list[UploadRecord]:
        """List uploads visible for the site. Filters are hints; callers re-filter."""
        params = {"siteId": site_id}
        if branch:
            params["branch"] = branch
        if commit:
            params["commit"] = commit
        endpoint = f"{API_PREFIX}/uploads"
        response = self.transport.request("GET", endpoint, params=params)
        if not response.ok:
            raise ApiError(f"GET {endpoint}", response.status_code, response.error_message)
        records = parse_upload_listing(response.body)
        logger.debug("Listed %d uploads for site %s (branch=%s, commit=%s)",
                     len(records), site_id, branch or "*", commit or "*")
        return records

    def create_report(self, site_id: str, request: ReportRequest) -> ApiResponse:
        return self.transport.request(
            "POST", f"{API_PREFIX}/sites/{site_id}/reports", json=request.to_payload()
        )

    def compare(self, site_id: str, payload: dict[str, Any]) -> ApiResponse:
        return self.transport.request("POST", f"{API_PREFIX}/sites/{site_id}/compare", json=payload)
