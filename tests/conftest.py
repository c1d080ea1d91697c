"""Pytest configuration and shared fixtures."""

import itertools
import json
from pathlib import Path
from typing import Any, Optional

import httpx
import pytest

from src.api.client import GodiffyClient
from src.api.normalize import record_from_wire
from src.api.transport import ReliableClient
from src.models.config import ActionConfig
from src.models.upload import UploadRecord

BASE_URL = "https://godiffy.test"

# PNG signature plus padding; nothing decodes the image
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


# ============================================================================
# Fake backend
# ============================================================================


class FakeBackend:
    """In-memory stand-in for the GoDiffy API, served through httpx.MockTransport."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.listing: list[dict[str, Any]] = []
        self.listing_wrapped = False
        self.listing_status = 200
        self.upload_status = 201
        self.upload_body: Optional[dict[str, Any]] = None
        self.upload_failures: dict[str, tuple[int, dict]] = {}  # path -> (status, body)
        self.report_status = 200
        self.report_body: Optional[dict[str, Any]] = None
        self.compare_status = 200
        self.compare_body: dict[str, Any] = {}
        self._ids = itertools.count(1)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def requests_to(self, method: str, path_suffix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path.endswith(path_suffix)]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path == "/api/v2/uploads":
            payload = json.loads(request.content)
            if payload["path"] in self.upload_failures:
                status, body = self.upload_failures[payload["path"]]
                return httpx.Response(status, json=body)
            if self.upload_body is not None:
                return httpx.Response(self.upload_status, json=self.upload_body)
            upload = {
                "id": f"up-{next(self._ids)}",
                "objectKey": payload["path"],
                "branch": payload["branch"],
                "commit": payload["commit"],
            }
            return httpx.Response(self.upload_status, json={"upload": upload})

        if request.method == "GET" and path == "/api/v2/uploads":
            if self.listing_status != 200:
                return httpx.Response(self.listing_status, json={"error": "listing unavailable"})
            body: Any = {"uploads": self.listing} if self.listing_wrapped else self.listing
            return httpx.Response(200, json=body)

        if request.method == "POST" and path.endswith("/reports"):
            payload = json.loads(request.content)
            if self.report_body is not None:
                return httpx.Response(self.report_status, json=self.report_body)
            return httpx.Response(self.report_status, json={
                "id": "rep-1",
                "totalComparisons": len(payload["comparisons"]),
                "differencesFound": 0,
                "status": "completed",
            })

        if request.method == "POST" and path.endswith("/compare"):
            return httpx.Response(self.compare_status, json=self.compare_body)

        return httpx.Response(404, json={"error": f"no route for {request.method} {path}"})


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def images_dir(tmp_path: Path) -> Path:
    """Screenshots directory with two images in nested folders and one non-image."""
    root = tmp_path / "screenshots"
    (root / "products").mkdir(parents=True)
    (root / "homepage.png").write_bytes(PNG_BYTES)
    (root / "products" / "item-1.jpg").write_bytes(b"\xff\xd8\xff" + b"\x00" * 8)
    (root / "notes.txt").write_text("not an image")
    return root


@pytest.fixture
def action_config(images_dir: Path) -> ActionConfig:
    """Create a test action configuration for a pull request run."""
    return ActionConfig(
        api_key="test-key",
        site_id="site-1",
        base_url=BASE_URL,
        images_path=str(images_dir),
        candidate_branch="feature/login",
        candidate_commit="cand123",
        baseline_branch="master",
        baseline_commit="latest",
        create_report=True,
        event_name="pull_request",
        backoff_base=0.0,
        backoff_cap=0.0,
    )


# ============================================================================
# Client Fixtures
# ============================================================================


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def sleeps() -> list[float]:
    """Records backoff delays instead of sleeping."""
    return []


@pytest.fixture
def client(backend: FakeBackend, sleeps: list[float]) -> GodiffyClient:
    transport = ReliableClient(
        BASE_URL, "test-key", transport=backend.transport, sleep=sleeps.append,
    )
    with GodiffyClient(transport) as c:
        yield c


def make_record(
    upload_id: str,
    path: str,
    branch: str = "master",
    commit: str = "base1",
    created_at: Optional[str] = None,
) -> UploadRecord:
    return record_from_wire({
        "id": upload_id, "path": path, "branch": branch, "commit": commit, "createdAt": created_at,
    })
