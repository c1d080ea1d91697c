"""Tests for the GoDiffy API client."""

import base64
import json

import pytest

from src.api.client import ApiError, GodiffyClient
from src.api.normalize import MalformedResponse
from src.models.config import ActionConfig
from src.models.report import Comparison, ReportRequest


class TestUploadImage:
    def test_sends_base64_json_body(self, client, backend):
        response = client.upload_image(
            site_id="site-1", branch="feature", commit="abc", logical_path="dir/a.png",
            file_name="a.png", content_type="image/png", data=b"\x89PNG",
        )

        assert response.status_code == 201
        (request,) = backend.requests_to("POST", "/api/v2/uploads")
        payload = json.loads(request.content)
        assert payload == {
            "siteId": "site-1",
            "branch": "feature",
            "commit": "abc",
            "path": "dir/a.png",
            "fileName": "a.png",
            "contentType": "image/png",
            "data": base64.b64encode(b"\x89PNG").decode(),
        }


class TestListUploads:
    def test_query_parameters(self, client, backend):
        client.list_uploads("site-1", branch="master", commit="c1")
        (request,) = backend.requests_to("GET", "/api/v2/uploads")
        assert request.url.params["siteId"] == "site-1"
        assert request.url.params["branch"] == "master"
        assert request.url.params["commit"] == "c1"

    def test_site_only_query(self, client, backend):
        client.list_uploads("site-1")
        (request,) = backend.requests_to("GET", "/api/v2/uploads")
        assert "branch" not in request.url.params

    @pytest.mark.parametrize("wrapped", [False, True])
    def test_both_listing_shapes(self, client, backend, wrapped):
        backend.listing = [{"id": "u1", "objectKey": "a.png", "branch": "master", "commit": "c1"}]
        backend.listing_wrapped = wrapped
        records = client.list_uploads("site-1")
        assert [(r.id, r.logical_path) for r in records] == [("u1", "a.png")]

    def test_error_status_raises_api_error(self, client, backend):
        backend.listing_status = 403
        with pytest.raises(ApiError) as exc_info:
            client.list_uploads("site-1")
        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "listing unavailable"
        assert "/api/v2/uploads" in exc_info.value.endpoint

    def test_malformed_listing_raises(self, client, backend, monkeypatch):
        monkeypatch.setattr(backend, "listing", None)
        with pytest.raises(MalformedResponse):
            client.list_uploads("site-1")


class TestReportEndpoints:
    def test_create_report_posts_to_site(self, client, backend):
        request = ReportRequest(
            name="n", baseline_branch="master", baseline_commit="b", candidate_branch="f",
            candidate_commit="c",
            comparisons=[Comparison(logical_path="a.png", baseline_upload_id="b1", candidate_upload_id="c1")],
        )
        response = client.create_report("site-1", request)
        assert response.ok
        (sent,) = backend.requests_to("POST", "/api/v2/sites/site-1/reports")
        assert json.loads(sent.content)["comparisons"][0]["baselineUploadId"] == "b1"

    def test_compare_posts_payload(self, client, backend):
        backend.compare_body = {"totalComparisons": 2}
        response = client.compare("site-1", {"saveReport": False})
        assert response.body == {"totalComparisons": 2}
        assert backend.requests_to("POST", "/api/v2/sites/site-1/compare")


class TestFromConfig:
    def test_builds_transport_from_config(self):
        config = ActionConfig(api_key="k", site_id="s", images_path="i", max_attempts=5, backoff_cap=2.0)
        with GodiffyClient.from_config(config) as client:
            assert client.transport.max_attempts == 5
            assert client.transport.backoff_cap == 2.0
