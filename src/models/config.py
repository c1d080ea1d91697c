"""Configuration models for the GoDiffy action."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from src.models.upload import LATEST, BaselineSelector

DEFAULT_BASE_URL = "https://godiffy-backend-dev.up.railway.app"

# field name -> GitHub Actions input name
INPUT_NAMES: dict[str, str] = {
    "api_key": "api-key",
    "site_id": "site-id",
    "images_path": "images-path",
    "base_url": "base-url",
    "candidate_branch": "branch",
    "candidate_commit": "commit",
    "baseline_branch": "baseline-branch",
    "baseline_commit": "baseline-commit",
    "create_report": "create-report",
    "comparison_flow": "comparison-flow",
    "report_name": "report-name",
    "report_description": "report-description",
    "algorithm": "comparison-algorithm",
    "threshold": "comparison-threshold",
}

REQUIRED_FIELDS = ("api_key", "site_id", "images_path")

NOT_PERSISTED = {"api_key", "candidate_branch", "candidate_commit", "event_name"}


class ConfigError(ValueError):
    """A required input is missing or an input value is invalid."""


class ViewportConfig(BaseModel):
    width: int = 1280
    height: int = 720
    name: str = "desktop"


class CapturePage(BaseModel):
    name: str  # becomes the screenshot file name, e.g. "products/item-1"
    url: str
    full_page: bool = True

    @field_validator("name")
    @classmethod
    def name_stays_inside_output(cls, v: str) -> str:
        parts = v.replace("\\", "/").strip("/").split("/")
        if not v.strip("/") or ".." in parts:
            raise ValueError(f"page name must be a relative path without '..': {v!r}")
        return v


class CaptureConfig(BaseModel):
    pages: list[CapturePage] = Field(default_factory=list)
    viewports: list[ViewportConfig] = Field(
        default_factory=lambda: [ViewportConfig(width=1280, height=720, name="desktop")]
    )
    wait_for_idle: bool = True
    user_agent: Optional[str] = None


class ActionConfig(BaseModel):
    # Backend
    api_key: str
    site_id: str
    base_url: str = DEFAULT_BASE_URL

    # Uploads
    images_path: str
    candidate_branch: str = ""
    candidate_commit: str = ""

    # Report generation
    create_report: bool = False
    comparison_flow: Literal["reports", "compare"] = "reports"
    baseline_branch: str = "master"
    baseline_commit: str = LATEST
    report_name: str = ""
    report_description: str = ""
    algorithm: str = "pixelmatch"
    threshold: float = Field(default=0.1, ge=0.0, le=1.0)

    # CI context
    event_name: str = ""

    # Transport
    max_attempts: int = Field(default=3, ge=1)
    backoff_base: float = 1.0
    backoff_cap: float = 5.0
    timeout: float = 30.0

    # Optional Playwright capture step
    capture: Optional[CaptureConfig] = None

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def baseline_selector(self) -> BaselineSelector:
        return BaselineSelector(branch=self.baseline_branch, commit_or_latest=self.baseline_commit or LATEST)

    @property
    def is_pull_request(self) -> bool:
        return self.event_name == "pull_request"

    def effective_report_name(self) -> str:
        return self.report_name or f"{self.candidate_branch} vs {self.baseline_branch}"

    def effective_report_description(self, baseline_commit: str) -> str:
        if self.report_description:
            return self.report_description
        return (
            f"Visual regression report for {self.candidate_branch} ({self.candidate_commit}) "
            f"vs {self.baseline_branch} ({baseline_commit})."
        )

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file, leaving out the API key and CI context."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(exclude=NOT_PERSISTED), f, indent=2)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ActionConfig":
        """Build the config from GitHub Actions inputs and context variables."""
        return cls.resolve({}, environ=environ)

    @classmethod
    def resolve(
        cls,
        file_data: dict[str, Any] | None = None,
        environ: Mapping[str, str] | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> "ActionConfig":
        """Merge config file, environment and CLI values (later wins) and validate."""
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {}
        data.update(github_context(env))
        data.update({k: v for k, v in (file_data or {}).items() if v not in (None, "")})
        data.update(read_action_inputs(env))
        data.update({k: v for k, v in (overrides or {}).items() if v not in (None, "")})

        for name in REQUIRED_FIELDS:
            if not data.get(name):
                raise ConfigError(f"{INPUT_NAMES[name]} is required")

        try:
            return cls(**data)
        except ValueError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e


def read_action_inputs(environ: Mapping[str, str]) -> dict[str, str]:
    """Collect non-empty ``INPUT_*`` variables, keyed by config field name.

    The runner keeps hyphens in input names (``INPUT_API-KEY``); older
    wrappers export the underscore form (``INPUT_API_KEY``). Both are read.
    """
    values: dict[str, str] = {}
    for field, input_name in INPUT_NAMES.items():
        upper = input_name.upper()
        for key in (f"INPUT_{upper}", f"INPUT_{upper.replace('-', '_')}"):
            value = environ.get(key, "").strip()
            if value:
                values[field] = value
                break
    return values


def github_context(environ: Mapping[str, str]) -> dict[str, str]:
    """Defaults taken from the workflow run that invoked the action."""
    context = {
        "candidate_branch": environ.get("GITHUB_HEAD_REF") or environ.get("GITHUB_REF_NAME", ""),
        "candidate_commit": environ.get("GITHUB_SHA", ""),
        "event_name": environ.get("GITHUB_EVENT_NAME", ""),
    }
    return {k: v for k, v in context.items() if v}
