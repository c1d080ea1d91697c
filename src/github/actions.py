"""GitHub Actions workflow commands and environment files."""

from __future__ import annotations

import logging
import os
import sys
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Optional, TextIO

logger = logging.getLogger(__name__)


def running_in_actions(environ: Mapping[str, str] | None = None) -> bool:
    env = os.environ if environ is None else environ
    return env.get("GITHUB_ACTIONS", "").lower() == "true"


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def set_output(name: str, value: Any, environ: Mapping[str, str] | None = None) -> None:
    """Append ``name=value`` to the ``$GITHUB_OUTPUT`` file. ``None`` is skipped."""
    if value is None:
        return
    env = os.environ if environ is None else environ
    text = _format_value(value)
    path = env.get("GITHUB_OUTPUT")
    if not path:
        logger.debug("Output %s=%s (GITHUB_OUTPUT not set)", name, text)
        return
    with open(path, "a", encoding="utf-8") as f:
        if "\n" in text:
            delimiter = f"ghadelimiter_{uuid.uuid4().hex}"
            f.write(f"{name}<<{delimiter}\n{text}\n{delimiter}\n")
        else:
            f.write(f"{name}={text}\n")


def append_step_summary(markdown: str, environ: Mapping[str, str] | None = None) -> bool:
    """Append markdown to the job summary. Returns False outside of Actions."""
    env = os.environ if environ is None else environ
    path = env.get("GITHUB_STEP_SUMMARY")
    if not path:
        return False
    with open(path, "a", encoding="utf-8") as f:
        f.write(markdown)
        if not markdown.endswith("\n"):
            f.write("\n")
    return True


def _escape_data(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def annotation(level: str, message: str, stream: Optional[TextIO] = None) -> None:
    """Write a ``::warning::`` / ``::error::`` / ``::notice::`` command."""
    out = stream or sys.stdout
    out.write(f"::{level}::{_escape_data(message)}\n")
    out.flush()


@contextmanager
def group(title: str, enabled: bool | None = None, stream: Optional[TextIO] = None) -> Iterator[None]:
    """Fold the enclosed log lines into a collapsible group in the job log."""
    active = running_in_actions() if enabled is None else enabled
    out = stream or sys.stdout
    if active:
        out.write(f"::group::{title}\n")
        out.flush()
    try:
        yield
    finally:
        if active:
            out.write("::endgroup::\n")
            out.flush()


class AnnotationHandler(logging.Handler):
    """Logging handler that surfaces warnings and errors as workflow annotations."""

    LEVELS = {logging.WARNING: "warning", logging.ERROR: "error", logging.CRITICAL: "error"}

    def __init__(self, stream: Optional[TextIO] = None):
        super().__init__(level=logging.WARNING)
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = self.LEVELS.get(record.levelno, "warning")
            annotation(level, self.format(record), stream=self.stream)
        except Exception:
            self.handleError(record)
