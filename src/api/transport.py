"""HTTP layer with bearer auth and bounded retry."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import httpx

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({502, 503, 504})


class TransportFailure(Exception):
    """Network-level failure that persisted through every retry attempt."""

    def __init__(self, method: str, url: str, attempts: int, cause: Exception):
        self.method = method
        self.url = url
        self.attempts = attempts
        self.cause = cause
        super().__init__(f"{method} {url} failed after {attempts} attempt(s): {cause}")


@dataclass
class ApiResponse:
    status_code: int
    url: str
    body: Any = field(default_factory=dict)
    raw_text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def error_message(self) -> str:
        """The backend's ``error`` field verbatim, or a generic status message."""
        if isinstance(self.body, dict) and self.body.get("error"):
            return str(self.body["error"])
        return f"HTTP {self.status_code}"


def backoff_delay(attempt: int, base: float = 1.0, cap: float = 5.0) -> float:
    """Delay before retry number ``attempt`` (1-based): base, 2*base, 4*base... capped."""
    return min(base * (2 ** (attempt - 1)), cap)


class ReliableClient:
    """Executes requests against one backend with retry on transient failures.

    Only HTTP 502/503/504 and ``httpx.TransportError`` are retried. Every
    other status is handed back to the caller on the first attempt.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        max_attempts: int = 3,
        backoff_base: float = 1.0,
        backoff_cap: float = 5.0,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.max_attempts = max(1, max_attempts)
        self.backoff_base = backoff_base
        self.backoff_cap = backoff_cap
        self._sleep = sleep
        self._client = httpx.Client(
            base_url=base_url,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ReliableClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
    ) -> ApiResponse:
        """Send a request and return the final response, retrying transient failures."""
        url = str(self._client.build_request(method, path, params=params).url)
        attempt = 0
        while True:
            attempt += 1
            try:
                response = self._client.request(method, path, params=params, json=json)
            except httpx.TransportError as e:
                if attempt >= self.max_attempts:
                    logger.error("%s %s: transport error on final attempt %d: %s", method, url, attempt, e)
                    raise TransportFailure(method, url, attempt, e) from e
                delay = backoff_delay(attempt, self.backoff_base, self.backoff_cap)
                logger.warning(
                    "%s %s: transport error (%s), retrying in %.1fs (attempt %d/%d)",
                    method, url, e, delay, attempt, self.max_attempts,
                )
                self._sleep(delay)
                continue

            if response.status_code in RETRYABLE_STATUS_CODES and attempt < self.max_attempts:
                delay = backoff_delay(attempt, self.backoff_base, self.backoff_cap)
                logger.warning(
                    "%s %s: HTTP %d, retrying in %.1fs (attempt %d/%d)",
                    method, url, response.status_code, delay, attempt, self.max_attempts,
                )
                self._sleep(delay)
                continue

            logger.debug("%s %s -> HTTP %d", method, url, response.status_code)
            return _to_api_response(response)


def _to_api_response(response: httpx.Response) -> ApiResponse:
    text = response.text
    body: Any = {}
    if text.strip():
        try:
            body = response.json()
        except ValueError:
            logger.debug("Non-JSON body from %s: %.200s", response.request.url, text)
            body = {}
    return ApiResponse(
        status_code=response.status_code,
        url=str(response.request.url),
        body=body,
        raw_text=text,
    )
