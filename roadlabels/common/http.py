"""HTTP client with fixed-delay retries, timeouts and Frost basic auth."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import TracebackType
from typing import Any

import requests
from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from roadlabels.common.constants import USER_AGENT
from roadlabels.common.errors import ResponseSchemaError, StageError

logger = logging.getLogger(__name__)

HTTP_OK = 200
HTTP_NOT_FOUND = 404


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 10.0
    read: float = 20.0


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 10
    wait_seconds: float = 2.0


class HttpRequestError(StageError):
    error_code = "HTTP_ERROR"


class RetryableHttpError(HttpRequestError):
    pass


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "http request failed, retrying: %s",
        exc,
        extra={"event": "HTTP_RETRY", "status": "retry", "attempt": retry_state.attempt_number},
    )


class HttpClient:
    def __init__(
        self,
        *,
        client_id: str | None = None,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.session = requests.Session()
        if client_id:
            self.session.auth = (client_id, "")

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        out = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if headers:
            out.update(headers)
        return out

    def _send(
        self,
        url: str,
        *,
        params: dict[str, Any] | None,
        headers: dict[str, str] | None,
        timeout: TimeoutConfig | None,
    ) -> requests.Response:
        req_timeout = timeout or self.timeout
        try:
            return self.session.request(
                method="GET",
                url=url,
                params=params,
                headers=self._headers(headers),
                timeout=(req_timeout.connect, req_timeout.read),
            )
        except requests.RequestException as exc:
            raise RetryableHttpError(f"Transport failure for {url}: {exc}") from exc

    def _decode(self, response: requests.Response, url: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ResponseSchemaError(f"Invalid JSON payload from {url}") from exc

    def _get_json_once(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> Any:
        response = self._send(url, params=params, headers=headers, timeout=timeout)
        if response.status_code != HTTP_OK:
            raise RetryableHttpError(f"HTTP status {response.status_code} from {url}")
        return self._decode(response, url)

    def get_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> Any:
        """GET a JSON document, retrying transport errors and any non-200 status.

        Retries use a fixed delay. Only after the attempt budget is exhausted is
        the last ``RetryableHttpError`` re-raised. Undecodable bodies raise
        ``ResponseSchemaError`` straight away.
        """

        @retry(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_fixed(self.retry.wait_seconds),
            retry=retry_if_exception_type(RetryableHttpError),
            before_sleep=_log_retry,
            reraise=True,
        )
        def _wrapped() -> Any:
            return self._get_json_once(url, params=params, headers=headers, timeout=timeout)

        return _wrapped()

    def probe_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> Any | None:
        """Single-attempt GET. 404 means "nothing there" and returns ``None``."""
        response = self._send(url, params=params, headers=headers, timeout=timeout)
        if response.status_code == HTTP_NOT_FOUND:
            return None
        if response.status_code != HTTP_OK:
            raise HttpRequestError(f"HTTP status {response.status_code} from {url}")
        return self._decode(response, url)
