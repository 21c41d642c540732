"""Base HTTP transport for the WordPress REST API.

Provides:
- Per-attempt timeout (a timeout is terminal, never retried here)
- Automatic retry with exponential backoff for connection-level failures
- Structured error classification (see wpcontent.clients.errors)
- Canonical endpoint/query serialization, which doubles as the cache key

HTTP status errors are not retried at this layer: retrying a 404 three
times is wasted work. Call-site retries belong to the retry orchestrator.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    stop_any,
    wait_exponential,
)

from wpcontent.clients.errors import (
    HTTPStatusError,
    InvalidResponse,
    NetworkFailure,
    NotFoundError,
    RequestTimeout,
)
from wpcontent.utils.scope import CancelToken, current_scope

log = logging.getLogger("wpcontent.transport")

Sleep = Callable[[float], Awaitable[Any]]


def serialize_params(params: Mapping[str, Any] | None) -> list[tuple[str, str]]:
    """Normalize query parameters into sorted wire pairs.

    None values and empty lists are dropped, lists are comma-joined and
    booleans become ``true``/``false``. Sorting makes the result
    independent of insertion order.
    """
    pairs: list[tuple[str, str]] = []
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            if not value:
                continue
            items = sorted(value) if isinstance(value, (set, frozenset)) else value
            pairs.append((key, ",".join(_scalar(v) for v in items)))
        else:
            pairs.append((key, _scalar(value)))
    return sorted(pairs)


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_endpoint(path: str, params: Mapping[str, Any] | None = None) -> str:
    """Path plus canonical query string, e.g. ``/posts?page=1&per_page=10``."""
    path = "/" + path.lstrip("/")
    pairs = serialize_params(params)
    if not pairs:
        return path
    return f"{path}?{httpx.QueryParams(pairs)}"


@dataclass(frozen=True)
class APIResponse:
    """Parsed JSON body plus the response metadata callers need."""

    data: Any
    headers: httpx.Headers
    status_code: int
    endpoint: str

    def header_int(self, name: str, default: int) -> int:
        try:
            return int(self.headers.get(name, default))
        except (TypeError, ValueError):
            return default


def _is_transient(exc: BaseException) -> bool:
    """Connection-level failures only; timeouts are terminal."""
    return isinstance(exc, httpx.TransportError) and not isinstance(exc, httpx.TimeoutException)


class WordPressTransport:
    """HTTP transport with timeout, backoff and error classification.

    Usage:
        transport = WordPressTransport(
            base_url="https://cms.example.com/wp-json/wp/v2",
            timeout=10.0,
            retry_attempts=3,   # retries after the first attempt
            retry_delay=1.0,    # 1s, 2s, 4s
        )
        response = await transport.get("/posts?per_page=1")
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self._sleep = sleep
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Accept": "application/json", **(headers or {})},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> WordPressTransport:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def get(self, endpoint: str, cancel_token: CancelToken | None = None) -> APIResponse:
        """GET ``endpoint`` (path plus serialized query) and return parsed JSON."""
        scope = current_scope()
        if cancel_token is None and scope is not None:
            cancel_token = scope.cancel_token

        retrying = AsyncRetrying(
            stop=stop_any(stop_after_attempt(self.retry_attempts + 1), self._budget_spent),
            wait=wait_exponential(multiplier=self.retry_delay, exp_base=2),
            retry=retry_if_exception(_is_transient),
            sleep=self._sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )

        attempts = 0
        try:
            async for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    if cancel_token is not None:
                        cancel_token.raise_if_cancelled(endpoint)
                    if scope is not None and scope.budget is not None:
                        scope.budget.record_attempt()
                    response = await self._client.get(endpoint)
        except httpx.TimeoutException as e:
            log.warning("Timeout after %ss on %s", self.timeout, endpoint)
            raise RequestTimeout(endpoint, self.timeout) from e
        except httpx.TransportError as e:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled(endpoint)
            log.warning("Network failure on %s after %d attempt(s): %s", endpoint, attempts, e)
            raise NetworkFailure(str(e) or type(e).__name__, endpoint, attempts) from e

        if cancel_token is not None:
            cancel_token.raise_if_cancelled(endpoint)

        if not response.is_success:
            raise self._status_error(response, endpoint)

        try:
            data = response.json()
        except ValueError as e:
            raise InvalidResponse(f"Invalid JSON response: {e}", endpoint) from e
        if data is None:
            raise InvalidResponse("Invalid response: null or undefined data", endpoint)

        return APIResponse(
            data=data,
            headers=response.headers,
            status_code=response.status_code,
            endpoint=endpoint,
        )

    @staticmethod
    def _status_error(response: httpx.Response, endpoint: str) -> HTTPStatusError:
        """Build an HTTPStatusError, preferring the WordPress ``{code, message}`` body."""
        status = response.status_code
        message = f"HTTP {status}: {response.reason_phrase}"
        code = None
        remote_message = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("code") and body.get("message"):
            code = str(body["code"])
            remote_message = str(body["message"])
            message = remote_message

        if status == 404:
            return NotFoundError(message, endpoint, code=code, remote_message=remote_message)
        return HTTPStatusError(message, status, endpoint, code=code, remote_message=remote_message)

    @staticmethod
    def _budget_spent(retry_state: RetryCallState) -> bool:
        scope = current_scope()
        if scope is None:
            return False
        if scope.cancel_token is not None and scope.cancel_token.cancelled:
            return True
        if scope.budget is None:
            return False
        return not scope.budget.allows_wait(retry_state.upcoming_sleep)

    def _log_retry(self, retry_state: RetryCallState) -> None:
        delay = 0.0
        if retry_state.next_action is not None:
            delay = float(retry_state.next_action.sleep)
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        log.warning(
            "Network error (%s), retrying in %.2fs (attempt %d/%d)",
            exc,
            delay,
            retry_state.attempt_number,
            self.retry_attempts + 1,
        )
