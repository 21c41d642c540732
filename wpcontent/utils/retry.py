"""Call-site retry orchestration with observable state.

``RetryOrchestrator`` wraps a zero-argument async operation (typically a
closure over one WordPressClient call) and exposes ``state`` so a page
can render "retrying (attempt 2)..." or a terminal error. It sits on top
of the transport's own connection-level retries; both layers draw on the
same ``RetryBudget`` when one is configured.

State machine:
    IDLE -> RUNNING -> IDLE                       (success)
                    -> RETRYING -> RUNNING        (retryable failure)
                    -> EXHAUSTED                  (attempts or budget spent)
                    -> FAILED                     (non-retryable failure)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, TypeVar

from wpcontent.clients.errors import RequestCancelled, is_retryable
from wpcontent.utils.scope import CallScope, CancelToken, RetryBudget, activate_scope

log = logging.getLogger("wpcontent.retry")

T = TypeVar("T")

DEFAULT_EXHAUSTED_MESSAGE = "Maximum retry attempts reached. Please try again later."


def default_retry_message(attempt: int) -> str:
    return f"Retrying... (attempt {attempt})"


class RetryPhase(str, Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    RETRYING = "RETRYING"
    EXHAUSTED = "EXHAUSTED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class RetryState:
    is_retrying: bool = False
    attempt_count: int = 0
    last_error: BaseException | None = None
    phase: RetryPhase = RetryPhase.IDLE


class RetryOrchestrator(Generic[T]):
    """Retry an async operation with exponential backoff.

    Usage:
        loader = RetryOrchestrator(lambda: wp.get_post_by_slug(slug), max_attempts=3)
        try:
            post = await loader.execute()
        except WordPressAPIError:
            ...  # loader.state.last_error drives the error view
        post = await loader.retry()  # user clicked "try again"

    ``attempt_count`` counts failed attempts since the last reset or
    success. Auto-retry stops at ``max_attempts``; a manual ``retry()``
    after that makes no further attempt and re-raises the last error.
    """

    def __init__(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        max_attempts: int = 3,
        initial_delay: float = 1.0,
        max_delay: float = 10.0,
        backoff_factor: float = 2.0,
        should_retry: Callable[[BaseException], bool] | None = None,
        on_retry: Callable[[int, BaseException], None] | None = None,
        on_max_attempts_reached: Callable[[BaseException], None] | None = None,
        max_total_attempts: int | None = None,
        max_elapsed: float | None = None,
        retry_message: Callable[[int], str] = default_retry_message,
        exhausted_message: str = DEFAULT_EXHAUSTED_MESSAGE,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._operation = operation
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.backoff_factor = backoff_factor
        self.should_retry = should_retry or is_retryable
        self.on_retry = on_retry
        self.on_max_attempts_reached = on_max_attempts_reached
        self.max_total_attempts = max_total_attempts
        self.max_elapsed = max_elapsed
        self.retry_message = retry_message
        self.exhausted_message = exhausted_message
        self._sleep = sleep

        self._state = RetryState()
        self._message: str | None = None
        self._token = CancelToken()
        self._budget = self._new_budget()

    @property
    def state(self) -> RetryState:
        return self._state

    @property
    def message(self) -> str | None:
        """Progress copy for the UI, or None when idle."""
        return self._message

    @property
    def budget(self) -> RetryBudget | None:
        return self._budget

    def compute_delay(self, attempt: int) -> float:
        """Backoff before retry number ``attempt + 1`` (attempt counted from 0)."""
        return min(self.initial_delay * (self.backoff_factor ** attempt), self.max_delay)

    def reset(self) -> None:
        """Clear state and cancel anything still in flight.

        An in-flight attempt sees its token cancelled; its result is
        discarded and the stale call raises RequestCancelled.
        """
        self._token.cancel()
        self._token = CancelToken()
        self._budget = self._new_budget()
        self._state = RetryState()
        self._message = None

    async def execute(self) -> T:
        self.reset()
        return await self._run(manual=False)

    async def retry(self) -> T:
        """Continue from the current attempt count.

        Once ``max_attempts`` failures are recorded no new attempt is made;
        the last error is raised again and the state is left unchanged.
        Use ``execute()`` to start over.
        """
        last_error = self._state.last_error
        if last_error is not None and self._state.attempt_count >= self.max_attempts:
            log.info("Retry skipped, %d attempt(s) already made", self._state.attempt_count)
            raise last_error
        self._message = None
        self._state = replace(self._state, is_retrying=True, phase=RetryPhase.RETRYING)
        return await self._run(manual=True)

    def _new_budget(self) -> RetryBudget | None:
        if self.max_total_attempts is None and self.max_elapsed is None:
            return None
        return RetryBudget(max_attempts=self.max_total_attempts, max_elapsed=self.max_elapsed)

    def _ensure_current(self, token: CancelToken) -> None:
        if token is not self._token or token.cancelled:
            raise RequestCancelled()

    async def _run(self, manual: bool) -> T:
        token = self._token
        scope = CallScope(cancel_token=token, budget=self._budget)
        with activate_scope(scope):
            while True:
                self._ensure_current(token)
                self._state = replace(self._state, phase=RetryPhase.RUNNING)
                try:
                    result = await self._operation()
                except RequestCancelled:
                    raise
                except Exception as e:
                    self._ensure_current(token)
                    delay = self._record_failure(e)
                    if delay is None:
                        raise
                    await self._sleep(delay)
                    continue

                self._ensure_current(token)
                self._state = RetryState()
                self._message = None
                return result

    def _record_failure(self, error: Exception) -> float | None:
        """Update state after a failed attempt. Returns the backoff, or None to stop."""
        attempts = self._state.attempt_count + 1

        if not self.should_retry(error):
            log.info("Not retrying %s: %s", type(error).__name__, error)
            self._state = RetryState(
                is_retrying=False, attempt_count=attempts, last_error=error, phase=RetryPhase.FAILED
            )
            return None

        delay = self.compute_delay(attempts - 1)
        budget_left = self._budget is None or self._budget.allows_wait(delay)
        if attempts >= self.max_attempts or not budget_left:
            log.warning("Giving up after %d attempt(s): %s", attempts, error)
            self._state = RetryState(
                is_retrying=False, attempt_count=attempts, last_error=error, phase=RetryPhase.EXHAUSTED
            )
            self._message = self.exhausted_message
            if self.on_max_attempts_reached is not None:
                self.on_max_attempts_reached(error)
            return None

        log.warning("Attempt %d failed (%s), retrying in %.2fs", attempts, error, delay)
        self._state = RetryState(
            is_retrying=True, attempt_count=attempts, last_error=error, phase=RetryPhase.RETRYING
        )
        self._message = self.retry_message(attempts)
        if self.on_retry is not None:
            self.on_retry(attempts, error)
        return delay


@dataclass(frozen=True)
class LoadResult(Generic[T]):
    """What a page loader renders: data on success, error otherwise."""

    data: T | None
    error: BaseException | None
    state: RetryState

    @property
    def ok(self) -> bool:
        return self.error is None


async def run_with_retry(operation: Callable[[], Awaitable[T]], **options: Any) -> LoadResult[T]:
    """Execute ``operation`` under a fresh orchestrator. Never raises.

    Args:
        operation: Zero-argument async callable.
        options: Passed through to RetryOrchestrator.
    """
    orchestrator: RetryOrchestrator[T] = RetryOrchestrator(operation, **options)
    try:
        data = await orchestrator.execute()
    except Exception as e:
        return LoadResult(data=None, error=e, state=orchestrator.state)
    return LoadResult(data=data, error=None, state=orchestrator.state)
