"""Cancellation and retry-budget scope shared across the retry layers.

The retry orchestrator activates a ``CallScope`` for the duration of the
wrapped operation. The transport reads it through ``current_scope()`` so a
zero-argument closure still picks up the caller's cancel token and budget.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Callable, Iterator

from wpcontent.clients.errors import RequestCancelled


class CancelToken:
    """One-shot cancellation flag."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self, endpoint: str = "") -> None:
        if self._cancelled:
            raise RequestCancelled(endpoint)


@dataclass
class RetryBudget:
    """Total attempts and wall time allowed across both retry layers.

    ``None`` disables a limit. Every network attempt made by the transport
    is recorded here, so transport-level retries count against the
    caller's budget.
    """

    max_attempts: int | None = None
    max_elapsed: float | None = None
    clock: Callable[[], float] = time.monotonic
    attempts_used: int = 0
    started_at: float = field(init=False)

    def __post_init__(self) -> None:
        self.started_at = self.clock()

    def record_attempt(self) -> None:
        self.attempts_used += 1

    @property
    def elapsed(self) -> float:
        return self.clock() - self.started_at

    @property
    def exhausted(self) -> bool:
        if self.max_attempts is not None and self.attempts_used >= self.max_attempts:
            return True
        return self.max_elapsed is not None and self.elapsed >= self.max_elapsed

    def allows_wait(self, delay: float) -> bool:
        """True if sleeping ``delay`` seconds and trying again fits the budget."""
        if self.exhausted:
            return False
        return self.max_elapsed is None or self.elapsed + delay < self.max_elapsed


@dataclass
class CallScope:
    cancel_token: CancelToken | None = None
    budget: RetryBudget | None = None


_current_scope: ContextVar[CallScope | None] = ContextVar("wpcontent_call_scope", default=None)


def current_scope() -> CallScope | None:
    return _current_scope.get()


@contextmanager
def activate_scope(scope: CallScope) -> Iterator[CallScope]:
    token = _current_scope.set(scope)
    try:
        yield scope
    finally:
        _current_scope.reset(token)
