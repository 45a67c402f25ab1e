"""Bounded retry with linear backoff for flaky provider endpoints."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Tuple, Type, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from .errors import RetryExhaustedError, TransientUpstreamError

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Retry a coroutine on transient errors, waiting ``backoff * attempt`` between tries.

    Exceptions outside ``retry_on`` propagate immediately. Once
    ``max_attempts`` are used up a :class:`RetryExhaustedError` is raised
    carrying the last underlying exception.
    """

    max_attempts: int = 3
    backoff_seconds: float = 2.0
    retry_on: Tuple[Type[BaseException], ...] = (TransientUpstreamError,)
    label: str = "operation"
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    def _log_retry(self, state: RetryCallState) -> None:
        error = state.outcome.exception() if state.outcome else None
        delay = state.next_action.sleep if state.next_action else 0.0
        LOGGER.warning(
            "%s failed (attempt %d/%d): %s; retrying in %.1fs",
            self.label,
            state.attempt_number,
            self.max_attempts,
            error,
            delay,
        )

    async def run(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_incrementing(start=self.backoff_seconds, increment=self.backoff_seconds),
            retry=retry_if_exception_type(self.retry_on),
            before_sleep=self._log_retry,
            reraise=False,
            sleep=self.sleep,
        )
        try:
            return await retrying(fn, *args, **kwargs)
        except RetryError as exc:
            last_error = exc.last_attempt.exception()
            raise RetryExhaustedError(self.max_attempts, last_error) from last_error


__all__ = ["RetryPolicy"]
