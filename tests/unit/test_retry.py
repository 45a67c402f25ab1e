from __future__ import annotations

import asyncio

import pytest

from multihost.errors import RetryExhaustedError, TransientUpstreamError, UpstreamLogicalError
from multihost.retry import RetryPolicy


class FlakyCall:
    def __init__(self, failures: int, error: Exception | None = None) -> None:
        self.failures = failures
        self.error = error or TransientUpstreamError("bigwarp", "busy")
        self.calls = 0

    async def __call__(self, value: str) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return value.upper()


def test_succeeds_after_transient_failures():
    call = FlakyCall(failures=2)

    result = asyncio.run(RetryPolicy(max_attempts=3, backoff_seconds=0).run(call, "ok"))

    assert result == "OK"
    assert call.calls == 3


def test_exhaustion_carries_last_error():
    call = FlakyCall(failures=5)

    with pytest.raises(RetryExhaustedError) as excinfo:
        asyncio.run(RetryPolicy(max_attempts=2, backoff_seconds=0).run(call, "ok"))

    assert call.calls == 2
    assert excinfo.value.attempts == 2
    assert isinstance(excinfo.value.last_error, TransientUpstreamError)


def test_non_retryable_errors_propagate_immediately():
    call = FlakyCall(failures=1, error=UpstreamLogicalError("bigwarp", "bad key"))

    with pytest.raises(UpstreamLogicalError):
        asyncio.run(RetryPolicy(max_attempts=3, backoff_seconds=0).run(call, "ok"))

    assert call.calls == 1


def test_backoff_grows_linearly_with_attempt_number():
    waits: list[float] = []

    async def record_sleep(seconds: float) -> None:
        waits.append(seconds)

    call = FlakyCall(failures=5)
    policy = RetryPolicy(max_attempts=3, backoff_seconds=2.0, sleep=record_sleep)

    with pytest.raises(RetryExhaustedError):
        asyncio.run(policy.run(call, "ok"))

    assert call.calls == 3
    assert waits == [2.0, 4.0]
