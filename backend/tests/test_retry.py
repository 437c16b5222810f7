"""Tests for retry utilities."""

from unittest.mock import AsyncMock

import pytest

from smc_app.utils import ExponentialBackoff, RetryError, call_with_retry

NO_DELAY = ExponentialBackoff(base=0, max_delay=0, jitter=False)


class TestExponentialBackoff:
    def test_growth_without_jitter(self):
        backoff = ExponentialBackoff(base=1.0, multiplier=2.0, max_delay=100, jitter=False)

        assert [backoff.calculate(a) for a in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_capped(self):
        backoff = ExponentialBackoff(base=1.0, max_delay=3.0, jitter=False)

        assert backoff.calculate(10) == 3.0

    def test_jitter_bounds(self):
        backoff = ExponentialBackoff(base=1.0, max_delay=10, jitter=True)

        for _ in range(50):
            assert 0.75 <= backoff.calculate(1) <= 2.5


class TestCallWithRetry:
    @pytest.mark.asyncio
    async def test_success_first_try(self):
        func = AsyncMock(return_value="ok")

        assert await call_with_retry(func, 1, key="v", backoff=NO_DELAY) == "ok"
        func.assert_awaited_once_with(1, key="v")

    @pytest.mark.asyncio
    async def test_recovers_after_failures(self):
        func = AsyncMock(side_effect=[ConnectionError("a"), ConnectionError("b"), "ok"])

        assert await call_with_retry(func, max_attempts=3, backoff=NO_DELAY) == "ok"
        assert func.await_count == 3

    @pytest.mark.asyncio
    async def test_exhausted(self):
        error = ConnectionError("down")
        func = AsyncMock(side_effect=error)

        with pytest.raises(RetryError) as exc_info:
            await call_with_retry(func, max_attempts=2, backoff=NO_DELAY)

        assert exc_info.value.last_exception is error
        assert func.await_count == 2

    @pytest.mark.asyncio
    async def test_unlisted_exception_not_retried(self):
        func = AsyncMock(side_effect=KeyError("bad"))

        with pytest.raises(KeyError):
            await call_with_retry(
                func, max_attempts=3, exceptions=(ConnectionError,), backoff=NO_DELAY
            )
        assert func.await_count == 1
