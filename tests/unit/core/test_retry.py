"""
Tests for the retry strategy.
"""

import pytest
from unittest.mock import AsyncMock, patch

from sentinel.core.retry import RetryStrategy


class TestRetryStrategy:

    def test_delays_double(self):
        strategy = RetryStrategy(max_retries=3, base_delay=1.0)

        assert strategy.get_delay(1) == 1.0
        assert strategy.get_delay(2) == 2.0
        assert strategy.get_delay(3) == 4.0

    def test_should_retry_bounds(self):
        strategy = RetryStrategy(max_retries=2)

        assert strategy.max_attempts == 3
        assert strategy.should_retry(1)
        assert strategy.should_retry(2)
        assert not strategy.should_retry(3)

    def test_negative_retries_rejected(self):
        with pytest.raises(ValueError):
            RetryStrategy(max_retries=-1)

    async def test_run_succeeds_after_failures(self):
        strategy = RetryStrategy(max_retries=2, base_delay=0.5)
        operation = AsyncMock(side_effect=[RuntimeError("boom"), RuntimeError("boom"), "ok"])

        with patch("sentinel.core.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await strategy.run(operation, label="gateway")

        assert result == "ok"
        assert operation.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [0.5, 1.0]

    async def test_run_reraises_last_error(self):
        strategy = RetryStrategy(max_retries=1, base_delay=0.0)
        operation = AsyncMock(side_effect=[RuntimeError("first"), RuntimeError("second")])

        with pytest.raises(RuntimeError, match="second"):
            await strategy.run(operation)

        assert operation.await_count == 2

    async def test_zero_retries_single_attempt(self):
        strategy = RetryStrategy(max_retries=0)
        operation = AsyncMock(side_effect=ValueError("nope"))

        with pytest.raises(ValueError):
            await strategy.run(operation)

        assert operation.await_count == 1
