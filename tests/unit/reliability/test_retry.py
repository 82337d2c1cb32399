"""
Tests for retry with jitter.

These tests verify that:
1. Delays grow exponentially and respect the cap
2. Retryable exceptions are retried up to max_attempts
3. Non-retryable exceptions are raised immediately
4. A custom is_retryable check replaces the exception tuple
"""

import pytest

from cubewarden.models import ObjectKey
from cubewarden.reliability import (
    JitterStrategy,
    RetryConfig,
    RetryExecutor,
    calculate_jittered_delay,
)
from cubewarden.store import ConflictError, NotFoundError, is_conflict


class TestJitteredDelay:
    """Test delay calculation."""

    def test_no_jitter_is_exponential(self):
        """Without jitter the delay doubles per attempt."""
        delays = [
            calculate_jittered_delay(attempt, base_delay=0.1, max_delay=10.0, jitter=JitterStrategy.NONE)
            for attempt in range(4)
        ]

        assert delays == pytest.approx([0.1, 0.2, 0.4, 0.8])

    def test_delay_is_capped(self):
        """Large attempt counts never exceed max_delay."""
        delay = calculate_jittered_delay(500, base_delay=0.1, max_delay=2.0, jitter=JitterStrategy.NONE)
        assert delay == 2.0

    def test_equal_jitter_keeps_half(self):
        """Equal jitter stays within [temp/2, temp]."""
        for _ in range(50):
            delay = calculate_jittered_delay(3, base_delay=0.1, max_delay=10.0, jitter=JitterStrategy.EQUAL)
            assert 0.4 <= delay <= 0.8

    def test_full_jitter_in_range(self):
        """Full jitter stays within [0, temp]."""
        for _ in range(50):
            delay = calculate_jittered_delay(2, base_delay=0.1, max_delay=10.0, jitter=JitterStrategy.FULL)
            assert 0.0 <= delay <= 0.4


class TestRetryExecutor:
    """Test RetryExecutor.execute."""

    @pytest.mark.asyncio
    async def test_retries_until_success(self):
        """Retryable failures are retried and the result is returned."""
        attempts = 0

        async def operation():
            nonlocal attempts
            attempts += 1
            if attempts < 3:
                raise ConnectionError("refused")
            return "ok"

        executor = RetryExecutor(RetryConfig(max_attempts=5, base_delay=0.001, max_delay=0.002))

        assert await executor.execute(operation) == "ok"
        assert attempts == 3

    @pytest.mark.asyncio
    async def test_raises_after_max_attempts(self):
        """The last exception propagates once attempts are exhausted."""
        attempts = 0

        async def operation():
            nonlocal attempts
            attempts += 1
            raise TimeoutError("slow")

        executor = RetryExecutor(RetryConfig(max_attempts=3, base_delay=0.001, max_delay=0.002))

        with pytest.raises(TimeoutError):
            await executor.execute(operation)

        assert attempts == 3

    @pytest.mark.asyncio
    async def test_non_retryable_raises_immediately(self):
        """Exceptions outside the retryable set are not retried."""
        attempts = 0

        async def operation():
            nonlocal attempts
            attempts += 1
            raise ValueError("bad")

        executor = RetryExecutor(RetryConfig(max_attempts=5, base_delay=0.001))

        with pytest.raises(ValueError):
            await executor.execute(operation)

        assert attempts == 1

    @pytest.mark.asyncio
    async def test_custom_retryable_check(self):
        """is_retryable selects which store errors are retried."""
        key = ObjectKey(name="member-1")
        errors = [ConflictError("Cluster", key), NotFoundError("Cluster", key)]
        attempts = 0

        async def operation():
            nonlocal attempts
            attempts += 1
            raise errors.pop(0)

        executor = RetryExecutor(
            RetryConfig(max_attempts=5, base_delay=0.001, is_retryable=is_conflict)
        )

        with pytest.raises(NotFoundError):
            await executor.execute(operation)

        assert attempts == 2
