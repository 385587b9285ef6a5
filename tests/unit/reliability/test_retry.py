"""
Tests for the retry framework behind RPC dialing and unary retries.

These tests verify that:
1. Delays follow base * multiplier^attempt, capped, for each jitter strategy
2. Retryable failures are retried up to max_attempts
3. Non-retryable failures propagate on the first attempt
4. The overall timeout budget stops retrying early
"""

import time

import pytest

from minicluster.reliability import (
    JitterStrategy,
    RetryConfig,
    RetryExecutor,
    calculate_jittered_delay,
)


class TestRetryConfig:
    """Test RetryConfig defaults."""

    def test_default_config_values(self):
        config = RetryConfig()

        assert config.max_attempts == 3
        assert config.base_delay == 0.5
        assert config.max_delay == 30.0
        assert config.jitter == JitterStrategy.FULL
        assert config.timeout is None
        assert ConnectionError in config.retryable_exceptions


class TestRetryDelays:
    """Test delay calculation per jitter strategy."""

    def test_unary_backoff_is_deterministic(self):
        """Unary retries wait 60ms * 3^attempt."""
        executor = RetryExecutor(
            RetryConfig(base_delay=0.06, multiplier=3.0, jitter=JitterStrategy.NONE)
        )

        delays = [executor.calculate_delay(attempt) for attempt in range(5)]

        assert delays == pytest.approx([0.06, 0.18, 0.54, 1.62, 4.86])

    def test_proportional_jitter_within_fraction(self):
        """Connect backoff spreads +/-20% around 100ms * 1.6^attempt."""
        executor = RetryExecutor(
            RetryConfig(
                base_delay=0.1,
                multiplier=1.6,
                max_delay=3.0,
                jitter=JitterStrategy.PROPORTIONAL,
                jitter_fraction=0.2,
            )
        )

        for attempt in range(10):
            expected = min(3.0, 0.1 * 1.6**attempt)
            for _ in range(20):
                delay = executor.calculate_delay(attempt)
                assert expected * 0.8 <= delay <= expected * 1.2

    def test_delay_respects_max_delay_cap(self):
        executor = RetryExecutor(
            RetryConfig(base_delay=0.1, multiplier=1.6, max_delay=3.0, jitter=JitterStrategy.NONE)
        )

        assert executor.calculate_delay(20) == 3.0

    def test_full_jitter_delay_in_range(self):
        executor = RetryExecutor(RetryConfig(base_delay=1.0, jitter=JitterStrategy.FULL))

        for attempt in range(5):
            assert 0 <= executor.calculate_delay(attempt) <= min(30.0, 2**attempt)

    def test_equal_jitter_delay_has_minimum(self):
        executor = RetryExecutor(RetryConfig(base_delay=1.0, jitter=JitterStrategy.EQUAL))

        for attempt in range(5):
            temp = min(30.0, 2**attempt)
            assert temp / 2 <= executor.calculate_delay(attempt) <= temp

    def test_reset_clears_decorrelated_state(self):
        config = RetryConfig(base_delay=1.0, jitter=JitterStrategy.DECORRELATED)
        executor = RetryExecutor(config)

        for _ in range(5):
            assert executor.calculate_delay(0) <= config.max_delay

        executor.reset()

        assert executor._previous_delay == config.base_delay

    def test_standalone_proportional(self):
        for _ in range(20):
            delay = calculate_jittered_delay(
                attempt=1,
                base_delay=1.0,
                multiplier=2.0,
                jitter=JitterStrategy.PROPORTIONAL,
                jitter_fraction=0.5,
            )
            assert 1.0 <= delay <= 3.0

    def test_standalone_none(self):
        assert calculate_jittered_delay(
            attempt=2,
            base_delay=0.06,
            multiplier=3.0,
            jitter=JitterStrategy.NONE,
        ) == pytest.approx(0.54)


class TestRetryExecutorExecution:
    """Test RetryExecutor async execution."""

    @pytest.mark.asyncio
    async def test_successful_operation_returns_result(self):
        executor = RetryExecutor()

        async def success_op():
            return "connected"

        assert await executor.execute(success_op, "dial") == "connected"

    @pytest.mark.asyncio
    async def test_retries_on_retryable_exception(self):
        executor = RetryExecutor(
            RetryConfig(max_attempts=3, base_delay=0.01, jitter=JitterStrategy.NONE)
        )

        attempt_count = 0

        async def failing_then_success():
            nonlocal attempt_count
            attempt_count += 1
            if attempt_count < 3:
                raise ConnectionError("connection refused")
            return "connected"

        assert await executor.execute(failing_then_success, "dial") == "connected"
        assert attempt_count == 3

    @pytest.mark.asyncio
    async def test_raises_after_max_attempts(self):
        executor = RetryExecutor(
            RetryConfig(max_attempts=6, base_delay=0.001, jitter=JitterStrategy.NONE)
        )

        attempt_count = 0

        async def always_fails():
            nonlocal attempt_count
            attempt_count += 1
            raise ConnectionError("connection refused")

        with pytest.raises(ConnectionError):
            await executor.execute(always_fails, "dial")

        assert attempt_count == 6

    @pytest.mark.asyncio
    async def test_non_retryable_exception_raises_immediately(self):
        executor = RetryExecutor(
            RetryConfig(max_attempts=3, retryable_exceptions=(ConnectionError,))
        )

        attempt_count = 0

        async def raises_non_retryable():
            nonlocal attempt_count
            attempt_count += 1
            raise ValueError("bad request")

        with pytest.raises(ValueError):
            await executor.execute(raises_non_retryable, "call")

        assert attempt_count == 1

    @pytest.mark.asyncio
    async def test_custom_is_retryable_function(self):
        def is_transient(exc: Exception) -> bool:
            return "unavailable" in str(exc).lower()

        executor = RetryExecutor(
            RetryConfig(max_attempts=3, base_delay=0.01, is_retryable=is_transient)
        )

        attempt_count = 0

        async def unavailable_then_success():
            nonlocal attempt_count
            attempt_count += 1
            if attempt_count < 2:
                raise RuntimeError("service unavailable")
            return "ok"

        assert await executor.execute(unavailable_then_success, "call") == "ok"
        assert attempt_count == 2

    @pytest.mark.asyncio
    async def test_timeout_budget_stops_retrying(self):
        """A retry whose delay would cross the budget is not attempted."""
        executor = RetryExecutor(
            RetryConfig(
                max_attempts=1000,
                base_delay=0.02,
                multiplier=1.0,
                jitter=JitterStrategy.NONE,
                timeout=0.1,
            )
        )

        attempt_count = 0

        async def always_fails():
            nonlocal attempt_count
            attempt_count += 1
            raise ConnectionError("connection refused")

        start = time.monotonic()
        with pytest.raises(ConnectionError):
            await executor.execute(always_fails, "dial")

        assert time.monotonic() - start < 0.1 + 0.05
        assert 1 < attempt_count < 10
