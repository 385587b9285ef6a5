"""
Retry Framework with Jitter.

Provides a consistent retry mechanism with exponential backoff and jitter
for connection establishment and unary RPC calls. Different jitter
strategies suit different scenarios.

Jitter prevents thundering herd when multiple clients retry simultaneously.
"""

import asyncio
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")


class JitterStrategy(Enum):
    """
    Jitter strategies for retry delays.

    FULL: Maximum spread, best for independent clients
        delay = random(0, min(cap, base * multiplier^attempt))

    EQUAL: Guarantees minimum delay while spreading
        temp = min(cap, base * multiplier^attempt)
        delay = temp/2 + random(0, temp/2)

    DECORRELATED: Each retry depends on previous, good bounded growth
        delay = random(base, previous_delay * 3)

    PROPORTIONAL: Symmetric spread of a fraction around the backoff
        temp = min(cap, base * multiplier^attempt)
        delay = temp * (1 + random(-jitter_fraction, jitter_fraction))

    NONE: No jitter, pure exponential backoff
        delay = min(cap, base * multiplier^attempt)
    """

    FULL = "full"
    EQUAL = "equal"
    DECORRELATED = "decorrelated"
    PROPORTIONAL = "proportional"
    NONE = "none"


@dataclass(slots=True)
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    base_delay: float = 0.5  # seconds
    max_delay: float = 30.0  # cap
    multiplier: float = 2.0
    jitter: JitterStrategy = JitterStrategy.FULL
    jitter_fraction: float = 0.2

    # Overall budget across every attempt and delay, None for unbounded
    timeout: float | None = None

    # Exceptions that should trigger a retry
    retryable_exceptions: tuple[type[Exception], ...] = field(
        default_factory=lambda: (
            ConnectionError,
            TimeoutError,
            OSError,
        )
    )

    # Optional: function to determine if an exception is retryable
    # Takes exception, returns bool
    is_retryable: Callable[[Exception], bool] | None = None


def _exponential(
    attempt: int,
    base_delay: float,
    max_delay: float,
    multiplier: float,
) -> float:
    return min(max_delay, base_delay * (multiplier**attempt))


class RetryExecutor:
    """
    Unified retry execution with jitter.

    Example usage:
        executor = RetryExecutor(RetryConfig(max_attempts=3))

        result = await executor.execute(
            lambda: client.get_component_states(),
            operation_name="get_component_states"
        )
    """

    def __init__(self, config: RetryConfig | None = None):
        self._config = config or RetryConfig()
        self._previous_delay: float = self._config.base_delay

    @property
    def config(self) -> RetryConfig:
        return self._config

    def calculate_delay(self, attempt: int) -> float:
        """
        Calculate delay with jitter for given attempt.

        Args:
            attempt: Zero-based attempt number (0 = first retry after initial failure)

        Returns:
            Delay in seconds before next retry
        """
        base = self._config.base_delay
        cap = self._config.max_delay
        multiplier = self._config.multiplier
        jitter = self._config.jitter

        if jitter == JitterStrategy.FULL:
            temp = _exponential(attempt, base, cap, multiplier)
            return random.uniform(0, temp)

        elif jitter == JitterStrategy.EQUAL:
            temp = _exponential(attempt, base, cap, multiplier)
            return temp / 2 + random.uniform(0, temp / 2)

        elif jitter == JitterStrategy.DECORRELATED:
            delay = random.uniform(base, self._previous_delay * 3)
            delay = min(cap, delay)
            self._previous_delay = delay
            return delay

        elif jitter == JitterStrategy.PROPORTIONAL:
            temp = _exponential(attempt, base, cap, multiplier)
            fraction = self._config.jitter_fraction
            return max(0.0, temp * (1 + random.uniform(-fraction, fraction)))

        else:  # NONE
            return _exponential(attempt, base, cap, multiplier)

    def reset(self) -> None:
        """Reset state for decorrelated jitter."""
        self._previous_delay = self._config.base_delay

    def _is_retryable(self, exc: Exception) -> bool:
        """Check if exception should trigger a retry."""
        if self._config.is_retryable is not None:
            return self._config.is_retryable(exc)

        return isinstance(exc, self._config.retryable_exceptions)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str = "operation",
    ) -> T:
        """
        Execute operation with retry and jitter.

        Args:
            operation: Async callable to execute
            operation_name: Name for error messages

        Returns:
            Result of successful operation

        Raises:
            Last exception if all retries are exhausted or the
            overall timeout elapses
        """
        self.reset()
        last_exception: Exception | None = None

        deadline: float | None = None
        if self._config.timeout is not None:
            deadline = time.monotonic() + self._config.timeout

        for attempt in range(self._config.max_attempts):
            try:
                return await operation()
            except Exception as exc:
                last_exception = exc

                if not self._is_retryable(exc):
                    raise

                if attempt >= self._config.max_attempts - 1:
                    raise

                delay = self.calculate_delay(attempt)

                if deadline is not None and time.monotonic() + delay >= deadline:
                    raise

                await asyncio.sleep(delay)

        if last_exception:
            raise last_exception
        raise RuntimeError(f"{operation_name} failed without exception")


def calculate_jittered_delay(
    attempt: int,
    base_delay: float = 0.5,
    max_delay: float = 30.0,
    multiplier: float = 2.0,
    jitter: JitterStrategy = JitterStrategy.FULL,
    jitter_fraction: float = 0.2,
) -> float:
    """
    Standalone function to calculate a jittered delay.

    Useful when you need jitter calculation without the full executor.
    """
    temp = _exponential(attempt, base_delay, max_delay, multiplier)

    if jitter == JitterStrategy.FULL:
        return random.uniform(0, temp)

    elif jitter == JitterStrategy.EQUAL:
        return temp / 2 + random.uniform(0, temp / 2)

    elif jitter == JitterStrategy.DECORRELATED:
        # For standalone use, treat as full jitter since we don't track state
        return random.uniform(0, temp)

    elif jitter == JitterStrategy.PROPORTIONAL:
        return max(0.0, temp * (1 + random.uniform(-jitter_fraction, jitter_fraction)))

    else:  # NONE
        return temp
