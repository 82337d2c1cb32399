"""
Retry with exponential backoff and jitter.

Used for status writes that race with other writers of the same record
(retry-on-conflict) and for per-key requeue delays in controllers.
"""

import asyncio
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")


class JitterStrategy(Enum):
    """
    Jitter strategies for retry delays.

    FULL: Maximum spread, best for independent clients
        delay = random(0, min(cap, base * 2^attempt))

    EQUAL: Guarantees minimum delay while spreading
        temp = min(cap, base * 2^attempt)
        delay = temp/2 + random(0, temp/2)

    DECORRELATED: Each retry depends on previous, good bounded growth
        delay = random(base, previous_delay * 3)

    NONE: No jitter, pure exponential backoff
        delay = min(cap, base * 2^attempt)
    """

    FULL = "full"
    EQUAL = "equal"
    DECORRELATED = "decorrelated"
    NONE = "none"


@dataclass(slots=True)
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 5
    base_delay: float = 0.01  # seconds
    max_delay: float = 1.0  # cap
    jitter: JitterStrategy = JitterStrategy.EQUAL

    # Exceptions that should trigger a retry
    retryable_exceptions: tuple[type[Exception], ...] = field(
        default_factory=lambda: (
            ConnectionError,
            TimeoutError,
        )
    )

    # Optional: function to determine if an exception is retryable
    is_retryable: Callable[[Exception], bool] | None = None


class RetryExecutor:
    """
    Unified retry execution with jitter.

    Example usage:
        executor = RetryExecutor(RetryConfig(max_attempts=5, is_retryable=is_conflict))

        await executor.execute(
            lambda: store.update_status(cluster),
            operation_name="update_status",
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
        if self._config.jitter == JitterStrategy.DECORRELATED:
            delay = random.uniform(self._config.base_delay, self._previous_delay * 3)
            delay = min(self._config.max_delay, delay)
            self._previous_delay = delay
            return delay

        return calculate_jittered_delay(
            attempt,
            base_delay=self._config.base_delay,
            max_delay=self._config.max_delay,
            jitter=self._config.jitter,
        )

    def reset(self) -> None:
        """Reset state for decorrelated jitter."""
        self._previous_delay = self._config.base_delay

    def _is_retryable(self, exc: Exception) -> bool:
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
            Last exception if all retries exhausted or the exception
            is not retryable.
        """
        self.reset()

        for attempt in range(self._config.max_attempts):
            try:
                return await operation()

            except Exception as exc:
                if not self._is_retryable(exc):
                    raise

                if attempt >= self._config.max_attempts - 1:
                    raise

                await asyncio.sleep(self.calculate_delay(attempt))

        raise RuntimeError(f"{operation_name} failed without exception")


def calculate_jittered_delay(
    attempt: int,
    base_delay: float = 0.5,
    max_delay: float = 30.0,
    jitter: JitterStrategy = JitterStrategy.FULL,
) -> float:
    """
    Standalone function to calculate a jittered delay.

    Args:
        attempt: Zero-based attempt number
        base_delay: Base delay in seconds
        max_delay: Maximum delay cap in seconds
        jitter: Jitter strategy to use

    Returns:
        Delay in seconds
    """
    # Cap the exponent so large attempt counts cannot overflow.
    temp = min(max_delay, base_delay * (2 ** min(attempt, 62)))

    if jitter == JitterStrategy.FULL:
        return random.uniform(0, temp)

    elif jitter == JitterStrategy.EQUAL:
        return temp / 2 + random.uniform(0, temp / 2)

    elif jitter == JitterStrategy.DECORRELATED:
        # Standalone use has no previous delay to track
        return random.uniform(0, temp)

    else:  # NONE
        return temp
