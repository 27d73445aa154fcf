"""Retry handler with exponential backoff for transient failures.

The delay before retry ``attempt`` (0-indexed) is:

    retry_after                                    if the server sent a hint
    min(base_delay * 2 ** attempt, max_delay) + U[0, jitter)   otherwise

A server hint is authoritative: it is used verbatim, without jitter or cap.
The jitter desynchronizes concurrent callers retrying the same endpoint.

Example usage:
    handler = RetryHandler(RetryConfig(max_attempts=3))

    result = await handler.execute(
        lambda: client.request("GET", url),
        operation_name="GET /server",
    )
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from hetzner_api.errors import RetriesExhaustedError, TransientError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


def next_delay(
    attempt: int,
    retry_after: float | None = None,
    *,
    base_delay: float = 1.0,
    max_delay: float | None = None,
    jitter: float = 1.0,
) -> float:
    """Compute the delay in seconds before the next attempt.

    Args:
        attempt: Index of the attempt that just failed (0-indexed)
        retry_after: Server-provided delay hint in seconds
        base_delay: Delay for attempt 0 before jitter
        max_delay: Cap applied to the exponential term, None for no cap
        jitter: Upper bound (exclusive) of the random jitter in seconds

    Returns:
        Delay in seconds
    """
    if retry_after is not None:
        return retry_after

    delay = base_delay * (2**attempt)
    if max_delay is not None:
        delay = min(delay, max_delay)

    return delay + jitter * random.random()  # noqa: S311


@dataclass(frozen=True, slots=True)
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Total number of attempts, including the first (default: 3)
        base_delay: Delay in seconds before the first retry, before jitter
        max_delay: Cap on the exponential term in seconds, None for no cap
        jitter: Maximum random jitter added to computed delays, in seconds
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float | None = None
    jitter: float = 1.0

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay <= 0:
            raise ValueError("base_delay must be positive")
        if self.max_delay is not None and self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.jitter < 0:
            raise ValueError("jitter must be non-negative")


class RetryHandler:
    """Retries async operations that raise TransientError.

    Rate-limit signals, timeouts and connection failures share a single
    attempt budget. Any other exception propagates immediately without
    consuming the remaining budget.
    """

    def __init__(self, config: RetryConfig | None = None) -> None:
        """Initialize the retry handler.

        Args:
            config: Retry configuration. Uses defaults if not provided.
        """
        self.config = config or RetryConfig()

    def calculate_delay(self, attempt: int, retry_after: float | None = None) -> float:
        """Calculate delay before the next attempt.

        Args:
            attempt: Index of the attempt that just failed (0-indexed)
            retry_after: Server-specified delay from a Retry-After header

        Returns:
            Delay in seconds
        """
        return next_delay(
            attempt,
            retry_after,
            base_delay=self.config.base_delay,
            max_delay=self.config.max_delay,
            jitter=self.config.jitter,
        )

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        operation_name: str = "operation",
        path: str | None = None,
    ) -> T:
        """Execute an async operation with automatic retry on transient failure.

        Args:
            operation: Async callable to execute
            operation_name: Name for logging purposes
            path: Request path for error context

        Returns:
            The result of the operation if successful

        Raises:
            RetriesExhaustedError: If every attempt failed transiently
            Exception: Any non-transient exception from the operation
        """
        last_error: TransientError | None = None
        total_delay = 0.0
        max_attempts = self.config.max_attempts

        for attempt in range(max_attempts):
            try:
                result = await operation()
                if attempt > 0:
                    logger.info(
                        f"{operation_name} succeeded after {attempt + 1} attempts "
                        f"(total delay: {total_delay:.2f}s)"
                    )
                return result

            except TransientError as e:
                last_error = e
                if attempt >= max_attempts - 1:
                    break

                delay = self.calculate_delay(attempt, e.retry_after)
                total_delay += delay

                logger.warning(
                    f"{operation_name} failed (attempt {attempt + 1}/{max_attempts}): "
                    f"{e} [{e.kind.value}]. Retrying in {delay:.2f}s"
                )
                await asyncio.sleep(delay)

        raise RetriesExhaustedError(
            f"{operation_name} failed after {max_attempts} attempts: {last_error}",
            attempts=max_attempts,
            last_error=last_error,
            path=path,
        )
