"""Bounded-concurrency FIFO admission queue.

The Robot API enforces strict per-account rate limits, so the Robot client
never has more than a few calls in flight. Calls beyond the limit wait in a
FIFO list and are started in submission order as slots free up.

Example usage:
    queue = AdmissionQueue(max_concurrent=2)

    result = await queue.run(lambda: fetch("/server"))

    # Or submit now and await later:
    future = queue.submit(lambda: fetch("/server/123"))
    detail = await future
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class QueuedTask(Generic[T]):
    """A unit of work held by the queue until it is dispatched.

    Attributes:
        operation: Zero-argument async callable performing the work
        future: Future receiving the operation's result or exception
    """

    operation: Callable[[], Awaitable[T]]
    future: asyncio.Future[T]


class AdmissionQueue:
    """Runs at most ``max_concurrent`` operations at once, starting the rest FIFO.

    Failures and cancellations release their slot like successes do. Queue
    depth is unbounded. Active count and pending list are only touched from
    the event loop thread.
    """

    def __init__(self, max_concurrent: int = 2) -> None:
        """Initialize the queue.

        Args:
            max_concurrent: Maximum number of operations running at once
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")

        self.max_concurrent = max_concurrent
        self._active = 0
        self._pending: deque[QueuedTask] = deque()
        self._runners: set[asyncio.Task] = set()

    @property
    def active(self) -> int:
        """Number of operations currently running."""
        return self._active

    @property
    def pending(self) -> int:
        """Number of operations waiting for a slot."""
        return len(self._pending)

    def submit(self, operation: Callable[[], Awaitable[T]]) -> asyncio.Future[T]:
        """Queue an operation.

        Args:
            operation: Zero-argument async callable

        Returns:
            Future resolved with the operation's result or exception
        """
        loop = asyncio.get_running_loop()
        task: QueuedTask[T] = QueuedTask(operation=operation, future=loop.create_future())
        self._pending.append(task)
        self._dispatch()

        if self._pending:
            logger.debug(
                "Queued operation (active=%d, pending=%d)",
                self._active,
                len(self._pending),
            )
        return task.future

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Queue an operation and wait for its result."""
        return await self.submit(operation)

    def _dispatch(self) -> None:
        """Start pending operations while capacity allows."""
        while self._pending and self._active < self.max_concurrent:
            task = self._pending.popleft()
            if task.future.cancelled():
                # Caller stopped waiting before the task was admitted
                continue
            self._active += 1
            runner = asyncio.ensure_future(self._run(task))
            self._runners.add(runner)
            runner.add_done_callback(self._runners.discard)

    async def _run(self, task: QueuedTask[T]) -> None:
        try:
            result = await task.operation()
        except asyncio.CancelledError:
            task.future.cancel()
            raise
        except Exception as e:
            if not task.future.done():
                task.future.set_exception(e)
        else:
            if not task.future.done():
                task.future.set_result(result)
        finally:
            self._active -= 1
            self._dispatch()
