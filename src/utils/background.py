"""Tracked fire-and-forget tasks.

A ``PendingWrites`` group lets request handlers start side effects (cache
writes) without delaying the response, while still giving the owner of the
request lifecycle something to await before it finishes.

Usage:
    pending = PendingWrites()
    pending.spawn(cache.put_async(key, response), name="cache_put")
    return response  # not delayed by the write
    ...
    await pending.wait()  # after the response has been sent
"""

import asyncio
from typing import Any, Coroutine, List, Set

import structlog

logger = structlog.get_logger()


class PendingWrites:
    """Set of started background tasks that must run to completion."""

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()
        self.completed: int = 0
        self.failed: int = 0

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str = "background") -> asyncio.Task:
        """Start ``coro`` now and track it until ``wait()``"""
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            self.failed += 1
            return
        exc = task.exception()
        if exc is not None:
            self.failed += 1
            logger.error(
                "background_task_failed",
                task=task.get_name(),
                error=str(exc),
                error_type=type(exc).__name__,
            )
        else:
            self.completed += 1

    def __len__(self) -> int:
        return len(self._tasks)

    async def wait(self) -> None:
        """Block until every spawned task has finished.

        Task failures are logged by the done callback and never re-raised here.
        """
        while True:
            pending: List[asyncio.Task] = [t for t in self._tasks if not t.done()]
            if not pending:
                break
            await asyncio.gather(*pending, return_exceptions=True)
