"""
Request Coalescer - single-flight execution per key.

While a task for a key is running, further callers for the same key await
that task instead of starting a new one. The entry is removed when the task
settles, so the next call after completion starts fresh.
"""
import asyncio
from typing import Any, Awaitable, Callable, Dict, Hashable

from logs.logging_config import get_logger

logger = get_logger("coalescer")


class RequestCoalescer:
    """
    Example:
        coalescer = RequestCoalescer()
        result = await coalescer.run(url, lambda: build_summary(url))
    """

    def __init__(self):
        self._tasks: Dict[Hashable, asyncio.Task] = {}

    def in_flight(self, key: Hashable) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def _release(self, key: Hashable, task: asyncio.Task) -> None:
        # Only remove our own entry
        if self._tasks.get(key) is task:
            del self._tasks[key]

    async def run(self, key: Hashable, task_factory: Callable[[], Awaitable[Any]]) -> Any:
        """
        Run task_factory() once per key at a time and return its result.

        Joined callers receive the same result or the same exception.
        Cancelling a caller does not cancel the shared task.
        """
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(task_factory())
            self._tasks[key] = task
            task.add_done_callback(lambda t, k=key: self._release(k, t))
            logger.debug(f"[COALESCER] Started | key={key}")
        else:
            logger.debug(f"[COALESCER] Joined | key={key}")

        return await asyncio.shield(task)
