import asyncio
from typing import Coroutine, Optional

import structlog

from shared.observability.metrics import background_tasks_pending, background_tasks_total

logger = structlog.get_logger(__name__)


class BackgroundDispatcher:
    """Runs coroutines as detached tasks on the current event loop.

    The submitter never awaits the task; its result is only observed by
    ``_on_done``, which logs the outcome.
    """

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, coro: Coroutine, name: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        # The loop only holds weak references to tasks
        self._tasks.add(task)
        background_tasks_pending.inc()
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        background_tasks_pending.dec()

        if task.cancelled():
            background_tasks_total.labels(outcome="cancelled").inc()
            logger.warning("background_task.cancelled", task=task.get_name())
            return

        exc = task.exception()
        if exc is not None:
            background_tasks_total.labels(outcome="failed").inc()
            logger.error("background_task.failed", task=task.get_name(), exc_info=exc)
            return

        background_tasks_total.labels(outcome="ok").inc()
        logger.debug("background_task.finished", task=task.get_name(), result=task.result())

    async def drain(self, timeout: Optional[float] = None) -> int:
        """Wait for outstanding tasks. Returns how many were still running at timeout."""
        if not self._tasks:
            return 0
        _, still_running = await asyncio.wait(set(self._tasks), timeout=timeout)
        if still_running:
            logger.warning("background_task.drain_timeout", pending=len(still_running))
        return len(still_running)
