"""Fire-and-forget background work.

Best-effort side effects (wallet top-ups, e-mail delivery) run as tracked
asyncio tasks. Their failures are logged and never propagated to the caller
that scheduled them.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

from src.escrow.core.logging import get_logger

logger = get_logger(__name__)


class BackgroundTasks:
    """Holds references to in-flight best-effort tasks so they are not GC'd."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.info("Background task cancelled", task=task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(
                "Background task failed",
                task=task.get_name(),
                error=str(exc),
                error_type=type(exc).__name__,
            )

    async def drain(self, timeout: float) -> bool:
        """Wait for pending tasks. Returns False if some were still running at timeout."""
        if not self._tasks:
            return True
        done, pending = await asyncio.wait(list(self._tasks), timeout=timeout)
        if pending:
            logger.warning("Background tasks still running at shutdown", pending=len(pending))
            for task in pending:
                task.cancel()
            return False
        return True


# Global background task registry
background_tasks = BackgroundTasks()
