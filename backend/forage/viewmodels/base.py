from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, Optional

logger = logging.getLogger(__name__)


class ViewModel:
    """
    Owns a background scope for fire-and-forget work.
    Tasks launched here live no longer than the view model: clear() cancels
    whatever is still pending, without awaiting or rolling anything back.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()
        self._cleared = False

    @property
    def pending(self) -> int:
        return len(self._tasks)

    @property
    def cleared(self) -> bool:
        return self._cleared

    def launch(self, coro: Coroutine[Any, Any, Any], *, name: Optional[str] = None) -> asyncio.Task:
        if self._cleared:
            coro.close()
            raise RuntimeError(f"{type(self).__name__} has been cleared")
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            raise
        task = loop.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("%s: task %s failed", type(self).__name__, task.get_name(), exc_info=exc)

    def clear(self) -> None:
        if self._cleared:
            return
        self._cleared = True
        pending = list(self._tasks)
        for task in pending:
            task.cancel()
        logger.info("%s cleared (%d pending task(s) abandoned)", type(self).__name__, len(pending))
        self.on_cleared()

    def on_cleared(self) -> None:
        """Hook for subclasses; called once from clear()."""
