"""
Non-blocking commit queue.

Writes are queued and executed one at a time in submission order by a
background task, so a puzzle's delta always reaches the store before the
cycle reset that follows it. Failures are logged and handed to on_error;
nothing is retried and nothing waits for the write to finish.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple

from .errors import TrainerError

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[None]]


class CommitQueue:
    def __init__(self, on_error: Callable[[Exception, str], None]):
        self._on_error = on_error
        self._queue: Optional["asyncio.Queue[Tuple[str, Job]]"] = None
        self._worker: Optional[asyncio.Task] = None

    def submit(self, label: str, job: Job) -> None:
        if self._queue is None:
            self._queue = asyncio.Queue()
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._run())
        self._queue.put_nowait((label, job))

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    async def _run(self) -> None:
        assert self._queue is not None
        while True:
            label, job = await self._queue.get()
            try:
                await job()
            except TrainerError as exc:
                logger.warning("%s failed: %s", label, exc)
                self._on_error(exc, label)
            except Exception as exc:
                logger.exception("%s crashed", label)
                self._on_error(exc, label)
            finally:
                self._queue.task_done()

    async def join(self) -> None:
        """Wait until every submitted job has finished."""
        if self._queue is not None:
            await self._queue.join()

    async def close(self) -> None:
        await self.join()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
