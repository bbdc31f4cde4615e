"""In-process pipeline queue using asyncio.

A bounded queue feeds a fixed pool of worker tasks, so background generation
work cannot grow without limit. No external broker (Redis, Celery) needed.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Set

from storylens.jobs.dispatcher import (
    DispatcherBusy,
    DuplicateSubmission,
    PipelineDispatcher,
)

logger = logging.getLogger(__name__)


class InProcessQueue(PipelineDispatcher):
    """Local async pipeline queue with N concurrent workers."""

    def __init__(
        self,
        pipeline_fn: Callable[[int], Awaitable[None]],
        workers: int = 4,
        maxsize: int = 100,
    ):
        """
        pipeline_fn: async callable(story_id) that drives one story to a
            terminal status. It is expected to record its own failures.
        """
        self._queue: Optional[asyncio.Queue] = None
        self._maxsize = maxsize
        self._pipeline_fn = pipeline_fn
        self._worker_count = max(1, workers)
        self._tasks: List[asyncio.Task] = []
        self._in_flight: Set[int] = set()
        self._running = False

    async def submit(self, story_id: int) -> None:
        if self._queue is None:
            raise RuntimeError("Dispatcher not started")
        if story_id in self._in_flight:
            raise DuplicateSubmission(f"Story {story_id} already has a pipeline run in flight")
        try:
            self._queue.put_nowait(story_id)
        except asyncio.QueueFull:
            raise DispatcherBusy("Pipeline queue is full")
        self._in_flight.add(story_id)

    def is_full(self) -> bool:
        return self._queue is not None and self._queue.full()

    def in_flight(self) -> int:
        return len(self._in_flight)

    async def join(self) -> None:
        """Wait until every submitted story has been processed."""
        if self._queue is not None:
            await self._queue.join()

    async def start(self) -> None:
        # Created here so the queue binds to the running loop
        self._queue = asyncio.Queue(maxsize=self._maxsize)
        self._running = True
        self._tasks = [
            asyncio.create_task(self._worker_loop(n))
            for n in range(self._worker_count)
        ]

    async def stop(self) -> None:
        self._running = False
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    async def _worker_loop(self, worker_id: int) -> None:
        """Process stories from the queue until stopped."""
        while self._running:
            try:
                story_id = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue

            logger.debug(f"Worker {worker_id} picked up story {story_id}")
            try:
                await self._pipeline_fn(story_id)
            except Exception:
                logger.exception(f"Pipeline crashed for story {story_id}")
            finally:
                self._in_flight.discard(story_id)
                self._queue.task_done()
