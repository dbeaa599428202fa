from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass

from workify.services.feedback_service import FeedbackService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedbackTask:
    tailor_id: str
    resume_text: str
    job_description: str


class FeedbackWorker:
    """Bounded background queue that turns new tailors into feedback records.

    Submission never blocks the request path; failures are logged and the
    worker moves on to the next task.
    """

    def __init__(self, service: FeedbackService, queue_size: int = 100, workers: int = 1) -> None:
        self._service = service
        self._queue: asyncio.Queue[FeedbackTask] = asyncio.Queue(maxsize=queue_size)
        self._worker_count = workers
        self._tasks: list[asyncio.Task[None]] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._tasks = [
            asyncio.create_task(self._run(index), name=f"feedback-worker-{index}")
            for index in range(self._worker_count)
        ]

    def submit(self, task: FeedbackTask) -> bool:
        if not self._running:
            logger.warning("feedback_task_dropped reason=stopped tailor_id=%s", task.tailor_id)
            return False
        try:
            self._queue.put_nowait(task)
        except asyncio.QueueFull:
            logger.warning("feedback_task_dropped reason=queue_full tailor_id=%s", task.tailor_id)
            return False
        return True

    async def _run(self, index: int) -> None:
        while True:
            task = await self._queue.get()
            try:
                await self._service.generate_for_tailor(
                    task.tailor_id,
                    task.resume_text,
                    task.job_description,
                )
            except Exception:
                logger.exception("feedback_task_failed worker=%s tailor_id=%s", index, task.tailor_id)
            finally:
                self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()

    async def stop(self) -> None:
        self._running = False
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks = []

        dropped: list[str] = []
        while True:
            try:
                queued = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            dropped.append(queued.tailor_id)
            self._queue.task_done()
        if dropped:
            logger.warning(
                "feedback_tasks_dropped_on_stop count=%s tailor_ids=%s",
                len(dropped),
                ",".join(dropped),
            )
