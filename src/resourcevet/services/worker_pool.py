"""Bounded pool of workers running verifications off a shared queue."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Self

from resourcevet.config.imports import DEFAULT_VERIFICATION_QUEUE_SIZE, DEFAULT_VERIFICATION_WORKERS
from resourcevet.domain.errors import QueueFullError
from resourcevet.domain.model import VerificationType

if TYPE_CHECKING:
    from types import TracebackType

    from resourcevet.domain.model import NormalizedResource, VerificationResult
    from resourcevet.domain.verification import VerificationAgent

log = logging.getLogger(__name__)


class OverflowPolicy(StrEnum):
    BLOCK = "block"
    REJECT = "reject"


@dataclass(slots=True)
class _Job:
    candidate: NormalizedResource
    verification_type: VerificationType
    future: asyncio.Future[VerificationResult]


class VerificationWorkerPool:
    """Runs ``agent.verify`` on ``workers`` concurrent tasks.

    ``submit`` returns a future for the result. When the queue is full it either
    waits (``OverflowPolicy.BLOCK``) or raises :class:`QueueFullError`
    (``OverflowPolicy.REJECT``).
    """

    def __init__(
        self,
        agent: VerificationAgent,
        *,
        workers: int = DEFAULT_VERIFICATION_WORKERS,
        max_queue_size: int = DEFAULT_VERIFICATION_QUEUE_SIZE,
        overflow: OverflowPolicy = OverflowPolicy.BLOCK,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        if max_queue_size < 1:
            raise ValueError("max_queue_size must be at least 1")
        self._agent = agent
        self._workers = workers
        self._max_queue_size = max_queue_size
        self.overflow = overflow
        self._queue: asyncio.Queue[_Job] | None = None
        self._tasks: list[asyncio.Task[None]] = []
        self.jobs_processed = 0
        self.jobs_failed = 0

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    async def start(self) -> None:
        if self.running:
            return
        queue: asyncio.Queue[_Job] = asyncio.Queue(maxsize=self._max_queue_size)
        self._queue = queue
        self._tasks = [
            asyncio.create_task(self._work(index, queue), name=f"verification-worker-{index}")
            for index in range(self._workers)
        ]
        log.info("Started %d verification workers", self._workers)

    async def stop(self) -> None:
        """Finish queued work, then shut the workers down."""

        if not self._tasks or self._queue is None:
            return
        await self._queue.join()
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks = []
        log.info(
            "Verification workers stopped. Processed: %d, Failed: %d",
            self.jobs_processed,
            self.jobs_failed,
        )

    async def submit(
        self,
        candidate: NormalizedResource,
        verification_type: VerificationType = VerificationType.INITIAL,
    ) -> asyncio.Future[VerificationResult]:
        if self._queue is None or not self.running:
            raise RuntimeError("VerificationWorkerPool is not running")
        job = _Job(candidate, verification_type, asyncio.get_running_loop().create_future())
        if self.overflow is OverflowPolicy.REJECT:
            try:
                self._queue.put_nowait(job)
            except asyncio.QueueFull as exc:
                raise QueueFullError(
                    f"Verification queue is full ({self._max_queue_size} pending)"
                ) from exc
        else:
            await self._queue.put(job)
        return job.future

    async def verify(
        self,
        candidate: NormalizedResource,
        verification_type: VerificationType = VerificationType.INITIAL,
    ) -> VerificationResult:
        """Queue one candidate and wait for its result."""

        return await (await self.submit(candidate, verification_type))

    async def verify_all(
        self,
        candidates: list[NormalizedResource],
        verification_type: VerificationType = VerificationType.INITIAL,
    ) -> list[VerificationResult]:
        futures = [await self.submit(candidate, verification_type) for candidate in candidates]
        return list(await asyncio.gather(*futures))

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.stop()

    async def _work(self, index: int, queue: asyncio.Queue[_Job]) -> None:
        while True:
            job = await queue.get()
            try:
                result = await self._agent.verify(job.candidate, job.verification_type)
            except Exception as exc:
                self.jobs_failed += 1
                log.error("Verification worker %d failed: %s", index, exc, exc_info=True)
                if not job.future.done():
                    job.future.set_exception(exc)
            else:
                self.jobs_processed += 1
                if not job.future.done():
                    job.future.set_result(result)
            finally:
                queue.task_done()
