"""Background writer that persists LLM usage entries in batches."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Self

from resourcevet.config.imports import DEFAULT_USAGE_LOG_FLUSH_SIZE, DEFAULT_USAGE_LOG_QUEUE_SIZE

if TYPE_CHECKING:
    from types import TracebackType

    from resourcevet.domain.model import UsageLog
    from resourcevet.domain.ports.unit_of_work import UsageUnitOfWorkFactory

log = logging.getLogger(__name__)


class UsageLogWriter:
    """:class:`UsageSink` backed by a bounded queue and a single flush task.

    ``submit`` waits while the queue is full. ``stop`` drains whatever is queued
    before returning, so entries accepted before shutdown are not lost.
    """

    def __init__(
        self,
        uow_factory: UsageUnitOfWorkFactory,
        *,
        max_queue_size: int = DEFAULT_USAGE_LOG_QUEUE_SIZE,
        flush_size: int = DEFAULT_USAGE_LOG_FLUSH_SIZE,
    ) -> None:
        if max_queue_size < 1 or flush_size < 1:
            raise ValueError("queue and flush sizes must be positive")
        self._uow_factory = uow_factory
        self._max_queue_size = max_queue_size
        self._flush_size = flush_size
        self._queue: asyncio.Queue[UsageLog] | None = None
        self._task: asyncio.Task[None] | None = None
        self.written = 0
        self.failed = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        queue: asyncio.Queue[UsageLog] = asyncio.Queue(maxsize=self._max_queue_size)
        self._queue = queue
        self._task = asyncio.create_task(self._run(queue), name="usage-log-writer")
        log.debug("Usage log writer started")

    async def stop(self) -> None:
        if self._task is None or self._queue is None:
            return
        await self._queue.join()
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        log.debug("Usage log writer stopped: written=%d failed=%d", self.written, self.failed)

    async def submit(self, entry: UsageLog) -> None:
        if self._queue is None or not self.running:
            raise RuntimeError("UsageLogWriter is not running")
        await self._queue.put(entry)

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

    async def _run(self, queue: asyncio.Queue[UsageLog]) -> None:
        while True:
            batch = [await queue.get()]
            while len(batch) < self._flush_size and not queue.empty():
                batch.append(queue.get_nowait())
            try:
                self._flush(batch)
            except Exception:
                self.failed += len(batch)
                log.exception("Failed to persist %d usage log entries", len(batch))
            else:
                self.written += len(batch)
            finally:
                for _ in batch:
                    queue.task_done()

    def _flush(self, batch: list[UsageLog]) -> None:
        with self._uow_factory() as uow:
            uow.repositories.usage_logs.add_many(batch)
            uow.commit()
