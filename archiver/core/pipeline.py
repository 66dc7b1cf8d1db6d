from __future__ import annotations

"""Batch pipeline: stream URLs through the archival workflow.

Ingestion and processing are decoupled by a bounded FIFO queue.  A daemon
reader thread reads the input source as fast as it allows; a single worker drains the queue
in order, so only one URL is ever in flight against the (rate-limited)
service.  The cache is only touched by the worker.

There is no mid-URL cancellation and, unless a retry cap is configured,
rate-limited URLs are retried forever; stop the process between URLs if a hard
deadline is needed.  Periodic checkpoints bound what is lost.
"""

import asyncio
import concurrent.futures
import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Iterable, Iterator

from archiver.core import timestamps
from archiver.core.cache import Cache, is_reusable
from archiver.core.retry import RetryController
from archiver.infra.queues.base import AbstractUrlQueue
from archiver.infra.queues.memory import AsyncUrlQueue
from archiver.infra.storage.base import AbstractCacheStore
from archiver.settings import settings

logger = logging.getLogger(__name__)


class BatchPipeline:
    """Drive every input URL through :class:`RetryController`, checkpointing results."""

    def __init__(
        self,
        controller: RetryController,
        store: AbstractCacheStore,
        cache: Cache | None = None,
        checkpoint_interval: int | None = None,
        reuse_window: timedelta | None = None,
        queue_factory: Callable[[], AbstractUrlQueue] | None = None,
        clock: Callable[[], datetime] = timestamps.utcnow,
    ) -> None:
        self._controller = controller
        self._store = store
        self.cache = cache if cache is not None else Cache()
        self._interval = settings.checkpoint_interval if checkpoint_interval is None else checkpoint_interval
        self._reuse_window = timedelta(days=settings.reuse_days) if reuse_window is None else reuse_window
        self._queue_factory = queue_factory or (lambda: AsyncUrlQueue(maxsize=settings.queue_maxsize))
        self._clock = clock
        self.processed = 0
        self.skipped = 0

    async def run(self, lines: Iterable[str]) -> Cache:
        """Process all *lines* and return the updated cache.

        The cache is saved every ``checkpoint_interval`` updated URLs and once
        more, unconditionally, when the input is exhausted.
        """
        queue = self._queue_factory()
        producer = asyncio.create_task(self._ingest(iter(lines), queue))
        try:
            await self._process(queue)
        except BaseException:
            producer.cancel()
            raise
        # Surface ingestion errors only after everything read so far is done.
        await producer

        self._store.save(self.cache)
        logger.info(f"Finished: {self.processed} archived, {self.skipped} already archived, {len(self.cache)} total")
        return self.cache

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _ingest(self, lines: Iterator[str], queue: AbstractUrlQueue) -> None:
        loop = asyncio.get_running_loop()
        finished: asyncio.Future[None] = loop.create_future()
        # A daemon thread, not the default executor: a read blocked on an
        # interactive stdin must not keep the process alive after Ctrl-C.
        reader = threading.Thread(
            target=_read_lines, args=(lines, queue, loop, finished), name="url-ingest", daemon=True
        )
        reader.start()
        await finished

    async def _process(self, queue: AbstractUrlQueue) -> None:
        position = 0
        async for url in queue:
            position += 1
            logger.info(f"[{position}/?] Archiving {url!r}...")

            cached = self.cache.lookup(url)
            if cached is not None and is_reusable(cached, self._clock(), self._reuse_window):
                logger.info("  -> URL already archived")
                self.skipped += 1
                continue

            result = await self._controller.resolve_with_retry(url)
            self.cache.update(url, result)
            self.processed += 1
            if self.processed % self._interval == 0:
                logger.info(f"Checkpointing {len(self.cache)} results")
                self._store.checkpoint(self.cache)


def _read_lines(
    lines: Iterator[str], queue: AbstractUrlQueue, loop: asyncio.AbstractEventLoop, finished: asyncio.Future[None]
) -> None:
    """Reader thread body: feed stripped, non-empty lines to *queue* on *loop*."""

    def _on_loop(coro):
        # Blocks while the queue is full, which is the backpressure.
        return asyncio.run_coroutine_threadsafe(coro, loop).result()

    error: BaseException | None = None
    try:
        for line in lines:
            url = line.strip()
            if url:
                _on_loop(queue.put(url))
    except BaseException as exc:  # re-raised by the awaiting task
        error = exc

    try:
        _on_loop(queue.close())
        loop.call_soon_threadsafe(_settle, finished, error)
    except (RuntimeError, concurrent.futures.CancelledError):
        # The run was cancelled and its loop is gone.
        return


def _settle(finished: asyncio.Future[None], error: BaseException | None) -> None:
    if finished.done():
        return
    if error is not None:
        finished.set_exception(error)
    else:
        finished.set_result(None)
