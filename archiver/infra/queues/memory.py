from __future__ import annotations

import asyncio
from typing import AsyncIterator

from archiver.infra.queues.base import AbstractUrlQueue

_CLOSED = object()


class AsyncUrlQueue(AbstractUrlQueue):
    """Bounded in-process queue; ``put`` blocks the producer when full."""

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    async def put(self, url: str) -> None:  # noqa: D401
        if self._closed:
            raise RuntimeError("URL queue already closed")
        await self._queue.put(url)

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            await self._queue.put(_CLOSED)

    def qsize(self) -> int:
        return self._queue.qsize()

    async def __aiter__(self) -> AsyncIterator[str]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item  # type: ignore[misc]
