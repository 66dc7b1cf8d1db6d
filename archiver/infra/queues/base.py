from __future__ import annotations

import abc
from typing import AsyncIterator


class AbstractUrlQueue(abc.ABC):
    """Single-producer/single-consumer FIFO between URL ingestion and processing."""

    @abc.abstractmethod
    async def put(self, url: str) -> None:  # noqa: D401
        """Enqueue ``url``; may wait while the queue is full."""
        ...

    @abc.abstractmethod
    async def close(self) -> None:
        """Signal that no more URLs will be put."""
        ...

    @abc.abstractmethod
    def __aiter__(self) -> AsyncIterator[str]:
        """Yield URLs in insertion order until the queue is closed and drained."""
        ...
