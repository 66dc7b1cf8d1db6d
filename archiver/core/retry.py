from __future__ import annotations

"""Retry/backoff around :class:`ArchiveResolver`.

Rate limiting is retried after a fixed wait, indefinitely unless a cap is
configured.  Every other failure is recorded as a tombstone so the batch keeps
going.  The resolver itself is blocking (``requests``), so it runs in a worker
thread while waits suspend only the calling task.
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable

from archiver.core import timestamps
from archiver.core.archive_resolver import ArchiveResolver
from archiver.core.models import ArchivingResult, ResolutionError
from archiver.settings import settings

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


class RetryController:
    def __init__(
        self,
        resolver: ArchiveResolver | None = None,
        rate_limit_wait: float | None = None,
        cooldown: float | None = None,
        max_rate_limit_retries: int | None = None,
        sleep: Sleeper = asyncio.sleep,
        clock: Callable[[], datetime] = timestamps.utcnow,
    ) -> None:
        self._resolver = resolver or ArchiveResolver()
        self._rate_limit_wait = settings.rate_limit_wait if rate_limit_wait is None else rate_limit_wait
        self._cooldown = settings.post_archive_cooldown if cooldown is None else cooldown
        self._max_retries = (
            settings.max_rate_limit_retries if max_rate_limit_retries is None else max_rate_limit_retries
        )
        self._sleep = sleep
        self._clock = clock

    async def resolve_with_retry(self, url: str) -> ArchivingResult:
        """Resolve *url*, always yielding a record (a tombstone on failure)."""
        retries = 0
        while True:
            try:
                result = await asyncio.to_thread(self._resolver.resolve, url)
            except ResolutionError as exc:
                if exc.kind.retryable and (self._max_retries is None or retries < self._max_retries):
                    retries += 1
                    logger.warning(f"  -> {exc}. Waiting {self._rate_limit_wait:g}s (retry {retries})...")
                    await self._sleep(self._rate_limit_wait)
                    continue
                logger.error(f"  -> Archiving failed: {exc}")
                return ArchivingResult.tombstone(self._clock())

            if not result.from_existing_snapshot:
                logger.info(f"  -> Done: {result.url}")
                # Give the service a break before the next capture.
                await self._sleep(self._cooldown)
            return result
