from __future__ import annotations

"""Archival resolver: reuse a recent snapshot or mint a new one.

Resolution runs in two stages.  The availability check answers "is there
anything usable already"; the save request answers "can we capture something
new".  Keeping them apart lets a URL the service refuses to capture still
resolve to its last known (stale) snapshot instead of nothing.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable

from archiver.core import timestamps
from archiver.core.availability import AvailabilityResolver
from archiver.core.models import ArchivingResult, ResolutionError
from archiver.core.snapshot import SnapshotRequester
from archiver.settings import settings

logger = logging.getLogger(__name__)


class ArchiveResolver:  # noqa: WPS110 – domain term
    """Resolve a URL to a recent permanent snapshot (Wayback Machine)."""

    def __init__(
        self,
        availability: AvailabilityResolver | None = None,
        requester: SnapshotRequester | None = None,
        freshness_window: timedelta | None = None,
        clock: Callable[[], datetime] = timestamps.utcnow,
    ) -> None:
        self._availability = availability or AvailabilityResolver()
        self._requester = requester or SnapshotRequester()
        self._freshness = timedelta(days=settings.freshness_days) if freshness_window is None else freshness_window
        self._clock = clock

    def resolve(self, url: str) -> ArchivingResult:  # noqa: D401
        """Return a snapshot for *url* or raise :class:`ResolutionError`.

        An existing snapshot inside the freshness window is returned without
        asking for a new capture.  When a capture is refused permanently, any
        existing snapshot is returned instead, however old.
        """
        existing = self._existing_snapshot(url)
        if existing is not None and self._is_fresh(existing):
            logger.info(f"  -> Recent snapshot exists: {existing.url}")
            return existing

        try:
            return self._requester.request(url)
        except ResolutionError as exc:
            if exc.kind.substitutable and existing is not None:
                logger.warning(f"  -> {exc}; falling back to snapshot from {existing.last_archived:%Y-%m-%d}")
                return existing
            raise

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _existing_snapshot(self, url: str) -> ArchivingResult | None:
        try:
            return self._availability.check(url)
        except ResolutionError as exc:
            logger.debug(f"No usable existing snapshot for {url}: {exc}")
            return None

    def _is_fresh(self, result: ArchivingResult) -> bool:
        return self._clock() - result.last_archived < self._freshness
