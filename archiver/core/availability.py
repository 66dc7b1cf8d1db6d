from __future__ import annotations

import logging

import requests
from pydantic import ValidationError

from archiver.core import timestamps
from archiver.core.http import build_session
from archiver.core.models import (
    ArchivingResult,
    AvailabilityResponse,
    ErrorKind,
    ResolutionError,
)
from archiver.settings import settings

logger = logging.getLogger(__name__)


class AvailabilityResolver:
    """Look up the most recent existing Wayback snapshot of a URL."""

    def __init__(
        self,
        session: requests.Session | None = None,
        endpoint: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._session = session or build_session()
        self._endpoint = endpoint or settings.availability_endpoint
        self._timeout = settings.request_timeout if timeout is None else timeout

    def check(self, url: str) -> ArchivingResult:
        """Return the latest snapshot of *url* or raise :class:`ResolutionError`."""
        try:
            resp = self._session.get(self._endpoint, params={"url": url}, timeout=self._timeout)
        except requests.RequestException as exc:
            raise ResolutionError(ErrorKind.transport, str(exc)) from exc

        try:
            payload = AvailabilityResponse.model_validate_json(resp.content)
        except ValidationError as exc:
            raise ResolutionError(
                ErrorKind.malformed_response,
                f"availability response for {url!r}: {exc.error_count()} validation error(s)",
                status=resp.status_code,
            ) from exc

        snapshots = payload.archived_snapshots or {}
        if not snapshots:
            raise ResolutionError(ErrorKind.no_existing_snapshot)

        # Fixed-width timestamps order the same as strings and as numbers.
        latest = max(snapshots.values(), key=lambda snapshot: snapshot.timestamp)
        logger.debug(f"Latest existing snapshot of {url}: {latest.url} ({latest.timestamp})")
        return ArchivingResult(
            url=latest.url,
            last_archived=timestamps.parse(latest.timestamp),
            from_existing_snapshot=True,
        )
