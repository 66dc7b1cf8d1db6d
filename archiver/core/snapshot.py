from __future__ import annotations

import logging
from urllib.parse import urlparse

import requests

from archiver.core import timestamps
from archiver.core.http import build_session
from archiver.core.models import ArchivingResult, ErrorKind, ResolutionError
from archiver.settings import settings

logger = logging.getLogger(__name__)

# There may be more status codes that mean the service gave up on a URL, but
# these are the ones seen in practice.
PERMANENT_FAILURE_STATUSES = frozenset({403, 520, 523})
RATE_LIMITED_STATUS = 509

_DIAGNOSTIC_HEADERS = ("Content-Type", "Retry-After", "Server", "Link")


class SnapshotRequester:
    """Ask the Wayback Machine to capture a URL and classify the response."""

    def __init__(
        self,
        session: requests.Session | None = None,
        endpoint: str | None = None,
        snapshot_path_prefix: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._session = session or build_session()
        self._endpoint = (endpoint or settings.save_endpoint).rstrip("/")
        self._prefix = snapshot_path_prefix or settings.snapshot_path_prefix
        self._timeout = settings.request_timeout if timeout is None else timeout

    def request(self, url: str) -> ArchivingResult:
        """Request a fresh capture of *url*; raises :class:`ResolutionError` on failure."""
        try:
            resp = self._session.get(f"{self._endpoint}/{url}", timeout=self._timeout, allow_redirects=True)
        except requests.RequestException as exc:
            raise ResolutionError(ErrorKind.transport, str(exc)) from exc

        snapshot_url = self._classify(resp)
        try:
            last_archived = timestamps.extract_from_path(snapshot_url)
        except ResolutionError as exc:
            raise ResolutionError(
                ErrorKind.unknown_failure,
                f"unparseable snapshot URL {snapshot_url!r} ({exc.detail})",
                status=resp.status_code,
                observed_url=snapshot_url,
            ) from exc
        return ArchivingResult(url=snapshot_url, last_archived=last_archived, from_existing_snapshot=False)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _classify(self, resp: requests.Response) -> str:
        """Return the snapshot URL for a successful response, raise otherwise."""
        status = resp.status_code
        final_url = resp.url
        if status == 200:
            return final_url
        if status == 404:
            # The snapshot can 404 right after a successful capture; the
            # service has not made it resolvable yet but it does exist.
            if urlparse(final_url).path.startswith(self._prefix):
                logger.debug(f"Accepting 404 snapshot URL {final_url}")
                return final_url
            raise ResolutionError(
                ErrorKind.unknown_failure,
                f"Unexpected HTTP 404 at {final_url!r}",
                status=status,
                observed_url=final_url,
            )
        if status == RATE_LIMITED_STATUS:
            raise ResolutionError(ErrorKind.rate_limited, status=status, observed_url=final_url)
        if status in PERMANENT_FAILURE_STATUSES:
            raise ResolutionError(
                ErrorKind.permanent_failure, f"HTTP {status}", status=status, observed_url=final_url
            )

        headers = {name: resp.headers[name] for name in _DIAGNOSTIC_HEADERS if name in resp.headers}
        raise ResolutionError(
            ErrorKind.unknown_failure,
            f"Got status {status} at {final_url!r} (headers: {headers})",
            status=status,
            observed_url=final_url,
        )
