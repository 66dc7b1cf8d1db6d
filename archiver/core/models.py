from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ErrorKind(str, enum.Enum):
    transport = "transport"
    malformed_response = "malformed_response"
    malformed_timestamp = "malformed_timestamp"
    no_existing_snapshot = "no_existing_snapshot"
    rate_limited = "rate_limited"
    permanent_failure = "permanent_failure"
    unknown_failure = "unknown_failure"

    @property
    def retryable(self) -> bool:
        return self is ErrorKind.rate_limited

    @property
    def substitutable(self) -> bool:
        """A stale existing snapshot may stand in for this failure."""
        return self is ErrorKind.permanent_failure


_MESSAGES = {
    ErrorKind.transport: "Transport error",
    ErrorKind.malformed_response: "Malformed response",
    ErrorKind.malformed_timestamp: "Malformed timestamp",
    ErrorKind.no_existing_snapshot: "No existing snapshots",
    ErrorKind.rate_limited: "Bandwidth exceeded",
    ErrorKind.permanent_failure: "Wayback Machine unable to archive this URL",
    ErrorKind.unknown_failure: "Unknown error",
}


class ResolutionError(Exception):
    """Failure of a single resolution attempt, tagged with its :class:`ErrorKind`."""

    def __init__(
        self,
        kind: ErrorKind,
        detail: str | None = None,
        *,
        status: int | None = None,
        observed_url: str | None = None,
    ) -> None:
        self.kind = kind
        self.detail = detail
        self.status = status
        self.observed_url = observed_url
        super().__init__(str(self))

    def __str__(self) -> str:
        message = _MESSAGES[self.kind]
        if self.detail:
            return f"{message}: {self.detail}"
        return message


class ArchivingResult(BaseModel):
    """Latest known archival outcome for one URL.

    ``url`` is only set on success; ``last_archived`` is always set so that a
    failed attempt still records when it happened.
    """

    url: Optional[str] = None
    last_archived: datetime
    from_existing_snapshot: bool = Field(default=False, exclude=True)

    model_config = ConfigDict(frozen=True)

    @field_validator("last_archived")
    def _as_utc(cls, v: datetime) -> datetime:  # noqa: D401
        # Older cache files carry naive timestamps which were always UTC.
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        # The cache file stores whole seconds.
        return v.astimezone(timezone.utc).replace(microsecond=0)

    @property
    def succeeded(self) -> bool:
        return self.url is not None

    @classmethod
    def tombstone(cls, when: datetime) -> ArchivingResult:
        return cls(url=None, last_archived=when)


class AvailabilitySnapshot(BaseModel):
    status: Optional[str] = None
    available: Optional[bool] = None
    url: str
    timestamp: str


class AvailabilityResponse(BaseModel):
    url: Optional[str] = None
    archived_snapshots: Optional[Dict[str, AvailabilitySnapshot]] = None
