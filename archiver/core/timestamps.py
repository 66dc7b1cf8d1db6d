from __future__ import annotations

"""Wayback's fixed-width ``YYYYMMDDHHMMSS`` timestamps."""

import re
from datetime import datetime, timezone

from archiver.core.models import ErrorKind, ResolutionError

WAYBACK_FORMAT = "%Y%m%d%H%M%S"

_TIMESTAMP_RE = re.compile(r"[0-9]{14}")
_PATH_RE = re.compile(r"/web/([0-9]+)/")


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def parse(text: str) -> datetime:
    """Decode a 14-digit Wayback timestamp into an aware UTC datetime."""
    if not _TIMESTAMP_RE.fullmatch(text):
        raise ResolutionError(ErrorKind.malformed_timestamp, f"expected 14 digits, got {text!r}")
    try:
        naive = datetime.strptime(text, WAYBACK_FORMAT)
    except ValueError as exc:
        raise ResolutionError(ErrorKind.malformed_timestamp, f"{text!r}: {exc}") from exc
    return naive.replace(tzinfo=timezone.utc)


def to_text(moment: datetime) -> str:
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(WAYBACK_FORMAT)


def extract_from_path(url: str) -> datetime:
    """Pull the snapshot timestamp out of a ``/web/<timestamp>/<url>`` address."""
    match = _PATH_RE.search(url)
    if match is None:
        raise ResolutionError(ErrorKind.malformed_timestamp, f"unable to extract timestamp from {url!r}")
    return parse(match.group(1))
