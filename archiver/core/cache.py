from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, Iterator, Tuple

from pydantic import TypeAdapter

from archiver.core.models import ArchivingResult
from archiver.settings import settings

_ADAPTER = TypeAdapter(Dict[str, ArchivingResult])


class CacheLoadError(Exception):
    """A persisted cache exists but cannot be read or parsed."""


class Cache:
    """URL -> latest :class:`ArchivingResult`, ordered by URL text."""

    def __init__(self, entries: Dict[str, ArchivingResult] | None = None) -> None:
        self._entries: Dict[str, ArchivingResult] = dict(entries or {})

    def lookup(self, url: str) -> ArchivingResult | None:
        return self._entries.get(url)

    def update(self, url: str, result: ArchivingResult) -> None:
        self._entries[url] = result

    def items(self) -> Iterator[Tuple[str, ArchivingResult]]:
        for url in sorted(self._entries):
            yield url, self._entries[url]

    def __contains__(self, url: object) -> bool:
        return url in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cache):
            return NotImplemented
        return self._entries == other._entries

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_json(self) -> str:
        return _ADAPTER.dump_json(dict(self.items()), indent=2).decode("utf-8")

    @classmethod
    def from_json(cls, text: str | bytes) -> Cache:
        return cls(_ADAPTER.validate_json(text))


def is_reusable(result: ArchivingResult, now: datetime, window: timedelta | None = None) -> bool:
    """Whether a cached record is recent enough to skip remote work entirely.

    This window (180 days by default) is looser than the resolver's 90-day
    freshness check and is applied before any request is made.
    """
    if window is None:
        window = timedelta(days=settings.reuse_days)
    return result.succeeded and now - result.last_archived < window
