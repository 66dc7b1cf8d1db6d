from __future__ import annotations

import abc

from archiver.core.cache import Cache


class AbstractCacheStore(abc.ABC):
    """Durable home of the archival cache between runs."""

    @abc.abstractmethod
    def load(self) -> Cache:  # noqa: D401
        ...

    @abc.abstractmethod
    def save(self, cache: Cache) -> None:
        ...

    def checkpoint(self, cache: Cache) -> None:
        """Persist an intermediate state of the cache during a run."""
        self.save(cache)
