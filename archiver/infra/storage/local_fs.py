from __future__ import annotations

import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import TextIO

from pydantic import ValidationError

from archiver.core.cache import Cache, CacheLoadError
from archiver.infra.storage.base import AbstractCacheStore

logger = logging.getLogger(__name__)


class JsonFileCacheStore(AbstractCacheStore):
    """Keeps the cache as a pretty-printed JSON file on the local FS."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> Cache:  # noqa: D401
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info(f"No cache at {self.path}, starting empty")
            return Cache()
        except (OSError, UnicodeDecodeError) as exc:
            raise CacheLoadError(f"cannot read {self.path}: {exc}") from exc

        try:
            cache = Cache.from_json(text)
        except ValidationError as exc:
            raise CacheLoadError(f"cannot parse {self.path}: {exc}") from exc
        logger.info(f"Loaded {len(cache)} cached results from {self.path}")
        return cache

    def save(self, cache: Cache) -> None:
        # Write-then-rename so an interrupted run never leaves a truncated file.
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(cache.to_json())
                fh.write("\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug(f"Saved {len(cache)} results to {self.path}")


class StreamCacheStore(AbstractCacheStore):
    """Used when no output file is configured: dump the final cache to a stream."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def load(self) -> Cache:  # noqa: D401
        return Cache()

    def save(self, cache: Cache) -> None:
        stream = self._stream or sys.stdout
        stream.write(cache.to_json())
        stream.write("\n")
        stream.flush()

    def checkpoint(self, cache: Cache) -> None:  # noqa: D401
        # A stream only gets the final document.
        return None
