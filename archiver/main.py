from __future__ import annotations

import asyncio
import io
import logging
import os
import sys
from pathlib import Path
from typing import Optional, TextIO

import typer

from archiver.core.archive_resolver import ArchiveResolver
from archiver.core.availability import AvailabilityResolver
from archiver.core.cache import Cache, CacheLoadError
from archiver.core.http import build_session
from archiver.core.pipeline import BatchPipeline
from archiver.core.retry import RetryController
from archiver.core.snapshot import SnapshotRequester
from archiver.infra.storage.base import AbstractCacheStore
from archiver.infra.storage.local_fs import JsonFileCacheStore, StreamCacheStore
from archiver.settings import settings

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="Make sure every URL read from input has a recent Wayback Machine snapshot.")


def build_pipeline(store: AbstractCacheStore, cache: Cache) -> BatchPipeline:
    session = build_session()
    resolver = ArchiveResolver(
        availability=AvailabilityResolver(session=session),
        requester=SnapshotRequester(session=session),
    )
    return BatchPipeline(controller=RetryController(resolver=resolver), store=store, cache=cache)


def _stdin_lines() -> TextIO:
    """Private handle on stdin for the reader thread.

    The thread may still be blocked on it when the process exits after Ctrl-C,
    so it must not share a buffer with ``sys.stdin``.
    """
    try:
        fd = os.dup(sys.stdin.fileno())
    except (AttributeError, io.UnsupportedOperation, OSError):
        # Not backed by a file descriptor (e.g. a test runner's stream).
        return sys.stdin
    return os.fdopen(fd, encoding="utf-8", errors="replace")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@app.command()
def archive(
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="JSON file to checkpoint results into (stdout if omitted)."),
    merge: bool = typer.Option(False, "--merge", "-m", help="Start from the results already stored in --out."),
    input_path: Optional[Path] = typer.Option(
        None, "--input", "-i", exists=True, dir_okay=False, readable=True, help="Read URLs from this file instead of stdin."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Archive one URL per input line."""
    if merge and out is None:
        raise typer.BadParameter("--merge requires --out to be set", param_hint="--merge")
    _configure_logging(verbose)

    store: AbstractCacheStore = JsonFileCacheStore(out) if out is not None else StreamCacheStore()
    try:
        cache = store.load() if merge else Cache()
    except CacheLoadError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1) from exc

    pipeline = build_pipeline(store, cache)
    try:
        if input_path is not None:
            with input_path.open(encoding="utf-8") as lines:
                asyncio.run(pipeline.run(lines))
        else:
            asyncio.run(pipeline.run(_stdin_lines()))
    except KeyboardInterrupt:
        logger.warning(f"Interrupted after {pipeline.processed} URLs; results up to the last checkpoint are kept")
        raise typer.Exit(code=130)


if __name__ == "__main__":  # pragma: no cover
    app()
