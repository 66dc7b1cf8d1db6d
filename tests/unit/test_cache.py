from __future__ import annotations

import json
from datetime import timedelta

from archiver.core.cache import Cache, is_reusable
from archiver.core.models import ArchivingResult


def _result(moment, url="https://web.archive.org/web/20240101000000/x"):
    return ArchivingResult(url=url, last_archived=moment)


def test_lookup_and_update_overwrite(now):
    cache = Cache()
    assert cache.lookup("https://a.com") is None

    cache.update("https://a.com", ArchivingResult.tombstone(now))
    cache.update("https://a.com", _result(now))

    assert len(cache) == 1
    assert cache.lookup("https://a.com").succeeded
    assert "https://a.com" in cache


def test_iteration_is_sorted_by_url(now):
    cache = Cache()
    for url in ["https://c.com", "https://a.com", "https://b.com"]:
        cache.update(url, _result(now))

    assert list(cache) == ["https://a.com", "https://b.com", "https://c.com"]
    assert list(json.loads(cache.to_json())) == ["https://a.com", "https://b.com", "https://c.com"]


def test_json_round_trip(now, days_ago):
    cache = Cache()
    cache.update("https://b.com", _result(days_ago(10)))
    cache.update("https://a.com", ArchivingResult.tombstone(now))

    reloaded = Cache.from_json(cache.to_json())

    assert reloaded == cache
    assert list(reloaded) == list(cache)


def test_existing_flag_is_not_persisted(now):
    cache = Cache()
    cache.update("https://a.com", ArchivingResult(url="https://web.archive.org/web/1/x", last_archived=now, from_existing_snapshot=True))

    document = json.loads(cache.to_json())

    assert document == {"https://a.com": {"url": "https://web.archive.org/web/1/x", "last_archived": "2024-06-01T12:00:00Z"}}
    assert Cache.from_json(cache.to_json()).lookup("https://a.com").from_existing_snapshot is False


def test_naive_timestamps_load_as_utc(now):
    legacy = '{"https://a.com": {"url": null, "last_archived": "2024-06-01T12:00:00"}}'

    cache = Cache.from_json(legacy)

    assert cache.lookup("https://a.com").last_archived == now


def test_is_reusable_uses_looser_window(now, days_ago):
    # 100 days would fail the resolver's 90-day freshness check but is reused here.
    assert is_reusable(_result(days_ago(100)), now) is True
    assert is_reusable(_result(days_ago(179)), now) is True
    assert is_reusable(_result(days_ago(180)), now) is False


def test_tombstones_are_never_reusable(now):
    assert is_reusable(ArchivingResult.tombstone(now), now) is False


def test_is_reusable_custom_window(now, days_ago):
    assert is_reusable(_result(days_ago(2)), now, window=timedelta(days=1)) is False


def test_zero_window_reuses_nothing(now):
    assert is_reusable(_result(now), now, window=timedelta(0)) is False


def test_tombstone_is_stored_in_whole_seconds(now):
    cache = Cache()
    cache.update("https://a.com", ArchivingResult.tombstone(now.replace(microsecond=118726)))

    document = json.loads(cache.to_json())

    assert document["https://a.com"]["last_archived"] == "2024-06-01T12:00:00Z"
