from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
import responses
from responses import matchers

from archiver.core import timestamps
from archiver.settings import settings

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    # If pytest-cov is active, enforce 85% coverage minimum.
    if config.pluginmanager.hasplugin('pytest_cov'):
        cov_plugin = config.pluginmanager.getplugin('_cov')
        # Set fail-under dynamically if not provided via CLI
        if cov_plugin is not None and not hasattr(config.option, 'cov_fail_under'):
            config.option.cov_fail_under = 85


class FakeWayback:
    """Registers Wayback availability/save endpoints on a ``responses`` mock."""

    def __init__(self, rsps: responses.RequestsMock) -> None:
        self.rsps = rsps

    @staticmethod
    def snapshot_url(url: str, moment: datetime) -> str:
        return f"http://web.archive.org/web/{timestamps.to_text(moment)}/{url}"

    def existing(self, url: str, *moments: datetime) -> None:
        """Availability answers with one candidate per moment."""
        candidates = {
            f"snapshot-{i}": {
                "status": "200",
                "available": True,
                "url": self.snapshot_url(url, moment),
                "timestamp": timestamps.to_text(moment),
            }
            for i, moment in enumerate(moments)
        }
        body = {"url": url, "archived_snapshots": candidates}
        self.rsps.add(responses.GET, settings.availability_endpoint, json=body, match=[matchers.query_param_matcher({"url": url})])

    def no_existing(self, url: str) -> None:
        self.rsps.add(
            responses.GET,
            settings.availability_endpoint,
            json={"url": url, "archived_snapshots": {}},
            match=[matchers.query_param_matcher({"url": url})],
        )

    def save_redirects(self, url: str, moment: datetime, status: int = 200) -> str:
        """Save request redirects to a ``/web/<ts>/`` URL answering with *status*."""
        final_url = f"https://web.archive.org/web/{timestamps.to_text(moment)}/{url}"
        self.rsps.add(
            responses.GET,
            f"{settings.save_endpoint}/{url}",
            status=302,
            headers={"Location": final_url},
        )
        self.rsps.add(responses.GET, final_url, status=status, body="<html>snapshot</html>")
        return final_url

    def save_status(self, url: str, status: int) -> None:
        self.rsps.add(responses.GET, f"{settings.save_endpoint}/{url}", status=status, body="")

    @property
    def save_calls(self) -> list:
        return [call for call in self.rsps.calls if "/save/" in call.request.url]


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def days_ago():
    def _days_ago(days: float) -> datetime:
        return NOW - timedelta(days=days)

    return _days_ago


@pytest.fixture
def wayback():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield FakeWayback(rsps)


@pytest.fixture
def sleeps():
    """Records waits instead of sleeping."""
    calls: list[float] = []

    async def _sleep(seconds: float) -> None:
        calls.append(seconds)

    _sleep.calls = calls  # type: ignore[attr-defined]
    return _sleep
