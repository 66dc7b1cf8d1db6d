from __future__ import annotations

import pytest
from pydantic import ValidationError

from archiver.settings import Settings


def test_settings_invalid_env():
    """Verify that an invalid ENV value raises a validation error."""
    with pytest.raises(ValidationError):
        Settings(env="invalid")


def test_settings_defaults_keep_two_windows():
    config = Settings()
    assert config.freshness_days == 90
    assert config.reuse_days == 180
    assert config.rate_limit_wait == 15
    assert config.post_archive_cooldown == 5
    assert config.checkpoint_interval == 100
    assert config.max_rate_limit_retries is None


@pytest.mark.parametrize("field", ["checkpoint_interval", "freshness_days", "reuse_days", "queue_maxsize"])
def test_settings_reject_non_positive(field):
    with pytest.raises(ValidationError):
        Settings(**{field: 0})


def test_settings_reject_negative_wait():
    with pytest.raises(ValidationError):
        Settings(rate_limit_wait=-1)


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("ARCHIVER_CHECKPOINT_INTERVAL", "25")
    monkeypatch.setenv("ARCHIVER_LOG_LEVEL", "debug")

    config = Settings()

    assert config.checkpoint_interval == 25
    assert config.log_level == "DEBUG"
