from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Archiver configuration read from ``ARCHIVER_*`` environment variables or defaults."""

    env: str = "dev"
    availability_endpoint: str = "https://archive.org/wayback/available"
    save_endpoint: str = "https://web.archive.org/save"
    snapshot_path_prefix: str = "/web"
    user_agent: str = "WaybackArchiver/0.1"
    request_timeout: float = 120.0

    # Two independent windows: an existing remote snapshot younger than
    # ``freshness_days`` is accepted as-is, a cached record younger than
    # ``reuse_days`` is not even re-checked.
    freshness_days: int = 90
    reuse_days: int = 180

    rate_limit_wait: float = 15.0
    post_archive_cooldown: float = 5.0
    max_rate_limit_retries: int | None = None

    checkpoint_interval: int = 100
    queue_maxsize: int = 1000
    log_level: str = "INFO"

    @field_validator("env")
    def _validate_env(cls, v: str) -> str:  # noqa: D401
        if v not in {"dev", "prod"}:
            raise ValueError("ENV must be either 'dev' or 'prod'")
        return v

    @field_validator("freshness_days", "reuse_days", "checkpoint_interval", "queue_maxsize", "request_timeout")
    def _validate_positive(cls, v):  # noqa: D401
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("rate_limit_wait", "post_archive_cooldown")
    def _validate_non_negative(cls, v: float) -> float:  # noqa: D401
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @field_validator("max_rate_limit_retries")
    def _validate_retry_cap(cls, v: int | None) -> int | None:  # noqa: D401
        if v is not None and v < 0:
            raise ValueError("must not be negative")
        return v

    @field_validator("log_level")
    def _validate_log_level(cls, v: str) -> str:  # noqa: D401
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {v!r}")
        return level

    # Pydantic v2+ configuration pattern
    model_config = SettingsConfigDict(env_prefix="ARCHIVER_", env_file=".env", env_file_encoding="utf-8")


settings = Settings()
