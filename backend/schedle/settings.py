"""Settings for the Schedle core with observability configuration."""

from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_field(default, *env_names: str):
    if env_names:
        alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
        return Field(default=default, validation_alias=alias)
    return Field(default=default)


class Settings(BaseSettings):
    redis_url: str = _env_field("redis://localhost:6379/0", "REDIS_URL")
    # Prepended to every storage key, e.g. "schedle:" -> "schedle:friends_user1"
    storage_key_prefix: str = _env_field("", "STORAGE_KEY_PREFIX")

    # Mock identity
    directory_size: int = _env_field(10, "DIRECTORY_SIZE")
    demo_password: str = _env_field("password123", "DEMO_PASSWORD")
    password_time_cost: int = _env_field(2, "PASSWORD_TIME_COST")
    password_memory_cost: int = _env_field(19456, "PASSWORD_MEMORY_COST")

    recent_notifications_limit: int = _env_field(5, "RECENT_NOTIFICATIONS_LIMIT")
    multi_day_threshold_hours: int = _env_field(24, "MULTI_DAY_THRESHOLD_HOURS")

    environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")
    obs_enabled: bool = _env_field(True, "OBS_ENABLED")
    obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
    obs_log_sampling_rate_info: float = _env_field(1.0, "LOG_SAMPLING_RATE_INFO")
    service_name: str = _env_field("schedle", "SERVICE_NAME")
    git_commit: str = _env_field("unknown", "GIT_COMMIT", "COMMIT_SHA", "SOURCE_VERSION")

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
    )


def _normalise_level(level: str) -> str:
    return level.upper()


settings = Settings()
settings.obs_log_level = _normalise_level(settings.obs_log_level)
