"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "delay-sentinel"
    log_level: str = "INFO"

    # Weather source (National Weather Service)
    noaa_base_url: str = "https://api.weather.gov"
    noaa_user_agent: str = "delay-sentinel/1.0 (ops@delay-sentinel.example)"
    request_timeout_seconds: float = 5.0
    max_station_distance_miles: float = 100.0

    # Monitor run
    max_concurrency: int = 4

    # Cost accrual
    shift_hours: float = 8.0

    # Notifications
    notify_continuing: bool = True
    webhook_url: str | None = None
    webhook_auth_token: str | None = None

    model_config = {"env_prefix": "DELAY_SENTINEL_"}


settings = Settings()
