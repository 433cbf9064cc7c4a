import os
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

REPO_ROOT = Path(__file__).resolve().parents[2]


def _env_file(name: str) -> str:
    # CWD first, then the repo root.
    local = Path(name)
    return str(local.resolve() if local.exists() else REPO_ROOT / name)


def _env_files() -> list[str]:
    env = os.getenv("RH_ENVIRONMENT", "").strip().lower()
    overlay = f".env.{env}" if env and env != "development" else ".env.local"
    return [_env_file(".env"), _env_file(overlay)]


class Settings(BaseSettings):
    app_name: str = "RecruiterHub Ops"
    environment: str = "development"

    database_url: str = "sqlite+aiosqlite:///./recruiterhub.db"

    collections_base_url: str = "http://localhost:5000/api"
    collections_token: str = ""
    fetch_timeout_seconds: float = 15.0

    redis_url: str = Field(
        default="",
        validation_alias=AliasChoices("RH_REDIS_URL", "REDIS_URL"),
    )
    event_channel: str = "rh:events"

    notification_storage_key: str = "rh:notifications"
    reminder_storage_key: str = "rh:reminders"

    reminder_thresholds_minutes: list[int] = [30]
    reminder_band_seconds: int = 60
    reminder_scan_seconds: int = 30
    reminder_catch_up: bool = True

    activity_feed_enabled: bool = False
    activity_feed_seconds: int = 300
    activity_feed_probability: float = 0.1

    tat_urgent_days: int = 3

    model_config = SettingsConfigDict(env_prefix="RH_", env_file=_env_files(), extra="ignore")

    @field_validator("reminder_thresholds_minutes")
    @classmethod
    def _positive_thresholds(cls, value: list[int]) -> list[int]:
        cleaned = sorted({int(item) for item in value if int(item) > 0})
        if not cleaned:
            raise ValueError("At least one positive reminder threshold is required")
        return cleaned

    @property
    def reminder_scan_fits_band(self) -> bool:
        # The scan cadence must be smaller than the band width or a band can fall between two samples.
        return self.reminder_scan_seconds < 2 * self.reminder_band_seconds


settings = Settings()
