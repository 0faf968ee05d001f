from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="COACHSTUDIO_",
        case_sensitive=False,
    )

    # App
    env: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    db_url: str = "sqlite+aiosqlite:///./coachstudio.db"

    # Scheduling
    studio_timezone: str = "UTC"
    default_horizon_weeks: int = Field(default=6, ge=1)
    max_horizon_weeks: int = Field(default=26, ge=1)

    # Job triggers
    cron_secret: str = ""
    admin_token: str = ""

    @field_validator("studio_timezone")
    @classmethod
    def check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as err:
            raise ValueError(f"Unknown timezone: {value}") from err
        return value


def get_settings() -> Settings:
    return Settings()
