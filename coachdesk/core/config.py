"""Application configuration settings."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "CoachDesk Results Backend"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"

    # Database (SQLite or PostgreSQL, selected by URL)
    DATABASE_URL: str = "sqlite:///./coachdesk.db"

    # Monthly result automation
    SCHEDULER_ENABLED: bool = True
    SCHEDULER_TIMEZONE: str = "Asia/Dhaka"
    SCHEDULER_RUN_HOUR: int = 0
    SCHEDULER_RUN_MINUTE: int = 30

    # Grading
    RANK_TIE_POLICY: Literal["first_match", "dense", "ordinal"] = "first_match"
    BONUS_POLICY: Literal["manual", "attendance"] = "manual"
    GRADE_DESCRIPTION_LOCALE: Literal["bn", "en"] = "bn"
    TOP_PERFORMERS_LIMIT: int = 5

    # Academic calendar: Python weekday numbers (Monday=0)
    DEFAULT_WORKING_WEEKDAYS: list[int] = [0, 1, 2, 3]

    @field_validator("DEFAULT_WORKING_WEEKDAYS")
    @classmethod
    def validate_weekdays(cls, v: list[int]) -> list[int]:
        invalid = [day for day in v if day < 0 or day > 6]
        if invalid:
            raise ValueError(f"Invalid weekday numbers: {invalid}")
        return sorted(set(v))

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured database is SQLite."""
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
