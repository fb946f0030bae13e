# backend/tutorhub/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import BRAND_NAME, DEFAULT_GENERATION_HORIZON_DAYS


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.info(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    # Database
    database_url: str = Field(
        default="sqlite:///./tutorhub.db",
        alias="DATABASE_URL",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = False

    # Environment
    environment: Literal["development", "production", "test"] = Field(
        default="development", alias="ENVIRONMENT"
    )
    is_testing: bool = False  # Set to True when running tests

    # Appointment timestamps are stored as naive wall-clock times in this zone
    business_timezone: str = Field(default="UTC", alias="BUSINESS_TIMEZONE")

    # Celery / Redis
    redis_url: Optional[str] = Field(default="redis://localhost:6379", alias="REDIS_URL")

    # Email settings
    email_provider: Literal["console", "resend"] = Field(
        default="console",
        alias="EMAIL_PROVIDER",
        description="Email provider name",
    )
    resend_api_key: str | None = Field(
        default=None,
        alias="RESEND_API_KEY",
        description="API key for Resend provider (optional)",
    )
    from_email: str = f"{BRAND_NAME} <hello@tutorhub.app>"
    frontend_url: str = "http://localhost:3000"

    # Google Calendar sync
    google_calendar_enabled: bool = Field(default=False, alias="GOOGLE_CALENDAR_ENABLED")
    google_client_id: str | None = Field(default=None, alias="GOOGLE_CLIENT_ID")
    google_client_secret: SecretStr | None = Field(default=None, alias="GOOGLE_CLIENT_SECRET")
    google_refresh_token: SecretStr | None = Field(default=None, alias="GOOGLE_REFRESH_TOKEN")
    google_calendar_id: str = Field(default="primary", alias="GOOGLE_CALENDAR_ID")

    # Upper bound for any single calendar/email call
    external_call_timeout_seconds: float = Field(
        default=10.0,
        alias="EXTERNAL_CALL_TIMEOUT_SECONDS",
        description="Timeout applied to best-effort calendar and email calls",
    )

    # Recurring appointment generation
    generation_horizon_days: int = Field(
        default=DEFAULT_GENERATION_HORIZON_DAYS, alias="GENERATION_HORIZON_DAYS"
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("external_call_timeout_seconds")
    @classmethod
    def _positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("external_call_timeout_seconds must be positive")
        return v

    @field_validator("generation_horizon_days")
    @classmethod
    def _positive_horizon(cls, v: int) -> int:
        if v < 0:
            raise ValueError("generation_horizon_days cannot be negative")
        return v

    @property
    def google_calendar_configured(self) -> bool:
        """True when the toggle is on and OAuth credentials are present."""
        return bool(
            self.google_calendar_enabled
            and self.google_client_id
            and self.google_client_secret
            and self.google_refresh_token
        )


settings = Settings()
