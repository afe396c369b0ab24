"""Application configuration loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Type-safe configuration sourced from .env / environment."""

    # Document-store namespace shared by every user of this deployment
    app_id: str = "default-app-id"

    # Notifications
    notification_ttl_seconds: float = 5.0

    # Reminders
    reminder_interval_seconds: float = 60.0
    reminder_tolerance_minutes: int = 5

    # Shell
    default_theme: str = "dark"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="STUDY_NAVIGATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
