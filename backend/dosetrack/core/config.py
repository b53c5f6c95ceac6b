"""Module: config."""

from pydantic_settings import BaseSettings


# Centralized runtime configuration loaded from environment variables.
class Settings(BaseSettings):
    # Primary SQLAlchemy connection string for the backend database.
    database_url: str
    # Create missing tables on startup (alembic remains the source of truth in deployment).
    auto_create_tables: bool = True

    # Zone that defines "today" and "now" for all date-only medication math.
    local_timezone: str = "America/Los_Angeles"

    # Reminder link credentials minted alongside each pending dose.
    short_code_length: int = 8
    legacy_token_ttl_hours: int = 24
    # Pending doses older than this are auto-skipped by the maintenance sweep.
    stale_dose_hours: int = 24

    # Guard on the progress read that follows a transition.
    progress_timeout_seconds: float = 3.0
    # Request timeout for the transition API client.
    backend_timeout_seconds: float = 10.0
    backend_base_url: str = "http://localhost:8000"

    # Public web app used to build /dose/{code} links and post-action redirects.
    app_base_url: str = "http://localhost:5173"
    confirmation_path: str = "/dose-success"

    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:5174",
        "http://127.0.0.1:5174",
    ]

    log_level: str = "INFO"

    # Configure pydantic-settings to also load values from local .env file.
    class Config:
        env_file = ".env"


# Global settings instance imported by app modules at runtime.
settings = Settings()
