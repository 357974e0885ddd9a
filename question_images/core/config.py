"""Application configuration from environment."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from env / .env."""

    app_name: str = "Question Images Service"
    debug: bool = False

    # Database (async driver; Alembic converts to a sync one)
    database_url: str = "sqlite+aiosqlite:///./question_images.db"
    store_timeout_seconds: float = 10.0

    # JWT bearer tokens
    secret_key: str = "change-me-in-production-use-env"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Retention cleanup: newest attempts kept per placement
    retention_keep_latest: int = 3

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def get_settings() -> Settings:
    return Settings()
