"""
Law Nation Editorial - Configuration Module
==========================================
All configuration is loaded from environment variables (prefix LAWNATION_)
and an optional .env file. No secrets are hardcoded.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="LAWNATION_",
        extra="ignore",
    )

    # App
    app_name: str = "Law Nation Editorial"
    app_env: str = "development"
    app_debug: bool = True
    app_secret_key: str = Field(..., min_length=32)
    app_port: int = 8000

    @property
    def secret_key(self) -> str:
        return self.app_secret_key

    # Database
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "lawnation_db"
    postgres_user: str = "lawnation"
    postgres_password: str = ""
    database_url_override: str = ""

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def database_url_sync(self) -> str:
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Redis (Celery broker/backend)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str = ""
    redis_queue_db: int = 1

    @property
    def redis_queue_url(self) -> str:
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_queue_db}"

    # Auth (tokens are issued elsewhere; this service only verifies them)
    jwt_algorithm: str = "HS256"
    access_token_expire_hours: int = 12

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Workflow
    verification_ttl_hours: int = 48
    verification_code_length: int = 6
    diff_on_upload: bool = True

    # Document services (extraction / conversion API)
    document_service_base_url: str = "http://localhost:8090"
    document_service_api_key: str = ""
    document_service_timeout_seconds: int = 60
    document_service_retries: int = 3

    # Notifications
    notifications_enabled: bool = True
    notification_webhook_url: str = ""

    # Queue / sweeps
    queue_enabled: bool = True
    queue_documents_name: str = "documents"
    job_max_attempts: int = 3
    sweep_enabled: bool = True
    sweep_interval_minutes: int = 15
    stale_job_minutes: int = 30

    # CORS
    cors_origins: str = "http://localhost:3000,http://localhost:8000"

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
