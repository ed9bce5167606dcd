from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production", "test"] = "local"
    LOG_LEVEL: str = "INFO"
    ADMIN_EMAIL: str = "admin@admin.com"
    TIMEZONE: str = "Asia/Manila"
    CURRENCY_SYMBOL: str = "₱"

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Supabase
    # Default placeholder values keep local/test runs from failing when Supabase
    # credentials are not required. Real deployments should override via env.
    SUPABASE_URL: str = "http://localhost"
    SUPABASE_ANON_KEY: str = "test-anon-key"
    SUPABASE_JWT_SECRET: str = "test-jwt-secret"

    # Service URLs (used by the storefront client)
    STORE_SERVICE_URL: str = "http://store-service:8001"
    COMMUNICATIONS_SERVICE_URL: str = "http://communications-service:8002"

    # Storefront client
    CLIENT_STORAGE_PATH: str = ".palaro/storage.json"
    REALTIME_POLL_INTERVAL_SECONDS: float = 5.0
    NOTICE_TTL_SECONDS: float = 4.0

    # Orders
    STRICT_ORDER_TRANSITIONS: bool = False

    # Catalog
    CATALOG_CACHE_TTL_SECONDS: int = 300

    # Email (Brevo SMTP)
    SMTP_HOST: str = "smtp-relay.brevo.com"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    BREVO_KEY: str = ""
    DEFAULT_FROM_EMAIL: str = "no-reply@palaro.app"
    DEFAULT_FROM_NAME: str = "Palaro"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
