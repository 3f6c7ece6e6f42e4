"""
Configuration settings for dbrecords.

Uses Pydantic Settings to load environment variables for the PostgreSQL
datasource, logging, and record-engine defaults such as the number of attempts
a unique code generator may make before giving up.
"""
from __future__ import annotations

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("dbrecords", alias="DB_NAME")
    db_connect_timeout: int = Field(5, alias="DB_CONNECT_TIMEOUT")
    db_statement_timeout_ms: int = Field(30_000, alias="DB_STATEMENT_TIMEOUT_MS")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Record engine
    unique_code_max_attempts: int = Field(100, alias="UNIQUE_CODE_MAX_ATTEMPTS", ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


def build_dsn(settings: Settings | None = None) -> str:
    """Compose a PostgreSQL DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


__all__ = ["Settings", "get_settings", "build_dsn"]
