"""
Configuration and settings for the artifacts backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=4000)
    log_level: str = Field(default="INFO")

    # Database (any SQLAlchemy URL; Postgres expected in production)
    database_url: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, validation_alias="ARTIFACTS_USE_IN_MEMORY_BACKENDS"
    )

    # Session tokens
    access_token_secret: Optional[str] = Field(default=None)
    access_token_algorithm: str = Field(default="HS256")
    access_token_expire_days: int = Field(default=365)
    session_cookie_name: str = Field(default="token")
    session_cookie_secure: bool = Field(default=False)

    # Browser clients allowed to send the session cookie
    cors_origins: list[str] = Field(default=["http://localhost:5173"])


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
