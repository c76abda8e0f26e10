"""Application configuration from environment variables.

Loads settings from the environment and an optional .env file. Priority
(highest to lowest): environment variables, .env in the project root, defaults.

Example .env:
    ```
    DATABASE_URL=sqlite:///./cooperative_payments.db
    PAYMENT_ENCRYPTION_KEY=change-me-to-a-long-random-value
    LOG_LEVEL=INFO
    ```
"""

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = Field(
        default="sqlite:///./cooperative_payments.db",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = Field(default=False, description="Log SQL queries")

    # Credential custody
    payment_encryption_key: SecretStr = Field(
        default=SecretStr(""),
        description="Master secret the credential vault derives its key from",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/server.log", description="Log file path")

    # API
    api_title: str = Field(default="Cooperative Payments API", description="API title")
    api_version: str = Field(default="0.1.0", description="API version")


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance (read once)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
