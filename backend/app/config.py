"""Application configuration using Pydantic Settings.

All settings are loaded from environment variables or .env file.
Secrets are handled via SecretStr to prevent accidental logging.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """Application settings with validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="DEVINTEL_",
    )

    # Application
    app_name: str = "DevIntel Engine"
    app_version: str = "0.1.0"
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False
    log_level: str = "INFO"

    # GitHub API
    github_api_base: str = "https://api.github.com"
    github_graphql_url: str = "https://api.github.com/graphql"
    github_token: SecretStr | None = None
    github_timeout_seconds: float = 30.0
    github_max_retries: int = Field(default=3, ge=0)
    github_max_repo_pages: int = Field(default=10, ge=1)

    # Repository analysis pacing
    max_repositories: int = Field(default=50, ge=1)
    repo_batch_size: int = Field(default=5, ge=1)
    repo_batch_delay_seconds: float = Field(default=0.1, ge=0.0)

    # Yearly breakdown
    reference_year: int | None = None
    year_window: int = Field(default=4, ge=1)

    # Prometheus
    metrics_enabled: bool = True

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        return v.lower()

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
