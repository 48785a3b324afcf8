# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the LMS core.
Settings are loaded from environment variables with sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational database configuration.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        url_override: Full connection URL; takes precedence over components.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
        echo: Log emitted SQL statements.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "lms"
    password: SecretStr = SecretStr("lms_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "lms"
    url_override: str | None = Field(default=None, validation_alias="DATABASE_URL")
    pool_size: int = 10
    max_overflow: int = 20
    echo: bool = False

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        if self.url_override:
            return self.url_override
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class GraduationSettings(BaseSettings):
    """Graduation and certificate configuration.

    Attributes:
        certificate_prefix: Leading token of every certificate number.
        certificate_digits: Zero-padding width of the per-batch sequence.
        cgpa_scale: Upper bound of the CGPA scale.
    """

    model_config = SettingsConfigDict(
        env_prefix="GRADUATION_",
        extra="ignore",
    )

    certificate_prefix: str = "BATCH"
    certificate_digits: int = Field(default=4, ge=1, le=10)
    cgpa_scale: float = Field(default=10.0, gt=0)


class CORSSettings(BaseSettings):
    """CORS configuration.

    Attributes:
        origins: Allowed origins.
        allow_credentials: Whether to allow credentials.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
    )

    origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    allow_credentials: bool = True


class APISettings(BaseSettings):
    """API server settings.

    Attributes:
        host: Bind host.
        port: Bind port.
        title: OpenAPI title.
        version: Reported API version.
        actor_header: Header carrying the calling user's id.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 8000
    title: str = "LMS Core API"
    version: str = "0.1.0"
    actor_header: str = "X-Actor-Id"


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        db: Database settings.
        graduation: Graduation and certificate settings.
        cors: CORS settings.
        api: API server settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    graduation: GraduationSettings = Field(default_factory=GraduationSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production":
            if self.db.password.get_secret_value() == "lms_password" and not self.db.url_override:
                raise ValueError(
                    "Database password must be changed from default in production. "
                    "Set DB_PASSWORD or DATABASE_URL environment variable."
                )
            if self.debug:
                raise ValueError("DEBUG must be disabled in production.")
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
