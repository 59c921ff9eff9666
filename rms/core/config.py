"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports three modes:
    - DEVELOPMENT: Local work; an ephemeral signing secret is generated
      when none is configured
    - STAGING / PRODUCTION: Every secret must come from the environment

Usage:
    from rms.core.config import get_settings

    settings = get_settings()
    if settings.is_development:
        ...

Version: 1.0.0
"""

import logging
import secrets
import sys
from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field, PrivateAttr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing, tolerant of missing secrets
        PRODUCTION: Live environment, all secrets required
        STAGING: Pre-production, same requirements as production
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


# Requests with an Origin header are only allowed from local pages:
# anything mentioning localhost / 127.0.0.1, or a page opened from disk
# (browsers send "file://..." or the opaque "null" origin for those).
DEFAULT_CORS_ORIGIN_REGEX = r".*(localhost|127\.0\.0\.1).*|file://.*|null"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Secrets (JWT_SECRET, database credentials) have no default and should
    NEVER be committed to version control.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # API Configuration
        api_host: Host to bind the API server
        api_port: Port for the API server

        # Database
        database_url: SQLAlchemy async connection string
        database_echo: Log every SQL statement

        # Authentication
        jwt_secret: HMAC key used to sign bearer tokens
        jwt_algorithm: JWT signing algorithm
        access_token_expire_hours: Token lifetime
        bcrypt_rounds: bcrypt cost factor

        # HTTP
        cors_origin_regex: Origins allowed to make browser requests
        avatar_base_url: Generator used for restaurant logos
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Restaurant Management API",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=5500,
        description="API server port"
    )

    # ==========================================================================
    # DATABASE
    # ==========================================================================

    database_url: str = Field(
        default="postgresql+psycopg://localhost:5432/rms",
        description="SQLAlchemy async database URL"
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL statements (never in production)"
    )

    # ==========================================================================
    # AUTHENTICATION
    # ==========================================================================

    jwt_secret: Optional[str] = Field(
        default=None,
        description="Secret used to sign access tokens"
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm"
    )
    access_token_expire_hours: int = Field(
        default=24,
        ge=1,
        description="Access token lifetime in hours"
    )
    bcrypt_rounds: int = Field(
        default=10,
        ge=4,
        le=31,
        description="bcrypt cost factor"
    )

    # ==========================================================================
    # HTTP
    # ==========================================================================

    cors_origin_regex: str = Field(
        default=DEFAULT_CORS_ORIGIN_REGEX,
        description="Regular expression matched against the Origin header"
    )
    avatar_base_url: str = Field(
        default="https://ui-avatars.com/api/",
        description="Avatar generator used for restaurant logos"
    )

    _generated_secret: bool = PrivateAttr(default=False)

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    def model_post_init(self, __context) -> None:
        """Generate a per-process signing secret in development only."""
        if not self.jwt_secret and self.is_development:
            self.jwt_secret = secrets.token_urlsafe(48)
            self._generated_secret = True

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def jwt_secret_is_ephemeral(self) -> bool:
        """True when the signing secret was generated at startup."""
        return self._generated_secret

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_production_config(self) -> list[str]:
        """
        Validate that all required production settings are configured.

        Returns:
            List of missing configuration keys (empty if all present)
        """
        missing = []

        if not self.is_development:
            if not self.jwt_secret:
                missing.append("JWT_SECRET")
            if self.database_echo:
                missing.append("DATABASE_ECHO must be disabled")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache so the environment is read once and, in development,
    the generated signing secret stays stable for the process lifetime.

    Returns:
        Settings: Configured application settings
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(settings: Optional[Settings] = None, level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        settings: Settings to read the debug flag from (defaults to cached settings)
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured application logger
    """
    settings = settings or get_settings()

    # Set level based on debug mode
    if settings.debug:
        level = logging.DEBUG

    # Configure format
    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    # Configure root logger
    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)

    return logging.getLogger("rms")
