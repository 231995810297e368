"""
Centralized Configuration for the CodeCrew API.

All environment variables are managed here using Pydantic Settings.

Usage:
    from codecrew.config import settings

    db_url = settings.database_url
    secret = settings.jwt_secret
"""

import os
from typing import Optional, Literal
from pydantic import Field, field_validator, ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    See .env.example for all available options.
    """

    # =============================================================================
    # Application Environment
    # =============================================================================

    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
        validation_alias="CODECREW_ENVIRONMENT"
    )

    testing: bool = Field(
        default=False,
        description="Enable testing mode (disables rate limiting)",
        validation_alias="TESTING"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        validation_alias="CODECREW_LOG_LEVEL"
    )

    frontend_url: str = Field(
        default="http://localhost:5173",
        description="Frontend origin (CORS and OAuth redirects)",
        validation_alias="FRONTEND_URL"
    )

    # =============================================================================
    # Database
    # =============================================================================

    database_url: str = Field(
        default="sqlite:///./codecrew.db",
        description="Database connection URL (PostgreSQL or SQLite)",
        validation_alias="DATABASE_URL"
    )

    # =============================================================================
    # Authentication & Security
    # =============================================================================

    jwt_secret: str = Field(
        ...,
        description="Secret for signing access tokens (generate with: openssl rand -hex 32)",
        validation_alias="JWT_SECRET"
    )

    jwt_refresh_secret: str = Field(
        ...,
        description="Secret for signing refresh tokens (must differ from JWT_SECRET)",
        validation_alias="JWT_REFRESH_SECRET"
    )

    access_token_expire_minutes: int = Field(
        default=60,
        description="Access token lifetime in minutes",
        validation_alias="JWT_EXPIRES_MINUTES"
    )

    refresh_token_expire_days: int = Field(
        default=7,
        description="Refresh token lifetime in days",
        validation_alias="JWT_REFRESH_EXPIRES_DAYS"
    )

    # =============================================================================
    # Redis (OAuth state storage)
    # =============================================================================

    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
        validation_alias="REDIS_URL"
    )

    # =============================================================================
    # Google OAuth
    # =============================================================================

    google_client_id: Optional[str] = Field(
        default=None,
        description="Google OAuth client ID",
        validation_alias="GOOGLE_CLIENT_ID"
    )

    google_client_secret: Optional[str] = Field(
        default=None,
        description="Google OAuth client secret",
        validation_alias="GOOGLE_CLIENT_SECRET"
    )

    google_callback_url: str = Field(
        default="http://localhost:5000/api/auth/google/callback",
        description="Google OAuth redirect URI",
        validation_alias="GOOGLE_CALLBACK_URL"
    )

    # =============================================================================
    # Computed Properties
    # =============================================================================

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def google_oauth_configured(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =============================================================================
    # Field Validators
    # =============================================================================

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v):
        """Convert postgres:// to postgresql:// for SQLAlchemy compatibility."""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is uppercase and valid."""
        v = v.upper()
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        """Ensure environment is lowercase."""
        return v.lower() if isinstance(v, str) else v


# =============================================================================
# Global Settings Instance
# =============================================================================

try:
    settings = Settings()
except Exception as e:
    if os.getenv("TESTING") == "true":
        os.environ.setdefault("JWT_SECRET", "test-jwt-secret-for-testing-only")
        os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret-for-testing-only")
        settings = Settings()
    else:
        raise RuntimeError(
            f"Failed to load application settings: {e}\n\n"
            "Required environment variables:\n"
            "- JWT_SECRET (generate with: openssl rand -hex 32)\n"
            "- JWT_REFRESH_SECRET (generate with: openssl rand -hex 32)\n\n"
            "See .env.example for all available configuration options."
        ) from e


def get_settings() -> Settings:
    """
    Get settings instance (for dependency injection).

    Usage:
        @router.get("/endpoint")
        def endpoint(settings: Settings = Depends(get_settings)):
            ...
    """
    return settings


__all__ = ["settings", "get_settings", "Settings"]
