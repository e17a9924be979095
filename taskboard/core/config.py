"""Configuration management for taskboard."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Record store
    database_path: str = Field(default="taskboard.db", description="SQLite file backing the record store")

    # Session tokens
    secret_key: str | None = Field(default=None, description="Signing key for session tokens")
    token_expire_seconds: int = Field(
        default=7 * 24 * 60 * 60, gt=0, description="Session token lifetime in seconds (default 7 days)"
    )

    # Password hashing
    bcrypt_rounds: int = Field(default=10, ge=4, le=31, description="bcrypt cost factor")

    # Runtime
    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Deployment environment"
    )
    api_prefix: str = Field(default="", description="Prefix for all API routes (e.g. '/api')")
    frontend_url: str = Field(default="http://localhost:5173", description="Allowed CORS origin")
    host: str = Field(default="127.0.0.1", description="Bind address for the HTTP server")
    port: int = Field(default=5000, description="Bind port for the HTTP server")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    @property
    def is_production(self) -> bool:
        """Whether the app runs in production mode."""
        return self.environment == "production"

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value


# Application Constants
class Constants:
    """Application-wide constants."""

    # Pagination
    DEFAULT_PAGE: int = 1
    DEFAULT_PAGE_LIMIT: int = 10
    MAX_PAGE_LIMIT: int = 100
    # Largest page whose row offset still fits a signed 64-bit SQLite integer
    MAX_PAGE: int = (2**63 - 1) // MAX_PAGE_LIMIT

    # Task fields
    TITLE_MAX_LENGTH: int = 200
    DESCRIPTION_MAX_LENGTH: int = 2000
    SEARCH_MAX_LENGTH: int = 100

    # User fields
    NAME_MIN_LENGTH: int = 2
    NAME_MAX_LENGTH: int = 100
    PASSWORD_MIN_LENGTH: int = 6

    # bcrypt only reads the first 72 bytes of a password; longer ones are rejected
    BCRYPT_MAX_PASSWORD_BYTES: int = 72

    # Token signing
    TOKEN_SALT: str = "session-token"


def get_settings() -> Settings:
    """Build settings from the environment."""
    return Settings()


constants = Constants()
