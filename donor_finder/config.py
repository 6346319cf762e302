"""
Configuration module for the donor finder service.

This module provides centralized configuration management using Pydantic settings.
All configuration values can be overridden via environment variables or .env file.
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings for the donor finder service.

    Attributes:
        USERS_API_URL: Endpoint returning the list of users to derive donors from
        APP_NAME: Display name for the application
        DEBUG: Enable debug mode (shows API docs)
        HOST: Server bind address
        PORT: Server port number
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        LOG_JSON: Emit JSON structured logs instead of human-readable lines
        REQUEST_TIMEOUT: Timeout for the users API request in seconds
        MAX_SESSIONS: Upper bound on in-memory visitor sessions
        SESSION_COOKIE_NAME: Cookie carrying the visitor session id
    """

    USERS_API_URL: str = Field(
        default="https://jsonplaceholder.typicode.com/users",
        description="Endpoint returning the list of users",
    )

    APP_NAME: str = Field(
        default="Community Blood Donor Finder",
        description="Display name for the application",
    )
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    HOST: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    PORT: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Server port number",
    )

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    LOG_JSON: bool = Field(
        default=False,
        description="Use JSON structured logging",
    )

    REQUEST_TIMEOUT: float = Field(
        default=10.0,
        gt=0,
        le=30.0,
        description="Timeout for the users API request in seconds",
    )

    MAX_SESSIONS: int = Field(
        default=1000,
        ge=1,
        le=100000,
        description="Maximum number of visitor sessions kept in memory",
    )
    SESSION_COOKIE_NAME: str = Field(
        default="donor_session",
        description="Cookie name carrying the visitor session id",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("USERS_API_URL")
    @classmethod
    def validate_url(cls, value: str) -> str:
        """
        Validate that the users API URL is properly formatted.

        Args:
            value: The URL to validate

        Returns:
            The validated URL without trailing slash

        Raises:
            ValueError: If URL is invalid
        """
        if not value:
            raise ValueError("Users API URL cannot be empty")

        value = value.rstrip("/")

        if not (value.startswith("http://") or value.startswith("https://")):
            raise ValueError(
                f"Users API URL must start with http:// or https://, got: {value}"
            )

        return value


# Global settings instance
settings = Settings()
