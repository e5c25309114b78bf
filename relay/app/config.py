"""
Configuration module for the ThingsBoard relay.

This module uses Pydantic Settings to load environment variables for the
upstream ThingsBoard credentials, logging and the local server binding.

Environment variables are loaded from .env file or system environment.
The upstream credentials are optional at load time: a missing value is
reported per request, before any network call is made.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

REQUIRED_UPSTREAM_VARS = ("TB_HOST", "TB_USER", "TB_PASS")


@dataclass(frozen=True)
class UpstreamCredentials:
    """Validated ThingsBoard connection values for a single relay call."""

    host: str
    username: str
    password: str

    def url_for(self, path: str) -> str:
        return f"{self.host}{path}"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    # =========================================================================
    # Upstream ThingsBoard Configuration
    # =========================================================================

    TB_HOST: Optional[str] = Field(
        None,
        description="ThingsBoard base URL (e.g., https://thingsboard.example.com)",
    )

    TB_USER: Optional[str] = Field(
        None,
        description="ThingsBoard username used for the login call",
    )

    TB_PASS: Optional[str] = Field(
        None,
        description="ThingsBoard password used for the login call",
    )

    # =========================================================================
    # Relay Server Configuration
    # =========================================================================

    RELAY_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the relay server",
    )

    RELAY_PORT: int = Field(
        default=8080,
        description="Port to bind the relay server",
        ge=1,
        le=65535,
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate that LOG_LEVEL names a standard logging level.

        Raises:
            ValueError: If the level is unknown
        """
        level = v.strip().upper()
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

        if level not in allowed_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of {allowed_levels}, got: {v}"
            )

        return level

    @property
    def missing_upstream_vars(self) -> List[str]:
        """Names of required upstream variables that are unset or empty."""
        return [name for name in REQUIRED_UPSTREAM_VARS if not getattr(self, name)]

    def upstream_credentials(self) -> UpstreamCredentials:
        """
        Build the credentials used to reach ThingsBoard.

        Returns:
            UpstreamCredentials with the host stripped of any trailing slash.

        Raises:
            ConfigurationError: If TB_HOST, TB_USER or TB_PASS is missing
        """
        missing = self.missing_upstream_vars
        if missing:
            logger.error(
                "Relay configuration incomplete",
                extra={"missing": missing},
            )
            raise ConfigurationError(
                "Server configuration missing. Set "
                f"{', '.join(REQUIRED_UPSTREAM_VARS)} in environment variables."
            )

        return UpstreamCredentials(
            host=self.TB_HOST.rstrip("/"),
            username=self.TB_USER,
            password=self.TB_PASS,
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    Used as a FastAPI dependency so tests can substitute their own values
    through ``app.dependency_overrides``.
    """
    return Settings()
