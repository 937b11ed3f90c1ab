"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports two modes (production is the default):
    - DEVELOPMENT: Uses the mock maps provider (explicit opt-in, no API key needed)
    - PRODUCTION/STAGING: Proxies to the HERE Maps APIs

The ENV_MODE variable controls which maps provider is instantiated, enabling
local work on the map components without burning provider quota.

The HERE API key is the only secret this service holds. It is read once at
process start (get_settings is cached) and must never leave the server.

Usage:
    from foodmaps.core.config import get_settings, get_api_key

    settings = get_settings()
    if get_api_key() is None:
        # every key-dependent operation fails with ConfigurationError
        ...
"""

import logging
import sys
from enum import Enum
from typing import Optional
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local work with the mock maps provider
        PRODUCTION: Live environment proxying to HERE Maps
        STAGING: Pre-production, HERE Maps with a test key
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    The provider key (HERE_API_KEY) should NEVER be committed to version control.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        here_api_key: HERE Maps API key (server-side only)
        maps_request_timeout: Seconds before an outbound provider call is abandoned
        mock_failure_rate: Simulated failure probability in development mode

        default_zoom: Zoom used when a client omits it
        default_static_width: Static map width in pixels
        default_static_height: Static map height in pixels
        image_cache_max_age: Cache-Control max-age for proxied images
        placeholder_path: Where the static map endpoint redirects on failure
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
        default=EnvironmentMode.PRODUCTION,
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
        default="Food Discovery Maps Proxy",
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
        default=8001,
        description="API server port"
    )
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )

    # ==========================================================================
    # HERE MAPS
    # ==========================================================================

    here_api_key: Optional[str] = Field(
        default=None,
        description="HERE Maps API key"
    )
    maps_request_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout in seconds for a single call to the maps provider"
    )
    mock_failure_rate: float = Field(
        default=0.0,
        ge=0,
        le=1,
        description="Simulated failure probability for the development mock provider"
    )

    # ==========================================================================
    # MAP DEFAULTS
    # ==========================================================================

    default_zoom: int = Field(
        default=14,
        description="Zoom level used when the client does not send one"
    )
    default_static_width: int = Field(
        default=600,
        description="Static map width in pixels"
    )
    default_static_height: int = Field(
        default=400,
        description="Static map height in pixels"
    )
    image_cache_max_age: int = Field(
        default=86400,
        description="Cache lifetime for map images, in seconds (24 hours)"
    )
    placeholder_path: str = Field(
        default="/placeholder.svg",
        description="Placeholder image the static map endpoint redirects to"
    )

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

    @field_validator("here_api_key", mode="before")
    @classmethod
    def blank_key_is_absent(cls, v: Optional[str]) -> Optional[str]:
        """An empty HERE_API_KEY is treated the same as an unset one."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env_mode == EnvironmentMode.PRODUCTION

    @property
    def is_staging(self) -> bool:
        """Check if running in staging mode."""
        return self.env_mode == EnvironmentMode.STAGING

    @property
    def use_real_services(self) -> bool:
        """Check if the real maps provider should be used."""
        return self.env_mode in (EnvironmentMode.PRODUCTION, EnvironmentMode.STAGING)

    @property
    def cors_origins_list(self) -> list[str]:
        """Get allowed CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def image_cache_control(self) -> str:
        """Cache-Control header value attached to every proxied image."""
        return f"public, max-age={self.image_cache_max_age}"

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

        if self.use_real_services:
            if not self.here_api_key:
                missing.append("HERE_API_KEY")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache so the environment (and with it the provider key)
    is read exactly once per process.

    Returns:
        Settings: Configured application settings
    """
    return Settings()


def get_api_key() -> Optional[str]:
    """
    Key Store accessor.

    Returns:
        The HERE Maps API key, or None when it is not configured
    """
    return get_settings().here_api_key


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured application logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # httpx logs full request URLs at INFO, and those carry the apiKey
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return logging.getLogger("foodmaps")
