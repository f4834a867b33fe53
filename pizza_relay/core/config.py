"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports two kinds of messaging backend:
    - DEVELOPMENT: Uses the mock messaging session (no phone or browser needed)
    - STAGING / PRODUCTION: Uses the real WhatsApp Web session

The ENV_MODE variable controls which messaging session is instantiated,
enabling local testing of the order flow without a linked WhatsApp account.

Usage:
    from pizza_relay.core.config import get_settings

    settings = get_settings()
    if settings.is_development:
        # Mock session
    else:
        # WhatsApp session
"""

import logging
import sys
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing with the mock messaging session
        PRODUCTION: Live environment linked to the store's WhatsApp account
        STAGING: Pre-production with a real (test) WhatsApp account
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details
        api_host: Host to bind the API server
        port: Port for the API server (PORT)
        cors_origin: Single allowed origin, or "*" for any
        client_id: Fixed identifier the messaging session is stored under
        session_directory: Where session credentials are persisted
        currency_symbol: Symbol prefixed to prices in order messages
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
        default="Pizza Order Relay",
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
    port: int = Field(
        default=3000,
        description="API server port"
    )
    cors_origin: str = Field(
        default="*",
        description="Allowed cross-origin caller (single origin or '*')"
    )
    static_directory: Optional[str] = Field(
        default=None,
        description="Directory with the operator/order page (defaults to the bundled one)"
    )

    # ==========================================================================
    # WHATSAPP SESSION
    # ==========================================================================

    client_id: str = Field(
        default="pizza-relay",
        description="Fixed client identifier the session credentials are keyed by"
    )
    session_directory: str = Field(
        default=".wa_session",
        description="Directory where session credentials are persisted"
    )

    # ==========================================================================
    # MOCK SESSION
    # ==========================================================================

    mock_scan_delay: float = Field(
        default=3.0,
        description="Seconds the mock session waits between QR and ready"
    )
    mock_failure_rate: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Probability a mock send fails"
    )

    # ==========================================================================
    # BUSINESS CONFIGURATION
    # ==========================================================================

    currency_symbol: str = Field(
        default="₹",
        description="Currency symbol used in order messages"
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

    @field_validator("cors_origin")
    @classmethod
    def validate_cors_origin(cls, v: str) -> str:
        """Origins are compared without a trailing slash by browsers."""
        v = v.strip()
        return v if v == "*" else v.rstrip("/")

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def use_real_services(self) -> bool:
        """Check if the real WhatsApp session should be used."""
        return self.env_mode in (EnvironmentMode.PRODUCTION, EnvironmentMode.STAGING)

    @property
    def cors_allows_any_origin(self) -> bool:
        return self.cors_origin == "*"

    @property
    def session_path(self) -> Path:
        """SQLite file holding the persisted session for ``client_id``."""
        return Path(self.session_directory) / f"{self.client_id}.sqlite3"

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_production_config(self) -> list[str]:
        """
        Check settings that are risky outside development.

        Returns:
            List of warnings (empty if everything looks deliberate)
        """
        warnings = []

        if self.use_real_services:
            if self.cors_allows_any_origin:
                warnings.append("CORS_ORIGIN is '*' (any site can submit orders)")
            if self.debug:
                warnings.append("DEBUG is enabled (error details are returned to callers)")

        return warnings


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded only once per process.

    Returns:
        Settings: Configured application settings
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured package logger
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

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)
    logging.getLogger("whatsmeow").setLevel(logging.WARNING)

    return logging.getLogger("pizza_relay")
