"""
==============================================================================
Application Settings Module
==============================================================================

Configuration management for the service package engine using Pydantic
Settings.

This module implements the Singleton pattern to ensure a single global
configuration instance throughout the application lifecycle.

Features:
---------
- Environment variable loading with type validation
- .env file support for local development
- Package pricing policy (discount ceiling, minimum bundle size)
- Operational timezone for weekday and daily-quota bucketing

Configuration Priority (highest to lowest):
------------------------------------------
1. Environment variables
2. .env file
3. Default values

==============================================================================
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Module logger
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Display name for the application
        app_env: Environment mode (development/staging/production)
        debug: Enable debug mode for verbose logging
        host: Server bind address
        port: Server port number
        database_url: SQLAlchemy database connection string
        database_pool_size: Pooled connections for server databases
        database_lock_timeout_seconds: SQLite wait for a contended write
            lock before failing
        operational_timezone: IANA zone used for booking instants and weekdays
        currency: ISO currency code stamped on packages and bookings
        max_discount_percentage: Ceiling on the discount a package may imply
        min_service_instances: Minimum total service quantity in a package
        default_service_duration_minutes: Duration assumed for bookings
            whose service cannot be resolved
        expiry_sweep_enabled: Enable the background expiry sweeper
        expiry_sweep_interval_minutes: Sweeper interval
        categories_file: Optional JSON file with the published category list
        cors_origins: Allowed CORS origins (JSON array string)

    Example:
        >>> settings = Settings()
        >>> settings.max_discount_percentage
        50
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================
    app_name: str = Field(
        default="Salon Package Engine",
        description="Display name for the application"
    )

    app_env: str = Field(
        default="development",
        description="Environment mode: development, staging, production"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode for verbose logging"
    )

    # =========================================================================
    # SERVER SETTINGS
    # =========================================================================
    host: str = Field(
        default="0.0.0.0",
        description="Server bind address"
    )

    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Server port number"
    )

    # =========================================================================
    # DATABASE SETTINGS
    # =========================================================================
    database_url: str = Field(
        default="sqlite:///./storage/db/salon_packages.db",
        description="SQLAlchemy database connection string"
    )

    database_pool_size: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Pooled connections for server databases"
    )

    database_lock_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="SQLite wait for a contended write lock before failing"
    )

    # =========================================================================
    # BOOKING CALENDAR SETTINGS
    # =========================================================================
    operational_timezone: str = Field(
        default="Asia/Kolkata",
        description="Timezone for booking instants, weekdays and daily quotas"
    )

    currency: str = Field(
        default="INR",
        min_length=3,
        max_length=3,
        description="Currency code for package and booking amounts"
    )

    default_service_duration_minutes: int = Field(
        default=30,
        ge=1,
        le=1440,
        description="Fallback duration for bookings without a resolvable service"
    )

    # =========================================================================
    # PACKAGE PRICING POLICY
    # =========================================================================
    max_discount_percentage: int = Field(
        default=50,
        ge=1,
        le=99,
        description="Maximum discount a package may offer over its parts"
    )

    min_service_instances: int = Field(
        default=2,
        ge=2,
        le=50,
        description="Minimum total service instances in a package"
    )

    # =========================================================================
    # EXPIRY SWEEPER SETTINGS
    # =========================================================================
    expiry_sweep_enabled: bool = Field(
        default=True,
        description="Enable automatic deactivation of expired packages"
    )

    expiry_sweep_interval_minutes: int = Field(
        default=1440,
        ge=1,
        le=10080,  # Max one week
        description="Expiry sweep interval in minutes"
    )

    # =========================================================================
    # FILE PATH SETTINGS
    # =========================================================================
    categories_file: Optional[str] = Field(
        default=None,
        description="Path to the published package category list (JSON array)"
    )

    # =========================================================================
    # CORS SETTINGS
    # =========================================================================
    cors_origins: str = Field(
        default='["*"]',
        description="Allowed CORS origins as JSON array string"
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, value: str) -> str:
        """
        Validate and normalize application environment.

        Unknown values fall back to 'development' with a warning.
        """
        valid_envs = {"development", "staging", "production"}
        normalized = value.lower().strip()

        if normalized not in valid_envs:
            logger.warning(
                f"Unknown environment '{value}', defaulting to 'development'"
            )
            return "development"

        return normalized

    @field_validator("operational_timezone")
    @classmethod
    def validate_operational_timezone(cls, value: str) -> str:
        """
        Validate the operational timezone is a known IANA zone.

        Raises:
            ValueError: If the zone cannot be loaded
        """
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {value}")
        return value

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, value: str) -> str:
        return value.upper()

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def timezone(self) -> ZoneInfo:
        """Get the operational timezone as a ZoneInfo."""
        return ZoneInfo(self.operational_timezone)

    @property
    def categories_path(self) -> Optional[Path]:
        """Get the categories file as Path object, if configured."""
        if not self.categories_file:
            return None
        return Path(self.categories_file)

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Parse CORS origins from JSON string to list.

        Returns:
            List of allowed origin strings
        """
        try:
            origins = json.loads(self.cors_origins)
            if isinstance(origins, list):
                return origins
            return ["*"]
        except json.JSONDecodeError:
            logger.warning(
                f"Invalid CORS origins JSON: {self.cors_origins}, "
                "defaulting to ['*']"
            )
            return ["*"]

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================
    def get_database_path(self) -> Optional[Path]:
        """
        Extract database file path for SQLite databases.

        Returns:
            Path to database file, or None for non-SQLite or in-memory databases
        """
        if self.database_url.startswith("sqlite:///"):
            db_path = self.database_url.replace("sqlite:///", "")
            if db_path.startswith("./"):
                db_path = db_path[2:]
            if not db_path or db_path == ":memory:":
                return None
            return Path(db_path)
        return None

    def ensure_directories(self) -> None:
        """Create the database directory (SQLite only)."""
        db_path = self.get_database_path()
        if db_path:
            db_path.parent.mkdir(parents=True, exist_ok=True)

        logger.debug("Required directories created/verified")

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Settings(app_name={self.app_name!r}, "
            f"app_env={self.app_env!r}, "
            f"timezone={self.operational_timezone!r}, "
            f"debug={self.debug})"
        )


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the global Settings instance (singleton pattern).

    Uses lru_cache to ensure only one Settings instance is created
    throughout the application lifecycle.

    Returns:
        Global Settings instance
    """
    settings = Settings()

    settings.ensure_directories()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
