"""
==============================================================================
Application Settings Module
==============================================================================

Configuration management for the FastPack scanner client using Pydantic
Settings.

A single cached Settings instance is shared by every service, controller and
the command line front end.

Features:
---------
- Environment variable loading with type validation
- .env file support for local development
- Computed properties for derived values
- Cached singleton access through get_settings()

Configuration Priority (highest to lowest):
------------------------------------------
1. Environment variables
2. .env file
3. Default values

Security Considerations:
-----------------------
- Never commit .env files to version control
- The credentials file holds a bearer token; keep it out of shared folders

==============================================================================
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Module logger
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Client settings loaded from environment variables.

    Attributes:
        app_name: Display name for the application
        app_env: Environment mode (development/staging/production)
        debug: Enable debug mode for verbose logging
        api_base_url: Base URL of the shipments/auth REST API
        request_timeout_seconds: Upper bound for every network call
        token_file: Where the bearer token is persisted between runs
        cloudinary_api_url: Cloudinary upload API root
        cloudinary_cloud_name: Cloudinary cloud that receives packing photos
        cloudinary_upload_preset: Unsigned upload preset name
        cloudinary_folder: Target folder for packing photos
        camera_index: Default OpenCV camera device index
        scanner_symbols: Barcode symbologies to recognize (JSON array string)

    Example:
        >>> settings = Settings()
        >>> print(settings.api_base_url)
        'http://127.0.0.1:3000/api'
        >>> print(settings.scanner_symbols_list)
        ['QRCODE', 'CODE128']
    """

    # =========================================================================
    # PYDANTIC SETTINGS CONFIGURATION
    # =========================================================================
    model_config = SettingsConfigDict(
        # Load from .env file if present
        env_file=".env",
        env_file_encoding="utf-8",
        # Environment variables are case-insensitive
        case_sensitive=False,
        # Ignore extra environment variables
        extra="ignore",
        # Validate default values
        validate_default=True,
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================
    app_name: str = Field(
        default="FastPack Scanner",
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
    # BACKEND API SETTINGS
    # =========================================================================
    api_base_url: str = Field(
        default="http://127.0.0.1:3000/api",
        description="Base URL of the shipments and auth REST API"
    )

    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Timeout applied to every network call"
    )

    token_file: str = Field(
        default="~/.fastpack/credentials.json",
        description="File holding the persisted bearer token"
    )

    # =========================================================================
    # PHOTO STORAGE SETTINGS
    # =========================================================================
    cloudinary_api_url: str = Field(
        default="https://api.cloudinary.com/v1_1",
        description="Cloudinary upload API root"
    )

    cloudinary_cloud_name: str = Field(
        default="fastpack",
        min_length=1,
        description="Cloudinary cloud name"
    )

    cloudinary_upload_preset: str = Field(
        default="FastPackApp",
        min_length=1,
        description="Unsigned upload preset"
    )

    cloudinary_folder: str = Field(
        default="packing",
        description="Folder that receives packed-item photos"
    )

    # =========================================================================
    # SCANNER SETTINGS
    # =========================================================================
    camera_index: int = Field(
        default=0,
        ge=0,
        le=16,
        description="Default camera device index"
    )

    scanner_symbols: str = Field(
        default='["QRCODE", "CODE128"]',
        description="Symbologies handed to the recognizer as JSON array string"
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

    @field_validator("api_base_url", "cloudinary_api_url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        """
        Validate that a URL is absolute http(s) and strip trailing slashes.

        Raises:
            ValueError: If the URL has no http/https scheme
        """
        value = value.strip()

        if not value.startswith(("http://", "https://")):
            raise ValueError(f"URL must start with http:// or https://: {value}")

        return value.rstrip("/")

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def token_path(self) -> Path:
        """Credentials file as an expanded Path."""
        return Path(self.token_file).expanduser()

    @property
    def cloudinary_upload_url(self) -> str:
        """Full image upload endpoint for the configured cloud."""
        return f"{self.cloudinary_api_url}/{self.cloudinary_cloud_name}/image/upload"

    @property
    def scanner_symbols_list(self) -> List[str]:
        """
        Parse scanner symbologies from JSON string to list.

        Returns:
            Upper-case symbology names, QR + CODE128 when unparseable
        """
        default = ["QRCODE", "CODE128"]
        try:
            symbols = json.loads(self.scanner_symbols)
            if isinstance(symbols, list) and symbols:
                return [str(s).upper() for s in symbols]
            return default
        except json.JSONDecodeError:
            logger.warning(
                f"Invalid scanner symbols JSON: {self.scanner_symbols}, "
                f"defaulting to {default}"
            )
            return default

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Settings(app_name={self.app_name!r}, "
            f"app_env={self.app_env!r}, "
            f"api_base_url={self.api_base_url!r}, "
            f"debug={self.debug})"
        )


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the global Settings instance (singleton pattern).

    Returns:
        Global Settings instance

    Example:
        >>> settings = get_settings()
        >>> print(settings.app_name)
        'FastPack Scanner'
    """
    settings = Settings()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
