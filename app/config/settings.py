"""
==============================================================================
Application Settings Module
==============================================================================

Configuration management using Pydantic Settings.

This module implements the Singleton pattern to ensure a single global
configuration instance throughout the application lifecycle.

Features:
---------
- Environment variable loading with type validation
- .env file support for local development
- Computed properties for derived values
- Cached singleton via lru_cache

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
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Module logger
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Display name for the application
        debug: Enable debug mode for verbose logging
        host: Server bind address
        port: Server port number
        app_version: Version string shown on the settings screen
        source_code_url: Link shown on the settings screen
        camera_index: Default OpenCV camera device index
        camera_frame_width: Requested capture width (0 = device default)
        camera_frame_height: Requested capture height (0 = device default)
        scan_timeout_seconds: Camera scan session timeout
        max_frame_bytes: Largest decoded frame payload accepted over WebSocket
        decode_also_inverted: Retry decoding on the inverted luma plane
        default_auto_open_links: Initial "Automatically open links" toggle
        default_dark_mode: Initial "Dark mode" toggle
        default_vibrate_on_scan: Initial "Vibrate on scan" toggle
        cors_origins: Allowed CORS origins (JSON array string)

    Example:
        >>> settings = Settings()
        >>> print(settings.app_name)
        'OpenScan'
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
        default="OpenScan",
        description="Display name for the application"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode for verbose logging"
    )

    app_version: str = Field(
        default="v1.0.0",
        description="Version string shown on the settings screen"
    )

    source_code_url: str = Field(
        default="https://github.com/szymon-tomaszewski/OpenScan-Offline-QR",
        description="Source code link shown on the settings screen"
    )

    # =========================================================================
    # SERVER SETTINGS
    # =========================================================================
    host: str = Field(
        default="127.0.0.1",
        description="Server bind address"
    )

    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Server port number"
    )

    # =========================================================================
    # CAMERA & SCANNER SETTINGS
    # =========================================================================
    camera_index: int = Field(
        default=0,
        ge=0,
        description="Default OpenCV camera device index"
    )

    camera_frame_width: int = Field(
        default=0,
        ge=0,
        description="Requested capture width, 0 for device default"
    )

    camera_frame_height: int = Field(
        default=0,
        ge=0,
        description="Requested capture height, 0 for device default"
    )

    scan_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="Camera scan session timeout in seconds"
    )

    max_frame_bytes: int = Field(
        default=8 * 1024 * 1024,
        ge=1024,
        description="Largest frame payload accepted over WebSocket"
    )

    decode_also_inverted: bool = Field(
        default=False,
        description="Retry decoding on the inverted luma plane"
    )

    # =========================================================================
    # SETTINGS SCREEN DEFAULTS
    # =========================================================================
    default_auto_open_links: bool = Field(default=False)
    default_dark_mode: bool = Field(default=True)
    default_vibrate_on_scan: bool = Field(default=True)

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
    @field_validator("app_version")
    @classmethod
    def validate_app_version(cls, value: str) -> str:
        """
        Normalize the version label to a leading 'v' (e.g. '1.0.0' -> 'v1.0.0').
        """
        normalized = value.strip()
        if not normalized:
            raise ValueError("app_version cannot be empty")
        if not normalized.lower().startswith("v"):
            normalized = f"v{normalized}"
        return "v" + normalized[1:]

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================
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

    def __repr__(self) -> str:
        return (
            f"Settings(app_name={self.app_name!r}, "
            f"debug={self.debug}, "
            f"camera_index={self.camera_index})"
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
    """
    settings = Settings()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
