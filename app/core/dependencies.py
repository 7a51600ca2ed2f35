"""
==============================================================================
FastAPI Dependencies Module
==============================================================================

Dependency injection for the application-wide service instances.

The app models a single device: one navigation back stack, one set of
settings toggles and one camera scan service per process.

Dependency Hierarchy:
--------------------
                    ┌──────────────────┐
                    │  get_settings()  │
                    └────────┬─────────┘
             ┌───────────────┼────────────────┐
    ┌────────▼───────┐ ┌─────▼──────────┐     │
    │ get_navigator  │ │get_preferences │     │
    └────────┬───────┘ └─────┬──────────┘     │
             └───────┬───────┘                │
            ┌────────▼─────────┐              │
            │ get_scan_service │──────────────┘
            └────────┬─────────┘
            ┌────────▼──────────────┐
            │ get_screen_catalog    │
            └───────────────────────┘

Usage Examples:
--------------
    @router.get("/settings")
    async def read_settings(prefs: PreferencesService = Depends(get_preferences_service)):
        return prefs.get()

==============================================================================
"""

from __future__ import annotations

import logging
from functools import lru_cache

from app.services import Navigator, PreferencesService, ScanService, ScreenCatalog


# Module logger
logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_navigator() -> Navigator:
    """Process-wide navigation back stack."""
    return Navigator()


@lru_cache(maxsize=1)
def get_preferences_service() -> PreferencesService:
    """Process-wide settings toggles."""
    return PreferencesService()


@lru_cache(maxsize=1)
def get_scan_service() -> ScanService:
    """Process-wide scan service bound to the navigator and preferences."""
    return ScanService(get_navigator(), get_preferences_service())


def get_screen_catalog() -> ScreenCatalog:
    """Screen descriptors reflecting the current camera state."""
    scan_service = get_scan_service()
    return ScreenCatalog(camera_active=lambda: scan_service.camera_active)


def reset_dependencies() -> None:
    """Drop every cached instance (tests and shutdown)."""
    get_navigator.cache_clear()
    get_preferences_service.cache_clear()
    get_scan_service.cache_clear()
    logger.debug("Dependency singletons cleared")
