"""
==============================================================================
Services Package - Business Logic Layer
==============================================================================

Service classes sitting between the API layer and the scanner package.

This package provides:
- Navigator / ScreenCatalog: Navigation back stack and screen descriptors
- PreferencesService: Settings screen toggles (in memory)
- ScanService: Camera scanning sessions and scan results

Architecture Pattern: Service Layer
----------------------------------

    ┌─────────────────┐
    │ API / WebSocket │
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │    Service      │  ← Sessions, navigation, preferences
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │    Scanner      │  ← Camera, pipeline, decoder
    └─────────────────┘

==============================================================================
"""

from .navigation_service import Navigator, Route, ScreenCatalog
from .preferences_service import PreferencesService
from .scan_service import ScanService

__all__ = [
    "Navigator",
    "Route",
    "ScreenCatalog",
    "PreferencesService",
    "ScanService",
]
