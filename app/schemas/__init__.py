"""
==============================================================================
Schemas Package - Pydantic Models
==============================================================================

Request and response schemas using Pydantic for validation.

This package provides:
- Preferences: Settings screen toggles
- Navigation: Navigation state and screen descriptors
- Scan: Camera scan results and WebSocket frame messages

==============================================================================
"""

from .preferences import AboutInfo, Preferences, PreferencesResponse, PreferencesUpdate
from .navigation import NavigationResponse, ScreenAction, ScreenDescriptor
from .scan import (
    CameraScanRequest,
    FrameMessage,
    InitMessage,
    PlanePayload,
    ScanResultResponse,
)

__all__ = [
    # Preferences
    "AboutInfo",
    "Preferences",
    "PreferencesResponse",
    "PreferencesUpdate",
    # Navigation
    "NavigationResponse",
    "ScreenAction",
    "ScreenDescriptor",
    # Scan
    "CameraScanRequest",
    "FrameMessage",
    "InitMessage",
    "PlanePayload",
    "ScanResultResponse",
]
