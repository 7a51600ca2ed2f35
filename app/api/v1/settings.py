"""
==============================================================================
Settings Screen Endpoints
==============================================================================

Read and toggle the settings screen preferences.

==============================================================================
"""

from fastapi import APIRouter, Depends

from app.core.dependencies import get_preferences_service
from app.schemas.preferences import Preferences, PreferencesResponse, PreferencesUpdate
from app.services import PreferencesService


router = APIRouter(prefix="/settings", tags=["Settings"])


class SettingsController:
    """Controller for settings screen operations."""

    def __init__(self, service: PreferencesService):
        self._service = service

    def _response(self, preferences: Preferences) -> PreferencesResponse:
        return PreferencesResponse(
            preferences=preferences,
            theme=preferences.theme,
            about=self._service.about()
        )

    def get(self) -> PreferencesResponse:
        return self._response(self._service.get())

    def update(self, changes: PreferencesUpdate) -> PreferencesResponse:
        return self._response(self._service.update(changes))

    def reset(self) -> PreferencesResponse:
        return self._response(self._service.reset())


@router.get("", response_model=PreferencesResponse)
async def get_settings_screen(service: PreferencesService = Depends(get_preferences_service)):
    """Current toggles, theme and about information."""
    return SettingsController(service).get()


@router.patch("", response_model=PreferencesResponse)
async def update_settings(
    changes: PreferencesUpdate,
    service: PreferencesService = Depends(get_preferences_service)
):
    """Toggle one or more settings."""
    return SettingsController(service).update(changes)


@router.post("/reset", response_model=PreferencesResponse)
async def reset_settings(service: PreferencesService = Depends(get_preferences_service)):
    """Restore the configured defaults."""
    return SettingsController(service).reset()
