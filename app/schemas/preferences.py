"""
==============================================================================
Preferences Schemas Module
==============================================================================

Request and response schemas for the settings screen.

==============================================================================
"""

from typing import Optional
from pydantic import BaseModel, Field, model_validator


class Preferences(BaseModel):
    """Settings screen toggles."""
    auto_open_links: bool = Field(default=False)
    dark_mode: bool = Field(default=True)
    vibrate_on_scan: bool = Field(default=True)

    @property
    def theme(self) -> str:
        return "dark" if self.dark_mode else "light"


class PreferencesUpdate(BaseModel):
    """Partial update of the settings toggles."""
    auto_open_links: Optional[bool] = Field(default=None)
    dark_mode: Optional[bool] = Field(default=None)
    vibrate_on_scan: Optional[bool] = Field(default=None)

    @model_validator(mode="after")
    def validate_not_empty(self):
        if not self.model_dump(exclude_none=True):
            raise ValueError("At least one setting must be provided")
        return self


class AboutInfo(BaseModel):
    """Static information shown at the bottom of the settings screen."""
    version: str
    version_label: str
    source_code_url: str


class PreferencesResponse(BaseModel):
    """Settings screen state."""
    success: bool = Field(default=True)
    preferences: Preferences
    theme: str
    about: AboutInfo
