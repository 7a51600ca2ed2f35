"""
==============================================================================
Preferences Service Module
==============================================================================

In-memory state of the settings screen toggles.

Toggles:
--------
- auto_open_links: Scan results that are web links carry open_url
- dark_mode: Selects the dark or light theme
- vibrate_on_scan: Scan results carry vibrate=true

Values live for the lifetime of the process only. Initial values come
from Settings (default_* fields).

==============================================================================
"""

from __future__ import annotations

import logging
import threading

from app.config import get_settings
from app.schemas.preferences import AboutInfo, Preferences, PreferencesUpdate


# Module logger
logger = logging.getLogger(__name__)


class PreferencesService:
    """
    Holder of the settings screen toggles.

    Example:
        >>> service = PreferencesService()
        >>> service.update(PreferencesUpdate(dark_mode=False)).theme
        'light'
    """

    def __init__(self) -> None:
        self._settings = get_settings()
        self._lock = threading.Lock()
        self._preferences = self._defaults()

    def _defaults(self) -> Preferences:
        return Preferences(
            auto_open_links=self._settings.default_auto_open_links,
            dark_mode=self._settings.default_dark_mode,
            vibrate_on_scan=self._settings.default_vibrate_on_scan,
        )

    def get(self) -> Preferences:
        with self._lock:
            return self._preferences.model_copy()

    def update(self, changes: PreferencesUpdate) -> Preferences:
        """Apply the provided toggles, leaving the others untouched."""
        values = changes.model_dump(exclude_none=True)
        with self._lock:
            self._preferences = self._preferences.model_copy(update=values)
            current = self._preferences.model_copy()
        logger.info(f"⚙️ Preferences updated: {values}")
        return current

    def reset(self) -> Preferences:
        with self._lock:
            self._preferences = self._defaults()
            return self._preferences.model_copy()

    def about(self) -> AboutInfo:
        return AboutInfo(
            version=self._settings.app_version,
            version_label=f"Ver: {self._settings.app_version}",
            source_code_url=self._settings.source_code_url,
        )
