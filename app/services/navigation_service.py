"""
==============================================================================
Navigation Service Module
==============================================================================

Thin navigation wrapper over the three application screens.

Routes:
-------
- main: Home screen with the scan button (start destination)
- scan: Camera view with the scanner overlay
- settings: Toggles, source code link and version

The back stack always keeps the start destination at the bottom.
Scan results arrive from worker threads, so every operation takes a lock.

==============================================================================
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import Callable, List, Optional

from app.config import get_settings
from app.core import exceptions
from app.schemas.navigation import ScreenAction, ScreenDescriptor


# Module logger
logger = logging.getLogger(__name__)


class Route(str, enum.Enum):
    """Navigation destinations."""

    MAIN = "main"
    SCAN = "scan"
    SETTINGS = "settings"

    @classmethod
    def parse(cls, value: str) -> "Route":
        """
        Raises:
            AppException: UNKNOWN_ROUTE if value is not a route
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise exceptions.unknown_route(value) from None


# Scanner overlay geometry (fraction of the shorter side, dim alpha, stroke)
OVERLAY_CUTOUT_RATIO = 0.6
OVERLAY_DIM_ALPHA = 0.5
OVERLAY_BORDER_WIDTH = 6


class Navigator:
    """
    Back-stack navigator.

    Example:
        >>> nav = Navigator()
        >>> nav.navigate(Route.SCAN)
        >>> nav.pop_back_stack()
        True
        >>> nav.current
        <Route.MAIN: 'main'>
    """

    def __init__(self, start: Route = Route.MAIN) -> None:
        self._start = start
        self._stack: List[Route] = [start]
        self._lock = threading.Lock()

    @property
    def current(self) -> Route:
        with self._lock:
            return self._stack[-1]

    @property
    def back_stack(self) -> List[Route]:
        with self._lock:
            return list(self._stack)

    def navigate(self, route) -> Route:
        """Push a destination onto the back stack."""
        if not isinstance(route, Route):
            route = Route.parse(route)
        with self._lock:
            self._stack.append(route)
        logger.debug(f"Navigate → {route.value}")
        return route

    def pop_back_stack(self) -> bool:
        """
        Return to the previous destination.

        Returns:
            False if already at the start destination
        """
        with self._lock:
            if len(self._stack) <= 1:
                return False
            popped = self._stack.pop()
            current = self._stack[-1]
        logger.debug(f"Back {popped.value} → {current.value}")
        return True

    def reset(self) -> None:
        with self._lock:
            self._stack = [self._start]


class ScreenCatalog:
    """Builds the declarative descriptor of each screen."""

    def __init__(self, camera_active: Optional[Callable[[], bool]] = None) -> None:
        self._settings = get_settings()
        self._camera_active = camera_active

    def describe(self, route: Route) -> ScreenDescriptor:
        if route is Route.MAIN:
            return self._main()
        if route is Route.SCAN:
            return self._scan()
        return self._settings_screen()

    def _main(self) -> ScreenDescriptor:
        return ScreenDescriptor(
            route=Route.MAIN.value,
            title=self._settings.app_name,
            content={
                "message": "Press the button below to start scanning the QR code.",
            },
            actions=[
                ScreenAction(id="settings", label="Settings", target=Route.SETTINGS.value),
                ScreenAction(id="scan", label="Scan QR", target=Route.SCAN.value),
            ],
        )

    def _scan(self) -> ScreenDescriptor:
        camera_active = bool(self._camera_active()) if self._camera_active else False
        return ScreenDescriptor(
            route=Route.SCAN.value,
            title="Scan",
            content={
                "camera": "active" if camera_active else "no_camera",
                "overlay": {
                    "cutout_ratio": OVERLAY_CUTOUT_RATIO,
                    "dim_alpha": OVERLAY_DIM_ALPHA,
                    "border_width": OVERLAY_BORDER_WIDTH,
                },
            },
        )

    def _settings_screen(self) -> ScreenDescriptor:
        return ScreenDescriptor(
            route=Route.SETTINGS.value,
            title="Settings",
            content={
                "toggles": [
                    {"key": "auto_open_links", "label": "Automatically open links"},
                    {"key": "dark_mode", "label": "Dark mode"},
                    {"key": "vibrate_on_scan", "label": "Vibrate on scan"},
                ],
                "version": f"Ver: {self._settings.app_version}",
            },
            actions=[
                ScreenAction(id="close", label="Close Settings", target="back"),
                ScreenAction(id="source", label="Source code", target=self._settings.source_code_url),
            ],
        )
