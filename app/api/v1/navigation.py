"""
==============================================================================
Navigation Endpoints
==============================================================================

Navigate between the home, scan and settings screens.

==============================================================================
"""

from fastapi import APIRouter, Depends

from app.core.dependencies import get_navigator, get_screen_catalog
from app.schemas.navigation import NavigationResponse, ScreenDescriptor
from app.services import Navigator, Route, ScreenCatalog


router = APIRouter(prefix="/navigation", tags=["Navigation"])


class NavigationController:
    """Controller for navigation operations."""

    def __init__(self, navigator: Navigator, screens: ScreenCatalog):
        self._navigator = navigator
        self._screens = screens

    def state(self) -> NavigationResponse:
        current = self._navigator.current
        return NavigationResponse(
            current=current.value,
            back_stack=[r.value for r in self._navigator.back_stack],
            screen=self._screens.describe(current)
        )

    def navigate(self, route: str) -> NavigationResponse:
        self._navigator.navigate(Route.parse(route))
        return self.state()

    def back(self) -> NavigationResponse:
        self._navigator.pop_back_stack()
        return self.state()

    def describe(self, route: str) -> ScreenDescriptor:
        return self._screens.describe(Route.parse(route))


@router.get("", response_model=NavigationResponse)
async def get_navigation(
    navigator: Navigator = Depends(get_navigator),
    screens: ScreenCatalog = Depends(get_screen_catalog)
):
    """Current screen and back stack."""
    return NavigationController(navigator, screens).state()


@router.post("/navigate/{route}", response_model=NavigationResponse)
async def navigate(
    route: str,
    navigator: Navigator = Depends(get_navigator),
    screens: ScreenCatalog = Depends(get_screen_catalog)
):
    """Open a screen."""
    return NavigationController(navigator, screens).navigate(route)


@router.post("/back", response_model=NavigationResponse)
async def navigate_back(
    navigator: Navigator = Depends(get_navigator),
    screens: ScreenCatalog = Depends(get_screen_catalog)
):
    """Return to the previous screen (no-op on the home screen)."""
    return NavigationController(navigator, screens).back()


@router.get("/screens/{route}", response_model=ScreenDescriptor)
async def describe_screen(
    route: str,
    navigator: Navigator = Depends(get_navigator),
    screens: ScreenCatalog = Depends(get_screen_catalog)
):
    """Descriptor of any screen, without navigating."""
    return NavigationController(navigator, screens).describe(route)
