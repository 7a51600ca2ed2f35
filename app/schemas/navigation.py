"""
==============================================================================
Navigation Schemas Module
==============================================================================

Response schemas for the navigation wrapper and screen descriptors.

==============================================================================
"""

from typing import Any, Dict, List
from pydantic import BaseModel, Field


class ScreenAction(BaseModel):
    """Button or link on a screen."""
    id: str
    label: str
    target: str


class ScreenDescriptor(BaseModel):
    """Declarative description of one screen."""
    route: str
    title: str
    content: Dict[str, Any] = Field(default_factory=dict)
    actions: List[ScreenAction] = Field(default_factory=list)


class NavigationResponse(BaseModel):
    """Current navigation state."""
    success: bool = Field(default=True)
    current: str
    back_stack: List[str]
    screen: ScreenDescriptor
