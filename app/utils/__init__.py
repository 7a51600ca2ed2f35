"""
==============================================================================
Utilities Package
==============================================================================

Utility classes for the application.

Modules:
--------
- validators: Link detection and frame size validation

==============================================================================
"""

from .validators import FrameSizeValidator, LinkValidator

__all__ = [
    "FrameSizeValidator",
    "LinkValidator",
]
