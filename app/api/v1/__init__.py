"""
==============================================================================
API v1 Package
==============================================================================

Version 1 REST endpoints:
- health: Health and probes
- settings: Settings screen toggles
- navigation: Screen navigation
- scan: Local camera scanning

==============================================================================
"""

from . import health, navigation, scan, settings

__all__ = ["health", "navigation", "scan", "settings"]
