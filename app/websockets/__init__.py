"""
==============================================================================
WebSocket Package
==============================================================================

Real-time WebSocket handlers for QR scanning.

Handlers:
---------
- scanner: Client-streamed frames, single-shot QR result

==============================================================================
"""

from .scanner import router as scanner_router

__all__ = ["scanner_router"]
