"""
Application Exception Handling

Single AppException class for all API errors with FastAPI integration.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class AppException(Exception):
    """
    Unified application exception for all error scenarios.

    Provides consistent error response format across the entire API.

    Usage:
        raise AppException("Cannot open camera 0", "CAMERA_UNAVAILABLE", 403)
        raise AppException("Unknown route", "UNKNOWN_ROUTE", 404, {"route": "foo"})

    Error Codes:
        Camera:
            - CAMERA_UNAVAILABLE (403)
            - SCAN_TIMEOUT (408)
            - SCAN_IN_PROGRESS (409)

        Navigation:
            - UNKNOWN_ROUTE (404)

        Frames:
            - INVALID_FRAME (400)

        General:
            - INTERNAL_ERROR (500)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "CAMERA_UNAVAILABLE")
            status_code: HTTP status code (default: 400)
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Convert AppException to a consistent JSON error response."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def camera_unavailable(camera_index: int) -> AppException:
    """Camera missing or access not granted."""
    return AppException(
        f"Cannot open camera {camera_index}",
        "CAMERA_UNAVAILABLE",
        403,
        {"camera_index": camera_index}
    )


def scan_timeout(seconds: float) -> AppException:
    """Create scan timeout exception."""
    return AppException(
        f"No QR code found within {seconds:g} seconds",
        "SCAN_TIMEOUT",
        408,
        {"timeout_seconds": seconds}
    )


def scan_in_progress() -> AppException:
    """Create scan already running exception."""
    return AppException("A camera scan is already running", "SCAN_IN_PROGRESS", 409)


def unknown_route(route: str) -> AppException:
    """Create unknown navigation route exception."""
    return AppException(
        f"Unknown route '{route}'",
        "UNKNOWN_ROUTE",
        404,
        {"route": route}
    )


def invalid_frame(reason: str) -> AppException:
    """Create invalid frame payload exception."""
    return AppException(
        f"Invalid frame: {reason}",
        "INVALID_FRAME",
        400,
        {"reason": reason}
    )


def internal_error(message: str = "Internal server error") -> AppException:
    """Create internal server error exception."""
    return AppException(message, "INTERNAL_ERROR", 500)
