"""
==============================================================================
Scan Schemas Module
==============================================================================

Request and response schemas for camera scans and WebSocket frames.

Frame Message (WebSocket):
--------------------------
    Planar:
        {"type": "frame", "format": "yuv_420_888", "width": 640,
         "height": 480, "planes": [{"data": "<base64>", "row_stride": 640,
         "pixel_stride": 1}, ...]}

    Encoded image:
        {"type": "frame", "format": "jpeg", "data": "<base64>"}

==============================================================================
"""

from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


# =============================================================================
# CAMERA SCAN
# =============================================================================

class CameraScanRequest(BaseModel):
    """Start a camera scan session."""
    camera_index: Optional[int] = Field(default=None, ge=0)
    timeout_seconds: Optional[float] = Field(default=None, gt=0, le=600)


class ScanResultResponse(BaseModel):
    """Outcome of a scanning session."""
    success: bool = Field(default=True)
    text: str
    is_link: bool = Field(default=False)
    open_url: Optional[str] = Field(default=None)
    vibrate: bool = Field(default=False)
    frames_analyzed: int = Field(default=0, ge=0)


# =============================================================================
# WEBSOCKET MESSAGES
# =============================================================================

class PlanePayload(BaseModel):
    """One base64-encoded plane."""
    data: str = Field(..., min_length=1)
    row_stride: int = Field(..., ge=1)
    pixel_stride: int = Field(default=1, ge=1)


class FrameMessage(BaseModel):
    """Frame sent by a WebSocket client."""
    format: str = Field(..., min_length=1, max_length=32)
    width: Optional[int] = Field(default=None, ge=1)
    height: Optional[int] = Field(default=None, ge=1)
    planes: List[PlanePayload] = Field(default_factory=list)
    data: Optional[str] = Field(default=None)

    @field_validator("format")
    @classmethod
    def normalize_format(cls, v: str) -> str:
        return v.strip().lower()


class InitMessage(BaseModel):
    """First message of a WebSocket scan session."""
    camera_permission: str = Field(default="granted")

    @field_validator("camera_permission")
    @classmethod
    def validate_permission(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("granted", "denied"):
            raise ValueError("camera_permission must be 'granted' or 'denied'")
        return v

    @property
    def granted(self) -> bool:
        return self.camera_permission == "granted"
