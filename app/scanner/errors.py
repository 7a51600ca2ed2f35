"""
==============================================================================
Scanner Errors Module
==============================================================================

Exception taxonomy for the frame-to-result scan pipeline.

None of these errors is user-visible. The pipeline catches all of them at
the frame-callback boundary:

- UnsupportedFrameEncoding: frame is not planar luma-chroma (ignored)
- DecodeNotFound: no QR code in the frame (expected steady state)
- DecoderFault: any other decode-time failure (logged, treated as not found)
- CameraUnavailable: camera could not be opened (raised before any pipeline
  is constructed)

==============================================================================
"""

from typing import Optional


class ScannerError(Exception):
    """Base class for scanner errors."""


class UnsupportedFrameEncoding(ScannerError):
    """Frame pixel encoding is not in the planar YUV family."""

    def __init__(self, pixel_format) -> None:
        self.pixel_format = pixel_format
        super().__init__(f"Unsupported frame encoding: {pixel_format}")


class DecodeNotFound(ScannerError):
    """No decodable symbol in the luminance grid."""

    def __init__(self, message: str = "No QR code found") -> None:
        super().__init__(message)


class DecoderFault(ScannerError):
    """Decoder failed for a reason other than 'not found'."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.cause = cause
        super().__init__(message)


class CameraUnavailable(ScannerError):
    """Camera device could not be opened (missing device or permission)."""

    def __init__(self, camera_index: int) -> None:
        self.camera_index = camera_index
        super().__init__(f"Cannot open camera {camera_index}")
