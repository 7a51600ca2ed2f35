"""
==============================================================================
Scanner Package - QR Detection
==============================================================================

Single-shot QR scanning with OpenCV frames and pyzbar.

Classes:
--------
- ScanPipeline: Frame-to-result pipeline with at-most-once result
- QrDecoder: pyzbar decoder restricted to QR codes
- ImageAnalysis / CameraProvider: Camera frame delivery with backpressure
- ImageFrame / LuminanceGrid: Frame data model

==============================================================================
"""

from .errors import (
    CameraUnavailable,
    DecodeNotFound,
    DecoderFault,
    ScannerError,
    UnsupportedFrameEncoding,
)
from .frames import Frame, ImageFrame, LuminanceGrid, PixelFormat, Plane
from .decoder import QrDecoder, qr_decoder
from .pipeline import PipelineStats, ScanPipeline, ScanState
from .camera import CameraBinding, CameraProvider, ImageAnalysis

__all__ = [
    # Errors
    "ScannerError",
    "UnsupportedFrameEncoding",
    "DecodeNotFound",
    "DecoderFault",
    "CameraUnavailable",
    # Frames
    "Frame",
    "ImageFrame",
    "LuminanceGrid",
    "PixelFormat",
    "Plane",
    # Decoding
    "QrDecoder",
    "qr_decoder",
    "ScanPipeline",
    "ScanState",
    "PipelineStats",
    # Camera
    "ImageAnalysis",
    "CameraProvider",
    "CameraBinding",
]
