"""
==============================================================================
Frame Model Module
==============================================================================

Camera frame types consumed by the scan pipeline.

Classes:
--------
- PixelFormat: Pixel encoding tags (only planar YUV is decodable)
- Plane: One image plane with its strides
- Frame: Abstract camera frame that must be closed exactly once
- ImageFrame: Concrete frame, optionally built from an OpenCV BGR image
- LuminanceGrid: Brightness-only view of a frame used for decoding

Ownership:
----------
A frame belongs to the camera source for the duration of one analyzer
call. The consumer acknowledges it with close(); the source uses that
acknowledgement to hand out the next frame.

==============================================================================
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

import cv2
import numpy as np

from app.scanner.errors import UnsupportedFrameEncoding


# Module logger
logger = logging.getLogger(__name__)


class PixelFormat(str, enum.Enum):
    """Pixel encoding of a frame."""

    YUV_420_888 = "yuv_420_888"
    YUV_422_888 = "yuv_422_888"
    YUV_444_888 = "yuv_444_888"
    JPEG = "jpeg"
    RGBA_8888 = "rgba_8888"
    RGB_565 = "rgb_565"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, tag: Optional[str]) -> "PixelFormat":
        """Map a wire tag to a PixelFormat, UNKNOWN if unrecognized."""
        if not tag:
            return cls.UNKNOWN
        try:
            return cls(str(tag).strip().lower())
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_planar_yuv(self) -> bool:
        return self in PLANAR_YUV_FORMATS


PLANAR_YUV_FORMATS = frozenset({
    PixelFormat.YUV_420_888,
    PixelFormat.YUV_422_888,
    PixelFormat.YUV_444_888,
})


@dataclass(frozen=True)
class Plane:
    """
    One plane of a frame.

    Attributes:
        buffer: Raw bytes or uint8 numpy array
        row_stride: Bytes between the start of consecutive rows
        pixel_stride: Bytes between consecutive pixels in a row
    """
    buffer: Any
    row_stride: int
    pixel_stride: int = 1


class Frame:
    """
    Abstract camera frame.

    Subclasses provide format, width, height and planes, and implement
    _release() to hand the frame back to its source.
    """

    format: PixelFormat = PixelFormat.UNKNOWN
    width: int = 0
    height: int = 0
    planes: Sequence[Plane] = ()

    def __init__(self) -> None:
        self._closed = False
        self._close_lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the frame back to the camera source (once)."""
        with self._close_lock:
            if self._closed:
                logger.warning(f"Frame {self!r} closed twice; ignoring")
                return
            self._closed = True
        self._release()

    def _release(self) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(format={self.format.value}, "
            f"{self.width}x{self.height})"
        )


class ImageFrame(Frame):
    """
    Frame backed by in-memory planes.

    Example:
        >>> frame = ImageFrame.from_bgr(image, on_close=gate.release)
        >>> frame.format
        <PixelFormat.YUV_420_888: 'yuv_420_888'>
    """

    def __init__(
        self,
        pixel_format: PixelFormat,
        width: int,
        height: int,
        planes: Sequence[Plane],
        on_close: Optional[Callable[[], None]] = None
    ) -> None:
        super().__init__()
        self.format = pixel_format
        self.width = width
        self.height = height
        self.planes = list(planes)
        self._on_close = on_close

    def _release(self) -> None:
        if self._on_close is not None:
            self._on_close()

    @classmethod
    def from_bgr(
        cls,
        image: np.ndarray,
        on_close: Optional[Callable[[], None]] = None
    ) -> "ImageFrame":
        """
        Build a YUV 4:2:0 frame from an OpenCV BGR image.

        Odd dimensions are cropped by one pixel, I420 needs even extents.

        Args:
            image: HxWx3 BGR image (HxW grayscale is accepted too)
            on_close: Release hook invoked by close()

        Returns:
            ImageFrame with three planes (Y, U, V)
        """
        if image.ndim == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)

        height, width = image.shape[:2]
        height -= height % 2
        width -= width % 2
        if height <= 0 or width <= 0:
            raise ValueError(f"Image too small for YUV conversion: {image.shape}")

        image = np.ascontiguousarray(image[:height, :width])
        yuv = cv2.cvtColor(image, cv2.COLOR_BGR2YUV_I420).reshape(-1)

        luma_size = width * height
        chroma_size = luma_size // 4
        planes = [
            Plane(yuv[:luma_size], row_stride=width),
            Plane(yuv[luma_size:luma_size + chroma_size], row_stride=width // 2),
            Plane(yuv[luma_size + chroma_size:], row_stride=width // 2),
        ]
        return cls(PixelFormat.YUV_420_888, width, height, planes, on_close)


def _as_uint8(buffer: Any) -> np.ndarray:
    """Flatten a plane buffer to a 1-D uint8 array without copying."""
    if isinstance(buffer, np.ndarray):
        return buffer.astype(np.uint8, copy=False).reshape(-1)
    return np.frombuffer(buffer, dtype=np.uint8)


@dataclass(frozen=True, eq=False)
class LuminanceGrid:
    """
    Brightness channel of a frame, cropped to (left, top, width, height).

    Only lives for the duration of one decode attempt.
    """
    pixels: np.ndarray
    width: int
    height: int
    left: int = 0
    top: int = 0

    @classmethod
    def from_frame(cls, frame: Frame) -> "LuminanceGrid":
        """
        Extract the full-frame luma plane.

        Raises:
            UnsupportedFrameEncoding: Frame is not planar YUV
            ValueError: No planes, a row stride shorter than a row, or a truncated luma buffer
        """
        if not frame.format.is_planar_yuv:
            raise UnsupportedFrameEncoding(frame.format)

        width, height = frame.width, frame.height
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid frame size {width}x{height}")
        if not frame.planes:
            raise ValueError("Frame has no planes")

        plane = frame.planes[0]
        pixel_stride = plane.pixel_stride or 1
        row_stride = plane.row_stride or width * pixel_stride
        if row_stride < (width - 1) * pixel_stride + 1:
            raise ValueError(
                f"row_stride smaller than row: {row_stride} < {width} x {pixel_stride}"
            )
        data = _as_uint8(plane.buffer)

        # The last row is often not padded out to row_stride
        needed = row_stride * (height - 1) + (width - 1) * pixel_stride + 1
        if data.size < needed:
            raise ValueError(
                f"Luma plane too small: {data.size} bytes, need {needed}"
            )
        padded = row_stride * height
        if data.size < padded:
            data = np.pad(data, (0, padded - data.size))

        rows = data[:padded].reshape(height, row_stride)
        pixels = np.ascontiguousarray(rows[:, :width * pixel_stride:pixel_stride])
        return cls(pixels=pixels, width=width, height=height)

    def cropped(self) -> np.ndarray:
        """Pixels inside the crop window."""
        return self.pixels[self.top:self.top + self.height, self.left:self.left + self.width]

