"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides the test client, synthetic QR frames and camera fakes.

==============================================================================
"""

import base64
import time
from typing import Callable, Generator, List, Optional

import cv2
import numpy as np
import pytest
import qrcode
from fastapi.testclient import TestClient

from app.main import app
from app.core.dependencies import reset_dependencies
from app.scanner import DecodeNotFound, ImageFrame, PixelFormat, Plane


# ============================================================================
# IMAGE HELPERS
# ============================================================================

def qr_luma(text: str, scale: int = 8, invert: bool = False) -> np.ndarray:
    """Grayscale image of a QR code with a 4-module quiet zone."""
    qr = qrcode.QRCode(border=4)
    qr.add_data(text)
    qr.make(fit=True)
    modules = np.array(qr.get_matrix(), dtype=bool)
    pixels = np.where(modules, 0, 255).astype(np.uint8)
    if invert:
        pixels = 255 - pixels
    return np.kron(pixels, np.ones((scale, scale), dtype=np.uint8))


def blank_luma(width: int = 160, height: int = 120, value: int = 200) -> np.ndarray:
    return np.full((height, width), value, dtype=np.uint8)


def yuv_planes(luma: np.ndarray) -> List[Plane]:
    """Y plane from luma plus flat 4:2:0 chroma planes."""
    height, width = luma.shape
    chroma = np.full(((height + 1) // 2) * ((width + 1) // 2), 128, dtype=np.uint8)
    return [
        Plane(luma.reshape(-1).copy(), row_stride=width),
        Plane(chroma.copy(), row_stride=(width + 1) // 2),
        Plane(chroma.copy(), row_stride=(width + 1) // 2),
    ]


class CountingFrame(ImageFrame):
    """ImageFrame that records how often it was released."""

    def __init__(self, pixel_format: PixelFormat, luma: np.ndarray):
        height, width = luma.shape
        super().__init__(pixel_format, width, height, yuv_planes(luma))
        self.releases = 0

    def _release(self) -> None:
        self.releases += 1


# ============================================================================
# FRAME FIXTURES
# ============================================================================

@pytest.fixture
def make_frame() -> Callable[..., CountingFrame]:
    """Factory: make_frame(luma, pixel_format=YUV_420_888)."""
    def _make(luma: np.ndarray, pixel_format: PixelFormat = PixelFormat.YUV_420_888) -> CountingFrame:
        return CountingFrame(pixel_format, luma)
    return _make


@pytest.fixture
def hello_luma() -> np.ndarray:
    return qr_luma("HELLO")


@pytest.fixture
def hello_bgr(hello_luma: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(hello_luma, cv2.COLOR_GRAY2BGR)


@pytest.fixture
def b64() -> Callable[[bytes], str]:
    return lambda raw: base64.b64encode(raw).decode("ascii")


# ============================================================================
# DECODER & CAMERA FAKES
# ============================================================================

class ScriptedDecoder:
    """
    Decoder returning scripted outcomes.

    Each outcome is a string (decoded text) or an exception instance to
    raise. Fails the attempt if reset() was not called after the previous one.
    """

    def __init__(self, outcomes: Optional[list] = None, default=None):
        self._outcomes = list(outcomes or [])
        self._default = default
        self.calls = 0
        self.resets = 0
        self.grids = []
        self._dirty = False

    def decode(self, grid):
        if self._dirty:
            raise AssertionError("decode() called without reset()")
        self._dirty = True
        self.calls += 1
        self.grids.append(grid)
        outcome = self._outcomes.pop(0) if self._outcomes else self._default
        if isinstance(outcome, BaseException):
            raise outcome
        if outcome is None:
            raise DecodeNotFound()
        return outcome

    def reset(self):
        self.resets += 1
        self._dirty = False


class FakeCapture:
    """cv2.VideoCapture stand-in replaying images."""

    def __init__(self, images: List[np.ndarray], opened: bool = True, repeat_last: bool = True):
        self._images = list(images)
        self._opened = opened
        self._repeat_last = repeat_last
        self._index = 0
        self.props = {}
        self.released = False

    def isOpened(self) -> bool:
        return self._opened

    def read(self):
        time.sleep(0.002)
        if self._index < len(self._images):
            image = self._images[self._index]
            self._index += 1
            return True, image
        if self._repeat_last and self._images:
            return True, self._images[-1]
        return False, None

    def set(self, prop, value) -> bool:
        self.props[prop] = value
        return True

    def release(self) -> None:
        self.released = True


@pytest.fixture
def capture_factory():
    """Factory: capture_factory(images, opened=True, repeat_last=True) -> callable(index)."""
    created: List[FakeCapture] = []

    def _factory(images, opened: bool = True, repeat_last: bool = True):
        def _open(index: int) -> FakeCapture:
            capture = FakeCapture(images, opened=opened, repeat_last=repeat_last)
            created.append(capture)
            return capture
        _open.created = created
        return _open

    return _factory


# ============================================================================
# APPLICATION FIXTURES
# ============================================================================

@pytest.fixture(scope="function")
def client() -> Generator[TestClient, None, None]:
    """Test client with fresh navigation and preferences state."""
    reset_dependencies()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    reset_dependencies()
