"""
==============================================================================
Camera Source Tests
==============================================================================

Tests for ImageAnalysis backpressure and CameraProvider bindings, using
fake cv2.VideoCapture objects.

==============================================================================
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from app.scanner import (
    CameraProvider,
    CameraUnavailable,
    ImageAnalysis,
    ImageFrame,
    PixelFormat,
    Plane,
    ScanPipeline,
    qr_decoder,
)


def tiny_frame(release):
    return ImageFrame(PixelFormat.YUV_420_888, 1, 1, [Plane(b"\x80", 1)], on_close=release)


@pytest.fixture
def executor():
    pool = ThreadPoolExecutor(max_workers=1)
    yield pool
    pool.shutdown(wait=True)


class TestImageAnalysis:
    """Tests for keep-only-latest delivery."""

    def test_drops_without_analyzer(self):
        analysis = ImageAnalysis()
        built = []

        assert analysis.submit(lambda release: built.append(1)) is False
        assert built == []
        assert analysis.frames_dropped == 1

    def test_drops_while_frame_in_flight(self, executor):
        gate = threading.Event()
        seen = []

        def slow_analyzer(frame):
            seen.append(frame)
            gate.wait(5)
            frame.close()

        analysis = ImageAnalysis()
        analysis.set_analyzer(executor, slow_analyzer)

        assert analysis.submit(tiny_frame) is True
        assert analysis.busy is True

        built = []
        assert analysis.submit(lambda release: built.append(1)) is False
        assert built == []

        gate.set()
        executor.shutdown(wait=True)

        assert analysis.busy is False
        assert analysis.frames_delivered == 1
        assert analysis.frames_dropped == 1
        assert len(seen) == 1

    def test_close_frees_slot(self, executor):
        done = threading.Event()

        def analyzer(frame):
            frame.close()
            done.set()

        analysis = ImageAnalysis()
        analysis.set_analyzer(executor, analyzer)

        for _ in range(3):
            done.clear()
            assert analysis.submit(tiny_frame) is True
            assert done.wait(5)
            executor.submit(lambda: None).result(5)

        assert analysis.frames_delivered == 3

    def test_unreleased_frame_is_closed_for_the_analyzer(self, executor):
        frames = []

        def leaky_analyzer(frame):
            frames.append(frame)
            raise RuntimeError("boom")

        analysis = ImageAnalysis()
        analysis.set_analyzer(executor, leaky_analyzer)
        analysis.submit(tiny_frame)
        executor.shutdown(wait=True)

        assert frames[0].closed
        assert analysis.busy is False

    def test_factory_error_frees_slot(self, executor):
        analysis = ImageAnalysis()
        analysis.set_analyzer(executor, lambda frame: frame.close())

        def broken(release):
            raise ValueError("bad payload")

        with pytest.raises(ValueError):
            analysis.submit(broken)
        assert analysis.busy is False

    def test_shut_down_executor_closes_frame(self):
        pool = ThreadPoolExecutor(max_workers=1)
        pool.shutdown()
        analysis = ImageAnalysis()
        analysis.set_analyzer(pool, lambda frame: frame.close())

        assert analysis.submit(tiny_frame) is False
        assert analysis.busy is False


class TestCameraProvider:
    """Tests for camera open/bind/unbind."""

    def test_check_permission(self, capture_factory):
        assert CameraProvider(capture_factory([])).check_permission(0) is True
        assert CameraProvider(capture_factory([], opened=False)).check_permission(0) is False

    def test_check_permission_releases_device(self, capture_factory):
        factory = capture_factory([])
        CameraProvider(factory).check_permission(0)
        assert factory.created[0].released

    def test_bind_unavailable(self, capture_factory):
        factory = capture_factory([], opened=False)
        provider = CameraProvider(factory)

        with pytest.raises(CameraUnavailable) as exc_info:
            provider.bind(3, ImageAnalysis())

        assert exc_info.value.camera_index == 3
        assert factory.created[0].released

    def test_bind_sets_frame_size(self, capture_factory):
        factory = capture_factory([], repeat_last=False)
        provider = CameraProvider(factory, frame_width=640, frame_height=480)

        binding = provider.bind(0, ImageAnalysis())
        binding.stop()

        assert sorted(factory.created[0].props.values()) == [480, 640]

    def test_bind_resolves_hello(self, capture_factory, executor, hello_bgr):
        blank = np.full_like(hello_bgr, 200)
        factory = capture_factory([blank, blank, hello_bgr])
        provider = CameraProvider(factory)

        pipeline = ScanPipeline(qr_decoder())
        analysis = ImageAnalysis()
        analysis.set_analyzer(executor, pipeline.analyze)

        binding = provider.bind(0, analysis)
        try:
            assert pipeline.wait(timeout=10) == "HELLO"
        finally:
            binding.stop()
            analysis.clear_analyzer()

        assert not binding.active
        assert factory.created[0].released
        assert binding.frames_read >= 3

    def test_capture_end_stops_binding(self, capture_factory):
        factory = capture_factory([np.zeros((4, 4, 3), dtype=np.uint8)], repeat_last=False)
        provider = CameraProvider(factory)

        binding = provider.bind(0, ImageAnalysis())
        binding.stop(timeout=5)

        assert not binding.active
        assert provider.active_bindings == 0

    def test_unbind_all(self, capture_factory):
        factory = capture_factory([np.zeros((4, 4, 3), dtype=np.uint8)])
        provider = CameraProvider(factory)
        bindings = [provider.bind(i, ImageAnalysis()) for i in range(2)]

        provider.unbind_all()

        assert all(not b.active for b in bindings)
        assert all(c.released for c in factory.created)
        assert provider.active_bindings == 0

    def test_preview_receives_frames(self, capture_factory, hello_bgr):
        seen = []
        done = threading.Event()

        def preview(image):
            seen.append(image.shape)
            done.set()

        provider = CameraProvider(capture_factory([hello_bgr]))
        binding = provider.bind(0, ImageAnalysis(), preview=preview)
        try:
            assert done.wait(5)
        finally:
            binding.stop()

        assert seen[0] == hello_bgr.shape
