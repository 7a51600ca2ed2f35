"""
==============================================================================
Camera Source Module
==============================================================================

Frame delivery from an OpenCV camera to an analyzer.

Classes:
--------
- ImageAnalysis: Analysis sink with "keep only latest" backpressure
- CameraProvider: Opens cameras and binds them to an analysis sink
- CameraBinding: One running capture thread

Backpressure:
-------------
ImageAnalysis keeps a single in-flight slot. A frame is only built when the
slot is free; otherwise the offered image is dropped. The slot is freed by
the frame's close(), so the consumer's release is what lets the next frame
through.

    capture thread ──offer──► [slot] ──executor──► analyzer(frame)
          ▲                                            │
          └────────────── frame.close() ◄──────────────┘

==============================================================================
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor
from typing import Any, Callable, List, Optional

import cv2
import numpy as np

from app.scanner.errors import CameraUnavailable
from app.scanner.frames import Frame, ImageFrame


# Module logger
logger = logging.getLogger(__name__)


FrameFactory = Callable[[Callable[[], None]], Frame]
Analyzer = Callable[[Frame], None]
PreviewSink = Callable[[np.ndarray], None]


class ImageAnalysis:
    """
    Analysis sink delivering one frame at a time to an analyzer.

    Example:
        >>> analysis = ImageAnalysis()
        >>> analysis.set_analyzer(executor, pipeline.analyze)
        >>> analysis.submit(lambda release: ImageFrame.from_bgr(img, release))
        True
    """

    def __init__(self) -> None:
        self._slot = threading.BoundedSemaphore(1)
        self._lock = threading.Lock()
        self._executor: Optional[Executor] = None
        self._analyzer: Optional[Analyzer] = None
        self.frames_delivered = 0
        self.frames_dropped = 0

    def set_analyzer(self, executor: Executor, analyzer: Analyzer) -> None:
        """Route frames to analyzer, called on executor."""
        with self._lock:
            self._executor = executor
            self._analyzer = analyzer

    def clear_analyzer(self) -> None:
        with self._lock:
            self._executor = None
            self._analyzer = None

    @property
    def busy(self) -> bool:
        """True while a frame is in flight."""
        if self._slot.acquire(blocking=False):
            self._slot.release()
            return False
        return True

    def submit(self, frame_factory: FrameFactory) -> bool:
        """
        Offer a frame.

        Args:
            frame_factory: Builds the frame given its release hook

        Returns:
            True if the frame was handed to the analyzer, False if dropped
        """
        with self._lock:
            executor, analyzer = self._executor, self._analyzer

        if analyzer is None or not self._slot.acquire(blocking=False):
            self.frames_dropped += 1
            return False

        try:
            frame = frame_factory(self._slot.release)
        except Exception:
            self._slot.release()
            raise

        try:
            executor.submit(self._run, analyzer, frame)
        except RuntimeError as e:
            # Executor already shut down
            logger.debug(f"Analyzer executor unavailable: {e}")
            frame.close()
            self.frames_dropped += 1
            return False

        self.frames_delivered += 1
        return True

    @staticmethod
    def _run(analyzer: Analyzer, frame: Frame) -> None:
        try:
            analyzer(frame)
        except Exception as e:
            logger.error(f"Analyzer raised: {e}")
        finally:
            if not frame.closed:
                logger.warning(f"Analyzer did not release {frame!r}")
                frame.close()


class CameraBinding:
    """
    Capture loop bound to one camera.

    Reads frames on a daemon thread and offers them to the analysis sink.
    """

    def __init__(
        self,
        capture: Any,
        camera_index: int,
        analysis: ImageAnalysis,
        preview: Optional[PreviewSink] = None
    ) -> None:
        self._capture = capture
        self._camera_index = camera_index
        self._analysis = analysis
        self._preview = preview
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._loop,
            name=f"camera-{camera_index}",
            daemon=True
        )
        self.frames_read = 0

    @property
    def camera_index(self) -> int:
        return self._camera_index

    @property
    def active(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> None:
        self._thread.start()
        logger.info(f"📷 Camera {self._camera_index} bound")

    def stop(self, timeout: float = 2.0) -> None:
        """Stop capturing and release the device."""
        self._stop.set()
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout=timeout)

    def _loop(self) -> None:
        try:
            while not self._stop.is_set():
                ret, image = self._capture.read()
                if not ret or image is None:
                    logger.warning(f"Failed to read frame from camera {self._camera_index}")
                    break

                self.frames_read += 1

                if self._preview is not None:
                    try:
                        self._preview(image)
                    except Exception as e:
                        logger.error(f"Preview error: {e}")

                try:
                    self._analysis.submit(
                        lambda release, image=image: ImageFrame.from_bgr(image, on_close=release)
                    )
                except Exception as e:
                    logger.error(f"Frame conversion error: {e}")
        finally:
            self._capture.release()
            logger.info(f"📷 Camera {self._camera_index} released ({self.frames_read} frames)")


class CameraProvider:
    """
    Opens OpenCV cameras and binds them to analysis sinks.

    Attributes:
        capture_factory: Callable returning a cv2.VideoCapture-like object

    Example:
        >>> provider = CameraProvider()
        >>> if provider.check_permission(0):
        ...     binding = provider.bind(0, analysis)
        ...     ...
        ...     binding.stop()
    """

    def __init__(
        self,
        capture_factory: Callable[[int], Any] = cv2.VideoCapture,
        frame_width: Optional[int] = None,
        frame_height: Optional[int] = None
    ) -> None:
        self._capture_factory = capture_factory
        self._frame_width = frame_width
        self._frame_height = frame_height
        self._bindings: List[CameraBinding] = []
        self._lock = threading.Lock()

    def check_permission(self, camera_index: int) -> bool:
        """Check that the camera can be opened."""
        capture = self._capture_factory(camera_index)
        try:
            return bool(capture.isOpened())
        finally:
            capture.release()

    def _open(self, camera_index: int) -> Any:
        capture = self._capture_factory(camera_index)
        if not capture.isOpened():
            capture.release()
            logger.error(f"Cannot open camera {camera_index}")
            raise CameraUnavailable(camera_index)

        if self._frame_width:
            capture.set(cv2.CAP_PROP_FRAME_WIDTH, self._frame_width)
        if self._frame_height:
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self._frame_height)
        return capture

    def bind(
        self,
        camera_index: int,
        analysis: ImageAnalysis,
        preview: Optional[PreviewSink] = None
    ) -> CameraBinding:
        """
        Start delivering frames from a camera.

        Raises:
            CameraUnavailable: If the camera cannot be opened
        """
        binding = CameraBinding(self._open(camera_index), camera_index, analysis, preview)
        with self._lock:
            self._bindings = [b for b in self._bindings if b.active]
            self._bindings.append(binding)
        binding.start()
        return binding

    def unbind_all(self) -> None:
        """Stop every running binding."""
        with self._lock:
            bindings, self._bindings = self._bindings, []
        for binding in bindings:
            binding.stop()
        if bindings:
            logger.info(f"🛑 Unbound {len(bindings)} camera(s)")

    @property
    def active_bindings(self) -> int:
        with self._lock:
            return sum(1 for b in self._bindings if b.active)
