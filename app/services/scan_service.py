"""
==============================================================================
Scan Service Module
==============================================================================

Scanning sessions on top of the scan pipeline.

This module implements:
- ScanService: Camera scan sessions and scan result building

Camera Session Flow:
--------------------
1. Check that the camera can be opened (permission boundary); no pipeline
   is built when it cannot
2. Navigate to the scan screen
3. Bind the camera to a single-worker analysis executor
4. Wait for the pipeline's one result (or timeout / camera loss)
5. Unbind the camera and navigate back

==============================================================================
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from app.config import get_settings
from app.core import exceptions
from app.scanner import (
    CameraProvider,
    CameraUnavailable,
    ImageAnalysis,
    ScanPipeline,
    qr_decoder,
)
from app.schemas.scan import ScanResultResponse
from app.services.navigation_service import Navigator, Route
from app.services.preferences_service import PreferencesService
from app.utils.validators import LinkValidator


# Module logger
logger = logging.getLogger(__name__)

# Poll interval while waiting for a camera result
WAIT_SLICE_SECONDS = 0.1


class ScanService:
    """
    Service for scanning sessions.

    Attributes:
        _navigator: Navigation back stack
        _preferences: Settings screen toggles
        _camera_provider: OpenCV camera provider

    Example:
        >>> service = ScanService(navigator, preferences)
        >>> result = service.scan_camera(camera_index=0, timeout=30)
        >>> print(result.text)
    """

    def __init__(
        self,
        navigator: Navigator,
        preferences: PreferencesService,
        camera_provider: Optional[CameraProvider] = None,
        decoder_factory: Optional[Callable[[], object]] = None
    ) -> None:
        self._settings = get_settings()
        self._navigator = navigator
        self._preferences = preferences
        self._camera_provider = camera_provider or CameraProvider(
            frame_width=self._settings.camera_frame_width or None,
            frame_height=self._settings.camera_frame_height or None,
        )
        self._decoder_factory = decoder_factory or (
            lambda: qr_decoder(also_inverted=self._settings.decode_also_inverted)
        )
        self._link_validator = LinkValidator()
        self._camera_session = threading.Lock()

    # =========================================================================
    # PIPELINES & RESULTS
    # =========================================================================

    def new_pipeline(self, on_result: Optional[Callable[[str], None]] = None) -> ScanPipeline:
        """Create a pipeline for one scanning session."""
        return ScanPipeline(self._decoder_factory(), on_result=on_result)

    def build_result(self, text: str, frames_analyzed: int = 0) -> ScanResultResponse:
        """
        Attach the client-side hints for a decoded payload.

        open_url is set only when auto-open is enabled and the payload
        is a web link.
        """
        preferences = self._preferences.get()
        is_link, link, _ = self._link_validator.validate(text)

        return ScanResultResponse(
            text=text,
            is_link=is_link,
            open_url=link if is_link and preferences.auto_open_links else None,
            vibrate=preferences.vibrate_on_scan,
            frames_analyzed=frames_analyzed,
        )

    # =========================================================================
    # CAMERA SESSIONS
    # =========================================================================

    @property
    def camera_active(self) -> bool:
        return self._camera_provider.active_bindings > 0

    def scan_camera(
        self,
        camera_index: Optional[int] = None,
        timeout: Optional[float] = None
    ) -> ScanResultResponse:
        """
        Run one camera scanning session. Blocking.

        Args:
            camera_index: OpenCV device index (settings default if None)
            timeout: Seconds to wait for a code (settings default if None)

        Returns:
            ScanResultResponse for the first decoded QR code

        Raises:
            AppException: CAMERA_UNAVAILABLE, SCAN_IN_PROGRESS, SCAN_TIMEOUT
        """
        if camera_index is None:
            camera_index = self._settings.camera_index
        if timeout is None:
            timeout = self._settings.scan_timeout_seconds

        if not self._camera_session.acquire(blocking=False):
            raise exceptions.scan_in_progress()

        try:
            if not self._camera_provider.check_permission(camera_index):
                logger.warning(f"📷 Camera {camera_index} not available, no camera view")
                raise exceptions.camera_unavailable(camera_index)

            self._navigator.navigate(Route.SCAN)
            try:
                pipeline = self.new_pipeline()
                text = self._run_camera_session(pipeline, camera_index, timeout)
            finally:
                self._navigator.pop_back_stack()

            if text is None:
                raise exceptions.scan_timeout(timeout)

            return self.build_result(text, pipeline.stats.frames_received)
        finally:
            self._camera_session.release()

    def _run_camera_session(
        self,
        pipeline: ScanPipeline,
        camera_index: int,
        timeout: float
    ) -> Optional[str]:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="qr-analysis")
        analysis = ImageAnalysis()
        analysis.set_analyzer(executor, pipeline.analyze)

        try:
            try:
                binding = self._camera_provider.bind(camera_index, analysis)
            except CameraUnavailable:
                raise exceptions.camera_unavailable(camera_index) from None

            logger.info(f"🔍 Scanning camera {camera_index} (timeout {timeout:g}s)")
            deadline = time.monotonic() + timeout
            try:
                while True:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        break
                    text = pipeline.wait(min(WAIT_SLICE_SECONDS, remaining))
                    if text is not None:
                        return text
                    if not binding.active:
                        logger.warning("Camera stopped delivering frames")
                        break
            finally:
                binding.stop()
        finally:
            analysis.clear_analyzer()
            executor.shutdown(wait=False)
            logger.info(
                f"📊 Session stats: {pipeline.stats.to_dict()}, "
                f"dropped {analysis.frames_dropped}"
            )

        # A decode in flight when the camera stopped may still have resolved
        return pipeline.result

    def shutdown(self) -> None:
        """Release every bound camera."""
        self._camera_provider.unbind_all()
