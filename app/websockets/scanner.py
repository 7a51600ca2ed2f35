"""
==============================================================================
Scanner WebSocket Module
==============================================================================

Real-time QR scanning via WebSocket connection.

The client is the camera: it streams frames, the server runs them through
a single-shot scan pipeline and answers with the first decoded code.

Protocol:
---------
1. Client sends {"type": "init", "camera_permission": "granted"}
   - "denied" → server replies {"type": "no_camera"} and closes
   - otherwise server replies {"type": "ready"}
2. Client sends frames: {"type": "frame", "format": ..., ...}
   - planar YUV frames are decoded
   - "jpeg" frames are converted to YUV 4:2:0 first
   - other formats are accepted and ignored
3. Server sends {"type": "result", "text": ..., "open_url": ...,
   "vibrate": ...} once and closes
4. Client may send {"type": "stop"} to end the session early

Frames are analyzed on one worker thread. While a frame is being
analyzed, newly received frames are dropped (keep only latest).

==============================================================================
"""

import asyncio
import base64
import binascii
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

import cv2
import numpy as np
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from app.config import get_settings
from app.core import exceptions
from app.core.dependencies import get_navigator, get_scan_service
from app.core.exceptions import AppException
from app.scanner import Frame, ImageAnalysis, ImageFrame, PixelFormat, Plane, ScanPipeline
from app.schemas.scan import FrameMessage, InitMessage
from app.services import Navigator, Route, ScanService
from app.utils.validators import FrameSizeValidator


# Module logger
logger = logging.getLogger(__name__)

router = APIRouter()


class SocketFrameSource:
    """
    Builds frames from WebSocket frame messages.

    Raises AppException (INVALID_FRAME) for malformed payloads.
    """

    def __init__(self, max_frame_bytes: int) -> None:
        self._max_frame_bytes = max_frame_bytes
        self._size_validator = FrameSizeValidator()

    def _decode_base64(self, data: str) -> bytes:
        if len(data) * 3 // 4 > self._max_frame_bytes:
            raise exceptions.invalid_frame(
                f"payload exceeds {self._max_frame_bytes} bytes"
            )
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError):
            raise exceptions.invalid_frame("data is not valid base64") from None

    def build(self, message: FrameMessage, release: Callable[[], None]) -> Frame:
        """
        Build a frame owning the given release hook.

        Args:
            message: Validated frame message
            release: Called when the frame is closed

        Returns:
            ImageFrame (YUV for jpeg input, as sent otherwise)
        """
        pixel_format = PixelFormat.parse(message.format)

        if pixel_format is PixelFormat.JPEG:
            if not message.data:
                raise exceptions.invalid_frame("jpeg frames need 'data'")
            raw = self._decode_base64(message.data)
            image = cv2.imdecode(np.frombuffer(raw, np.uint8), cv2.IMREAD_COLOR)
            if image is None:
                raise exceptions.invalid_frame("could not decode image")
            try:
                return ImageFrame.from_bgr(image, on_close=release)
            except (ValueError, cv2.error) as e:
                raise exceptions.invalid_frame(f"cannot convert image: {e}") from None

        if not message.width or not message.height:
            raise exceptions.invalid_frame("width and height are required")

        is_valid, error = self._size_validator.validate(message.width, message.height)
        if not is_valid:
            raise exceptions.invalid_frame(error)

        planes = [
            Plane(self._decode_base64(p.data), p.row_stride, p.pixel_stride)
            for p in message.planes
        ]
        return ImageFrame(pixel_format, message.width, message.height, planes, on_close=release)


class ScannerWebSocketHandler:
    """
    Handler for QR scanning WebSocket connections.

    Manages the lifecycle of a scanning session including:
    - Camera permission handshake
    - Pipeline and analysis worker setup
    - Frame intake with backpressure
    - Result delivery and navigation back
    """

    def __init__(self, websocket: WebSocket, scan_service: ScanService, navigator: Navigator):
        self._websocket = websocket
        self._scan_service = scan_service
        self._navigator = navigator
        self._source = SocketFrameSource(get_settings().max_frame_bytes)
        self._pipeline: Optional[ScanPipeline] = None
        self._analysis: Optional[ImageAnalysis] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._result: Optional[asyncio.Future] = None
        self._navigated = False
        self._closed = False

    async def send_error(self, message: str, code: str = "ERROR") -> None:
        """Send error message to client."""
        await self._websocket.send_json({
            "type": "error",
            "code": code,
            "message": message
        })

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            await self._websocket.close()

    # =========================================================================
    # SESSION SETUP
    # =========================================================================

    async def handle_init(self, data: dict) -> bool:
        """Handle init message from client."""
        if data.get("type") != "init":
            await self.send_error("First message must be 'init'", "INIT_REQUIRED")
            return False

        try:
            init = InitMessage.model_validate(data)
        except ValidationError as e:
            await self.send_error(str(e.errors()[0]["msg"]), "INVALID_INIT")
            return False

        self._navigator.navigate(Route.SCAN)
        self._navigated = True

        if not init.granted:
            logger.info("📵 Camera permission denied by client")
            await self._websocket.send_json({"type": "no_camera"})
            return False

        self._start_session()
        await self._websocket.send_json({"type": "ready"})
        return True

    def _start_session(self) -> None:
        loop = asyncio.get_running_loop()
        self._result = loop.create_future()

        def on_result(text: str) -> None:
            # Runs on the analysis worker
            loop.call_soon_threadsafe(self._set_result, text)

        self._pipeline = self._scan_service.new_pipeline(on_result)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ws-qr-analysis")
        self._analysis = ImageAnalysis()
        self._analysis.set_analyzer(self._executor, self._pipeline.analyze)

    def _set_result(self, text: str) -> None:
        if self._result is not None and not self._result.done():
            self._result.set_result(text)

    def _finish(self) -> None:
        if self._analysis is not None:
            self._analysis.clear_analyzer()
        if self._executor is not None:
            # An in-flight decode finishes on its own; its result is discarded
            self._executor.shutdown(wait=False)
        if self._navigated:
            self._navigator.pop_back_stack()
            self._navigated = False
        if self._pipeline is not None:
            logger.info(f"📊 Session stats: {self._pipeline.stats.to_dict()}")

    # =========================================================================
    # FRAMES & RESULTS
    # =========================================================================

    async def handle_frame(self, data: dict) -> None:
        """Handle frame message from client."""
        try:
            message = FrameMessage.model_validate(data)
        except ValidationError as e:
            await self.send_error(str(e.errors()[0]["msg"]), "INVALID_FRAME")
            return

        try:
            delivered = self._analysis.submit(
                lambda release: self._source.build(message, release)
            )
        except AppException as e:
            await self.send_error(e.message, e.code)
            return

        if not delivered:
            logger.debug("Frame dropped, analyzer busy")

    async def send_result(self, text: str) -> None:
        result = self._scan_service.build_result(text, self._pipeline.stats.frames_received)
        await self._websocket.send_json({"type": "result", **result.model_dump()})

    async def run(self) -> None:
        """Main handler loop."""
        await self._websocket.accept()
        logger.info("📱 Scanner WebSocket connected")

        receiver: Optional[asyncio.Future] = None
        try:
            init_data = await self._websocket.receive_json()
            if not await self.handle_init(init_data):
                return

            while True:
                if receiver is None:
                    receiver = asyncio.ensure_future(self._websocket.receive_json())

                done, _ = await asyncio.wait(
                    {receiver, self._result},
                    return_when=asyncio.FIRST_COMPLETED
                )

                if self._result in done:
                    await self.send_result(self._result.result())
                    break

                data = receiver.result()
                receiver = None

                if data.get("type") == "frame":
                    await self.handle_frame(data)

                elif data.get("type") == "stop":
                    logger.info("🛑 Client requested stop")
                    break

                else:
                    await self.send_error(f"Unknown message type: {data.get('type')}", "UNKNOWN_TYPE")

        except WebSocketDisconnect:
            self._closed = True
            logger.info("📱 Client disconnected")
        except Exception as e:
            logger.exception(f"WebSocket error: {e}")
            error = exceptions.internal_error()
            try:
                await self.send_error(error.message, error.code)
            except Exception:
                pass
        finally:
            if receiver is not None and not receiver.done():
                receiver.cancel()
            self._finish()
            try:
                await self.close()
            except RuntimeError as e:
                logger.debug(f"Close after disconnect: {e}")
            logger.info("✅ Scanner WebSocket closed")


@router.websocket("/ws/scan")
async def websocket_scan(
    websocket: WebSocket,
    scan_service: ScanService = Depends(get_scan_service),
    navigator: Navigator = Depends(get_navigator)
):
    """Real-time QR scanning via WebSocket."""
    handler = ScannerWebSocketHandler(websocket, scan_service, navigator)
    await handler.run()
