"""
==============================================================================
Scanner WebSocket Tests
==============================================================================

Tests for the /ws/scan protocol.

==============================================================================
"""

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.core.dependencies import get_navigator
from app.services import ScanService

from conftest import blank_luma, qr_luma, yuv_planes


def planar_message(luma, b64, pixel_format="yuv_420_888"):
    height, width = luma.shape
    return {
        "type": "frame",
        "format": pixel_format,
        "width": width,
        "height": height,
        "planes": [
            {
                "data": b64(bytes(plane.buffer)),
                "row_stride": plane.row_stride,
                "pixel_stride": plane.pixel_stride,
            }
            for plane in yuv_planes(luma)
        ],
    }


def start_session(ws) -> None:
    ws.send_json({"type": "init", "camera_permission": "granted"})
    assert ws.receive_json() == {"type": "ready"}


class TestHandshake:
    """Tests for the init message."""

    def test_permission_denied(self, client: TestClient):
        with client.websocket_connect("/ws/scan") as ws:
            ws.send_json({"type": "init", "camera_permission": "denied"})
            assert ws.receive_json() == {"type": "no_camera"}

        assert get_navigator().current.value == "main"

    def test_init_required(self, client: TestClient):
        with client.websocket_connect("/ws/scan") as ws:
            ws.send_json({"type": "frame", "format": "jpeg"})
            message = ws.receive_json()

        assert message["type"] == "error"
        assert message["code"] == "INIT_REQUIRED"

    def test_invalid_permission_value(self, client: TestClient):
        with client.websocket_connect("/ws/scan") as ws:
            ws.send_json({"type": "init", "camera_permission": "maybe"})
            message = ws.receive_json()

        assert message["code"] == "INVALID_INIT"

    def test_navigates_to_scan_screen(self, client: TestClient):
        with client.websocket_connect("/ws/scan") as ws:
            start_session(ws)
            assert get_navigator().current.value == "scan"
            ws.send_json({"type": "stop"})


class TestFrames:
    """Tests for frame intake and results."""

    def test_planar_frame_resolves(self, client: TestClient, hello_luma, b64):
        with client.websocket_connect("/ws/scan") as ws:
            start_session(ws)
            ws.send_json(planar_message(hello_luma, b64))
            result = ws.receive_json()

        assert result["type"] == "result"
        assert result["text"] == "HELLO"
        assert result["vibrate"] is True
        assert result["open_url"] is None
        assert get_navigator().back_stack[-1].value == "main"

    def test_jpeg_frame_resolves(self, client: TestClient, hello_bgr, b64):
        ok, encoded = cv2.imencode(".jpg", hello_bgr)
        assert ok

        with client.websocket_connect("/ws/scan") as ws:
            start_session(ws)
            ws.send_json({"type": "frame", "format": "JPEG", "data": b64(encoded.tobytes())})
            result = ws.receive_json()

        assert result["text"] == "HELLO"

    def test_link_opens_when_enabled(self, client: TestClient, b64):
        url = "https://example.com/a"
        client.patch("/api/v1/settings", json={"auto_open_links": True})

        with client.websocket_connect("/ws/scan") as ws:
            start_session(ws)
            ws.send_json(planar_message(qr_luma(url), b64))
            result = ws.receive_json()

        assert result["is_link"] is True
        assert result["open_url"] == url

    def test_unsupported_format_ignored_until_stop(self, client: TestClient, hello_luma, b64):
        with client.websocket_connect("/ws/scan") as ws:
            start_session(ws)
            ws.send_json(planar_message(hello_luma, b64, pixel_format="rgba_8888"))
            ws.send_json({"type": "stop"})
            with pytest.raises(WebSocketDisconnect):
                ws.receive_json()

        assert get_navigator().current.value == "main"

    def test_blank_frames_produce_no_result(self, client: TestClient, b64):
        with client.websocket_connect("/ws/scan") as ws:
            start_session(ws)
            for _ in range(3):
                ws.send_json(planar_message(blank_luma(), b64))
            ws.send_json({"type": "stop"})
            with pytest.raises(WebSocketDisconnect):
                ws.receive_json()

    def test_bad_base64(self, client: TestClient):
        with client.websocket_connect("/ws/scan") as ws:
            start_session(ws)
            ws.send_json({
                "type": "frame",
                "format": "yuv_420_888",
                "width": 4,
                "height": 4,
                "planes": [{"data": "not base64!", "row_stride": 4}],
            })
            message = ws.receive_json()
            ws.send_json({"type": "stop"})

        assert message["type"] == "error"
        assert message["code"] == "INVALID_FRAME"

    def test_missing_dimensions(self, client: TestClient, b64):
        with client.websocket_connect("/ws/scan") as ws:
            start_session(ws)
            ws.send_json({
                "type": "frame",
                "format": "yuv_420_888",
                "planes": [{"data": b64(b"\x00" * 16), "row_stride": 4}],
            })
            message = ws.receive_json()
            ws.send_json({"type": "stop"})

        assert message["code"] == "INVALID_FRAME"

    def test_unknown_message_type(self, client: TestClient):
        with client.websocket_connect("/ws/scan") as ws:
            start_session(ws)
            ws.send_json({"type": "zoom"})
            message = ws.receive_json()
            ws.send_json({"type": "stop"})

        assert message["code"] == "UNKNOWN_TYPE"

    def test_unconvertible_jpeg_keeps_session(self, client: TestClient, hello_luma, b64):
        """A one-pixel-high image is rejected and the next frame still scans."""
        ok, encoded = cv2.imencode(".jpg", np.full((1, 40, 3), 128, dtype=np.uint8))
        assert ok

        with client.websocket_connect("/ws/scan") as ws:
            start_session(ws)
            ws.send_json({"type": "frame", "format": "jpeg", "data": b64(encoded.tobytes())})
            error = ws.receive_json()
            ws.send_json(planar_message(hello_luma, b64))
            result = ws.receive_json()

        assert error["type"] == "error"
        assert error["code"] == "INVALID_FRAME"
        assert result["type"] == "result"
        assert result["text"] == "HELLO"

    def test_unexpected_failure_reports_internal_error(self, client: TestClient, hello_luma, b64, monkeypatch):
        def broken(self, text, frames_analyzed=0):
            raise RuntimeError("result rendering failed")

        monkeypatch.setattr(ScanService, "build_result", broken)

        with client.websocket_connect("/ws/scan") as ws:
            start_session(ws)
            ws.send_json(planar_message(hello_luma, b64))
            message = ws.receive_json()

        assert message["type"] == "error"
        assert message["code"] == "INTERNAL_ERROR"
        assert get_navigator().current.value == "main"
