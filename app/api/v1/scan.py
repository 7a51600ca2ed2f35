"""
==============================================================================
Camera Scan Endpoints
==============================================================================

Scan a QR code with a camera attached to the server.

The session blocks until a code is found, so it runs in the threadpool.

==============================================================================
"""

from typing import Optional

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from app.core.dependencies import get_scan_service
from app.schemas.scan import CameraScanRequest, ScanResultResponse
from app.services import ScanService


router = APIRouter(prefix="/scan", tags=["Scan"])


@router.post("/camera", response_model=ScanResultResponse)
async def scan_camera(
    request: Optional[CameraScanRequest] = None,
    scan_service: ScanService = Depends(get_scan_service)
):
    """
    Scan one QR code from a local camera.

    Errors: CAMERA_UNAVAILABLE (403), SCAN_TIMEOUT (408), SCAN_IN_PROGRESS (409).
    """
    request = request or CameraScanRequest()
    return await run_in_threadpool(
        scan_service.scan_camera,
        request.camera_index,
        request.timeout_seconds
    )
