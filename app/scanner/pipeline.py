"""
==============================================================================
Scan Pipeline Module
==============================================================================

Single-shot frame-to-result scanning.

The pipeline turns camera frames into decode attempts and produces at
most one result per instance:

    IDLE ──(decode success)──► RESOLVED

RESOLVED is terminal. A new scanning session needs a new pipeline.

Guarantees:
-----------
- Every frame passed to analyze() is closed exactly once
- on_result is invoked at most once
- Nothing raised while decoding or in callbacks escapes analyze()
- decoder.reset() runs after every decode attempt

Threading:
----------
analyze() is driven by one serial analysis worker, so the pipeline state
needs no locking. on_result runs on that worker; hosts marshal it onto
their own context.

==============================================================================
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import asdict, dataclass
from typing import Callable, Optional

from app.scanner.errors import DecodeNotFound
from app.scanner.frames import Frame, LuminanceGrid


# Module logger
logger = logging.getLogger(__name__)


class ScanState(str, enum.Enum):
    """Pipeline state."""

    IDLE = "idle"
    RESOLVED = "resolved"


@dataclass
class PipelineStats:
    """Per-session counters, mainly for diagnostics."""

    frames_received: int = 0
    frames_skipped: int = 0
    frames_ignored: int = 0
    decode_attempts: int = 0
    not_found: int = 0
    faults: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class ScanPipeline:
    """
    At-most-once QR scan pipeline.

    Attributes:
        decoder: Object with decode(grid) -> str and reset()

    Example:
        >>> pipeline = ScanPipeline(QrDecoder(), on_result=print)
        >>> analysis.set_analyzer(executor, pipeline.analyze)
        >>> text = pipeline.wait(timeout=30)
    """

    def __init__(
        self,
        decoder,
        on_result: Optional[Callable[[str], None]] = None,
        on_fault: Optional[Callable[[BaseException], None]] = None
    ) -> None:
        self._decoder = decoder
        self._on_result = on_result
        self._on_fault = on_fault
        self._state = ScanState.IDLE
        self._result: Optional[str] = None
        self._resolved = threading.Event()
        self._stats = PipelineStats()

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def is_resolved(self) -> bool:
        return self._state is ScanState.RESOLVED

    @property
    def result(self) -> Optional[str]:
        """Decoded text, or None while IDLE."""
        return self._result

    @property
    def stats(self) -> PipelineStats:
        return self._stats

    def wait(self, timeout: Optional[float] = None) -> Optional[str]:
        """
        Block until the pipeline resolves.

        Returns:
            The result, or None if the timeout expired first
        """
        self._resolved.wait(timeout)
        return self._result

    # =========================================================================
    # FRAME ANALYSIS
    # =========================================================================

    def analyze(self, frame: Frame) -> None:
        """
        Analyze one frame. Always closes the frame, never raises.

        Args:
            frame: Camera frame; ownership passes to the pipeline
        """
        self._stats.frames_received += 1
        try:
            if self._state is ScanState.RESOLVED:
                self._stats.frames_skipped += 1
                return

            if not frame.format.is_planar_yuv:
                self._stats.frames_ignored += 1
                logger.debug(f"Ignoring frame with encoding {frame.format.value}")
                return

            text = self._attempt(frame)
            if text is not None:
                self._resolve(text)
        finally:
            self._release(frame)

    # Alias matching the camera callback name
    on_frame = analyze

    @staticmethod
    def _release(frame: Frame) -> None:
        try:
            frame.close()
        except Exception as e:
            logger.error(f"Release of {frame!r} failed: {e}")

    def _attempt(self, frame: Frame) -> Optional[str]:
        """One decode attempt; returns None for not-found and faults."""
        self._stats.decode_attempts += 1
        try:
            grid = LuminanceGrid.from_frame(frame)
            return self._decoder.decode(grid)
        except DecodeNotFound:
            self._stats.not_found += 1
            return None
        except Exception as e:
            self._stats.faults += 1
            logger.exception(f"Decoder fault on {frame!r}: {e}")
            self._report_fault(e)
            return None
        finally:
            self._decoder.reset()

    def _resolve(self, text: str) -> None:
        self._state = ScanState.RESOLVED
        self._result = text
        self._resolved.set()
        logger.info(f"✅ QR code found: {text}")

        if self._on_result is None:
            return
        try:
            self._on_result(text)
        except Exception as e:
            logger.error(f"Result callback failed: {e}")

    def _report_fault(self, error: BaseException) -> None:
        if self._on_fault is None:
            return
        try:
            self._on_fault(error)
        except Exception as e:
            logger.error(f"Fault callback failed: {e}")
