"""
==============================================================================
QR Decoder Module
==============================================================================

Thin wrapper around pyzbar (ZBar) restricted to a single symbology.

The decoder keeps per-attempt state (the candidate symbols of the last
call and whether the inverted-image retry was used). reset() clears it,
and the scan pipeline calls reset() after every attempt so consecutive
frames are decoded independently.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

import numpy as np
from pyzbar.pyzbar import ZBarSymbol, decode

from app.scanner.errors import DecodeNotFound, DecoderFault
from app.scanner.frames import LuminanceGrid


# Module logger
logger = logging.getLogger(__name__)


class DecodeHint:
    """Hint keys accepted by QrDecoder.set_hints()."""

    POSSIBLE_FORMATS = "possible_formats"
    ALSO_INVERTED = "also_inverted"
    CHARACTER_SET = "character_set"


DEFAULT_HINTS: Dict[str, Any] = {
    DecodeHint.POSSIBLE_FORMATS: [ZBarSymbol.QRCODE],
    DecodeHint.ALSO_INVERTED: False,
    DecodeHint.CHARACTER_SET: "utf-8",
}


class QrDecoder:
    """
    QR-only luminance decoder.

    Example:
        >>> decoder = QrDecoder()
        >>> try:
        ...     text = decoder.decode(grid)
        ... except DecodeNotFound:
        ...     text = None
        ... finally:
        ...     decoder.reset()
    """

    def __init__(self, hints: Optional[Dict[str, Any]] = None) -> None:
        self._hints: Dict[str, Any] = dict(DEFAULT_HINTS)
        self._candidates: List[Any] = []
        self._inverted_used = False
        if hints:
            self.set_hints(hints)

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def set_hints(self, hints: Dict[str, Any]) -> None:
        """
        Merge decode hints.

        Raises:
            ValueError: If the format allow-list is empty
        """
        merged = dict(self._hints)
        merged.update(hints)
        formats = list(merged[DecodeHint.POSSIBLE_FORMATS])
        if not formats:
            raise ValueError("At least one symbology is required")
        merged[DecodeHint.POSSIBLE_FORMATS] = formats
        self._hints = merged

    @property
    def hints(self) -> Dict[str, Any]:
        return dict(self._hints)

    @property
    def symbols(self) -> List[ZBarSymbol]:
        return list(self._hints[DecodeHint.POSSIBLE_FORMATS])

    @property
    def candidates(self) -> List[Any]:
        """Symbols found by the last decode call (cleared by reset)."""
        return list(self._candidates)

    @property
    def inverted_used(self) -> bool:
        return self._inverted_used

    # =========================================================================
    # DECODING
    # =========================================================================

    def _scan(self, pixels: np.ndarray) -> List[Any]:
        try:
            return decode(pixels, symbols=self.symbols)
        except Exception as e:
            raise DecoderFault(f"ZBar decode failed: {e}", cause=e) from e

    def decode(self, grid: LuminanceGrid) -> str:
        """
        Decode the first QR code in a luminance grid.

        Args:
            grid: Luma plane of a frame

        Returns:
            Decoded text payload

        Raises:
            DecodeNotFound: No QR code in the grid
            DecoderFault: ZBar failed or the payload is not valid text
        """
        pixels = grid.cropped()
        symbols = self._scan(pixels)

        if not symbols and self._hints[DecodeHint.ALSO_INVERTED]:
            self._inverted_used = True
            symbols = self._scan(np.ascontiguousarray(255 - pixels))

        self._candidates = symbols
        if not symbols:
            raise DecodeNotFound()

        charset = self._hints[DecodeHint.CHARACTER_SET]
        try:
            text = symbols[0].data.decode(charset)
        except (UnicodeDecodeError, LookupError) as e:
            raise DecoderFault(f"Payload is not {charset} text", cause=e) from e

        logger.debug(f"Decoded {symbols[0].type} ({len(text)} chars)")
        return text

    def reset(self) -> None:
        """Clear per-attempt state."""
        self._candidates = []
        self._inverted_used = False


def qr_decoder(also_inverted: bool = False, symbols: Optional[Iterable[ZBarSymbol]] = None) -> QrDecoder:
    """Build a decoder with the configured allow-list."""
    hints = {DecodeHint.ALSO_INVERTED: also_inverted}
    if symbols is not None:
        hints[DecodeHint.POSSIBLE_FORMATS] = list(symbols)
    return QrDecoder(hints)
