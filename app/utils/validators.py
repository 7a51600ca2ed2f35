"""
==============================================================================
Validation Utilities Module
==============================================================================

Validation classes for scan payloads and incoming frames.

This module implements:
- LinkValidator: Detects web links in decoded QR payloads
- FrameSizeValidator: Validates frame dimensions received from clients

Link Rules:
-----------
- Scheme must be http or https
- Host must be present
- Surrounding whitespace is ignored

==============================================================================
"""

from __future__ import annotations

from typing import Optional, Tuple
from urllib.parse import urlsplit


class LinkValidator:
    """
    Validator for web links decoded from QR codes.

    Example:
        >>> validator = LinkValidator()
        >>> is_link, normalized, error = validator.validate(" https://example.com ")
        >>> print(normalized)
        'https://example.com'
    """

    SCHEMES = ("http", "https")
    MAX_LENGTH = 2048

    def validate(self, text: str) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Check whether a payload is a web link.

        Args:
            text: Decoded QR payload

        Returns:
            Tuple of (is_link, normalized_link, reason)
            - If link: (True, "https://...", None)
            - Otherwise: (False, None, "Reason")
        """
        if not text:
            return False, None, "Payload is empty"

        text = text.strip()

        if len(text) > self.MAX_LENGTH:
            return False, None, f"Link must be at most {self.MAX_LENGTH} characters"

        if any(c.isspace() for c in text):
            return False, None, "Link cannot contain whitespace"

        try:
            parts = urlsplit(text)
        except ValueError:
            return False, None, "Payload is not a URL"

        if parts.scheme.lower() not in self.SCHEMES:
            return False, None, "Scheme must be http or https"

        if not parts.netloc:
            return False, None, "Link has no host"

        return True, text, None

    def is_link(self, text: str) -> bool:
        """Quick validation check."""
        is_link, _, _ = self.validate(text)
        return is_link


class FrameSizeValidator:
    """
    Validator for frame dimensions sent by clients.
    """

    MAX_DIMENSION = 8192

    def validate(self, width: int, height: int) -> Tuple[bool, Optional[str]]:
        """
        Validate frame dimensions.

        Args:
            width: Frame width in pixels
            height: Frame height in pixels

        Returns:
            Tuple of (is_valid, error_message)
        """
        if width <= 0 or height <= 0:
            return False, "Frame dimensions must be positive"

        if width > self.MAX_DIMENSION or height > self.MAX_DIMENSION:
            return False, f"Frame dimensions cannot exceed {self.MAX_DIMENSION}"

        return True, None
