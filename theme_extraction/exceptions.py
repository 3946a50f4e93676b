"""
Exception hierarchy for theme extraction.

Analyzers raise only on genuinely unusable input; the theme generator
never raises. Fetch failures are surfaced to the caller for retry decisions.
"""

from typing import Optional, Dict, Any


class ThemeExtractionError(Exception):
    """Base exception for all theme extraction errors"""

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.cause = cause
        self.context = context or {}

    def __str__(self):
        parts = [super().__str__()]
        if self.cause:
            parts.append(f" (caused by: {type(self.cause).__name__}: {str(self.cause)})")
        if self.context:
            parts.append(f" Context: {self.context}")
        return "".join(parts)


# === Color exceptions ===

class InvalidHex(ThemeExtractionError, ValueError):
    """Malformed hex color string"""

    def __init__(self, value: Any, **kwargs):
        super().__init__(f"Invalid hex color: {value!r}", **kwargs)
        self.value = value


# === Image exceptions ===

class ImageError(ThemeExtractionError):
    """Image analysis failed"""
    pass


class DecodeError(ImageError):
    """Unsupported or corrupt image bytes"""
    pass


class EmptyImageError(ImageError):
    """Image has a zero width or height"""

    def __init__(self, width: int, height: int, **kwargs):
        super().__init__(f"Image has no pixels ({width}x{height})", **kwargs)
        self.width = width
        self.height = height
        self.context.update({
            'width': width,
            'height': height
        })


# === Website exceptions ===

class ParseError(ThemeExtractionError):
    """HTML/CSS input could not be parsed at all"""
    pass


class FetchError(ThemeExtractionError):
    """Network fetch of a reference website or image failed"""

    def __init__(self, url: str, message: str, status: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.url = url
        self.status = status
        self.context.update({
            'url': url,
            'status': status
        })


# === Configuration exceptions ===

class ConfigurationError(ThemeExtractionError):
    """Configuration error"""
    pass


# === Recovery helpers ===

def is_recoverable(error: Exception) -> bool:
    """Check if the intake tooling may retry the failed step"""
    if isinstance(error, FetchError):
        # 4xx responses will not change on retry
        return error.status is None or error.status >= 500 or error.status == 429
    return False
