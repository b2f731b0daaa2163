#!/usr/bin/env python3
"""
Exception hierarchy for fetching, extraction, composition and delivery
"""

from typing import Optional, Sequence


class ClippingsError(Exception):
    """Base exception for all Clippings failures"""
    pass


class FetchError(ClippingsError):
    """Network or HTTP failure while retrieving a URL"""

    def __init__(self, url: str, message: str, status: Optional[int] = None):
        self.url = url
        self.status = status
        super().__init__(message)


class ParseError(ClippingsError):
    """Markup could not be parsed"""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(message)


class ExtractionError(ClippingsError):
    """No article content could be extracted"""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(message)


class EmptyInputError(ClippingsError):
    """No URLs were given, or every URL failed"""

    def __init__(self, message: str, skipped: Sequence[str] = ()):
        self.skipped = list(skipped)
        super().__init__(message)


class LayoutError(ClippingsError):
    """Unrecoverable composition failure"""
    pass


class DeliveryError(ClippingsError):
    """Mail transport is not configured or failed"""
    pass


class ConfigurationError(ClippingsError, ValueError):
    """Invalid configuration value"""
    pass
