"""Exception types shared by the publish step and the activity store."""

from __future__ import annotations


class WisecompanionError(RuntimeError):
    """Base class for errors raised by wisecompanion."""


class UpstreamFetchError(WisecompanionError):
    """Raised when an HTTP fetch fails or returns a non-success status."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DataFormatError(WisecompanionError):
    """Raised when a payload is not valid JSON or has the wrong shape."""


class LoadError(WisecompanionError):
    """Raised when the activity snapshot could not be loaded."""


__all__ = ["WisecompanionError", "UpstreamFetchError", "DataFormatError", "LoadError"]
