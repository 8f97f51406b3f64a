"""
Manifest error hierarchy.

Load-time errors are fatal to stage startup; lookup errors are per-event.
"""

from __future__ import annotations


class ManifestError(Exception):
    """Base class for all manifest errors."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


class ManifestKeyNotFoundError(ManifestError, KeyError):
    """Raised when removing an origin path that has no mapping."""

    def __init__(self, key: str):
        super().__init__(f'Key "{key}" is not in the manifest')
        self.key = key

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class ManifestIOError(ManifestError, OSError):
    """Raised when a snapshot file cannot be read or written."""

    def __init__(self, message: str, path: str, original_error: Exception | None = None):
        super().__init__(message, original_error)
        self.path = path

    def __str__(self) -> str:
        # OSError would otherwise format errno and filename fields
        return str(self.args[0])


class ManifestParseError(ManifestError, ValueError):
    """Raised when snapshot content is not valid JSON or has the wrong shape."""

    pass
