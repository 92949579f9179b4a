"""
Exception types for Open Photo.

Numeric range problems and missing layer ids are never raised; they are
recovered where they happen. Everything below is either recovered by the
renderer (ResourceLoadFailure) or surfaced to the caller.
"""

from typing import Any, Dict, Optional


class PhotoEditorError(Exception):
    """Base exception for Open Photo."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ResourceLoadFailure(PhotoEditorError):
    """A font or sticker image could not be loaded or decoded."""

    def __init__(self, resource: str, reason: str):
        super().__init__(
            message=f"Failed to load resource {resource!r}: {reason}",
            details={"resource": resource, "reason": reason},
        )
        self.resource = resource
        self.reason = reason


class ImageDecodeError(PhotoEditorError):
    """Source bytes could not be decoded into an image."""


class ExportFailure(PhotoEditorError):
    """The composited surface could not be encoded."""


class PhotoStoreError(PhotoEditorError):
    """The photo store could not be reached or rejected the request."""


class PhotoNotFoundError(PhotoStoreError):
    """Raised when a photo id is not present in the store."""

    def __init__(self, photo_id: int):
        super().__init__(
            message=f"Photo not found: {photo_id}",
            details={"photo_id": photo_id},
        )
        self.photo_id = photo_id
