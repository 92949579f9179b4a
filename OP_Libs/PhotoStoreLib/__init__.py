"""
PhotoStoreLib - Photo storage

Local directory-backed and REST-backed photo stores sharing one interface.
"""

from OP_Libs.PhotoStoreLib.photo_store import (
    Photo,
    PhotoStore,
    LocalPhotoStore,
    validate_upload,
    sanitize_filename,
)
from OP_Libs.PhotoStoreLib.http_photo_store import HttpPhotoStore

__all__ = [
    "Photo",
    "PhotoStore",
    "LocalPhotoStore",
    "HttpPhotoStore",
    "validate_upload",
    "sanitize_filename",
]
