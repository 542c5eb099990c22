"""
Models module for photoshare.

This module contains the data models shared by services and the HTTP layer:
- Visibility, PhotoKeys, PhotoRecord, PhotoEntry: the per-photo model
- UploadSuccess, ListingSuccess, ErrorResult: tagged response results
"""

from .photo import (
    METADATA_PREFIX,
    ORIGINALS_PREFIX,
    THUMBNAILS_PREFIX,
    PhotoEntry,
    PhotoKeys,
    PhotoRecord,
    Visibility,
    is_attribute_safe,
    photo_id_from_key,
)
from .results import ErrorResult, ListingResult, ListingSuccess, UploadResult, UploadSuccess

__all__ = [
    "METADATA_PREFIX",
    "ORIGINALS_PREFIX",
    "THUMBNAILS_PREFIX",
    "PhotoEntry",
    "PhotoKeys",
    "PhotoRecord",
    "Visibility",
    "is_attribute_safe",
    "photo_id_from_key",
    "ErrorResult",
    "ListingResult",
    "ListingSuccess",
    "UploadResult",
    "UploadSuccess",
]
