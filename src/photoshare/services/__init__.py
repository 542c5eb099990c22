"""
Services module for photoshare.

This module contains the service classes that carry the upload/listing logic:
- StorageService: Google Cloud Storage blob store adapter
- ImageProcessor: Thumbnail generation
- UploadService: The three-write upload transaction
- ListingService: Gallery reconstruction from stored objects
- AccessGate: Admin secret check
"""

from .auth import ADMIN_HEADER_NAME, AccessGate
from .identifiers import NameTimestampMinter, RandomIdMinter, get_id_minter
from .image_processor import ImageProcessor
from .listing import ListingService, MetadataRecordListing, ObjectHeaderListing
from .storage import BlobStore, ObjectInfo, StorageService
from .upload import UploadSaga, UploadService

__all__ = [
    "ADMIN_HEADER_NAME",
    "AccessGate",
    "NameTimestampMinter",
    "RandomIdMinter",
    "get_id_minter",
    "ImageProcessor",
    "ListingService",
    "MetadataRecordListing",
    "ObjectHeaderListing",
    "BlobStore",
    "ObjectInfo",
    "StorageService",
    "UploadSaga",
    "UploadService",
]
