"""
Listing reconstruction.

Rebuilds the gallery view from what is in the bucket. Two strategies exist:

- ``MetadataRecordListing`` lists ``meta/`` and trusts one JSON record per
  photo. A photo whose record was never written is simply not listed.
- ``ObjectHeaderListing`` lists every object and reads visibility from the
  original's attributes. It cannot show uploader names, because those are
  never placed in attributes.

Both sort newest first and drop private photos for non-admin callers. A
failure on a single photo is logged and that photo skipped; only a failed
bucket listing fails the whole call.
"""

from datetime import UTC, datetime

from ..config import Settings
from ..errors import PhotoShareError
from ..logging_config import get_logger, log_performance
from ..models.photo import (
    METADATA_PREFIX,
    THUMBNAILS_PREFIX,
    PhotoEntry,
    PhotoRecord,
    Visibility,
    photo_id_from_key,
)
from .storage import BlobStore, ObjectInfo

logger = get_logger(__name__)

METADATA_RECORD_MODE = "metadata_record"
OBJECT_HEADERS_MODE = "object_headers"

_EPOCH = datetime.fromtimestamp(0, UTC)


def newest_first(objects: list[ObjectInfo]) -> list[ObjectInfo]:
    """Sort by last-modified descending; ties fall back to key descending."""
    return sorted(objects, key=lambda o: (o.updated or _EPOCH, o.key), reverse=True)


def is_visible(visibility: Visibility, is_admin: bool) -> bool:
    return is_admin or visibility is Visibility.PUBLIC


class MetadataRecordListing:
    """Listing driven by the ``meta/<id>.json`` records."""

    def __init__(self, store: BlobStore, ttl_seconds: int) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds

    def list_photos(self, is_admin: bool) -> list[PhotoEntry]:
        photos = []
        for info in newest_first(self.store.list(METADATA_PREFIX)):
            try:
                record = PhotoRecord.from_json(self.store.get(info.key))
                if not is_visible(record.visibility, is_admin):
                    continue
                entry = PhotoEntry(
                    id=record.id,
                    name=record.original_key,
                    uploader=record.uploader,
                    signed_url=self.store.signed_read_url(record.original_key, self.ttl_seconds),
                    signed_thumb_url=self.store.signed_read_url(record.thumb_key, self.ttl_seconds),
                    visibility=record.visibility,
                    updated=info.updated,
                )
            except PhotoShareError as e:
                logger.warning("metadata_record_skipped", key=info.key, error=str(e))
                continue

            self._enrich(entry)
            photos.append(entry)
        return photos

    def _enrich(self, entry: PhotoEntry) -> None:
        """Add size, content type and update time of the original, if available."""
        try:
            head = self.store.head(entry.name)
        except PhotoShareError as e:
            logger.debug("listing_enrichment_skipped", key=entry.name, error=str(e))
            return
        entry.size = head.size
        entry.content_type = head.content_type
        entry.updated = head.updated or entry.updated


class ObjectHeaderListing:
    """Listing driven by object attributes, without metadata records."""

    def __init__(self, store: BlobStore, ttl_seconds: int) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds

    def list_photos(self, is_admin: bool) -> list[PhotoEntry]:
        thumbnails = set()
        originals = []
        for info in self.store.list():
            if info.key.startswith(THUMBNAILS_PREFIX):
                thumbnails.add(info.key)
            elif info.key.startswith(METADATA_PREFIX):
                continue
            else:
                originals.append(info)

        photos = []
        for info in newest_first(originals):
            try:
                head = self.store.head(info.key)
                visibility = Visibility.parse(head.attributes.get("visibility"))
                if not is_visible(visibility, is_admin):
                    continue

                signed_url = self.store.signed_read_url(info.key, self.ttl_seconds)
                thumb_key = head.attributes.get("thumb")
                if thumb_key and thumb_key in thumbnails:
                    signed_thumb_url = self.store.signed_read_url(thumb_key, self.ttl_seconds)
                else:
                    logger.debug("thumbnail_fallback_to_original", key=info.key, thumb_key=thumb_key)
                    signed_thumb_url = signed_url

            except PhotoShareError as e:
                logger.warning("original_skipped", key=info.key, error=str(e))
                continue

            photos.append(
                PhotoEntry(
                    id=photo_id_from_key(info.key),
                    name=info.key,
                    signed_url=signed_url,
                    signed_thumb_url=signed_thumb_url,
                    visibility=visibility,
                    updated=head.updated or info.updated,
                    size=head.size,
                    content_type=head.content_type,
                )
            )
        return photos


class ListingService:
    """Chooses the listing strategy from settings and times each call."""

    def __init__(self, store: BlobStore, settings: Settings) -> None:
        self.store = store
        self.settings = settings
        ttl = settings.signed_url_expires_seconds

        if settings.listing_mode == METADATA_RECORD_MODE:
            self.strategy: MetadataRecordListing | ObjectHeaderListing = MetadataRecordListing(store, ttl)
        elif settings.listing_mode == OBJECT_HEADERS_MODE:
            self.strategy = ObjectHeaderListing(store, ttl)
        else:
            raise ValueError(
                f"Unknown LISTING_MODE '{settings.listing_mode}'. "
                f"Use '{METADATA_RECORD_MODE}' or '{OBJECT_HEADERS_MODE}'"
            )

    def list_photos(self, is_admin: bool) -> list[PhotoEntry]:
        """
        Build the listing for one caller.

        Raises:
            StorageError: If the bucket listing itself fails
        """
        start_time = datetime.now()
        photos = self.strategy.list_photos(is_admin)

        log_performance(
            "list_photos",
            (datetime.now() - start_time).total_seconds(),
            mode=self.settings.listing_mode,
            admin=is_admin,
            count=len(photos),
        )
        return photos
