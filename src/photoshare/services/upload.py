"""Upload transaction: thumbnail, then original, thumbnail and metadata writes."""

import threading
from dataclasses import dataclass, field
from datetime import datetime

from ..config import Settings
from ..errors import PhotoShareError, UploadError
from ..logging_config import get_logger, log_performance
from ..models.photo import PhotoKeys, PhotoRecord, Visibility
from ..models.results import UploadSuccess
from .identifiers import IdentifierMinter, get_id_minter
from .image_processor import ImageProcessor
from .storage import BlobStore

logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = "image/jpeg"
METADATA_CONTENT_TYPE = "application/json; charset=utf-8"


@dataclass
class UploadSaga:
    """
    Record of the writes one upload has completed.

    Writes are never rolled back. When a later step fails, ``compensate``
    only logs the keys already written so an operator sweep can find them.
    """

    photo_id: str
    written: list[str] = field(default_factory=list)

    def record(self, step: str, key: str) -> None:
        self.written.append(key)
        logger.debug("upload_step_completed", photo_id=self.photo_id, step=step, key=key)

    def compensate(self, failed_step: str, error: Exception) -> None:
        for key in self.written:
            logger.warning(
                "compensation_skipped",
                photo_id=self.photo_id,
                orphan_key=key,
                failed_step=failed_step,
                error=str(error),
            )


def normalize_uploader(raw: str | None, default: str, max_length: int) -> str:
    """Trim, fall back to ``default`` when blank, and truncate to ``max_length``."""
    name = (raw or "").strip()
    if not name:
        return default
    return name[:max_length].rstrip() or default


class UploadService:
    """Runs one upload end to end against a blob store."""

    def __init__(
        self,
        store: BlobStore,
        settings: Settings,
        image_processor: ImageProcessor | None = None,
        id_minter: IdentifierMinter | None = None,
    ) -> None:
        self.store = store
        self.settings = settings
        self.image_processor = image_processor or ImageProcessor(
            max_size=settings.thumbnail_max_size,
            quality=settings.thumbnail_quality,
            max_file_size=settings.max_file_size,
        )
        self.id_minter = id_minter or get_id_minter(settings.id_strategy)

    def upload(
        self,
        image_data: bytes | None,
        uploader: str | None = None,
        visibility: str | None = None,
        content_type: str | None = None,
        cancelled: threading.Event | None = None,
    ) -> UploadSuccess:
        """
        Store one photo.

        Args:
            image_data: Uploaded image bytes
            uploader: Free-text display name, any script
            visibility: ``public`` or anything else for private
            content_type: MIME type reported by the client
            cancelled: Set by the caller once it has stopped waiting; checked
                before each write so an abandoned upload never gets its record

        Returns:
            UploadSuccess: Identifier, keys and resolved visibility

        Raises:
            ValidationError: No bytes or too many bytes; nothing written
            ImageProcessingError: Thumbnail failed; nothing written
            UploadError: A write failed or the upload was abandoned; earlier
                writes are left in place
        """
        start_time = datetime.now()

        self.image_processor.validate_file_size(image_data)
        image_data = bytes(image_data or b"")

        uploader_name = normalize_uploader(
            uploader, self.settings.default_uploader_name, self.settings.uploader_name_max_length
        )
        resolved_visibility = Visibility.parse(visibility)
        keys = PhotoKeys.for_id(self.id_minter.mint(uploader_name))

        logger.info(
            "upload_started",
            photo_id=keys.photo_id,
            size=len(image_data),
            visibility=resolved_visibility.value,
        )

        thumbnail_data = self.image_processor.generate_thumbnail(image_data)

        record = PhotoRecord.create_new(keys, uploader_name, resolved_visibility)
        saga = UploadSaga(keys.photo_id)
        steps = [
            (
                "original",
                keys.original_key,
                image_data,
                content_type or DEFAULT_CONTENT_TYPE,
                keys.original_attributes(resolved_visibility),
            ),
            (
                "thumbnail",
                keys.thumb_key,
                thumbnail_data,
                "image/jpeg",
                keys.thumbnail_attributes(resolved_visibility),
            ),
            ("metadata", keys.meta_key, record.to_json(), METADATA_CONTENT_TYPE, None),
        ]

        for step, key, data, step_content_type, attributes in steps:
            if cancelled is not None and cancelled.is_set():
                abandoned = UploadError(
                    f"Upload abandoned before writing {step}",
                    code="upload_abandoned",
                    details={"photo_id": keys.photo_id, "failed_step": step, "written": list(saga.written)},
                )
                saga.compensate(step, abandoned)
                raise abandoned
            try:
                self.store.put(key, data, step_content_type, attributes)
            except Exception as e:
                saga.compensate(step, e)
                if isinstance(e, PhotoShareError) and not saga.written:
                    raise
                raise UploadError(
                    f"Upload failed while writing {step}: {e}",
                    code=f"{step}_write_failed",
                    details={"photo_id": keys.photo_id, "failed_step": step, "written": list(saga.written)},
                    original_exception=e,
                ) from e
            saga.record(step, key)

        log_performance(
            "upload",
            (datetime.now() - start_time).total_seconds(),
            photo_id=keys.photo_id,
            original_size=len(image_data),
            thumbnail_size=len(thumbnail_data),
        )
        logger.info("upload_completed", photo_id=keys.photo_id, visibility=resolved_visibility.value)

        return UploadSuccess(
            id=keys.photo_id,
            bucket=self.store.bucket_name,
            keys=keys,
            visibility=resolved_visibility,
        )
