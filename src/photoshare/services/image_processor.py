"""Thumbnail generation for photoshare."""

import io
from datetime import datetime

from PIL import Image, ImageOps

from ..errors import ImageProcessingError, ValidationError
from ..logging_config import get_logger, log_performance

try:
    from pillow_heif import register_heif_opener  # type: ignore[import-untyped]

    register_heif_opener()
    HEIF_AVAILABLE = True
except ImportError:
    HEIF_AVAILABLE = False

logger = get_logger(__name__)

# EXIF tag 0x0112
ORIENTATION_TAG = 274
NORMAL_ORIENTATION = 1


class ImageProcessor:
    """Produces the listing thumbnail from uploaded image bytes."""

    def __init__(self, max_size: int = 600, quality: int = 70, max_file_size: int = 50 * 1024 * 1024) -> None:
        """
        Initialize the image processor.

        Args:
            max_size: Cap on the thumbnail's longer edge, in pixels
            quality: JPEG quality factor for the thumbnail
            max_file_size: Largest accepted upload, in bytes
        """
        self.max_size = max_size
        self.quality = quality
        self.max_file_size = max_file_size

        if not HEIF_AVAILABLE:
            logger.debug("heif_support_unavailable", message="Install pillow-heif for HEIC support")

    def validate_file_size(self, image_data: bytes | None) -> None:
        """
        Reject empty or oversized uploads before any processing.

        Raises:
            ValidationError: ``no_file`` (400) or ``file_too_large`` (413)
        """
        if not image_data:
            raise ValidationError("No file uploaded", code="no_file")
        self.validate_size(len(image_data))

    def validate_size(self, file_size: int) -> None:
        """Reject a byte count over ``max_file_size``, before or after reading the body."""
        if file_size > self.max_file_size:
            max_size_mb = self.max_file_size / (1024 * 1024)
            raise ValidationError(
                f"File is too large ({file_size / (1024 * 1024):.1f}MB). Maximum size: {max_size_mb:.0f}MB",
                code="file_too_large",
                status_code=413,
                details={"file_size": file_size, "max_size": self.max_file_size},
            )

    def get_image_info(self, image_data: bytes) -> dict:
        """
        Get basic image information.

        Raises:
            ImageProcessingError: If image cannot be decoded
        """
        try:
            with Image.open(io.BytesIO(image_data)) as image:
                exif = image.getexif()
                return {
                    "format": image.format,
                    "mode": image.mode,
                    "width": image.width,
                    "height": image.height,
                    "has_exif": bool(exif),
                    "orientation": exif.get(ORIENTATION_TAG),
                }
        except Exception as e:
            raise ImageProcessingError(
                f"Failed to get image info: {e}",
                code="image_info_failed",
                details={"file_size": len(image_data)},
                original_exception=e,
            ) from e

    def _target_size(self, size: tuple[int, int]) -> tuple[int, int]:
        """Shrink so the longer edge fits ``max_size``; never enlarge."""
        width, height = size
        longer = max(width, height)
        if longer <= self.max_size:
            return size
        scale = self.max_size / longer
        return (max(1, round(width * scale)), max(1, round(height * scale)))

    def generate_thumbnail(self, image_data: bytes) -> bytes:
        """
        Generate the JPEG thumbnail.

        The EXIF rotation is baked into the pixels and the orientation tag is
        then reset to normal, so viewers never rotate the result again.

        Args:
            image_data: Raw image data as bytes

        Returns:
            bytes: Thumbnail image data as JPEG bytes

        Raises:
            ImageProcessingError: If the bytes cannot be decoded or encoded
        """
        start_time = datetime.now()

        try:
            with Image.open(io.BytesIO(image_data)) as source:
                original_size = source.size
                image = ImageOps.exif_transpose(source)
                if image is None:
                    image = source

                if image.mode not in ("RGB", "L"):
                    image = image.convert("RGB")

                thumbnail_size = self._target_size(image.size)
                if thumbnail_size != image.size:
                    image = image.resize(thumbnail_size, Image.Resampling.LANCZOS)

                exif = image.getexif()
                exif[ORIENTATION_TAG] = NORMAL_ORIENTATION

                buffer = io.BytesIO()
                image.save(buffer, format="JPEG", quality=self.quality, optimize=True, exif=exif.tobytes())
                thumbnail_data = buffer.getvalue()

        except Exception as e:
            raise ImageProcessingError(
                f"Failed to generate thumbnail: {e}",
                code="thumbnail_generation_failed",
                details={
                    "original_file_size": len(image_data),
                    "max_size": self.max_size,
                    "quality": self.quality,
                },
                original_exception=e,
            ) from e

        duration = (datetime.now() - start_time).total_seconds()
        log_performance(
            "generate_thumbnail",
            duration,
            original_size=original_size,
            thumbnail_size=thumbnail_size,
            original_file_size=len(image_data),
            thumbnail_file_size=len(thumbnail_data),
            quality=self.quality,
        )
        return thumbnail_data
