"""
Unit tests for thumbnail generation.
"""

import io

import pytest
from PIL import Image

from photoshare.errors import ImageProcessingError, ValidationError
from photoshare.services.image_processor import ORIENTATION_TAG, ImageProcessor


class TestImageProcessor:
    """Test cases for ImageProcessor class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.processor = ImageProcessor(max_size=600, quality=70, max_file_size=1024 * 1024)

    def open(self, data: bytes) -> Image.Image:
        image = Image.open(io.BytesIO(data))
        image.load()
        return image

    def test_thumbnail_caps_long_edge(self, test_data_factory):
        """A landscape image is scaled so its width is the cap."""
        thumbnail = self.processor.generate_thumbnail(test_data_factory.create_image((1200, 800)))

        image = self.open(thumbnail)
        assert image.format == "JPEG"
        assert image.size == (600, 400)

    def test_thumbnail_caps_portrait_height(self, test_data_factory):
        """For portrait images the height is the longer edge."""
        thumbnail = self.processor.generate_thumbnail(test_data_factory.create_image((900, 1800)))

        assert self.open(thumbnail).size == (300, 600)

    def test_thumbnail_never_upscales(self, test_data_factory):
        """Images already under the cap keep their dimensions."""
        thumbnail = self.processor.generate_thumbnail(test_data_factory.create_image((120, 80)))

        assert self.open(thumbnail).size == (120, 80)

    def test_thumbnail_applies_exif_rotation(self, test_data_factory):
        """Orientation 6 (rotate 90) is baked in and the tag reset to normal."""
        rotated = test_data_factory.create_image((1200, 600), orientation=6)

        thumbnail = self.processor.generate_thumbnail(rotated)

        image = self.open(thumbnail)
        assert image.size == (300, 600)
        assert image.getexif().get(ORIENTATION_TAG) == 1

    def test_thumbnail_without_exif_has_normal_orientation(self, test_data_factory):
        thumbnail = self.processor.generate_thumbnail(test_data_factory.create_image((700, 700)))

        assert self.open(thumbnail).getexif().get(ORIENTATION_TAG) == 1

    def test_thumbnail_converts_png_with_alpha(self, test_data_factory):
        """Non-JPEG input with an alpha channel becomes an RGB JPEG."""
        png = test_data_factory.create_image((800, 800), format_type="PNG", mode="RGBA")

        image = self.open(self.processor.generate_thumbnail(png))

        assert image.format == "JPEG"
        assert image.mode == "RGB"
        assert image.size == (600, 600)

    def test_thumbnail_is_deterministic(self, sample_image_data):
        """The derivative is a pure function of the input bytes."""
        assert self.processor.generate_thumbnail(sample_image_data) == self.processor.generate_thumbnail(
            sample_image_data
        )

    def test_thumbnail_invalid_data(self):
        """Undecodable bytes raise ImageProcessingError."""
        with pytest.raises(ImageProcessingError, match="Failed to generate thumbnail"):
            self.processor.generate_thumbnail(b"not an image at all")

    def test_validate_file_size_empty(self):
        with pytest.raises(ValidationError, match="No file uploaded") as exc_info:
            self.processor.validate_file_size(b"")
        assert exc_info.value.status_code == 400

        with pytest.raises(ValidationError):
            self.processor.validate_file_size(None)

    def test_validate_file_size_too_large(self):
        with pytest.raises(ValidationError, match="too large") as exc_info:
            self.processor.validate_file_size(b"x" * (1024 * 1024 + 1))
        assert exc_info.value.status_code == 413
        assert exc_info.value.code == "file_too_large"

    def test_get_image_info(self, test_data_factory):
        info = self.processor.get_image_info(test_data_factory.create_image((200, 150), orientation=3))

        assert info["format"] == "JPEG"
        assert info["width"] == 200
        assert info["height"] == 150
        assert info["has_exif"] is True
        assert info["orientation"] == 3

    def test_get_image_info_invalid_data(self):
        with pytest.raises(ImageProcessingError, match="Failed to get image info"):
            self.processor.get_image_info(b"not an image")

    def test_validate_size_declared_length(self):
        """A declared size is checked without any bytes in hand."""
        self.processor.validate_size(1024 * 1024)

        with pytest.raises(ValidationError) as exc_info:
            self.processor.validate_size(5 * 1024 * 1024 * 1024)
        assert exc_info.value.status_code == 413
