"""
Pytest configuration and fixtures for photoshare tests.
"""

import io
import threading
from datetime import UTC, datetime, timedelta

import pytest
from PIL import Image

from photoshare.config import Settings, reset_settings
from photoshare.errors import ObjectNotFoundError, StorageError
from photoshare.services.storage import ObjectInfo, validate_attributes

SIGNED_URL_BASE = "https://signed.example.test"


class FakeBlobStore:
    """In-memory BlobStore with a deterministic clock and injectable failures."""

    def __init__(self, bucket_name: str = "test-photos-bucket"):
        self.bucket_name = bucket_name
        self.objects: dict[str, ObjectInfo] = {}
        self.data: dict[str, bytes] = {}
        self.put_failures: dict[str, Exception] = {}
        self.head_failures: set[str] = set()
        self.get_failures: set[str] = set()
        self.list_failure: Exception | None = None
        self.calls: list[tuple[str, str]] = []
        self._clock = datetime(2024, 1, 1, tzinfo=UTC)
        self._lock = threading.Lock()

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def put(self, key, data, content_type, attributes=None):
        validate_attributes(key, attributes)
        with self._lock:
            self.calls.append(("put", key))
            for prefix, error in self.put_failures.items():
                if key.startswith(prefix):
                    raise error
            info = ObjectInfo(
                key=key,
                size=len(data),
                content_type=content_type,
                updated=self._tick(),
                attributes=dict(attributes or {}),
            )
            self.objects[key] = info
            self.data[key] = bytes(data)
            return info

    def get(self, key):
        self.calls.append(("get", key))
        if key in self.get_failures:
            raise StorageError(f"Simulated read failure for '{key}'")
        if key not in self.data:
            raise ObjectNotFoundError(key)
        return self.data[key]

    def head(self, key):
        self.calls.append(("head", key))
        if key in self.head_failures:
            raise StorageError(f"Simulated head failure for '{key}'")
        if key not in self.objects:
            raise ObjectNotFoundError(key)
        info = self.objects[key]
        return ObjectInfo(info.key, info.size, info.content_type, info.updated, dict(info.attributes))

    def list(self, prefix=""):
        self.calls.append(("list", prefix))
        if self.list_failure is not None:
            raise self.list_failure
        return [
            ObjectInfo(info.key, info.size, info.content_type, info.updated, dict(info.attributes))
            for key, info in sorted(self.objects.items())
            if key.startswith(prefix)
        ]

    def signed_read_url(self, key, ttl_seconds):
        return f"{SIGNED_URL_BASE}/{self.bucket_name}/{key}?expires={ttl_seconds}"

    def fetch_signed(self, url: str) -> bytes:
        """Dereference a URL produced by ``signed_read_url``."""
        key = url.split(f"{SIGNED_URL_BASE}/{self.bucket_name}/", 1)[1].split("?", 1)[0]
        return self.data[key]

    def put_raw(self, key: str, data: bytes, content_type: str = "application/json", attributes=None) -> None:
        """Write directly, bypassing failure injection."""
        self.objects[key] = ObjectInfo(key, len(data), content_type, self._tick(), dict(attributes or {}))
        self.data[key] = data


class TestDataFactory:
    """Factory class for creating test data objects."""

    @staticmethod
    def create_image(
        size: tuple[int, int] = (800, 400),
        format_type: str = "JPEG",
        mode: str = "RGB",
        orientation: int | None = None,
        color: str = "red",
    ) -> bytes:
        """Create an encoded image in memory, optionally tagged with an EXIF orientation."""
        image = Image.new(mode, size, color=color)
        buffer = io.BytesIO()
        if orientation is not None:
            exif = image.getexif()
            exif[274] = orientation
            image.save(buffer, format=format_type, exif=exif.tobytes())
        else:
            image.save(buffer, format=format_type)
        return buffer.getvalue()


@pytest.fixture
def test_data_factory() -> TestDataFactory:
    """Provide TestDataFactory instance for tests."""
    return TestDataFactory()


@pytest.fixture
def sample_image_data() -> bytes:
    """A landscape JPEG larger than the thumbnail cap."""
    return TestDataFactory.create_image()


@pytest.fixture
def fake_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def settings() -> Settings:
    """Settings with storage configured and a known admin secret."""
    return Settings(
        admin_password="gallery-secret",
        bucket_name="test-photos-bucket",
        project_id="test-project",
        environment="test",
    )


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch: pytest.MonkeyPatch):
    """Keep tests independent of the developer's environment."""
    for key in (
        "ADMIN_PASSWORD",
        "GCS_BUCKET",
        "GOOGLE_CLOUD_PROJECT",
        "FRONTEND_ORIGINS",
        "LISTING_MODE",
        "ID_STRATEGY",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("ENVIRONMENT", "test")
    reset_settings()
    yield
    reset_settings()
