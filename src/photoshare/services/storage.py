"""Blob store adapter backed by Google Cloud Storage."""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol

import google.auth
import google.auth.transport.requests
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage  # type: ignore[attr-defined]
from google.cloud.exceptions import GoogleCloudError, NotFound
from google.oauth2 import service_account

from ..config import Settings
from ..errors import ObjectNotFoundError, StorageError
from ..logging_config import get_logger
from ..models.photo import is_attribute_safe

logger = get_logger(__name__)


@dataclass
class ObjectInfo:
    """What a list or head call reports about one object."""

    key: str
    size: int | None = None
    content_type: str | None = None
    updated: datetime | None = None
    attributes: dict[str, str] = field(default_factory=dict)


class BlobStore(Protocol):
    """The operations the upload and listing code need from object storage."""

    bucket_name: str

    def put(self, key: str, data: bytes, content_type: str, attributes: dict[str, str] | None = None) -> ObjectInfo: ...

    def get(self, key: str) -> bytes: ...

    def head(self, key: str) -> ObjectInfo: ...

    def list(self, prefix: str = "") -> list[ObjectInfo]: ...

    def signed_read_url(self, key: str, ttl_seconds: int) -> str: ...


def validate_attributes(key: str, attributes: dict[str, str] | None) -> None:
    """
    Reject attribute values that object metadata headers cannot carry.

    Raises:
        StorageError: If any key or value is not printable ASCII
    """
    for name, value in (attributes or {}).items():
        if not is_attribute_safe(name) or not is_attribute_safe(str(value)):
            raise StorageError(
                f"Attribute '{name}' for '{key}' contains characters outside printable ASCII",
                code="unsafe_attribute",
                details={"key": key, "attribute": name},
            )


class StorageService:
    """Google Cloud Storage implementation of ``BlobStore``."""

    def __init__(self, settings: Settings, client: storage.Client | None = None) -> None:
        """
        Initialize the storage service.

        Args:
            settings: Process settings; bucket and project must be present
            client: Pre-built client, mainly for tests

        Raises:
            StorageError: If settings are incomplete or the client cannot be built
        """
        settings.require_storage()

        self.bucket_name: str = settings.bucket_name  # type: ignore[assignment]
        self.project_id = settings.project_id
        self.timeout = settings.store_timeout_seconds
        self._signing_credentials = None
        self._credentials_lock = threading.Lock()

        try:
            self.client = client or storage.Client(project=self.project_id)
            self.bucket = self.client.bucket(self.bucket_name)
            logger.info(
                "storage_service_initialized",
                bucket=self.bucket_name,
                project_id=self.project_id,
                timeout=self.timeout,
            )
        except Exception as e:
            raise StorageError(f"Failed to initialize GCS client: {e}", original_exception=e) from e

    @staticmethod
    def _to_info(blob) -> ObjectInfo:
        return ObjectInfo(
            key=blob.name,
            size=blob.size,
            content_type=blob.content_type,
            updated=blob.updated,
            attributes=dict(blob.metadata or {}),
        )

    def put(self, key: str, data: bytes, content_type: str, attributes: dict[str, str] | None = None) -> ObjectInfo:
        """
        Write one object.

        Args:
            key: Object key
            data: Object body
            content_type: MIME type stored with the object
            attributes: Custom metadata, ASCII only

        Returns:
            ObjectInfo: Key and size of the written object

        Raises:
            StorageError: If attributes are unsafe or the upload fails
        """
        validate_attributes(key, attributes)
        try:
            blob = self.bucket.blob(key)
            if attributes:
                blob.metadata = dict(attributes)
            blob.upload_from_string(data, content_type=content_type, timeout=self.timeout)

            logger.info("object_written", key=key, size=len(data), content_type=content_type)
            return ObjectInfo(key=key, size=len(data), content_type=content_type, attributes=dict(attributes or {}))

        except GoogleCloudError as e:
            raise StorageError(f"Failed to write '{key}': {e}", details={"key": key}, original_exception=e) from e
        except Exception as e:
            raise StorageError(
                f"Unexpected error writing '{key}': {e}", details={"key": key}, original_exception=e
            ) from e

    def get(self, key: str) -> bytes:
        """
        Download one object.

        Raises:
            ObjectNotFoundError: If the key does not exist
            StorageError: If the download fails
        """
        try:
            data: bytes = self.bucket.blob(key).download_as_bytes(timeout=self.timeout)
            logger.debug("object_read", key=key, size=len(data))
            return data

        except NotFound as e:
            raise ObjectNotFoundError(key, original_exception=e) from e
        except GoogleCloudError as e:
            raise StorageError(f"Failed to read '{key}': {e}", details={"key": key}, original_exception=e) from e
        except Exception as e:
            raise StorageError(
                f"Unexpected error reading '{key}': {e}", details={"key": key}, original_exception=e
            ) from e

    def head(self, key: str) -> ObjectInfo:
        """
        Fetch size, content type, update time and attributes of one object.

        Raises:
            ObjectNotFoundError: If the key does not exist
            StorageError: If the request fails
        """
        try:
            blob = self.bucket.get_blob(key, timeout=self.timeout)
        except GoogleCloudError as e:
            raise StorageError(f"Failed to stat '{key}': {e}", details={"key": key}, original_exception=e) from e
        except Exception as e:
            raise StorageError(
                f"Unexpected error reading attributes of '{key}': {e}", details={"key": key}, original_exception=e
            ) from e

        if blob is None:
            raise ObjectNotFoundError(key)
        return self._to_info(blob)

    def list(self, prefix: str = "") -> list[ObjectInfo]:
        """
        List every object under a prefix, following continuation tokens.

        Returns:
            list[ObjectInfo]: All objects, in store order

        Raises:
            StorageError: If any page request fails
        """
        try:
            iterator = self.client.list_blobs(self.bucket, prefix=prefix or None, timeout=self.timeout)
            objects = []
            pages = 0
            for page in iterator.pages:
                pages += 1
                objects.extend(self._to_info(blob) for blob in page)

            logger.debug("objects_listed", prefix=prefix, count=len(objects), pages=pages)
            return objects

        except GoogleCloudError as e:
            raise StorageError(
                f"Failed to list objects under '{prefix}': {e}", details={"prefix": prefix}, original_exception=e
            ) from e
        except Exception as e:
            raise StorageError(
                f"Unexpected error listing objects: {e}", details={"prefix": prefix}, original_exception=e
            ) from e

    def _get_signing_credentials(self):
        """Resolve ambient credentials once; refresh only when the token is missing or expired."""
        with self._credentials_lock:
            if self._signing_credentials is None:
                self._signing_credentials, _ = google.auth.default()

            credentials = self._signing_credentials
            if not credentials.valid:
                try:
                    credentials.refresh(google.auth.transport.requests.Request())
                    logger.debug("signing_credentials_refreshed")
                except GoogleAuthError as e:
                    logger.warning("credentials_refresh_failed", error=str(e))
            return credentials

    def signed_read_url(self, key: str, ttl_seconds: int) -> str:
        """
        Generate a V4 signed GET URL.

        Credentials holding a private key sign locally. Other ambient
        credentials (metadata server, user login) are refreshed and sign
        through IAM with their access token.

        Raises:
            StorageError: If URL generation fails
        """
        try:
            blob = self.bucket.blob(key)
            expiration = timedelta(seconds=ttl_seconds)

            credentials = getattr(self.client, "_credentials", None)
            if isinstance(credentials, service_account.Credentials):
                signed_url: str = blob.generate_signed_url(expiration=expiration, method="GET", version="v4")
            else:
                credentials = self._get_signing_credentials()
                signed_url = blob.generate_signed_url(
                    expiration=expiration,
                    method="GET",
                    version="v4",
                    service_account_email=getattr(credentials, "service_account_email", None),
                    access_token=credentials.token,
                )

            logger.debug("signed_url_generated", key=key, expires_in=ttl_seconds)
            return signed_url

        except GoogleCloudError as e:
            raise StorageError(
                f"Failed to generate signed URL for '{key}': {e}", details={"key": key}, original_exception=e
            ) from e
        except Exception as e:
            raise StorageError(
                f"Unexpected error generating signed URL: {e}", details={"key": key}, original_exception=e
            ) from e

    def check_bucket_exists(self) -> bool:
        """Check that the configured bucket exists and is reachable."""
        try:
            self.bucket.reload(timeout=self.timeout)
            return True
        except NotFound:
            logger.error("bucket_not_found", bucket=self.bucket_name)
            return False
        except Exception as e:
            logger.error("bucket_check_failed", bucket=self.bucket_name, error=str(e))
            return False
