"""
Error classification for photoshare.

Every failure a request can hit is raised as a ``PhotoShareError`` subclass.
The HTTP layer turns any of them into the ``{"error": ...}`` envelope using
``status_code`` and ``user_message``; nothing below the HTTP layer knows
about responses.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from .logging_config import log_error


class ErrorCategory(Enum):
    """Error categories for classification and handling."""

    VALIDATION = "validation"
    IMAGE_PROCESSING = "image_processing"
    STORAGE = "storage"
    CONFIGURATION = "configuration"
    UPLOAD = "upload"
    METADATA = "metadata"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class PhotoShareError(Exception):
    """Base exception class for photoshare."""

    status_code = 500

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(message)
        self.category = category
        self.code = code or f"{category.value}_error"
        self.user_message = user_message or message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        self.original_exception = original_exception
        self.timestamp = datetime.now()

        self._log_error()

    def _log_error(self) -> None:
        error_context: dict[str, Any] = {
            "category": self.category.value,
            "code": self.code,
            "status_code": self.status_code,
            **self.details,
        }
        if self.original_exception:
            error_context["original_exception"] = str(self.original_exception)

        log_error(self, error_context)

    def to_dict(self) -> dict[str, Any]:
        """Structured form, used for logs and the CLI report."""
        return {
            "category": self.category.value,
            "code": self.code,
            "message": str(self),
            "user_message": self.user_message,
            "details": self.details,
            "status_code": self.status_code,
            "timestamp": self.timestamp.isoformat(),
        }


class ValidationError(PhotoShareError):
    """Bad client input. Nothing has been written when this is raised."""

    status_code = 400

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            code=code or "validation_failed",
            user_message=user_message,
            details=details,
            status_code=status_code,
            original_exception=original_exception,
        )


class ImageProcessingError(PhotoShareError):
    """The thumbnail could not be produced from the uploaded bytes."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.IMAGE_PROCESSING,
            code=code or "image_processing_failed",
            user_message=user_message or "Failed to process the image",
            details=details,
            original_exception=original_exception,
        )


class StorageError(PhotoShareError):
    """A blob store call failed."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        category: ErrorCategory = ErrorCategory.STORAGE,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=category,
            code=code or "storage_error",
            user_message=user_message,
            details=details,
            original_exception=original_exception,
        )


class ObjectNotFoundError(StorageError):
    """The requested key does not exist in the bucket."""

    def __init__(self, key: str, original_exception: Exception | None = None):
        super().__init__(
            f"Object not found: {key}",
            code="object_not_found",
            details={"key": key},
            original_exception=original_exception,
        )
        self.key = key


class StorageNotConfiguredError(StorageError):
    """Bucket or project settings are missing; raised before any SDK call."""

    def __init__(self, missing: list[str]):
        super().__init__(
            f"Storage is not configured. Set {', '.join(missing)} env vars.",
            code="storage_not_configured",
            details={"missing": missing},
            category=ErrorCategory.CONFIGURATION,
        )
        self.missing = missing


class UploadError(PhotoShareError):
    """A write inside the upload transaction failed after earlier writes succeeded."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.UPLOAD,
            code=code or "upload_failed",
            details=details,
            original_exception=original_exception,
        )


class MetadataError(PhotoShareError):
    """A stored metadata record is not a usable document."""

    def __init__(self, message: str, details: dict[str, Any] | None = None, original_exception: Exception | None = None):
        super().__init__(
            message=message,
            category=ErrorCategory.METADATA,
            code="invalid_metadata_record",
            details=details,
            original_exception=original_exception,
        )


class OperationTimeoutError(PhotoShareError):
    """A bounded step of a request ran past its deadline."""

    status_code = 504

    def __init__(self, operation: str, timeout: float):
        super().__init__(
            f"{operation} timed out after {timeout:g}s",
            category=ErrorCategory.TIMEOUT,
            code="operation_timeout",
            details={"operation": operation, "timeout_seconds": timeout},
        )
