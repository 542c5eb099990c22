"""Configuration management for photoshare.

Values come from environment variables, optionally seeded from a ``.env``
file. ``Config`` is the raw typed lookup; ``Settings`` is the frozen view the
application builds once at startup and hands to every request handler.
"""

import os
from dataclasses import dataclass, field
from typing import Any

from dotenv import load_dotenv

from .errors import StorageNotConfiguredError
from .logging_config import get_logger

logger = get_logger(__name__)

PLACEHOLDER_ADMIN_PASSWORD = "1234"
DEFAULT_SIGNED_URL_EXPIRES_SECONDS = 7 * 24 * 60 * 60
ID_STRATEGIES = ("random", "name_timestamp")
LISTING_MODES = ("metadata_record", "object_headers")
TRUTHY_VALUES = ("true", "1", "yes", "on")


class Config:
    """Typed, cached access to environment variables."""

    def __init__(self):
        self._cache = {}

    @staticmethod
    def _cast(raw: str, cast_type: type) -> Any:
        if cast_type is bool:
            return raw.strip().lower() in TRUTHY_VALUES
        return raw if cast_type is str else cast_type(raw.strip())

    def get(self, key: str, default: Any = None, cast_type: type = str) -> Any:
        """Read one environment variable, cast it and remember the result.

        Unset and blank variables both resolve to ``default``. A value that
        fails to cast also resolves to ``default``, with a warning.

        Args:
            key: Environment variable name
            default: Returned as-is when the variable is unusable
            cast_type: One of str, int, float, bool
        """
        cache_key = (key, cast_type)
        if cache_key not in self._cache:
            raw = os.environ.get(key, "")
            if not raw.strip():
                resolved = default
            else:
                try:
                    resolved = self._cast(raw, cast_type)
                except (ValueError, TypeError) as e:
                    logger.warning("config_cast_failed", key=key, cast_type=cast_type.__name__, error=str(e))
                    resolved = default
            self._cache[cache_key] = resolved
        return self._cache[cache_key]

    def get_required(self, key: str, cast_type: type = str) -> Any:
        """Get required configuration value.

        Raises:
            ValueError: If the required configuration is not found
        """
        value = self.get(key, cast_type=cast_type)
        if value is None:
            raise ValueError(f"Required configuration '{key}' not found")
        return value

    def is_development(self) -> bool:
        environment = self.get("ENVIRONMENT", "development").lower()
        return environment in ["development", "dev", "local", "test"]

    def clear_cache(self):
        self._cache.clear()


def load_env_file(path: str = ".env") -> bool:
    """Load variables from a dotenv file without overriding the real environment."""
    if not os.path.exists(path):
        return False
    load_dotenv(dotenv_path=path, override=False)
    logger.info("env_file_loaded", path=path)
    return True


def _split_origins(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


@dataclass(frozen=True)
class Settings:
    """Process-wide, read-only settings."""

    admin_password: str = PLACEHOLDER_ADMIN_PASSWORD
    admin_constant_time_compare: bool = False
    bucket_name: str | None = None
    project_id: str | None = None
    frontend_origins: tuple[str, ...] = field(default_factory=tuple)
    signed_url_expires_seconds: int = DEFAULT_SIGNED_URL_EXPIRES_SECONDS
    host: str = "0.0.0.0"  # nosec B104
    port: int = 8080
    store_timeout_seconds: float = 20.0
    request_timeout_seconds: float = 60.0
    thumbnail_max_size: int = 600
    thumbnail_quality: int = 70
    max_file_size: int = 50 * 1024 * 1024
    uploader_name_max_length: int = 100
    default_uploader_name: str = "ללא שם"
    id_strategy: str = "random"
    listing_mode: str = "metadata_record"
    environment: str = "development"

    @classmethod
    def from_config(cls, config: Config) -> "Settings":
        defaults = cls()
        return cls(
            admin_password=config.get("ADMIN_PASSWORD", defaults.admin_password),
            admin_constant_time_compare=config.get("ADMIN_CONSTANT_TIME_COMPARE", False, bool),
            bucket_name=config.get("GCS_BUCKET"),
            project_id=config.get("GOOGLE_CLOUD_PROJECT"),
            frontend_origins=_split_origins(config.get("FRONTEND_ORIGINS", "")),
            signed_url_expires_seconds=config.get(
                "SIGNED_URL_EXPIRES_SECONDS", defaults.signed_url_expires_seconds, int
            ),
            host=config.get("HOST", defaults.host),
            port=config.get("PORT", defaults.port, int),
            store_timeout_seconds=config.get("STORE_TIMEOUT_SECONDS", defaults.store_timeout_seconds, float),
            request_timeout_seconds=config.get("REQUEST_TIMEOUT_SECONDS", defaults.request_timeout_seconds, float),
            thumbnail_max_size=config.get("THUMBNAIL_MAX_SIZE", defaults.thumbnail_max_size, int),
            thumbnail_quality=config.get("THUMBNAIL_QUALITY", defaults.thumbnail_quality, int),
            max_file_size=config.get("MAX_FILE_SIZE", defaults.max_file_size, int),
            uploader_name_max_length=config.get(
                "UPLOADER_NAME_MAX_LENGTH", defaults.uploader_name_max_length, int
            ),
            default_uploader_name=config.get("DEFAULT_UPLOADER_NAME", defaults.default_uploader_name),
            id_strategy=config.get("ID_STRATEGY", defaults.id_strategy).strip().lower(),
            listing_mode=config.get("LISTING_MODE", defaults.listing_mode).strip().lower(),
            environment=config.get("ENVIRONMENT", defaults.environment).strip().lower(),
        )

    @classmethod
    def from_env(cls) -> "Settings":
        settings = cls.from_config(Config())
        settings.validate()
        settings.warn_if_insecure()
        return settings

    def validate(self) -> None:
        """
        Reject strategy names that no request could ever serve.

        Raises:
            ValueError: For an unknown ID_STRATEGY or LISTING_MODE
        """
        if self.id_strategy not in ID_STRATEGIES:
            raise ValueError(f"Unknown ID_STRATEGY '{self.id_strategy}'. Use one of: {', '.join(ID_STRATEGIES)}")
        if self.listing_mode not in LISTING_MODES:
            raise ValueError(f"Unknown LISTING_MODE '{self.listing_mode}'. Use one of: {', '.join(LISTING_MODES)}")

    @property
    def storage_configured(self) -> bool:
        return not self.missing_storage_settings()

    def missing_storage_settings(self) -> list[str]:
        missing = []
        if not self.bucket_name:
            missing.append("GCS_BUCKET")
        if not self.project_id:
            missing.append("GOOGLE_CLOUD_PROJECT")
        return missing

    def require_storage(self) -> None:
        """
        Fail fast when the blob store cannot be reached by configuration alone.

        Raises:
            StorageNotConfiguredError: If bucket or project is missing
        """
        missing = self.missing_storage_settings()
        if missing:
            raise StorageNotConfiguredError(missing)

    @property
    def allows_any_origin(self) -> bool:
        return not self.frontend_origins

    def warn_if_insecure(self) -> None:
        if self.admin_password == PLACEHOLDER_ADMIN_PASSWORD and self.environment not in (
            "development",
            "dev",
            "local",
            "test",
        ):
            logger.warning("placeholder_admin_password", environment=self.environment)
        if self.allows_any_origin:
            logger.info("cors_allows_any_origin")


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the process-wide settings, building them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings; used by tests that change the environment."""
    global _settings
    _settings = None
