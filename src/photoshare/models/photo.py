"""
Photo metadata model for photoshare.

A photo is three objects tied together only by naming: the original, its
thumbnail and a JSON metadata record. Free-text fields live in the record
body; object attributes carry ASCII-only values.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from ..errors import MetadataError

ORIGINALS_PREFIX = "photos/"
THUMBNAILS_PREFIX = "thumbs/"
METADATA_PREFIX = "meta/"


class Visibility(str, Enum):
    """Whether a photo shows up in anonymous listings."""

    PUBLIC = "public"
    PRIVATE = "private"

    @classmethod
    def parse(cls, raw: str | None) -> "Visibility":
        """Only the exact string ``public`` is public; anything else is private."""
        if raw is not None and str(raw).strip() == cls.PUBLIC.value:
            return cls.PUBLIC
        return cls.PRIVATE


def is_attribute_safe(value: str) -> bool:
    """True if the value can travel as an object attribute (printable ASCII)."""
    return all(32 <= ord(ch) < 127 for ch in value)


@dataclass(frozen=True)
class PhotoKeys:
    """The three object keys owned by one photo identifier."""

    photo_id: str
    original_key: str
    thumb_key: str
    meta_key: str

    @classmethod
    def for_id(cls, photo_id: str) -> "PhotoKeys":
        return cls(
            photo_id=photo_id,
            original_key=f"{ORIGINALS_PREFIX}{photo_id}.jpg",
            thumb_key=f"{THUMBNAILS_PREFIX}{photo_id}.jpg",
            meta_key=f"{METADATA_PREFIX}{photo_id}.json",
        )

    def original_attributes(self, visibility: Visibility) -> dict[str, str]:
        """Attributes stored on the original; read back by header-driven listing."""
        return {
            "visibility": visibility.value,
            "meta": self.meta_key,
            "thumb": self.thumb_key,
        }

    def thumbnail_attributes(self, visibility: Visibility) -> dict[str, str]:
        return {
            "visibility": visibility.value,
            "isthumb": "true",
            "meta": self.meta_key,
        }


def photo_id_from_key(key: str) -> str | None:
    """
    Recover the photo identifier from any of its three keys.

    Returns:
        The identifier, or None for keys outside the known layout
    """
    for prefix in (ORIGINALS_PREFIX, THUMBNAILS_PREFIX, METADATA_PREFIX):
        if key.startswith(prefix):
            name = key[len(prefix) :]
            stem, dot, _ = name.rpartition(".")
            return stem if dot else name
    return None


@dataclass(frozen=True)
class PhotoRecord:
    """
    The metadata document written last by an upload.

    Its presence is what makes a photo listable in metadata-record mode.
    """

    id: str
    uploader: str
    visibility: Visibility
    original_key: str
    thumb_key: str
    created_at: datetime

    @classmethod
    def create_new(cls, keys: PhotoKeys, uploader: str, visibility: Visibility) -> "PhotoRecord":
        return cls(
            id=keys.photo_id,
            uploader=uploader,
            visibility=visibility,
            original_key=keys.original_key,
            thumb_key=keys.thumb_key,
            created_at=datetime.now(UTC),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "uploader": self.uploader,
            "visibility": self.visibility.value,
            "originalKey": self.original_key,
            "thumbKey": self.thumb_key,
            "createdAt": self.created_at.isoformat(),
        }

    def to_json(self) -> bytes:
        """Serialize as UTF-8 JSON, keeping non-ASCII names verbatim."""
        return json.dumps(self.to_dict(), ensure_ascii=False).encode("utf-8")

    @classmethod
    def from_dict(cls, data: dict) -> "PhotoRecord":
        original_key = data.get("originalKey")
        thumb_key = data.get("thumbKey")
        if not original_key or not thumb_key:
            raise MetadataError(
                "Metadata record is missing object keys",
                details={"id": data.get("id"), "has_original": bool(original_key), "has_thumb": bool(thumb_key)},
            )

        created_at = data.get("createdAt")
        if isinstance(created_at, str):
            try:
                created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
            except ValueError:
                created_at = None
        if not isinstance(created_at, datetime):
            created_at = datetime.fromtimestamp(0, UTC)

        uploader = data.get("uploader")
        return cls(
            id=str(data.get("id") or photo_id_from_key(original_key) or ""),
            uploader=str(uploader) if uploader is not None else "",
            visibility=Visibility.parse(data.get("visibility")),
            original_key=str(original_key),
            thumb_key=str(thumb_key),
            created_at=created_at,
        )

    @classmethod
    def from_json(cls, raw: bytes | str) -> "PhotoRecord":
        """
        Parse a stored record.

        Raises:
            MetadataError: If the payload is not a JSON object with both keys
        """
        try:
            data = json.loads(raw)
        except (ValueError, UnicodeDecodeError) as e:
            raise MetadataError(f"Metadata record is not valid JSON: {e}", original_exception=e) from e

        if not isinstance(data, dict):
            raise MetadataError("Metadata record is not a JSON object", details={"type": type(data).__name__})

        return cls.from_dict(data)


@dataclass
class PhotoEntry:
    """One item of a listing response."""

    id: str | None
    name: str
    signed_url: str
    signed_thumb_url: str
    visibility: Visibility
    uploader: str | None = None
    updated: datetime | None = None
    size: int | None = None
    content_type: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "uploader": self.uploader,
            "signedUrl": self.signed_url,
            "signedThumbUrl": self.signed_thumb_url,
            "visibility": self.visibility.value,
            "updated": self.updated.isoformat() if self.updated else None,
            "size": str(self.size) if self.size is not None else None,
            "contentType": self.content_type,
        }
