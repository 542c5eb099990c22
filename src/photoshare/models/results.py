"""Tagged results returned across the HTTP boundary."""

from dataclasses import dataclass, field

from .photo import PhotoEntry, PhotoKeys, Visibility


@dataclass(frozen=True)
class UploadSuccess:
    id: str
    bucket: str
    keys: PhotoKeys
    visibility: Visibility

    def to_dict(self) -> dict:
        return {
            "ok": True,
            "id": self.id,
            "bucket": self.bucket,
            "objectName": self.keys.original_key,
            "thumbObject": self.keys.thumb_key,
            "metaObject": self.keys.meta_key,
            "visibility": self.visibility.value,
        }


@dataclass(frozen=True)
class ListingSuccess:
    admin: bool
    photos: list[PhotoEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "ok": True,
            "admin": self.admin,
            "photos": [photo.to_dict() for photo in self.photos],
        }


@dataclass(frozen=True)
class ErrorResult:
    message: str
    status_code: int = 500

    def to_dict(self) -> dict:
        return {"error": self.message}


UploadResult = UploadSuccess | ErrorResult
ListingResult = ListingSuccess | ErrorResult
