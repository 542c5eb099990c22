"""
Operator tasks, run with invoke.

    invoke batch-upload --directory ./pictures --name "Dana" --visibility public
    invoke report-incomplete
"""

import os

import structlog
from invoke import Collection, Context, task

from ..config import Settings, load_env_file
from ..errors import PhotoShareError
from ..models.photo import METADATA_PREFIX, ORIGINALS_PREFIX, THUMBNAILS_PREFIX, photo_id_from_key
from ..services.storage import BlobStore, StorageService
from ..services.upload import UploadService

logger = structlog.get_logger()

SUPPORTED_EXTENSIONS = [".jpg", ".jpeg", ".png", ".heic", ".heif", ".webp"]

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".heic": "image/heic",
    ".heif": "image/heif",
    ".webp": "image/webp",
}

PARTS = {
    ORIGINALS_PREFIX: "original",
    THUMBNAILS_PREFIX: "thumbnail",
    METADATA_PREFIX: "metadata",
}


def find_image_files(directory: str, recursive: bool = False) -> list[str]:
    """Collect image paths under a directory, sorted for a stable upload order."""
    image_files = []
    if recursive:
        for root, _, files in os.walk(directory):
            for name in files:
                if os.path.splitext(name)[1].lower() in SUPPORTED_EXTENSIONS:
                    image_files.append(os.path.join(root, name))
    else:
        for name in os.listdir(directory):
            path = os.path.join(directory, name)
            if os.path.isfile(path) and os.path.splitext(name)[1].lower() in SUPPORTED_EXTENSIONS:
                image_files.append(path)
    return sorted(image_files)


def find_incomplete_photos(store: BlobStore) -> dict[str, list[str]]:
    """
    Find photo ids that lack part of their original/thumbnail/metadata set.

    These are what a failed upload leaves behind.

    Returns:
        dict: photo id -> names of the missing parts
    """
    present: dict[str, set[str]] = {}
    for info in store.list():
        photo_id = photo_id_from_key(info.key)
        if photo_id is None:
            continue
        part = next(name for prefix, name in PARTS.items() if info.key.startswith(prefix))
        present.setdefault(photo_id, set()).add(part)

    expected = set(PARTS.values())
    return {
        photo_id: sorted(expected - parts) for photo_id, parts in sorted(present.items()) if parts != expected
    }


@task
def batch_upload(
    c: Context,
    directory: str,
    name: str = "",
    visibility: str = "private",
    env_file: str = ".env",
    recursive: bool = False,
    dry_run: bool = False,
):
    """
    Upload images from a local directory.

    Args:
        c (Context): Invoke context.
        directory (str): Path to the directory containing images.
        name (str): Uploader display name stored with every photo.
        visibility (str): 'public' or 'private'. Default is 'private'.
        env_file (str): Path to the environment file. Default is '.env'.
        recursive (bool): Search for images in subdirectories.
        dry_run (bool): List files to be processed without uploading.
    """
    load_env_file(env_file)

    if not os.path.isdir(directory):
        logger.error("directory_not_found", directory=directory)
        return

    image_files = find_image_files(directory, recursive)
    if not image_files:
        logger.warning("no_images_found", directory=directory)
        return

    logger.info("batch_upload_started", directory=directory, count=len(image_files), dry_run=dry_run)

    if dry_run:
        print("\n--- Dry Run Mode: Files to be processed ---")
        for file_path in image_files:
            print(f"- {file_path}")
        print("--- End of Dry Run ---")
        return

    settings = Settings.from_env()
    service = UploadService(StorageService(settings), settings)

    successful_uploads = 0
    failed_uploads = 0
    for file_path in image_files:
        filename = os.path.basename(file_path)
        try:
            with open(file_path, "rb") as f:
                file_data = f.read()

            content_type = CONTENT_TYPES.get(os.path.splitext(filename)[1].lower(), "image/jpeg")
            result = service.upload(file_data, name, visibility, content_type)
            logger.info("upload_successful", filename=filename, photo_id=result.id)
            successful_uploads += 1
        except (PhotoShareError, OSError) as e:
            logger.error("upload_failed", filename=filename, error=str(e))
            failed_uploads += 1

    logger.info(
        "batch_upload_finished",
        successful=successful_uploads,
        failed=failed_uploads,
        total=len(image_files),
    )
    print(f"\nBatch upload complete. Successful: {successful_uploads}, Failed: {failed_uploads}")


@task
def report_incomplete(c: Context, env_file: str = ".env"):
    """
    Report photos left half-written by failed uploads. Nothing is deleted.

    Args:
        c (Context): Invoke context.
        env_file (str): Path to the environment file. Default is '.env'.
    """
    load_env_file(env_file)
    settings = Settings.from_env()
    incomplete = find_incomplete_photos(StorageService(settings))

    for photo_id, missing in incomplete.items():
        print(f"{photo_id}: missing {', '.join(missing)}")
    logger.info("incomplete_photos_reported", count=len(incomplete))
    print(f"\n{len(incomplete)} incomplete photo(s).")


ns = Collection(batch_upload, report_incomplete)
