"""HTTP routes: liveness, upload and listing."""

import asyncio
import functools
import threading
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, File, Form, Header, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse

from ..errors import OperationTimeoutError, PhotoShareError, ValidationError
from ..health import perform_health_check
from ..logging_config import get_logger
from ..models.results import ErrorResult, ListingResult, ListingSuccess, UploadResult
from ..services.image_processor import ImageProcessor
from ..services.listing import ListingService
from ..services.upload import UploadService

logger = get_logger(__name__)

router = APIRouter()


async def run_bounded(func: Callable[..., Any], *args: Any, operation: str, timeout: float) -> Any:
    """
    Run blocking work in the default executor with a deadline.

    On timeout the caller stops waiting; the worker thread runs to completion
    in the background and its result is dropped.

    Raises:
        OperationTimeoutError: If the work does not finish in time
    """
    try:
        loop = asyncio.get_running_loop()
        return await asyncio.wait_for(loop.run_in_executor(None, functools.partial(func, *args)), timeout=timeout)
    except TimeoutError as e:
        raise OperationTimeoutError(operation, timeout) from e


def to_error_result(error: Exception, fallback: str) -> ErrorResult:
    """Convert any exception into the error envelope."""
    if isinstance(error, PhotoShareError):
        return ErrorResult(error.user_message, status_code=error.status_code)
    logger.exception("unhandled_request_error", error_type=type(error).__name__, error=str(error))
    return ErrorResult(str(error) or fallback, status_code=500)


def render(result: UploadResult | ListingResult) -> JSONResponse:
    if isinstance(result, ErrorResult):
        return JSONResponse(result.to_dict(), status_code=result.status_code)
    return JSONResponse(result.to_dict())


@router.get("/", response_class=PlainTextResponse)
def root() -> str:
    return "Backend is running. Use POST /upload to upload photos."


@router.get("/health")
def health() -> dict:
    return {"ok": True}


@router.get("/health/details")
async def health_details(request: Request) -> JSONResponse:
    settings = request.app.state.settings
    provider = request.app.state.store_provider
    result = await run_in_threadpool(perform_health_check, settings, provider.get)
    return JSONResponse(result, status_code=200 if result["status"] == "healthy" else 503)


@router.post("/upload")
async def upload_photo(
    request: Request,
    photo: UploadFile | None = File(None),
    name: str | None = Form(None),
    visibility: str | None = Form(None),
) -> JSONResponse:
    """Store one photo with its thumbnail and metadata record."""
    settings = request.app.state.settings
    provider = request.app.state.store_provider

    result: UploadResult
    try:
        settings.require_storage()
        if photo is None:
            raise ValidationError("No file uploaded", code="no_file")

        if photo.size is not None:
            ImageProcessor(max_file_size=settings.max_file_size).validate_size(photo.size)

        image_data = await photo.read()
        cancelled = threading.Event()

        def _upload():
            service = UploadService(provider.get(), settings)
            return service.upload(image_data, name, visibility, photo.content_type, cancelled=cancelled)

        try:
            result = await run_bounded(_upload, operation="upload", timeout=settings.request_timeout_seconds)
        except OperationTimeoutError:
            cancelled.set()
            raise
    except Exception as e:
        result = to_error_result(e, "Upload failed")
    finally:
        if photo is not None:
            await photo.close()

    return render(result)


@router.get("/photos")
async def list_photos(
    request: Request,
    x_gallery_password: str | None = Header(None),
) -> JSONResponse:
    """List photos visible to the caller, newest first, with signed URLs."""
    settings = request.app.state.settings
    provider = request.app.state.store_provider
    gate = request.app.state.access_gate

    result: ListingResult
    try:
        settings.require_storage()
        is_admin = gate.is_admin(x_gallery_password)

        def _list():
            return ListingService(provider.get(), settings).list_photos(is_admin)

        photos = await run_bounded(_list, operation="list_photos", timeout=settings.request_timeout_seconds)
        result = ListingSuccess(admin=is_admin, photos=photos)
    except Exception as e:
        result = to_error_result(e, "Failed to fetch photos")

    return render(result)
