"""FastAPI application factory for photoshare."""

import threading
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings, get_settings
from ..logging_config import get_logger
from ..models.results import ErrorResult
from ..services.auth import ADMIN_HEADER_NAME, AccessGate
from ..services.storage import BlobStore, StorageService
from . import routes

logger = get_logger(__name__)


class StoreProvider:
    """Builds the storage client once, on the first request that needs it."""

    def __init__(self, settings: Settings, store: BlobStore | None = None) -> None:
        self.settings = settings
        self._store = store
        self._lock = threading.Lock()

    def get(self) -> BlobStore:
        """
        Return the shared store.

        Raises:
            StorageNotConfiguredError: If bucket or project settings are missing
        """
        self.settings.require_storage()
        if self._store is None:
            with self._lock:
                if self._store is None:
                    self._store = StorageService(self.settings)
        return self._store


def create_app(settings: Settings | None = None, store: BlobStore | None = None) -> FastAPI:
    """
    Build the HTTP application.

    Args:
        settings: Process settings; read from the environment when omitted
        store: Blob store to use instead of Google Cloud Storage

    Returns:
        FastAPI: Configured application

    Raises:
        ValueError: If the settings name an unknown id strategy or listing mode
    """
    settings = settings or get_settings()
    settings.validate()

    app = FastAPI(title="photoshare", version=__version__)
    app.state.settings = settings
    app.state.access_gate = AccessGate(settings.admin_password, constant_time=settings.admin_constant_time_compare)
    app.state.store_provider = StoreProvider(settings, store)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.allows_any_origin else list(settings.frontend_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", ADMIN_HEADER_NAME],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return response

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = [".".join(str(part) for part in error.get("loc", ())) for error in exc.errors()]
        logger.warning("request_validation_failed", path=request.url.path, fields=fields)
        result = ErrorResult(f"Invalid request: {', '.join(fields) or 'malformed body'}", status_code=400)
        return JSONResponse(result.to_dict(), status_code=result.status_code)

    app.include_router(routes.router)

    logger.info(
        "app_created",
        listing_mode=settings.listing_mode,
        id_strategy=settings.id_strategy,
        storage_configured=settings.storage_configured,
    )
    return app
