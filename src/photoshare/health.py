"""
Health checks for photoshare.

``/health`` only proves the process answers. ``perform_health_check`` goes
further and touches configuration and the bucket; it backs
``/health/details``.
"""

import platform
import time
from collections.abc import Callable
from typing import Any

from . import __version__
from .config import Settings
from .logging_config import get_logger

logger = get_logger(__name__)

_START_TIME = time.time()


def check_environment_health(settings: Settings) -> dict[str, Any]:
    """Check that the storage settings needed by every request are present."""
    missing = settings.missing_storage_settings()
    if missing:
        return {
            "status": "unhealthy",
            "message": f"Missing environment variables: {', '.join(missing)}",
            "timestamp": time.time(),
            "missing_vars": missing,
        }

    return {
        "status": "healthy",
        "message": "Environment configuration is valid",
        "timestamp": time.time(),
        "config": {
            "bucket": settings.bucket_name,
            "listing_mode": settings.listing_mode,
            "id_strategy": settings.id_strategy,
            "any_origin": settings.allows_any_origin,
        },
    }


def check_storage_health(settings: Settings, store_factory: Callable[[], Any]) -> dict[str, Any]:
    """Check that the configured bucket is reachable."""
    if not settings.storage_configured:
        return {"status": "unhealthy", "message": "Storage is not configured", "timestamp": time.time()}

    try:
        store = store_factory()
        check = getattr(store, "check_bucket_exists", None)
        if check is not None and not check():
            return {
                "status": "unhealthy",
                "message": f"Bucket not reachable: {settings.bucket_name}",
                "timestamp": time.time(),
            }
        return {
            "status": "healthy",
            "message": f"Storage connection successful to bucket: {settings.bucket_name}",
            "timestamp": time.time(),
            "bucket": settings.bucket_name,
        }
    except Exception as e:
        logger.error("storage_health_check_failed", error=str(e))
        return {"status": "unhealthy", "message": f"Storage connection failed: {e}", "timestamp": time.time()}


def get_application_info(settings: Settings) -> dict[str, Any]:
    return {
        "name": "photoshare",
        "version": __version__,
        "environment": settings.environment,
        "uptime": time.time() - _START_TIME,
        "python_version": platform.python_version(),
    }


def perform_health_check(settings: Settings, store_factory: Callable[[], Any]) -> dict[str, Any]:
    """Run every check and fold them into one status."""
    start_time = time.time()

    checks = {
        "environment": check_environment_health(settings),
        "storage": check_storage_health(settings, store_factory),
    }
    overall_status = "healthy" if all(c["status"] == "healthy" for c in checks.values()) else "unhealthy"

    result = {
        "status": overall_status,
        "checks": checks,
        "application": get_application_info(settings),
        "response_time_ms": round((time.time() - start_time) * 1000, 2),
    }
    logger.info("health_check_completed", status=overall_status, response_time_ms=result["response_time_ms"])
    return result
