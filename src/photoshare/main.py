"""
Entry point for the photoshare server.

Loads ``.env`` if present, configures logging and serves the FastAPI app
with uvicorn on ``HOST:PORT``.
"""

import uvicorn

from .api.app import create_app
from .config import get_settings, load_env_file
from .logging_config import configure_structured_logging, get_logger


def main() -> None:
    load_env_file()
    configure_structured_logging()
    logger = get_logger(__name__)

    settings = get_settings()
    app = create_app(settings)

    logger.info("server_starting", host=settings.host, port=settings.port, bucket=settings.bucket_name)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
