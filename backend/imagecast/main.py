"""imagecast Backend Application.

This is the main entry point for the imagecast service: clients upload
images, pick one as current, and stream it back.

Modules:
    - images: upload validation, storage, selection and streaming endpoints
    - config: YAML-backed settings

Static mounts:
    - /uploads/{name}: any stored file, served directly
    - /: the browser UI from the configured static directory
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from imagecast.config import AppSettings, get_config
from imagecast.images.errors import ImageServiceError, StartupError
from imagecast.images.router import error_response, respond, router as images_router
from imagecast.images.selection import SelectionState
from imagecast.images.storage import ImageStore, ensure_upload_dir
from imagecast.images.validator import UploadValidator

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Silence verbose third-party loggers.
# python-multipart logs every parsed part at DEBUG; httpx/httpcore log every
# connection made by the test client.
for _noisy in (
    "multipart",
    "python_multipart",
    "httpx",
    "httpcore",
):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    config: AppSettings = app.state.config

    configured_level = getattr(logging, config.logging.level.upper(), None)
    if configured_level is not None:
        logging.getLogger().setLevel(configured_level)
        logger.info("Root logger level set to %s", config.logging.level.upper())

    try:
        ensure_upload_dir(config.storage.upload_dir)
    except StartupError as exc:
        logger.critical("%s", exc)
        raise

    logger.info(
        "Server running on http://%s:%s",
        config.server.host,
        config.server.port,
    )

    yield  # Application runs here

    # Shutdown
    logger.info("Application shutdown complete")


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------

async def _service_error_handler(request: Request, exc: ImageServiceError) -> JSONResponse:
    return error_response(exc)


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
    return respond(exc.status_code, message, success=False, headers=exc.headers)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Invalid request to %s: %s", request.url.path, exc.errors())
    return respond(400, "Invalid request", success=False)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

def create_app(config: Optional[AppSettings] = None) -> FastAPI:
    """Build the FastAPI app with its own storage and selection state."""
    config = config or get_config()
    storage = config.storage

    app = FastAPI(
        title="imagecast API",
        description="Upload images, select one, and stream it back",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.image_store = ImageStore(storage.upload_dir)
    app.state.upload_validator = UploadValidator(
        allow_generic_binary=storage.allow_generic_binary,
    )
    app.state.selection = SelectionState()

    app.add_exception_handler(ImageServiceError, _service_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(images_router)

    @app.get("/health")
    async def health() -> dict:
        """Health check endpoint.

        Returns:
            dict: Status object indicating the server is running.
        """
        return {"status": "ok"}

    # Mounts match every path beneath them, so they go after the routes.
    app.mount(
        "/uploads",
        StaticFiles(directory=storage.upload_dir, check_dir=False),
        name="uploads",
    )
    if Path(storage.static_dir).is_dir():
        app.mount("/", StaticFiles(directory=storage.static_dir, html=True), name="static")
    else:
        logger.warning("Static directory not found, UI disabled: %s", storage.static_dir)

    return app


def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    import uvicorn

    config = get_config()
    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        lifespan="on",
        log_config=None,
    )


if __name__ == "__main__":
    run()
