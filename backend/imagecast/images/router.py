"""FastAPI router for the image endpoints.

Endpoints:
    POST /upload         — Upload an image (multipart field ``image``)
    POST /select-image   — Make an uploaded file current (field ``filename``)
    ANY  /stream         — Stream the currently selected file
    ANY  /images         — List stored files
    ANY  /current-image  — Report the current selection

Handlers are plain ``def`` functions so FastAPI runs each request in its
worker thread pool; all filesystem calls block only that thread.
"""
import logging
import mimetypes
from pathlib import Path
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import FileResponse, JSONResponse

from .errors import ImageServiceError, InvalidRequestError, NotFoundError
from .schemas import ApiResponse, CurrentImage, UploadResult
from .selection import SelectionState
from .sniffer import SNIFF_LEN, detect_content_type
from .storage import ImageStore
from .validator import UploadValidator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["images"])

ANY_METHOD = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
NON_POST_METHODS = [m for m in ANY_METHOD if m != "POST"]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def respond(
    status_code: int,
    message: str = "",
    data: Any = None,
    success: bool = True,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """Serialize the response envelope with a matching HTTP status."""
    body = ApiResponse(success=success, message=message, data=data)
    return JSONResponse(
        body.model_dump(exclude_none=True),
        status_code=status_code,
        headers=headers,
    )


def error_response(exc: ImageServiceError) -> JSONResponse:
    return respond(exc.status_code, exc.message, success=False)


def _media_type_for(path: Path) -> str:
    """Guess from the extension first, then from the file's leading bytes."""
    guessed, _ = mimetypes.guess_type(path.name)
    if guessed:
        return guessed
    with path.open("rb") as fh:
        return detect_content_type(fh.read(SNIFF_LEN))


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_store(request: Request) -> ImageStore:
    return request.app.state.image_store


def get_validator(request: Request) -> UploadValidator:
    return request.app.state.upload_validator


def get_selection(request: Request) -> SelectionState:
    return request.app.state.selection


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/upload", status_code=201)
def upload_image(
    image: Optional[UploadFile] = File(None),
    store: ImageStore = Depends(get_store),
    validator: UploadValidator = Depends(get_validator),
) -> JSONResponse:
    """Validate and store an uploaded image.

    The content type is sniffed from the first 512 bytes; the
    client-declared type is ignored.

    Returns:
        201 with ``data={"filename": <stored name>}``.

    Raises:
        InvalidRequestError 400: ``image`` missing or its filename unusable.
        UnsupportedTypeError 400: Sniffed type not in the allow-list.
        StorageError 500: The file could not be read or written.
    """
    if image is None:
        raise InvalidRequestError("Invalid file upload")

    mime_type = validator.validate(image.file)
    filename = store.persist(image.file, image.filename)

    logger.info("Upload %r stored as %s (%s)", image.filename, filename, mime_type)
    return respond(
        201,
        "File uploaded successfully",
        data=UploadResult(filename=filename).model_dump(),
    )


@router.post("/select-image")
def select_image(
    request: Request,
    filename: Optional[str] = Form(None),
    selection: SelectionState = Depends(get_selection),
    store: ImageStore = Depends(get_store),
) -> JSONResponse:
    """Make *filename* the image served by ``/stream``.

    The name is read from the form body, falling back to the query string.
    """
    name = filename or request.query_params.get("filename")
    if not name:
        raise InvalidRequestError("Missing filename parameter")

    selection.select(name, store)
    return respond(200, "Image selected successfully")


@router.api_route("/upload", methods=NON_POST_METHODS, include_in_schema=False)
@router.api_route("/select-image", methods=NON_POST_METHODS, include_in_schema=False)
def method_not_allowed() -> JSONResponse:
    return respond(405, "Method not allowed", success=False, headers={"Allow": "POST"})


@router.api_route("/stream", methods=ANY_METHOD)
def stream_image(
    selection: SelectionState = Depends(get_selection),
    store: ImageStore = Depends(get_store),
) -> FileResponse:
    """Stream the bytes of the selected file.

    The file is looked up again on every call, so a selection whose file was
    removed from disk yields 404 rather than stale content.
    """
    filename = selection.current()
    if not filename:
        raise NotFoundError("No image currently selected")

    path = store.resolve(filename)
    try:
        if path is None or not path.is_file():
            raise FileNotFoundError(filename)
        stat_result = path.stat()
        media_type = _media_type_for(path)
    except OSError as exc:
        logger.warning("Selected image no longer exists: %s", filename)
        raise NotFoundError("Selected image no longer exists") from exc

    return FileResponse(
        path,
        media_type=media_type,
        stat_result=stat_result,
        headers={"Cache-Control": "no-store"},
    )


@router.api_route("/images", methods=ANY_METHOD)
def list_images(store: ImageStore = Depends(get_store)) -> JSONResponse:
    return respond(200, data=store.list_files())


@router.api_route("/current-image", methods=ANY_METHOD)
def current_image(selection: SelectionState = Depends(get_selection)) -> JSONResponse:
    return respond(200, data=CurrentImage(current=selection.current()).model_dump())
