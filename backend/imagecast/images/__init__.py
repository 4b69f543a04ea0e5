"""Image upload, selection and streaming module for imagecast.

Uploads are validated by sniffing their leading bytes, stored flat in the
upload directory under ``{nanoseconds}-{name}``, and one of them at a time
can be selected for streaming.

Accepted content (sniffed, not client-declared):
- Images: jpeg, png, gif, webp
- Anything the sniffer labels application/octet-stream, unless
  ``storage.allow_generic_binary`` is disabled

The selection is held in memory and is lost on restart.
"""

from .errors import (
    ImageServiceError,
    InvalidRequestError,
    NotFoundError,
    ReadError,
    StartupError,
    StorageError,
    UnsupportedTypeError,
)
from .router import router
from .selection import SelectionState
from .sniffer import detect_content_type
from .storage import ImageStore, ensure_upload_dir, sanitize_filename
from .validator import UploadValidator

__all__ = [
    "ImageServiceError",
    "InvalidRequestError",
    "NotFoundError",
    "ReadError",
    "StartupError",
    "StorageError",
    "UnsupportedTypeError",
    "router",
    "SelectionState",
    "detect_content_type",
    "ImageStore",
    "ensure_upload_dir",
    "sanitize_filename",
    "UploadValidator",
]
