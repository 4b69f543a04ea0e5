"""Exceptions raised by the image upload, storage and selection layers.

Each error carries the HTTP status it maps to; the exception handler
registered in ``imagecast.main`` turns them into the JSON envelope.
"""


class ImageServiceError(Exception):
    """Base exception for non-fatal request errors."""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class InvalidRequestError(ImageServiceError):
    """Raised when a required field is missing or malformed."""
    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class UnsupportedTypeError(ImageServiceError):
    """Raised when sniffed content is not in the allow-list."""
    def __init__(self, mime_type: str):
        self.mime_type = mime_type
        super().__init__(f"Unsupported file type: {mime_type}", status_code=400)


class NotFoundError(ImageServiceError):
    """Raised when a referenced file is absent from the upload directory."""
    def __init__(self, message: str = "File not found"):
        super().__init__(message, status_code=404)


class StorageError(ImageServiceError):
    """Raised when reading or writing the upload directory fails."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)


class ReadError(StorageError):
    """Raised when an upload stream cannot be sampled or rewound."""


class StartupError(Exception):
    """Raised when the upload directory is unusable at startup. Never handled."""
