"""Pydantic schemas and constants for the image endpoints.

Every JSON response shares one envelope:

    {"success": bool, "message": str, "data": <optional payload>}

``data`` is left out entirely when a handler has nothing to return.
"""
from types import MappingProxyType
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

from .sniffer import GENERIC_BINARY

# Sniffed MIME types an upload may carry. The generic binary entry admits any
# content the sniffer cannot label; it can be switched off in settings.
ALLOWED_MIME_TYPES: Mapping[str, bool] = MappingProxyType({
    "image/jpeg": True,
    "image/png": True,
    "image/gif": True,
    "image/webp": True,
    GENERIC_BINARY: True,
})


class ApiResponse(BaseModel):
    """Uniform response envelope returned by every JSON endpoint."""
    success: bool = Field(..., description="Whether the request succeeded")
    message: str = Field("", description="Human-readable result or error")
    data: Optional[Any] = Field(None, description="Endpoint-specific payload")


class UploadResult(BaseModel):
    filename: str = Field(..., description="Generated name of the stored file")


class CurrentImage(BaseModel):
    current: str = Field("", description="Selected filename, empty if none")
