"""Domain layer: errors and schemas."""

from .errors import ErrorCodes, UploadRejectError
from .schemas import (
    MediaType,
    Meme,
    StoredFile,
    UploadField,
    UploadOutcome,
    UploadState,
)

__all__ = [
    "ErrorCodes",
    "UploadRejectError",
    "MediaType",
    "Meme",
    "StoredFile",
    "UploadField",
    "UploadOutcome",
    "UploadState",
]
