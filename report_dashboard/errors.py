"""Error taxonomy shared by the file stores and the HTTP layer."""
from __future__ import annotations

from typing import Optional


class VirtualFileError(Exception):
    """Base error for virtual file store operations."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str = "", path: Optional[str] = None, error: Optional[str] = None) -> None:
        super().__init__(message or error or self.error)
        self.path = path
        if error:
            self.error = error


class NotFound(VirtualFileError):
    """Path is absent from every source."""

    status_code = 404
    error = "File not found"


class NotAFile(VirtualFileError):
    """A file was expected but the path resolves to a folder."""

    status_code = 400
    error = "Path is not a file"


class InvalidInput(VirtualFileError):
    status_code = 400
    error = "Invalid input"


class DuplicatePath(VirtualFileError):
    status_code = 409
    error = "Path already exists"


class StoreUnavailable(VirtualFileError):
    """The document store cannot be queried. Never shown to clients."""

    status_code = 503
    error = "Store unavailable"


class InternalFailure(VirtualFileError):
    status_code = 500
    error = "Internal failure"
