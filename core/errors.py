"""
core/errors.py -- Domain exception taxonomy for the Content API.

Every failure a request can hit is raised as a ContentAPIError subclass. The
class carries the HTTP status and the machine-readable error code, so the
exception handler in api/main.py can render any of them into the shared
ErrorResponse envelope without a lookup table.

Stores and the login flow raise these; routes let them propagate. Nothing in
the application terminates the process on a request failure.

Layer rule: core/ is the kernel. No imports from api/, auth/, or content/.
"""

from __future__ import annotations


class ContentAPIError(Exception):
    """Base class for errors that map to an HTTP error response."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class AuthenticationError(ContentAPIError):
    """Bad credentials or the directory could not verify them."""

    status_code = 401
    code = "bad_credentials"


class DirectoryUnavailableError(AuthenticationError):
    """The directory service could not be reached or answered with an error."""

    code = "directory_unavailable"


class NotFoundError(ContentAPIError):
    status_code = 404
    code = "not_found"


class ValidationError(ContentAPIError):
    """A field could not be parsed or violates a constraint."""

    status_code = 422
    code = "validation_error"


class StorageError(ContentAPIError):
    """The record store is unreachable or an operation failed."""

    status_code = 503
    code = "storage_error"


class ConflictError(StorageError):
    """An insert collided with an existing record identifier."""

    status_code = 409
    code = "conflict"
