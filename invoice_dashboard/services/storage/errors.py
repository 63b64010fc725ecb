"""
Storage failures, mapped onto HTTP status codes by the API layer.
"""

from ...core.errors import AppError, BadRequestError, NotFoundError


class InvalidFileIdError(BadRequestError):
    error = "Invalid file ID"


class BlobNotFoundError(NotFoundError):
    error = "File not found"


class BlobStoreTimeoutError(AppError):
    """A blob read or write did not finish within its wall-clock bound"""
    status_code = 500
    error = "Timeout"


class StoreUnavailableError(AppError):
    status_code = 500
    error = "Database error"
