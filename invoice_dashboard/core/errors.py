"""
Error taxonomy shared by the services and the HTTP layer.

Every failure the API reports deliberately is an AppError. The HTTP layer
renders it as {"success": false, "error", "details"[, "retryable"]} using
the status code carried on the exception.
"""

from typing import Optional


class AppError(Exception):
    status_code: int = 500
    error: str = "Internal server error"
    retryable: Optional[bool] = None

    def __init__(
        self,
        details: str,
        *,
        error: Optional[str] = None,
        status_code: Optional[int] = None,
        retryable: Optional[bool] = None,
    ):
        super().__init__(details)
        self.details = details
        if error is not None:
            self.error = error
        if status_code is not None:
            self.status_code = status_code
        if retryable is not None:
            self.retryable = retryable

    def to_dict(self) -> dict:
        body = {"success": False, "error": self.error, "details": self.details}
        if self.retryable is not None:
            body["retryable"] = self.retryable
        return body


class BadRequestError(AppError):
    status_code = 400
    error = "Bad request"


class NotFoundError(AppError):
    status_code = 404
    error = "Not found"
