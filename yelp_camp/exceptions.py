"""Application error types and the single error normalization function."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from werkzeug.exceptions import HTTPException

DEFAULT_STATUS_CODE = 500
DEFAULT_ERROR_MESSAGE = "Oh no, something went wrong!"
NOT_FOUND_MESSAGE = "Page Not Found"


class AppError(Exception):
    """Error raised by application code, optionally carrying an HTTP status.

    Attributes:
        message: Human-readable message, or None when there is nothing to say.
        status_code: HTTP status to respond with, or None for the default.
    """

    def __init__(
        self, message: Optional[str] = None, status_code: Optional[int] = None
    ) -> None:
        super().__init__(message or "")
        self.message = message
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"AppError(message={self.message!r}, status_code={self.status_code!r})"


class NotFoundError(AppError):
    """No registered route matched the request's method and path."""

    def __init__(self, message: str = NOT_FOUND_MESSAGE) -> None:
        super().__init__(message, 404)


@dataclass(frozen=True)
class ErrorResult:
    """Normalized error as handed to the error view."""

    status_code: int
    message: str


def normalize_error(exc: BaseException) -> ErrorResult:
    """Convert any exception into a status code and a displayable message.

    Typed application errors contribute their own status and message,
    werkzeug HTTP exceptions contribute their code and description, and
    anything else becomes a 500 with the generic message; its text (which
    for database errors includes SQL and bound parameters) is only logged.
    An empty message is replaced by ``DEFAULT_ERROR_MESSAGE``.

    Args:
        exc: The exception to normalize.

    Returns:
        ErrorResult with a concrete status code and message.
    """
    status_code: Optional[int]
    message: Optional[str]

    if isinstance(exc, AppError):
        status_code, message = exc.status_code, exc.message
    elif isinstance(exc, HTTPException):
        status_code, message = exc.code, exc.description
    else:
        status_code, message = None, None

    if not isinstance(status_code, int) or not 400 <= status_code <= 599:
        status_code = DEFAULT_STATUS_CODE
    if not message:
        message = DEFAULT_ERROR_MESSAGE

    return ErrorResult(status_code=status_code, message=message)
