"""Application errors raised by the directory managers.

Every failure leaving the library is one of these. The HTTP-style status
codes let callers map them onto a REST surface without another lookup.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, ClassVar

__all__ = [
    "BadRequestError",
    "ConflictError",
    "DirectoryError",
    "EntryAlreadyExistsError",
    "ForbiddenError",
    "InternalServerError",
    "MissingParametersError",
    "NotFoundError",
    "UnauthorizedError",
]


class DirectoryError(Exception):
    """Base class for all errors raised by ldapmgr."""

    error: ClassVar[str] = "internal_server_error"
    status_code: ClassVar[int] = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.error,
            "status": int(self.status_code),
            "message": self.message,
        }


class BadRequestError(DirectoryError):
    """Missing or invalid input, including incomplete configuration."""

    error = "bad_request"
    status_code = HTTPStatus.BAD_REQUEST


class MissingParametersError(BadRequestError):
    """One or more mandatory parameters were empty."""

    error = "missing_mandatory_parameter"

    def __init__(self, params: list[str], what: str = "parameter") -> None:
        self.params = list(params)
        super().__init__(f"Missing mandatory {what}(s): {', '.join(self.params)}")


class EntryAlreadyExistsError(BadRequestError):
    """The directory refused an add because the entry already exists."""

    error = "entry_already_exists"


class UnauthorizedError(DirectoryError):
    error = "unauthorized"
    status_code = HTTPStatus.UNAUTHORIZED


class ForbiddenError(DirectoryError):
    error = "insufficient_access"
    status_code = HTTPStatus.FORBIDDEN


class NotFoundError(DirectoryError):
    error = "not_found"
    status_code = HTTPStatus.NOT_FOUND


class ConflictError(DirectoryError):
    error = "conflict"
    status_code = HTTPStatus.CONFLICT


class InternalServerError(DirectoryError):
    error = "internal_server_error"
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
