"""
HTTP integration — classify remote responses onto the failure track.

Clients of remote services receive an HTTP status and need an ErrorCode.
HttpStatusMapper does that translation in one place so every adapter
agrees on what an expired session looks like.

    code = HttpStatusMapper.error_code_for_status(401)  # → AUTHENTICATION_ERROR
    result = failure_for_status(502, "Upload failed")   # → Failure(EXTERNAL_SERVICE_ERROR)
"""

from __future__ import annotations

from typing import TypeVar

from railway.failure import ErrorCode
from railway.result import Result

T = TypeVar("T")


class HttpStatusMapper:
    """Maps HTTP status codes returned by a remote service to ErrorCode values."""

    _STATUS_TO_CODE: dict[int, ErrorCode] = {
        401: ErrorCode.AUTHENTICATION_ERROR,
        403: ErrorCode.AUTHORIZATION_ERROR,
        408: ErrorCode.TIMEOUT_ERROR,
        504: ErrorCode.TIMEOUT_ERROR,
    }

    @classmethod
    def error_code_for_status(cls, status: int) -> ErrorCode:
        """
        Map a non-success status to an ErrorCode.

        Anything not listed explicitly is a failure of the remote service
        from the caller's point of view.
        """
        return cls._STATUS_TO_CODE.get(status, ErrorCode.EXTERNAL_SERVICE_ERROR)

    @staticmethod
    def is_success(status: int) -> bool:
        return 200 <= status < 300


def failure_for_status(
    status: int,
    message: str,
    exception: BaseException | None = None,
) -> Result[T]:
    """Build the Failure matching a non-success HTTP status."""
    return Result.failure(HttpStatusMapper.error_code_for_status(status), message, exception)
