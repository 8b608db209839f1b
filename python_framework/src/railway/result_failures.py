"""
Convenience factory methods for common Result failures.

    from railway.result_failures import ResultFailures

    # Instead of:
    Result.failure(ErrorCode.VALIDATION_ERROR, "Make is required")

    # Write:
    ResultFailures.validation_error("Make is required")
"""

from __future__ import annotations

from railway.failure import ErrorCode
from railway.result import Result


class ResultFailures:
    """Factory methods for the failure types used across the application."""

    @staticmethod
    def validation_error(message: str) -> Result:
        """Invalid input — missing fields, rejected file, out-of-range index."""
        return Result.failure(ErrorCode.VALIDATION_ERROR, message)

    @staticmethod
    def business_rule_error(message: str) -> Result:
        """Operation refused — declined confirmation, batch already running."""
        return Result.failure(ErrorCode.BUSINESS_RULE_ERROR, message)

    @staticmethod
    def not_found(resource_type: str, identifier: str) -> Result:
        """Resource doesn't exist."""
        return Result.failure(
            ErrorCode.NOT_FOUND,
            f"{resource_type} not found with identifier: {identifier}",
        )

    @staticmethod
    def authentication_error(message: str) -> Result:
        """Invalid credentials or expired token."""
        return Result.failure(ErrorCode.AUTHENTICATION_ERROR, message)

    @staticmethod
    def technical_error(message: str, exception: BaseException | None = None) -> Result:
        """Local infrastructure issue."""
        return Result.failure(ErrorCode.TECHNICAL_ERROR, message, exception)

    @staticmethod
    def external_service_error(message: str, exception: BaseException | None = None) -> Result:
        """Remote API call failure."""
        return Result.failure(ErrorCode.EXTERNAL_SERVICE_ERROR, message, exception)
