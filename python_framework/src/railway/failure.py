"""
Failure description — structured error information for the failure track.

An ErrorCode classifies the failure, a FailureDescription carries it along
with the message shown to the operator and, optionally, the exception that
caused it.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique
from typing import Optional


@unique
class ErrorCode(Enum):
    """
    Structured error codes for the failure track.

    Grouped by the HTTP status range they usually come from:
    - Client errors (4xx): VALIDATION, AUTHENTICATION, AUTHORIZATION, NOT_FOUND, BUSINESS_RULE
    - Server errors (5xx): TECHNICAL, CONFIGURATION, EXTERNAL_SERVICE, TIMEOUT, UNKNOWN
    """

    # --- Client-side errors (4xx HTTP range) ---
    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Invalid input, missing required fields, rejected files (→ 400)."""

    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    """Invalid credentials, expired or rejected tokens (→ 401)."""

    AUTHORIZATION_ERROR = "AUTHORIZATION_ERROR"
    """Insufficient permissions (→ 403)."""

    NOT_FOUND = "NOT_FOUND"
    """Resource doesn't exist (→ 404)."""

    BUSINESS_RULE_ERROR = "BUSINESS_RULE_ERROR"
    """Operation refused by a domain rule or by the operator (→ 409)."""

    # --- Server-side errors (5xx HTTP range) ---
    TECHNICAL_ERROR = "TECHNICAL_ERROR"
    """Local infrastructure issues, e.g. disk writes (→ 500)."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """System misconfiguration (→ 500)."""

    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    """Remote API call failures (→ 502)."""

    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    """Operation exceeded time limit (→ 504)."""

    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    """Unexpected/unclassified failures (→ 500)."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor carrying error code, message, optional exception, and timestamp.

    >>> desc = FailureDescription(ErrorCode.VALIDATION_ERROR, "Make is required")
    >>> desc.code
    <ErrorCode.VALIDATION_ERROR: 'VALIDATION_ERROR'>
    >>> desc.message
    'Make is required'
    """

    code: ErrorCode
    message: str
    exception: Optional[BaseException] = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @staticmethod
    def create(
        code: ErrorCode,
        message: str,
        exception: Optional[BaseException] = None,
    ) -> FailureDescription:
        return FailureDescription(code=code, message=message, exception=exception)

    @property
    def is_authentication_failure(self) -> bool:
        """True when the failure means the current credentials were rejected."""
        return self.code is ErrorCode.AUTHENTICATION_ERROR

    def full_stack_trace(self) -> str:
        """Message followed by the formatted exception chain, if any."""
        if self.exception is None:
            return self.message
        tb = "".join(traceback.format_exception(type(self.exception), self.exception, self.exception.__traceback__))
        return f"{self.message}\n{tb}"
