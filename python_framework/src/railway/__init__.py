"""
Railway-Oriented Programming (ROP) Framework for Python.

Explicit, composable, functional error handling — no exceptions in business logic.

    from railway import Result, ErrorCode

    def require_make(make: str) -> Result[str]:
        if not make.strip():
            return Result.failure(ErrorCode.VALIDATION_ERROR, "Make is required")
        return Result.success(make)

    result = (
        Result.success({"make": "Tesla", "model": "Model 3"})
        .flat_map(lambda d: require_make(d["make"]))
        .map(lambda make: f"Known make {make}")
    )
"""

from railway.result import Result, Success, Failure
from railway.failure import ErrorCode, FailureDescription
from railway.execution import (
    ExecutionContext,
    NoOpExecutionContext,
    LoggingExecutionContext,
)
from railway.http_support import HttpStatusMapper, failure_for_status
from railway.result_failures import ResultFailures
from railway.assertions import ResultAssertions

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ExecutionContext",
    "NoOpExecutionContext",
    "LoggingExecutionContext",
    "HttpStatusMapper",
    "failure_for_status",
    "ResultFailures",
    "ResultAssertions",
]

__version__ = "1.1.0"
