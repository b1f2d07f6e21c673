from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    MISSING_PARAMETERS = "MISSING_PARAMETERS"
    INVALID_GRANT_DATA = "INVALID_GRANT_DATA"
    INVALID_DATES = "INVALID_DATES"
    CALCULATION_FAILED = "CALCULATION_FAILED"
    # Raised by collaborators wrapping the engine, never by the engine itself.
    DECRYPTION_FAILED = "DECRYPTION_FAILED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    PERFORMANCE_TIMEOUT = "PERFORMANCE_TIMEOUT"
    MEMORY_LIMIT_EXCEEDED = "MEMORY_LIMIT_EXCEEDED"


class VestingCalculationError(Exception):
    """Anticipated domain failure; converted into a failed result by the engine."""

    code: ErrorCode = ErrorCode.CALCULATION_FAILED

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        *,
        grant_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.grant_id = grant_id
        self.context = context or {}


class MissingParametersError(VestingCalculationError):
    code = ErrorCode.MISSING_PARAMETERS


class InvalidGrantDataError(VestingCalculationError):
    code = ErrorCode.INVALID_GRANT_DATA


class InvalidDatesError(VestingCalculationError):
    code = ErrorCode.INVALID_DATES


class CalculationFailedError(VestingCalculationError):
    code = ErrorCode.CALCULATION_FAILED


def error_details(exc: VestingCalculationError) -> dict[str, Any]:
    details = dict(exc.context)
    if exc.grant_id is not None:
        details["grant_id"] = exc.grant_id
    return {
        "code": exc.code.value,
        "message": exc.message,
        "details": details,
    }
