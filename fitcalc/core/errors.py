"""Shared error codes and exceptions for fit computation.

Every failure of the engine is raised synchronously as a ``FitCalcError``
subclass carrying an ``ErrorCode``; the HTTP layer and the batch driver map
the code to a status or a failed row without inspecting messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    INVALID_NUMBER = "INVALID_NUMBER"  # diameter does not fit the 3-decimal grammar
    OUT_OF_RANGE = "OUT_OF_RANGE"  # diameter outside the supported buckets
    INVALID_DESIGNATION = "INVALID_DESIGNATION"  # e.g. "H", "7H", "Hx7"
    KIND_MISMATCH = "KIND_MISMATCH"  # hole field holding a shaft designation
    UNKNOWN_ZONE = "UNKNOWN_ZONE"  # letter absent from the zone table
    NO_TABLE_ENTRY = "NO_TABLE_ENTRY"  # combination not defined by the standard
    MALFORMED_REFERENCE_DATASET = "MALFORMED_REFERENCE_DATASET"


# HTTP status per code, used by the API layer.
ERROR_STATUS_MAPPING: Dict[ErrorCode, int] = {
    ErrorCode.INVALID_NUMBER: 400,
    ErrorCode.OUT_OF_RANGE: 400,
    ErrorCode.INVALID_DESIGNATION: 400,
    ErrorCode.KIND_MISMATCH: 400,
    ErrorCode.UNKNOWN_ZONE: 404,
    ErrorCode.NO_TABLE_ENTRY: 404,
    ErrorCode.MALFORMED_REFERENCE_DATASET: 500,
}


class FitCalcError(Exception):
    """Base exception for fit computation and reconciliation errors."""

    code: ErrorCode = ErrorCode.INVALID_NUMBER

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context,
        }


class InvalidNumber(FitCalcError):
    """Raised when a diameter is not a decimal with at most 3 fraction digits."""

    code = ErrorCode.INVALID_NUMBER


class OutOfRange(FitCalcError):
    """Raised when a diameter falls outside every nominal-size bucket."""

    code = ErrorCode.OUT_OF_RANGE


class InvalidDesignation(FitCalcError):
    """Raised when a tolerance-zone designation is malformed."""

    code = ErrorCode.INVALID_DESIGNATION


class KindMismatch(FitCalcError):
    """Raised when a designation's case does not match the expected side."""

    code = ErrorCode.KIND_MISMATCH


class UnknownZone(FitCalcError):
    code = ErrorCode.UNKNOWN_ZONE


class NoTableEntry(FitCalcError):
    code = ErrorCode.NO_TABLE_ENTRY


class MalformedReferenceDataset(FitCalcError):
    """Raised when the raw reference dataset cannot be reconciled."""

    code = ErrorCode.MALFORMED_REFERENCE_DATASET


def get_error_status(error_code: ErrorCode) -> int:
    return ERROR_STATUS_MAPPING.get(error_code, 500)


__all__ = [
    "ErrorCode",
    "FitCalcError",
    "InvalidNumber",
    "OutOfRange",
    "InvalidDesignation",
    "KindMismatch",
    "UnknownZone",
    "NoTableEntry",
    "MalformedReferenceDataset",
    "get_error_status",
]
