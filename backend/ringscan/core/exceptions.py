"""
Exception hierarchy for RingScan.
Load and scan errors carry a machine-readable code and details so the API
layer can render them without knowing every subclass.
"""

from typing import Optional, Dict, Any

from fastapi import Request, status
from fastapi.responses import JSONResponse


class RingScanError(Exception):
    """Base exception class for all RingScan errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class LoadError(RingScanError):
    """Raised when a graph load is rejected. The store is left untouched."""


class DuplicateAccountError(LoadError):
    """Raised when two account records share an id but disagree on attributes."""

    def __init__(
        self,
        account_id: str,
        existing: Optional[Dict[str, Any]] = None,
        incoming: Optional[Dict[str, Any]] = None,
    ):
        details = {
            "account_id": account_id,
            "existing": existing or {},
            "incoming": incoming or {},
        }
        super().__init__(
            f"Account '{account_id}' loaded twice with conflicting attributes",
            "DUPLICATE_ACCOUNT",
            details,
        )
        self.account_id = account_id


class DanglingReferenceError(LoadError):
    """Raised when a transaction references an account that was never loaded."""

    def __init__(self, transaction_id: str, account_id: str):
        super().__init__(
            f"Transaction '{transaction_id}' references unknown account '{account_id}'",
            "DANGLING_REFERENCE",
            {"transaction_id": transaction_id, "account_id": account_id},
        )
        self.transaction_id = transaction_id
        self.account_id = account_id


class InvalidTransactionError(LoadError):
    """Raised for non-positive amounts, unparseable dates, missing or duplicate ids."""

    def __init__(self, transaction_id: Optional[str], reason: str):
        super().__init__(
            f"Transaction '{transaction_id}' is invalid: {reason}",
            "INVALID_TRANSACTION",
            {"transaction_id": transaction_id, "reason": reason},
        )
        self.transaction_id = transaction_id
        self.reason = reason


class ScanParameterError(RingScanError, ValueError):
    """Raised when scan parameters are out of range."""

    def __init__(self, parameter: str, value: Any, expected: str):
        super().__init__(
            f"Invalid scan parameter {parameter}={value!r}: expected {expected}",
            "INVALID_SCAN_PARAMETER",
            {"parameter": parameter, "value": value, "expected": expected},
        )


class GraphNotLoadedError(RingScanError):
    """Raised when a scan is requested before any graph was loaded."""

    def __init__(self, message: str = "No graph has been loaded yet"):
        super().__init__(message, "GRAPH_NOT_LOADED")


class ScanInProgressError(RingScanError):
    """Raised when a scan is requested while another one is still running."""

    def __init__(self, message: str = "A scan is already running"):
        super().__init__(message, "SCAN_IN_PROGRESS")


class NotFoundError(RingScanError):
    """Raised when a ring or account lookup has no match."""

    def __init__(self, message: str, entity_id: Optional[str] = None):
        details = {"entity_id": entity_id} if entity_id else {}
        super().__init__(message, "NOT_FOUND", details)


STATUS_CODE_MAPPING = {
    LoadError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ScanParameterError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    GraphNotLoadedError: status.HTTP_409_CONFLICT,
    ScanInProgressError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
}


def status_code_for(exc: RingScanError) -> int:
    """Resolve the HTTP status for an error, walking the class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in STATUS_CODE_MAPPING:
            return STATUS_CODE_MAPPING[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_payload(exc: RingScanError) -> Dict[str, Any]:
    """Build the JSON error body for an error."""
    return {
        "success": False,
        "error_code": exc.error_code,
        "message": exc.message,
        "details": exc.details,
    }


async def ringscan_exception_handler(request: Request, exc: RingScanError) -> JSONResponse:
    """Render any RingScanError as a JSON error response."""
    return JSONResponse(status_code=status_code_for(exc), content=error_payload(exc))


EXCEPTION_HANDLERS = {
    RingScanError: ringscan_exception_handler,
}
