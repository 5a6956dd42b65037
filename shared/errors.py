"""
Shared error handling for the Employee Directory service.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class DirectoryError(Exception):
    """Base exception for the directory service."""

    status_code: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class TransportError(DirectoryError):
    """Network-level failure talking to the upstream directory."""

    status_code = 502

    def __init__(self, message: str = "Upstream transport failure", details: Optional[Dict[str, Any]] = None):
        super().__init__("TRANSPORT_ERROR", message, details)


class UpstreamError(DirectoryError):
    """Malformed or unexpected response from the upstream directory."""

    status_code = 502

    def __init__(self, message: str = "Unexpected upstream response", details: Optional[Dict[str, Any]] = None):
        super().__init__("UPSTREAM_ERROR", message, details)


class NotFoundError(DirectoryError):
    """Requested employee does not exist."""

    status_code = 404

    def __init__(self, employee_id: str, details: Optional[Dict[str, Any]] = None):
        self.employee_id = employee_id
        super().__init__("NOT_FOUND", f"Employee with ID '{employee_id}' not found", details)


class InvalidInputError(DirectoryError):
    """Caller supplied data failed validation."""

    status_code = 400

    def __init__(self, message: str = "Invalid input", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_INPUT", message, details)


class CreationFailedError(DirectoryError):
    """Upstream did not return the created employee."""

    status_code = 400

    def __init__(self, message: str = "Employee could not be created", details: Optional[Dict[str, Any]] = None):
        super().__init__("CREATION_FAILED", message, details)


class DeletionFailedError(DirectoryError):
    """Upstream did not confirm deletion (or the employee was already gone)."""

    status_code = 500

    def __init__(self, employee_id: str, details: Optional[Dict[str, Any]] = None):
        self.employee_id = employee_id
        super().__init__("DELETION_FAILED", f"Failed to delete employee with ID '{employee_id}'", details)
