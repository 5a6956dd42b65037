"""
Domain types for the Directory Service.

Holds the immutable employee value objects, the upstream envelope shapes,
input validation and the top-K selection used by aggregate queries.
"""

from .models import (
    DirectorySnapshot,
    EmployeeCreateRequest,
    EmployeeRecord,
    require_employee_id,
    validate_create_request,
)
from .top_k import select_top_k

__all__ = [
    "DirectorySnapshot",
    "EmployeeCreateRequest",
    "EmployeeRecord",
    "require_employee_id",
    "select_top_k",
    "validate_create_request",
]
