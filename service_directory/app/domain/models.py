"""
Employee data models for the Directory Service.

Field aliases follow the upstream wire format (``employee_name``,
``employee_salary`` ...). Records are frozen value objects; a changed
directory is always represented by a new snapshot, never by mutating a
record.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from shared.errors import InvalidInputError


MIN_EMPLOYEE_AGE = 16
MAX_EMPLOYEE_AGE = 75


class EmployeeRecord(BaseModel):
    """An employee as returned by the upstream directory."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., description="Upstream-assigned identifier")
    name: str = Field(..., alias="employee_name", min_length=1)
    salary: int = Field(..., alias="employee_salary", ge=0)
    age: int = Field(..., alias="employee_age", gt=0)
    title: str = Field("", alias="employee_title")
    email: Optional[str] = Field(None, alias="employee_email")

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using upstream field names."""
        return self.model_dump(by_alias=True)


class EmployeeCreateRequest(BaseModel):
    """Payload for creating an employee; the identifier is assigned upstream."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    salary: int = Field(..., gt=0)
    age: int = Field(..., ge=MIN_EMPLOYEE_AGE, le=MAX_EMPLOYEE_AGE)
    title: str = Field(..., min_length=1)

    @field_validator("name", "title")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class EmployeeEnvelope(BaseModel):
    """Upstream envelope around a single employee."""

    data: Optional[EmployeeRecord] = None
    status: Optional[str] = None


class EmployeeListEnvelope(BaseModel):
    """Upstream envelope around the full employee collection.

    Rows stay raw here; they are validated one by one so that a single bad
    row does not discard the rest.
    """

    data: Optional[List[Any]] = None
    status: Optional[str] = None


class DeletionEnvelope(BaseModel):
    """Upstream envelope returned by delete-by-name."""

    data: Optional[bool] = None
    status: Optional[str] = None


@dataclass(frozen=True)
class DirectorySnapshot:
    """All employees as of one successful upstream fetch."""

    records: Tuple[EmployeeRecord, ...]
    fetched_at: datetime
    generation: int

    def __len__(self) -> int:
        return len(self.records)


def validate_create_request(
    payload: Union[EmployeeCreateRequest, Mapping[str, Any]]
) -> EmployeeCreateRequest:
    """Validate caller input, raising ``InvalidInputError`` when it is unusable."""
    if isinstance(payload, EmployeeCreateRequest):
        # Re-check instances built with model_construct or copied without validation
        payload = payload.model_dump()

    if not isinstance(payload, Mapping):
        raise InvalidInputError(
            "Employee input must be an object",
            details={"received": type(payload).__name__}
        )

    try:
        return EmployeeCreateRequest.model_validate(dict(payload))
    except ValidationError as exc:
        errors = [
            {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
            for error in exc.errors()
        ]
        raise InvalidInputError("Invalid employee input", details={"errors": errors}) from exc


def require_employee_id(employee_id: Optional[str]) -> str:
    """Reject blank identifiers before they reach the upstream."""
    if employee_id is None or not str(employee_id).strip():
        raise InvalidInputError("Employee id must not be blank")
    return str(employee_id).strip()
