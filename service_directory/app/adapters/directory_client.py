"""
Upstream employee directory client.
"""

from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from shared.errors import TransportError, UpstreamError
from shared.logging import get_logger

from ..domain.models import (
    DeletionEnvelope,
    EmployeeCreateRequest,
    EmployeeEnvelope,
    EmployeeListEnvelope,
    EmployeeRecord,
)

EnvelopeT = TypeVar("EnvelopeT", bound=BaseModel)


class DirectoryClient:
    """Client for the rate-limited upstream employee directory.

    Every public method absorbs transport and envelope failures into an
    empty or ``None`` result; deciding whether that is an error belongs to
    the caller.
    """

    def __init__(self,
                 base_url: str,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 timeout: float = 10.0):
        self.base_url = base_url.rstrip('/')
        self.logger = get_logger("directory.client")
        self._client = httpx.AsyncClient(transport=transport, timeout=timeout)

    async def aclose(self) -> None:
        """Close the underlying HTTP client and its transport."""
        await self._client.aclose()

    async def __aenter__(self) -> "DirectoryClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def create_employee(self, request: EmployeeCreateRequest) -> Optional[EmployeeRecord]:
        """Create an employee upstream; ``None`` when nothing was created."""
        try:
            response = await self._send("POST", self.base_url, json=request.model_dump())
            self._raise_for_status(response)
            envelope = self._parse(response, EmployeeEnvelope)
        except (TransportError, UpstreamError) as exc:
            self.logger.error("Failed to create employee", name=request.name, error=exc.message)
            return None

        if envelope.data is None:
            self.logger.warning("Empty envelope when creating employee", name=request.name)
            return None

        self.logger.debug("Created employee", employee_id=envelope.data.id)
        return envelope.data

    async def list_employees(self) -> List[EmployeeRecord]:
        """Fetch the full collection in upstream order; empty on any failure."""
        try:
            response = await self._send("GET", self.base_url)
            self._raise_for_status(response)
            envelope = self._parse(response, EmployeeListEnvelope)
        except (TransportError, UpstreamError) as exc:
            self.logger.error("Failed to fetch employees", error=exc.message)
            return []

        return self._parse_rows(envelope.data or [])

    def _parse_rows(self, rows: List[Any]) -> List[EmployeeRecord]:
        employees = []
        for position, row in enumerate(rows):
            try:
                employees.append(EmployeeRecord.model_validate(row))
            except ValidationError as exc:
                row_id = row.get("id") if isinstance(row, dict) else None
                self.logger.warning(
                    "Skipping invalid employee row",
                    position=position,
                    employee_id=row_id,
                    errors=[".".join(str(part) for part in error["loc"]) for error in exc.errors()],
                )
        return employees

    async def get_employee(self, employee_id: str) -> Optional[EmployeeRecord]:
        """Fetch one employee; ``None`` when missing or on any failure."""
        try:
            response = await self._send("GET", f"{self.base_url}/{employee_id}")
            if response.status_code == 404:
                self.logger.info("Employee not found upstream", employee_id=employee_id)
                return None
            self._raise_for_status(response)
            envelope = self._parse(response, EmployeeEnvelope)
        except (TransportError, UpstreamError) as exc:
            self.logger.error("Failed to fetch employee", employee_id=employee_id, error=exc.message)
            return None

        return envelope.data

    async def delete_employee(self, employee_id: str) -> Optional[str]:
        """Delete an employee by id and return its name.

        The upstream deletes by name, so the employee is looked up first. A
        miss on the lookup ends the operation without a delete call. The
        employee may still vanish between the two calls; that surfaces as
        ``None`` like any other unconfirmed delete.
        """
        employee = await self.get_employee(employee_id)
        if employee is None or not employee.name.strip():
            self.logger.warning("Cannot delete employee: not found or name missing", employee_id=employee_id)
            return None

        name = employee.name
        try:
            response = await self._send("DELETE", self.base_url, json={"name": name})
            if response.status_code == 404:
                self.logger.warning("Employee already gone upstream", employee_id=employee_id, name=name)
                return None
            self._raise_for_status(response)
            envelope = self._parse(response, DeletionEnvelope)
        except (TransportError, UpstreamError) as exc:
            self.logger.error("Failed to delete employee", employee_id=employee_id, error=exc.message)
            return None

        if envelope.data is not True:
            self.logger.warning("Upstream did not confirm deletion", name=name, status=envelope.status)
            return None

        self.logger.debug("Deleted employee", employee_id=employee_id, name=name)
        return name

    async def _send(self, method: str, url: str, json: Optional[Dict[str, Any]] = None) -> httpx.Response:
        try:
            return await self._client.request(method, url, json=json)
        except httpx.HTTPError as exc:
            raise TransportError(
                f"{method} {url} failed: {exc}",
                details={"url": url, "error_type": type(exc).__name__}
            ) from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        # A 429 here means the retry budget was spent; it carries no data
        if not response.is_success:
            raise UpstreamError(
                f"Unexpected status {response.status_code}",
                details={"status_code": response.status_code, "body": response.text[:500]}
            )

    @staticmethod
    def _parse(response: httpx.Response, envelope_type: Type[EnvelopeT]) -> EnvelopeT:
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError("Response body is not JSON", details={"body": response.text[:500]}) from exc

        if not isinstance(payload, dict):
            raise UpstreamError("Response envelope is not an object", details={"body": response.text[:500]})

        try:
            return envelope_type.model_validate(payload)
        except ValidationError as exc:
            raise UpstreamError(
                "Malformed response envelope",
                details={"errors": exc.errors(include_url=False, include_context=False)}
            ) from exc
