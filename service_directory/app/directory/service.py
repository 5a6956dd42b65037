"""
Directory service: search, aggregates and mutations over the employee directory.
"""

from typing import Any, List, Mapping, Optional, Union

from shared.errors import CreationFailedError, DeletionFailedError, NotFoundError
from shared.logging import get_logger

from service_directory.app.adapters.directory_client import DirectoryClient
from service_directory.app.caching.snapshot_cache import EmployeeCache
from service_directory.app.domain.models import (
    EmployeeCreateRequest,
    EmployeeRecord,
    require_employee_id,
    validate_create_request,
)
from service_directory.app.domain.top_k import select_top_k


DEFAULT_TOP_EARNERS = 10


class DirectoryService:
    """Reads through the snapshot cache and writes through the client.

    Every successful create or delete invalidates the cache so the next
    read observes the upstream state.
    """

    def __init__(self, client: DirectoryClient, cache: EmployeeCache,
                 top_earners_limit: int = DEFAULT_TOP_EARNERS):
        self.client = client
        self.cache = cache
        self.top_earners_limit = top_earners_limit
        self.logger = get_logger("directory.service")

    async def create(self, request: Union[EmployeeCreateRequest, Mapping[str, Any]]) -> EmployeeRecord:
        """Create an employee; raises ``CreationFailedError`` if upstream returned nothing."""
        validated = validate_create_request(request)

        created = await self.client.create_employee(validated)
        if created is None:
            raise CreationFailedError(details={"name": validated.name})

        self.cache.invalidate()
        self.logger.info("Employee created", employee_id=created.id)
        return created

    async def find_by_id(self, employee_id: str) -> EmployeeRecord:
        employee_id = require_employee_id(employee_id)
        employee = await self.client.get_employee(employee_id)
        if employee is None:
            raise NotFoundError(employee_id)
        return employee

    async def list_all(self) -> List[EmployeeRecord]:
        return await self.cache.get_all()

    async def search_by_name(self, fragment: str) -> List[EmployeeRecord]:
        """Case-insensitive substring match on name, in snapshot order."""
        needle = (fragment or "").lower()
        return [
            employee for employee in await self.cache.get_all()
            if needle in employee.name.lower()
        ]

    async def highest_salary(self) -> int:
        """Highest salary in the snapshot, 0 when it is empty."""
        employees = await self.cache.get_all()
        return max((employee.salary for employee in employees), default=0)

    async def top_earner_names(self, k: Optional[int] = None) -> List[str]:
        """Names of the ``k`` best paid employees, highest salary first."""
        if k is None:
            k = self.top_earners_limit
        employees = await self.cache.get_all()
        return [employee.name for employee in select_top_k(employees, k)]

    async def delete_by_id(self, employee_id: str) -> str:
        """Delete an employee and return its name.

        A missing employee and an unconfirmed delete both raise
        ``DeletionFailedError``; the client does not tell them apart.
        """
        employee_id = require_employee_id(employee_id)
        deleted_name = await self.client.delete_employee(employee_id)
        if deleted_name is None:
            raise DeletionFailedError(employee_id)

        self.cache.invalidate()
        self.logger.info("Employee deleted", employee_id=employee_id, name=deleted_name)
        return deleted_name
