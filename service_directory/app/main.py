"""
Directory service for the Employee Directory.
"""

from typing import Any, Dict, Optional

import httpx
from fastapi import Body, Response

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.retry import RetryConfig, RetryingTransport

from .adapters.directory_client import DirectoryClient
from .caching.snapshot_cache import build_cache
from .directory.service import DirectoryService


API_PREFIX = "/api/v1/employee"


class DirectoryApiService(BaseService):
    """HTTP front for the cached employee directory."""

    def __init__(self,
                 config: Optional[ServiceConfig] = None,
                 upstream_transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__("directory", 8111, config=config)

        self.transport = RetryingTransport(
            upstream_transport,
            RetryConfig.from_settings(self.config),
            metrics=self.metrics,
        )
        self.client = DirectoryClient(
            self.config.upstream_url,
            transport=self.transport,
            timeout=self.config.upstream_timeout_seconds,
        )
        self.cache = build_cache(self.client, enabled=self.config.cache_enabled, metrics=self.metrics)
        self.directory = DirectoryService(
            self.client,
            self.cache,
            top_earners_limit=self.config.top_earners_limit,
        )

        self._setup_directory_routes()

    def _setup_directory_routes(self):
        """Set up directory-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "directory",
                "message": "Employee Directory - Directory Service",
                "version": "1.0.0",
                "capabilities": ["snapshot_cache", "rate_limit_retry", "top_earners"]
            }

        @self.app.get(API_PREFIX)
        async def get_all_employees():
            """Return every employee from the cached snapshot."""
            employees = await self.directory.list_all()
            return [employee.to_dict() for employee in employees]

        @self.app.get(API_PREFIX + "/search/{search_string}")
        async def search_employees(search_string: str):
            """Return employees whose name contains the search string."""
            employees = await self.directory.search_by_name(search_string)
            return [employee.to_dict() for employee in employees]

        @self.app.get(API_PREFIX + "/highestSalary")
        async def highest_salary() -> int:
            """Return the highest salary among all employees."""
            return await self.directory.highest_salary()

        @self.app.get(API_PREFIX + "/topTenHighestEarningEmployeeNames")
        async def top_ten_earner_names():
            """Return the names of the best paid employees."""
            names = await self.directory.top_earner_names()
            if not names:
                return Response(status_code=204)
            return names

        @self.app.get(API_PREFIX + "/{employee_id}")
        async def get_employee(employee_id: str):
            """Return a single employee."""
            employee = await self.directory.find_by_id(employee_id)
            return employee.to_dict()

        @self.app.post(API_PREFIX)
        async def create_employee(payload: Any = Body(...)):
            """Create an employee and return it."""
            employee = await self.directory.create(payload)
            return employee.to_dict()

        @self.app.delete(API_PREFIX + "/{employee_id}")
        async def delete_employee(employee_id: str) -> str:
            """Delete an employee and return its name."""
            return await self.directory.delete_by_id(employee_id)

    async def stop(self):
        """Close the upstream client."""
        await self.client.aclose()
        self.logger.info("Directory service stopped")

    async def _check_dependencies(self) -> Dict[str, Any]:
        return {"cache": self.cache.stats()}


def create_app(config: Optional[ServiceConfig] = None,
               upstream_transport: Optional[httpx.AsyncBaseTransport] = None):
    """Create directory service application."""
    service = DirectoryApiService(config=config, upstream_transport=upstream_transport)
    return service.app


if __name__ == "__main__":
    service = DirectoryApiService(get_config("directory", 8111))
    service.run()
