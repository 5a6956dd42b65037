"""
Shared configuration management for the Employee Directory service.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="DIRECTORY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Upstream directory
    upstream_url: str = Field(default="http://localhost:8112/api/v1/employee")
    upstream_timeout_seconds: float = Field(default=10.0, gt=0)

    # Rate-limit retries
    retry_max_attempts: int = Field(default=5, ge=0)
    retry_base_delay_ms: int = Field(default=3000, ge=0)
    retry_max_jitter_ms: int = Field(default=500, ge=0)
    retry_max_delay_ms: int = Field(default=60000, ge=0)

    # Snapshot cache
    cache_enabled: bool = Field(default=True)
    top_earners_limit: int = Field(default=10, ge=0)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
