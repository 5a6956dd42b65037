"""
Structured logging for the Employee Directory.

Every log line carries the service name and, while a request is being
served, its request id. The id lives in ``request_id_var`` (read by error
responses) and is mirrored into structlog's context variables so loggers
created anywhere in the call chain pick it up without being passed around.
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

import structlog

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Component loggers are named "<service>.<component>"; anything else is tagged with this
_default_service: Optional[str] = None


def configure_logging(service_name: str, log_level: str = "info", env: str = "local") -> None:
    """Configure structlog on top of the standard library logger.

    Local runs get a readable console renderer; every other environment
    emits one JSON object per line.
    """
    global _default_service
    _default_service = service_name

    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    if env == "local":
        renderers = [structlog.dev.ConsoleRenderer()]
    else:
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            add_service_name,
            *renderers,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger().setLevel(level)


def add_service_name(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Tag the event with the service that emitted it."""
    logger_name = event_dict.get("logger", "")
    service = logger_name.split(".", 1)[0] if "." in logger_name else _default_service
    if service:
        event_dict.setdefault("service", service)
    return event_dict


def set_request_id(request_id: Optional[str] = None) -> str:
    """Start a request context, generating an id when the caller sent none."""
    request_id = (request_id or "").strip() or str(uuid.uuid4())
    request_id_var.set(request_id)
    structlog.contextvars.bind_contextvars(request_id=request_id)
    return request_id


def clear_context() -> None:
    """End the request context."""
    request_id_var.set(None)
    structlog.contextvars.clear_contextvars()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
