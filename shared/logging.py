"""
Structured logging for the Hallway service.

Every record is a JSON object on stdout carrying the logger name, level,
ISO timestamp, the service and, while a request is being handled, its
request id and the visitor's email.
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

import structlog

# Correlation for the request being handled
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
email_var: ContextVar[Optional[str]] = ContextVar("email", default=None)

_service_name: Optional[str] = None


def configure_logging(service_name: str, log_level: str = "INFO") -> None:
    """Configure structlog and the standard library root logger."""
    global _service_name
    _service_name = service_name

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_service_context,
            add_correlation_context,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )
    logging.getLogger().setLevel(getattr(logging, log_level.upper()))


def add_service_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Tag the event with the configured service name."""
    if _service_name and "service" not in event_dict:
        event_dict["service"] = _service_name
    return event_dict


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Attach the current request id and visitor email, if any."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id

    email = email_var.get()
    if email and "email" not in event_dict:
        event_dict["email"] = email

    return event_dict


def set_request_id(request_id: Optional[str] = None) -> str:
    """Use the caller's request id or mint one."""
    if not request_id:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def set_identity_context(email: Optional[str] = None):
    if email is not None:
        email_var.set(email)


def clear_context():
    request_id_var.set(None)
    email_var.set(None)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
