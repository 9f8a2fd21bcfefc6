"""Structured logging for RC Gateway.

structlog is layered over the standard library root logger so that our own
events and those of uvicorn, httpx and SQLAlchemy share one output format:
JSON lines in production (or with ``LOG_FORMAT=json``), coloured console
output otherwise.

Every entry carries the service name and version, the request correlation
ID when one is set, and never the RC owner's personal details: the owner
fields of an RC record are masked wherever they appear in an event.

Usage:
    from rcgateway.core.logging import configure_logging, get_logger

    configure_logging(settings)

    logger = get_logger(__name__)
    logger.info("rc_cache_hit", rc_number="MH12AB1234")
"""

import logging
import sys
from collections.abc import Mapping
from contextvars import ContextVar
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from rcgateway.config import Settings

# Request ID of the request being served, set by the HTTP middleware
correlation_id_ctx: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Personal data of the registered owner; never written to the logs
OWNER_FIELDS: frozenset[str] = frozenset(
    {
        "owner_name",
        "father_name",
        "present_address",
        "permanent_address",
        "mobile_number",
    }
)

REDACTED = "[REDACTED]"

# Third-party loggers that are too chatty at INFO
_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


# =============================================================================
# Correlation ID
# =============================================================================


def get_correlation_id() -> str | None:
    return correlation_id_ctx.get()


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_ctx.set(correlation_id)


def clear_correlation_id() -> None:
    correlation_id_ctx.set(None)


# =============================================================================
# Processors
# =============================================================================


def add_correlation_id(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Attach the current request's correlation ID, if any."""
    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def service_context(settings: Settings) -> Processor:
    """Build a processor stamping entries with the service name and version."""
    service = "rcgateway"
    version = settings.app_version

    def add_service_context(
        logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict.setdefault("service", service)
        event_dict.setdefault("version", version)
        return event_dict

    return add_service_context


def _redact(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {
            key: REDACTED if key in OWNER_FIELDS and item else _redact(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_redact(item) for item in value]
    return value


def redact_owner_data(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Mask RC owner fields, including inside nested dicts and lists.

    Empty values are left as they are so that missing data stays visible.
    """
    for key, value in event_dict.items():
        if key in OWNER_FIELDS and value:
            event_dict[key] = REDACTED
        elif isinstance(value, (Mapping, list, tuple)):
            event_dict[key] = _redact(value)
    return event_dict


# =============================================================================
# Configuration
# =============================================================================


def configure_logging(settings: Settings) -> None:
    """Configure structlog and the standard library root logger.

    Safe to call more than once; existing root handlers are replaced.

    Args:
        settings: Application settings (log level, format, environment)
    """
    log_level = getattr(logging, settings.log_level.value, logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        add_correlation_id,
        service_context(settings),
        redact_owner_data,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: Processor
    if settings.use_json_logs:
        renderer = structlog.processors.JSONRenderer()
        render_chain: list[Processor] = [structlog.processors.format_exc_info, renderer]
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
        render_chain = [renderer]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *render_chain,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(log_level)

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    # Statement echo only in debug mode
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, typically ``get_logger(__name__)``."""
    return structlog.get_logger(name)


def log_context(**kwargs: Any) -> structlog.contextvars.bound_contextvars:
    """Bind values to every entry logged inside the ``with`` block.

    Example:
        with log_context(api_version="v2"):
            logger.info("rc_cache_miss", rc_number="MH12AB1234")
    """
    return structlog.contextvars.bound_contextvars(**kwargs)
