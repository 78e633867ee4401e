"""
Structured logging configuration.

Uses structlog for JSON-formatted logs with request-scoped context.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from pythonjsonlogger.json import JsonFormatter

from ratapay.config import Settings, get_settings


def _app_context_processor(settings: Settings) -> Any:
    """Build a processor that stamps every event with the application identity."""

    def add_app_context(
        logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict["app_name"] = settings.app_name
        event_dict["app_env"] = settings.app_env
        return event_dict

    return add_app_context


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structured logging with JSON formatter.

    Sets up:
    - JSON-formatted logs
    - Request ID context via contextvars
    - Structured log fields
    """
    settings = settings or get_settings()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _app_context_processor(settings),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    json_handler = logging.StreamHandler(sys.stdout)
    formatter = JsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        rename_fields={
            "timestamp": "@timestamp",
            "level": "level",
            "name": "logger",
            "message": "message",
        },
    )
    json_handler.setFormatter(formatter)
    root_logger.addHandler(json_handler)

    # Suppress noisy loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database_echo else logging.WARNING
    )

    logger = structlog.get_logger(__name__)
    logger.info(
        "logging_configured",
        log_level=settings.log_level,
        app_env=settings.app_env,
    )
