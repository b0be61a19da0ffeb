"""Structured logging configuration."""

import logging
import sys
from typing import Any

import structlog
from pythonjsonlogger import jsonlogger

from kitchen_inventory.config import get_settings


def setup_logging() -> None:
    """Configure structured logging for the application."""
    settings = get_settings()

    # Configure standard library logging
    log_level = getattr(logging, settings.log_level)

    if settings.log_format == "json":
        # JSON logging for production
        handler = logging.StreamHandler(sys.stdout)
        formatter = jsonlogger.JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "asctime": "timestamp"},
        )
        handler.setFormatter(formatter)
    else:
        # Human-readable logging for development
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer() if settings.log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


class ServiceLogger:
    """Specialized logger for inventory services."""

    def __init__(self, service_id: str):
        self.service_id = service_id
        self.logger = get_logger(service_id)

    def log_operation(
        self,
        action: str,
        duration_ms: float | None = None,
        **kwargs: Any,
    ) -> None:
        """Log a completed service operation with structured data."""
        log_data: dict[str, Any] = {
            "service_id": self.service_id,
            "action": action,
        }

        if duration_ms is not None:
            log_data["duration_ms"] = round(duration_ms, 3)

        log_data.update(kwargs)
        self.logger.info("service_operation", **log_data)

    def log_alert(
        self,
        alert_type: str,
        sku: str,
        urgency: str,
        **kwargs: Any,
    ) -> None:
        """Log a newly raised stock alert."""
        self.logger.warning(
            alert_type,
            service_id=self.service_id,
            sku=sku,
            urgency=urgency,
            **kwargs,
        )

    def log_event_failure(
        self,
        event_type: str,
        error: str,
        **kwargs: Any,
    ) -> None:
        """Log an event sink append that did not go through."""
        self.logger.error(
            "event_record_failed",
            service_id=self.service_id,
            event_type=event_type,
            error=error,
            **kwargs,
        )

    def log_error(
        self,
        error: str,
        action: str,
        **kwargs: Any,
    ) -> None:
        """Log an error."""
        self.logger.error(
            "service_error",
            service_id=self.service_id,
            action=action,
            error=error,
            **kwargs,
        )
