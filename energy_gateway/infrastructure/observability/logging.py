"""Structured JSON logging for production observability"""

import logging
import sys
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger
from energy_gateway.config import settings
from energy_gateway.utils.date_utils import utc_now


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = utc_now().isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_analytics(
    request_id: str,
    user_id: int,
    period: str,
    record_count: int,
    performance_score: int,
    duration_ms: float,
) -> None:
    """Log structured analytics outcome for analysis"""
    logging.info(
        "Analytics computed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "analytics_complete",
            "period": period,
            "record_count": record_count,
            "performance_score": performance_score,
            "duration_ms": duration_ms,
        },
    )


def log_write(request_id: str, entity: str, entity_id: Any, action: str, **context: Any) -> None:
    """Log a create/update/delete against an entity"""
    logging.info(
        f"{entity} {action}",
        extra={
            "request_id": request_id,
            "entity": entity,
            "entity_id": entity_id,
            "action": action,
            **context,
        },
    )


def log_transition(request_id: str, entity: str, entity_id: Any, old_status: Optional[str], new_status: str) -> None:
    """Log a status change with both ends of the transition"""
    logging.info(
        f"{entity} status updated",
        extra={
            "request_id": request_id,
            "entity": entity,
            "entity_id": entity_id,
            "old_status": old_status,
            "new_status": new_status,
        },
    )


def log_infrastructure_error(request_id: str, operation: str, error: Exception, filters: Dict[str, Any]) -> None:
    """Log a storage failure with the filters that were in effect"""
    logging.error(
        f"Error {operation}: {error}",
        extra={
            "request_id": request_id,
            "operation": operation,
            "filters": filters,
        },
    )
