"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger
from finance_tracker.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
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


def log_conversion(
    request_id: str,
    quote_id: int,
    installment_count: int,
    created_count: int,
    failed_count: int,
    duration_ms: float,
) -> None:
    """Log structured conversion outcome for analysis"""
    logging.info(
        "Conversion completed",
        extra={
            "request_id": request_id,
            "quote_id": quote_id,
            "step": "conversion_complete",
            "outcome": "converted" if failed_count == 0 else "partial",
            "installment_count": installment_count,
            "created_count": created_count,
            "failed_count": failed_count,
            "duration_ms": duration_ms,
        },
    )
