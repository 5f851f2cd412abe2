"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from oar_bills.config import settings
from oar_bills.domain.models import AutoPayResult, SweepResult


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


def log_autopay_batch(result: AutoPayResult, duration_ms: float) -> None:
    """Log auto-pay batch outcome"""
    logging.getLogger("oar_bills.autopay").info(
        "Auto-pay batch completed",
        extra={
            "step": "autopay_complete",
            "processed": result.processed,
            "failed": result.failed,
            "failed_ids": result.failed_ids,
            "duration_ms": duration_ms,
        },
    )


def log_overdue_sweep(result: SweepResult, duration_ms: float) -> None:
    """Log overdue sweep outcome"""
    logging.getLogger("oar_bills.overdue").info(
        "Overdue sweep completed",
        extra={
            "step": "overdue_sweep_complete",
            "checked": result.checked,
            "updated": result.updated,
            "duration_ms": duration_ms,
        },
    )
