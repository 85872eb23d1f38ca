"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from savings_gateway.config import settings


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


def log_challenge_created(request_id: str, challenge_id: str, mode: str, total_weeks: int, target_amount_cents: int) -> None:
    """Log a newly created challenge"""
    logging.info(
        "Challenge created",
        extra={
            "request_id": request_id,
            "challenge_id": challenge_id,
            "step": "challenge_created",
            "mode": mode,
            "total_weeks": total_weeks,
            "target_amount_cents": target_amount_cents,
        },
    )


def log_deposit(
    request_id: str,
    challenge_id: str,
    week: int,
    amount_cents: int,
    status: str,
    challenge_status: str,
    duration_ms: float,
    duplicate: bool = False,
    linked_account_ref: Optional[str] = None,
) -> None:
    """Log structured deposit outcome for analysis"""
    logging.info(
        "Deposit recorded" if not duplicate else "Deposit replay ignored",
        extra={
            "request_id": request_id,
            "challenge_id": challenge_id,
            "step": "deposit_recorded",
            "week": week,
            "amount_cents": amount_cents,
            "deposit_status": status,
            "challenge_status": challenge_status,
            "duplicate": duplicate,
            "linked": linked_account_ref is not None,
            "duration_ms": duration_ms,
        },
    )
