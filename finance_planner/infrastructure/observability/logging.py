"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from finance_planner.config import settings

logger = logging.getLogger("finance_planner")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers
    root.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)


def log_transaction_event(
    request_id: Optional[str],
    user_id: str,
    operation: str,
    transaction_id: str,
    status: str,
    effects: int,
) -> None:
    """Log a completed transaction lifecycle operation"""
    logger.info(
        "Transaction %s",
        operation,
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": f"transaction_{operation}",
            "transaction_id": transaction_id,
            "transaction_status": status,
            "balance_effects": effects,
        },
    )


def log_balance_change(
    request_id: Optional[str],
    target: str,
    target_id: str,
    operation: str,
    amount: str,
    new_balance: str,
) -> None:
    """Log a single balance mutation"""
    logger.debug(
        "Balance updated",
        extra={
            "request_id": request_id,
            "step": "balance_update",
            "target": target,
            "target_id": target_id,
            "operation": operation,
            "amount": amount,
            "new_balance": new_balance,
        },
    )


def log_balance_conflict(request_id: Optional[str], user_id: str, reason: str, message: str) -> None:
    """Log a rejected balance mutation"""
    logger.warning(
        "Balance conflict: %s",
        message,
        extra={"request_id": request_id, "user_id": user_id, "step": "balance_conflict", "reason": reason},
    )
