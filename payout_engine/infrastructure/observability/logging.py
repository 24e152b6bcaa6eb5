"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger.json import JsonFormatter

SERVICE_NAME = "payout-engine"


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = SERVICE_NAME


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_decision(
    merchant_id: str,
    risk_score: int,
    risk_level: str,
    hold_period: str,
    simulation: bool,
) -> None:
    """Log structured decision outcome; scores of 60+ are logged as warnings"""
    level = logging.WARNING if risk_score >= 60 else logging.INFO
    logging.log(
        level,
        "High risk score detected" if level == logging.WARNING else "Merchant evaluated",
        extra={
            "merchant_id": merchant_id,
            "step": "evaluation_complete",
            "risk_score": risk_score,
            "risk_level": risk_level,
            "hold_period": hold_period,
            "simulation": simulation,
        },
    )


def log_batch(
    batch_id: str,
    requested: int,
    successful: int,
    failed: int,
    abandoned: int,
    duration_ms: float,
) -> None:
    """Log batch completion counts for analysis"""
    logging.info(
        "Batch evaluation completed",
        extra={
            "batch_id": batch_id,
            "step": "batch_complete",
            "requested": requested,
            "successful": successful,
            "failed": failed,
            "abandoned": abandoned,
            "duration_ms": duration_ms,
        },
    )
