"""
Structured logging for the Sniffy trade relay.
Supports JSON logging for log aggregation.
"""

import logging
import sys
from typing import Optional
from pythonjsonlogger import jsonlogger

QUIET_LOGGERS = ("aiohttp.access", "httpx", "py_clob_client")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with additional fields."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['timestamp'] = self.formatTime(record, self.datefmt)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    logger_name: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Whether to use JSON format
        logger_name: Optional specific logger name

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name or "trade_relay")
    logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers
    logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        formatter = CustomJsonFormatter(
            '%(timestamp)s %(level)s %(name)s %(message)s'
        )
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # HTTP client libraries log every request at INFO
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger with the given name."""
    return logging.getLogger(f"trade_relay.{name}")


class OrderLogger:
    """Specialized logger for limit order lifecycle events."""

    def __init__(self):
        self.logger = get_logger("orders")

    def order_created(
        self,
        order_id: int,
        owner: str,
        platform: str,
        action: str,
        amount: str,
        asset: str,
        target_price: str
    ):
        """Log when a limit order is accepted."""
        self.logger.info(
            "Limit order created",
            extra={
                "event": "order_created",
                "order_id": order_id,
                "owner": owner,
                "platform": platform,
                "action": action,
                "amount": amount,
                "asset": asset,
                "target_price": target_price
            }
        )

    def order_triggered(
        self,
        order_id: int,
        platform: str,
        asset: str,
        current_price: str,
        target_price: str
    ):
        """Log when a price crosses an order's target."""
        self.logger.info(
            "Limit order triggered",
            extra={
                "event": "order_triggered",
                "order_id": order_id,
                "platform": platform,
                "asset": asset,
                "current_price": current_price,
                "target_price": target_price
            }
        )

    def order_executed(
        self,
        order_id: int,
        platform: str,
        executed_price: str,
        reference: Optional[str],
        latency_ms: float
    ):
        """Log when a triggered order fills on the venue."""
        self.logger.info(
            "Limit order executed",
            extra={
                "event": "order_executed",
                "order_id": order_id,
                "platform": platform,
                "executed_price": executed_price,
                "reference": reference,
                "latency_ms": latency_ms
            }
        )

    def execution_failed(
        self,
        order_id: int,
        platform: str,
        reason: str,
        attempts: int,
        error: Optional[str] = None
    ):
        """Log when a triggered order could not be executed."""
        self.logger.error(
            "Limit order execution failed",
            extra={
                "event": "execution_failed",
                "order_id": order_id,
                "platform": platform,
                "reason": reason,
                "attempts": attempts,
                "error": error
            }
        )

    def order_cancelled(self, order_id: int, owner: str):
        """Log when an owner cancels an order."""
        self.logger.info(
            "Limit order cancelled",
            extra={
                "event": "order_cancelled",
                "order_id": order_id,
                "owner": owner
            }
        )
