# Utilities
from .logger import setup_logging, get_logger, OrderLogger
from .numbers import to_decimal, format_price

__all__ = ["setup_logging", "get_logger", "OrderLogger", "to_decimal", "format_price"]
