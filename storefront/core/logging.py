from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any

from storefront.core.config import settings

_STANDARD_ATTRS = set(logging.makeLogRecord({}).__dict__.keys())

# Domain channels. Each one is a named logger that propagates to the root sink.
CART_CHANNEL = "storefront.cart"
ORDER_CHANNEL = "storefront.order"
SECURITY_CHANNEL = "storefront.security"
STOCK_CHANNEL = "storefront.stock"
PAYMENT_CHANNEL = "storefront.payment"
ANALYTICS_CHANNEL = "storefront.analytics"

CHANNELS = (
    CART_CHANNEL,
    ORDER_CHANNEL,
    SECURITY_CHANNEL,
    STOCK_CHANNEL,
    PAYMENT_CHANNEL,
    ANALYTICS_CHANNEL,
)


class JsonFormatter(logging.Formatter):
    """Basic JSON formatter for structured logs."""

    def format(self, record: logging.LogRecord) -> str:
        message = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            message["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            message["stack_info"] = record.stack_info

        extra = {key: value for key, value in record.__dict__.items() if key not in _STANDARD_ATTRS}
        if extra:
            message["extra"] = extra

        return json.dumps(message, default=str)


def setup_logging() -> None:
    """Apply centralized logging configuration."""
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    loggers: dict[str, Any] = {
        "uvicorn.error": {"level": level},
        "uvicorn.access": {"handlers": ["default"], "level": level, "propagate": False},
    }
    for channel in CHANNELS:
        loggers[channel] = {"level": level, "propagate": True}

    logging_config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": JsonFormatter,
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "json",
            }
        },
        "root": {
            "handlers": ["default"],
            "level": level,
        },
        "loggers": loggers,
    }

    logging.config.dictConfig(logging_config)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def cart_logger() -> logging.Logger:
    return get_logger(CART_CHANNEL)


def order_logger() -> logging.Logger:
    return get_logger(ORDER_CHANNEL)


def security_logger() -> logging.Logger:
    return get_logger(SECURITY_CHANNEL)


def stock_logger() -> logging.Logger:
    return get_logger(STOCK_CHANNEL)


def payment_logger() -> logging.Logger:
    return get_logger(PAYMENT_CHANNEL)


def analytics_logger() -> logging.Logger:
    return get_logger(ANALYTICS_CHANNEL)


def security_alert(message: str, **context: Any) -> None:
    """Elevated security alert logs for downstream alerting rules."""
    security_logger().warning(message, extra={"alert": True, **context})
