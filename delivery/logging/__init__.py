"""Logging utilities for the delivery engine."""

from delivery.logging.config import setup_logging
from delivery.logging.context import (
    clear_notification_id,
    get_notification_id,
    get_request_id,
    set_notification_id,
    set_request_id,
)

__all__ = [
    "clear_notification_id",
    "get_notification_id",
    "get_request_id",
    "set_notification_id",
    "set_request_id",
    "setup_logging",
]
