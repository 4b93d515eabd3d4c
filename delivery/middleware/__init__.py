"""Middleware components for the delivery engine."""

from delivery.middleware.process_time import ProcessTimeMiddleware
from delivery.middleware.request_id import RequestIDMiddleware

__all__ = [
    "ProcessTimeMiddleware",
    "RequestIDMiddleware",
]
