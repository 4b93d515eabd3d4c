"""Metrics schemas."""

from delivery.schemas.metrics.delivery_metrics import DeliveryMetrics

__all__ = ["DeliveryMetrics"]
