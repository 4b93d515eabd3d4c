"""Services for the delivery app."""

from delivery.services.analytics_collector import AnalyticsCollector, DeliverySample
from delivery.services.clock import Clock
from delivery.services.critical_fallback_store import CriticalFallbackStore
from delivery.services.delivery_orchestrator import DeliveryOrchestrator
from delivery.services.delivery_status_tracker import DeliveryStatusTracker
from delivery.services.device_token_registry import (
    DeviceTokenRegistry,
    RegistrationResult,
)
from delivery.services.engine_factory import DeliveryEngine, build_engine
from delivery.services.health_service import HealthService, health_service
from delivery.services.notification_router import NotificationRouter, PurgeResult
from delivery.services.retry_queue_manager import RetryQueueManager, TickResult

__all__ = [
    "AnalyticsCollector",
    "Clock",
    "CriticalFallbackStore",
    "DeliveryEngine",
    "DeliveryOrchestrator",
    "DeliverySample",
    "DeliveryStatusTracker",
    "DeviceTokenRegistry",
    "HealthService",
    "NotificationRouter",
    "PurgeResult",
    "RegistrationResult",
    "RetryQueueManager",
    "TickResult",
    "build_engine",
    "health_service",
]
