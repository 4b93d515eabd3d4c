"""Assembly of the delivery engine components."""

from collections.abc import Callable
from dataclasses import dataclass

from delivery.config import EngineConfig, load_engine_config
from delivery.gateways import ExpoPushGateway, PushGateway, WebhookClient
from delivery.services.analytics_collector import AnalyticsCollector
from delivery.services.clock import Clock
from delivery.services.critical_fallback_store import CriticalFallbackStore
from delivery.services.delivery_orchestrator import DeliveryOrchestrator
from delivery.services.delivery_status_tracker import DeliveryStatusTracker
from delivery.services.device_token_registry import DeviceTokenRegistry
from delivery.services.dispatch_queue import RqDispatchQueue
from delivery.services.notification_router import NotificationRouter
from delivery.services.retry_queue_manager import RetryQueueManager


@dataclass(frozen=True)
class DeliveryEngine:
    """The wired set of engine components sharing one config and clock."""

    config: EngineConfig
    clock: Clock
    registry: DeviceTokenRegistry
    tracker: DeliveryStatusTracker
    fallback_store: CriticalFallbackStore
    analytics: AnalyticsCollector
    retry_manager: RetryQueueManager
    orchestrator: DeliveryOrchestrator
    router: NotificationRouter


def build_engine(
    config: EngineConfig | None = None,
    gateway: PushGateway | None = None,
    webhook_client: WebhookClient | None = None,
    clock: Clock | None = None,
    enqueue: Callable[[str], None] | None = None,
) -> DeliveryEngine:
    """Build a delivery engine.

    Every argument left as None is derived from the configuration, which in
    turn defaults to the ``DELIVERY_ENGINE`` Django setting.

    Args:
        config: Engine configuration.
        gateway: Push gateway; an ExpoPushGateway on ``config.gateway_url``
            by default.
        webhook_client: Webhook client; built only when ``config.webhook_url``
            is set.
        clock: Time source.
        enqueue: Hand-off to the dispatch worker; a django-rq queue by default.

    Returns:
        DeliveryEngine with the retry queue attached to the orchestrator.
    """
    config = config or load_engine_config()
    clock = clock or Clock()
    if gateway is None:
        gateway = ExpoPushGateway(
            send_url=config.gateway_url,
            access_token=config.gateway_access_token,
            timeout=config.gateway_timeout_seconds,
        )
    if webhook_client is None and config.webhook_url:
        webhook_client = WebhookClient(
            url=config.webhook_url, timeout=config.webhook_timeout_seconds
        )
    if enqueue is None:
        enqueue = RqDispatchQueue(config.queue_name)

    registry = DeviceTokenRegistry(clock)
    tracker = DeliveryStatusTracker(clock)
    fallback_store = CriticalFallbackStore(clock)
    analytics = AnalyticsCollector(clock)
    retry_manager = RetryQueueManager(config, clock, tracker, registry, fallback_store)
    orchestrator = DeliveryOrchestrator(
        config=config,
        clock=clock,
        registry=registry,
        tracker=tracker,
        retry_manager=retry_manager,
        fallback_store=fallback_store,
        analytics=analytics,
        gateway=gateway,
        webhook_client=webhook_client,
    )
    retry_manager.attach(orchestrator)
    router = NotificationRouter(
        config=config,
        clock=clock,
        registry=registry,
        tracker=tracker,
        retry_manager=retry_manager,
        fallback_store=fallback_store,
        analytics=analytics,
        enqueue=enqueue,
    )
    return DeliveryEngine(
        config=config,
        clock=clock,
        registry=registry,
        tracker=tracker,
        fallback_store=fallback_store,
        analytics=analytics,
        retry_manager=retry_manager,
        orchestrator=orchestrator,
        router=router,
    )
