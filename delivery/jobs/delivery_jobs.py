"""Background jobs run by the RQ workers.

``dispatch_notification_job`` is enqueued by ``NotificationRouter.submit``
for every accepted request. The retry tick and the retention purge are
periodic jobs registered with rq-scheduler by ``schedule_periodic_jobs``.
"""

from typing import Any

from django.utils import timezone

import django_rq
import structlog

from delivery.config import EngineConfig, load_engine_config
from delivery.logging.context import clear_notification_id, set_notification_id
from delivery.models import NotificationRequest
from delivery.services.engine_factory import build_engine

logger = structlog.get_logger(__name__)

RETRY_TICK_JOB_ID = "delivery-retry-queue-tick"
PURGE_JOB_ID = "delivery-record-purge"
PURGE_CRON = "15 3 * * *"


def dispatch_notification_job(notification_id: str) -> int:
    """Fan a persisted notification request out to its channels.

    Args:
        notification_id: Id of the request accepted by the router.

    Returns:
        Number of first-generation attempts created.

    Raises:
        NotificationRequest.DoesNotExist: If the request is not persisted.
        StorageError: If attempts could not be recorded; RQ keeps the job
            as failed and nothing was sent for the unrecorded attempts.
    """
    set_notification_id(notification_id)
    try:
        try:
            request = NotificationRequest.objects.get(pk=notification_id)
        except NotificationRequest.DoesNotExist:
            logger.error("notification_not_found", notification_id=notification_id)
            raise

        attempts = build_engine().orchestrator.dispatch(request)
        logger.info(
            "notification_dispatch_completed",
            notification_id=notification_id,
            attempt_count=len(attempts),
        )
        return len(attempts)
    finally:
        clear_notification_id()


def process_retry_queue_job() -> dict[str, int]:
    """Run one tick of the persisted retry queue."""
    result = build_engine().retry_manager.tick()
    return {
        "claimed": result.claimed,
        "retried": result.retried,
        "cancelled": result.cancelled,
        "released": result.released,
    }


def purge_delivery_records_job() -> dict[str, int]:
    """Apply the attempt and analytics retention windows."""
    result = build_engine().router.purge_expired_records()
    return {
        "attempts_deleted": result.attempts_deleted,
        "samples_deleted": result.samples_deleted,
    }


def schedule_periodic_jobs(
    scheduler: Any = None, config: EngineConfig | None = None
) -> list[str]:
    """Register the retry tick and the nightly purge with rq-scheduler.

    Previously registered instances are cancelled first so repeated calls
    leave exactly one of each job.

    Args:
        scheduler: rq-scheduler instance; the one for ``config.queue_name``
            by default.
        config: Engine configuration.

    Returns:
        Ids of the scheduled jobs.
    """
    config = config or load_engine_config()
    scheduler = scheduler or django_rq.get_scheduler(config.queue_name)

    for job in scheduler.get_jobs():
        if job.id in (RETRY_TICK_JOB_ID, PURGE_JOB_ID):
            scheduler.cancel(job)

    scheduler.schedule(
        scheduled_time=timezone.now(),
        func=process_retry_queue_job,
        interval=config.retry_tick_interval_seconds,
        repeat=None,
        id=RETRY_TICK_JOB_ID,
        queue_name=config.queue_name,
    )
    scheduler.cron(
        PURGE_CRON,
        func=purge_delivery_records_job,
        id=PURGE_JOB_ID,
        queue_name=config.queue_name,
    )

    logger.info(
        "periodic_jobs_scheduled",
        retry_tick_interval_seconds=config.retry_tick_interval_seconds,
        purge_cron=PURGE_CRON,
        queue=config.queue_name,
    )
    return [RETRY_TICK_JOB_ID, PURGE_JOB_ID]
