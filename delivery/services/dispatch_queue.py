"""Hand-off of accepted requests to the background dispatch worker."""

import django_rq
import structlog

logger = structlog.get_logger(__name__)

DISPATCH_JOB = "delivery.jobs.delivery_jobs.dispatch_notification_job"


class RqDispatchQueue:
    """Enqueue dispatch jobs on a django-rq queue."""

    def __init__(self, queue_name: str = "default") -> None:
        self.queue_name = queue_name

    def __call__(self, notification_id: str) -> None:
        queue = django_rq.get_queue(self.queue_name)
        job = queue.enqueue(DISPATCH_JOB, notification_id)
        logger.info(
            "notification_dispatch_enqueued",
            notification_id=notification_id,
            queue=self.queue_name,
            job_id=getattr(job, "id", None),
        )
