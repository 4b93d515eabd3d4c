"""Run the retry queue tick in the foreground."""

import time

from django.core.management.base import BaseCommand

import structlog

from delivery.exceptions import StorageError
from delivery.services import build_engine

logger = structlog.get_logger(__name__)


class Command(BaseCommand):
    """Scan the persisted retry queue every tick interval.

    Several workers may run side by side; each due entry is claimed by
    exactly one of them.
    """

    help = "Fire due delivery retries on a fixed interval"

    def add_arguments(self, parser):
        parser.add_argument(
            "--once",
            action="store_true",
            help="Run a single tick and exit",
        )
        parser.add_argument(
            "--interval",
            type=int,
            default=None,
            help="Seconds between ticks (default: retry_tick_interval_seconds)",
        )

    def handle(self, *args, **options):
        engine = build_engine()
        interval = options["interval"] or engine.config.retry_tick_interval_seconds

        if options["once"]:
            result = engine.retry_manager.tick()
            self.stdout.write(
                f"claimed={result.claimed} retried={result.retried} "
                f"cancelled={result.cancelled} released={result.released}"
            )
            return

        logger.info("retry_worker_started", interval_seconds=interval)
        try:
            while True:
                try:
                    engine.retry_manager.tick()
                except StorageError as e:
                    logger.error("retry_tick_failed", error=str(e))
                time.sleep(interval)
        except KeyboardInterrupt:
            logger.info("retry_worker_stopped")
