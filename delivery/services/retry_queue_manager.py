"""Persisted retry queue with exponential backoff.

Failed attempts are queued as RetryEntry rows. ``tick()`` claims the due
entries one by one with a conditional SCHEDULED -> CLAIMED update and hands
each claimed entry to the orchestrator, so ticks running side by side in
several workers never fire the same retry twice.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from django.db import DatabaseError

import structlog

from delivery.config import DeliveryPolicy, EngineConfig, requires_fallback
from delivery.enums import AttemptStatus, GatewayErrorCode, RetryEntryStatus
from delivery.exceptions import RetriesExhaustedError, StorageError, storage_guard
from delivery.models import DeliveryAttempt, RetryEntry
from delivery.services.clock import Clock
from delivery.services.critical_fallback_store import CriticalFallbackStore
from delivery.services.delivery_status_tracker import DeliveryStatusTracker
from delivery.services.device_token_registry import DeviceTokenRegistry

if TYPE_CHECKING:
    from delivery.services.delivery_orchestrator import DeliveryOrchestrator

logger = structlog.get_logger(__name__)


def backoff_delay(
    base_delay_seconds: int, attempt_number: int, ceiling_seconds: int
) -> timedelta:
    """Delay before retrying after the ``attempt_number``-th failure.

    ``base * 2 ** (attempt_number - 1)``, capped at ``ceiling_seconds``.
    """
    exponent = max(attempt_number - 1, 0)
    return timedelta(seconds=min(base_delay_seconds * 2**exponent, ceiling_seconds))


@dataclass
class TickResult:
    """What one pass over the retry queue did."""

    claimed: int = 0
    retried: int = 0
    cancelled: int = 0
    released: int = 0


class RetryQueueManager:
    """Schedules re-attempts and re-offers them when they fall due."""

    def __init__(
        self,
        config: EngineConfig,
        clock: Clock,
        tracker: DeliveryStatusTracker,
        registry: DeviceTokenRegistry,
        fallback_store: CriticalFallbackStore,
    ) -> None:
        self.config = config
        self.clock = clock
        self.tracker = tracker
        self.registry = registry
        self.fallback_store = fallback_store
        self.orchestrator: "DeliveryOrchestrator | None" = None

    def attach(self, orchestrator: "DeliveryOrchestrator") -> None:
        """Set the orchestrator due retries are re-offered to."""
        self.orchestrator = orchestrator

    def schedule_retry(
        self, attempt: DeliveryAttempt, policy: DeliveryPolicy
    ) -> RetryEntry | None:
        """Queue the next attempt of a failed attempt's lineage.

        Once ``attempt_number`` reaches ``policy.max_retries`` the lineage is
        expired instead.

        Returns:
            The scheduled entry, or None when the lineage was expired.

        Raises:
            StorageError: If the entry could not be written.
        """
        try:
            delay = self.next_delay(attempt, policy)
        except RetriesExhaustedError:
            self.expire_lineage(attempt, policy)
            return None

        now = self.clock.now()
        with storage_guard("schedule_retry"):
            entry = RetryEntry.objects.create(
                attempt=attempt,
                next_attempt_number=attempt.attempt_number + 1,
                due_at=now + delay,
                created_at=now,
            )

        logger.warning(
            "delivery_retry_scheduled",
            notification_id=attempt.notification_id,
            attempt_id=attempt.pk,
            channel=attempt.channel,
            attempt_number=attempt.attempt_number,
            delay_seconds=int(delay.total_seconds()),
            error_code=attempt.error_code,
        )
        return entry

    def next_delay(self, attempt: DeliveryAttempt, policy: DeliveryPolicy) -> timedelta:
        """Backoff before the attempt after ``attempt``.

        Raises:
            RetriesExhaustedError: If the lineage used up ``policy.max_retries``.
        """
        if attempt.attempt_number >= policy.max_retries:
            raise RetriesExhaustedError(
                f"Attempt {attempt.attempt_number} of {policy.max_retries} failed",
                attempt.notification_id,
            )
        return backoff_delay(
            policy.base_retry_delay_seconds,
            attempt.attempt_number,
            self.config.retry_ceiling_seconds,
        )

    def expire_lineage(
        self,
        attempt: DeliveryAttempt,
        policy: DeliveryPolicy,
        error_code: GatewayErrorCode | None = None,
        error_message: str | None = None,
    ) -> None:
        """Expire a failed attempt and fall back if the request demands it.

        The fallback entry is only written by the last lineage to give up,
        and only when no other channel or device accepted the request.
        """
        if attempt.status == AttemptStatus.FAILED.value:
            self.tracker.mark_expired(attempt, error_code, error_message)

        request = attempt.notification
        if not requires_fallback(policy, request.priority):
            logger.info(
                "delivery_lineage_exhausted",
                notification_id=request.notification_id,
                channel=attempt.channel,
                device_id=attempt.device_id,
            )
            return

        if self.tracker.has_successful_attempt(request.notification_id):
            return
        if self.tracker.has_open_lineage(
            request.notification_id, attempt.lineage_key
        ):
            return

        self.fallback_store.store(request.recipient_user_id, request)

    def cancel_for_token(
        self, user_id: str, device_id: str, token: str
    ) -> list[DeliveryAttempt]:
        """Cancel scheduled retries aimed at a replaced token.

        Returns:
            The failed attempts whose retry was cancelled.
        """
        with storage_guard("list_retries_for_token"):
            scheduled = list(
                RetryEntry.objects.select_related("attempt__notification").filter(
                    status=RetryEntryStatus.SCHEDULED.value,
                    attempt__recipient_user_id=user_id,
                    attempt__device_id=device_id,
                    attempt__device_token=token,
                )
            )

        cancelled = []
        for entry in scheduled:
            with storage_guard("cancel_retry"):
                updated = RetryEntry.objects.filter(
                    pk=entry.pk, status=RetryEntryStatus.SCHEDULED.value
                ).update(status=RetryEntryStatus.CANCELLED.value)
            if updated:
                cancelled.append(entry.attempt)

        if cancelled:
            logger.info(
                "delivery_retries_cancelled",
                user_id=user_id,
                device_id=device_id,
                count=len(cancelled),
                reason=GatewayErrorCode.TOKEN_ROTATED.value,
            )
        return cancelled

    def settle_cancelled_lineage(self, attempt: DeliveryAttempt) -> bool:
        """Write the fallback a sibling lineage deferred to a cancelled one.

        An expired lineage leaves the fallback to any lineage still open.
        When that open lineage is cancelled by a token rotation instead of
        expiring, nothing else would write it.

        Returns:
            True when a new fallback entry was stored.
        """
        request = attempt.notification
        policy = self.config.policy_for(request.type_enum)
        if not requires_fallback(policy, request.priority):
            return False
        if self.tracker.has_successful_attempt(request.notification_id):
            return False
        if self.tracker.has_open_lineage(
            request.notification_id, attempt.lineage_key
        ):
            return False
        if not self.tracker.has_expired_lineage(
            request.notification_id, attempt.lineage_key
        ):
            return False

        _, created = self.fallback_store.store(request.recipient_user_id, request)
        return created

    def tick(self) -> TickResult:
        """Claim and fire every retry that is due.

        Storage failures release the claim so the entry is offered again on
        the next tick; they are not counted against the attempt.
        """
        if self.orchestrator is None:
            raise RuntimeError("RetryQueueManager.tick() requires an orchestrator")

        self.recover_stale_claims(
            timedelta(seconds=self.config.retry_claim_timeout_seconds)
        )

        result = TickResult()
        now = self.clock.now()

        with storage_guard("list_due_retries"):
            due_ids = list(
                RetryEntry.objects.filter(
                    status=RetryEntryStatus.SCHEDULED.value, due_at__lte=now
                )
                .order_by("due_at", "id")
                .values_list("pk", flat=True)[: self.config.retry_batch_size]
            )

        for entry_id in due_ids:
            with storage_guard("claim_retry"):
                claimed = RetryEntry.objects.filter(
                    pk=entry_id, status=RetryEntryStatus.SCHEDULED.value
                ).update(status=RetryEntryStatus.CLAIMED.value, claimed_at=now)
            if not claimed:
                continue
            result.claimed += 1

            try:
                fired = self._fire(entry_id)
            except (StorageError, DatabaseError) as e:
                self._release(entry_id)
                result.released += 1
                logger.warning(
                    "delivery_retry_released",
                    retry_entry_id=entry_id,
                    error=str(e),
                )
                continue

            if fired:
                result.retried += 1
            else:
                result.cancelled += 1

        if result.claimed:
            logger.info(
                "retry_queue_tick_completed",
                claimed=result.claimed,
                retried=result.retried,
                cancelled=result.cancelled,
                released=result.released,
            )
        return result

    def _fire(self, entry_id: int) -> bool:
        with storage_guard("load_retry"):
            entry = RetryEntry.objects.select_related("attempt__notification").get(
                pk=entry_id
            )
        previous = entry.attempt
        request = previous.notification
        policy = self.config.policy_for(request.type_enum)

        if previous.device_id is not None:
            device = self.registry.get(previous.recipient_user_id, previous.device_id)
            if device is None or not device.is_active:
                self.expire_lineage(
                    previous,
                    policy,
                    GatewayErrorCode.DEVICE_INACTIVE,
                    "Device was deactivated before the retry fired",
                )
                self._finish(entry, RetryEntryStatus.CANCELLED)
                return False
            if device.token != previous.device_token:
                self._finish(entry, RetryEntryStatus.CANCELLED)
                logger.info(
                    "delivery_retry_skipped",
                    notification_id=request.notification_id,
                    attempt_id=previous.pk,
                    reason=GatewayErrorCode.TOKEN_ROTATED.value,
                )
                return False

        with storage_guard("check_retry_fired"):
            fired = (
                DeliveryAttempt.objects.select_related("notification")
                .filter(
                    notification_id=request.notification_id,
                    lineage_key=previous.lineage_key,
                    attempt_number=entry.next_attempt_number,
                )
                .first()
            )
        if fired is None:
            self.orchestrator.retry(previous, entry.next_attempt_number)
        elif fired.status == AttemptStatus.PENDING.value:
            # Written by an earlier tick that failed before recording the outcome.
            logger.info(
                "delivery_retry_resumed",
                notification_id=request.notification_id,
                attempt_id=fired.pk,
                attempt_number=fired.attempt_number,
            )
            self.orchestrator.resend(fired)
        self._finish(entry, RetryEntryStatus.DONE)
        return True

    def _finish(self, entry: RetryEntry, status: RetryEntryStatus) -> None:
        with storage_guard("finish_retry"):
            RetryEntry.objects.filter(
                pk=entry.pk, status=RetryEntryStatus.CLAIMED.value
            ).update(status=status.value)

    def _release(self, entry_id: int) -> None:
        try:
            RetryEntry.objects.filter(
                pk=entry_id, status=RetryEntryStatus.CLAIMED.value
            ).update(status=RetryEntryStatus.SCHEDULED.value, claimed_at=None)
        except DatabaseError as e:
            # Stays CLAIMED; recover_stale_claims() picks it up later.
            logger.error(
                "delivery_retry_release_failed", retry_entry_id=entry_id, error=str(e)
            )

    def recover_stale_claims(self, older_than: timedelta) -> int:
        """Put back claims left behind by a worker that died mid-retry."""
        cutoff = self.clock.now() - older_than
        with storage_guard("recover_stale_claims"):
            recovered = RetryEntry.objects.filter(
                status=RetryEntryStatus.CLAIMED.value, claimed_at__lt=cutoff
            ).update(status=RetryEntryStatus.SCHEDULED.value, claimed_at=None)

        if recovered:
            logger.warning("stale_retry_claims_recovered", count=recovered)
        return recovered
