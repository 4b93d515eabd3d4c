"""Delivery attempt bookkeeping and the attempt status state machine.

The tracker is the only writer of an attempt's status, timestamp and error
fields. Every transition is a conditional update on the status the caller
last saw, so two writers racing on one attempt cannot move it backwards:
the loser gets an ``InvalidStatusTransitionError``.

    pending -> sent -> delivered
    pending -> failed
    sent    -> failed
    failed  -> expired

A retry does not reopen a failed attempt; it creates the next attempt of
the same lineage with ``attempt_number + 1``.
"""

from datetime import datetime

from django.db.models import Count, Q

import structlog

from delivery.enums import (
    AttemptStatus,
    DeliveryChannel,
    GatewayErrorCode,
    RetryEntryStatus,
)
from delivery.exceptions import InvalidStatusTransitionError, storage_guard
from delivery.models import (
    DeliveryAttempt,
    DeviceToken,
    NotificationRequest,
    RetryEntry,
)
from delivery.models.delivery_attempt import (
    SUCCESS_STATUSES,
    TERMINAL_STATUSES,
    lineage_key_for,
)
from delivery.services.clock import Clock

logger = structlog.get_logger(__name__)

ALLOWED_TRANSITIONS: dict[AttemptStatus, frozenset[AttemptStatus]] = {
    AttemptStatus.PENDING: frozenset({AttemptStatus.SENT, AttemptStatus.FAILED}),
    AttemptStatus.SENT: frozenset({AttemptStatus.DELIVERED, AttemptStatus.FAILED}),
    AttemptStatus.DELIVERED: frozenset(),
    AttemptStatus.FAILED: frozenset({AttemptStatus.EXPIRED}),
    AttemptStatus.EXPIRED: frozenset(),
}


class DeliveryStatusTracker:
    """Records and transitions delivery attempts. No network I/O."""

    def __init__(self, clock: Clock) -> None:
        self.clock = clock

    def create_attempt(
        self,
        request: NotificationRequest,
        channel: DeliveryChannel,
        device: DeviceToken | None = None,
        attempt_number: int = 1,
        device_id: str | None = None,
        device_token: str | None = None,
        platform: str | None = None,
    ) -> DeliveryAttempt:
        """Persist a new ``pending`` attempt.

        Device details are taken from ``device`` when given, otherwise from
        the explicit keyword arguments (used when a retry re-targets the
        device recorded on the previous attempt).

        Raises:
            StorageError: If the attempt could not be written. Nothing is
                sent for an attempt that was never recorded.
        """
        channel = DeliveryChannel(channel)
        if device is not None:
            device_id = device.device_id
            device_token = device.token
            platform = device.platform

        now = self.clock.now()
        with storage_guard("create_attempt"):
            attempt = DeliveryAttempt.objects.create(
                notification=request,
                recipient_user_id=request.recipient_user_id,
                channel=channel.value,
                lineage_key=lineage_key_for(channel, device_id),
                device_id=device_id,
                device_token=device_token,
                platform=platform,
                status=AttemptStatus.PENDING.value,
                attempt_number=attempt_number,
                timestamp=now,
                created_at=now,
            )

        logger.debug(
            "delivery_attempt_created",
            notification_id=request.notification_id,
            attempt_id=attempt.pk,
            channel=channel.value,
            device_id=device_id,
            attempt_number=attempt_number,
        )
        return attempt

    def mark_sent(self, attempt: DeliveryAttempt) -> DeliveryAttempt:
        """The channel accepted the message."""
        return self._transition(attempt, AttemptStatus.SENT)

    def mark_delivered(self, attempt: DeliveryAttempt) -> DeliveryAttempt:
        """Receipt was confirmed by the channel or the client."""
        return self._transition(attempt, AttemptStatus.DELIVERED)

    def mark_failed(
        self,
        attempt: DeliveryAttempt,
        error_code: GatewayErrorCode | str,
        error_message: str | None = None,
    ) -> DeliveryAttempt:
        """Terminal outcome of this attempt number."""
        return self._transition(
            attempt,
            AttemptStatus.FAILED,
            error_code=GatewayErrorCode(error_code).value,
            error_message=error_message,
        )

    def mark_expired(
        self,
        attempt: DeliveryAttempt,
        error_code: GatewayErrorCode | str | None = None,
        error_message: str | None = None,
    ) -> DeliveryAttempt:
        """No further retries for this lineage.

        The failure details of the last attempt are kept unless a new
        reason is given.
        """
        fields = {}
        if error_code is not None:
            fields["error_code"] = GatewayErrorCode(error_code).value
        if error_message is not None:
            fields["error_message"] = error_message
        return self._transition(attempt, AttemptStatus.EXPIRED, **fields)

    def confirm_delivery(self, attempt_id: int) -> DeliveryAttempt:
        """Apply a client acknowledgment to a ``sent`` attempt.

        Raises:
            DeliveryAttempt.DoesNotExist: Unknown attempt id.
            InvalidStatusTransitionError: The attempt is not in ``sent``.
        """
        with storage_guard("get_attempt"):
            attempt = DeliveryAttempt.objects.get(pk=attempt_id)
        return self.mark_delivered(attempt)

    def _transition(
        self, attempt: DeliveryAttempt, new_status: AttemptStatus, **fields
    ) -> DeliveryAttempt:
        current = AttemptStatus(attempt.status)
        if new_status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidStatusTransitionError(
                attempt.pk, current.value, new_status.value
            )

        changes = {
            "status": new_status.value,
            "timestamp": self.clock.now(),
            **fields,
        }
        with storage_guard(f"mark_attempt_{new_status.value}"):
            updated = DeliveryAttempt.objects.filter(
                pk=attempt.pk, status=current.value
            ).update(**changes)
            if not updated:
                attempt.refresh_from_db(fields=["status"])

        if not updated:
            raise InvalidStatusTransitionError(
                attempt.pk, attempt.status, new_status.value
            )

        for field_name, value in changes.items():
            setattr(attempt, field_name, value)

        log = logger.error if new_status == AttemptStatus.EXPIRED else logger.info
        log(
            "delivery_attempt_transitioned",
            notification_id=attempt.notification_id,
            attempt_id=attempt.pk,
            channel=attempt.channel,
            attempt_number=attempt.attempt_number,
            from_status=current.value,
            to_status=new_status.value,
            error_code=attempt.error_code,
        )
        return attempt

    def has_attempts(self, notification_id: str) -> bool:
        with storage_guard("has_attempts"):
            return DeliveryAttempt.objects.filter(
                notification_id=notification_id
            ).exists()

    def has_successful_attempt(self, notification_id: str) -> bool:
        """At least one channel accepted or delivered the request."""
        with storage_guard("has_successful_attempt"):
            return DeliveryAttempt.objects.filter(
                notification_id=notification_id, status__in=SUCCESS_STATUSES
            ).exists()

    def has_open_lineage(self, notification_id: str, exclude_lineage_key: str) -> bool:
        """Another lineage of the request may still succeed.

        A lineage is open while it has a pending attempt or a queued retry.
        """
        queued = (
            RetryEntryStatus.SCHEDULED.value,
            RetryEntryStatus.CLAIMED.value,
        )
        with storage_guard("has_open_lineage"):
            if (
                DeliveryAttempt.objects.filter(
                    notification_id=notification_id,
                    status=AttemptStatus.PENDING.value,
                )
                .exclude(lineage_key=exclude_lineage_key)
                .exists()
            ):
                return True
            return (
                RetryEntry.objects.filter(
                    attempt__notification=notification_id, status__in=queued
                )
                .exclude(attempt__lineage_key=exclude_lineage_key)
                .exists()
            )

    def has_expired_lineage(
        self, notification_id: str, exclude_lineage_key: str
    ) -> bool:
        with storage_guard("has_expired_lineage"):
            return (
                DeliveryAttempt.objects.filter(
                    notification_id=notification_id,
                    status=AttemptStatus.EXPIRED.value,
                )
                .exclude(lineage_key=exclude_lineage_key)
                .exists()
            )

    def history(self, notification_id: str) -> list[DeliveryAttempt]:
        """Every attempt for a request, oldest first."""
        with storage_guard("attempt_history"):
            return list(
                DeliveryAttempt.objects.filter(
                    notification_id=notification_id
                ).order_by("created_at", "id")
            )

    def cancel_pending_for_token(
        self, user_id: str, device_id: str, token: str
    ) -> list[DeliveryAttempt]:
        """Fail the ``pending`` attempts bound to a replaced token.

        In-flight gateway calls are not aborted; their outcome is discarded
        when they try to move the already failed attempt.
        """
        with storage_guard("list_pending_attempts_for_token"):
            pending = list(
                DeliveryAttempt.objects.select_related("notification").filter(
                    recipient_user_id=user_id,
                    channel=DeliveryChannel.PUSH.value,
                    device_id=device_id,
                    device_token=token,
                    status=AttemptStatus.PENDING.value,
                )
            )

        cancelled = []
        for attempt in pending:
            try:
                self.mark_failed(
                    attempt,
                    GatewayErrorCode.TOKEN_ROTATED,
                    "Device registered a new push token",
                )
            except InvalidStatusTransitionError:
                continue
            cancelled.append(attempt)
        return cancelled

    def status_counts(self) -> dict[str, int]:
        """Counters used by the metrics endpoint."""
        with storage_guard("attempt_status_counts"):
            return DeliveryAttempt.objects.aggregate(
                total_sent=Count("id", filter=Q(status__in=SUCCESS_STATUSES)),
                delivered=Count("id", filter=Q(status=AttemptStatus.DELIVERED.value)),
                retried=Count("id", filter=Q(attempt_number__gt=1)),
                failed=Count(
                    "id",
                    filter=Q(
                        status__in=(
                            AttemptStatus.FAILED.value,
                            AttemptStatus.EXPIRED.value,
                        )
                    ),
                ),
            )

    def purge_terminal_before(self, cutoff: datetime) -> int:
        """Delete terminal attempts last touched before ``cutoff``.

        Attempts still referenced by a scheduled retry are kept.
        """
        with storage_guard("purge_attempts"):
            _, per_model = (
                DeliveryAttempt.objects.filter(
                    status__in=TERMINAL_STATUSES, timestamp__lt=cutoff
                )
                .exclude(
                    retry_entry__status__in=(
                        RetryEntryStatus.SCHEDULED.value,
                        RetryEntryStatus.CLAIMED.value,
                    )
                )
                .delete()
            )
        return per_model.get(DeliveryAttempt._meta.label, 0)

