"""Exceptions raised by the delivery engine."""

from collections.abc import Iterator
from contextlib import contextmanager

from django.db import DatabaseError

from delivery.enums import ErrorKind, GatewayErrorCode


class DeliveryEngineError(Exception):
    """Base exception for delivery engine errors."""

    kind: ErrorKind | None = None

    def __init__(self, message: str, notification_id: str | None = None):
        """Initialize delivery engine error.

        Args:
            message: Error message
            notification_id: Notification request the error relates to
        """
        self.notification_id = notification_id
        super().__init__(message)


class SubmissionValidationError(DeliveryEngineError):
    """A notification request failed local validation (never retried)."""

    kind = ErrorKind.VALIDATION_ERROR


class ChannelDeliveryError(DeliveryEngineError):
    """A channel call failed; carries the gateway error code."""

    def __init__(
        self,
        message: str,
        error_code: GatewayErrorCode,
        notification_id: str | None = None,
    ):
        """Initialize channel delivery error.

        Args:
            message: Error message
            error_code: Code recorded on the failed delivery attempt
            notification_id: Notification request the error relates to
        """
        self.error_code = error_code
        super().__init__(message, notification_id=notification_id)


class TransientDeliveryError(ChannelDeliveryError):
    """Network or gateway failure that is retried per policy."""

    kind = ErrorKind.TRANSIENT_DELIVERY_ERROR


class PermanentDeliveryError(ChannelDeliveryError):
    """Gateway rejected the request permanently (e.g. invalid token)."""

    kind = ErrorKind.PERMANENT_DELIVERY_ERROR


class RetriesExhaustedError(DeliveryEngineError):
    """No further retries are permitted for a delivery lineage."""

    kind = ErrorKind.EXHAUSTED


class StorageError(DeliveryEngineError):
    """A durable store read or write failed."""

    kind = ErrorKind.STORAGE_ERROR

    def __init__(self, operation: str, message: str):
        """Initialize storage error.

        Args:
            operation: Name of the store operation that failed
            message: Underlying database error message
        """
        self.operation = operation
        super().__init__(f"Storage operation '{operation}' failed: {message}")


class InvalidStatusTransitionError(DeliveryEngineError):
    """A delivery attempt was asked to move backwards or out of a terminal state."""

    def __init__(self, attempt_id: int, current: str, requested: str):
        """Initialize invalid transition error.

        Args:
            attempt_id: Primary key of the delivery attempt
            current: Status the attempt is in
            requested: Status the caller tried to move it to
        """
        self.attempt_id = attempt_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Attempt {attempt_id} cannot transition from {current} to {requested}"
        )


class ImmutableRecordError(DeliveryEngineError):
    """A submitted notification request was modified after creation."""


@contextmanager
def storage_guard(operation: str) -> Iterator[None]:
    """Re-raise database errors from a store operation as StorageError.

    Args:
        operation: Name of the store operation, used in the error message
    """
    try:
        yield
    except DatabaseError as e:
        raise StorageError(operation, str(e)) from e
