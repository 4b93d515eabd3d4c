"""Exception handling utilities for the delivery engine."""

from delivery.exceptions.delivery_exceptions import (
    ChannelDeliveryError,
    DeliveryEngineError,
    ImmutableRecordError,
    InvalidStatusTransitionError,
    PermanentDeliveryError,
    RetriesExhaustedError,
    StorageError,
    SubmissionValidationError,
    TransientDeliveryError,
    storage_guard,
)

__all__ = [
    "ChannelDeliveryError",
    "DeliveryEngineError",
    "ImmutableRecordError",
    "InvalidStatusTransitionError",
    "PermanentDeliveryError",
    "RetriesExhaustedError",
    "StorageError",
    "SubmissionValidationError",
    "TransientDeliveryError",
    "storage_guard",
]
