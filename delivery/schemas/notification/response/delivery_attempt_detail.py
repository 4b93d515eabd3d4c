"""Delivery attempt detail schema."""

from datetime import datetime

from delivery.enums import AttemptStatus, DeliveryChannel
from delivery.schemas.base_schema_model import BaseSchemaModel


class DeliveryAttemptDetail(BaseSchemaModel):
    """One delivery attempt as exposed by the API."""

    id: int
    notification_id: str
    channel: DeliveryChannel
    device_id: str | None = None
    status: AttemptStatus
    attempt_number: int
    timestamp: datetime
    error_code: str | None = None
    error_message: str | None = None
