"""Attempt history response schema."""

from delivery.schemas.base_schema_model import BaseSchemaModel
from delivery.schemas.notification.response.delivery_attempt_detail import (
    DeliveryAttemptDetail,
)


class AttemptHistoryResponse(BaseSchemaModel):
    """Every attempt recorded for one notification request."""

    notification_id: str
    delivered: bool
    attempts: list[DeliveryAttemptDetail]
