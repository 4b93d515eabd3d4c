"""Critical mailbox drain response schema."""

from delivery.schemas.base_schema_model import BaseSchemaModel
from delivery.schemas.notification.response.critical_notification_entry import (
    CriticalNotificationEntry,
)


class DrainCriticalResponse(BaseSchemaModel):
    """Entries drained by one foreground event."""

    user_id: str
    notifications: list[CriticalNotificationEntry]
