"""Critical mailbox entry schema."""

from datetime import datetime
from typing import Any

from delivery.schemas.base_schema_model import BaseSchemaModel


class CriticalNotificationEntry(BaseSchemaModel):
    """A fallback mailbox entry handed to the client."""

    notification_id: str
    user_id: str
    notification: dict[str, Any]
    created_at: datetime
    delivered_at: datetime | None = None
