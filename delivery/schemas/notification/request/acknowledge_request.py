"""Critical mailbox acknowledgment request schema."""

from pydantic import Field

from delivery.schemas.base_schema_model import BaseSchemaModel


class AcknowledgeCriticalRequest(BaseSchemaModel):
    """Notification ids the client has consumed from its fallback mailbox."""

    notification_ids: list[str] = Field(..., min_length=1)
