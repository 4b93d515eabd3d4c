"""Critical mailbox acknowledgment response schema."""

from delivery.schemas.base_schema_model import BaseSchemaModel


class AcknowledgeCriticalResponse(BaseSchemaModel):
    """Number of mailbox entries removed."""

    user_id: str
    deleted_count: int
