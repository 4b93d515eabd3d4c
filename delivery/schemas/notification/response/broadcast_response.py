"""Broadcast response schema."""

from pydantic import Field

from delivery.schemas.base_schema_model import BaseSchemaModel


class BroadcastResponse(BaseSchemaModel):
    """Outcome of a broadcast call."""

    notification_id: str
    recipient_count: int = Field(..., description="Users targeted")
    accepted_count: int = Field(..., description="Per-user submissions accepted")
    rejected_user_ids: list[str] = Field(default_factory=list)
