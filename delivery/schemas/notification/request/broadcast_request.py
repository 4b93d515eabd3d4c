"""Broadcast request schema."""

from typing import Any
from uuid import uuid4

from pydantic import Field

from delivery.enums import NotificationPriority, NotificationType
from delivery.schemas.base_schema_model import BaseSchemaModel


class BroadcastRequest(BaseSchemaModel):
    """An announcement fanned out to many users.

    Each recipient gets its own request with id ``<notification_id>:<user_id>``.
    """

    notification_id: str = Field(
        default_factory=lambda: str(uuid4()), min_length=1, max_length=200
    )
    notification_type: str = Field(
        NotificationType.URGENT_ANNOUNCEMENT.value, alias="type"
    )
    title: str = ""
    body: str = ""
    data: dict[str, Any] = Field(default_factory=dict)
    priority: NotificationPriority | None = None
    user_ids: list[str] | None = Field(
        None, description="Recipients; every user with an active device when omitted"
    )
