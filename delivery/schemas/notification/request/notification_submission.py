"""Notification submission schema."""

from typing import Any
from uuid import uuid4

from pydantic import Field

from delivery.enums import NotificationPriority
from delivery.schemas.base_schema_model import BaseSchemaModel


class NotificationSubmission(BaseSchemaModel):
    """A notification raised by the application for one recipient.

    ``notification_type`` is kept as a plain string so unknown types reach
    the router, which rejects them as validation failures.
    """

    notification_id: str = Field(
        default_factory=lambda: str(uuid4()),
        min_length=1,
        max_length=255,
        description="Idempotency key; generated when omitted",
    )
    recipient_user_id: str = Field("", max_length=255, description="Target user")
    notification_type: str = Field(
        "", alias="type", description="Notification type selecting the policy"
    )
    title: str = Field("", description="Display title")
    body: str = Field("", description="Display body")
    data: dict[str, Any] = Field(
        default_factory=dict, description="Opaque payload passed through unmodified"
    )
    priority: NotificationPriority | None = Field(
        None, description="Overrides the type's default priority"
    )
