"""Submission response schema."""

from delivery.schemas.base_schema_model import BaseSchemaModel


class SubmissionResponse(BaseSchemaModel):
    """Outcome of a single submit call."""

    accepted: bool
    notification_id: str
