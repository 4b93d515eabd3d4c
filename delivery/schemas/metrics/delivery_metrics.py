"""Delivery metrics schema."""

from pydantic import Field

from delivery.schemas.base_schema_model import BaseSchemaModel


class DeliveryMetrics(BaseSchemaModel):
    """Aggregate delivery counters computed from the durable store."""

    total_sent: int = Field(..., description="Attempts accepted by a channel")
    delivered: int = Field(..., description="Attempts confirmed delivered")
    retried: int = Field(..., description="Attempts with attempt number above 1")
    failed: int = Field(..., description="Attempts failed or expired")
    average_delivery_time_ms: float = Field(
        ..., description="Mean elapsed time of successful sends"
    )
