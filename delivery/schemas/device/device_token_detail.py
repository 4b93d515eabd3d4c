"""Device token detail schema."""

from datetime import datetime

from delivery.enums import Platform
from delivery.schemas.base_schema_model import BaseSchemaModel


class DeviceTokenDetail(BaseSchemaModel):
    """A registered device as exposed by the API."""

    user_id: str
    device_id: str
    platform: Platform
    is_active: bool
    updated_at: datetime
