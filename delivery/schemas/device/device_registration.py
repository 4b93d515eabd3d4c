"""Device registration request schema."""

from pydantic import Field

from delivery.enums import Platform
from delivery.schemas.base_schema_model import BaseSchemaModel


class DeviceRegistration(BaseSchemaModel):
    """Push token reported by a client device."""

    user_id: str = Field(..., min_length=1, max_length=255)
    device_id: str = Field(..., min_length=1, max_length=255)
    token: str = Field(..., min_length=1, max_length=512)
    platform: Platform
