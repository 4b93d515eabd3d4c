"""Device schemas."""

from delivery.schemas.device.device_registration import DeviceRegistration
from delivery.schemas.device.device_token_detail import DeviceTokenDetail

__all__ = ["DeviceRegistration", "DeviceTokenDetail"]
