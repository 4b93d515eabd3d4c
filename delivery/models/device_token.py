"""DeviceToken model: push tokens registered by a user's devices."""

from typing import ClassVar

from django.db import models
from django.utils import timezone

from delivery.enums import Platform


class DeviceToken(models.Model):
    """A push token for one (user, device) pair.

    Tokens are deactivated rather than deleted so that delivery history
    stays attributable to the device.
    """

    user_id = models.CharField(max_length=255, help_text="Owner of the device")
    device_id = models.CharField(
        max_length=255, help_text="Client-generated stable device identifier"
    )
    token = models.CharField(max_length=512, help_text="Push gateway token")
    platform = models.CharField(
        max_length=10,
        choices=[(p.value, p.value) for p in Platform],
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)
    deactivated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        """Django model metadata."""

        db_table = "device_tokens"
        ordering: ClassVar[list[str]] = ["-updated_at"]
        unique_together: ClassVar[list[list[str]]] = [["user_id", "device_id"]]
        indexes: ClassVar[list] = [
            models.Index(
                fields=["user_id", "is_active"], name="device_toke_user_id_6c1a2e_idx"
            ),
        ]

    def __str__(self) -> str:
        """Return string representation of the device token."""
        state = "active" if self.is_active else "inactive"
        return f"{self.user_id}/{self.device_id} ({self.platform}, {state})"

    def __repr__(self) -> str:
        """Return detailed representation of the device token."""
        return (
            f"<DeviceToken(user_id={self.user_id}, device_id={self.device_id}, "
            f"platform={self.platform}, is_active={self.is_active})>"
        )
