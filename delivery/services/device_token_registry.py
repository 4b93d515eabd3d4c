"""Registry of push tokens per user and device."""

from dataclasses import dataclass

from django.db import transaction

import structlog

from delivery.enums import Platform
from delivery.exceptions import storage_guard
from delivery.models import DeviceToken
from delivery.services.clock import Clock

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RegistrationResult:
    """Outcome of a register call.

    ``previous_token`` is set when an existing device reported a new token.
    """

    device: DeviceToken
    created: bool
    previous_token: str | None = None

    @property
    def rotated(self) -> bool:
        return self.previous_token is not None


class DeviceTokenRegistry:
    """Tracks which push tokens belong to which user and platform.

    Rows are unique per (user_id, device_id). Deactivation is a soft delete
    so that attempts made against a device stay attributable to it.
    """

    def __init__(self, clock: Clock) -> None:
        self.clock = clock

    def register(
        self, user_id: str, device_id: str, token: str, platform: Platform
    ) -> RegistrationResult:
        """Upsert a device token and mark it active.

        A different token for a known device replaces the stored one (last
        write wins); the caller is told which token was replaced.

        Args:
            user_id: Owner of the device.
            device_id: Client-generated stable device id.
            token: Push gateway token.
            platform: ios, android or web.

        Returns:
            RegistrationResult for the stored device.

        Raises:
            StorageError: If the device row could not be written.
        """
        platform = Platform(platform)
        now = self.clock.now()

        with storage_guard("register_device"), transaction.atomic():
            device, created = DeviceToken.objects.select_for_update().get_or_create(
                user_id=user_id,
                device_id=device_id,
                defaults={
                    "token": token,
                    "platform": platform.value,
                    "is_active": True,
                    "created_at": now,
                },
            )
            if created:
                logger.info(
                    "device_registered",
                    user_id=user_id,
                    device_id=device_id,
                    platform=platform.value,
                )
                return RegistrationResult(device=device, created=True)

            previous_token = device.token if device.token != token else None
            device.token = token
            device.platform = platform.value
            device.is_active = True
            device.deactivated_at = None
            device.save(
                update_fields=[
                    "token",
                    "platform",
                    "is_active",
                    "deactivated_at",
                    "updated_at",
                ]
            )

        if previous_token is not None:
            logger.info("device_token_rotated", user_id=user_id, device_id=device_id)
        else:
            logger.info("device_refreshed", user_id=user_id, device_id=device_id)

        return RegistrationResult(
            device=device, created=False, previous_token=previous_token
        )

    def deactivate(self, user_id: str, device_id: str) -> bool:
        """Soft-delete a device; returns False when it was not active."""
        now = self.clock.now()
        with storage_guard("deactivate_device"):
            updated = DeviceToken.objects.filter(
                user_id=user_id, device_id=device_id, is_active=True
            ).update(is_active=False, deactivated_at=now, updated_at=now)

        if updated:
            logger.info("device_deactivated", user_id=user_id, device_id=device_id)
        return bool(updated)

    def deactivate_token(self, user_id: str, device_id: str, token: str) -> bool:
        """Deactivate a device only while it still holds ``token``.

        Used after a gateway rejects a token as invalid; a token registered
        since the send was made is left alone.
        """
        now = self.clock.now()
        with storage_guard("deactivate_device_token"):
            updated = DeviceToken.objects.filter(
                user_id=user_id, device_id=device_id, token=token, is_active=True
            ).update(is_active=False, deactivated_at=now, updated_at=now)

        if updated:
            logger.warning(
                "device_token_invalidated", user_id=user_id, device_id=device_id
            )
        return bool(updated)

    def list_active(self, user_id: str) -> list[DeviceToken]:
        """Return the active devices of a user."""
        with storage_guard("list_active_devices"):
            return list(
                DeviceToken.objects.filter(user_id=user_id, is_active=True).order_by(
                    "created_at", "id"
                )
            )

    def get(self, user_id: str, device_id: str) -> DeviceToken | None:
        with storage_guard("get_device"):
            return DeviceToken.objects.filter(
                user_id=user_id, device_id=device_id
            ).first()

    def users_with_active_devices(self) -> list[str]:
        """Every user that can currently receive a push."""
        with storage_guard("list_reachable_users"):
            return list(
                DeviceToken.objects.filter(is_active=True)
                .order_by("user_id")
                .values_list("user_id", flat=True)
                .distinct()
            )
