"""Push gateway backed by the Expo push API."""

from typing import Any

import structlog

from delivery.enums import GatewayErrorCode, NotificationPriority, Platform
from delivery.exceptions import ChannelDeliveryError
from delivery.gateways.base import GatewayResult, PushGateway
from delivery.gateways.base_http_client import BaseHttpClient

logger = structlog.get_logger(__name__)

# Ticket errors meaning the token will never be deliverable again.
INVALID_TOKEN_ERRORS = frozenset({"DeviceNotRegistered"})

# Ticket errors worth retrying later.
TRANSIENT_TICKET_ERRORS = frozenset({"MessageRateExceeded"})

EXPO_PRIORITY = {
    NotificationPriority.LOW: "default",
    NotificationPriority.NORMAL: "normal",
    NotificationPriority.HIGH: "high",
    NotificationPriority.CRITICAL: "high",
}


class ExpoPushGateway(BaseHttpClient, PushGateway):
    """Send push messages through ``POST /--/api/v2/push/send``."""

    def __init__(
        self,
        send_url: str,
        access_token: str | None = None,
        timeout: float = 10,
    ):
        """Initialize the Expo gateway.

        Args:
            send_url: Expo push send endpoint
            access_token: Expo access token when enhanced push security is on
            timeout: Request timeout in seconds
        """
        super().__init__(channel_name="expo-push", timeout=timeout)
        self.send_url = send_url
        self.access_token = access_token

    def _get_headers(self) -> dict[str, str]:
        headers = super()._get_headers()
        headers["Accept-Encoding"] = "gzip, deflate"
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def build_message(
        self,
        device_token: str,
        platform: Platform,
        title: str,
        body: str,
        data: dict[str, Any],
        priority: NotificationPriority,
    ) -> dict[str, Any]:
        """Build the Expo message for one device."""
        priority = NotificationPriority(priority)
        message: dict[str, Any] = {
            "to": device_token,
            "title": title,
            "body": body,
            "data": data or {},
            "priority": EXPO_PRIORITY[priority],
            "sound": (
                "urgent" if priority == NotificationPriority.CRITICAL else "default"
            ),
        }
        if Platform(platform) == Platform.ANDROID:
            message["channelId"] = (
                "critical" if priority == NotificationPriority.CRITICAL else "default"
            )
        return message

    def send(
        self,
        device_token: str,
        platform: Platform,
        title: str,
        body: str,
        data: dict[str, Any],
        priority: NotificationPriority,
    ) -> GatewayResult:
        """Push one message and translate the Expo ticket into a GatewayResult."""
        message = self.build_message(
            device_token, platform, title, body, data, priority
        )

        try:
            response = self._make_request("POST", self.send_url, json_data=message)
        except ChannelDeliveryError as e:
            return GatewayResult.rejected(e.error_code, str(e))

        try:
            payload = response.json()
        except ValueError:
            return GatewayResult.rejected(
                GatewayErrorCode.REJECTED, "Push gateway returned a non-JSON body"
            )

        return self._parse_ticket(payload)

    def _parse_ticket(self, payload: dict[str, Any]) -> GatewayResult:
        errors = payload.get("errors")
        if errors:
            logger.warning("expo_request_errors", errors=errors)
            return GatewayResult.rejected(
                GatewayErrorCode.REJECTED,
                "; ".join(str(err.get("message", err)) for err in errors),
            )

        ticket = payload.get("data")
        if isinstance(ticket, list):
            ticket = ticket[0] if ticket else None
        if not isinstance(ticket, dict):
            return GatewayResult.rejected(
                GatewayErrorCode.REJECTED, "Push gateway returned no ticket"
            )

        if ticket.get("status") == "ok":
            return GatewayResult.ok(message_id=ticket.get("id"))

        details = ticket.get("details") or {}
        ticket_error = details.get("error")
        message = ticket.get("message") or ticket_error or "Push ticket error"

        if ticket_error in INVALID_TOKEN_ERRORS:
            return GatewayResult.rejected(GatewayErrorCode.INVALID_TOKEN, message)
        if ticket_error in TRANSIENT_TICKET_ERRORS:
            return GatewayResult.rejected(GatewayErrorCode.UNAVAILABLE, message)
        return GatewayResult.rejected(GatewayErrorCode.REJECTED, message)
