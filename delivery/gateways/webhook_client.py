"""Webhook delivery channel."""

from typing import Any

from delivery.exceptions import ChannelDeliveryError
from delivery.gateways.base import GatewayResult
from delivery.gateways.base_http_client import BaseHttpClient


class WebhookClient(BaseHttpClient):
    """POST notification requests to a configured webhook endpoint.

    Any 2xx response counts as delivered; everything else is an attempt
    failure.
    """

    def __init__(self, url: str, timeout: float = 5):
        super().__init__(channel_name="webhook", timeout=timeout)
        self.url = url

    @staticmethod
    def build_body(payload: dict[str, Any]) -> dict[str, Any]:
        """Select the webhook body fields from a serialized request."""
        return {
            "notificationId": payload["notificationId"],
            "recipientUserId": payload["recipientUserId"],
            "type": payload["type"],
            "title": payload["title"],
            "body": payload["body"],
            "data": payload["data"],
        }

    def post_notification(self, payload: dict[str, Any]) -> GatewayResult:
        """Deliver one serialized notification request.

        Args:
            payload: ``NotificationRequest.to_payload()`` output

        Returns:
            GatewayResult; accepted results are already confirmed
        """
        try:
            self._make_request("POST", self.url, json_data=self.build_body(payload))
        except ChannelDeliveryError as e:
            return GatewayResult.rejected(e.error_code, str(e))
        return GatewayResult.ok(confirmed=True)
