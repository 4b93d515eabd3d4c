"""Outbound delivery channels: push gateway and webhook."""

from delivery.gateways.base import GatewayResult, PushGateway
from delivery.gateways.expo_push_gateway import ExpoPushGateway
from delivery.gateways.webhook_client import WebhookClient

__all__ = ["ExpoPushGateway", "GatewayResult", "PushGateway", "WebhookClient"]
