"""Gateway result type and the push gateway interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from delivery.enums import GatewayErrorCode, NotificationPriority, Platform


@dataclass(frozen=True)
class GatewayResult:
    """Synchronous outcome of one channel call.

    Attributes:
        accepted: The gateway (or webhook endpoint) took the message.
        error_code: Why the message was not accepted.
        error_message: Gateway supplied detail.
        message_id: Gateway ticket / message id when accepted.
        confirmed: The channel already confirmed receipt, so the attempt
            can move straight to delivered.
    """

    accepted: bool
    error_code: GatewayErrorCode | None = None
    error_message: str | None = None
    message_id: str | None = None
    confirmed: bool = False

    @classmethod
    def ok(cls, message_id: str | None = None, confirmed: bool = False):
        return cls(accepted=True, message_id=message_id, confirmed=confirmed)

    @classmethod
    def rejected(cls, error_code: GatewayErrorCode, error_message: str | None = None):
        return cls(accepted=False, error_code=error_code, error_message=error_message)

    @property
    def is_invalid_token(self) -> bool:
        return self.error_code == GatewayErrorCode.INVALID_TOKEN


class PushGateway(ABC):
    """A gateway able to push a message to one registered device token.

    Implementations report rejections through the returned GatewayResult;
    they do not raise for network or gateway failures.
    """

    @abstractmethod
    def send(
        self,
        device_token: str,
        platform: Platform,
        title: str,
        body: str,
        data: dict[str, Any],
        priority: NotificationPriority,
    ) -> GatewayResult:
        """Send one message to one device."""
