"""Base HTTP client for outbound delivery channels."""

from typing import Any

import requests
import structlog

from delivery.enums import GatewayErrorCode
from delivery.exceptions import PermanentDeliveryError, TransientDeliveryError

logger = structlog.get_logger(__name__)


class BaseHttpClient:
    """Shared request handling for the push gateway and webhook clients."""

    def __init__(self, channel_name: str, timeout: float = 10):
        """Initialize base HTTP client.

        Args:
            channel_name: Name of the channel (for logging/errors)
            timeout: Request timeout in seconds
        """
        self.channel_name = channel_name
        self.timeout = timeout
        self.session = requests.Session()

    def _get_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _make_request(
        self,
        method: str,
        url: str,
        json_data: dict[str, Any] | None = None,
        **kwargs,
    ) -> requests.Response:
        """Make HTTP request and classify failures.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: Full URL for the request
            json_data: JSON body data
            **kwargs: Additional arguments to pass to requests

        Returns:
            Response object for any 2xx status

        Raises:
            TransientDeliveryError: For 5xx, 429, timeouts and connection errors
            PermanentDeliveryError: For other 4xx responses
        """
        headers = self._get_headers()
        if "headers" in kwargs:
            headers.update(kwargs.pop("headers"))
        kwargs.setdefault("timeout", self.timeout)

        logger.debug(
            "channel_request_started",
            channel=self.channel_name,
            method=method,
            url=url,
        )

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=headers,
                json=json_data,
                **kwargs,
            )
        except requests.Timeout as e:
            logger.warning(
                "channel_request_timed_out",
                channel=self.channel_name,
                url=url,
                timeout=kwargs["timeout"],
            )
            raise TransientDeliveryError(
                f"{self.channel_name} request timed out",
                error_code=GatewayErrorCode.TIMEOUT,
            ) from e
        except requests.ConnectionError as e:
            logger.warning(
                "channel_connection_failed",
                channel=self.channel_name,
                url=url,
                error=str(e),
            )
            raise TransientDeliveryError(
                f"Failed to connect to {self.channel_name}: {e}",
                error_code=GatewayErrorCode.CONNECTION_ERROR,
            ) from e

        logger.debug(
            "channel_response_received",
            channel=self.channel_name,
            status_code=response.status_code,
        )

        if response.status_code >= 500 or response.status_code == 429:
            logger.warning(
                "channel_unavailable",
                channel=self.channel_name,
                status_code=response.status_code,
                response_text=response.text[:500],
            )
            raise TransientDeliveryError(
                f"{self.channel_name} returned {response.status_code}",
                error_code=GatewayErrorCode.UNAVAILABLE,
            )

        if response.status_code >= 300:
            logger.warning(
                "channel_rejected_request",
                channel=self.channel_name,
                status_code=response.status_code,
                response_text=response.text[:500],
            )
            raise PermanentDeliveryError(
                f"{self.channel_name} returned {response.status_code}: "
                f"{response.text[:200]}",
                error_code=GatewayErrorCode.REJECTED,
            )

        return response
