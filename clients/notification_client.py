"""
Notification gateway client for handing user notifications to the delivery service.

Uses HMAC-SHA256 signature for request authentication. Delivery (push, SMS,
e-mail) is the gateway's job; this client only submits bilingual messages.
"""

import hashlib
import hmac
import json
import logging
from enum import Enum
from typing import Any
from uuid import UUID

import requests

logger = logging.getLogger(__name__)


class NotificationType(str, Enum):
    """Notification categories understood by the gateway."""

    ORDER_UPDATE = "order_update"
    TECHNICIAN_ASSIGNED = "technician_assigned"
    PAYMENT_CONFIRMATION = "payment_confirmation"
    QUOTATION_REQUEST = "quotation_request"


class NotificationGatewayError(Exception):
    """Raised when notification gateway request fails."""


class NotificationGatewayClient:
    """Submit notifications via HTTP gateway with HMAC signature verification."""

    def __init__(self, gateway_url: str, api_key: str, hmac_secret: str, timeout: int = 10):
        """
        Initialize with gateway credentials.

        Args:
            gateway_url: Full URL to the notification gateway endpoint
            api_key: API key for X-API-Key header
            hmac_secret: Secret for HMAC-SHA256 signature
            timeout: Request timeout in seconds

        Raises:
            ValueError: If any credential is empty
        """
        if not gateway_url:
            raise ValueError("gateway_url is required")
        if not api_key:
            raise ValueError("api_key is required")
        if not hmac_secret:
            raise ValueError("hmac_secret is required")

        self.gateway_url = gateway_url
        self.api_key = api_key
        self.hmac_secret = hmac_secret
        self.timeout = timeout

    def sign(self, payload_json: str) -> str:
        """Hex HMAC-SHA256 of the exact request body."""
        return hmac.new(
            self.hmac_secret.encode("utf-8"),
            payload_json.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def _sign_and_send(self, payload: dict) -> None:
        """
        Sign payload with HMAC and send to gateway.

        Raises:
            NotificationGatewayError: On any failure
        """
        payload_json = json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)

        headers = {
            "Content-Type": "application/json",
            "X-API-Key": self.api_key,
            "X-Signature": self.sign(payload_json),
        }

        try:
            response = requests.post(
                self.gateway_url,
                data=payload_json.encode("utf-8"),
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Notification gateway connection failed: {e}")
            raise NotificationGatewayError(f"Connection failed: {e}")

        try:
            response_data = response.json()
        except ValueError:
            logger.error(f"Notification gateway returned invalid JSON: {response.text}")
            raise NotificationGatewayError("Invalid response from gateway")

        if response.status_code not in (200, 202) or not response_data.get("success"):
            error_msg = response_data.get("message", "Unknown error")
            logger.error(f"Notification gateway error: {error_msg}")
            raise NotificationGatewayError(f"Gateway error: {error_msg}")

    def send(
        self,
        user_id: UUID,
        notification_type: NotificationType,
        title: str,
        body: str,
        title_ar: str | None = None,
        body_ar: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        """
        Submit one notification for a user.

        The gateway picks the Arabic or English text from the user's language
        preference.

        Args:
            user_id: Recipient
            notification_type: Category for the recipient's inbox
            title: English title
            body: English body
            title_ar: Arabic title
            body_ar: Arabic body
            data: Extra payload for deep links (booking_id, quotation_id, ...)

        Raises:
            NotificationGatewayError: On gateway failure
        """
        payload = {
            "user_id": str(user_id),
            "type": notification_type.value,
            "title": {"en": title, "ar": title_ar or title},
            "body": {"en": body, "ar": body_ar or body},
            "data": data or {},
        }
        self._sign_and_send(payload)
        logger.info(f"Notification {notification_type.value} submitted for user {user_id}")
