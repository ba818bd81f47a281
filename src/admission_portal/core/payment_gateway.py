"""
Razorpay Payment Gateway

Creates orders for online payments and verifies the checkout signature
returned to the browser after a successful payment.
"""

import hashlib
import hmac
import logging
import time
from decimal import Decimal
from typing import Any

import httpx
from fastapi import Request

from admission_portal.core.config import Settings

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """Raised when the gateway is unavailable or rejects a request."""


class RazorpayGateway:
    def __init__(
        self,
        *,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 15.0,
    ) -> None:
        self.key_id = key_id
        self._key_secret = key_secret
        self._base = base_url.rstrip("/")
        self._timeout = timeout

    async def create_order(
        self,
        amount: Decimal,
        *,
        currency: str = "INR",
        receipt: str | None = None,
    ) -> dict[str, Any]:
        """
        POST /orders

        ``amount`` is in rupees; Razorpay expects the smallest currency unit.
        """
        payload = {
            "amount": int((Decimal(amount) * 100).quantize(Decimal("1"))),
            "currency": currency,
            "receipt": receipt or f"rcpt_{int(time.time() * 1000)}",
            "payment_capture": 1,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                r = await client.post(
                    f"{self._base}/orders",
                    auth=(self.key_id, self._key_secret),
                    json=payload,
                )
                r.raise_for_status()
                order = r.json()
        except httpx.HTTPError as e:
            logger.error(f"Razorpay order creation failed: {e}", exc_info=True)
            raise PaymentGatewayError("Failed to create payment order") from e

        logger.info(f"Created Razorpay order {order.get('id')} for {payload['amount']} paise")
        return order

    def verify_signature(self, *, order_id: str, payment_id: str, signature: str) -> bool:
        """
        Checkout signature: HMAC-SHA256 of "<order_id>|<payment_id>" keyed with the secret.
        """
        message = f"{order_id}|{payment_id}".encode("utf-8")
        mac = hmac.new(self._key_secret.encode("utf-8"), msg=message, digestmod=hashlib.sha256)
        return hmac.compare_digest(mac.hexdigest(), signature or "")


def create_payment_gateway(settings: Settings) -> RazorpayGateway | None:
    """Build the gateway, or None when Razorpay keys are not configured."""
    if not (settings.razorpay_key_id and settings.razorpay_key_secret):
        logger.warning("Razorpay keys not set - online payments are disabled")
        return None
    return RazorpayGateway(
        key_id=settings.razorpay_key_id,
        key_secret=settings.razorpay_key_secret,
        base_url=settings.razorpay_api_url,
    )


def get_payment_gateway(request: Request) -> RazorpayGateway | None:
    """FastAPI dependency returning the configured gateway, if any."""
    return getattr(request.app.state, "payment_gateway", None)
