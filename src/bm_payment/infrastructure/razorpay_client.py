"""Razorpay Orders API client (httpx, HTTP basic auth with the key pair)."""
import logging
from typing import Any

import httpx

from config.settings import settings
from src.bm_common.errors import PaymentGatewayError

logger = logging.getLogger(__name__)


def amount_to_paise(amount_rupees: int) -> int:
    return int(amount_rupees) * 100


class RazorpayClient:
    def __init__(
        self,
        key_id: str | None = None,
        key_secret: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.key_id = key_id if key_id is not None else settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret if key_secret is not None else settings.RAZORPAY_KEY_SECRET
        self._base_url = (base_url or settings.RAZORPAY_API_URL).rstrip("/")
        self._transport = transport

    async def create_order(
        self, amount_paise: int, receipt: str, notes: dict[str, str] | None = None
    ) -> dict[str, Any]:
        """Create a gateway order; the returned dict carries at least ``id``."""
        if not self.key_id or not self.key_secret:
            raise PaymentGatewayError("Payment gateway is not configured")

        payload = {
            "amount": amount_paise,
            "currency": settings.RAZORPAY_CURRENCY,
            "receipt": receipt,
            "notes": notes or {},
        }
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                auth=(self.key_id, self.key_secret),
                timeout=settings.PAYMENT_TIMEOUT_SECONDS,
                transport=self._transport,
            ) as client:
                resp = await client.post("/orders", json=payload)
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Razorpay order create failed (%s): %s", e.response.status_code, e.response.text
            )
            raise PaymentGatewayError("Payment order creation was rejected") from e
        except httpx.HTTPError as e:
            logger.error("Razorpay order create failed: %s", e)
            raise PaymentGatewayError() from e

        if not isinstance(body, dict) or not body.get("id"):
            raise PaymentGatewayError("Payment gateway returned no order id")
        return body
