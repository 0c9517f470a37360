"""Email collaborator — thin async client for the Resend HTTP API.

Two delivery modes:
  - ``send_otp``: the email *is* the deliverable (registration); failures
    propagate as EmailDeliveryError.
  - ``notify_safely``: fire-and-forget notifications; failures are logged and
    swallowed so the originating state change stands.
"""

import logging
from collections.abc import Awaitable

import httpx

from config.settings import settings
from src.bm_common.errors import EmailDeliveryError

logger = logging.getLogger(__name__)


class EmailClient:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        sender: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self._base_url = (base_url or settings.RESEND_API_URL).rstrip("/")
        self._sender = sender or settings.EMAIL_FROM
        self._transport = transport

    async def send(self, to: str, subject: str, html: str) -> str:
        """Send one email; returns the provider message id."""
        if not self._api_key:
            raise EmailDeliveryError("Email provider is not configured")

        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=settings.EMAIL_TIMEOUT_SECONDS,
                transport=self._transport,
            ) as client:
                resp = await client.post(
                    "/emails",
                    json={"from": self._sender, "to": [to], "subject": subject, "html": html},
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPError as e:
            logger.error("Email send to %s failed: %s", to, e)
            raise EmailDeliveryError() from e

        message_id = body.get("id") if isinstance(body, dict) else None
        if not message_id:
            logger.error("Email provider rejected message to %s: %s", to, body)
            raise EmailDeliveryError("Email provider rejected the message")
        logger.info("Email sent to %s id=%s", to, message_id)
        return str(message_id)

    async def send_otp(self, email: str, otp: str) -> None:
        await self.send(
            email,
            "Your OTP Code",
            f"<p>Your OTP is <strong>{otp}</strong>. "
            f"It expires in {settings.OTP_EXPIRE_MINUTES} minutes.</p>",
        )

    async def send_listing_verified(self, email: str, company_name: str) -> None:
        await self.send(
            email,
            "Your listing is live",
            f"<p>{company_name} has been verified and is now visible to buyers.</p>",
        )


async def notify_safely(notification: Awaitable[object]) -> bool:
    """Await a non-critical notification; log and swallow delivery failures."""
    try:
        await notification
    except EmailDeliveryError as e:
        logger.warning("Notification not delivered: %s", e.message)
        return False
    return True
