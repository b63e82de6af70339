"""
Resend HTTP API delivery
"""
import logging
from datetime import date
from typing import Optional

import httpx

from delivery.base import DeliveryError, Mailer, RateLimited

logger = logging.getLogger(__name__)


class ResendMailer(Mailer):
    name = "resend"

    BASE_URL = "https://api.resend.com"

    def __init__(
        self,
        *,
        api_key: str,
        sender: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.sender = sender
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _transmit(
        self,
        to: str,
        subject: str,
        html: str,
        text: Optional[str],
        day: Optional[date],
    ) -> None:
        payload = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if text:
            payload["text"] = text

        async with httpx.AsyncClient(
            base_url=self.BASE_URL,
            timeout=self.timeout,
            transport=self.transport,
        ) as client:
            resp = await client.post("/emails", headers=self._headers(), json=payload)

        if resp.status_code < 300:
            logger.info(f"Email sent to {to} via Resend")
            return

        message = resp.text
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            message = str(body["message"])

        if resp.status_code == 429 or "too many requests" in message.lower():
            raise RateLimited(f"Resend {resp.status_code}: {message}")
        raise DeliveryError(f"Resend error {resp.status_code}: {message}")
