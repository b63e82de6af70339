"""
SMTP email delivery
"""
import logging
from datetime import date
from email.message import EmailMessage
from typing import Optional

import aiosmtplib

from delivery.base import DeliveryError, Mailer, RateLimited

logger = logging.getLogger(__name__)

# Transient "try again later" replies servers use for throttling
RATE_LIMIT_CODES = {421, 450, 451, 452}


def _plain_fallback(html: str) -> str:
    return html.replace('<br>', '\n').replace('</p>', '\n')


class SmtpMailer(Mailer):
    name = "smtp"

    def __init__(
        self,
        *,
        smtp_host: str,
        smtp_port: int,
        username: str,
        password: str,
        sender: str,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.username = username
        self.password = password
        self.sender = sender

    def build_message(self, to: str, subject: str, html: str, text: Optional[str]) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject

        # Plain text first, HTML as the preferred alternative
        msg.set_content(text or _plain_fallback(html))
        msg.add_alternative(html, subtype="html")
        return msg

    async def _transmit(
        self,
        to: str,
        subject: str,
        html: str,
        text: Optional[str],
        day: Optional[date],
    ) -> None:
        msg = self.build_message(to, subject, html, text)
        implicit_tls = self.smtp_port == 465

        try:
            await aiosmtplib.send(
                msg,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.username,
                password=self.password,
                use_tls=implicit_tls,
                start_tls=not implicit_tls,
            )
        except aiosmtplib.SMTPResponseException as e:
            if e.code in RATE_LIMIT_CODES:
                raise RateLimited(f"SMTP {e.code}: {e.message}") from e
            raise DeliveryError(f"SMTP {e.code}: {e.message}") from e

        logger.info(f"Email sent to {to} via SMTP")
