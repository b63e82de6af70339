"""
Base class for email delivery: send pacing and rate-limit retry live here,
transports only implement `_transmit`.
"""
import asyncio
import logging
import time
from datetime import date
from abc import ABC, abstractmethod
from typing import Optional

logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    """A send failed and will not be retried."""


class RateLimited(DeliveryError):
    """The provider rejected a send because of rate limiting."""


class Mailer(ABC):
    """
    Sends one HTML email per call.

    Consecutive sends are spaced at least `min_interval` seconds apart.
    A send that raises RateLimited is retried with exponential backoff
    (base_backoff, 2*base_backoff, ...) up to `max_attempts` in total;
    every other error surfaces immediately.
    """

    name: str

    def __init__(
        self,
        *,
        min_interval: float = 0.6,
        max_attempts: int = 3,
        base_backoff: float = 1.0,
    ):
        self.min_interval = min_interval
        self.max_attempts = max_attempts
        self.base_backoff = base_backoff
        self._last_send: Optional[float] = None

    @abstractmethod
    async def _transmit(
        self,
        to: str,
        subject: str,
        html: str,
        text: Optional[str],
        day: Optional[date],
    ) -> None:
        """
        Hand one message to the provider.
        `day` is the digest date when the caller has one.
        Must raise RateLimited for rate-limit responses.
        """
        raise NotImplementedError

    async def _pace(self) -> None:
        if self._last_send is None:
            return
        elapsed = time.monotonic() - self._last_send
        if elapsed < self.min_interval:
            await asyncio.sleep(self.min_interval - elapsed)

    async def send(
        self,
        to: str,
        subject: str,
        html: str,
        text: Optional[str] = None,
        *,
        day: Optional[date] = None,
    ) -> None:
        await self._pace()

        for attempt in range(self.max_attempts):
            try:
                await self._transmit(to, subject, html, text, day)
            except RateLimited as e:
                if attempt == self.max_attempts - 1:
                    raise
                backoff = self.base_backoff * (2 ** attempt)
                logger.warning(
                    f"Rate limited by {self.name}, retrying in {backoff}s "
                    f"(attempt {attempt + 1}/{self.max_attempts}): {e}"
                )
                await asyncio.sleep(backoff)
                continue

            self._last_send = time.monotonic()
            return
