"""
DigestTracker - per-recipient dedup state on top of a key-value store.

Two key families:
    lastSeen:<primaryEmail>:<username>  -> highest post id already digested
    sent:<YYYY-MM-DD>:<primaryEmail>    -> timestamp of that day's digest
"""
import logging
from datetime import date, datetime, timezone
from typing import Optional

from processing.prefilter import parse_post_id
from services.database import KeyValueStore

logger = logging.getLogger(__name__)


def last_seen_key(primary_email: str, username: str) -> str:
    return f"lastSeen:{primary_email}:{username}"


def sent_key(day: date, primary_email: str) -> str:
    return f"sent:{day.isoformat()}:{primary_email}"


class DigestTracker:
    """
    Reads and writes digest state for one run.
    The store is authoritative: a present `sent` key blocks a second digest
    for that recipient and day.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def get_last_seen(self, primary_email: str, username: str) -> Optional[int]:
        raw = await self.store.get(last_seen_key(primary_email, username))
        if raw is None:
            return None
        try:
            return parse_post_id(raw)
        except ValueError:
            logger.warning(
                f"Ignoring corrupt lastSeen value {raw!r} for {primary_email}/@{username}"
            )
            return None

    async def record_last_seen(self, primary_email: str, username: str, post_id: int) -> int:
        """
        Persist `post_id` as the newest digested id. Never lowers an existing
        value; returns the id actually stored.
        """
        current = await self.get_last_seen(primary_email, username)
        if current is not None and current >= post_id:
            logger.debug(f"lastSeen for {primary_email}/@{username} already at {current}")
            return current

        await self.store.put(last_seen_key(primary_email, username), str(post_id))
        logger.debug(f"lastSeen for {primary_email}/@{username} -> {post_id}")
        return post_id

    async def is_sent(self, day: date, primary_email: str) -> bool:
        return await self.store.get(sent_key(day, primary_email)) is not None

    async def mark_sent(
        self,
        day: date,
        primary_email: str,
        sent_at: Optional[datetime] = None,
    ) -> None:
        sent_at = sent_at or datetime.now(timezone.utc)
        await self.store.put(
            sent_key(day, primary_email),
            sent_at.isoformat(),
        )
