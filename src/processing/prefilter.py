import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from ingestion.base import POST_ID_PATTERN, Post

logger = logging.getLogger(__name__)


def parse_post_id(value: str) -> int:
    """
    Post ids are compared as arbitrary-precision integers. Snowflake ids
    exceed 2**53, so float or string comparison would misorder them.
    """
    value = str(value).strip()
    if not POST_ID_PATTERN.fullmatch(value):
        raise ValueError(f"Not a numeric post id: {value!r}")
    return int(value)


def is_recent(post: Post, *, now: datetime, window: timedelta) -> bool:
    """Posts without a timestamp are kept."""
    if post.created_at is None:
        return True
    return post.created_at > now - window


def filter_recent(
    posts: Iterable[Post],
    *,
    now: datetime,
    window: timedelta = timedelta(hours=24),
) -> List[Post]:
    """Keep posts created inside the trailing recency window."""
    return [post for post in posts if is_recent(post, now=now, window=window)]


def filter_unseen(posts: Iterable[Post], last_seen_id: Optional[int]) -> List[Post]:
    """Keep posts newer than the last digested id; all of them when there is none."""
    posts = list(posts)
    if last_seen_id is None:
        return posts
    return [post for post in posts if parse_post_id(post.id) > last_seen_id]


def newest_post_id(posts: Iterable[Post]) -> int:
    """Highest id among `posts` (which must be non-empty)."""
    return max(parse_post_id(post.id) for post in posts)


def select_new_posts(
    posts: Iterable[Post],
    *,
    last_seen_id: Optional[int],
    now: datetime,
    window: timedelta = timedelta(hours=24),
) -> List[Post]:
    """Recency guard first, then dedup against `last_seen_id`. Fetch order is kept."""
    posts = list(posts)
    recent = filter_recent(posts, now=now, window=window)
    unseen = filter_unseen(recent, last_seen_id)
    logger.debug(f"Prefilter: {len(posts)} fetched -> {len(recent)} recent -> {len(unseen)} unseen")
    return unseen
