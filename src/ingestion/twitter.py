"""
Fetch recent posts from X/Twitter through twikit's cookie-authenticated client.
"""
import logging
from datetime import datetime
from typing import Any, List, Optional

from twikit import Client

from ingestion.base import Post, QuotedPost, SocialClient, SocialSourceError

logger = logging.getLogger(__name__)

TWITTER_TIME_FORMAT = "%a %b %d %H:%M:%S %z %Y"


def permalink(username: str, post_id: str) -> str:
    return f"https://x.com/{username}/status/{post_id}"


def profile_url(username: str) -> str:
    return f"https://x.com/{username}"


def parse_created_at(value: Any) -> Optional[datetime]:
    """
    Parse Twitter's `created_at` ("Wed Oct 10 20:19:24 +0000 2018") or an
    ISO-8601 string. Returns None when the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return value
    if not value or not isinstance(value, str):
        return None

    try:
        return datetime.strptime(value, TWITTER_TIME_FORMAT)
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _author_handle(tweet: Any) -> Optional[str]:
    user = getattr(tweet, "user", None)
    return getattr(user, "screen_name", None) if user is not None else None


def to_post(tweet: Any) -> Post:
    """Convert a twikit Tweet into a validated Post."""
    text = getattr(tweet, "full_text", None) or getattr(tweet, "text", "") or ""

    quoted = None
    quote = getattr(tweet, "quote", None)
    if quote is not None:
        quote_text = getattr(quote, "full_text", None) or getattr(quote, "text", None)
        if quote_text:
            quoted = QuotedPost(text=quote_text, author=_author_handle(quote))

    return Post(
        id=str(tweet.id),
        text=text,
        created_at=parse_created_at(getattr(tweet, "created_at", None)),
        quoted_post=quoted,
    )


class TwitterClient(SocialClient):
    """
    SocialClient backed by twikit, authenticated with browser session
    cookies (`auth_token` and `ct0`).
    """

    def __init__(self, auth_token: str, ct0: str, client: Optional[Client] = None):
        self.client = client or Client(language="en-US")
        self.client.set_cookies({"auth_token": auth_token, "ct0": ct0})

    async def resolve_handle(self, username: str) -> str:
        try:
            user = await self.client.get_user_by_screen_name(username)
        except Exception as e:
            raise SocialSourceError(f"Failed to resolve @{username}: {e}") from e

        if user is None or not getattr(user, "id", None):
            raise SocialSourceError(f"Failed to resolve @{username}: no such account")
        return str(user.id)

    async def fetch_recent_posts(self, account_id: str, limit: int) -> List[Post]:
        try:
            tweets = await self.client.get_user_tweets(account_id, "Tweets", count=limit)
        except Exception as e:
            raise SocialSourceError(f"Failed to fetch posts for account {account_id}: {e}") from e

        posts: List[Post] = []
        for tweet in list(tweets or [])[:limit]:
            try:
                posts.append(to_post(tweet))
            except Exception as e:
                logger.warning(f"Skipping unreadable tweet {getattr(tweet, 'id', '?')}: {e}")
        return posts


async def fetch_handle_posts(client: SocialClient, username: str, limit: int) -> List[Post]:
    """
    Resolve `username` and fetch its recent posts.
    Any failure is logged and yields an empty list for this run.
    """
    try:
        account_id = await client.resolve_handle(username)
        return await client.fetch_recent_posts(account_id, limit)
    except Exception as e:
        logger.error(f"Could not fetch posts for @{username}: {e}")
        return []
