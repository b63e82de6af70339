"""
Shared fakes and fixtures for the digest tests.
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pytest

from core.entities import SummaryResult
from delivery.base import DeliveryError, Mailer
from ingestion.base import Post, QuotedPost, SocialClient, SocialSourceError
from processing.summarizer import build_permalinks
from services.config import parse_config
from services.database import MemoryStore
from services.digest_tracker import DigestTracker
from workflows.digest import DigestAssembler

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def make_post(
    post_id: str,
    text: Optional[str] = None,
    *,
    hours_ago: Optional[float] = 1,
    quoted: Optional[QuotedPost] = None,
) -> Post:
    created_at = NOW - timedelta(hours=hours_ago) if hours_ago is not None else None
    return Post(
        id=post_id,
        text=text or f"post {post_id}",
        created_at=created_at,
        quoted_post=quoted,
    )


class FakeSocialClient(SocialClient):
    """Serves canned posts per username; an Exception value makes the fetch fail."""

    def __init__(
        self,
        posts: Dict[str, Union[List[Post], Exception]],
        unresolvable: Sequence[str] = (),
    ):
        self.posts = posts
        self.unresolvable = set(unresolvable)
        self.resolved: List[str] = []
        self.fetched: List[Tuple[str, int]] = []

    async def resolve_handle(self, username: str) -> str:
        self.resolved.append(username)
        if username in self.unresolvable:
            raise SocialSourceError(f"Failed to resolve @{username}")
        return f"id-{username}"

    async def fetch_recent_posts(self, account_id: str, limit: int) -> List[Post]:
        self.fetched.append((account_id, limit))
        username = account_id[len("id-"):]
        result = self.posts.get(username, [])
        if isinstance(result, Exception):
            raise result
        return list(result)[:limit]


class FakeSummarizer:
    """Stands in for processing.summarizer.Summarizer."""

    def __init__(
        self,
        *,
        prose: Optional[Dict[str, str]] = None,
        failing: Sequence[str] = (),
        aggregate: Union[str, Exception] = "",
    ):
        self.prose = prose or {}
        self.failing = set(failing)
        self.aggregate = aggregate
        self.summarize_calls: List[Tuple[str, List[str], str]] = []
        self.aggregate_calls: List[List[str]] = []

    async def summarize(self, posts, context, username) -> SummaryResult:
        self.summarize_calls.append((username, [p.id for p in posts], context))
        if username in self.failing:
            raise RuntimeError("LLM unavailable")
        return SummaryResult(
            summary=self.prose.get(username, f"Summary of @{username} [1]"),
            links=build_permalinks(username, posts),
            tweet_count=len(posts),
        )

    async def aggregate_topics(self, groups, context) -> str:
        self.aggregate_calls.append([username for username, _ in groups])
        if isinstance(self.aggregate, Exception):
            raise self.aggregate
        return self.aggregate

    @property
    def calls(self) -> int:
        return len(self.summarize_calls) + len(self.aggregate_calls)


class RecordingMailer(Mailer):
    name = "recording"

    def __init__(self, failing: Sequence[str] = ()):
        super().__init__(min_interval=0, base_backoff=0)
        self.failing = set(failing)
        self.sent: List[Dict[str, str]] = []
        self.attempts: List[str] = []

    async def _transmit(self, to, subject, html, text, day):
        self.attempts.append(to)
        if to in self.failing:
            raise DeliveryError(f"mailbox unavailable: {to}")
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text, "day": day})


def make_config(users: List[dict], prompt: Optional[str] = None):
    data = {
        "users": users,
        "llm": {"provider": "google", "model": "gemini-2.0-flash"},
    }
    if prompt is not None:
        data["prompt"] = prompt
    return parse_config(data)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def tracker(store) -> DigestTracker:
    return DigestTracker(store)


@pytest.fixture
def build_assembler(tracker):
    def build(config, *, social, summarizer=None, mailer=None, **kwargs):
        return DigestAssembler(
            config,
            social=social,
            summarizer=summarizer or FakeSummarizer(),
            mailer=mailer or RecordingMailer(),
            tracker=tracker,
            clock=lambda: NOW,
            **kwargs,
        )
    return build
