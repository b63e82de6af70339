"""
Digest assembly: fetch -> filter -> record -> summarize -> render -> send,
for every configured recipient in order.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional

from core.entities import Digest, HandleSummary
from delivery.base import Mailer
from delivery.digest_template import render_digest
from ingestion.base import Post, SocialClient
from ingestion.twitter import fetch_handle_posts
from processing.prefilter import newest_post_id, select_new_posts
from processing.references import link_mentions, link_references, render_markdown
from processing.summarizer import Summarizer, build_permalinks
from services.config import Config, Follow, User
from services.digest_tracker import DigestTracker

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserStatus(str, Enum):
    SENT = "sent"
    ALREADY_SENT = "already_sent"
    NO_NEW_POSTS = "no_new_posts"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class UserOutcome:
    """What one recipient's digest run did."""
    email: str
    status: UserStatus
    handles: List[str] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)
    trending: bool = False

    @property
    def failed(self) -> bool:
        return self.status in (UserStatus.PARTIAL, UserStatus.FAILED)


@dataclass
class RunReport:
    outcomes: List[UserOutcome] = field(default_factory=list)

    @property
    def failed(self) -> List[UserOutcome]:
        return [o for o in self.outcomes if o.failed]

    def summary(self) -> str:
        counts: Dict[str, int] = {}
        for outcome in self.outcomes:
            counts[outcome.status.value] = counts.get(outcome.status.value, 0) + 1
        return ", ".join(f"{k}={v}" for k, v in sorted(counts.items())) or "no users"


class DigestRunError(Exception):
    """Raised after a run in which at least one recipient failed."""

    def __init__(self, report: RunReport):
        self.report = report
        details = "; ".join(
            f"{o.email}: {', '.join(f'{addr} ({err})' for addr, err in o.failures.items())}"
            for o in report.failed
        )
        super().__init__(f"Digest run failed for {len(report.failed)} user(s): {details}")


def fallback_summary_html(links: List[str]) -> str:
    """Shown when a summary could not be generated; the posts stay reachable."""
    refs = " ".join(f"[{i}]" for i in range(1, len(links) + 1))
    return link_references(f"<p>Summary unavailable for this run. New posts: {refs}</p>", links)


class DigestAssembler:
    """
    Builds and sends one digest per configured user.

    A handle's lastSeen is persisted as soon as its new posts are known,
    before summarizing or sending. Posts are never reprocessed, even when
    the email for them was lost.
    """

    def __init__(
        self,
        config: Config,
        *,
        social: SocialClient,
        summarizer: Summarizer,
        mailer: Mailer,
        tracker: DigestTracker,
        fetch_limit: int = 20,
        recency: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.config = config
        self.social = social
        self.summarizer = summarizer
        self.mailer = mailer
        self.tracker = tracker
        self.fetch_limit = fetch_limit
        self.recency = recency
        self.clock = clock

    async def run(self) -> RunReport:
        report = RunReport()
        logger.info(f"Starting digest run for {len(self.config.users)} user(s)")

        for user in self.config.users:
            try:
                outcome = await self.process_user(user)
            except Exception as e:
                logger.exception(f"Digest failed for {user.primary_email}: {e}")
                outcome = UserOutcome(
                    email=user.primary_email,
                    status=UserStatus.FAILED,
                    failures={user.primary_email: str(e)},
                )
            report.outcomes.append(outcome)

        logger.info(f"Digest run completed: {report.summary()}")
        if report.failed:
            raise DigestRunError(report)
        return report

    async def process_user(self, user: User) -> UserOutcome:
        primary = user.primary_email
        now = self.clock()
        today = now.date()

        if await self.tracker.is_sent(today, primary):
            logger.info(f"Already sent digest to {', '.join(user.email)} today")
            return UserOutcome(email=primary, status=UserStatus.ALREADY_SENT)

        logger.info(f"Processing digest for {', '.join(user.email)}...")
        summaries: List[HandleSummary] = []
        for follow in user.follows:
            summary = await self.process_follow(user, follow, now)
            if summary is not None:
                summaries.append(summary)

        if not summaries:
            logger.info(f"No new tweets for any handles, skipping {', '.join(user.email)}")
            return UserOutcome(email=primary, status=UserStatus.NO_NEW_POSTS)

        trending_html = ""
        if len(summaries) >= 2:
            trending_html = await self.detect_shared_topics(user, summaries)

        digest = render_digest(summaries, trending_html, today)
        failures = await self.deliver(user, digest)

        if len(failures) < len(user.email):
            await self.tracker.mark_sent(today, primary, sent_at=now)

        if not failures:
            status = UserStatus.SENT
        elif len(failures) < len(user.email):
            status = UserStatus.PARTIAL
        else:
            status = UserStatus.FAILED

        return UserOutcome(
            email=primary,
            status=status,
            handles=[s.username for s in summaries],
            failures=failures,
            trending=bool(trending_html),
        )

    async def process_follow(
        self,
        user: User,
        follow: Follow,
        now: datetime,
    ) -> Optional[HandleSummary]:
        """New posts for one followed account, summarized; None when nothing is new."""
        primary = user.primary_email
        username = follow.username

        last_seen_id = await self.tracker.get_last_seen(primary, username)

        logger.info(f"Fetching tweets for @{username}...")
        posts = await fetch_handle_posts(self.social, username, self.fetch_limit)
        new_posts = select_new_posts(
            posts,
            last_seen_id=last_seen_id,
            now=now,
            window=self.recency,
        )

        if not new_posts:
            logger.info(f"No new tweets for @{username}")
            return None

        await self.tracker.record_last_seen(primary, username, newest_post_id(new_posts))

        logger.info(f"Summarizing @{username} ({len(new_posts)} new tweets)...")
        return await self.summarize_follow(user, username, new_posts)

    async def summarize_follow(self, user: User, username: str, posts: List[Post]) -> HandleSummary:
        try:
            result = await self.summarizer.summarize(posts, user.context, username)
        except Exception as e:
            logger.error(f"Summarization failed for @{username}: {e}")
            links = build_permalinks(username, posts)
            return HandleSummary(
                username=username,
                summary_html=fallback_summary_html(links),
                links=links,
                tweet_count=len(posts),
                posts=posts,
            )

        summary_html = link_references(render_markdown(result.summary), result.links)
        return HandleSummary(
            username=username,
            summary_html=summary_html,
            links=result.links,
            tweet_count=result.tweet_count,
            posts=posts,
        )

    async def detect_shared_topics(self, user: User, summaries: List[HandleSummary]) -> str:
        """Trending block HTML, or "" when nothing is shared or detection fails."""
        logger.info(f"Detecting shared topics across {len(summaries)} handles...")
        try:
            text = await self.summarizer.aggregate_topics(
                [(s.username, s.posts) for s in summaries],
                user.context,
            )
        except Exception as e:
            logger.error(f"Failed to detect aggregate topics: {e}")
            return ""

        if not text:
            logger.info("No shared topics detected across handles")
            return ""

        logger.info("Shared topics detected, adding trending section")
        return link_mentions(render_markdown(text), [s.username for s in summaries])

    async def deliver(self, user: User, digest: Digest) -> Dict[str, str]:
        """Send to every address independently; returns address -> error for failures."""
        failures: Dict[str, str] = {}
        for recipient in user.email:
            logger.info(f"Sending digest to {recipient} ({digest.handle_count} handles)...")
            try:
                await self.mailer.send(
                    recipient,
                    digest.subject,
                    digest.html,
                    digest.text,
                    day=digest.day,
                )
            except Exception as e:
                logger.error(f"Delivery failed: recipient={recipient}, channel={self.mailer.name}, error={e}")
                failures[recipient] = str(e)
                continue
            logger.info(f"Digest sent to {recipient}")
        return failures
