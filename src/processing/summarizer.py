import logging
from typing import List, Optional, Sequence, Tuple

from core.entities import SummaryResult
from core.prompts import (
    AGGREGATE_PROMPT,
    DEFAULT_SUMMARY_PROMPT,
    NO_SHARED_TOPICS,
    SYSTEM_PROMPT,
    fill_template,
)
from ingestion.base import Post
from ingestion.twitter import permalink
from services.llm import LLMClient

logger = logging.getLogger(__name__)


def _quote_line(post: Post, indent: str) -> str:
    quoted = post.quoted_post
    author = f"@{quoted.author}" if quoted.author else "unknown"
    return f'\n{indent}↳ Quoted {author}: "{quoted.text}"'


def format_post_lines(posts: Sequence[Post]) -> str:
    """Number posts [1]..[n] in the order given."""
    lines = []
    for i, post in enumerate(posts, 1):
        line = f"[{i}] {post.text}"
        if post.quoted_post and post.quoted_post.text:
            line += _quote_line(post, "    ")
        lines.append(line)
    return "\n\n".join(lines)


def format_grouped_posts(groups: Sequence[Tuple[str, Sequence[Post]]]) -> str:
    blocks = []
    for username, posts in groups:
        lines = []
        for post in posts:
            line = f"- {post.text}"
            if post.quoted_post and post.quoted_post.text:
                line += _quote_line(post, "  ")
            lines.append(line)
        blocks.append(f"@{username}:\n" + "\n".join(lines))
    return "\n\n".join(blocks)


def build_permalinks(username: str, posts: Sequence[Post]) -> List[str]:
    """Permalinks aligned by position with the [N] numbering."""
    return [permalink(username, post.id) for post in posts]


class Summarizer:
    """
    Turns a batch of posts plus reader context into newsletter prose.
    """

    def __init__(self, llm: LLMClient, prompt_template: Optional[str] = None):
        self.llm = llm
        self.prompt_template = prompt_template or DEFAULT_SUMMARY_PROMPT

    async def summarize(self, posts: Sequence[Post], context: str, username: str) -> SummaryResult:
        prompt = fill_template(
            self.prompt_template,
            CONTEXT=context,
            TWEETS=format_post_lines(posts),
        )
        text = await self.llm.generate(prompt, system=SYSTEM_PROMPT)

        return SummaryResult(
            summary=text.strip(),
            links=build_permalinks(username, posts),
            tweet_count=len(posts),
        )

    async def aggregate_topics(
        self,
        groups: Sequence[Tuple[str, Sequence[Post]]],
        context: str,
    ) -> str:
        """
        Look for topics shared by two or more accounts.
        Returns "" when the model answers with the sentinel.
        """
        prompt = fill_template(
            AGGREGATE_PROMPT,
            CONTEXT=context,
            GROUPED_TWEETS=format_grouped_posts(groups),
        )
        text = await self.llm.generate(prompt, system=SYSTEM_PROMPT)

        if text.strip() == NO_SHARED_TOPICS:
            return ""
        return text.strip()
