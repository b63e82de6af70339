from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List

from ingestion.base import Post


@dataclass(frozen=True)
class SummaryResult:
    """
    LLM prose for one account plus the permalinks its [N] markers point to.
    """
    summary: str
    links: List[str]
    tweet_count: int


@dataclass(frozen=True)
class HandleSummary:
    """
    One followed account's section of a digest. Lives for a single run.
    """
    username: str
    summary_html: str
    links: List[str]
    tweet_count: int
    posts: List[Post] = field(default_factory=list)


@dataclass(frozen=True)
class Digest:
    """
    Rendered email for one recipient.
    """
    subject: str
    html: str
    text: str
    handle_count: int
    day: date
