"""
Base classes for social ingestion
"""
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


# ASCII digits only; str.isdigit() also accepts superscripts and other scripts
POST_ID_PATTERN = re.compile(r"[0-9]+")


class SocialSourceError(Exception):
    """Raised by social adapters when a handle cannot be resolved or fetched."""


class QuotedPost(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    author: Optional[str] = None


class Post(BaseModel):
    """
    A post (tweet) validated at the adapter boundary.
    `id` is a decimal string; compare it with `processing.prefilter.parse_post_id`.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    created_at: Optional[datetime] = None
    quoted_post: Optional[QuotedPost] = None

    @field_validator("id", mode="before")
    @classmethod
    def _numeric_id(cls, value) -> str:
        value = str(value).strip()
        if not POST_ID_PATTERN.fullmatch(value):
            raise ValueError(f"post id must be numeric, got {value!r}")
        return value

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class SocialClient(ABC):
    """
    Interface for an external account-data source.
    """

    @abstractmethod
    async def resolve_handle(self, username: str) -> str:
        """
        Resolve a handle to a stable account id.
        Raises SocialSourceError (or anything else) on failure.
        """
        raise NotImplementedError

    @abstractmethod
    async def fetch_recent_posts(self, account_id: str, limit: int) -> List[Post]:
        """
        Return up to `limit` recent posts in no guaranteed order.
        """
        raise NotImplementedError
