"""
Markdown rendering and link rewriting for LLM prose.
"""
import re
from typing import Iterable, Sequence

import markdown

from ingestion.twitter import profile_url

LINK_STYLE = "color: #1da1f2; text-decoration: none; font-weight: 600;"

_REFERENCE = re.compile(r"\[(\d+)\]")
_MENTION = re.compile(r"(?<![\w/])@(\w{1,15})")


def render_markdown(text: str) -> str:
    return markdown.markdown(text)


def link_references(html: str, links: Sequence[str]) -> str:
    """
    Turn `[N]` into a link to links[N-1]. Numbers outside 1..len(links)
    stay as plain text.
    """
    def replace(match: re.Match) -> str:
        index = int(match.group(1)) - 1
        if 0 <= index < len(links):
            return f'<a href="{links[index]}" style="{LINK_STYLE}">[{match.group(1)}]</a>'
        return match.group(0)

    return _REFERENCE.sub(replace, html)


def link_mentions(html: str, usernames: Iterable[str]) -> str:
    """Link `@handle` mentions of the given accounts (case-insensitive)."""
    known = {name.lower() for name in usernames}

    def replace(match: re.Match) -> str:
        username = match.group(1)
        if username.lower() in known:
            return f'<a href="{profile_url(username)}" style="{LINK_STYLE}">@{username}</a>'
        return match.group(0)

    return _MENTION.sub(replace, html)
