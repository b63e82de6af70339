"""
HTML and plain-text rendering of one recipient's digest.
"""
import html as html_escape
import re
from datetime import date
from typing import List, Sequence

from core.entities import Digest, HandleSummary
from ingestion.twitter import profile_url

TITLE = "Bird Digest"
ACCENT = "#1da1f2"

_TAG = re.compile(r"<[^>]+>")


def format_digest_date(day: date) -> str:
    """e.g. October 19, 2026"""
    return f"{day:%B} {day.day}, {day.year}"


def tweet_count_label(count: int) -> str:
    return f"{count} new tweet{'' if count == 1 else 's'}"


def _handle_block(summary: HandleSummary) -> str:
    username = html_escape.escape(summary.username)
    url = html_escape.escape(profile_url(summary.username))
    return f'''
          <div style="margin-bottom: 30px; padding-bottom: 20px; border-bottom: 1px solid #eee;">
            <h2 style="margin: 0 0 10px 0;">
              <a href="{url}" style="color: {ACCENT}; text-decoration: none;">@{username}</a>
            </h2>
            <div style="line-height: 1.6;">{summary.summary_html}</div>
            <p style="color: #666; font-size: 14px;">{tweet_count_label(summary.tweet_count)}</p>
          </div>'''


def _trending_block(trending_html: str) -> str:
    if not trending_html:
        return ""
    return f'''
        <div style="margin-bottom: 30px; padding: 16px 20px; background-color: #f8f9fa;
                    border-radius: 8px; border-left: 4px solid {ACCENT};">
          <h2 style="margin: 0 0 10px 0; font-size: 16px; color: #333;">📡 Trending Across Your Follows</h2>
          <div style="line-height: 1.6;">{trending_html}</div>
        </div>'''


def build_html(summaries: Sequence[HandleSummary], trending_html: str, digest_date: str) -> str:
    blocks = "".join(_handle_block(s) for s in summaries)
    return f'''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{TITLE}</title>
</head>
<body>
      <div style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
                  max-width: 600px; margin: 0 auto; padding: 20px;">
        <h1 style="margin-bottom: 5px;">🐦 {TITLE}</h1>
        <p style="color: #666; margin-bottom: 30px;">{digest_date}</p>
        {_trending_block(trending_html)}
        {blocks}

        <hr style="border: none; border-top: 1px solid #eee; margin: 30px 0;">
        <p style="color: #999; font-size: 12px;">Powered by {TITLE}</p>
      </div>
</body>
</html>
'''


def _strip_tags(fragment: str) -> str:
    return html_escape.unescape(_TAG.sub("", fragment)).strip()


def build_plain_text(summaries: Sequence[HandleSummary], trending_html: str, digest_date: str) -> str:
    """Build a plain text version of the digest."""
    lines: List[str] = [
        f"{'=' * 60}",
        f"{TITLE} - {digest_date}",
        f"{'=' * 60}",
        "",
    ]

    if trending_html:
        lines.extend([
            "Trending Across Your Follows",
            f"{'-' * 60}",
            _strip_tags(trending_html),
            "",
        ])

    for summary in summaries:
        lines.extend([
            f"@{summary.username} ({tweet_count_label(summary.tweet_count)})",
            f"{'-' * 60}",
            _strip_tags(summary.summary_html),
            "",
        ])
        for i, link in enumerate(summary.links, 1):
            lines.append(f"  [{i}] {link}")
        lines.append("")

    lines.append(f"Powered by {TITLE}")
    return "\n".join(lines)


def render_digest(
    summaries: Sequence[HandleSummary],
    trending_html: str,
    day: date,
) -> Digest:
    """Render the trending block (if any) followed by one block per account, in order."""
    digest_date = format_digest_date(day)
    return Digest(
        subject=f"🐦 {TITLE} — {digest_date}",
        html=build_html(summaries, trending_html, digest_date),
        text=build_plain_text(summaries, trending_html, digest_date),
        handle_count=len(summaries),
        day=day,
    )
