"""
Prompt templates for per-account summaries and cross-account topic detection.
Templates use literal placeholders: {CONTEXT}, {TWEETS}, {GROUPED_TWEETS}.
"""
import re

NO_SHARED_TOPICS = "NO_SHARED_TOPICS"

_PLACEHOLDER = re.compile(r"\{(CONTEXT|TWEETS|GROUPED_TWEETS)\}")

SYSTEM_PROMPT = (
    "You write short, natural newsletter summaries. You never pad content "
    "or reach for filler phrases, and you sound like a person writing to a friend."
)

DEFAULT_SUMMARY_PROMPT = """You are writing one section of a personalized newsletter about an X/Twitter account's recent posts.

About the reader: {CONTEXT}

The account's recent posts, numbered for reference:
{TWEETS}

Write a short, direct summary of what they posted. Cite specific posts with [1], [2] and so on; those markers become links in the email. Use the reader's background for color when it fits, but cover what the account actually talked about even when it is off-topic for the reader.

Refer to the account holder as "they/them". Do not guess their real name and do not call them "the user".

Length:
- 1-2 posts: two or three sentences at most.
- 3-5 posts: one short paragraph.
- 6 or more posts: two short paragraphs at most.

Style:
- Plain prose. No bullet points or numbered lists.
- Be concrete: when you mention a post, say what it says.
- No stock newsletter phrases ("landscape", "testament", "delve", "it's worth noting").
- Don't stretch personal posts into metaphors about the reader's work."""

AGGREGATE_PROMPT = """You are looking at recent posts from several X/Twitter accounts that one reader follows, to find conversations that span accounts.

About the reader: {CONTEXT}

Recent posts, grouped by account:

{GROUPED_TWEETS}

Find topics, events or threads that two or more of these accounts are discussing: the same news, launch, viral post or shared link.

For each shared topic:
- Bold the topic name.
- Name the accounts discussing it with @username.
- Say in one or two sentences what they are saying, and note it when their takes differ.

Rules:
- Only report topics that genuinely appear in two or more accounts. Do not force connections.
- At most three topics.
- Do not use [N] post references here.
- Plain prose, no bullet lists.

If no topic is shared across accounts, reply with exactly and only: """ + NO_SHARED_TOPICS


def fill_template(template: str, **values: str) -> str:
    """
    Replace {NAME} placeholders literally in one pass. Other braces, and
    placeholder-like text inside substituted values, are left alone.
    """
    return _PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), template)
