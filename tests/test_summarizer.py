import pytest

from conftest import make_post
from core.prompts import NO_SHARED_TOPICS, SYSTEM_PROMPT, fill_template
from ingestion.base import QuotedPost
from processing.summarizer import (
    Summarizer,
    build_permalinks,
    format_grouped_posts,
    format_post_lines,
)


class FakeLLM:
    def __init__(self, reply="A summary [1]."):
        self.reply = reply
        self.prompts = []
        self.systems = []

    async def generate(self, prompt, system=None):
        self.prompts.append(prompt)
        self.systems.append(system)
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


def test_posts_are_numbered_with_quotes():
    posts = [
        make_post("1", "Shipping today"),
        make_post("2", "Agreed", quoted=QuotedPost(text="Tabs are better", author="bob")),
        make_post("3", "Hmm", quoted=QuotedPost(text="Anonymous take")),
    ]

    text = format_post_lines(posts)

    assert text.startswith("[1] Shipping today\n\n[2] Agreed")
    assert '\n    ↳ Quoted @bob: "Tabs are better"' in text
    assert '↳ Quoted unknown: "Anonymous take"' in text


def test_grouped_posts_format():
    groups = [
        ("alice", [make_post("1", "one"), make_post("2", "two")]),
        ("bob", [make_post("3", "three")]),
    ]

    assert format_grouped_posts(groups) == "@alice:\n- one\n- two\n\n@bob:\n- three"


def test_permalinks_follow_post_order():
    posts = [make_post("30"), make_post("10")]
    assert build_permalinks("alice", posts) == [
        "https://x.com/alice/status/30",
        "https://x.com/alice/status/10",
    ]


async def test_summarize_fills_default_prompt():
    llm = FakeLLM(reply="  They shipped [1].  ")
    summarizer = Summarizer(llm)
    posts = [make_post("5", "v2 is out")]

    result = await summarizer.summarize(posts, "Backend engineer", "alice")

    assert result.summary == "They shipped [1]."
    assert result.links == ["https://x.com/alice/status/5"]
    assert result.tweet_count == 1
    assert "Backend engineer" in llm.prompts[0]
    assert "[1] v2 is out" in llm.prompts[0]
    assert "{CONTEXT}" not in llm.prompts[0]
    assert llm.systems[0] == SYSTEM_PROMPT


async def test_custom_prompt_template():
    llm = FakeLLM()
    summarizer = Summarizer(llm, prompt_template="Reader: {CONTEXT}\nPosts:\n{TWEETS}\nKeep {braces}.")

    await summarizer.summarize([make_post("1", "hello")], "designer", "alice")

    assert llm.prompts[0] == "Reader: designer\nPosts:\n[1] hello\nKeep {braces}."


async def test_aggregate_sentinel_means_nothing_shared():
    summarizer = Summarizer(FakeLLM(reply=f"{NO_SHARED_TOPICS}\n"))

    result = await summarizer.aggregate_topics([("alice", [make_post("1")]), ("bob", [make_post("2")])], "ctx")

    assert result == ""


async def test_aggregate_sentinel_match_is_case_sensitive():
    summarizer = Summarizer(FakeLLM(reply="no_shared_topics"))

    result = await summarizer.aggregate_topics([("alice", [make_post("1")])], "ctx")

    assert result == "no_shared_topics"


async def test_aggregate_returns_prose():
    llm = FakeLLM(reply="**Launch**: @alice and @bob")
    summarizer = Summarizer(llm)

    result = await summarizer.aggregate_topics(
        [("alice", [make_post("1", "launch!")]), ("bob", [make_post("2", "nice launch")])],
        "ctx",
    )

    assert result == "**Launch**: @alice and @bob"
    assert "@alice:\n- launch!" in llm.prompts[0]


async def test_llm_errors_propagate():
    summarizer = Summarizer(FakeLLM(reply=RuntimeError("boom")))

    with pytest.raises(RuntimeError):
        await summarizer.summarize([make_post("1")], "ctx", "alice")


def test_fill_template_leaves_unknown_placeholders():
    assert fill_template("{CONTEXT} / {TWEETS} / {OTHER}", CONTEXT="c") == "c / {TWEETS} / {OTHER}"


def test_fill_template_does_not_expand_inside_values():
    filled = fill_template("About: {CONTEXT}\n{TWEETS}", CONTEXT="I like {TWEETS}", TWEETS="[1] hi")

    assert filled == "About: I like {TWEETS}\n[1] hi"


async def test_reader_context_with_placeholder_text_is_kept_verbatim():
    llm = FakeLLM()
    summarizer = Summarizer(llm, prompt_template="Reader: {CONTEXT}\nPosts:\n{TWEETS}")

    await summarizer.summarize([make_post("1", "hello")], "writes about {TWEETS} syntax", "alice")

    assert llm.prompts[0] == "Reader: writes about {TWEETS} syntax\nPosts:\n[1] hello"
