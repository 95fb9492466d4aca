"""Tests for digest formatting."""

import pytest

from helpers import make_enrichment, make_item
from newsbot.adapters.digest import digest_title, format_digest
from newsbot.core import RankedItem, Trend, TrendReport


def entry(n: int, title: str = "", **kwargs) -> RankedItem:
    item = make_item(f"https://a.com/{n}", title=title or f"Post {n}")
    item.id = n
    return RankedItem(item=item, enrichment=make_enrichment(n, **kwargs))


def test_empty_digest() -> None:
    assert format_digest([], None, "24h") == "No new articles in the last 24h."


def test_markdown_digest() -> None:
    trends = TrendReport(trends=[Trend(title="Rust", description="Rust everywhere.", articles=["Post 1"])])

    body = format_digest([entry(1, relevance=9), entry(2)], trends, "7days")

    assert body.startswith("**Top Articles (7days)**")
    assert "**1.** [19 | Systems] [Post 1](https://a.com/1)" in body
    assert "   Title: Localized" in body
    assert "   Why: Worth reading" in body
    assert "**Trends**" in body
    assert "**1. Rust**" in body
    assert "   Related: Post 1" in body
    assert body.index("Post 1") < body.index("Post 2")
    assert body.endswith("\n")


def test_html_digest_escapes() -> None:
    body = format_digest([entry(1, title="Generics <T> & you")], None, "24h", markup="html")

    assert "<b>Top Articles (24h)</b>" in body
    assert "Generics &lt;T&gt; &amp; you" in body
    assert "🔗 https://a.com/1" in body
    assert "Trends" not in body


def test_unsummarized_entry_omits_stage_b_lines() -> None:
    body = format_digest([entry(1, synopsis="")], None, "24h")

    assert "Title:" not in body
    assert "Why:" not in body


def test_limit() -> None:
    body = format_digest([entry(n) for n in range(1, 6)], None, "24h", limit=2)

    assert "Post 2" in body
    assert "Post 3" not in body


def test_unknown_markup() -> None:
    with pytest.raises(ValueError):
        format_digest([entry(1)], None, "24h", markup="rtf")


def test_digest_title() -> None:
    assert digest_title(1, "24h") == "Newsbot: 1 new article (24h)"
    assert digest_title(3, "7days") == "Newsbot: 3 new articles (7days)"
