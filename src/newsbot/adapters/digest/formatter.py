"""Digest text formatting.

Everything here is pure: it takes ranked items and trend clusters and returns
text. ``markup`` selects Telegram-style HTML or Markdown (Slack, files,
console).
"""

import html
from typing import Optional

from newsbot.core import RankedItem, TrendReport

MARKUPS = ("markdown", "html")


def _escape(text: str, markup: str) -> str:
    return html.escape(text, quote=False) if markup == "html" else text


def _bold(text: str, markup: str) -> str:
    return f"<b>{text}</b>" if markup == "html" else f"**{text}**"


def digest_title(count: int, window: str) -> str:
    noun = "article" if count == 1 else "articles"
    return f"Newsbot: {count} new {noun} ({window})"


def format_entry(position: int, entry: RankedItem, markup: str = "markdown") -> list[str]:
    """Format one ranked item as a few lines."""
    item, enrichment = entry.item, entry.enrichment
    score = f"[{enrichment.total_score} | {_escape(enrichment.category or '-', markup)}]"

    if markup == "html":
        lines = [f"{_bold(f'{position}.', markup)} {score} {_escape(item.title, markup)}"]
    else:
        lines = [f"{_bold(f'{position}.', markup)} {score} [{item.title}]({item.url})"]

    if enrichment.localized_title:
        lines.append(f"   Title: {_escape(enrichment.localized_title, markup)}")
    if enrichment.recommendation:
        lines.append(f"   Why: {_escape(enrichment.recommendation, markup)}")
    if markup == "html":
        lines.append(f"   🔗 {item.url}")
    lines.append("")
    return lines


def format_trends(trends: TrendReport, markup: str = "markdown") -> list[str]:
    if not trends.trends:
        return []

    lines = [_bold("Trends", markup), ""]
    for i, trend in enumerate(trends.trends, 1):
        lines.append(_bold(f"{i}. {_escape(trend.title, markup)}", markup))
        lines.append(f"   {_escape(trend.description, markup)}")
        if trend.articles:
            related = "; ".join(trend.articles)
            lines.append(f"   Related: {_escape(related, markup)}")
        lines.append("")
    return lines


def format_digest(
    entries: list[RankedItem],
    trends: Optional[TrendReport],
    window: str,
    markup: str = "markdown",
    limit: int = 20,
) -> str:
    """Build the digest body from ranked items and optional trend clusters."""
    if markup not in MARKUPS:
        raise ValueError(f"unsupported markup: {markup!r}")

    if not entries:
        return f"No new articles in the last {window}."

    lines = [_bold(f"Top Articles ({window})", markup), ""]
    for position, entry in enumerate(entries[:limit], 1):
        lines.extend(format_entry(position, entry, markup))

    if trends is not None:
        lines.extend(format_trends(trends, markup))

    return "\n".join(lines).rstrip() + "\n"
