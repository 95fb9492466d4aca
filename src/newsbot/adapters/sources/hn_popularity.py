"""Source discovery from the HN Popularity dataset."""

import csv
import io
import logging
from collections import defaultdict
from typing import Iterable

import httpx

from newsbot.core import DiscoveryError, Source, SourceDiscovery

logger = logging.getLogger(__name__)


def aggregate_scores(rows: Iterable[list[str]]) -> dict[str, int]:
    """Sum scores per domain from ``domain, score, date`` rows (header skipped)."""
    scores: dict[str, int] = defaultdict(int)
    for i, row in enumerate(rows):
        if i == 0 or len(row) < 2:
            continue
        domain = row[0].strip()
        try:
            score = int(row[1].strip())
        except ValueError:
            continue
        if domain:
            scores[domain] += score
    return dict(scores)


def parse_authors(rows: Iterable[list[str]]) -> dict[str, str]:
    """Map domain to author from ``domain, author, ...`` rows (header skipped)."""
    authors = {}
    for i, row in enumerate(rows):
        if i == 0 or len(row) < 2:
            continue
        authors[row[0].strip()] = row[1].strip()
    return authors


def rank_sources(scores: dict[str, int], authors: dict[str, str], limit: int) -> list[Source]:
    """Top ``limit`` domains by score with dense 1-based ranks."""
    ordered = sorted(scores.items(), key=lambda kv: (-kv[1], kv[0]))[:limit]
    return [
        Source(domain=domain, score=score, author=authors.get(domain, ""), rank=rank)
        for rank, (domain, score) in enumerate(ordered, 1)
    ]


class HNPopularityDiscovery(SourceDiscovery):
    """Rank blogs by their accumulated Hacker News score."""

    def __init__(self, base_url: str, timeout: float = 30.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def fetch_top_sources(self, limit: int) -> list[Source]:
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            logger.info("Fetching HN data from %s/hn-data.csv", self.base_url)
            scores = aggregate_scores(await self._fetch_csv(client, "hn-data.csv"))

            logger.info("Fetching domain metadata from %s/domains-meta.csv", self.base_url)
            authors = parse_authors(await self._fetch_csv(client, "domains-meta.csv"))

        sources = rank_sources(scores, authors, limit)
        logger.info("Found %d sources", len(sources))
        return sources

    async def _fetch_csv(self, client: httpx.AsyncClient, name: str) -> list[list[str]]:
        url = f"{self.base_url}/{name}"
        try:
            response = await client.get(url)
        except httpx.RequestError as e:
            raise DiscoveryError(f"GET {url}: {e}") from e

        if response.status_code != 200:
            raise DiscoveryError(f"GET {url}: status {response.status_code}")

        try:
            return list(csv.reader(io.StringIO(response.text)))
        except csv.Error as e:
            raise DiscoveryError(f"parse CSV from {url}: {e}") from e
