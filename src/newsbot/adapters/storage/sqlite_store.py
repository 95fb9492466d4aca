"""SQLite item store backed by SQLAlchemy."""

import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, Optional

from sqlalchemy import create_engine, event, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from newsbot.adapters.storage.models import Base, EnrichmentRow, ItemRow, SourceRow
from newsbot.core import (
    Enrichment,
    Item,
    ItemStore,
    RankedItem,
    Source,
    StoreError,
    TimeWindow,
    utc_now,
)

logger = logging.getLogger(__name__)


def _enable_sqlite_pragmas(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.execute("PRAGMA busy_timeout = 5000")
    cursor.close()


class SQLiteItemStore(ItemStore):
    """Item store persisting to a single SQLite file.

    All calls happen on the event loop thread, so writes are serialised;
    every write is a keyed upsert.
    """

    def __init__(
        self,
        db_path: Path,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.db_path = db_path
        self.clock = clock

        db_path.parent.mkdir(parents=True, exist_ok=True)
        self.engine = create_engine(f"sqlite:///{db_path}", echo=False)
        event.listen(self.engine, "connect", _enable_sqlite_pragmas)

        with self.engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA journal_mode=WAL")

        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

    def close(self) -> None:
        self.engine.dispose()

    def __enter__(self) -> "SQLiteItemStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _session(self) -> Session:
        return self.SessionLocal()

    @contextmanager
    def _transaction(self, action: str) -> Iterator[Session]:
        """Session that commits on success and maps write errors to StoreError."""
        with self._session() as session:
            try:
                yield session
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise StoreError(f"{action}: {e.orig}") from e
            except SQLAlchemyError as e:
                session.rollback()
                raise StoreError(f"{action}: {e}") from e

    def _cutoff(self, window: TimeWindow) -> datetime:
        return TimeWindow.parse(window).cutoff(self.clock())

    # Sources

    def upsert_sources(self, sources: list[Source]) -> None:
        if not sources:
            return

        with self._transaction(f"save {len(sources)} sources") as session:
            for source in sources:
                stmt = sqlite_insert(SourceRow).values(
                    domain=source.domain,
                    score=source.score,
                    author=source.author,
                    rank=source.rank,
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=[SourceRow.domain],
                    set_={
                        "score": stmt.excluded.score,
                        "author": stmt.excluded.author,
                        "rank": stmt.excluded.rank,
                    },
                )
                session.execute(stmt)
        logger.debug("Saved %d sources", len(sources))

    def list_sources(self) -> list[Source]:
        with self._session() as session:
            rows = session.scalars(
                select(SourceRow).order_by(SourceRow.rank, SourceRow.domain)
            ).all()
            return [_to_source(row) for row in rows]

    # Items

    def insert_item_if_absent(self, item: Item) -> bool:
        stmt = sqlite_insert(ItemRow).values(
            source_domain=item.source,
            title=item.title,
            url=item.url,
            summary=item.summary,
            published_at=item.published_at,
            harvested_at=item.harvested_at,
        ).on_conflict_do_nothing(index_elements=[ItemRow.url])

        with self._transaction(f"save item {item.url}") as session:
            result = session.execute(stmt)
        return result.rowcount == 1

    def items_in_window(self, window: TimeWindow) -> list[Item]:
        stmt = (
            select(ItemRow)
            .where(ItemRow.published_at >= self._cutoff(window))
            .order_by(ItemRow.published_at.desc(), ItemRow.id)
        )
        with self._session() as session:
            return [_to_item(row) for row in session.scalars(stmt).all()]

    def latest_items(self, limit: int) -> list[Item]:
        stmt = (
            select(ItemRow)
            .order_by(ItemRow.published_at.desc().nulls_last(), ItemRow.id.desc())
            .limit(limit)
        )
        with self._session() as session:
            return [_to_item(row) for row in session.scalars(stmt).all()]

    def unenriched_items(self, window: TimeWindow) -> list[Item]:
        stmt = (
            select(ItemRow)
            .outerjoin(EnrichmentRow, EnrichmentRow.item_id == ItemRow.id)
            .where(ItemRow.published_at >= self._cutoff(window))
            .where(EnrichmentRow.id.is_(None))
            .order_by(ItemRow.published_at.desc(), ItemRow.id)
        )
        with self._session() as session:
            return [_to_item(row) for row in session.scalars(stmt).all()]

    # Enrichments

    def _ranked_query(self, window: TimeWindow):
        return (
            select(ItemRow, EnrichmentRow)
            .join(EnrichmentRow, EnrichmentRow.item_id == ItemRow.id)
            .where(ItemRow.published_at >= self._cutoff(window))
            .order_by(
                EnrichmentRow.total_score.desc(),
                ItemRow.published_at.desc(),
                ItemRow.id,
            )
        )

    def _fetch_ranked(self, stmt) -> list[RankedItem]:
        with self._session() as session:
            return [
                RankedItem(item=_to_item(item_row), enrichment=_to_enrichment(enrichment_row))
                for item_row, enrichment_row in session.execute(stmt).all()
            ]

    def unsummarized_enriched(self, window: TimeWindow, min_score: int = 0) -> list[RankedItem]:
        stmt = (
            self._ranked_query(window)
            .where(EnrichmentRow.total_score >= min_score)
            .where(EnrichmentRow.synopsis == "")
        )
        return self._fetch_ranked(stmt)

    def ranked_enriched(self, window: TimeWindow, limit: Optional[int] = None) -> list[RankedItem]:
        stmt = self._ranked_query(window)
        if limit is not None:
            stmt = stmt.limit(limit)
        return self._fetch_ranked(stmt)

    def undelivered_ranked(self, window: TimeWindow, limit: int = 20) -> list[RankedItem]:
        stmt = (
            self._ranked_query(window)
            .where(EnrichmentRow.delivered_at.is_(None))
            .limit(limit)
        )
        return self._fetch_ranked(stmt)

    def get_ranked_item(self, item_id: int) -> Optional[RankedItem]:
        stmt = (
            select(ItemRow, EnrichmentRow)
            .join(EnrichmentRow, EnrichmentRow.item_id == ItemRow.id)
            .where(ItemRow.id == item_id)
        )
        results = self._fetch_ranked(stmt)
        return results[0] if results else None

    def upsert_enrichment(self, enrichment: Enrichment) -> None:
        values = {
            "relevance": enrichment.relevance,
            "quality": enrichment.quality,
            "timeliness": enrichment.timeliness,
            "total_score": enrichment.total_score,
            "category": enrichment.category,
            "keywords": list(enrichment.keywords),
            "synopsis": enrichment.synopsis,
            "localized_title": enrichment.localized_title,
            "recommendation": enrichment.recommendation,
            "enriched_at": enrichment.enriched_at,
        }
        # delivered_at is owned by mark_delivered and never overwritten here
        stmt = sqlite_insert(EnrichmentRow).values(item_id=enrichment.item_id, **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[EnrichmentRow.item_id],
            set_={key: getattr(stmt.excluded, key) for key in values},
        )

        with self._transaction(f"save enrichment for item {enrichment.item_id}") as session:
            session.execute(stmt)

    def mark_delivered(self, item_ids: list[int]) -> int:
        if not item_ids:
            return 0

        stmt = (
            update(EnrichmentRow)
            .where(EnrichmentRow.item_id.in_(item_ids))
            .where(EnrichmentRow.delivered_at.is_(None))
            .values(delivered_at=self.clock())
            .execution_options(synchronize_session=False)
        )
        with self._transaction(f"mark {len(item_ids)} items delivered") as session:
            result = session.execute(stmt)
        return result.rowcount


def _to_source(row: SourceRow) -> Source:
    return Source(
        id=row.id,
        domain=row.domain,
        score=row.score,
        author=row.author,
        rank=row.rank,
    )


def _to_item(row: ItemRow) -> Item:
    return Item(
        id=row.id,
        source=row.source_domain,
        title=row.title,
        url=row.url,
        summary=row.summary,
        published_at=row.published_at,
        harvested_at=row.harvested_at,
    )


def _to_enrichment(row: EnrichmentRow) -> Enrichment:
    keywords = list(row.keywords or [])
    return Enrichment(
        item_id=row.item_id,
        relevance=row.relevance,
        quality=row.quality,
        timeliness=row.timeliness,
        category=row.category,
        keywords=keywords,
        synopsis=row.synopsis,
        localized_title=row.localized_title,
        recommendation=row.recommendation,
        enriched_at=row.enriched_at,
        delivered_at=row.delivered_at,
    )
