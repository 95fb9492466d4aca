"""SQLAlchemy tables for sources, items and enrichments."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, relationship
from sqlalchemy.types import TypeDecorator


class Base(DeclarativeBase):
    pass


class UTCDateTime(TypeDecorator):
    """Stores naive UTC, returns timezone-aware UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


class SourceRow(Base):
    __tablename__ = "sources"

    id = Column(Integer, primary_key=True, autoincrement=True)
    domain = Column(String(255), unique=True, nullable=False)
    score = Column(Integer, nullable=False, default=0)
    author = Column(String(255), nullable=False, default="")
    rank = Column(Integer, nullable=False, default=0)


class ItemRow(Base):
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    source_domain = Column(String(255), nullable=False, index=True)
    title = Column(Text, nullable=False, default="")
    url = Column(String(2048), unique=True, nullable=False)
    summary = Column(Text, nullable=False, default="")
    published_at = Column(UTCDateTime, nullable=True, index=True)
    harvested_at = Column(UTCDateTime, nullable=False)

    enrichment = relationship("EnrichmentRow", back_populates="item", uselist=False)


class EnrichmentRow(Base):
    __tablename__ = "enrichments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_id = Column(Integer, ForeignKey("items.id"), unique=True, nullable=False)
    relevance = Column(Integer, nullable=False, default=0)
    quality = Column(Integer, nullable=False, default=0)
    timeliness = Column(Integer, nullable=False, default=0)
    total_score = Column(Integer, nullable=False, default=0, index=True)
    category = Column(String(128), nullable=False, default="")
    keywords = Column(JSON, nullable=False, default=list)
    synopsis = Column(Text, nullable=False, default="")
    localized_title = Column(Text, nullable=False, default="")
    recommendation = Column(Text, nullable=False, default="")
    enriched_at = Column(UTCDateTime, nullable=False)
    delivered_at = Column(UTCDateTime, nullable=True)

    item = relationship("ItemRow", back_populates="enrichment")
