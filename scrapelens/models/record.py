"""Canonical record table - one row per scraped item, analysis columns filled later."""

from datetime import datetime

from sqlalchemy import JSON, BigInteger, DateTime, Float, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from scrapelens.models.base import Base


class Record(Base):
    """Normalized scraped item plus its (optional) AI analysis.

    Rows are merged on ``external_item_id`` during ingestion. Rows without
    that key are always inserted as new. ``analyzed_at IS NULL`` marks a row
    as pending analysis.
    """

    __tablename__ = "records"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    external_item_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        unique=True,
        comment="Scraping provider item id, used as the upsert key",
    )

    source: Mapped[str] = mapped_column(String(255), nullable=False, default="unknown")
    url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    inserted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Analysis columns
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    keywords: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    sentiment: Mapped[str | None] = mapped_column(String(16), nullable=True)
    sentiment_score: Mapped[float | None] = mapped_column(Float, nullable=True)

    analyzed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )


INGEST_COLUMNS = ("source", "url", "content", "created_at")
