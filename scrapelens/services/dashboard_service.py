"""Dashboard Service - read-only queries behind the dashboard endpoints."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scrapelens.core.errors import StorageError
from scrapelens.core.logging import get_logger
from scrapelens.dashboard.aggregator import (
    SentimentFilter,
    SortBy,
    aggregate,
    filter_by_sentiment,
    sort_records,
    to_display_record,
)
from scrapelens.models.record import Record
from scrapelens.schemas.records import DisplayRecord, HealthSnapshot

log = get_logger("dashboard_service")

MAX_DASHBOARD_ROWS = 200

DISPLAY_COLUMNS = (
    Record.id,
    Record.source,
    Record.url,
    Record.content,
    Record.created_at,
    Record.summary,
    Record.keywords,
    Record.sentiment,
    Record.sentiment_score,
    Record.analyzed_at,
)


class DashboardService:
    """Handles dashboard reads - never writes."""

    def __init__(self, db: Session, max_rows: int = MAX_DASHBOARD_ROWS):
        self.db = db
        self.max_rows = min(max_rows, MAX_DASHBOARD_ROWS)

    def fetch_records(self, limit: Optional[int] = None) -> List[DisplayRecord]:
        """Newest rows first, capped at ``max_rows``."""
        limit = min(limit or self.max_rows, self.max_rows)
        stmt = (
            select(*DISPLAY_COLUMNS)
            .order_by(Record.inserted_at.desc(), Record.id.desc())
            .limit(limit)
        )
        try:
            rows = self.db.execute(stmt).all()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Could not load records: {exc}") from exc

        return [to_display_record(row) for row in rows]

    def list_records(
        self,
        sentiment: SentimentFilter = "all",
        sort_by: SortBy = "date",
        limit: Optional[int] = None,
    ) -> List[DisplayRecord]:
        records = self.fetch_records(limit)
        return sort_records(filter_by_sentiment(records, sentiment), sort_by)

    def health(self, limit: Optional[int] = None) -> HealthSnapshot:
        snapshot = aggregate(self.fetch_records(limit))
        log.debug(f"Dashboard health: {snapshot.status} over {snapshot.total_records} records")
        return snapshot
