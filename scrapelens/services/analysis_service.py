"""Sequential AI analysis of pending records."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial
from typing import List, Optional, Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scrapelens.analysis.retry import RetryPolicy, Sleep, call_with_retry, is_batch_terminating
from scrapelens.core.errors import StorageError
from scrapelens.core.logging import get_logger
from scrapelens.models.record import Record
from scrapelens.schemas.records import MAX_ANALYSIS_CHARS, AnalysisResult, PendingRecord
from scrapelens.services.run_tracker import RunTracker

log = get_logger("analysis_service")

NO_PENDING_NOTE = "no pending rows"


class Analyzer(Protocol):
    async def analyze(self, text: str) -> AnalysisResult: ...


@dataclass
class BatchResult:
    processed: int
    failed: int
    first_error: Optional[str] = None
    note: Optional[str] = None


class AnalysisService:
    """Runs one analysis batch over the oldest pending records.

    Rows are handled one at a time so only a single analyzer request is ever
    in flight. Per-row failures are counted, not raised; quota exhaustion or
    a rate limit that survives its retries ends the batch early and leaves
    the remaining rows pending for the next run.
    """

    def __init__(
        self,
        db: Session,
        analyzer: Analyzer,
        policy: Optional[RetryPolicy] = None,
        pacing_ms: int = 120,
        sleep: Sleep = asyncio.sleep,
    ):
        self.db = db
        self.analyzer = analyzer
        self.policy = policy or RetryPolicy()
        self.pacing_ms = pacing_ms
        self.sleep = sleep

    async def run_batch(self, batch_size: int = 20) -> BatchResult:
        pending = self.fetch_pending(batch_size)
        if not pending:
            log.info("No pending records to analyze")
            return BatchResult(processed=0, failed=0, note=NO_PENDING_NOTE)

        tracker = RunTracker(self.db, "analyze")
        tracker.start()

        processed = 0
        failed = 0
        first_error: Optional[str] = None

        for row in pending:
            try:
                result = await call_with_retry(
                    partial(self.analyzer.analyze, row.content[:MAX_ANALYSIS_CHARS]),
                    self.policy,
                    self.sleep,
                )
                self.save_analysis(row.id, result)
            except Exception as exc:  # noqa: BLE001 - counted per row, batch continues
                failed += 1
                if first_error is None:
                    first_error = str(exc)
                log.error(f"Analyze error for record {row.id}: {exc}")
                if is_batch_terminating(exc):
                    log.warning(f"Stopping batch early after record {row.id}; remaining rows stay pending")
                    break
                continue

            processed += 1
            if self.pacing_ms > 0:
                await self.sleep(self.pacing_ms / 1000)

        try:
            tracker.succeed(processed, failed, meta={"batch_size": batch_size, "pending": len(pending)}, error=first_error)
        except StorageError as exc:
            log.error(f"Analysis results saved but run bookkeeping failed: {exc}")
        log.info(f"Analysis batch finished | processed={processed} failed={failed}")
        return BatchResult(processed=processed, failed=failed, first_error=first_error)

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------
    def fetch_pending(self, limit: int) -> List[PendingRecord]:
        """Oldest unanalyzed rows first."""
        stmt = (
            select(Record.id, Record.content)
            .where(Record.analyzed_at.is_(None))
            .order_by(Record.inserted_at.asc(), Record.id.asc())
            .limit(limit)
        )
        try:
            rows = self.db.execute(stmt).all()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Could not load pending records: {exc}") from exc
        return [PendingRecord(id=row.id, content=row.content or "") for row in rows]

    def save_analysis(self, record_id: int, result: AnalysisResult) -> None:
        stmt = (
            update(Record)
            .where(Record.id == record_id)
            .values(
                summary=result.summary,
                keywords=result.keywords,
                sentiment=result.sentiment,
                sentiment_score=result.sentiment_score,
                analyzed_at=datetime.now(timezone.utc),
            )
        )
        try:
            self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Could not save analysis for record {record_id}: {exc}") from exc
