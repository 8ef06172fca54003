"""Pipeline run bookkeeping shared by the ingest and analysis services."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scrapelens.core.errors import StorageError
from scrapelens.core.logging import get_logger
from scrapelens.models.runs import PipelineRun

log = get_logger("run_tracker")


class RunTracker:
    """Creates a ``pipeline_runs`` row and closes it as success or failure."""

    def __init__(self, db: Session, kind: str):
        self.db = db
        self.kind = kind
        self.run: Optional[PipelineRun] = None

    def start(self) -> PipelineRun:
        run = PipelineRun(kind=self.kind, status="running", records_processed=0, records_failed=0)
        try:
            self.db.add(run)
            self.db.commit()
            self.db.refresh(run)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Could not record {self.kind} run: {exc}") from exc
        self.run = run
        return run

    def succeed(self, processed: int, failed: int = 0, meta: Optional[Dict[str, Any]] = None, error: Optional[str] = None) -> None:
        self._close("success", processed, failed, meta, error)

    def fail(self, error: str, processed: int = 0, failed: int = 0) -> None:
        # The caller's transaction may be broken; start clean before closing the run
        self.db.rollback()
        try:
            self._close("failure", processed, failed, None, error)
        except StorageError:
            log.error(f"Could not mark {self.kind} run as failed: {error}")

    def _close(self, status: str, processed: int, failed: int, meta: Optional[Dict[str, Any]], error: Optional[str]) -> None:
        if self.run is None:
            return
        self.run.status = status
        self.run.records_processed = processed
        self.run.records_failed = failed
        self.run.error_message = error
        if meta is not None:
            self.run.meta = meta
        self.run.ended_at = datetime.now(timezone.utc)
        try:
            self.db.add(self.run)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Could not update {self.kind} run: {exc}") from exc
