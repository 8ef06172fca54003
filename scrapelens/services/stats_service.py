"""Stats Service - pipeline run queries for /stats and /health."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from scrapelens.models.runs import PipelineRun


class StatsService:
    def __init__(self, db: Session):
        self.db = db

    def get_runs(
        self,
        kind: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 10,
    ) -> List[PipelineRun]:
        """Get recent pipeline runs with optional filtering."""
        stmt = select(PipelineRun)

        if kind:
            stmt = stmt.where(PipelineRun.kind == kind)
        if status:
            stmt = stmt.where(PipelineRun.status == status)

        stmt = stmt.order_by(PipelineRun.started_at.desc()).limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def get_latest_run(self, kind: Optional[str] = None) -> Optional[PipelineRun]:
        """Get the most recent run, optionally of one kind."""
        runs = self.get_runs(kind=kind, limit=1)
        return runs[0] if runs else None
