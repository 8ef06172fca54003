"""Stats routes - Pipeline run observability."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from scrapelens.api.deps import get_db
from scrapelens.schemas.api import RunOut
from scrapelens.services.stats_service import StatsService

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=list[RunOut])
def get_run_stats(
    kind: Optional[Literal["ingest", "analyze"]] = Query(None, description="Filter by run kind"),
    status: Optional[str] = Query(None, description="Filter by status (running, success, failure)"),
    limit: int = Query(10, ge=1, le=50, description="Number of runs to return"),
    db: Session = Depends(get_db),
):
    """
    Get recent pipeline run statistics.

    Shows records processed and failed, duration, status, and error messages.
    """
    runs = StatsService(db).get_runs(kind=kind, status=status, limit=limit)

    return [
        RunOut(
            run_id=str(run.run_id),
            kind=run.kind,
            status=run.status,
            records_processed=run.records_processed,
            records_failed=run.records_failed,
            error_message=run.error_message,
            started_at=run.started_at,
            ended_at=run.ended_at,
        )
        for run in runs
    ]
