"""Health routes - System health and readiness checks."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scrapelens.api.deps import get_db
from scrapelens.schemas.api import HealthResponse
from scrapelens.services.stats_service import StatsService

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
def health(response: Response, db: Session = Depends(get_db)):
    """
    Health check endpoint for load balancer and container health checks.

    Checks database connectivity and the status of the last ingest and
    analysis runs. Returns 503 if the database is unreachable.
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        response.status_code = 503
        return HealthResponse(database=f"down: {e}", last_ingest_status=None, last_analysis_status=None)

    stats = StatsService(db)
    last_ingest = stats.get_latest_run("ingest")
    last_analysis = stats.get_latest_run("analyze")

    return HealthResponse(
        database="ok",
        last_ingest_status=last_ingest.status if last_ingest else None,
        last_analysis_status=last_analysis.status if last_analysis else None,
    )


@router.get("/ready")
def readiness(response: Response, db: Session = Depends(get_db)):
    """
    Readiness probe - checks if service can serve traffic.

    Returns 200 if ready, 503 if database is unreachable.
    """
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ready", "timestamp": datetime.now(timezone.utc).isoformat()}
    except SQLAlchemyError as e:
        response.status_code = 503
        return {"status": "not_ready", "error": str(e), "timestamp": datetime.now(timezone.utc).isoformat()}
