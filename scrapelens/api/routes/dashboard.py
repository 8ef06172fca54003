"""Dashboard routes - Analyzed records listing and health snapshot."""

from fastapi import APIRouter, Depends, Query

from scrapelens.api.deps import get_dashboard_service
from scrapelens.dashboard.aggregator import SentimentFilter, SortBy
from scrapelens.schemas.records import DisplayRecord, HealthSnapshot
from scrapelens.services.dashboard_service import MAX_DASHBOARD_ROWS, DashboardService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/records", response_model=list[DisplayRecord])
def list_records(
    sentiment: SentimentFilter = Query("all", description="Filter by sentiment (all, positive, neutral, negative)"),
    sort_by: SortBy = Query("date", description="Sort by date, rating or confidence (all descending)"),
    limit: int = Query(MAX_DASHBOARD_ROWS, ge=1, le=MAX_DASHBOARD_ROWS, description="Rows to read, newest first"),
    service: DashboardService = Depends(get_dashboard_service),
):
    """
    Records with their analysis and derived confidence.

    Confidence is ``(sentiment_score + 1) / 2`` clamped to [0, 1], 0.5 while
    a record is still pending. Sorting by confidence breaks ties by date.
    """
    return service.list_records(sentiment=sentiment, sort_by=sort_by, limit=limit)


@router.get("/health", response_model=HealthSnapshot)
def dashboard_health(service: DashboardService = Depends(get_dashboard_service)):
    """
    Fleet statistics over the visible records.

    Status is "no data" without records, "healthy" when every record is
    analyzed and average confidence exceeds 0.85, otherwise "degraded".
    Both the newest creation time and the newest analysis time are reported.
    """
    return service.health()
