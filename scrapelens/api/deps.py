"""API dependencies"""

from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from scrapelens.analysis.analyzer import ChatCompletionAnalyzer, analyzer_from_settings
from scrapelens.analysis.retry import policy_from_settings
from scrapelens.core.config import Settings, get_settings
from scrapelens.core.db import SessionLocal
from scrapelens.ingestion.apify_source import ApifyDatasetSource
from scrapelens.ingestion.base import BaseSource
from scrapelens.services.analysis_service import AnalysisService
from scrapelens.services.dashboard_service import DashboardService
from scrapelens.services.ingest_service import IngestService


def get_db() -> Generator[Session, None, None]:
    """Database session per request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_source(settings: Settings = Depends(get_settings)) -> BaseSource:
    return ApifyDatasetSource(token=settings.APIFY_TOKEN, dataset_id=settings.APIFY_DATASET_ID)


def get_analyzer(settings: Settings = Depends(get_settings)) -> ChatCompletionAnalyzer:
    return analyzer_from_settings(settings)


def get_ingest_service(
    db: Session = Depends(get_db),
    source: BaseSource = Depends(get_source),
    settings: Settings = Depends(get_settings),
) -> IngestService:
    return IngestService(db, source, default_limit=settings.INGEST_LIMIT)


def get_analysis_service(
    db: Session = Depends(get_db),
    analyzer: ChatCompletionAnalyzer = Depends(get_analyzer),
    settings: Settings = Depends(get_settings),
) -> AnalysisService:
    return AnalysisService(
        db,
        analyzer,
        policy=policy_from_settings(settings),
        pacing_ms=settings.ANALYSIS_PACING_MS,
    )


def get_dashboard_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> DashboardService:
    return DashboardService(db, max_rows=settings.DASHBOARD_LIMIT)
