# Services package
from scrapelens.services.analysis_service import AnalysisService, BatchResult
from scrapelens.services.dashboard_service import DashboardService
from scrapelens.services.ingest_service import IngestResult, IngestService
from scrapelens.services.run_tracker import RunTracker
from scrapelens.services.stats_service import StatsService

__all__ = [
    "AnalysisService",
    "BatchResult",
    "DashboardService",
    "IngestResult",
    "IngestService",
    "RunTracker",
    "StatsService",
]
