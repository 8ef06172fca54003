from scrapelens.api.routes.analyze import router as analyze_router
from scrapelens.api.routes.dashboard import router as dashboard_router
from scrapelens.api.routes.health import router as health_router
from scrapelens.api.routes.ingest import router as ingest_router
from scrapelens.api.routes.stats import router as stats_router

__all__ = ["analyze_router", "dashboard_router", "health_router", "ingest_router", "stats_router"]
