from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from scrapelens import __version__
from scrapelens.api.routes import analyze, dashboard, health, ingest, stats
from scrapelens.core.config import Settings, get_settings
from scrapelens.core.db import dispose_db, init_db
from scrapelens.core.errors import PipelineError
from scrapelens.core.logging import configure_logging, get_logger

log = get_logger("app")


def run_migrations(settings: Settings) -> None:
    """Execute Alembic migrations programmatically on startup."""
    project_root = Path(__file__).resolve().parent.parent
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    log.info("Running Alembic migrations to head")
    command.upgrade(alembic_cfg, "head")
    log.info("Alembic migrations applied")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    configure_logging(settings)

    log.info(f"Starting application in {settings.ENV.upper()} mode")
    log.info(f"Analyzer: {settings.OPENAI_BASE_URL} model={settings.AI_MODEL}")

    init_db(settings.DATABASE_URL)
    try:
        run_migrations(settings)
    except Exception:
        log.exception("Failed to apply migrations on startup")
        raise

    yield

    log.info("Shutting down...")
    dispose_db()
    log.info("Application shutdown complete")


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    log.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse({"error": str(exc)}, status_code=500)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse({"error": str(exc) or exc.__class__.__name__}, status_code=500)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the app; without explicit settings they are loaded from the environment."""
    settings = settings or get_settings()
    docs = settings.docs_enabled
    app = FastAPI(
        title="Scrapelens",
        description="Scraped-record ingestion, AI sentiment/summary analysis and dashboard API",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        openapi_url="/openapi.json" if docs else None,
    )
    app.state.settings = settings
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.CORS_ORIGIN],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type", "x-selftest"],
    )

    app.add_exception_handler(PipelineError, pipeline_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(ingest.router)
    app.include_router(analyze.router)
    app.include_router(dashboard.router)
    app.include_router(health.router)
    app.include_router(stats.router)
    return app


app = create_app()
