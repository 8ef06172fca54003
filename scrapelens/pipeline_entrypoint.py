"""Pipeline entrypoint - Standalone script for running pipeline steps.

Usage:
    python -m scrapelens.pipeline_entrypoint              # Ingest, then analyze
    python -m scrapelens.pipeline_entrypoint ingest       # Ingest only
    python -m scrapelens.pipeline_entrypoint analyze      # One analysis batch
    python -m scrapelens.pipeline_entrypoint selftest     # Ping the analyzer
"""

import asyncio
import sys
from dataclasses import asdict
from typing import Any, Dict

from scrapelens.analysis.analyzer import analyzer_from_settings
from scrapelens.analysis.retry import policy_from_settings
from scrapelens.core.config import Settings, load_settings
from scrapelens.core.db import SessionLocal, init_db
from scrapelens.core.errors import ConfigError, PipelineError
from scrapelens.core.logging import configure_logging, get_logger
from scrapelens.ingestion.apify_source import ApifyDatasetSource
from scrapelens.services.analysis_service import AnalysisService
from scrapelens.services.ingest_service import IngestService

logger = get_logger("pipeline_entrypoint")

STEPS = ("ingest", "analyze", "selftest")


async def run_ingest(settings: Settings) -> Dict[str, Any]:
    source = ApifyDatasetSource(token=settings.APIFY_TOKEN, dataset_id=settings.APIFY_DATASET_ID)
    with SessionLocal() as db:
        result = await IngestService(db, source, default_limit=settings.INGEST_LIMIT).ingest()
    logger.info(f"Ingest completed: {result}")
    return asdict(result)


async def run_analysis(settings: Settings) -> Dict[str, Any]:
    with SessionLocal() as db:
        service = AnalysisService(
            db,
            analyzer_from_settings(settings),
            policy=policy_from_settings(settings),
            pacing_ms=settings.ANALYSIS_PACING_MS,
        )
        result = await service.run_batch(settings.ANALYSIS_BATCH_SIZE)
    logger.info(f"Analysis completed: {result}")
    return asdict(result)


async def run_selftest(settings: Settings) -> Dict[str, Any]:
    result = await analyzer_from_settings(settings).self_test()
    logger.info(f"Self-test completed: {result}")
    return result


async def run_steps(settings: Settings, steps) -> Dict[str, Any]:
    runners = {"ingest": run_ingest, "analyze": run_analysis, "selftest": run_selftest}
    return {step: await runners[step](settings) for step in steps}


def main():
    """Main entry point for the pipeline."""
    try:
        settings = load_settings()
    except ConfigError as exc:
        logger.error(str(exc))
        sys.exit(1)

    configure_logging(settings)
    logger.info("Pipeline starting...")

    if len(sys.argv) > 1:
        step = sys.argv[1]
        if step not in STEPS:
            logger.error(f"Invalid step: {step}. Must be one of: {', '.join(STEPS)}")
            sys.exit(1)
        steps = [step]
    else:
        steps = ["ingest", "analyze"]

    if "selftest" not in steps:
        init_db(settings.DATABASE_URL)

    try:
        result = asyncio.run(run_steps(settings, steps))
    except PipelineError as exc:
        logger.error(f"Pipeline failed: {exc}")
        sys.exit(1)

    logger.info(f"Pipeline completed: {result}")

    if "selftest" in result and not result["selftest"].get("ok"):
        sys.exit(1)

    return result


if __name__ == "__main__":
    main()
