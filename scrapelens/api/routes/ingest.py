"""Ingest routes - Pull the scraping dataset into the records table."""

from dataclasses import asdict

from fastapi import APIRouter, Depends

from scrapelens.api.deps import get_ingest_service
from scrapelens.core.logging import get_logger
from scrapelens.schemas.api import ErrorResponse, IngestResponse
from scrapelens.services.ingest_service import IngestService

router = APIRouter(prefix="/ingest", tags=["ingest"])
log = get_logger("ingest_routes")


@router.post(
    "",
    response_model=IngestResponse,
    response_model_exclude_none=True,
    responses={500: {"model": ErrorResponse}},
)
async def trigger_ingest(service: IngestService = Depends(get_ingest_service)):
    """
    Fetch one batch from the scraping dataset and upsert it.

    1. Fetch raw items from the dataset
    2. Normalize each item (items without text are dropped)
    3. Merge-on-conflict upsert keyed by the provider item id

    When nothing survives normalization the response carries a diagnostic
    note plus the keys of the first fetched item instead of failing.
    """
    log.info("Ingest triggered")
    result = await service.ingest()
    return IngestResponse(**asdict(result))
