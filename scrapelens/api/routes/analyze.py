"""Analysis routes - Run an AI analysis batch, or self-test the analyzer."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from scrapelens.analysis.analyzer import ChatCompletionAnalyzer
from scrapelens.api.deps import get_analysis_service, get_analyzer
from scrapelens.core.config import Settings, get_settings
from scrapelens.core.errors import PipelineError
from scrapelens.core.logging import get_logger
from scrapelens.schemas.api import AnalyzeResponse, ErrorResponse, SelfTestResponse
from scrapelens.services.analysis_service import AnalysisService

router = APIRouter(prefix="/analyze", tags=["analysis"])
log = get_logger("analyze_routes")

SELFTEST_HEADER = "x-selftest"


def cors_headers(settings: Settings) -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": settings.CORS_ORIGIN,
        "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
        "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    }


def _json(body: Any, settings: Settings, status_code: int = 200) -> JSONResponse:
    return JSONResponse(body, status_code=status_code, headers=cors_headers(settings))


def _wants_selftest(request: Request) -> bool:
    return request.headers.get(SELFTEST_HEADER) == "1"


async def _self_test(analyzer: ChatCompletionAnalyzer, settings: Settings) -> JSONResponse:
    try:
        report = SelfTestResponse(**await analyzer.self_test())
        return _json(report.model_dump(exclude_none=True), settings)
    except Exception as exc:  # noqa: BLE001 - reported to the caller as ok=false
        log.error(f"Analyzer self-test failed: {exc}")
        report = SelfTestResponse(ok=False, error=str(exc))
        return _json(report.model_dump(exclude_none=True), settings, status_code=500)


@router.options("")
def preflight(settings: Settings = Depends(get_settings)):
    """CORS preflight."""
    return PlainTextResponse("ok", headers=cors_headers(settings))


@router.post(
    "",
    responses={200: {"model": AnalyzeResponse}, 500: {"model": ErrorResponse}},
)
async def trigger_analysis(
    request: Request,
    settings: Settings = Depends(get_settings),
    analyzer: ChatCompletionAnalyzer = Depends(get_analyzer),
    service: AnalysisService = Depends(get_analysis_service),
):
    """
    Analyze the oldest pending records.

    Rows are processed one at a time with bounded retry. Quota exhaustion or a
    persistent rate limit stops the batch early; remaining rows stay pending.

    Send ``x-selftest: 1`` to ping the analyzer instead of running a batch.
    """
    if _wants_selftest(request):
        return await _self_test(analyzer, settings)

    try:
        result = await service.run_batch(settings.ANALYSIS_BATCH_SIZE)
    except PipelineError as exc:
        log.error(f"Fatal analysis error: {exc}")
        return _json({"error": str(exc)}, settings, status_code=500)
    except Exception as exc:  # noqa: BLE001 - reported as 500 {error}
        log.exception("Unhandled analysis error")
        return _json({"error": str(exc) or exc.__class__.__name__}, settings, status_code=500)

    if result.note:
        return _json({"processed": 0, "failed": 0, "note": result.note}, settings)
    return _json(
        {"processed": result.processed, "failed": result.failed, "firstError": result.first_error},
        settings,
    )


@router.api_route("", methods=["GET", "HEAD", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def other_methods(
    request: Request,
    settings: Settings = Depends(get_settings),
    analyzer: ChatCompletionAnalyzer = Depends(get_analyzer),
):
    """Only the self-test is served outside POST; everything else is 405."""
    if _wants_selftest(request):
        return await _self_test(analyzer, settings)
    return PlainTextResponse("Method Not Allowed", status_code=405, headers=cors_headers(settings))
