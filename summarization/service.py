"""
FastAPI router for page summary endpoints.

Pipeline Architecture:
URL (+ optional live page text) → Content resolution → Summary cache → Summarizer

Endpoints:
1. POST ""        - final summary as JSON
2. POST "/stream" - NDJSON progress events, the last one with done=true
3. GET "/config"  - effective cache, resolver and engine settings
"""
import asyncio
import json
import uuid
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse

from caching.config import (
    PAGE_CACHE_LIMIT,
    PAGE_CACHE_TTL,
    SUMMARY_CACHE_LIMIT,
    SUMMARY_CACHE_TTL,
)
from core.exceptions import (
    PipelineError,
    InvalidInputError,
    ContentUnavailableError,
    SummarizerUnavailableError,
    SummarizationFailedError,
    to_error_message,
)
from core.validators import validate_url
from extraction.config import (
    CONTENT_MAX_LENGTH,
    CONTENT_FETCH_TIMEOUT,
    CONTENT_PROXY_TIMEOUT,
    CONTENT_LIVE_TIMEOUT,
    CONTENT_HIGH_CONFIDENCE_SCORE,
    CONTENT_PROXY_URL_TEMPLATE,
)
from extraction.resolver import StaticLiveDocument
from logs.logging_config import get_logger, RequestContext
from .config import (
    SUMMARIZATION_MAX_BULLETS,
    SUMMARIZATION_DISPLAY_BULLETS,
    SUMMARIZATION_STREAM_THROTTLE_MS,
)
from .schemas import PageSummaryRequest, PageSummaryResponse, SummaryProgress, SummaryRecord

logger = get_logger("api")

router = APIRouter(prefix="/api/v1/summary", tags=["Summary"])

ERROR_STATUS_CODES = {
    InvalidInputError: 400,
    ContentUnavailableError: 422,
    SummarizerUnavailableError: 503,
    SummarizationFailedError: 502,
}


def error_status(error: BaseException) -> int:
    for error_type, status in ERROR_STATUS_CODES.items():
        if isinstance(error, error_type):
            return status
    return 500


def get_pipeline(http_request: Request):
    """The SummaryPipeline owned by the running application."""
    state = getattr(http_request.app.state, "pipeline_state", None)
    if state is None:
        raise HTTPException(status_code=503, detail="Summary pipeline not initialized")
    return state.pipeline


def _live_document(request: PageSummaryRequest) -> Optional[StaticLiveDocument]:
    if request.live_document is None:
        return None
    doc = request.live_document
    return StaticLiveDocument(
        text=doc.text,
        title=doc.title or "",
        last_modified=doc.last_modified,
        etag=doc.etag,
    )


def _to_response(request_id: str, request: PageSummaryRequest, record: SummaryRecord) -> PageSummaryResponse:
    return PageSummaryResponse(
        request_id=request_id,
        url=request.url,
        bullets=record.bullets,
        raw=record.raw,
        title=record.title,
        source=record.source,
        cached=record.cached,
        fingerprint=record.fingerprint,
        user_id=request.user_id,
    )


# =====================
# API Endpoints
# =====================

@router.post("", response_model=PageSummaryResponse)
async def summarize_page(request: PageSummaryRequest, http_request: Request):
    """
    Summarize a page.

    When live_document is given, its text is used and no network fetch is
    made. Repeated calls for unchanged content are served from cache.
    """
    pipeline = get_pipeline(http_request)
    request_id = request.request_id or str(uuid.uuid4())

    with RequestContext(request_id=request_id, user_id=request.user_id):
        logger.info(
            f"[SUMMARY_API] START | request_id={request_id} | url={request.url} | "
            f"live={request.live_document is not None}"
        )
        try:
            record = await pipeline.request_summary(request.url, live_document=_live_document(request))

        except PipelineError as e:
            status = error_status(e)
            logger.warning(f"[SUMMARY_API] FAILED | request_id={request_id} | status={status} | error={e.message}")
            raise HTTPException(status_code=status, detail=e.message)

        except Exception as e:
            logger.error(f"[SUMMARY_API] ERROR | request_id={request_id} | error={e}", exc_info=True)
            raise HTTPException(status_code=500, detail=to_error_message(e))

        logger.info(
            f"[SUMMARY_API] END | request_id={request_id} | cached={record.cached} | "
            f"source={record.source} | bullets={len(record.bullets)}"
        )
        return _to_response(request_id, request, record)


@router.post("/stream")
async def stream_page_summary(request: PageSummaryRequest, http_request: Request):
    """
    Summarize a page, streaming progress as newline-delimited JSON.

    Each line is a progress event ({bullets, raw, cached, source, done}).
    A failure after the stream started is reported as a final
    {"error": ..., "status": ...} line.
    """
    pipeline = get_pipeline(http_request)
    request_id = request.request_id or str(uuid.uuid4())

    try:
        validate_url(request.url)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=e.message)

    queue: asyncio.Queue = asyncio.Queue()

    def on_progress(progress: SummaryProgress) -> None:
        event: Dict[str, Any] = progress.to_dict()
        event["request_id"] = request_id
        queue.put_nowait(event)

    async def run_pipeline():
        with RequestContext(request_id=request_id, user_id=request.user_id):
            logger.info(f"[SUMMARY_API] STREAM START | request_id={request_id} | url={request.url}")
            try:
                await pipeline.request_summary(
                    request.url,
                    live_document=_live_document(request),
                    on_progress=on_progress,
                )
                logger.info(f"[SUMMARY_API] STREAM END | request_id={request_id}")
            except Exception as e:
                status = error_status(e)
                logger.warning(f"[SUMMARY_API] STREAM FAILED | request_id={request_id} | status={status} | error={e}")
                queue.put_nowait({"error": to_error_message(e), "status": status, "request_id": request_id})
            finally:
                queue.put_nowait(None)

    async def events():
        task = asyncio.ensure_future(run_pipeline())
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield json.dumps(event, ensure_ascii=False) + "\n"
        finally:
            if not task.done():
                task.cancel()

    return StreamingResponse(events(), media_type="application/x-ndjson")


@router.get("/config")
async def get_summary_config(http_request: Request):
    """Effective pipeline settings and cache statistics."""
    pipeline = get_pipeline(http_request)
    return {
        "cache": {
            "page_cache_limit": PAGE_CACHE_LIMIT,
            "page_cache_ttl": PAGE_CACHE_TTL,
            "summary_cache_limit": SUMMARY_CACHE_LIMIT,
            "summary_cache_ttl": SUMMARY_CACHE_TTL,
        },
        "resolver": {
            "max_content_length": CONTENT_MAX_LENGTH,
            "fetch_timeout": CONTENT_FETCH_TIMEOUT,
            "proxy_timeout": CONTENT_PROXY_TIMEOUT,
            "live_timeout": CONTENT_LIVE_TIMEOUT,
            "high_confidence_score": CONTENT_HIGH_CONFIDENCE_SCORE,
            "proxy_url_template": CONTENT_PROXY_URL_TEMPLATE,
        },
        "engine": {
            "options": pipeline.engine.options.to_dict(),
            "max_bullets": SUMMARIZATION_MAX_BULLETS,
            "display_bullets": SUMMARIZATION_DISPLAY_BULLETS,
            "stream_throttle_ms": SUMMARIZATION_STREAM_THROTTLE_MS,
            "backend": _backend_info(pipeline.engine.backend),
        },
        "stats": pipeline.stats(),
    }


def _backend_info(backend: Any) -> Dict[str, Any]:
    info = getattr(backend, "get_backend_info", None)
    return info() if callable(info) else {"backend": type(backend).__name__}
