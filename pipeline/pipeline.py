"""
Summary Pipeline

Turns a URL into a short bullet summary:

1. Validate the URL
2. Coalesce concurrent requests for the same URL into one task
3. Resolve page content (page cache, else ContentResolver)
4. Serve a still-valid summary from the summary cache (or Redis mirror)
5. Otherwise summarize, streaming partial bullets to listeners when the
   backend supports it, and store the new record

Every listener receives zero or more partial events followed by exactly one
final event (done=True).
"""
import asyncio
import inspect
import time
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from caching import (
    CacheStore,
    RedisCacheMirror,
    PAGE_CACHE_LIMIT,
    PAGE_CACHE_TTL,
    SUMMARY_CACHE_LIMIT,
    SUMMARY_CACHE_TTL,
    SUMMARY_CACHE_REDIS_ENABLED,
)
from core.exceptions import PipelineError, SummarizationFailedError, to_error_message
from core.validators import validate_url
from extraction import ContentResolver, HttpFetcher, PageContent
from extraction.resolver import LiveDocumentAccessor
from logs.logging_config import get_logger, log_metrics
from summarization.bullets import parse_bullets
from summarization.config import SUMMARIZATION_DISPLAY_BULLETS
from summarization.engine import SummarizationEngine, SummarizerBackend
from summarization.llm_client import LLMSummarizerBackend
from summarization.schemas import SummaryProgress, SummaryRecord
from .coalescer import RequestCoalescer

logger = get_logger("pipeline")

ProgressCallback = Callable[[SummaryProgress], Union[None, Awaitable[None]]]


class _Listener:
    """A progress callback and whether it has seen the final event."""

    def __init__(self, callback: ProgressCallback):
        self.callback = callback
        self.finished = False

    async def deliver(self, progress: SummaryProgress) -> None:
        if self.finished:
            return
        if progress.done:
            self.finished = True
        try:
            result = self.callback(progress)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.warning(f"[PIPELINE] Progress listener failed | done={progress.done} | error={e}")


class SummaryPipeline:
    """
    Example:
        pipeline = create_pipeline_state().pipeline
        record = await pipeline.request_summary("https://example.com/post")
    """

    def __init__(
        self,
        resolver: ContentResolver,
        engine: SummarizationEngine,
        page_cache: Optional[CacheStore] = None,
        summary_cache: Optional[CacheStore] = None,
        coalescer: Optional[RequestCoalescer] = None,
        mirror: Optional[RedisCacheMirror] = None,
        display_bullets: int = SUMMARIZATION_DISPLAY_BULLETS,
    ):
        self.resolver = resolver
        self.engine = engine
        self.page_cache = page_cache if page_cache is not None else CacheStore("page", PAGE_CACHE_LIMIT, PAGE_CACHE_TTL)
        self.summary_cache = summary_cache if summary_cache is not None else CacheStore("summary", SUMMARY_CACHE_LIMIT, SUMMARY_CACHE_TTL)
        self.coalescer = coalescer if coalescer is not None else RequestCoalescer()
        self.mirror = mirror
        self.display_bullets = display_bullets
        self._listeners: Dict[str, List[_Listener]] = {}

    async def request_summary(
        self,
        url: str,
        live_document: Optional[LiveDocumentAccessor] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SummaryRecord:
        """
        Summarize the page at url.

        Concurrent calls for the same url share one task; a joining caller's
        on_progress receives the events emitted after it joined.

        Raises:
            InvalidInputError: If url is missing or blank
            ContentUnavailableError: If no content source yields text
            SummarizerUnavailableError: If the summarizer cannot be used
            SummarizationFailedError: For any other failure
        """
        validate_url(url)

        listener = _Listener(on_progress) if on_progress is not None else None
        if listener is not None and self.coalescer.in_flight(url):
            joined = self._listeners.get(url)
            if joined is not None:
                joined.append(listener)

        def start():
            listeners = [listener] if listener is not None else []
            self._listeners[url] = listeners
            return self._generate(url, live_document, listeners)

        record = await self.coalescer.run(url, start)

        # Joined after the final event went out
        if listener is not None and not listener.finished:
            await listener.deliver(self._final_progress(record))
        return record

    def _final_progress(self, record: SummaryRecord) -> SummaryProgress:
        return SummaryProgress(
            bullets=list(record.bullets),
            raw=record.raw,
            cached=record.cached,
            source=record.source,
            done=True,
        )

    async def _emit(self, listeners: List[_Listener], progress: SummaryProgress) -> None:
        for listener in list(listeners):
            await listener.deliver(progress)

    async def _generate(
        self,
        url: str,
        live_document: Optional[LiveDocumentAccessor],
        listeners: List[_Listener],
    ) -> SummaryRecord:
        start_time = time.time()
        logger.info(f"[PIPELINE] START | url={url} | live={live_document is not None}")
        try:
            record = await self._build_summary(url, live_document, listeners)
        except (PipelineError, asyncio.CancelledError):
            raise
        except Exception as e:
            logger.error(f"[PIPELINE] Unexpected failure | url={url} | error={e}", exc_info=True)
            raise SummarizationFailedError(to_error_message(e)) from e
        finally:
            if self._listeners.get(url) is listeners:
                del self._listeners[url]

        elapsed = time.time() - start_time
        logger.info(
            f"[PIPELINE] END | url={url} | cached={record.cached} | source={record.source} | "
            f"bullets={len(record.bullets)} | elapsed={elapsed:.2f}s"
        )
        log_metrics(
            event="summary",
            url=url,
            cached=record.cached,
            source=record.source,
            bullets=len(record.bullets),
            latency_ms=round(elapsed * 1000, 2),
        )
        return record

    async def _build_summary(
        self,
        url: str,
        live_document: Optional[LiveDocumentAccessor],
        listeners: List[_Listener],
    ) -> SummaryRecord:
        page = await self._resolve_page(url, live_document)

        cached = await self._cached_summary(url, page)
        if cached is not None:
            logger.info(f"[PIPELINE] Summary cache hit | url={url} | fingerprint={page.fingerprint}")
            await self._emit(listeners, self._final_progress(cached))
            return cached

        source = page.source.value
        context = f"Title: {page.title}" if page.title else None

        if await self.engine.supports_streaming():
            async def on_partial(bullets: List[str], raw: str) -> None:
                await self._emit(listeners, SummaryProgress(
                    bullets=bullets[:self.display_bullets],
                    raw=raw,
                    cached=False,
                    source=source,
                    done=False,
                ))

            raw = await self.engine.summarize_streaming(page.text, context, on_partial)
        else:
            raw = await self.engine.summarize(page.text, context)

        raw = (raw or "").strip()
        if not raw:
            raise SummarizationFailedError("Summary returned empty response")

        now = time.time()
        record = SummaryRecord(
            bullets=parse_bullets(raw)[:self.display_bullets],
            raw=raw,
            fingerprint=page.fingerprint,
            source=source,
            title=page.title,
            etag=page.etag,
            last_modified=page.last_modified,
            cached=False,
            timestamp=now,
            last_used=now,
        )
        self.summary_cache.put(url, record)
        if self.mirror is not None:
            await self.mirror.save(url, record.to_dict())

        await self._emit(listeners, self._final_progress(record))
        return record

    async def _resolve_page(self, url: str, live_document: Optional[LiveDocumentAccessor]) -> PageContent:
        page = self.page_cache.get(url)
        if page is not None:
            logger.debug(f"[PIPELINE] Page cache hit | url={url} | source={page.source.value}")
            return page

        page = await self.resolver.resolve(url, live_document)
        self.page_cache.put(url, page)
        return page

    async def _cached_summary(self, url: str, page: PageContent) -> Optional[SummaryRecord]:
        """A valid summary for page, from memory or the Redis mirror."""
        record = self.summary_cache.get_valid(url, lambda r: r.matches(page))

        if record is None and self.mirror is not None:
            data = await self.mirror.load(url)
            if data:
                try:
                    mirrored = SummaryRecord.from_dict(data)
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning(f"[PIPELINE] Unreadable mirrored summary | url={url} | error={e}")
                    mirrored = None
                if mirrored is not None and mirrored.matches(page):
                    self.summary_cache.put(url, replace(mirrored, cached=False), timestamp=mirrored.timestamp)
                    record = self.summary_cache.get_valid(url, lambda r: r.matches(page))

        if record is None:
            return None
        return replace(record, bullets=list(record.bullets), cached=True)

    def stats(self) -> Dict[str, Any]:
        return {
            "page_cache": self.page_cache.stats(),
            "summary_cache": self.summary_cache.stats(),
            "in_flight": len(self.coalescer),
            "session_ready": self.engine.has_session,
            "mirror_enabled": self.mirror is not None,
        }


@dataclass
class PipelineState:
    """Everything a running pipeline owns, built once at startup."""
    pipeline: SummaryPipeline
    resolver: ContentResolver
    engine: SummarizationEngine
    page_cache: CacheStore
    summary_cache: CacheStore
    coalescer: RequestCoalescer
    mirror: Optional[RedisCacheMirror] = None

    async def close(self) -> None:
        """Clear caches and close the backend, HTTP and Redis connections."""
        self.page_cache.clear()
        self.summary_cache.clear()
        await self.engine.close()
        await self.resolver.close()
        if self.mirror is not None:
            await self.mirror.close()
        logger.info("[PIPELINE] Closed")


def create_pipeline_state(
    backend: Optional[SummarizerBackend] = None,
    fetcher: Optional[HttpFetcher] = None,
    mirror: Optional[RedisCacheMirror] = None,
    redis_enabled: bool = SUMMARY_CACHE_REDIS_ENABLED,
) -> PipelineState:
    """
    Build a pipeline with its caches, coalescer, resolver and engine.

    Args:
        backend: Summarizer backend (defaults to the configured LLM backend)
        fetcher: HTTP fetcher for page content
        mirror: Redis mirror to use; when None one is created if redis_enabled
        redis_enabled: Whether to mirror summaries in Redis
    """
    page_cache = CacheStore("page", PAGE_CACHE_LIMIT, PAGE_CACHE_TTL)
    summary_cache = CacheStore("summary", SUMMARY_CACHE_LIMIT, SUMMARY_CACHE_TTL)
    coalescer = RequestCoalescer()
    resolver = ContentResolver(fetcher=fetcher)
    engine = SummarizationEngine(backend or LLMSummarizerBackend())
    if mirror is None and redis_enabled:
        mirror = RedisCacheMirror()

    pipeline = SummaryPipeline(
        resolver=resolver,
        engine=engine,
        page_cache=page_cache,
        summary_cache=summary_cache,
        coalescer=coalescer,
        mirror=mirror,
    )
    logger.info(
        f"[PIPELINE] Initialized | page_cache={PAGE_CACHE_LIMIT}/{PAGE_CACHE_TTL}s | "
        f"summary_cache={SUMMARY_CACHE_LIMIT}/{SUMMARY_CACHE_TTL}s | mirror={mirror is not None}"
    )
    return PipelineState(
        pipeline=pipeline,
        resolver=resolver,
        engine=engine,
        page_cache=page_cache,
        summary_cache=summary_cache,
        coalescer=coalescer,
        mirror=mirror,
    )
