"""Tests for the summary pipeline: caching, coalescing, progress and errors."""
import asyncio

import pytest

from caching import RedisCacheMirror
from core.exceptions import (
    ContentUnavailableError,
    InvalidInputError,
    SummarizationFailedError,
    SummarizerUnavailableError,
)
from extraction import ContentResolver
from pipeline import SummaryPipeline, create_pipeline_state
from summarization import SummarizationEngine
from tests.fakes import (
    FakeFetcher,
    FakeLiveDocument,
    FakeRedis,
    FakeSummarizerBackend,
    html_response,
    make_article,
)

URL = "https://example.com/post"

FIVE_BULLETS = "- One\n- Two\n- Three\n- Four\n- Five"


class ProgressRecorder:
    def __init__(self):
        self.events = []

    def __call__(self, progress):
        self.events.append(progress)

    @property
    def final(self):
        return [e for e in self.events if e.done]


@pytest.fixture
def live():
    return FakeLiveDocument(text=make_article(seed="first"), title="T")


# =====================
# Generation and caching
# =====================

@pytest.mark.asyncio
async def test_first_request_generates_summary(pipeline, backend, live):
    backend.response = FIVE_BULLETS

    record = await pipeline.request_summary(URL, live)

    assert record.bullets == ["One", "Two", "Three"]
    assert record.raw == FIVE_BULLETS
    assert record.source == "tab"
    assert record.title == "T"
    assert not record.cached
    assert backend.summarize_calls[0][1] == "Title: T"


@pytest.mark.asyncio
async def test_repeat_request_is_served_from_cache(pipeline, backend, live):
    first = await pipeline.request_summary(URL, live)
    recorder = ProgressRecorder()

    second = await pipeline.request_summary(URL, live, on_progress=recorder)

    assert second.cached
    assert second.bullets == first.bullets
    assert backend.backend_calls == 1
    assert len(recorder.events) == 1
    assert recorder.events[0].done and recorder.events[0].cached


@pytest.mark.asyncio
async def test_page_cache_avoids_resolving_again(pipeline, live, clock):
    await pipeline.request_summary(URL, live)
    clock.advance(300)
    await pipeline.request_summary(URL, live)

    assert live.calls == 1


@pytest.mark.asyncio
async def test_page_cache_hit_leaves_cached_record_untouched(pipeline, state, live, clock):
    await pipeline.request_summary(URL, live)
    page = state.page_cache.get_entry(URL).value
    stored_last_used = page.last_used
    clock.advance(120)

    await pipeline.request_summary(URL, live)

    assert page.last_used == stored_last_used
    assert state.page_cache.get_entry(URL).last_used == clock()


@pytest.mark.asyncio
async def test_changed_content_invalidates_summary(pipeline, backend, live, clock):
    """A new fingerprint for the same URL forces regeneration."""
    first = await pipeline.request_summary(URL, live)
    live.text = make_article(seed="second")
    clock.advance(400)

    second = await pipeline.request_summary(URL, live)

    assert second.fingerprint != first.fingerprint
    assert not second.cached
    assert backend.backend_calls == 2


@pytest.mark.asyncio
async def test_unchanged_content_after_page_expiry_hits_summary_cache(pipeline, backend, live, clock):
    await pipeline.request_summary(URL, live)
    clock.advance(400)

    record = await pipeline.request_summary(URL, live)

    assert record.cached
    assert live.calls == 2
    assert backend.backend_calls == 1


@pytest.mark.asyncio
async def test_changed_etag_invalidates_summary(pipeline, backend, live, clock):
    live.etag = '"v1"'
    await pipeline.request_summary(URL, live)
    live.etag = '"v2"'
    clock.advance(400)

    record = await pipeline.request_summary(URL, live)

    assert not record.cached
    assert record.etag == '"v2"'
    assert backend.backend_calls == 2


@pytest.mark.asyncio
async def test_summary_expires_after_ttl(pipeline, backend, live, clock):
    await pipeline.request_summary(URL, live)
    clock.advance(901)

    record = await pipeline.request_summary(URL, live)

    assert not record.cached
    assert backend.backend_calls == 2


@pytest.mark.asyncio
async def test_network_content_is_summarized(pipeline, fetcher, backend):
    article = make_article()
    paragraphs = "".join(f"<p>{p}</p>" for p in article.split("\n\n"))
    fetcher.routes[URL] = html_response(f"<html><head><title>Net</title></head><body><main>{paragraphs}</main></body></html>")

    record = await pipeline.request_summary(URL)

    assert record.source == "network"
    assert backend.summarize_calls == [(article, "Title: Net")]


# =====================
# Progress events
# =====================

@pytest.mark.asyncio
async def test_streaming_emits_partials_then_one_final(pipeline, backend, live):
    backend.streaming = True
    backend.chunks = ["- One\n", "- Two\n", "- Three\n", "- Four\n", "- Five\n"]
    recorder = ProgressRecorder()

    record = await pipeline.request_summary(URL, live, on_progress=recorder)

    partials = [e for e in recorder.events if not e.done]
    assert partials
    assert all(len(e.bullets) <= 3 for e in partials)
    assert all(not e.cached and e.source == "tab" for e in partials)
    assert len(recorder.final) == 1
    assert recorder.events[-1].done
    assert recorder.events[-1].bullets == ["One", "Two", "Three"]
    assert record.bullets == ["One", "Two", "Three"]
    assert backend.summarize_calls == []


@pytest.mark.asyncio
async def test_one_shot_emits_single_final_event(pipeline, live):
    recorder = ProgressRecorder()

    await pipeline.request_summary(URL, live, on_progress=recorder)

    assert len(recorder.events) == 1
    assert recorder.events[0].done
    assert not recorder.events[0].cached


@pytest.mark.asyncio
async def test_async_progress_listener(pipeline, live):
    seen = []

    async def on_progress(progress):
        await asyncio.sleep(0)
        seen.append(progress.done)

    await pipeline.request_summary(URL, live, on_progress=on_progress)

    assert seen == [True]


@pytest.mark.asyncio
async def test_failing_listener_does_not_abort(pipeline, live):
    def on_progress(progress):
        raise RuntimeError("listener bug")

    record = await pipeline.request_summary(URL, live, on_progress=on_progress)

    assert record.bullets


# =====================
# Coalescing
# =====================

@pytest.mark.asyncio
async def test_concurrent_requests_make_one_backend_call(pipeline, backend, live):
    backend.delay = 0.01
    recorders = [ProgressRecorder() for _ in range(5)]

    records = await asyncio.gather(*(
        pipeline.request_summary(URL, live, on_progress=recorder) for recorder in recorders
    ))

    assert backend.backend_calls == 1
    assert live.calls == 1
    assert len({r.fingerprint for r in records}) == 1
    assert all(len(recorder.final) == 1 for recorder in recorders)


@pytest.mark.asyncio
async def test_joined_caller_receives_streamed_partials(pipeline, backend, live):
    backend.streaming = True
    backend.chunks = ["- One\n", "- Two\n", "- Three\n"]
    first, joined = ProgressRecorder(), ProgressRecorder()

    await asyncio.gather(
        pipeline.request_summary(URL, live, on_progress=first),
        pipeline.request_summary(URL, live, on_progress=joined),
    )

    assert len(backend.stream_calls) == 1
    assert [e.bullets for e in joined.events] == [e.bullets for e in first.events]
    assert len(joined.final) == 1


@pytest.mark.asyncio
async def test_listener_registry_is_emptied(pipeline, live):
    await pipeline.request_summary(URL, live, on_progress=ProgressRecorder())
    await asyncio.sleep(0)

    assert pipeline._listeners == {}
    assert len(pipeline.coalescer) == 0


# =====================
# Errors
# =====================

@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["", "   ", None, 42])
async def test_invalid_url_fails_before_network(pipeline, fetcher, live, url):
    """A missing or blank URL is rejected with no network access."""
    with pytest.raises(InvalidInputError) as exc_info:
        await pipeline.request_summary(url, live)

    assert exc_info.value.message == "Invalid URL for summary"
    assert fetcher.calls == []
    assert live.calls == 0


@pytest.mark.asyncio
async def test_content_unavailable(pipeline, backend):
    with pytest.raises(ContentUnavailableError):
        await pipeline.request_summary(URL)
    assert backend.backend_calls == 0


@pytest.mark.asyncio
async def test_summarizer_unavailable(pipeline, backend, live):
    backend.availability_status = "unavailable"

    with pytest.raises(SummarizerUnavailableError):
        await pipeline.request_summary(URL, live)


@pytest.mark.asyncio
async def test_backend_failure_is_summarization_failed(pipeline, backend, live):
    backend.summarize_error = RuntimeError("Summarize LLM request timed out. Please try again.")

    with pytest.raises(SummarizationFailedError) as exc_info:
        await pipeline.request_summary(URL, live)

    assert exc_info.value.reason == "Summarize LLM request timed out. Please try again."


@pytest.mark.asyncio
async def test_empty_backend_output_fails(pipeline, backend, live):
    backend.response = "   "

    with pytest.raises(SummarizationFailedError) as exc_info:
        await pipeline.request_summary(URL, live)

    assert exc_info.value.reason == "Summary returned empty response"
    assert len(pipeline.summary_cache) == 0


@pytest.mark.asyncio
async def test_unexpected_error_is_wrapped(pipeline, live, monkeypatch):
    async def broken_resolve(url, live_document=None):
        raise ValueError("parser exploded")

    monkeypatch.setattr(pipeline.resolver, "resolve", broken_resolve)

    with pytest.raises(SummarizationFailedError) as exc_info:
        await pipeline.request_summary(URL, live)

    assert exc_info.value.reason == "parser exploded"


@pytest.mark.asyncio
async def test_failure_is_shared_by_joined_callers(pipeline, backend, live):
    backend.delay = 0.01
    backend.summarize_error = RuntimeError("backend down")

    results = await asyncio.gather(
        pipeline.request_summary(URL, live),
        pipeline.request_summary(URL, live),
        return_exceptions=True,
    )

    assert all(isinstance(r, SummarizationFailedError) for r in results)
    assert len(backend.summarize_calls) == 1


# =====================
# Redis mirror
# =====================

def mirrored_pipeline(backend, mirror) -> SummaryPipeline:
    return SummaryPipeline(
        resolver=ContentResolver(fetcher=FakeFetcher()),
        engine=SummarizationEngine(backend),
        mirror=mirror,
    )


@pytest.mark.asyncio
async def test_mirror_warms_a_fresh_pipeline(live):
    client = FakeRedis()
    mirror = RedisCacheMirror(client=client)
    first_backend, second_backend = FakeSummarizerBackend(), FakeSummarizerBackend()

    await mirrored_pipeline(first_backend, mirror).request_summary(URL, live)
    record = await mirrored_pipeline(second_backend, mirror).request_summary(URL, live)

    assert client.setex_calls == [f"summary:{URL}"]
    assert record.cached
    assert second_backend.backend_calls == 0


@pytest.mark.asyncio
async def test_mirror_record_for_other_content_is_ignored(live):
    mirror = RedisCacheMirror(client=FakeRedis())
    await mirrored_pipeline(FakeSummarizerBackend(), mirror).request_summary(URL, live)

    live.text = make_article(seed="changed")
    backend = FakeSummarizerBackend()
    record = await mirrored_pipeline(backend, mirror).request_summary(URL, live)

    assert not record.cached
    assert backend.backend_calls == 1


@pytest.mark.asyncio
async def test_mirror_outage_does_not_fail_requests(live):
    backend = FakeSummarizerBackend()
    pipeline = mirrored_pipeline(backend, RedisCacheMirror(client=FakeRedis(fail=True)))

    record = await pipeline.request_summary(URL, live)

    assert record.bullets
    assert backend.backend_calls == 1


# =====================
# State lifecycle
# =====================

@pytest.mark.asyncio
async def test_state_close_releases_everything(state, backend, fetcher, live):
    await state.pipeline.request_summary(URL, live)
    await state.close()

    assert len(state.page_cache) == 0
    assert len(state.summary_cache) == 0
    assert backend.closed
    assert fetcher.closed


@pytest.mark.asyncio
async def test_create_pipeline_state_wiring():
    backend, fetcher = FakeSummarizerBackend(), FakeFetcher()

    state = create_pipeline_state(backend=backend, fetcher=fetcher, redis_enabled=False)

    assert state.mirror is None
    assert state.pipeline.engine is state.engine
    assert state.resolver.fetcher is fetcher
    assert (state.page_cache.capacity, state.page_cache.ttl_seconds) == (24, 360)
    assert (state.summary_cache.capacity, state.summary_cache.ttl_seconds) == (40, 900)
    await state.close()


@pytest.mark.asyncio
async def test_create_pipeline_state_with_mirror():
    mirror = RedisCacheMirror(client=FakeRedis())
    state = create_pipeline_state(backend=FakeSummarizerBackend(), fetcher=FakeFetcher(), mirror=mirror)

    assert state.pipeline.mirror is mirror
    await state.close()
