"""
Shared fixtures: fake fetcher, summarizer backend and clock, and pipelines
wired from them.
"""
import pytest

from caching import CacheStore
from extraction import ContentResolver
from pipeline import PipelineState, RequestCoalescer, SummaryPipeline
from summarization import SummarizationEngine
from tests.fakes import FakeClock, FakeFetcher, FakeSummarizerBackend


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def backend():
    return FakeSummarizerBackend()


@pytest.fixture
def resolver(fetcher):
    return ContentResolver(fetcher=fetcher)


@pytest.fixture
def engine(backend):
    return SummarizationEngine(backend, clock=FakeClock())


@pytest.fixture
def state(fetcher, backend, clock) -> PipelineState:
    """A full pipeline over fakes, with both caches on the fake clock."""
    page_cache = CacheStore("page", 24, 360, clock=clock)
    summary_cache = CacheStore("summary", 40, 900, clock=clock)
    coalescer = RequestCoalescer()
    resolver = ContentResolver(fetcher=fetcher)
    engine = SummarizationEngine(backend, clock=FakeClock())
    pipeline = SummaryPipeline(
        resolver=resolver,
        engine=engine,
        page_cache=page_cache,
        summary_cache=summary_cache,
        coalescer=coalescer,
    )
    return PipelineState(
        pipeline=pipeline,
        resolver=resolver,
        engine=engine,
        page_cache=page_cache,
        summary_cache=summary_cache,
        coalescer=coalescer,
    )


@pytest.fixture
def pipeline(state) -> SummaryPipeline:
    return state.pipeline
