"""In-memory stand-ins for the pipeline's external dependencies."""

from tests.fakes.clock import FakeClock
from tests.fakes.fetcher import FakeFetcher, html_response, text_response
from tests.fakes.live import FakeLiveDocument
from tests.fakes.llm_server import FakeLLMServer
from tests.fakes.redis import FakeRedis
from tests.fakes.summarizer import FakeSummarizerBackend, FakeSummarizerSession
from tests.fakes.text import make_article, thin_text

__all__ = [
    "FakeClock",
    "FakeFetcher",
    "html_response",
    "text_response",
    "FakeLiveDocument",
    "FakeLLMServer",
    "FakeRedis",
    "FakeSummarizerBackend",
    "FakeSummarizerSession",
    "make_article",
    "thin_text",
]
