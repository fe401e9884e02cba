"""Tests for the LLM-backed summarizer backend and its prompt."""
import pytest

from core import LLMConfig
from summarization import LLMSummarizerBackend, SessionOptions, SummarizationEngine
from summarization.prompts import get_page_summary_prompt


class StubLLMClient:
    """Stands in for BaseLLMClient; records prompts instead of calling a server."""

    def __init__(self, status="available", response="- One\n- Two", tokens=("- One", "\n- Two")):
        self.config = LLMConfig(model="gemma3:4b", task_name="summarize")
        self.status = status
        self.response = response
        self.tokens = list(tokens)
        self.prompts = []
        self.pulls = 0
        self.closed = False

    async def check_availability(self):
        return self.status

    async def pull_model(self, monitor=None):
        self.pulls += 1
        if monitor is not None:
            monitor(0.5)
            monitor(1.0)
        self.status = "available"

    async def generate_text_with_logging(self, prompt):
        self.prompts.append(prompt)
        return self.response

    async def stream_text_with_logging(self, prompt):
        self.prompts.append(prompt)
        for token in self.tokens:
            yield token

    async def close(self):
        self.closed = True

    def get_backend_info(self):
        return self.config.to_dict()


def test_prompt_carries_style_context_and_content():
    prompt = get_page_summary_prompt(
        "Body of the page.",
        shared_context="Summaries for open browser tabs.",
        context="Title: Release notes",
    )

    assert "KEY POINTS" in prompt
    assert "Give exactly 3 points." in prompt
    assert "bullet starting with \"- \"" in prompt
    assert "CONTEXT: Summaries for open browser tabs." in prompt
    assert "PAGE: Title: Release notes" in prompt
    assert prompt.rstrip().endswith("OUTPUT:")
    assert "Body of the page." in prompt


def test_prompt_unknown_style_falls_back_to_key_points():
    prompt = get_page_summary_prompt("text", summary_type="poem", length="huge", summary_format="html")

    assert "KEY POINTS" in prompt
    assert "Give exactly 3 points." in prompt
    assert "CONTEXT:" not in prompt


def test_prompt_length_follows_summary_type():
    prompt = get_page_summary_prompt("text", summary_type="headline", length="medium")

    assert "At most 17 words." in prompt


@pytest.mark.asyncio
async def test_session_builds_prompt_from_options():
    client = StubLLMClient()
    backend = LLMSummarizerBackend(client=client)
    options = SessionOptions(summary_type="tldr", length="long")

    session = await backend.create_session(options)
    result = await session.summarize("Article body", context="Title: T")

    assert result == "- One\n- Two"
    assert "TL;DR" in client.prompts[0]
    assert "One short paragraph." in client.prompts[0]
    assert "PAGE: Title: T" in client.prompts[0]


@pytest.mark.asyncio
async def test_session_streams_client_tokens():
    client = StubLLMClient(tokens=["- A", "\n- B"])
    session = await LLMSummarizerBackend(client=client).create_session(SessionOptions())

    assert session.supports_streaming
    assert [token async for token in session.summarize_streaming("text")] == ["- A", "\n- B"]


@pytest.mark.asyncio
async def test_downloadable_model_is_pulled_before_session():
    client = StubLLMClient(status="downloadable")
    backend = LLMSummarizerBackend(client=client)
    progress = []

    assert await backend.availability() == "downloadable"
    await backend.create_session(SessionOptions(), monitor=progress.append)

    assert client.pulls == 1
    assert progress == [0.5, 1.0]

    await backend.create_session(SessionOptions())
    assert client.pulls == 1


@pytest.mark.asyncio
async def test_available_model_is_not_pulled():
    client = StubLLMClient()
    backend = LLMSummarizerBackend(client=client)

    await backend.availability()
    await backend.create_session(SessionOptions())

    assert client.pulls == 0


@pytest.mark.asyncio
async def test_engine_over_llm_backend_end_to_end():
    client = StubLLMClient(status="downloadable")
    backend = LLMSummarizerBackend(client=client)
    engine = SummarizationEngine(backend)

    assert await engine.summarize_streaming("text") == "- One\n- Two"
    assert client.pulls == 1

    await engine.close()
    assert client.closed


def test_backend_info_comes_from_client_config():
    info = LLMSummarizerBackend(client=StubLLMClient()).get_backend_info()

    assert info["model"] == "gemma3:4b"
    assert info["task_name"] == "summarize"
