"""
Summarization LLM Client

Summarizer backend for the summarization engine, backed by BaseLLMClient
with summarization-specific configuration.
"""
from typing import AsyncIterator, Callable, Optional

from core import BaseLLMClient, LLMConfig
from logs.logging_config import get_logger
from .config import (
    SUMMARIZATION_LLM_BACKEND,
    SUMMARIZATION_OLLAMA_URL,
    SUMMARIZATION_VLLM_URL,
    SUMMARIZATION_DEFAULT_MODEL,
    SUMMARIZATION_TEMPERATURE,
    SUMMARIZATION_MAX_TOKENS,
    SUMMARIZATION_CONNECTION_TIMEOUT,
    SUMMARIZATION_CONNECTION_POOL_LIMIT,
)
from .prompts import get_page_summary_prompt
from .schemas import SessionOptions

logger = get_logger("summarizer.llm")


def build_llm_config() -> LLMConfig:
    """Summarization-specific client configuration."""
    return LLMConfig(
        backend=SUMMARIZATION_LLM_BACKEND,
        ollama_url=SUMMARIZATION_OLLAMA_URL,
        vllm_url=SUMMARIZATION_VLLM_URL,
        model=SUMMARIZATION_DEFAULT_MODEL,
        temperature=SUMMARIZATION_TEMPERATURE,
        max_tokens=SUMMARIZATION_MAX_TOKENS,
        timeout=SUMMARIZATION_CONNECTION_TIMEOUT,
        pool_limit=SUMMARIZATION_CONNECTION_POOL_LIMIT,
        task_name="summarize"
    )


class LLMSummarizerSession:
    """A summarizer session: fixed style options over a shared LLM client."""

    supports_streaming = True

    def __init__(self, client: BaseLLMClient, options: SessionOptions):
        self.client = client
        self.options = options

    def _prompt(self, text: str, context: Optional[str]) -> str:
        return get_page_summary_prompt(
            text,
            summary_type=self.options.summary_type,
            summary_format=self.options.summary_format,
            length=self.options.length,
            shared_context=self.options.shared_context,
            context=context,
        )

    async def summarize(self, text: str, context: Optional[str] = None) -> str:
        return await self.client.generate_text_with_logging(self._prompt(text, context))

    async def summarize_streaming(self, text: str, context: Optional[str] = None) -> AsyncIterator[str]:
        """Yield text deltas of the summary."""
        async for token in self.client.stream_text_with_logging(self._prompt(text, context)):
            yield token

    async def close(self):
        # The HTTP session belongs to the backend's client
        pass


class LLMSummarizerBackend:
    """
    Summarizer backend over Ollama or VLLM.

    availability() checks the server; when Ollama reports the model as
    downloadable, create_session() pulls it first.
    """

    def __init__(self, client: Optional[BaseLLMClient] = None):
        self.client = client or BaseLLMClient(build_llm_config())
        self._needs_download = False

    async def availability(self) -> str:
        status = await self.client.check_availability()
        self._needs_download = status == "downloadable"
        return status

    async def create_session(
        self,
        options: SessionOptions,
        monitor: Optional[Callable[[float], None]] = None,
    ) -> LLMSummarizerSession:
        if self._needs_download:
            await self.client.pull_model(monitor)
            self._needs_download = False
        logger.info(
            f"[SUMMARIZER] Session created | model={self.client.config.model} | "
            f"type={options.summary_type} | length={options.length}"
        )
        return LLMSummarizerSession(self.client, options)

    async def close(self):
        """Close the summarization HTTP session. Call this on application shutdown."""
        await self.client.close()

    def get_backend_info(self) -> dict:
        """Get information about the summarization LLM backend configuration."""
        return self.client.get_backend_info()
