"""
Summarization Module

Provides bullet summaries of page content over an LLM backend:
- Lazily created, shared summarizer session
- One-shot and streaming generation with throttled partial bullets
- Fallback from a failed stream to a one-shot call

Summary style defaults:
- type: key-points
- format: markdown
- length: short
"""

from .service import router
from .engine import SummarizationEngine, SummarizerBackend, SummarizerSession
from .llm_client import LLMSummarizerBackend, LLMSummarizerSession
from .bullets import parse_bullets, clean_markdown_text
from .schemas import (
    SessionOptions,
    SummaryRecord,
    SummaryProgress,
    LiveDocumentInput,
    PageSummaryRequest,
    PageSummaryResponse,
)

__all__ = [
    # Router
    "router",
    # Engine
    "SummarizationEngine",
    "SummarizerBackend",
    "SummarizerSession",
    "LLMSummarizerBackend",
    "LLMSummarizerSession",
    "parse_bullets",
    "clean_markdown_text",
    # Schemas
    "SessionOptions",
    "SummaryRecord",
    "SummaryProgress",
    "LiveDocumentInput",
    "PageSummaryRequest",
    "PageSummaryResponse",
]
