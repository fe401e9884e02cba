"""
Core Module

Shared infrastructure components for all modules:
- LLM client base class
- Error taxonomy
- Validators
"""

from .llm_client_base import BaseLLMClient, LLMConfig
from .exceptions import (
    PipelineError,
    InvalidInputError,
    ContentUnavailableError,
    SummarizerUnavailableError,
    SummarizationFailedError,
    to_error_message,
)
from .validators import validate_url, is_fetchable_url

__all__ = [
    "BaseLLMClient",
    "LLMConfig",
    "PipelineError",
    "InvalidInputError",
    "ContentUnavailableError",
    "SummarizerUnavailableError",
    "SummarizationFailedError",
    "to_error_message",
    "validate_url",
    "is_fetchable_url",
]
