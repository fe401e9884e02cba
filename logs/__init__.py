"""
Logs Module

Provides:
- Logging configuration for the summary pipeline
- LLM request/response logging with metrics
- Context tracking (request_id, user_id)
"""

from .logging_config import (
    setup_logging,
    get_logger,
    get_llm_logger,
    get_metrics_logger,
    log_llm_request,
    log_llm_response,
    log_metrics,
    log_llm_metrics,
    RequestContext,
    ContextFilter,
    get_user_id,
    get_request_id,
    generate_request_id,
    LOG_DIR,
    LLMMetrics,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "get_llm_logger",
    "get_metrics_logger",
    "log_llm_request",
    "log_llm_response",
    "log_metrics",
    "log_llm_metrics",
    "RequestContext",
    "ContextFilter",
    "get_user_id",
    "get_request_id",
    "generate_request_id",
    "LOG_DIR",
    "LLMMetrics",
]
