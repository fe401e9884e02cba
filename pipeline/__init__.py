"""
Pipeline Module

Provides:
- Single-flight coalescing of concurrent requests per URL
- The summary pipeline (content resolution, caching, summarization)
- PipelineState construction and teardown
"""

from .coalescer import RequestCoalescer
from .pipeline import SummaryPipeline, PipelineState, create_pipeline_state

__all__ = [
    "RequestCoalescer",
    "SummaryPipeline",
    "PipelineState",
    "create_pipeline_state",
]
