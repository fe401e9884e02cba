"""
Content Extraction Module

Resolves the textual content of a web page:
- Sanitization of raw text and HTML into bounded plain text
- Quality scoring of candidate content blocks
- Resolution from a live document, a direct fetch or a readability proxy
"""

from .schemas import (
    ContentSource,
    ExtractionCandidate,
    FetchResponse,
    PageContent,
)
from .sanitizer import sanitize, html_to_text, normalize_whitespace, compute_fingerprint
from .quality import score, score_breakdown, QualitySignals
from .fetcher import HttpFetcher
from .resolver import (
    ContentResolver,
    LiveDocumentAccessor,
    StaticLiveDocument,
    build_proxy_url,
    extract_candidate_blocks,
    parse_proxy_text,
)

__all__ = [
    "ContentSource",
    "ExtractionCandidate",
    "FetchResponse",
    "PageContent",
    "sanitize",
    "html_to_text",
    "normalize_whitespace",
    "compute_fingerprint",
    "score",
    "score_breakdown",
    "QualitySignals",
    "HttpFetcher",
    "ContentResolver",
    "LiveDocumentAccessor",
    "StaticLiveDocument",
    "build_proxy_url",
    "extract_candidate_blocks",
    "parse_proxy_text",
]
