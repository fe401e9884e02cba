"""
Schemas for page summarization.

Dataclasses for records kept by the pipeline, and pydantic models for the
HTTP API.
"""
import time
from dataclasses import dataclass, field, asdict
from typing import List, Optional, Dict, Any

from pydantic import BaseModel, Field

from extraction.schemas import PageContent
from .config import (
    SUMMARIZATION_TYPE,
    SUMMARIZATION_FORMAT,
    SUMMARIZATION_LENGTH,
    SUMMARIZATION_SHARED_CONTEXT,
    SUMMARIZATION_SUPPORTED_TYPES,
    SUMMARIZATION_SUPPORTED_FORMATS,
    SUMMARIZATION_SUPPORTED_LENGTHS,
)


@dataclass
class SessionOptions:
    """Style configuration applied to every summary of a backend session."""
    summary_type: str = SUMMARIZATION_TYPE
    summary_format: str = SUMMARIZATION_FORMAT
    length: str = SUMMARIZATION_LENGTH
    shared_context: str = SUMMARIZATION_SHARED_CONTEXT

    def __post_init__(self):
        if self.summary_type not in SUMMARIZATION_SUPPORTED_TYPES:
            raise ValueError(f"Unsupported summary type: {self.summary_type}. Supported: {SUMMARIZATION_SUPPORTED_TYPES}")
        if self.summary_format not in SUMMARIZATION_SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported summary format: {self.summary_format}. Supported: {SUMMARIZATION_SUPPORTED_FORMATS}")
        if self.length not in SUMMARIZATION_SUPPORTED_LENGTHS:
            raise ValueError(f"Unsupported summary length: {self.length}. Supported: {SUMMARIZATION_SUPPORTED_LENGTHS}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SummaryRecord:
    """
    A generated summary, stamped with the identity of the content it was
    generated from.
    """
    bullets: List[str]
    raw: str
    fingerprint: str
    source: str
    title: str = ""
    etag: Optional[str] = None
    last_modified: Optional[str] = None
    cached: bool = False
    timestamp: float = field(default_factory=time.time)
    last_used: float = field(default_factory=time.time)

    def matches(self, page: PageContent) -> bool:
        """
        True if this summary still describes page.

        The fingerprint must match. Validators are only compared when the
        current page carries them.
        """
        if self.fingerprint != page.fingerprint:
            return False
        if page.etag and self.etag != page.etag:
            return False
        if page.last_modified and self.last_modified != page.last_modified:
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SummaryRecord":
        return cls(
            bullets=list(data.get("bullets") or []),
            raw=data.get("raw", ""),
            fingerprint=data["fingerprint"],
            source=data.get("source", ""),
            title=data.get("title", ""),
            etag=data.get("etag"),
            last_modified=data.get("last_modified"),
            cached=bool(data.get("cached", False)),
            timestamp=float(data.get("timestamp", time.time())),
            last_used=float(data.get("last_used", time.time())),
        )


@dataclass
class SummaryProgress:
    """A progress event delivered to summary listeners."""
    bullets: List[str]
    raw: str = ""
    cached: bool = False
    source: str = ""
    done: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =========================
# API models
# =========================

class LiveDocumentInput(BaseModel):
    """Page text already extracted by the client (e.g. from an open tab)."""
    text: str = Field(..., description="Visible text of the page")
    title: Optional[str] = Field(None, description="Document title")
    last_modified: Optional[str] = Field(None, description="document.lastModified or Last-Modified header")
    etag: Optional[str] = Field(None, description="ETag of the page, if known")


class PageSummaryRequest(BaseModel):
    """Request for a page summary."""
    url: str = Field(..., description="URL of the page to summarize")
    live_document: Optional[LiveDocumentInput] = Field(None, description="Live page text; skips network fetches")
    request_id: Optional[str] = Field(None, description="Request ID (generated if not provided)")
    user_id: Optional[str] = Field(None, description="User identifier for logging")


class PageSummaryResponse(BaseModel):
    """Final summary for a page."""
    request_id: str = Field(..., description="Unique request identifier")
    url: str = Field(..., description="Summarized URL")
    bullets: List[str] = Field(..., description="Summary bullets (at most 3)")
    raw: str = Field(..., description="Full backend response")
    title: str = Field("", description="Page title")
    source: str = Field(..., description="Content source: tab, network or proxy")
    cached: bool = Field(False, description="True when served from the summary cache")
    fingerprint: str = Field(..., description="Content fingerprint the summary belongs to")
    user_id: Optional[str] = Field(None, description="User identifier if provided")
