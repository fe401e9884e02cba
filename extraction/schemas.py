"""
Schemas for Content Extraction

Resolved page content and the intermediate candidates produced by each
content source.
"""

from enum import Enum
from typing import Optional, Dict, Any
from dataclasses import dataclass, field, asdict
import time


class ContentSource(str, Enum):
    """Where a page's text came from."""
    TAB = "tab"
    NETWORK = "network"
    PROXY = "proxy"


@dataclass
class ExtractionCandidate:
    """Text produced by one content source, with its quality score."""
    text: str
    source: ContentSource
    title: str = ""
    score: int = 0
    etag: Optional[str] = None
    last_modified: Optional[str] = None


@dataclass
class PageContent:
    """
    Resolved textual payload for a URL.

    The fingerprint is the authoritative identity of the content; etag and
    last_modified are only compared when present.
    """
    text: str
    fingerprint: str
    source: ContentSource
    title: str = ""
    last_modified: Optional[str] = None
    etag: Optional[str] = None
    score: int = 0
    timestamp: float = field(default_factory=time.time)
    last_used: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["source"] = self.source.value
        return data


@dataclass
class FetchResponse:
    """Minimal view of an HTTP response."""
    status: int
    headers: Dict[str, str]
    text: str
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())
