"""
Content Resolver

Produces the best available PageContent for a URL:

1. Live document (page open under the caller's control) - trusted as-is
2. Direct fetch + structural extraction of the primary content block
3. Readability proxy, only when the direct result is not high-confidence

Candidates are ranked with the quality scorer. A failing source is treated
as "produced nothing"; resolution only fails when every source does.
"""
import asyncio
import re
import time
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import urlsplit

import aiohttp
from bs4 import BeautifulSoup, Tag

from core.exceptions import ContentUnavailableError
from core.validators import is_fetchable_url
from logs.logging_config import get_logger
from .config import (
    CONTENT_FETCH_TIMEOUT,
    CONTENT_PROXY_TIMEOUT,
    CONTENT_LIVE_TIMEOUT,
    CONTENT_PROXY_URL_TEMPLATE,
    CONTENT_ACCEPTED_TYPES,
    CONTENT_HIGH_CONFIDENCE_SCORE,
    CONTENT_MAX_CANDIDATES,
    CONTENT_KEYWORDS,
)
from .fetcher import HttpFetcher
from .quality import score
from .sanitizer import sanitize, html_to_text, compute_fingerprint
from .schemas import ContentSource, ExtractionCandidate, FetchResponse, PageContent

logger = get_logger("resolver")

_ACCEPTED_TYPES = re.compile(CONTENT_ACCEPTED_TYPES, re.IGNORECASE)
_MARKUP_TYPES = re.compile(r"html|xml", re.IGNORECASE)
_PROXY_TITLE = re.compile(r"^Title:\s*(.+)$", re.MULTILINE)
_PROXY_BODY_MARKER = "Markdown Content:"


class LiveDocumentAccessor(Protocol):
    """Access to a document the caller has open."""

    async def fetch_live_text(self) -> Optional[Dict[str, Any]]:
        """Return {text, title, lastModified?, etag?} or None."""
        ...


class StaticLiveDocument:
    """Live document whose text was pushed by the client (e.g. a browser extension)."""

    def __init__(
        self,
        text: str,
        title: str = "",
        last_modified: Optional[str] = None,
        etag: Optional[str] = None,
    ):
        self._payload = {
            "text": text,
            "title": title,
            "lastModified": last_modified,
            "etag": etag,
        }

    async def fetch_live_text(self) -> Optional[Dict[str, Any]]:
        return dict(self._payload)


def build_proxy_url(url: str, template: str = CONTENT_PROXY_URL_TEMPLATE) -> str:
    """Format the readability proxy endpoint for a target URL."""
    parts = urlsplit(url)
    return template.format(
        scheme=parts.scheme,
        host=parts.netloc,
        path=parts.path or "/",
        query=f"?{parts.query}" if parts.query else "",
    )


def _has_content_keyword(tag: Tag) -> bool:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = [classes]
    haystack = " ".join([tag.get("id") or ""] + list(classes)).lower()
    return any(keyword in haystack for keyword in CONTENT_KEYWORDS)


def extract_candidate_blocks(soup: BeautifulSoup, max_candidates: int = CONTENT_MAX_CANDIDATES) -> List[Tag]:
    """
    Candidate regions in priority order: <main>, <article>, keyword
    containers, then <body> (or the whole document) when nothing matched.
    """
    blocks: List[Tag] = []
    for name in ("main", "article"):
        found = soup.find(name)
        if found is not None:
            blocks.append(found)

    containers = [
        tag for tag in soup.find_all(["section", "div"])
        if _has_content_keyword(tag)
    ]
    blocks.extend(containers[:max_candidates])

    if not blocks:
        blocks.append(soup.body or soup)
    return blocks


def parse_proxy_text(raw: str) -> ExtractionCandidate:
    """Split the proxy's header lines (Title:, URL Source:) from its body."""
    title = ""
    match = _PROXY_TITLE.search(raw.split(_PROXY_BODY_MARKER, 1)[0])
    if match:
        title = match.group(1).strip()

    body = raw
    if _PROXY_BODY_MARKER in raw:
        body = raw.split(_PROXY_BODY_MARKER, 1)[1]

    text = sanitize(body)
    return ExtractionCandidate(text=text, source=ContentSource.PROXY, title=title, score=score(text))


class ContentResolver:
    """Resolves page content from the live document, the network or the proxy."""

    def __init__(
        self,
        fetcher: Optional[HttpFetcher] = None,
        fetch_timeout: float = CONTENT_FETCH_TIMEOUT,
        proxy_timeout: float = CONTENT_PROXY_TIMEOUT,
        live_timeout: float = CONTENT_LIVE_TIMEOUT,
        proxy_template: str = CONTENT_PROXY_URL_TEMPLATE,
        high_confidence_score: int = CONTENT_HIGH_CONFIDENCE_SCORE,
    ):
        self.fetcher = fetcher or HttpFetcher()
        self.fetch_timeout = fetch_timeout
        self.proxy_timeout = proxy_timeout
        self.live_timeout = live_timeout
        self.proxy_template = proxy_template
        self.high_confidence_score = high_confidence_score

    async def resolve(
        self,
        url: str,
        live_document: Optional[LiveDocumentAccessor] = None,
    ) -> PageContent:
        """
        Resolve the best available content for url.

        Raises:
            ContentUnavailableError: If no source yields non-empty text
        """
        start_time = time.time()

        if live_document is not None:
            live = await self._from_live_document(live_document)
            if live is not None:
                logger.info(f"[RESOLVE] Using live document | url={url} | chars={len(live.text)}")
                return self._to_page_content(live)

        if not is_fetchable_url(url):
            logger.info(f"[RESOLVE] Not fetchable | url={url}")
            raise ContentUnavailableError("Page content unavailable")

        direct = await self._from_network(url)
        if direct is not None and direct.score >= self.high_confidence_score:
            logger.info(f"[RESOLVE] Direct fetch accepted | url={url} | score={direct.score}")
            return self._to_page_content(direct)

        proxy = await self._from_proxy(url)
        chosen = self.choose(direct, proxy)
        if chosen is None:
            logger.warning(f"[RESOLVE] No source produced text | url={url}")
            raise ContentUnavailableError("Page content unavailable")

        elapsed = time.time() - start_time
        logger.info(
            f"[RESOLVE] END | url={url} | source={chosen.source.value} | score={chosen.score} | "
            f"direct={direct.score if direct else None} | proxy={proxy.score if proxy else None} | "
            f"elapsed={elapsed:.2f}s"
        )
        return self._to_page_content(chosen)

    @staticmethod
    def choose(
        direct: Optional[ExtractionCandidate],
        proxy: Optional[ExtractionCandidate],
    ) -> Optional[ExtractionCandidate]:
        """
        Pick between direct and proxy results. Ties go to the proxy, which
        inherits the direct title and HTTP validators.
        """
        if direct is None or proxy is None:
            return proxy or direct
        if direct.score > proxy.score:
            return direct
        return ExtractionCandidate(
            text=proxy.text,
            source=ContentSource.PROXY,
            title=proxy.title or direct.title,
            score=proxy.score,
            etag=direct.etag,
            last_modified=direct.last_modified,
        )

    # =====================
    # Sources
    # =====================

    async def _from_live_document(self, accessor: LiveDocumentAccessor) -> Optional[ExtractionCandidate]:
        try:
            payload = await asyncio.wait_for(accessor.fetch_live_text(), timeout=self.live_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[RESOLVE] Live document timed out after {self.live_timeout}s")
            return None
        except Exception as e:
            logger.warning(f"[RESOLVE] Live document failed | error={e}")
            return None

        if not isinstance(payload, dict) or not isinstance(payload.get("text"), str):
            return None
        text = sanitize(payload["text"])
        if not text:
            return None

        title = payload.get("title")
        last_modified = payload.get("lastModified")
        etag = payload.get("etag")
        return ExtractionCandidate(
            text=text,
            source=ContentSource.TAB,
            title=title if isinstance(title, str) else "",
            score=score(text),
            etag=etag if isinstance(etag, str) else None,
            last_modified=last_modified if isinstance(last_modified, str) else None,
        )

    async def _from_network(self, url: str) -> Optional[ExtractionCandidate]:
        try:
            response = await self.fetcher.fetch(url, timeout=self.fetch_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[RESOLVE] Direct fetch timed out | url={url} | timeout={self.fetch_timeout}s")
            return None
        except aiohttp.ClientError as e:
            logger.warning(f"[RESOLVE] Direct fetch failed | url={url} | error={e}")
            return None
        except Exception as e:
            logger.warning(f"[RESOLVE] Direct fetch error | url={url} | error_type={type(e).__name__} | error={e}")
            return None

        if not response.ok:
            logger.info(f"[RESOLVE] Direct fetch rejected | url={url} | status={response.status}")
            return None

        content_type = response.header("content-type") or ""
        if not _ACCEPTED_TYPES.search(content_type):
            logger.info(f"[RESOLVE] Direct fetch rejected | url={url} | content_type={content_type}")
            return None

        try:
            candidate = self.extract_from_response(response)
        except Exception as e:
            logger.warning(f"[RESOLVE] Extraction failed | url={url} | error={e}")
            return None

        if candidate is None:
            return None
        logger.debug(f"[RESOLVE] Direct candidate | url={url} | score={candidate.score} | chars={len(candidate.text)}")
        return candidate

    def extract_from_response(self, response: FetchResponse) -> Optional[ExtractionCandidate]:
        """Best-scoring content block of a fetched document."""
        content_type = response.header("content-type") or ""
        etag = response.header("etag")
        last_modified = response.header("last-modified")

        if not _MARKUP_TYPES.search(content_type):
            text = sanitize(response.text)
            if not text:
                return None
            return ExtractionCandidate(
                text=text,
                source=ContentSource.NETWORK,
                score=score(text),
                etag=etag,
                last_modified=last_modified,
            )

        soup = BeautifulSoup(response.text, "html.parser")
        title = ""
        if soup.title and soup.title.string:
            title = soup.title.string.strip()

        best: Optional[ExtractionCandidate] = None
        for block in extract_candidate_blocks(soup):
            text = html_to_text(str(block))
            if not text:
                continue
            block_score = score(text)
            if best is None or block_score > best.score:
                best = ExtractionCandidate(
                    text=text,
                    source=ContentSource.NETWORK,
                    title=title,
                    score=block_score,
                    etag=etag,
                    last_modified=last_modified,
                )
        return best

    async def _from_proxy(self, url: str) -> Optional[ExtractionCandidate]:
        proxy_url = build_proxy_url(url, self.proxy_template)
        try:
            response = await self.fetcher.fetch(
                proxy_url,
                timeout=self.proxy_timeout,
                headers={"Accept": "text/plain"},
            )
        except asyncio.TimeoutError:
            logger.warning(f"[RESOLVE] Proxy fetch timed out | url={url} | timeout={self.proxy_timeout}s")
            return None
        except aiohttp.ClientError as e:
            logger.warning(f"[RESOLVE] Proxy fetch failed | url={url} | error={e}")
            return None
        except Exception as e:
            logger.warning(f"[RESOLVE] Proxy fetch error | url={url} | error_type={type(e).__name__} | error={e}")
            return None

        if not response.ok or not response.text:
            logger.info(f"[RESOLVE] Proxy fetch rejected | url={url} | status={response.status}")
            return None

        candidate = parse_proxy_text(response.text)
        if not candidate.text:
            return None
        logger.debug(f"[RESOLVE] Proxy candidate | url={url} | score={candidate.score} | chars={len(candidate.text)}")
        return candidate

    @staticmethod
    def _to_page_content(candidate: ExtractionCandidate) -> PageContent:
        now = time.time()
        return PageContent(
            text=candidate.text,
            fingerprint=compute_fingerprint(candidate.text),
            source=candidate.source,
            title=candidate.title,
            last_modified=candidate.last_modified,
            etag=candidate.etag,
            score=candidate.score,
            timestamp=now,
            last_used=now,
        )

    async def close(self):
        await self.fetcher.close()
