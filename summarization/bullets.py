"""
Bullet parsing for Markdown summaries.
"""
import re
from typing import List

from .config import SUMMARIZATION_MAX_BULLETS

_BULLET_LINE = re.compile(r"^\s*[-*+]\s+(.*)$")
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")

_INLINE_PATTERNS = [
    (re.compile(r"\*\*(.+?)\*\*"), r"\1"),
    (re.compile(r"\*(.+?)\*"), r"\1"),
    (re.compile(r"__(.+?)__"), r"\1"),
    (re.compile(r"(?<!\w)_(.+?)_(?!\w)"), r"\1"),
    (re.compile(r"`([^`]+)`"), r"\1"),
    (re.compile(r"\[([^\]]+)\]\(([^)]+)\)"), r"\1"),
    (re.compile(r"\[[^\]]*\]"), ""),
    (re.compile(r"<[^>]+>"), ""),
]

FALLBACK_SENTENCES = 3


def clean_markdown_text(text: str) -> str:
    """Strip emphasis, inline code, links, bracket refs and tags; collapse whitespace."""
    if not text:
        return ""
    for pattern, replacement in _INLINE_PATTERNS:
        text = pattern.sub(replacement, text)
    return re.sub(r"\s+", " ", text).strip()


def parse_bullets(markdown: str, limit: int = SUMMARIZATION_MAX_BULLETS) -> List[str]:
    """
    Split a Markdown summary into plain-text bullets.

    Lines starting with "-", "*" or "+" open a bullet; following non-empty
    lines are joined onto it. Text before the first marker is ignored. When
    there is no marker at all, the first sentences stand in for bullets.

    Args:
        markdown: Backend output, possibly partial
        limit: Maximum number of bullets returned

    Returns:
        Cleaned, non-empty bullets
    """
    if not markdown:
        return []

    raw_bullets: List[str] = []
    current = None
    for line in markdown.splitlines():
        match = _BULLET_LINE.match(line)
        if match:
            if current is not None:
                raw_bullets.append(current)
            current = match.group(1)
        elif current is not None and line.strip():
            current = f"{current} {line.strip()}"
    if current is not None:
        raw_bullets.append(current)

    if not raw_bullets:
        cleaned = clean_markdown_text(markdown)
        if not cleaned:
            return []
        sentences = [s for s in _SENTENCE_END.split(cleaned) if s]
        return sentences[:min(FALLBACK_SENTENCES, limit)]

    bullets = [clean_markdown_text(b) for b in raw_bullets]
    return [b for b in bullets if b][:limit]
