"""
Text sanitization.

Normalizes raw text or markup into clean, length-bounded plain text and
computes the cheap content fingerprint used for cache validity.
"""
import html
import re

from .config import CONTENT_MAX_LENGTH, CONTENT_FINGERPRINT_PREFIX

_UNICODE_SPACES = re.compile("[\u00a0\u1680\u2000-\u200b\u202f\u205f\u3000]")
_LINE_BREAKS = re.compile(r"\r\n?")
_INLINE_BREAKS = re.compile(r"[\t\f\v]+")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0e-\x1f\x7f]")
_TRAILING_SPACES = re.compile(r" +\n")
_LEADING_SPACES = re.compile(r"\n +")
_BLANK_RUNS = re.compile(r"\n{3,}")
_SPACE_RUNS = re.compile(r" {2,}")

_DROP_BLOCKS = [
    re.compile(r"<script[^>]*>[\s\S]*?</script>", re.IGNORECASE),
    re.compile(r"<style[^>]*>[\s\S]*?</style>", re.IGNORECASE),
    re.compile(r"<head[^>]*>[\s\S]*?</head>", re.IGNORECASE),
]
_PARAGRAPH_CLOSE = re.compile(r"</(p|h[1-6]|section|article)>", re.IGNORECASE)
_LINE_CLOSE = re.compile(r"</(div|li|br|tr)>|<br\s*/?>", re.IGNORECASE)
_LIST_ITEM_OPEN = re.compile(r"<li(\s[^>]*)?>", re.IGNORECASE)
_ANY_TAG = re.compile(r"<[^>]+>")


def normalize_whitespace(text: str = "") -> str:
    """Collapse whitespace variants, drop control chars, keep at most one blank line."""
    text = _UNICODE_SPACES.sub(" ", text)
    text = _LINE_BREAKS.sub("\n", text)
    text = _INLINE_BREAKS.sub(" ", text)
    text = _CONTROL_CHARS.sub("", text)
    text = _TRAILING_SPACES.sub("\n", text)
    text = _LEADING_SPACES.sub("\n", text)
    text = _BLANK_RUNS.sub("\n\n", text)
    text = _SPACE_RUNS.sub(" ", text)
    return text.strip()


def sanitize(raw: str = "", max_length: int = CONTENT_MAX_LENGTH) -> str:
    """
    Normalize raw text and hard-slice it to max_length characters.

    The cut ignores sentence boundaries.
    """
    if not raw:
        return ""
    normalized = normalize_whitespace(raw)
    if len(normalized) <= max_length:
        return normalized
    return normalized[:max_length]


def html_to_text(markup: str = "", max_length: int = CONTENT_MAX_LENGTH) -> str:
    """Strip markup to plain text, keeping block structure as line breaks."""
    if not markup:
        return ""
    text = markup
    for pattern in _DROP_BLOCKS:
        text = pattern.sub(" ", text)
    text = _PARAGRAPH_CLOSE.sub("\n\n", text)
    text = _LINE_CLOSE.sub("\n", text)
    text = _LIST_ITEM_OPEN.sub("\n- ", text)
    text = _ANY_TAG.sub(" ", text)
    text = html.unescape(text)
    return sanitize(text, max_length=max_length)


def compute_fingerprint(text: str = "") -> str:
    """Non-cryptographic hash of the first characters combined with the length."""
    if not text:
        return "0:0"
    value = 0
    for char in text[:CONTENT_FINGERPRINT_PREFIX]:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    return f"{value}:{len(text)}"
