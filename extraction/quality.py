"""
Content quality scoring.

Ranks how "article-like" a block of extracted text is. The score is only
used to compare candidates against each other, except for the
high-confidence shortcut in the resolver.
"""
import re
from dataclasses import dataclass

MAX_SCORE = 10

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
_WORD = re.compile(r"[\w'-]+")

MIN_SENTENCE_CHARS = 40
MIN_PARAGRAPH_CHARS = 160


@dataclass
class QualitySignals:
    """Raw signals behind a quality score."""
    word_count: int
    unique_words: int
    long_sentences: int
    long_paragraphs: int

    @property
    def score(self) -> int:
        total = 0
        total += _tier(self.word_count, (60, 100, 180))
        total += _tier(self.unique_words, (25, 50, 90))
        total += _tier(self.long_sentences, (2, 4))
        total += _tier(self.long_paragraphs, (1, 2))
        return min(total, MAX_SCORE)


def _tier(value: int, thresholds) -> int:
    """Number of thresholds reached."""
    return sum(1 for threshold in thresholds if value >= threshold)


def score_breakdown(text: str) -> QualitySignals:
    text = text or ""
    words = text.split()
    vocabulary = {w.lower() for w in _WORD.findall(text)}
    sentences = [s for s in _SENTENCE_SPLIT.split(text) if len(s.strip()) >= MIN_SENTENCE_CHARS]
    paragraphs = [p for p in _PARAGRAPH_SPLIT.split(text) if len(p.strip()) >= MIN_PARAGRAPH_CHARS]
    return QualitySignals(
        word_count=len(words),
        unique_words=len(vocabulary),
        long_sentences=len(sentences),
        long_paragraphs=len(paragraphs),
    )


def score(text: str) -> int:
    """Heuristic quality score in [0, 10]."""
    return score_breakdown(text).score
