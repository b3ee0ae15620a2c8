"""Word extraction for training rows and sentences to classify.

The graph only ever sees sets of distinct words; this module is the small
default tokenizer that turns raw text into those sets, plus the stop-word
predicate that can be handed to ``ClassificationEngine(word_filter=...)``.
"""

from __future__ import annotations

import re

_WORD_RE = re.compile(r"\b[a-zA-Z][a-zA-Z'-]*[a-zA-Z]\b|\b[a-zA-Z]\b")

STOP_WORDS: frozenset[str] = frozenset({
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were", "be",
    "been", "being", "have", "has", "had", "do", "does", "did", "will",
    "would", "could", "should", "may", "might", "shall", "can", "must",
    "not", "no", "nor", "so", "if", "then", "than", "that", "this",
    "these", "those", "it", "its", "he", "she", "they", "them", "their",
    "his", "her", "our", "your", "we", "you", "who", "whom", "which",
    "what", "where", "when", "how", "all", "each", "every", "both",
    "few", "more", "most", "other", "some", "such", "any", "only",
    "own", "same", "too", "very", "just", "about", "above", "after",
    "again", "also", "because", "before", "between", "during", "into",
    "through", "under", "until", "up", "out", "over", "here", "there",
})


def tokenize(text: str) -> list[str]:
    """Extract lowercase word tokens from text."""
    if not text:
        return []
    return [m.group().lower() for m in _WORD_RE.finditer(text)]


def unique_words(text: str) -> frozenset[str]:
    """Distinct lowercase words of ``text``."""
    return frozenset(tokenize(text))


def is_content_word(word: str) -> bool:
    """Word filter that rejects English stop words."""
    return word is not None and word.lower() not in STOP_WORDS
