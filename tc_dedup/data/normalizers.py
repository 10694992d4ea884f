"""
Utilities for normalizing step text before comparison.
"""

import re
from typing import List, Optional

STOP_WORDS = frozenset({
    "a", "an", "the", "and", "or", "but", "if", "then", "else", "when",
    "is", "are", "was", "were", "be", "been", "being", "am",
    "to", "of", "in", "on", "at", "by", "for", "with", "from", "into", "onto",
    "as", "that", "this", "these", "those", "it", "its",
    "should", "must", "will", "shall", "can", "could", "would", "may",
    "has", "have", "had", "do", "does", "did",
    "i", "we", "you", "he", "she", "they", "there", "so", "than", "all",
})

_PUNCTUATION = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")
_HTML_TAG = re.compile(r"<[^>]+>")


def clean_text(text: Optional[str]) -> str:
    """
    Lower-case text, strip HTML tags and punctuation, collapse whitespace.

    Args:
        text: Raw step text

    Returns:
        Cleaned text (empty string for None)
    """
    if not text:
        return ""
    text = _HTML_TAG.sub(" ", text)
    text = _PUNCTUATION.sub(" ", text.lower())
    return _WHITESPACE.sub(" ", text).strip()


def normalize(text: Optional[str]) -> List[str]:
    """
    Tokenize text for similarity scoring.

    Lower-cases, strips punctuation, removes stop words and de-duplicates
    tokens preserving first-seen order.

    Args:
        text: Raw step text

    Returns:
        Ordered list of distinct content tokens
    """
    tokens = []
    seen = set()
    for token in clean_text(text).split():
        if token in STOP_WORDS or token in seen:
            continue
        seen.add(token)
        tokens.append(token)
    return tokens


def truncate(text: str, limit: int = 80) -> str:
    """Shorten text to ``limit`` characters, marking the cut with an ellipsis."""
    text = _WHITESPACE.sub(" ", text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit - 3].rstrip() + "..."
