"""Turn raw text into featuresets for the classifier."""

from __future__ import annotations

import re

_WORD_RE = re.compile(r"\b[a-zA-Z][a-zA-Z'-]*[a-zA-Z]\b|\b[a-zA-Z]\b")

STOP_WORDS: frozenset[str] = frozenset({
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were", "be",
    "been", "being", "have", "has", "had", "do", "does", "did", "will",
    "would", "could", "should", "may", "might", "shall", "can", "must",
    "so", "if", "then", "than", "that", "this", "these", "those", "it",
    "its", "he", "she", "they", "them", "their", "his", "her", "our",
    "your", "we", "you", "i", "me", "my", "who", "whom", "which", "what",
    "where", "when", "how", "all", "each", "both", "some", "such", "any",
    "own", "same", "too", "very", "just", "about", "into", "up", "out",
    "over", "here", "there",
})


def tokenize(text: str) -> list[str]:
    """Extract lowercase word tokens from text."""
    return [m.group().lower() for m in _WORD_RE.finditer(text)]


def ngrams(tokens: list[str], n: int) -> list[str]:
    """Generate underscore-joined n-grams from a token list."""
    if n <= 1:
        return tokens
    return ["_".join(tokens[i : i + n]) for i in range(len(tokens) - n + 1)]


def extract_features(
    text: str,
    ngram_range: tuple[int, int] = (1, 1),
    use_stopwords: bool = True,
) -> list[str]:
    """Build the featureset for a document.

    Repeated terms are kept, since each occurrence counts again when the
    document is scored.

    Args:
        text: Raw document text.
        ngram_range: Tuple of (min_n, max_n) for n-gram generation.
        use_stopwords: Whether to drop common English stopwords first.

    Raises:
        ValueError: If the n-gram range is empty or starts below 1.
    """
    min_n, max_n = ngram_range
    if min_n < 1 or max_n < min_n:
        raise ValueError(f"Invalid ngram_range: {ngram_range}")

    tokens = tokenize(text)
    if use_stopwords:
        tokens = [t for t in tokens if t not in STOP_WORDS]

    features: list[str] = []
    for n in range(min_n, max_n + 1):
        features.extend(ngrams(tokens, n))
    return features
