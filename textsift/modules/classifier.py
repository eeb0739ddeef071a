"""
Extraneous Content Classifier.

Flags boilerplate chunks (headers, footers, navigation, legal and
publishing metadata) by the density of stemmed boilerplate terms,
compared against a threshold that depends on where the chunk sits in
the document: strict at the edges, lenient in the middle.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import FrozenSet, List, Sequence

import snowballstemmer
from loguru import logger


# Stemmed (Snowball English) terms typical of boilerplate
EXTRANEOUS_STEMS: FrozenSet[str] = frozenset({
    # Publishing & document structure
    "author", "appendix", "book", "chapter", "content", "edit", "ebook",
    "footer", "glossari", "gutenberg", "navig", "note", "page", "project",
    "publish", "text",
    # Navigation & interaction
    "about", "locat", "profil", "share", "updat",
    # Legal & footer text
    "copyright", "manag", "permiss", "polici", "privaci", "public", "purpos",
    "reproduc", "reserv", "right", "risk", "standard", "term", "use",
    # Academic & technical references
    "citat", "depart", "edu", "feder", "foundat", "https", "isbn", "refer",
})

# Threshold curve: low at the first/last chunk, high at the midpoint
EDGE_THRESHOLD = 0.10
MIDDLE_THRESHOLD = 0.33
SMALL_DOCUMENT_THRESHOLD = 0.5
SMALL_DOCUMENT_CHUNKS = 3
DEFAULT_THRESHOLD = 0.33

STEM_CACHE_SIZE = 4096


class ExtraneousClassifier:
    """
    Classifies chunks as extraneous boilerplate.

    Usage:
        classifier = ExtraneousClassifier()
        if classifier.is_extraneous(chunk, index, len(chunks)):
            ...
    """

    def __init__(
        self,
        stems: FrozenSet[str] = EXTRANEOUS_STEMS,
        stem_cache_size: int = STEM_CACHE_SIZE,
    ):
        self.stems = stems
        self._token_re = re.compile(r"\b[a-zA-Z]+\b", re.ASCII)
        self._stemmer = snowballstemmer.stemmer("english")
        # Bounded per-instance stem cache
        self._stem = lru_cache(maxsize=stem_cache_size)(self._stemmer.stemWord)

    def is_extraneous(self, chunk_text: str, index: int, total: int) -> bool:
        """
        Decide whether a chunk is boilerplate.

        Args:
            chunk_text: Chunk content
            index: 0-based chunk position
            total: Number of chunks in the document

        Returns:
            True if the boilerplate ratio exceeds the positional threshold.
            Invalid positions are never extraneous; chunks without any
            alphabetic token always are.
        """
        if total <= 0 or index < 0 or index >= total:
            return False

        tokens = self._token_re.findall(chunk_text.lower())
        if not tokens:
            return True

        hits = sum(1 for token in tokens if self._stem(token) in self.stems)
        ratio = hits / len(tokens)
        threshold = self.position_threshold(index, total)

        logger.debug(
            f"Chunk {index}/{total}: boilerplate ratio {ratio:.2f} vs threshold {threshold:.2f}"
        )
        return ratio > threshold

    def position_threshold(self, index: int, total: int) -> float:
        """Boilerplate ratio a chunk at this position may reach without being dropped."""
        if total <= 0 or index < 0 or index >= total:
            return DEFAULT_THRESHOLD
        if total <= SMALL_DOCUMENT_CHUNKS:
            return SMALL_DOCUMENT_THRESHOLD

        position = index / (total - 1)
        factor = 1.0 - abs(2.0 * position - 1.0)
        return EDGE_THRESHOLD + (MIDDLE_THRESHOLD - EDGE_THRESHOLD) * factor

    def filter_chunks(self, chunks: Sequence[str]) -> List[str]:
        """Drop extraneous chunks, keeping the rest in order."""
        total = len(chunks)
        kept = [c for i, c in enumerate(chunks) if not self.is_extraneous(c, i, total)]
        if len(kept) < total:
            logger.debug(f"Filtered {total - len(kept)} extraneous chunks of {total}")
        return kept

