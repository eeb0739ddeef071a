"""
Relevance Scorer for query-driven chunk selection.

Scores chunks against a search query with TF-IDF, enabling
prioritized context selection.

This layer determines WHAT is most relevant to include.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Sequence, Tuple

from loguru import logger

from .schemas import Chunk


# Tokens are runs of [a-zA-Z0-9_-]; shorter tokens carry little signal
_SPLIT_RE = re.compile(r"[^a-zA-Z0-9_-]+")
MIN_TOKEN_LENGTH = 3


def tokenize(text: str) -> List[str]:
    """Lowercase, split on non-word characters and drop short tokens."""
    if not text:
        return []
    return [t for t in _SPLIT_RE.split(text.lower()) if len(t) >= MIN_TOKEN_LENGTH]


def term_frequencies(tokens: Sequence[str]) -> Mapping[str, float]:
    """Occurrences of each term divided by the document's token count."""
    if not tokens:
        return MappingProxyType({})
    total = len(tokens)
    return MappingProxyType({term: n / total for term, n in Counter(tokens).items()})


@dataclass(frozen=True)
class Corpus:
    """Immutable documents plus precomputed term statistics."""

    documents: Tuple[str, ...]
    term_frequencies: Tuple[Mapping[str, float], ...]
    document_frequencies: Mapping[str, int]

    @classmethod
    def build(cls, documents: Sequence[str]) -> "Corpus":
        docs = tuple(documents)
        tfs = []
        df: Counter = Counter()

        for doc in docs:
            tokens = tokenize(doc)
            tfs.append(term_frequencies(tokens))
            df.update(set(tokens))

        logger.debug(f"Built TF-IDF corpus: {len(docs)} documents, {len(df)} terms")
        return cls(
            documents=docs,
            term_frequencies=tuple(tfs),
            document_frequencies=MappingProxyType(dict(df)),
        )

    def __len__(self) -> int:
        return len(self.documents)


class RelevanceScorer:
    """
    Scores chunks for relevance to a query.

    Usage:
        scorer = RelevanceScorer(chunks)
        score = scorer.score("sift flour", 3)
        ranked = scorer.rank("sift flour")
    """

    def __init__(self, documents: Sequence[str]):
        self.corpus = Corpus.build(documents)

    def score(self, query: str, index: int) -> float:
        """
        TF-IDF score of one document for a query.

        Returns:
            Sum of tf * idf over query terms found in the document;
            0.0 for an empty query, empty corpus, bad index or no overlap.
        """
        if index < 0 or index >= len(self.corpus):
            return 0.0

        query_terms = tokenize(query)
        if not query_terms:
            return 0.0

        tf = self.corpus.term_frequencies[index]
        total_docs = len(self.corpus)
        total = 0.0

        for term in query_terms:
            freq = tf.get(term, 0.0)
            if freq == 0.0:
                continue
            df = self.corpus.document_frequencies.get(term, 0)
            if df == 0:
                continue
            total += freq * math.log(total_docs / df)

        return total

    def rank(self, query: str) -> List[Chunk]:
        """
        Score every document for a query.

        Returns:
            Chunks sorted by descending score, ties by ascending index
        """
        ranked = [
            Chunk(text=doc, index=i, score=self.score(query, i))
            for i, doc in enumerate(self.corpus.documents)
        ]
        ranked.sort(key=lambda c: (-c.score, c.index))

        if ranked:
            logger.debug(
                f"Ranked {len(ranked)} chunks for query {query!r}; "
                f"top index {ranked[0].index} score {ranked[0].score:.4f}"
            )
        return ranked


def rank_chunks(chunks: Sequence[str], query: str) -> List[Chunk]:
    """
    Convenience function to build a scorer and rank chunks in one call.
    """
    return RelevanceScorer(chunks).rank(query)
