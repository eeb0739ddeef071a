"""
Context Selector for bounded output assembly.

Orders chunks (by sizing strategy or by relevance), expands each with
neighbouring context, and assembles the final text within a unit budget.

This is the final assembly layer that produces the sifted output.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from loguru import logger

from .context_calculator import ContextCalculator
from .counter import UnitCounter, truncate_to_units
from .field_patterns import FieldPatterns
from .relevance_scorer import RelevanceScorer
from .schemas import Chunk, ChunkingConfig, SizingStrategy
from .splitter import TextSplitter


MIN_RELEVANCE_SCORE = 0.01
MAX_RELEVANT_CHUNKS = 5
FALLBACK_CHUNKS = 2

OVERLAP_WINDOW_WORDS = 15
SUBSTANTIAL_SENTENCE_CHARS = 40
GAP_MARKER = "\n\n---\n\n"


# =============================================================================
# FORMATTING
# =============================================================================


def remove_overlap_prefix(current: str, previous: str) -> str:
    """
    Drop the longest leading word run of current that repeats the tail of previous.

    Only the last OVERLAP_WINDOW_WORDS words are compared. When an overlap is
    removed the remainder is re-joined with single spaces.
    """
    current_words = current.split()
    previous_words = previous.split()
    if not current_words or not previous_words:
        return current

    window = min(len(current_words), len(previous_words), OVERLAP_WINDOW_WORDS)
    for size in range(window, 0, -1):
        if previous_words[-size:] == current_words[:size]:
            return " ".join(current_words[size:])
    return current


def determine_separator(previous: str) -> str:
    """
    Pick the break placed after a chunk, based on how it ends.

    Explicit trailing breaks are kept, and a substantial sentence gets a
    paragraph break. Past that, text that already contains line breaks
    (lists, verse) is joined with a single line break and anything else
    with a blank line. This departs from a plain single-line-break fallback
    so that one-line chunks still read as separate paragraphs.
    """
    trimmed = previous.strip()
    if not trimmed:
        return "\n\n"
    if previous.endswith("\n\n"):
        return "\n\n"
    if previous.endswith("\n"):
        return "\n"
    if trimmed[-1] in ".!?" and len(trimmed) > SUBSTANTIAL_SENTENCE_CHARS:
        return "\n\n"
    if "\n" in trimmed:
        return "\n"
    return "\n\n"


def format_chunks(selected: Sequence[Chunk], search_mode: bool = False) -> str:
    """
    Render selected chunks in document order.

    Args:
        selected: Chunks in any order; later duplicates of an index are ignored
        search_mode: Mark jumps between non-adjacent chunks with GAP_MARKER

    Returns:
        Joined text with overlaps removed
    """
    unique: Dict[int, Chunk] = {}
    for chunk in selected:
        unique.setdefault(chunk.index, chunk)
    ordered = sorted(unique.values(), key=lambda c: c.index)

    if not ordered:
        return ""

    logger.debug(f"Formatting {len(ordered)} selected chunks")

    parts: List[str] = []
    for i, chunk in enumerate(ordered):
        text = chunk.text
        if i > 0:
            text = remove_overlap_prefix(text, ordered[i - 1].text)
        if not text.strip():
            continue

        # No separator ahead of the first rendered chunk
        if parts:
            previous = ordered[i - 1]
            if search_mode and chunk.index != previous.index + 1:
                parts.append(GAP_MARKER)
            else:
                parts.append(determine_separator(previous.text))
        parts.append(text)

    return "".join(parts)


# =============================================================================
# SELECTOR
# =============================================================================


class ContextSelector:
    """
    Selects and assembles chunks within a unit budget.

    Usage:
        selector = ContextSelector(counter, max_units=500, strategy=SizingStrategy.MIDDLE)
        chunks = selector.prepare_chunks(text)
        output = selector.apply_size_constraints(chunks)

        # Search
        ordered = selector.order_by_relevance(chunks, "query terms")
        output = selector.select(ordered, chunks, 1, 2, search_mode=True)
    """

    def __init__(
        self,
        counter: UnitCounter,
        max_units: int = 0,
        strategy: SizingStrategy = SizingStrategy.BEGINNING,
        patterns: Optional[FieldPatterns] = None,
        chunking: Optional[ChunkingConfig] = None,
        splitter: Optional[TextSplitter] = None,
    ):
        self.counter = counter
        self.max_units = max_units
        self.strategy = strategy
        self.patterns = patterns if patterns is not None else FieldPatterns()
        self.chunking = chunking if chunking is not None else ChunkingConfig()
        self.splitter = splitter if splitter is not None else TextSplitter()
        self.calculator = ContextCalculator(counter, self.patterns)

    # -------------------------------------------------------------------------
    # Preparation & ordering
    # -------------------------------------------------------------------------

    def prepare_chunks(self, text: str) -> List[str]:
        """Split text with a chunk size suited to the counting method and input length."""
        chunk_size = self.chunking.chunk_size_for(self.counter.method, len(text))
        logger.debug(
            f"Preparing chunks: counter={self.counter.name}, chunk_size={chunk_size}, "
            f"text_length={len(text)}"
        )
        return self.splitter.split_text(text, chunk_size)

    def order_by_strategy(self, chunks: Sequence[str]) -> List[Chunk]:
        """Accumulation order for the configured sizing strategy."""
        indexed = [Chunk(text=text, index=i) for i, text in enumerate(chunks)]

        if self.strategy == SizingStrategy.END:
            return indexed[::-1]
        if self.strategy == SizingStrategy.MIDDLE:
            return self._middle_out(indexed)
        return indexed

    @staticmethod
    def _middle_out(chunks: List[Chunk]) -> List[Chunk]:
        if len(chunks) <= 1:
            return chunks

        middle = len(chunks) // 2
        result = [chunks[middle]]
        left, right = middle - 1, middle + 1

        while len(result) < len(chunks):
            if right < len(chunks):
                result.append(chunks[right])
                right += 1
            if left >= 0:
                result.append(chunks[left])
                left -= 1
        return result

    def order_by_relevance(self, chunks: Sequence[str], query: str) -> List[Chunk]:
        """Chunks by descending TF-IDF score, ties by ascending index."""
        if not chunks:
            return []
        return RelevanceScorer(chunks).rank(query)

    def apply_size_constraints(self, chunks: Sequence[str]) -> str:
        """Strategy-mode selection without context."""
        return self.select(self.order_by_strategy(chunks), chunks)

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def select(
        self,
        ordered: Sequence[Chunk],
        all_chunks: Sequence[str],
        context_before: int = 0,
        context_after: int = 0,
        *,
        search_mode: bool = False,
        context_units: int = 0,
        smart_context: bool = False,
    ) -> str:
        """
        Accumulate ordered chunks with context and render the result.

        Args:
            ordered: Chunks in accumulation order
            all_chunks: Every chunk text, indexed by original position
            context_before: Fixed count of preceding chunks per match
            context_after: Fixed count of following chunks per match
            search_mode: Ordered chunks are ranked search results
            context_units: Shared budget for smart context
            smart_context: Use field-aware context instead of fixed counts

        Returns:
            Assembled text ("" when nothing is ordered)
        """
        if not ordered:
            return ""

        logger.debug(
            f"Selecting from {len(ordered)} ordered chunks: max_units={self.max_units}, "
            f"context={context_before}/{context_after}, smart={smart_context}, "
            f"search={search_mode}"
        )

        if smart_context and context_units > 0 and search_mode:
            selected = self._select_smart(ordered, all_chunks, context_units)
        elif self.max_units <= 0:
            if search_mode:
                ordered = self._relevant_subset(ordered)
            selected = self._select_all(ordered, all_chunks, context_before, context_after)
        else:
            selected = self._select_fixed(ordered, all_chunks, context_before, context_after)

        return format_chunks(selected, search_mode=search_mode)

    def _with_context(
        self,
        target: int,
        all_chunks: Sequence[str],
        context_before: int,
        context_after: int,
        added: set,
    ) -> List[Chunk]:
        """Target and its fixed-count neighbours in document order, skipping added ones."""
        start = max(0, target - context_before)
        stop = min(len(all_chunks), target + context_after + 1)
        return [
            Chunk(text=all_chunks[i], index=i)
            for i in range(start, stop)
            if i not in added
        ]

    def _select_all(
        self,
        ordered: Sequence[Chunk],
        all_chunks: Sequence[str],
        context_before: int,
        context_after: int,
    ) -> List[Chunk]:
        selected: List[Chunk] = []
        added: set = set()

        for chunk in ordered:
            for candidate in self._with_context(
                chunk.index, all_chunks, context_before, context_after, added
            ):
                selected.append(candidate)
                added.add(candidate.index)

        logger.debug(f"No size limit: selected {len(selected)} chunks")
        return selected

    def _relevant_subset(self, ordered: Sequence[Chunk]) -> List[Chunk]:
        """Top-scoring search results when no size limit caps the output."""
        passing = [c for c in ordered if c.score > MIN_RELEVANCE_SCORE]
        limit = min(max(1, len(passing) // 2), MAX_RELEVANT_CHUNKS)
        relevant = passing[:limit]

        if not relevant:
            relevant = list(ordered[:FALLBACK_CHUNKS])
            logger.debug(f"No chunk above score {MIN_RELEVANCE_SCORE}; using top {len(relevant)}")
        else:
            logger.debug(
                f"Relevance gate: {len(ordered)} ranked, {len(passing)} above threshold, "
                f"{len(relevant)} kept"
            )
        return relevant

    def _select_fixed(
        self,
        ordered: Sequence[Chunk],
        all_chunks: Sequence[str],
        context_before: int,
        context_after: int,
    ) -> List[Chunk]:
        selected: List[Chunk] = []
        added: set = set()
        used = 0

        for chunk in ordered:
            candidates = self._with_context(
                chunk.index, all_chunks, context_before, context_after, added
            )
            for candidate in candidates:
                units = self.counter.count(candidate.text)
                if used + units <= self.max_units:
                    selected.append(candidate)
                    added.add(candidate.index)
                    used += units
                    continue

                remaining = self.max_units - used
                partial = truncate_to_units(self.counter, candidate.text, remaining)
                if partial:
                    selected.append(Chunk(text=partial, index=candidate.index))
                    used += self.counter.count(partial)
                    logger.debug(
                        f"Added partial chunk {candidate.index} ({remaining} units remaining)"
                    )
                logger.debug(f"Size limit reached: {len(selected)} chunks, {used} units")
                return selected

            if used >= self.max_units:
                break

        logger.debug(f"Fixed selection complete: {len(selected)} chunks, {used} units")
        return selected

    def _select_smart(
        self,
        ordered: Sequence[Chunk],
        all_chunks: Sequence[str],
        context_units: int,
    ) -> List[Chunk]:
        selected: List[Chunk] = []
        added: set = set()
        used = 0

        for chunk in ordered:
            if chunk.index in added:
                continue

            remaining = context_units - used
            if remaining <= 0:
                break

            result = self.calculator.calculate(chunk, all_chunks, remaining)

            for candidate in result.chunks:
                if candidate.index in added:
                    continue
                units = self.counter.count(candidate.text)
                if used + units <= context_units:
                    selected.append(candidate)
                    added.add(candidate.index)
                    used += units
                    continue

                partial = truncate_to_units(self.counter, candidate.text, context_units - used)
                if partial:
                    selected.append(Chunk(text=partial, index=candidate.index))
                    added.add(candidate.index)
                    used = context_units
                break

            if used >= context_units:
                break

        logger.debug(f"Smart context selection: {len(selected)} chunks, {used}/{context_units} units")
        return selected
