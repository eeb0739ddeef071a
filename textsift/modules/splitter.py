"""
textsift - Text Splitter
Version: 1.0

Splits extracted text into ordered, size-bounded chunks without breaking
semantic units more than needed.

Chunking Strategy (one wave per level, applied to every chunk still too big):
1. Paragraph boundaries ("\\n\\n")
2. Sentence ends (". "), question ends ("? "), exclamation ends ("! ")
3. Line breaks ("\\n")
4. Word boundaries (" ") - greedy packing, last resort

Design Decisions:
- Sizes are measured in characters (code points)
- Punctuation and line breaks consumed by a split are reattached
- Segments under 25% of the target (min 3 chars) are merged into a neighbour
- A single unsplittable token is emitted intact even if oversized
- Only spaces and tabs are trimmed at chunk boundaries

Usage:
    from textsift.modules.splitter import split_text

    chunks = split_text(content, 250)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

from loguru import logger


# =============================================================================
# CONSTANTS
# =============================================================================

MIN_CHUNK_RATIO = 0.25
MIN_CHUNK_FLOOR = 3

_SPACES = " \t"


class Reattachment(Enum):
    """What a split gives back to the segments it produces."""

    SENTENCE = "sentence"    # terminal punctuation mark
    LINE = "line"            # single line break
    PARAGRAPH = "paragraph"  # blank-line break
    WORD = "word"            # nothing; words are packed greedily


@dataclass(frozen=True)
class SplitStrategy:
    """One level of the splitting cascade."""

    name: str
    delimiter: str
    reattachment: Reattachment

    @property
    def restored(self) -> str:
        """Text appended to every segment but the last."""
        if self.reattachment is Reattachment.SENTENCE:
            return self.delimiter.strip()
        if self.reattachment is Reattachment.WORD:
            return ""
        return self.delimiter


DEFAULT_STRATEGIES: Tuple[SplitStrategy, ...] = (
    SplitStrategy("paragraph", "\n\n", Reattachment.PARAGRAPH),
    SplitStrategy("sentence", ". ", Reattachment.SENTENCE),
    SplitStrategy("sentence-question", "? ", Reattachment.SENTENCE),
    SplitStrategy("sentence-exclamation", "! ", Reattachment.SENTENCE),
    SplitStrategy("line", "\n", Reattachment.LINE),
    SplitStrategy("word", " ", Reattachment.WORD),
)


def trim_spaces(text: str) -> str:
    """Strip leading/trailing spaces and tabs, keeping line breaks."""
    return text.strip(_SPACES)


def minimum_chunk_size(max_chunk_size: int) -> int:
    return max(int(max_chunk_size * MIN_CHUNK_RATIO), MIN_CHUNK_FLOOR)


def _join(left: str, right: str) -> str:
    if left and left[-1].isspace():
        return left + right
    return f"{left} {right}"


# =============================================================================
# SPLITTER
# =============================================================================


class TextSplitter:
    """
    Cascading delimiter-based splitter.

    Usage:
        splitter = TextSplitter()
        chunks = splitter.split_text(text, max_chunk_size=700)
    """

    def __init__(self, strategies: Sequence[SplitStrategy] = DEFAULT_STRATEGIES):
        self.strategies = tuple(strategies)

    def split_text(self, text: str, max_chunk_size: int) -> List[str]:
        """
        Split text into chunks of at most max_chunk_size characters.

        Args:
            text: Input text
            max_chunk_size: Target maximum chunk length in characters

        Returns:
            Ordered list of chunk texts (empty for blank text or a
            non-positive size)
        """
        logger.debug(f"split_text: {len(text)} chars, max_chunk_size={max_chunk_size}")

        if max_chunk_size <= 0:
            return []
        if not text.strip():
            return []

        text = trim_spaces(text)
        if len(text) <= max_chunk_size:
            return [text]

        # (text, final) pairs, kept in document order across waves
        pieces: List[Tuple[str, bool]] = [(text, False)]

        for strategy in self.strategies:
            pending = sum(1 for _, final in pieces if not final)
            if pending == 0:
                break
            logger.debug(f"Applying strategy '{strategy.name}' to {pending} oversized chunks")

            next_pieces: List[Tuple[str, bool]] = []
            for piece, final in pieces:
                if final or len(piece) <= max_chunk_size:
                    next_pieces.append((piece, True))
                    continue

                for sub in self._split_by_delimiter(piece, strategy, max_chunk_size):
                    sub = trim_spaces(sub)
                    if sub.strip():
                        next_pieces.append((sub, len(sub) <= max_chunk_size))
            pieces = next_pieces

        chunks = [piece for piece, _ in pieces]
        logger.debug(f"split_text produced {len(chunks)} chunks")
        return chunks

    def _split_by_delimiter(
        self,
        text: str,
        strategy: SplitStrategy,
        max_chunk_size: int,
    ) -> List[str]:
        """Split on one delimiter, restore consumed characters and repack."""
        if strategy.delimiter not in text:
            return [text]

        parts = text.split(strategy.delimiter)
        last = len(parts) - 1
        restored = strategy.restored
        segments: List[str] = []

        for i, part in enumerate(parts):
            trimmed = trim_spaces(part)
            if not trimmed:
                # Keep a punctuation mark that followed nothing but spaces
                if strategy.reattachment is Reattachment.SENTENCE and i < last:
                    segments.append(restored)
                continue
            if i < last:
                trimmed += restored
            segments.append(trimmed)

        if strategy.reattachment is Reattachment.WORD:
            return self._pack_words(segments, max_chunk_size)
        return self._merge_short_segments(
            segments, max_chunk_size, minimum_chunk_size(max_chunk_size)
        )

    @staticmethod
    def _pack_words(words: List[str], max_chunk_size: int) -> List[str]:
        """Greedily pack words left to right, flushing before an overflow."""
        result: List[str] = []
        current = ""

        for word in words:
            if current and len(current) + 1 + len(word) > max_chunk_size:
                result.append(current)
                current = ""
            current = f"{current} {word}" if current else word

        if current:
            result.append(current)
        return result

    @staticmethod
    def _merge_short_segments(
        segments: List[str],
        max_chunk_size: int,
        min_chunk_size: int,
    ) -> List[str]:
        """Fold segments below min_chunk_size into a neighbour that has room."""
        if len(segments) <= 1:
            return segments

        segments = list(segments)
        result: List[str] = []
        i = 0

        while i < len(segments):
            current = segments[i]

            if len(current) >= min_chunk_size:
                result.append(current)
                i += 1
                continue

            if i + 1 < len(segments):
                combined = _join(current, segments[i + 1])
                if len(combined) <= max_chunk_size:
                    segments[i + 1] = combined
                    i += 1
                    continue

            if result:
                combined = _join(result[-1], current)
                if len(combined) <= max_chunk_size:
                    result[-1] = combined
                    i += 1
                    continue

            result.append(current)
            i += 1

        return result


_default_splitter = TextSplitter()


def split_text(text: str, max_chunk_size: int) -> List[str]:
    """
    Convenience function using the default cascade.

    Returns:
        Ordered list of chunk texts
    """
    return _default_splitter.split_text(text, max_chunk_size)
