"""
Tests for chunk ordering, selection and formatting.
"""

import pytest

from textsift.modules import (
    Chunk,
    ChunkingConfig,
    ContextSelector,
    SizingStrategy,
    format_chunks,
)
from textsift.modules.chunk_selector import (
    GAP_MARKER,
    determine_separator,
    remove_overlap_prefix,
)


FIVE = ["chunk0", "chunk1", "chunk2", "chunk3", "chunk4"]

FRUIT = [
    "alpha apples here",
    "beta bananas there",
    "gamma cherries where",
    "delta dates somewhere",
    "epsilon elderberries",
]


def make_selector(counter, max_units=0, strategy=SizingStrategy.BEGINNING, patterns=None):
    return ContextSelector(counter, max_units=max_units, strategy=strategy, patterns=patterns)


class TestStrategyOrdering:
    """Accumulation order per sizing strategy."""

    def test_beginning(self, word_counter):
        ordered = make_selector(word_counter).order_by_strategy(FIVE)
        assert [c.index for c in ordered] == [0, 1, 2, 3, 4]

    def test_end(self, word_counter):
        ordered = make_selector(word_counter, strategy=SizingStrategy.END).order_by_strategy(FIVE)
        assert [c.index for c in ordered] == [4, 3, 2, 1, 0]

    def test_middle_out(self, word_counter):
        selector = make_selector(word_counter, strategy=SizingStrategy.MIDDLE)

        assert [c.index for c in selector.order_by_strategy(FIVE)] == [2, 3, 1, 4, 0]
        assert [c.index for c in selector.order_by_strategy(FIVE[:4])] == [2, 3, 1, 0]

    @pytest.mark.parametrize("strategy", list(SizingStrategy))
    @pytest.mark.parametrize("n", range(0, 9))
    def test_every_index_visited_once(self, word_counter, strategy, n):
        chunks = [f"c{i}" for i in range(n)]
        ordered = make_selector(word_counter, strategy=strategy).order_by_strategy(chunks)
        assert sorted(c.index for c in ordered) == list(range(n))


class TestSizeConstraints:
    """Strategy-mode selection under a word budget."""

    @pytest.mark.parametrize(
        "strategy,expected",
        [
            (SizingStrategy.BEGINNING, "chunk0\n\nchunk1"),
            (SizingStrategy.END, "chunk3\n\nchunk4"),
            (SizingStrategy.MIDDLE, "chunk2\n\nchunk3"),
        ],
    )
    def test_two_word_budget(self, word_counter, strategy, expected):
        selector = make_selector(word_counter, max_units=2, strategy=strategy)
        assert selector.apply_size_constraints(FIVE) == expected

    def test_partial_chunk_hits_limit_exactly(self, word_counter):
        selector = make_selector(word_counter, max_units=4)
        result = selector.apply_size_constraints(["one two three", "four five six"])

        assert result == "one two three\n\nfour"
        assert word_counter.count(result) == 4

    def test_no_limit_returns_everything_in_order(self, word_counter):
        selector = make_selector(word_counter, strategy=SizingStrategy.END)
        assert selector.apply_size_constraints(FIVE) == "\n\n".join(FIVE)

    def test_empty(self, word_counter):
        selector = make_selector(word_counter, max_units=10)

        assert selector.apply_size_constraints([]) == ""
        assert selector.select([], FIVE) == ""

    def test_fixed_context_skips_added_chunks(self, word_counter):
        selector = make_selector(word_counter, max_units=100)
        ordered = [Chunk(text="chunk2", index=2), Chunk(text="chunk3", index=3)]

        assert selector.select(ordered, FIVE, 1, 1) == "chunk1\n\nchunk2\n\nchunk3\n\nchunk4"


class TestSearchSelection:
    """Relevance-ordered selection."""

    def test_order_by_relevance(self, word_counter):
        ordered = make_selector(word_counter).order_by_relevance(FRUIT, "cherries")

        assert ordered[0].index == 2
        assert ordered[0].score > 0
        assert [c.index for c in ordered[1:]] == [0, 1, 3, 4]

    def test_no_limit_keeps_only_relevant(self, word_counter):
        selector = make_selector(word_counter)
        ordered = selector.order_by_relevance(FRUIT, "cherries")

        assert selector.select(ordered, FRUIT, 0, 0, search_mode=True) == "gamma cherries where"

    def test_no_limit_with_context(self, word_counter):
        selector = make_selector(word_counter)
        ordered = selector.order_by_relevance(FRUIT, "cherries")

        assert selector.select(ordered, FRUIT, 1, 1, search_mode=True) == (
            "beta bananas there\n\ngamma cherries where\n\ndelta dates somewhere"
        )

    def test_no_match_falls_back_to_top_two(self, word_counter):
        selector = make_selector(word_counter)
        ordered = selector.order_by_relevance(FRUIT, "zucchini")

        assert selector.select(ordered, FRUIT, 0, 0, search_mode=True) == (
            "alpha apples here\n\nbeta bananas there"
        )

    def test_no_limit_caps_at_five(self, word_counter):
        scores = [0.9, 0.8, 0.7, 0.6, 0.5, 0.4, 0.3, 0.2, 0.1, 0.05, 0.02, 0.0]
        all_chunks = [f"c{i}" for i in range(len(scores))]
        ordered = [Chunk(text=t, index=i, score=s) for i, (t, s) in enumerate(zip(all_chunks, scores))]

        result = make_selector(word_counter).select(ordered, all_chunks, search_mode=True)
        assert result == "c0\n\nc1\n\nc2\n\nc3\n\nc4"

    def test_no_limit_takes_half_of_passing(self, word_counter):
        all_chunks = ["c0", "c1", "c2", "c3"]
        ordered = [
            Chunk(text="c3", index=3, score=0.5),
            Chunk(text="c1", index=1, score=0.4),
            Chunk(text="c0", index=0, score=0.3),
            Chunk(text="c2", index=2, score=0.001),
        ]

        result = make_selector(word_counter).select(ordered, all_chunks, search_mode=True)
        assert result == "c3"

    def test_gap_marker_between_distant_results(self, word_counter):
        all_chunks = ["c0", "c1", "c2", "c3", "c4"]
        ordered = [Chunk(text="c4", index=4, score=0.9), Chunk(text="c0", index=0, score=0.8)]

        result = make_selector(word_counter, max_units=10).select(
            ordered, all_chunks, search_mode=True
        )
        assert result == f"c0{GAP_MARKER}c4"

    def test_smart_context(self, word_counter, patterns):
        chunks = [
            "intro words here",
            "# Baking Guide",
            "Sift the flour twice before baking",
            "Then fold gently",
            "Serve warm",
        ]
        selector = make_selector(word_counter, max_units=1, patterns=patterns)
        ordered = selector.order_by_relevance(chunks, "flour")

        result = selector.select(
            ordered, chunks, search_mode=True, context_units=10, smart_context=True
        )
        assert result == "# Baking\n\nSift the flour twice before baking\n\nThen fold"
        assert word_counter.count(result) == 10
        assert selector.calculator.patterns is patterns

    def test_smart_context_budget_shared_across_results(self, word_counter, patterns):
        chunks = [f"w{i} x{i}" for i in range(12)]
        chunks[2] = "sift flour here"
        chunks[9] = "flour two flour"
        selector = make_selector(word_counter, patterns=patterns)
        ordered = selector.order_by_relevance(chunks, "flour")
        assert [c.index for c in ordered[:2]] == [9, 2]

        result = selector.select(
            ordered, chunks, search_mode=True, context_units=18, smart_context=True
        )

        # First match takes 14 units; the second only gets the remaining 4
        assert result == (
            "sift flour here\n\nw3"
            + GAP_MARKER
            + "w5\n\nw6 x6\n\nw7 x7\n\nw8 x8\n\nflour two flour\n\nw10 x10\n\nw11 x11"
        )
        assert word_counter.count(result.replace(GAP_MARKER, "\n\n")) == 18

    def test_smart_context_truncates_large_target(self, word_counter):
        chunks = ["intro", "Sift the flour twice before baking", "outro"]
        selector = make_selector(word_counter)
        ordered = selector.order_by_relevance(chunks, "flour")

        result = selector.select(
            ordered, chunks, search_mode=True, context_units=3, smart_context=True
        )
        assert result == "Sift the flour"

    def test_smart_context_requires_search_mode(self, word_counter):
        selector = make_selector(word_counter)
        ordered = selector.order_by_strategy(FIVE)

        result = selector.select(ordered, FIVE, context_units=1, smart_context=True)
        assert result == "\n\n".join(FIVE)


class TestFormatting:
    """Overlap removal and separators."""

    def test_remove_overlap_prefix(self):
        assert remove_overlap_prefix("the end. Next part", "start of the end.") == "Next part"
        assert remove_overlap_prefix("of the end.", "start of the end.") == ""
        assert remove_overlap_prefix("fresh text", "start of the end.") == "fresh text"
        assert remove_overlap_prefix("", "previous") == ""

    def test_overlap_window_limit(self):
        words = [f"w{i}" for i in range(20)]
        previous = " ".join(words)
        current = " ".join(words + ["tail"])

        # 20 shared words exceeds the 15-word window
        assert remove_overlap_prefix(current, previous) == current

    @pytest.mark.parametrize(
        "previous,expected",
        [
            ("para\n\n", "\n\n"),
            ("line\n", "\n"),
            ("This is a substantial sentence ending properly.", "\n\n"),
            ("first line\nsecond", "\n"),
            ("short", "\n\n"),
            ("   ", "\n\n"),
        ],
    )
    def test_determine_separator(self, previous, expected):
        assert determine_separator(previous) == expected

    def test_sorted_and_deduplicated(self):
        selected = [Chunk("b", 1), Chunk("a", 0), Chunk("dup", 1)]
        assert format_chunks(selected) == "a\n\nb"

    def test_blank_leading_chunk_adds_no_separator(self):
        selected = [Chunk("   ", 0), Chunk("b", 1), Chunk("c", 4)]

        assert format_chunks(selected) == "b\n\nc"
        assert format_chunks(selected, search_mode=True) == f"b{GAP_MARKER}c"

    def test_gap_marker_only_in_search_mode(self):
        selected = [Chunk("a", 0), Chunk("b", 3)]

        assert format_chunks(selected, search_mode=True) == f"a{GAP_MARKER}b"
        assert format_chunks(selected) == "a\n\nb"

    def test_overlap_removed_between_neighbours(self):
        selected = [Chunk("alpha beta gamma", 0), Chunk("beta gamma delta", 1)]
        assert format_chunks(selected) == "alpha beta gamma\n\ndelta"


class TestPrepareChunks:
    """Chunk sizing from configuration."""

    def test_uses_method_chunk_size(self, char_counter):
        selector = ContextSelector(char_counter, chunking=ChunkingConfig(base_char_size=20))
        chunks = selector.prepare_chunks("First sentence. Second sentence. Third sentence.")

        assert chunks == ["First sentence.", "Second sentence.", "Third sentence."]
