# textsift Modules
# Version: 1.0

# Unit counting
from .counter import (
    UnitCounter,
    ExactTruncation,
    TokenCounter,
    WordCounter,
    CharCounter,
    TextSiftError,
    CounterInitError,
    create_counter,
    truncate_to_units,
)

# Splitting
from .splitter import (
    TextSplitter,
    SplitStrategy,
    Reattachment,
    DEFAULT_STRATEGIES,
    split_text,
)

# Boilerplate filtering & relevance
from .classifier import ExtraneousClassifier
from .relevance_scorer import RelevanceScorer, Corpus, tokenize, rank_chunks

# Context selection
from .field_patterns import FieldPatterns
from .context_calculator import ContextCalculator, ContextResult
from .chunk_selector import ContextSelector, format_chunks
from .pipeline import SiftPipeline

# Schemas
from .schemas import (
    Chunk,
    ChunkingConfig,
    ContextStrategy,
    CountingMethod,
    FieldType,
    SiftConfig,
    SizingStrategy,
)

__all__ = [
    # Counting
    "UnitCounter",
    "ExactTruncation",
    "TokenCounter",
    "WordCounter",
    "CharCounter",
    "TextSiftError",
    "CounterInitError",
    "create_counter",
    "truncate_to_units",
    # Splitting
    "TextSplitter",
    "SplitStrategy",
    "Reattachment",
    "DEFAULT_STRATEGIES",
    "split_text",
    # Filtering & scoring
    "ExtraneousClassifier",
    "RelevanceScorer",
    "Corpus",
    "tokenize",
    "rank_chunks",
    # Selection
    "FieldPatterns",
    "ContextCalculator",
    "ContextResult",
    "ContextSelector",
    "format_chunks",
    "SiftPipeline",
    # Schemas
    "Chunk",
    "ChunkingConfig",
    "ContextStrategy",
    "CountingMethod",
    "FieldType",
    "SiftConfig",
    "SizingStrategy",
]
