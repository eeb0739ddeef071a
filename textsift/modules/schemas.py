"""
textsift - Core Data Structures

Defines the data models shared across the sifting pipeline:
- CountingMethod / SizingStrategy / FieldType: enums driving selection
- Chunk: a slice of source text with its original position
- ContextStrategy: before/after split of a smart-context budget
- ChunkingConfig / SiftConfig: validated runtime configuration (Pydantic)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class CountingMethod(str, Enum):
    """Unit system a size budget is expressed in."""

    TOKENS = "tokens"
    WORDS = "words"
    CHARACTERS = "characters"


class SizingStrategy(str, Enum):
    """Which document region is preferred when output must be truncated."""

    BEGINNING = "beginning"
    MIDDLE = "middle"
    END = "end"


class FieldType(str, Enum):
    """Dominant structural role of a chunk."""

    H1 = "h1"
    H2 = "h2"
    H3 = "h3"
    H4 = "h4"
    H5 = "h5"
    H6 = "h6"
    LIST = "list"
    CODE = "code"
    BOLD = "bold"
    ITALIC = "italic"
    BODY = "body"

    @property
    def is_header(self) -> bool:
        return self in _HEADER_FIELDS

    @classmethod
    def header(cls, level: int) -> "FieldType":
        """Header field for a markdown level; levels past 6 map to H6."""
        level = min(max(level, 1), 6)
        return cls(f"h{level}")


_HEADER_FIELDS = frozenset(
    {FieldType.H1, FieldType.H2, FieldType.H3, FieldType.H4, FieldType.H5, FieldType.H6}
)


# =============================================================================
# CHUNKS & STRATEGIES
# =============================================================================


@dataclass(frozen=True)
class Chunk:
    """A chunk of text carrying its 0-based index in the document's chunk sequence."""

    text: str
    index: int
    score: float = 0.0


@dataclass(frozen=True)
class ContextStrategy:
    """How a smart-context budget is distributed around a matched chunk."""

    before_ratio: float
    after_ratio: float
    name: str

    def __post_init__(self):
        if self.before_ratio < 0 or self.after_ratio < 0:
            raise ValueError(f"Context ratios must be non-negative: {self.name}")
        if not math.isclose(self.before_ratio + self.after_ratio, 1.0, abs_tol=1e-9):
            raise ValueError(
                f"Context ratios must sum to 1.0, got "
                f"{self.before_ratio} + {self.after_ratio} ({self.name})"
            )


# =============================================================================
# CONFIGURATION
# =============================================================================

DEFAULT_SMART_CONTEXT_UNITS = 200


class ChunkingConfig(BaseModel):
    """Chunk sizing parameters per counting method."""

    base_token_size: int = Field(200, gt=0)
    base_word_size: int = Field(150, gt=0)
    base_char_size: int = Field(700, gt=0)

    # Input length (characters) past which chunks are scaled up
    token_text_threshold: int = Field(2500, ge=0)
    word_text_threshold: int = Field(1800, ge=0)
    char_text_threshold: int = Field(9500, ge=0)

    large_text_multiplier: float = Field(1.5, ge=1.0)

    def chunk_size_for(self, method: Optional[CountingMethod], text_length: int) -> int:
        """Splitter target size for a counting method and input length."""
        if method == CountingMethod.TOKENS:
            base, threshold = self.base_token_size, self.token_text_threshold
        elif method == CountingMethod.WORDS:
            base, threshold = self.base_word_size, self.word_text_threshold
        else:
            base, threshold = self.base_char_size, self.char_text_threshold

        if text_length > threshold:
            return int(base * self.large_text_multiplier)
        return base


class SiftConfig(BaseModel):
    """Options for one sifting run."""

    max_units: int = 0  # <= 0 means no overall limit
    counting_method: CountingMethod = CountingMethod.TOKENS
    sizing_strategy: SizingStrategy = SizingStrategy.BEGINNING
    search_query: str = ""

    # Fixed-count context around search results
    context_before: int = Field(1, ge=0)
    context_after: int = Field(2, ge=0)

    # Smart (budget-aware) context around search results
    context_units: int = Field(0, ge=0)
    smart_context: bool = False

    include_all: bool = False  # bypass boilerplate filtering
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)

    @field_validator("search_query", mode="before")
    @classmethod
    def _normalize_query(cls, v):
        if v is None:
            return ""
        return str(v).strip()

    @model_validator(mode="after")
    def _apply_smart_context_default(self) -> "SiftConfig":
        if self.smart_context and self.context_units == 0:
            self.context_units = DEFAULT_SMART_CONTEXT_UNITS
        return self

    @property
    def is_search(self) -> bool:
        return bool(self.search_query)
