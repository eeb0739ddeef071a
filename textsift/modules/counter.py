"""
textsift - Unit Counters

Measures text in tokens, words or characters.

Counters:
1. TokenCounter: cl100k_base subword vocabulary via tiktoken (exact truncation)
2. WordCounter: Unicode whitespace-separated words
3. CharCounter: Unicode code points

Usage:
    from textsift.modules.counter import create_counter, truncate_to_units

    counter = create_counter(CountingMethod.WORDS)
    counter.count("hello world")                  # 2
    truncate_to_units(counter, "a b c d", 2)      # "a b"
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, List

import tiktoken
from loguru import logger

from .schemas import CountingMethod


TOKEN_ENCODING = "cl100k_base"


class TextSiftError(Exception):
    """Base class for textsift errors."""


class CounterInitError(TextSiftError):
    """Raised when a counter's vocabulary or encoding cannot be loaded."""

    def __init__(self, message: str, encoding: str = ""):
        self.encoding = encoding
        super().__init__(message)


# =============================================================================
# INTERFACES
# =============================================================================


class UnitCounter(ABC):
    """Measures text size in a single unit system."""

    method: CountingMethod
    name: str

    @abstractmethod
    def count(self, text: str) -> int:
        """Return the non-negative size of text."""


class ExactTruncation(ABC):
    """Capability of counters that can cut text to an exact unit count."""

    @abstractmethod
    def create_partial_text(self, text: str, max_units: int) -> str:
        """
        Return a prefix of text measuring exactly max_units.

        Returns "" when max_units <= 0 or text is empty, and text unchanged
        when it already fits.
        """


class _ReadWriteLock:
    """Many concurrent readers or one writer."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


# =============================================================================
# COUNTERS
# =============================================================================


class TokenCounter(UnitCounter, ExactTruncation):
    """Counts cl100k_base tokens."""

    method = CountingMethod.TOKENS

    def __init__(self, encoding_name: str = TOKEN_ENCODING):
        logger.debug(f"Initializing TokenCounter with {encoding_name} encoding")
        try:
            encoding = tiktoken.get_encoding(encoding_name)
        except Exception as e:
            raise CounterInitError(
                f"Failed to initialize {encoding_name} encoding: {e}",
                encoding=encoding_name,
            ) from e

        self.encoding_name = encoding_name
        self.name = f"tokens ({encoding_name})"
        self._lock = _ReadWriteLock()
        with self._lock.write():
            self._encoding = encoding

    def _encode(self, text: str) -> List[int]:
        return self._encoding.encode(text, disallowed_special=())

    def count(self, text: str) -> int:
        if not text:
            return 0
        with self._lock.read():
            return len(self._encode(text))

    def create_partial_text(self, text: str, max_units: int) -> str:
        if max_units <= 0 or not text:
            return ""

        with self._lock.read():
            tokens = self._encode(text)
            if len(tokens) <= max_units:
                return text

            # Result must be a true prefix that re-encodes within max_units
            cut = max_units
            best = ""
            while cut > 0:
                partial = self._encoding.decode(tokens[:cut])
                if text.startswith(partial) and len(self._encode(partial)) <= max_units:
                    best = partial
                    break
                cut -= 1

        logger.debug(
            f"Created partial text: {len(tokens)} -> {max_units} tokens "
            f"({len(best)} chars)"
        )
        return best


class WordCounter(UnitCounter):
    """Counts whitespace-separated words."""

    method = CountingMethod.WORDS
    name = "words"

    def count(self, text: str) -> int:
        if not text:
            return 0
        return len(text.split())


class CharCounter(UnitCounter):
    """Counts Unicode code points."""

    method = CountingMethod.CHARACTERS
    name = "characters"

    def count(self, text: str) -> int:
        return len(text)


def create_counter(method: CountingMethod = CountingMethod.TOKENS) -> UnitCounter:
    """Build the counter for a counting method (tokens when unrecognized)."""
    if method == CountingMethod.WORDS:
        return WordCounter()
    if method == CountingMethod.CHARACTERS:
        return CharCounter()
    return TokenCounter()


# =============================================================================
# TRUNCATION
# =============================================================================


def truncate_to_units(counter: UnitCounter, text: str, max_units: int) -> str:
    """
    Cut text down to max_units in the counter's unit system.

    Counters with the ExactTruncation capability do the cut themselves.
    Words keep the first max_units words, characters the first max_units
    code points; other counters get a proportional approximation.
    """
    if max_units <= 0 or not text:
        return ""

    if isinstance(counter, ExactTruncation):
        return counter.create_partial_text(text, max_units)

    units = counter.count(text)
    if units <= max_units:
        return text

    if counter.method == CountingMethod.WORDS:
        return " ".join(text.split()[:max_units])

    if counter.method == CountingMethod.CHARACTERS:
        return text[:max_units]

    ratio = max_units / units
    cutoff = int(len(text) * ratio)
    if 0 < cutoff < len(text):
        logger.debug(f"Approximate truncation for {counter.name}: ratio={ratio:.2f}")
        return text[:cutoff]
    return ""
