# Pytest configuration for textsift test suite
#
# Timeout strategy:
# - FAST tests: 10s (pure unit tests, no I/O)
# - MEDIUM tests: 30s (token encoding load, file I/O)

from __future__ import annotations

import pytest

from textsift.modules import (
    CharCounter,
    CounterInitError,
    FieldPatterns,
    TokenCounter,
    WordCounter,
)

# ---------------------------------------------------------------------------
# Timeout configuration by test file
# ---------------------------------------------------------------------------
# Maps test file patterns to timeout values (seconds)
# More specific patterns should come first

TIMEOUT_MAP = {
    # MEDIUM tests (30s) - tiktoken encoding load, YAML files
    "test_counter": 30,
    "test_pipeline": 30,

    # FAST tests (10s) - Pure unit tests
    "test_splitter": 10,
    "test_classifier": 10,
    "test_relevance_scorer": 10,
    "test_context_calculator": 10,
    "test_chunk_selector": 10,
}


def pytest_collection_modifyitems(config, items):
    """Apply timeout markers based on test file names."""
    for item in items:
        test_name = item.path.stem

        timeout = 30  # default
        for pattern, t in TIMEOUT_MAP.items():
            if pattern in test_name:
                timeout = t
                break

        if item.get_closest_marker("timeout") is None:
            item.add_marker(pytest.mark.timeout(timeout))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def word_counter():
    return WordCounter()


@pytest.fixture
def char_counter():
    return CharCounter()


@pytest.fixture(scope="session")
def token_counter():
    """cl100k_base counter; skips when the encoding cannot be loaded (e.g. offline)."""
    try:
        return TokenCounter()
    except CounterInitError as e:
        pytest.skip(f"cl100k_base encoding unavailable: {e}")


@pytest.fixture(scope="session")
def patterns():
    """One FieldPatterns instance shared across the session."""
    return FieldPatterns()
