"""
Markdown field detection.

Classifies a chunk's dominant structural role so the context calculator
can bias how much surrounding text it pulls in.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping

from .schemas import ContextStrategy, FieldType


HEADER_FOLLOWING = ContextStrategy(before_ratio=0.2, after_ratio=0.8, name="header-following")
LIST_PRECEDING = ContextStrategy(before_ratio=0.8, after_ratio=0.2, name="list-preceding")
CODE_FOLLOWING = ContextStrategy(before_ratio=0.3, after_ratio=0.7, name="code-following")
EMPHASIS_PRECEDING = ContextStrategy(before_ratio=0.65, after_ratio=0.35, name="emphasis-preceding")
BALANCED = ContextStrategy(before_ratio=0.5, after_ratio=0.5, name="balanced")

CONTEXT_STRATEGIES: Mapping[FieldType, ContextStrategy] = MappingProxyType({
    **{FieldType.header(level): HEADER_FOLLOWING for level in range(1, 7)},
    FieldType.LIST: LIST_PRECEDING,
    FieldType.CODE: CODE_FOLLOWING,
    FieldType.BOLD: EMPHASIS_PRECEDING,
    FieldType.ITALIC: BALANCED,
    FieldType.BODY: BALANCED,
})


class FieldPatterns:
    """
    Compiled markdown patterns.

    Build one instance and share it between the components that need it.
    """

    def __init__(self):
        self.header = re.compile(r"^\s*(#{1,6})\s+")
        self.bullet_list = re.compile(r"^\s*[-*+]\s+")
        self.number_list = re.compile(r"^\s*\d+\.\s+")
        self.code_fence = re.compile(r"^\s*```", re.MULTILINE)
        self.inline_code = re.compile(r"`[^`]+`")
        self.bold = re.compile(r"\*\*[^*\s][^*]*[^*\s]\*\*|\*\*[^*\s]\*\*")
        self.italic = re.compile(
            r"(?:^|[^*])\*[^*\s][^*]*[^*\s]\*(?:[^*]|$)|(?:^|[^*])\*[^*\s]\*(?:[^*]|$)"
        )

    def detect(self, text: str) -> FieldType:
        """Return the dominant field type of a chunk (checked most specific first)."""
        trimmed = text.strip()
        if not trimmed:
            return FieldType.BODY

        match = self.header.match(trimmed)
        if match:
            return FieldType.header(len(match.group(1)))

        if self.bullet_list.match(trimmed) or self.number_list.match(trimmed):
            return FieldType.LIST

        if self.code_fence.search(text) or self.inline_code.search(text):
            return FieldType.CODE

        if self.bold.search(text):
            return FieldType.BOLD

        if self.italic.search(text):
            return FieldType.ITALIC

        return FieldType.BODY

    def strategy_for(self, field_type: FieldType) -> ContextStrategy:
        return CONTEXT_STRATEGIES.get(field_type, BALANCED)
