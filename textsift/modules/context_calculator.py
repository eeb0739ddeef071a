"""
Context Calculator for smart search-result context.

Decides how much surrounding text to pull in around a matched chunk,
splitting a unit budget before/after according to the chunk's markdown
field type.

This layer determines HOW MUCH neighbouring context each result gets.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from .counter import UnitCounter, truncate_to_units
from .field_patterns import FieldPatterns
from .schemas import Chunk, ContextStrategy, FieldType


@dataclass
class ContextResult:
    """Chunks chosen around one search result."""
    chunks: List[Chunk] = field(default_factory=list)  # target first, then before, then after
    total_units: int = 0
    strategy: Optional[ContextStrategy] = None
    field_type: FieldType = FieldType.BODY


class ContextCalculator:
    """
    Budget-aware, field-biased context selection.

    Usage:
        calculator = ContextCalculator(counter, patterns)
        result = calculator.calculate(target_chunk, all_chunks, budget=200)
    """

    def __init__(self, counter: UnitCounter, patterns: Optional[FieldPatterns] = None):
        self.counter = counter
        self.patterns = patterns if patterns is not None else FieldPatterns()

    def calculate(self, target: Chunk, all_chunks: Sequence[str], budget: int) -> ContextResult:
        """
        Select a target chunk plus neighbours within a unit budget.

        Args:
            target: The matched chunk
            all_chunks: Every chunk text, indexed by original position
            budget: Units available for the target and its context

        Returns:
            ContextResult; the target is truncated when it alone exceeds
            the budget
        """
        field_type = self.patterns.detect(target.text)
        strategy = self.patterns.strategy_for(field_type)
        target_units = self.counter.count(target.text)
        available = budget - target_units

        if available <= 0:
            if target_units > budget:
                partial = truncate_to_units(self.counter, target.text, budget)
                truncated = Chunk(text=partial, index=target.index, score=target.score)
                return ContextResult(
                    chunks=[truncated],
                    total_units=self.counter.count(partial),
                    strategy=strategy,
                    field_type=field_type,
                )
            return ContextResult(
                chunks=[target],
                total_units=target_units,
                strategy=strategy,
                field_type=field_type,
            )

        before_budget = int(available * strategy.before_ratio)
        after_budget = available - before_budget

        before, before_units = self._collect(all_chunks, target.index - 1, -1, before_budget)
        after, after_units = self._collect(all_chunks, target.index + 1, 1, after_budget)

        logger.debug(
            f"Context for chunk {target.index} ({field_type.value}, {strategy.name}): "
            f"target={target_units} before={before_units}/{before_budget} "
            f"after={after_units}/{after_budget} "
            f"indices={[c.index for c in before]}+{[c.index for c in after]}"
        )

        return ContextResult(
            chunks=[target, *before, *after],
            total_units=target_units + before_units + after_units,
            strategy=strategy,
            field_type=field_type,
        )

    def _collect(
        self,
        all_chunks: Sequence[str],
        start: int,
        step: int,
        budget: int,
    ) -> Tuple[List[Chunk], int]:
        """Walk outward from start taking whole chunks, then one partial."""
        collected: List[Chunk] = []
        used = 0
        i = start

        while 0 <= i < len(all_chunks) and used < budget:
            text = all_chunks[i]
            units = self.counter.count(text)

            if used + units <= budget:
                collected.append(Chunk(text=text, index=i))
                used += units
            else:
                partial = truncate_to_units(self.counter, text, budget - used)
                if partial:
                    collected.append(Chunk(text=partial, index=i))
                    used += self.counter.count(partial)
                break
            i += step

        # Preceding context reads in document order
        if step < 0:
            collected.reverse()
        return collected, used
