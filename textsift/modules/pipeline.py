"""
Sifting pipeline.

Wires splitter, boilerplate filter, relevance ranking and selection into a
single text-in, text-out operation driven by a SiftConfig.
"""

from __future__ import annotations

from typing import List, Optional

from loguru import logger

from .chunk_selector import ContextSelector
from .classifier import ExtraneousClassifier
from .counter import UnitCounter, create_counter
from .field_patterns import FieldPatterns
from .schemas import SiftConfig


class SiftPipeline:
    """
    Text -> chunks -> (filter) -> (rank) -> bounded output.

    Usage:
        pipeline = SiftPipeline(SiftConfig(max_units=300, search_query="flour"))
        output = pipeline.run(text)
    """

    def __init__(
        self,
        config: Optional[SiftConfig] = None,
        counter: Optional[UnitCounter] = None,
        classifier: Optional[ExtraneousClassifier] = None,
        patterns: Optional[FieldPatterns] = None,
    ):
        self.config = config if config is not None else SiftConfig()
        # Raises CounterInitError when the token encoding is unavailable
        self.counter = counter if counter is not None else create_counter(self.config.counting_method)
        self.classifier = classifier if classifier is not None else ExtraneousClassifier()
        self.patterns = patterns if patterns is not None else FieldPatterns()
        self.selector = ContextSelector(
            self.counter,
            max_units=self.config.max_units,
            strategy=self.config.sizing_strategy,
            patterns=self.patterns,
            chunking=self.config.chunking,
        )

    def prepare_chunks(self, text: str) -> List[str]:
        """Split text and drop boilerplate unless include_all is set."""
        chunks = self.selector.prepare_chunks(text)
        if self.config.include_all:
            return chunks

        kept = self.classifier.filter_chunks(chunks)
        logger.debug(f"Boilerplate filter kept {len(kept)}/{len(chunks)} chunks")
        return kept

    def run(self, text: str) -> str:
        chunks = self.prepare_chunks(text)
        if not chunks:
            logger.info("No content left after chunking")
            return ""

        config = self.config
        if config.is_search:
            ordered = self.selector.order_by_relevance(chunks, config.search_query)
            result = self.selector.select(
                ordered,
                chunks,
                config.context_before,
                config.context_after,
                search_mode=True,
                context_units=config.context_units,
                smart_context=config.smart_context,
            )
        else:
            result = self.selector.apply_size_constraints(chunks)

        logger.info(
            f"Sifted {len(chunks)} chunks to {self.counter.count(result)} "
            f"{self.counter.name} ({'search' if config.is_search else config.sizing_strategy.value})"
        )
        return result
