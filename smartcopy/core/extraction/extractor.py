"""
Unit extractor: maps a point on a rendered surface to a word, sentence or
paragraph of text.
"""

import logging
from typing import Optional

from smartcopy.core.chunking.sentences import sentence_at
from smartcopy.core.exceptions import ExtractionMiss
from smartcopy.core.models import CaretPosition, Granularity, Point, TextSpan
from .surface import RenderingSurface

logger = logging.getLogger(__name__)


class UnitExtractor:
    """Extracts semantic text units from a rendering surface.

    Layout queries are synchronous; the surface is consulted fresh on every
    call, so a surface may change between calls.
    """

    def __init__(self, surface: RenderingSurface):
        self.surface = surface

    def extract(self, point: Point, granularity: Granularity) -> Optional[TextSpan]:
        """
        Extract the unit of text around a point.

        Args:
            point: Pointer position on the surface
            granularity: Word, Sentence or Paragraph

        Returns:
            Trimmed TextSpan, or None when no addressable text exists at the point
        """
        try:
            caret = self.surface.resolve_caret(point)
            if caret is None:
                raise ExtractionMiss("No caret at point", {'line': point.line, 'column': point.column})
            return self.extract_at(caret, granularity)
        except ExtractionMiss as e:
            logger.debug(f"Extraction miss: {e}")
            return None

    def extract_at(self, caret: CaretPosition, granularity: Granularity) -> TextSpan:
        """
        Extract the unit of text around an already resolved caret.

        Raises:
            ExtractionMiss: If the unit is empty or whitespace only
        """
        granularity = Granularity.parse(granularity)
        if granularity is Granularity.WORD:
            raw = self._word_at(caret)
        elif granularity is Granularity.SENTENCE:
            raw = self._sentence_at(caret)
        else:
            raw = self._paragraph_at(caret)

        text = (raw or "").strip()
        if not text:
            raise ExtractionMiss("Only whitespace at caret", {'granularity': granularity.value})
        return TextSpan(text=text, granularity=granularity)

    def _word_at(self, caret: CaretPosition) -> str:
        """Maximal non-whitespace run containing the caret."""
        text = self.surface.node_text(caret.node)
        if not self.surface.is_text_node(caret.node):
            # Caret on an element: first token of its flattened text
            tokens = text.split()
            return tokens[0] if tokens else ""

        index = max(0, min(caret.offset, len(text)))
        start = index
        while start > 0 and not text[start - 1].isspace():
            start -= 1
        end = index
        while end < len(text) and not text[end].isspace():
            end += 1
        return text[start:end]

    def _sentence_at(self, caret: CaretPosition) -> str:
        block_text, ancestor = self.surface.flatten_block_text(caret.node)
        offset = self.surface.caret_offset(ancestor, caret)
        sentence = sentence_at(block_text, offset)
        # No sentence contains the caret: fall back to the whole block
        return sentence if sentence is not None else block_text

    def _paragraph_at(self, caret: CaretPosition) -> str:
        block_text, _ = self.surface.flatten_block_text(caret.node)
        return block_text
