"""
Rendering surfaces used by the unit extractor.

A surface answers the layout questions the extraction algorithm needs:
which caret a point lands on, which block-level box contains a node, what
the visible text of that box is and where a caret sits inside it. The
extractor itself never touches markup.

Two surfaces are provided:
- HtmlSurface: headless lxml rendering of an HTML document onto a text grid
- TextBufferSurface: plain text paragraphs, one per grid line
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from lxml import etree

from smartcopy.core.models import CaretPosition, Point


class RenderingSurface(ABC):
    """Layout capability consumed by the unit extractor."""

    @abstractmethod
    def resolve_caret(self, point: Point) -> Optional[CaretPosition]:
        """Map a pointer position to a caret, or None if nothing is there."""
        pass

    @abstractmethod
    def flatten_block_text(self, node: Any) -> Tuple[str, Any]:
        """Return the visible text of the node's block ancestor and the ancestor itself."""
        pass

    @abstractmethod
    def is_text_node(self, node: Any) -> bool:
        pass

    @abstractmethod
    def node_text(self, node: Any) -> str:
        """Raw data of a text node, or the flattened text of any other node."""
        pass

    @abstractmethod
    def caret_offset(self, ancestor: Any, caret: CaretPosition) -> int:
        """Character offset of the caret within the ancestor's flattened text."""
        pass


# ============================================================================
# HTML surface
# ============================================================================

@dataclass(frozen=True)
class TextNode:
    """A run of character data in an lxml tree.

    lxml stores character data on elements: `element.text` precedes the first
    child, `element.tail` follows the element's closing tag.
    """
    element: Any
    attribute: str  # "text" or "tail"

    @property
    def data(self) -> str:
        return getattr(self.element, self.attribute) or ""

    @property
    def parent(self):
        """Element that contains this character data."""
        if self.attribute == "text":
            return self.element
        return self.element.getparent()


# Layout roles that make an element a sentence/paragraph container
CONTAINER_DISPLAYS = {"block", "list-item", "table-cell"}
INLINE_DISPLAYS = {"inline", "inline-block", "contents"}

BLOCK_TAGS = {'p', 'div', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
              'blockquote', 'section', 'article', 'li', 'tr', 'td', 'th',
              'ul', 'ol', 'dl', 'dt', 'dd', 'pre', 'header', 'footer', 'main',
              'nav', 'aside', 'figure', 'figcaption', 'address', 'form',
              'fieldset', 'table', 'thead', 'tbody', 'tfoot', 'caption',
              'hr', 'body', 'html', 'details', 'summary'}
DEFAULT_DISPLAY = {
    'li': 'list-item',
    'td': 'table-cell',
    'th': 'table-cell',
    'tr': 'table-row',
    'table': 'table',
    'thead': 'table-header-group',
    'tbody': 'table-row-group',
    'tfoot': 'table-footer-group',
    'caption': 'table-caption',
}
HIDDEN_TAGS = {'head', 'script', 'style', 'template', 'noscript', 'title', 'meta', 'link'}

STYLE_DISPLAY_PATTERN = re.compile(r'(?:^|;)\s*display\s*:\s*([a-z-]+)', re.IGNORECASE)

# A rendered run: (characters, text node or None for a line break)
Run = Tuple[str, Optional[TextNode]]


class HtmlSurface(RenderingSurface):
    """Headless HTML surface.

    The body is rendered onto a text grid: every block-level box starts on a
    new line and `<br>` forces a break. Whitespace-only character data that
    spans lines (source indentation) is not rendered. A Point addresses
    `(line, column)` in that grid.
    """

    def __init__(self, html: str):
        root = etree.HTML(html) if html and html.strip() else None
        if root is None:
            root = etree.HTML("<html><body></body></html>")
        self.root = root
        body = root.find('.//body')
        self.body = body if body is not None else root

    # --- layout roles -----------------------------------------------------

    def display_of(self, element) -> str:
        """Layout role of an element: inline `style` first, then the tag default."""
        style = element.get('style') or ""
        match = STYLE_DISPLAY_PATTERN.search(style)
        if match:
            return match.group(1).lower()
        tag = element.tag.lower() if isinstance(element.tag, str) else ""
        if tag in DEFAULT_DISPLAY:
            return DEFAULT_DISPLAY[tag]
        if tag in BLOCK_TAGS:
            return "block"
        return "inline"

    def _is_hidden(self, element) -> bool:
        if not isinstance(element.tag, str):
            return True  # comments and processing instructions
        return element.tag.lower() in HIDDEN_TAGS or self.display_of(element) == "none"

    def _breaks_line(self, element) -> bool:
        return self.display_of(element) not in INLINE_DISPLAYS

    def find_block_ancestor(self, node) -> Optional[Any]:
        """Nearest ancestor with a container layout role, stopping below the body."""
        element = node.parent if isinstance(node, TextNode) else node
        while element is not None and element is not self.body:
            if isinstance(element.tag, str) and self.display_of(element) in CONTAINER_DISPLAYS:
                return element
            element = element.getparent()
        return None

    # --- rendering --------------------------------------------------------

    def _render(self, element) -> List[Run]:
        runs: List[Run] = []
        self._render_into(element, runs)
        while runs and runs[0][1] is None:
            runs.pop(0)
        while runs and runs[-1][1] is None:
            runs.pop()
        return runs

    def _render_into(self, element, runs: List[Run]) -> None:
        self._append_text(TextNode(element, "text"), runs)
        for child in element:
            if not self._is_hidden(child):
                if isinstance(child.tag, str) and child.tag.lower() == 'br':
                    runs.append(("\n", None))
                else:
                    breaks = self._breaks_line(child)
                    if breaks:
                        self._line_break(runs)
                    self._render_into(child, runs)
                    if breaks:
                        self._line_break(runs)
            self._append_text(TextNode(child, "tail"), runs)

    @staticmethod
    def _append_text(node: TextNode, runs: List[Run]) -> None:
        data = node.data
        if not data:
            return
        if not data.strip() and "\n" in data:
            return  # source formatting
        runs.append((data, node))

    @staticmethod
    def _line_break(runs: List[Run]) -> None:
        if runs and runs[-1][1] is not None:
            runs.append(("\n", None))

    def rendered_text(self) -> str:
        """Text grid of the whole body."""
        return "".join(chunk for chunk, _ in self._render(self.body))

    # --- RenderingSurface -------------------------------------------------

    def resolve_caret(self, point: Point) -> Optional[CaretPosition]:
        runs = self._render(self.body)
        lines = "".join(chunk for chunk, _ in runs).split("\n")
        if not runs or point.line < 0 or point.line >= len(lines) or point.column < 0:
            return None

        line_text = lines[point.line]
        offset = sum(len(line) + 1 for line in lines[:point.line]) + min(point.column, len(line_text))
        if not line_text:
            # Blank line: the caret lands on the enclosing block, not in text
            return CaretPosition(node=self._block_around(runs, offset), offset=0)

        position = 0
        end_match = None
        for chunk, node in runs:
            end = position + len(chunk)
            if node is not None:
                if position <= offset < end:
                    return CaretPosition(node=node, offset=offset - position)
                if offset == end:
                    end_match = CaretPosition(node=node, offset=len(chunk))
            position = end
        return end_match

    def _block_chain(self, node) -> List[Any]:
        """Block ancestors of a text node, innermost first."""
        chain = []
        block = self.find_block_ancestor(node) if node is not None else None
        while block is not None:
            chain.append(block)
            block = self.find_block_ancestor(block.getparent())
        return chain

    def _block_around(self, runs: List[Run], offset: int):
        """Innermost block containing the text on both sides of a grid offset."""
        before = after = None
        position = 0
        for chunk, node in runs:
            if node is not None:
                if position + len(chunk) <= offset:
                    before = node
                elif after is None:
                    after = node
            position += len(chunk)

        enclosing = self._block_chain(before)
        for block in self._block_chain(after):
            if any(block is candidate for candidate in enclosing):
                return block
        return self.body

    def flatten_block_text(self, node) -> Tuple[str, Any]:
        ancestor = self.find_block_ancestor(node)
        if ancestor is None:
            ancestor = self.body
        return self._flatten(ancestor), ancestor

    def _flatten(self, element) -> str:
        return "".join(chunk for chunk, _ in self._render(element))

    def is_text_node(self, node) -> bool:
        return isinstance(node, TextNode)

    def node_text(self, node) -> str:
        if isinstance(node, TextNode):
            return node.data
        return self._flatten(node)

    def caret_offset(self, ancestor, caret: CaretPosition) -> int:
        position = 0
        for chunk, node in self._render(ancestor):
            if node is not None and self._caret_in(node, caret.node):
                if isinstance(caret.node, TextNode):
                    return position + caret.offset
                return position
            position += len(chunk)
        return 0

    @staticmethod
    def _caret_in(run_node: TextNode, caret_node) -> bool:
        if isinstance(caret_node, TextNode):
            return run_node == caret_node
        # Element caret: first run inside the element's subtree
        element = run_node.parent
        while element is not None:
            if element is caret_node:
                return True
            element = element.getparent()
        return False


# ============================================================================
# Plain text surface
# ============================================================================

@dataclass(frozen=True)
class TextBlock:
    """One paragraph of a text buffer; both its own block and its text node."""
    index: int
    data: str


class TextBufferSurface(RenderingSurface):
    """Surface over plain paragraphs, one paragraph per grid line."""

    def __init__(self, paragraphs: List[str]):
        self.blocks = [TextBlock(index=i, data=text) for i, text in enumerate(paragraphs)]

    @classmethod
    def from_text(cls, text: str) -> "TextBufferSurface":
        return cls((text or "").split("\n"))

    def resolve_caret(self, point: Point) -> Optional[CaretPosition]:
        if point.line < 0 or point.line >= len(self.blocks) or point.column < 0:
            return None
        block = self.blocks[point.line]
        return CaretPosition(node=block, offset=min(point.column, len(block.data)))

    def flatten_block_text(self, node) -> Tuple[str, Any]:
        return node.data, node

    def is_text_node(self, node) -> bool:
        return isinstance(node, TextBlock)

    def node_text(self, node) -> str:
        return node.data

    def caret_offset(self, ancestor, caret: CaretPosition) -> int:
        return caret.offset if caret.node == ancestor else 0
