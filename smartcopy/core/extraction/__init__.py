"""
Text unit extraction from rendered content.
"""
from .surface import RenderingSurface, HtmlSurface, TextBufferSurface, TextNode
from .extractor import UnitExtractor

__all__ = ['RenderingSurface', 'HtmlSurface', 'TextBufferSurface', 'TextNode', 'UnitExtractor']
