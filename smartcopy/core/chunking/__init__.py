"""
Chunking module for text processing.

Provides sentence segmentation and length-bounded splitting for translation.
"""
from smartcopy.core.chunking.sentences import split_sentences, sentence_at, sentence_spans
from smartcopy.core.chunking.splitter import split_to_chunks

__all__ = ['split_sentences', 'sentence_at', 'sentence_spans', 'split_to_chunks']
