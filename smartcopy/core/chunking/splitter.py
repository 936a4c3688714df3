"""
Length-bounded text splitting for translation requests.

Splits long text into chunks that fit an upstream request-size limit while
keeping sentences whole wherever a sentence fits inside the limit.
"""

import logging
from typing import List, Optional

from smartcopy.config import CHUNK_MAX
from smartcopy.core.exceptions import ConfigurationError
from smartcopy.core.models import Chunk
from .sentences import has_sentence_terminator, split_sentences

logger = logging.getLogger(__name__)


def split_to_chunks(text: str, max_len: Optional[int] = None) -> List[Chunk]:
    """
    Partition text into ordered chunks of at most `max_len` characters.

    Args:
        text: Text to split (may be empty)
        max_len: Maximum chunk length in characters (default: CHUNK_MAX)

    Returns:
        Ordered, never-empty list of Chunk objects

    Behavior:
        1. Text that already fits is returned as a single chunk
        2. Text without any sentence terminator is hard-split every `max_len` characters
        3. Otherwise sentences are accumulated greedily; the buffer is flushed
           when the next sentence would not fit
        4. A single sentence longer than `max_len` is hard-split on its own

    Guarantees:
        - Concatenating the chunk texts reproduces the input exactly
        - Every chunk is at most `max_len` characters long
        - Chunk indices are contiguous starting at 0
    """
    if max_len is None:
        max_len = CHUNK_MAX
    if max_len < 1:
        raise ConfigurationError(f"max_len must be >= 1, got {max_len}", {'max_len': max_len})

    text = text or ""
    if len(text) <= max_len:
        return [Chunk(text=text, index=0)]

    if not has_sentence_terminator(text):
        pieces = _hard_split(text, max_len)
    else:
        pieces = _accumulate_sentences(split_sentences(text), max_len)

    chunks = [Chunk(text=piece, index=i) for i, piece in enumerate(pieces)]
    logger.debug(f"Split {len(text)} chars into {len(chunks)} chunks (max_len={max_len})")
    return chunks


def _accumulate_sentences(sentences: List[str], max_len: int) -> List[str]:
    """Greedily pack sentences into pieces no longer than `max_len`."""
    pieces: List[str] = []
    buffer = ""

    for sentence in sentences:
        if len(buffer) + len(sentence) <= max_len:
            buffer += sentence
            continue

        if buffer:
            pieces.append(buffer)
        buffer = sentence

        # Degenerate case: one unbroken sentence longer than the limit
        if len(buffer) > max_len:
            pieces.extend(_hard_split(buffer, max_len))
            buffer = ""

    if buffer:
        pieces.append(buffer)
    return pieces


def _hard_split(text: str, max_len: int) -> List[str]:
    """Cut text at fixed `max_len` boundaries."""
    return [text[i:i + max_len] for i in range(0, len(text), max_len)]
