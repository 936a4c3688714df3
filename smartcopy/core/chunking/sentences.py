"""
Sentence segmentation shared by the unit extractor and the chunk splitter.

Sentences keep their terminating punctuation and trailing whitespace, so
joining the segments reproduces the input text exactly.
"""

import re
from typing import List, Optional, Tuple


# A run of terminators, an optional closing quote, then whitespace
SENTENCE_DELIMITER_PATTERN = re.compile(r'([.!?]+["\']?\s+)')
TERMINATOR_PATTERN = re.compile(r'[.!?]')


def has_sentence_terminator(text: str) -> bool:
    """Check whether the text contains any sentence-ending punctuation."""
    return bool(TERMINATOR_PATTERN.search(text or ""))


def split_sentences(text: str) -> List[str]:
    """
    Split text into sentences, keeping delimiters with the preceding sentence.

    Args:
        text: Text to split

    Returns:
        Non-empty sentence strings whose concatenation equals `text`
    """
    if not text:
        return []

    # re.split with a capturing group alternates piece, delimiter, piece, ...
    parts = SENTENCE_DELIMITER_PATTERN.split(text)
    sentences = []
    for i in range(0, len(parts), 2):
        piece = parts[i]
        delimiter = parts[i + 1] if i + 1 < len(parts) else ""
        sentence = piece + delimiter
        if sentence:
            sentences.append(sentence)
    return sentences


def sentence_spans(text: str) -> List[Tuple[int, int, str]]:
    """Return `(start, end, sentence)` triples covering the text contiguously."""
    spans = []
    position = 0
    for sentence in split_sentences(text):
        end = position + len(sentence)
        spans.append((position, end, sentence))
        position = end
    return spans


def sentence_at(text: str, offset: int) -> Optional[str]:
    """
    Find the sentence containing a character offset.

    Bounds are closed on both sides, so an offset sitting exactly on a
    boundary belongs to the sentence that ends there.

    Args:
        text: Block text
        offset: Character offset within `text`

    Returns:
        The matching sentence (delimiter included), or None if no sentence
        contains the offset
    """
    for start, end, sentence in sentence_spans(text):
        if start <= offset <= end:
            return sentence
    return None
