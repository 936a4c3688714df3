"""
Unit tests for sentence segmentation.
"""

from smartcopy.core.chunking.sentences import (
    has_sentence_terminator,
    sentence_at,
    sentence_spans,
    split_sentences,
)


class TestSplitSentences:
    """Test delimiter-retaining sentence split."""

    def test_delimiter_stays_with_preceding_sentence(self):
        assert split_sentences("Hi there. Bye now!") == ["Hi there. ", "Bye now!"]

    def test_concatenation_reproduces_input(self):
        text = 'He said "stop!" Then left... Really?  Yes. '
        assert "".join(split_sentences(text)) == text

    def test_closing_quote_is_part_of_delimiter(self):
        assert split_sentences('She said "go." He went.') == ['She said "go." ', 'He went.']

    def test_terminator_without_whitespace_does_not_split(self):
        assert split_sentences("Version 2.5 is out") == ["Version 2.5 is out"]

    def test_empty_text(self):
        assert split_sentences("") == []

    def test_has_sentence_terminator(self):
        assert has_sentence_terminator("Done.")
        assert not has_sentence_terminator("no punctuation here")


class TestSentenceAt:
    """Test caret-offset sentence selection."""

    def test_offset_inside_second_sentence(self):
        text = "Hi there. Bye now!"
        assert sentence_at(text, text.index("Bye") + 1) == "Bye now!"

    def test_boundary_offset_belongs_to_sentence_ending_there(self):
        text = "Hi there. Bye now!"
        boundary = len("Hi there. ")
        assert sentence_at(text, boundary) == "Hi there. "

    def test_offset_past_end_has_no_sentence(self):
        assert sentence_at("One. Two.", 100) is None

    def test_spans_are_contiguous(self):
        spans = sentence_spans("A. B. C.")
        assert [s[0] for s in spans] == [0, 3, 6]
        assert spans[-1][1] == len("A. B. C.")
