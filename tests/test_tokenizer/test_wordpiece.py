"""Tests for greedy longest-match WordPiece."""

from __future__ import annotations

from tokforge.tokenizer.tokens import Mask, Offset, Token, TokenRef
from tokforge.tokenizer.vocab import BertVocab
from tokforge.tokenizer.wordpiece import fix_mask, tokenize_wordpiece

_VALUES = {
    "[PAD]": 0, "[UNK]": 1, "[CLS]": 2, "[SEP]": 3, "[MASK]": 4,
    "un": 5, "##aff": 6, "##able": 7, "a": 8, "##a": 9, "aff": 10,
}


def _vocab() -> BertVocab:
    return BertVocab.from_values(_VALUES)


def _word(text: str, start: int = 0) -> TokenRef:
    return TokenRef(
        text=text,
        offset=Offset(start, start + len(text)),
        reference_offsets=tuple(range(start, start + len(text))),
    )


class TestWordPiece:
    def test_greedy_longest_match(self) -> None:
        tokens = tokenize_wordpiece(_word("unaffable"), _vocab())
        assert [t.text for t in tokens] == ["un", "##aff", "##able"]
        assert [t.mask for t in tokens] == [
            Mask.BEGIN, Mask.CONTINUATION, Mask.CONTINUATION
        ]
        assert [t.reference_offsets for t in tokens] == [
            [0, 1], [2, 3, 4], [5, 6, 7, 8]
        ]

    def test_offsets_shift_with_word_position(self) -> None:
        tokens = tokenize_wordpiece(_word("unaffable", start=10), _vocab())
        assert tokens[1].offset == Offset(12, 15)
        assert tokens[2].reference_offsets == [15, 16, 17, 18]

    def test_single_piece_keeps_parent_mask(self) -> None:
        tokens = tokenize_wordpiece(_word("aff"), _vocab())
        assert [t.text for t in tokens] == ["aff"]
        assert tokens[0].mask is Mask.NONE

    def test_repeated_continuations(self) -> None:
        tokens = tokenize_wordpiece(_word("aaa"), _vocab())
        assert [t.text for t in tokens] == ["a", "##a", "##a"]

    def test_unmatched_remainder_is_all_or_nothing(self) -> None:
        tokens = tokenize_wordpiece(_word("unaffx", start=3), _vocab())
        assert len(tokens) == 1
        assert tokens[0].text == "[UNK]"
        assert tokens[0].mask is Mask.UNKNOWN
        assert tokens[0].offset == Offset(3, 9)
        assert tokens[0].reference_offsets == [3, 4, 5, 6, 7, 8]

    def test_word_too_long(self) -> None:
        tokens = tokenize_wordpiece(_word("unaffable"), _vocab(), max_word_len=5)
        assert [t.text for t in tokens] == ["[UNK]"]


class TestFixMask:
    def test_none_before_continuation_becomes_begin(self) -> None:
        tokens = [
            Token("a", Offset(0, 1), [0], Mask.NONE),
            Token("##b", Offset(1, 2), [1], Mask.CONTINUATION),
            Token("c", Offset(3, 4), [3], Mask.NONE),
        ]
        fix_mask(tokens)
        assert [t.mask for t in tokens] == [Mask.BEGIN, Mask.CONTINUATION, Mask.NONE]

    def test_other_masks_untouched(self) -> None:
        tokens = [
            Token(",", Offset(0, 1), [0], Mask.PUNCTUATION),
            Token("##b", Offset(1, 2), [1], Mask.CONTINUATION),
        ]
        fix_mask(tokens)
        assert tokens[0].mask is Mask.PUNCTUATION
