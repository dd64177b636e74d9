"""Tests for the WordPiece tokenizer pipeline, pair encoding and decoding."""

from __future__ import annotations

from pathlib import Path

import pytest

from tokforge.tokenizer.base import BaseTokenizer
from tokforge.tokenizer.bert import BertTokenizer
from tokforge.tokenizer.errors import TruncationError
from tokforge.tokenizer.tokens import Mask, Offset
from tokforge.tokenizer.truncation import TruncationStrategy
from tokforge.tokenizer.vocab import BaseVocab, BertVocab


class TestBertTokenize:
    def test_punctuation_split(self, bert_tokenizer: BertTokenizer) -> None:
        result = bert_tokenizer.tokenize_with_offsets("Hello, world!")
        assert result.tokens == ["hello", ",", "world", "!"]
        assert result.offsets == [Offset(0, 5), Offset(5, 6), Offset(7, 12), Offset(12, 13)]
        assert result.masks == [Mask.NONE, Mask.PUNCTUATION, Mask.NONE, Mask.PUNCTUATION]

    def test_wordpiece_split(self, bert_tokenizer: BertTokenizer) -> None:
        result = bert_tokenizer.tokenize_with_offsets("unaffable")
        assert result.tokens == ["un", "##aff", "##able"]
        assert result.masks == [Mask.BEGIN, Mask.CONTINUATION, Mask.CONTINUATION]
        assert result.offsets == [Offset(0, 2), Offset(2, 5), Offset(5, 9)]

    def test_unknown_word_keeps_span(self, bert_tokenizer: BertTokenizer) -> None:
        result = bert_tokenizer.tokenize_with_offsets("the xyzzy")
        assert result.tokens == ["the", "[UNK]"]
        assert result.offsets[1] == Offset(4, 9)
        assert result.masks[1] is Mask.UNKNOWN

    def test_accents_and_case(self, bert_tokenizer: BertTokenizer) -> None:
        result = bert_tokenizer.tokenize_with_offsets("Café")
        assert result.tokens == ["cafe"]
        assert result.offsets == [Offset(0, 4)]

    def test_cjk_chars_split(self, bert_tokenizer: BertTokenizer) -> None:
        result = bert_tokenizer.tokenize_with_offsets("中国")
        assert result.tokens == ["中", "国"]
        assert result.masks == [Mask.CJK, Mask.CJK]
        assert result.offsets == [Offset(0, 1), Offset(1, 2)]

    def test_special_tokens_survive(self, bert_tokenizer: BertTokenizer) -> None:
        result = bert_tokenizer.tokenize_with_offsets("hello [SEP] World[MASK]")
        assert result.tokens == ["hello", "[SEP]", "world", "[MASK]"]
        assert result.masks[1] is Mask.SPECIAL
        assert result.masks[3] is Mask.SPECIAL
        assert result.offsets[1] == Offset(6, 11)

    def test_unknown_marker_in_text(self, bert_tokenizer: BertTokenizer) -> None:
        result = bert_tokenizer.tokenize_with_offsets("a [UNK] test")
        assert result.tokens == ["a", "[UNK]", "test"]
        assert result.masks[1] is Mask.UNKNOWN

    def test_control_chars_removed_offsets_exact(self, bert_tokenizer: BertTokenizer) -> None:
        result = bert_tokenizer.tokenize_with_offsets("hel\x00lo")
        assert result.tokens == ["hello"]
        assert result.offsets == [Offset(0, 6)]
        assert result.reference_offsets == [[0, 1, 2, 4, 5]]

    def test_control_only_word_dropped(self, bert_tokenizer: BertTokenizer) -> None:
        assert bert_tokenizer.tokenize("the \x01\x02 cat") == ["the", "cat"]

    @pytest.mark.parametrize("text", ["", "   ", "\n\t "])
    def test_empty_input(self, bert_tokenizer: BertTokenizer, text: str) -> None:
        result = bert_tokenizer.tokenize_with_offsets(text)
        assert result.tokens == []
        assert len(result) == 0

    def test_offsets_point_into_input(self, bert_tokenizer: BertTokenizer) -> None:
        text = "  The cats sat, on the MAT!  "
        result = bert_tokenizer.tokenize_with_offsets(text)
        assert result.tokens == ["the", "cat", "##s", "sat", ",", "on", "the", "mat", "!"]
        for token, offset in zip(result.tokens, result.offsets):
            assert offset is not None
            assert text[offset.begin:offset.end].lower().endswith(token.lstrip("#"))

    def test_max_word_len(self, wordpiece_vocab_path: Path) -> None:
        tokenizer = BertTokenizer(BertVocab.from_file(wordpiece_vocab_path), max_word_len=5)
        assert tokenizer.tokenize("unaffable hello") == ["[UNK]", "hello"]

    def test_case_preserved_without_lowercasing(self, wordpiece_vocab_path: Path) -> None:
        tokenizer = BertTokenizer(
            BertVocab.from_file(wordpiece_vocab_path), lower_case=False
        )
        assert tokenizer.tokenize("Hello hello") == ["[UNK]", "hello"]

    def test_accents_kept_when_disabled(self, wordpiece_vocab_path: Path) -> None:
        tokenizer = BertTokenizer(
            BertVocab.from_file(wordpiece_vocab_path), strip_accents=False
        )
        assert tokenizer.tokenize("café cafe") == ["[UNK]", "cafe"]

    def test_list_variants_keep_order(self, bert_tokenizer: BertTokenizer) -> None:
        texts = ["hello", "the cat", "world!"] * 5
        expected = [bert_tokenizer.tokenize(t) for t in texts]
        assert bert_tokenizer.tokenize_list(texts, num_workers=4) == expected
        with_offsets = bert_tokenizer.tokenize_list_with_offsets(texts, num_workers=4)
        assert [r.tokens for r in with_offsets] == expected


class TestBaseTokenizer:
    def test_no_subword_split(self, wordpiece_vocab_path: Path) -> None:
        tokenizer = BaseTokenizer(BaseVocab.from_file(wordpiece_vocab_path))
        result = tokenizer.tokenize_with_offsets("Unaffable, world")
        assert result.tokens == ["unaffable", ",", "world"]
        assert tokenizer.convert_tokens_to_ids(result.tokens) == [1, 11, 9]

    def test_from_file(self, wordpiece_vocab_path: Path) -> None:
        tokenizer = BaseTokenizer.from_file(wordpiece_vocab_path, lower_case=False)
        assert tokenizer.tokenize("Hello") == ["Hello"]
        assert len(tokenizer) == 30


class TestBertEncode:
    def test_single_sequence(self, bert_tokenizer: BertTokenizer) -> None:
        encoded = bert_tokenizer.encode("hello world", max_len=20)
        assert encoded.token_ids == [2, 8, 9, 3]
        assert encoded.segment_ids == [0, 0, 0, 0]
        assert encoded.special_tokens_mask == [1, 0, 0, 1]
        assert encoded.token_offsets == [None, Offset(0, 5), Offset(6, 11), None]
        assert encoded.reference_offsets[0] == []
        assert encoded.mask == [Mask.SPECIAL, Mask.NONE, Mask.NONE, Mask.SPECIAL]
        assert encoded.num_truncated_tokens == 0
        assert encoded.overflowing_tokens == []

    def test_pair_layout(self, bert_tokenizer: BertTokenizer) -> None:
        encoded = bert_tokenizer.encode("hello", "world", max_len=20)
        assert encoded.token_ids == [2, 8, 3, 9, 3]
        assert encoded.segment_ids == [0, 0, 0, 1, 1]
        assert encoded.special_tokens_mask == [1, 0, 1, 0, 1]
        # offsets of the second text are relative to that text
        assert encoded.token_offsets[3] == Offset(0, 5)

    def test_pair_truncated_longest_first(self, bert_tokenizer: BertTokenizer) -> None:
        encoded = bert_tokenizer.encode("the cat sat on the mat", "hello", max_len=5)
        assert len(encoded) == 5
        assert encoded.token_ids == [2, 15, 3, 8, 3]
        assert encoded.num_truncated_tokens == 5
        assert encoded.overflowing_tokens == [16, 18, 19, 15, 20]

    def test_only_second_strategy(self, bert_tokenizer: BertTokenizer) -> None:
        encoded = bert_tokenizer.encode(
            "hello", "the cat sat", max_len=6,
            truncation_strategy=TruncationStrategy.ONLY_SECOND,
        )
        assert encoded.token_ids == [2, 8, 3, 15, 16, 3]
        assert encoded.overflowing_tokens == [18]

    def test_single_sequence_only_second_fails(self, bert_tokenizer: BertTokenizer) -> None:
        with pytest.raises(TruncationError):
            bert_tokenizer.encode("the cat sat on the mat", max_len=4, truncation_strategy="only_second")

    def test_do_not_truncate_fails_when_too_long(self, bert_tokenizer: BertTokenizer) -> None:
        with pytest.raises(TruncationError):
            bert_tokenizer.encode("the cat sat", "hello", max_len=4, truncation_strategy="do_not_truncate")

    def test_do_not_truncate_fits(self, bert_tokenizer: BertTokenizer) -> None:
        encoded = bert_tokenizer.encode("the cat", max_len=4, truncation_strategy="do_not_truncate")
        assert encoded.token_ids == [2, 15, 16, 3]

    def test_empty_text_still_gets_markers(self, bert_tokenizer: BertTokenizer) -> None:
        assert bert_tokenizer.encode("", max_len=8).token_ids == [2, 3]

    def test_encode_list_order(self, bert_tokenizer: BertTokenizer) -> None:
        texts = ["hello", "world", "the cat", "unaffable"] * 3
        serial = [bert_tokenizer.encode(t, max_len=8).token_ids for t in texts]
        parallel = bert_tokenizer.encode_list(texts, max_len=8, num_workers=3)
        assert [e.token_ids for e in parallel] == serial

    def test_encode_pair_list(self, bert_tokenizer: BertTokenizer) -> None:
        pairs = [("hello", "world"), ("the cat", "sat on the mat")]
        encoded = bert_tokenizer.encode_pair_list(pairs, max_len=7, num_workers=2)
        assert encoded[0].token_ids == [2, 8, 3, 9, 3]
        assert len(encoded[1]) == 7

    def test_special_ids(self, bert_tokenizer: BertTokenizer) -> None:
        assert bert_tokenizer.cls_id == 2
        assert bert_tokenizer.sep_id == 3
        assert bert_tokenizer.pad_id == 0
        assert bert_tokenizer.mask_id == 4
        assert bert_tokenizer.unk_id == 1
        assert bert_tokenizer.vocab_size == 30


class TestBertDecode:
    def test_joins_continuations(self, bert_tokenizer: BertTokenizer) -> None:
        ids = bert_tokenizer.encode("unaffable cats", max_len=10).token_ids
        assert bert_tokenizer.decode(ids, skip_special_tokens=True) == "unaffable cats"

    def test_keeps_special_tokens_by_default(self, bert_tokenizer: BertTokenizer) -> None:
        assert bert_tokenizer.decode([2, 8, 3]) == "[CLS] hello [SEP]"

    def test_cleans_up_punctuation_spacing(self, bert_tokenizer: BertTokenizer) -> None:
        ids = bert_tokenizer.convert_tokens_to_ids(["hello", ",", "world", "!"])
        assert bert_tokenizer.decode(ids) == "hello, world!"
        assert (
            bert_tokenizer.decode(ids, clean_up_tokenization_spaces=False)
            == "hello , world !"
        )

    def test_decode_list(self, bert_tokenizer: BertTokenizer) -> None:
        assert bert_tokenizer.decode_list([[8], [9, 10]]) == ["hello", "world!"]

    def test_convert_ids_to_tokens(self, bert_tokenizer: BertTokenizer) -> None:
        assert bert_tokenizer.convert_ids_to_tokens([5, 6, 7, 999]) == [
            "un", "##aff", "##able", "[UNK]"
        ]


class TestHuggingFaceParity:
    def test_matches_bert_wordpiece(self, bert_base_vocab_path: Path) -> None:
        from tokenizers import BertWordPieceTokenizer

        hf = BertWordPieceTokenizer.from_file(str(bert_base_vocab_path), lowercase=True)
        ours = BertTokenizer.from_file(bert_base_vocab_path)
        question = "What is Google?"
        paragraph = "Google LLC is an American multinational technology company."
        expected = hf.encode(question, paragraph)
        encoded = ours.encode(question, paragraph)
        assert encoded.token_ids == expected.ids
        assert encoded.segment_ids == expected.type_ids
