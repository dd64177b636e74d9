"""BERT-style WordPiece tokenizer."""

from __future__ import annotations

from pathlib import Path

from .base import BaseTokenizer
from .constants import CONTINUATION_PREFIX, MAX_WORD_LEN
from .tokens import (
    Mask,
    Token,
    TokenIdsWithOffsets,
    TokenIdsWithSpecialTokens,
    TokenRef,
)
from .vocab import BertVocab
from .wordpiece import tokenize_wordpiece


class BertTokenizer(BaseTokenizer):
    """Base pre-tokenization followed by WordPiece.

    Pairs are laid out as ``[CLS] A [SEP] B [SEP]``; the first three
    parts get segment id 0, ``B [SEP]`` segment id 1.
    """

    def __init__(
        self,
        vocab: BertVocab,
        lower_case: bool = True,
        strip_accents: bool = True,
        max_word_len: int = MAX_WORD_LEN,
    ) -> None:
        super().__init__(vocab, lower_case, strip_accents)
        self.max_word_len = max_word_len

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        lower_case: bool = True,
        strip_accents: bool = True,
    ) -> BertTokenizer:
        return cls(BertVocab.from_file(path), lower_case, strip_accents)

    @property
    def cls_id(self) -> int:
        return self._vocab.token_to_id(self._vocab.cls_value)

    @property
    def sep_id(self) -> int:
        return self._vocab.token_to_id(self._vocab.sep_value)

    @property
    def pad_id(self) -> int:
        return self._vocab.token_to_id(self._vocab.pad_value)

    @property
    def mask_id(self) -> int:
        return self._vocab.token_to_id(self._vocab.mask_value)

    @property
    def unk_id(self) -> int:
        return self._vocab.unknown_id

    def tokenize_to_tokens(self, initial_token: TokenRef) -> list[Token]:
        tokens: list[Token] = []
        for token in self.pretokenize(initial_token):
            if token.mask in (Mask.SPECIAL, Mask.UNKNOWN):
                tokens.append(token)
            else:
                tokens.extend(
                    tokenize_wordpiece(token.as_ref(), self._vocab, self.max_word_len)
                )
        return tokens

    def build_input_with_special_tokens(
        self,
        seq1: TokenIdsWithOffsets,
        seq2: TokenIdsWithOffsets | None = None,
    ) -> TokenIdsWithSpecialTokens:
        cls_id, sep_id = self.cls_id, self.sep_id
        out = TokenIdsWithSpecialTokens(
            token_ids=[cls_id, *seq1.ids, sep_id],
            segment_ids=[0] * (len(seq1) + 2),
            special_tokens_mask=[1, *([0] * len(seq1)), 1],
            token_offsets=[None, *seq1.offsets, None],
            reference_offsets=[[], *seq1.reference_offsets, []],
            mask=[Mask.SPECIAL, *seq1.masks, Mask.SPECIAL],
        )
        if seq2 is not None:
            out.token_ids.extend([*seq2.ids, sep_id])
            out.segment_ids.extend([1] * (len(seq2) + 1))
            out.special_tokens_mask.extend([*([0] * len(seq2)), 1])
            out.token_offsets.extend([*seq2.offsets, None])
            out.reference_offsets.extend([*seq2.reference_offsets, []])
            out.mask.extend([*seq2.masks, Mask.SPECIAL])
        return out

    def convert_tokens_to_string(self, tokens: list[str]) -> str:
        return " ".join(tokens).replace(" " + CONTINUATION_PREFIX, "").strip()
