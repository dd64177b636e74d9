"""Tokenizer interface, sequence encoder and the plain (non-subword) tokenizer.

Every tokenizer turns a string into owned :class:`Token` objects via
:meth:`Tokenizer.tokenize_to_tokens`; everything else (offsets, id
conversion, pair assembly, truncation, decoding, batching) is shared
here.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TypeVar

from .constants import CLEAN_UP_REPLACEMENTS, DEFAULT_MAX_LEN
from .pretokenize import (
    clean_text,
    lowercase,
    split_on_punct,
    split_on_special_tokens,
    strip_accents,
    tokenize_cjk_chars,
    whitespace_tokenize,
)
from .tokens import (
    Mask,
    Offset,
    Token,
    TokenIdsWithOffsets,
    TokenIdsWithSpecialTokens,
    TokenizedInput,
    TokenRef,
    TokensWithOffsets,
)
from .truncation import TruncationStrategy, truncate_sequences
from .vocab import BaseVocab, Vocab

logger = logging.getLogger("tokforge.encode")

_T = TypeVar("_T")
_R = TypeVar("_R")


def _parallel_map(
    fn: Callable[[_T], _R], items: Sequence[_T], num_workers: int | None
) -> list[_R]:
    # Results are collected by input index regardless of completion order.
    if not num_workers or num_workers <= 1 or len(items) <= 1:
        return [fn(item) for item in items]
    with ThreadPoolExecutor(max_workers=num_workers) as pool:
        return list(pool.map(fn, items))


class Tokenizer(ABC):
    """Common tokenization and encoding API.

    Subclasses provide :meth:`tokenize_to_tokens` and, where the model
    format needs them, :meth:`build_input_with_special_tokens` and
    :meth:`convert_tokens_to_string`.  The vocabulary is shared
    read-only, so one instance may serve concurrent calls.
    """

    def __init__(self, vocab: Vocab) -> None:
        self._vocab = vocab

    @property
    def vocab(self) -> Vocab:
        return self._vocab

    @property
    def vocab_size(self) -> int:
        return len(self._vocab)

    # ── Tokenization ───────────────────────────────────────────────

    @abstractmethod
    def tokenize_to_tokens(self, initial_token: TokenRef) -> list[Token]:
        """Run the full pipeline on a top-level span."""

    def tokenize(self, text: str) -> list[str]:
        return self.tokenize_with_offsets(text).tokens

    def tokenize_with_offsets(self, text: str) -> TokensWithOffsets:
        """Tokenize *text*, keeping every token's span in the original string.

        Empty or whitespace-only input yields an empty result.
        """
        if not text.strip():
            return TokensWithOffsets()
        initial = TokenRef.new(text, range(len(text)))
        result = TokensWithOffsets()
        for token in self.tokenize_to_tokens(initial):
            result.tokens.append(token.text)
            if token.reference_offsets:
                result.offsets.append(
                    Offset(token.reference_offsets[0], token.reference_offsets[-1] + 1)
                )
            else:
                result.offsets.append(None)
            result.reference_offsets.append(list(token.reference_offsets))
            result.masks.append(token.mask)
        return result

    def tokenize_list(
        self, texts: Sequence[str], num_workers: int | None = None
    ) -> list[list[str]]:
        return _parallel_map(self.tokenize, texts, num_workers)

    def tokenize_list_with_offsets(
        self, texts: Sequence[str], num_workers: int | None = None
    ) -> list[TokensWithOffsets]:
        return _parallel_map(self.tokenize_with_offsets, texts, num_workers)

    # ── Ids ────────────────────────────────────────────────────────

    def convert_tokens_to_ids(self, tokens: Sequence[str]) -> list[int]:
        return self._vocab.convert_tokens_to_ids(tokens)

    def convert_ids_to_tokens(self, ids: Sequence[int]) -> list[str]:
        return [self._vocab.id_to_token(i) for i in ids]

    def _encode_sequence(self, text: str) -> TokenIdsWithOffsets:
        tokens = self.tokenize_with_offsets(text)
        return TokenIdsWithOffsets(
            ids=self.convert_tokens_to_ids(tokens.tokens),
            offsets=tokens.offsets,
            reference_offsets=tokens.reference_offsets,
            masks=tokens.masks,
        )

    # ── Encoding ───────────────────────────────────────────────────

    def build_input_with_special_tokens(
        self,
        seq1: TokenIdsWithOffsets,
        seq2: TokenIdsWithOffsets | None = None,
    ) -> TokenIdsWithSpecialTokens:
        """Concatenate one or two sequences; segment ids 0 then 1, no markers."""
        out = TokenIdsWithSpecialTokens(
            token_ids=list(seq1.ids),
            segment_ids=[0] * len(seq1),
            special_tokens_mask=[0] * len(seq1),
            token_offsets=list(seq1.offsets),
            reference_offsets=list(seq1.reference_offsets),
            mask=list(seq1.masks),
        )
        if seq2 is not None:
            out.token_ids.extend(seq2.ids)
            out.segment_ids.extend([1] * len(seq2))
            out.special_tokens_mask.extend([0] * len(seq2))
            out.token_offsets.extend(seq2.offsets)
            out.reference_offsets.extend(seq2.reference_offsets)
            out.mask.extend(seq2.masks)
        return out

    def encode(
        self,
        text_1: str,
        text_2: str | None = None,
        max_len: int = DEFAULT_MAX_LEN,
        truncation_strategy: TruncationStrategy | str = TruncationStrategy.LONGEST_FIRST,
        stride: int = 0,
    ) -> TokenizedInput:
        """Encode a text (or pair) into model input.

        The number of special-token slots is measured by assembling empty
        sequences of the same shape, the sequences are truncated to fit
        *max_len*, then assembled.

        Raises
        ------
        TruncationError
            If the requested truncation cannot be performed.
        """
        seq1 = self._encode_sequence(text_1)
        seq2 = self._encode_sequence(text_2) if text_2 is not None else None

        num_special = len(
            self.build_input_with_special_tokens(
                TokenIdsWithOffsets(),
                TokenIdsWithOffsets() if seq2 is not None else None,
            ).token_ids
        )
        total_len = len(seq1) + (len(seq2) if seq2 is not None else 0) + num_special
        num_truncated_tokens = max(0, total_len - max_len)

        seq1, seq2, overflowing_tokens, _ = truncate_sequences(
            seq1, seq2, num_truncated_tokens, truncation_strategy, stride
        )
        merged = self.build_input_with_special_tokens(seq1, seq2)
        return TokenizedInput(
            token_ids=merged.token_ids,
            segment_ids=merged.segment_ids,
            special_tokens_mask=merged.special_tokens_mask,
            overflowing_tokens=overflowing_tokens,
            num_truncated_tokens=num_truncated_tokens,
            token_offsets=merged.token_offsets,
            reference_offsets=merged.reference_offsets,
            mask=merged.mask,
        )

    def encode_list(
        self,
        texts: Sequence[str],
        max_len: int = DEFAULT_MAX_LEN,
        truncation_strategy: TruncationStrategy | str = TruncationStrategy.LONGEST_FIRST,
        stride: int = 0,
        num_workers: int | None = None,
    ) -> list[TokenizedInput]:
        """Encode each text independently; output order follows *texts*."""
        return _parallel_map(
            lambda text: self.encode(text, None, max_len, truncation_strategy, stride),
            texts,
            num_workers,
        )

    def encode_pair_list(
        self,
        pairs: Sequence[tuple[str, str]],
        max_len: int = DEFAULT_MAX_LEN,
        truncation_strategy: TruncationStrategy | str = TruncationStrategy.LONGEST_FIRST,
        stride: int = 0,
        num_workers: int | None = None,
    ) -> list[TokenizedInput]:
        return _parallel_map(
            lambda pair: self.encode(pair[0], pair[1], max_len, truncation_strategy, stride),
            pairs,
            num_workers,
        )

    # ── Decoding ───────────────────────────────────────────────────

    def convert_tokens_to_string(self, tokens: Sequence[str]) -> str:
        return " ".join(tokens)

    @staticmethod
    def clean_up_tokenization(text: str) -> str:
        """Undo tokenizer spacing around punctuation and contractions."""
        for old, new in CLEAN_UP_REPLACEMENTS:
            text = text.replace(old, new)
        return text

    def decode(
        self,
        token_ids: Sequence[int],
        skip_special_tokens: bool = False,
        clean_up_tokenization_spaces: bool = True,
    ) -> str:
        tokens = [
            self._vocab.id_to_token(i)
            for i in token_ids
            if not (skip_special_tokens and i in self._vocab.special_indices)
        ]
        text = self.convert_tokens_to_string(tokens)
        if clean_up_tokenization_spaces:
            text = self.clean_up_tokenization(text)
        return text

    def decode_list(
        self,
        batch: Sequence[Sequence[int]],
        skip_special_tokens: bool = False,
        clean_up_tokenization_spaces: bool = True,
    ) -> list[str]:
        return [
            self.decode(ids, skip_special_tokens, clean_up_tokenization_spaces)
            for ids in batch
        ]

    def __len__(self) -> int:
        return len(self._vocab)


class BaseTokenizer(Tokenizer):
    """Whitespace/special/punctuation/CJK splitting with per-token cleanup.

    No subword splitting: every surviving span is looked up as a whole.
    """

    def __init__(
        self,
        vocab: Vocab,
        lower_case: bool = True,
        strip_accents: bool = True,
    ) -> None:
        super().__init__(vocab)
        self.lower_case = lower_case
        self.strip_accents = strip_accents

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        lower_case: bool = True,
        strip_accents: bool = True,
    ) -> BaseTokenizer:
        return cls(BaseVocab.from_file(path), lower_case, strip_accents)

    def pretokenize(self, initial_token: TokenRef) -> list[Token]:
        """Split and clean *initial_token* into word-level tokens."""
        spans: list[TokenRef] = []
        for token in whitespace_tokenize(initial_token):
            for special in split_on_special_tokens(token, self._vocab):
                for punct in split_on_punct(special):
                    spans.extend(tokenize_cjk_chars(punct))

        tokens: list[Token] = []
        for span in spans:
            token = span.to_owned()
            if token.mask not in (Mask.SPECIAL, Mask.UNKNOWN):
                clean_text(token, strict=True)
                if self.lower_case:
                    lowercase(token)
                if self.strip_accents:
                    strip_accents(token)
            if token.text:
                tokens.append(token)
        return tokens

    def tokenize_to_tokens(self, initial_token: TokenRef) -> list[Token]:
        return self.pretokenize(initial_token)
