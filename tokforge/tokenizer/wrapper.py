"""Fixed-length question/paragraph encoder producing model-ready arrays.

Wraps any :class:`~tokforge.tokenizer.base.Tokenizer` and pads every
encoding to ``max_len`` so the result can be fed straight to a
fixed-shape model input of ``(1, max_len)``.

Implements HF-compatible duck-typing (``__len__``, ``__call__``,
``get_vocab``, ``convert_tokens_to_ids``, ``convert_ids_to_tokens``) so
that code written against ``transformers`` tokenizers works without
requiring it as a dependency.

Usage::

    encoder = PairEncoder(BertTokenizer.from_file("vocab.txt"))
    out = encoder.encode("What is Google?", paragraph)
    out.input_ids.shape  # (1, 384)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import overload

import numpy as np

from .base import Tokenizer
from .constants import DEFAULT_MAX_LEN
from .tokens import TokenizedInput
from .truncation import TruncationStrategy


@dataclass(frozen=True)
class EncodedPair:
    """Padded encoder output for one question/paragraph pair."""

    input_ids: np.ndarray
    attention_mask: np.ndarray
    segment_ids: np.ndarray
    encoded_text: str
    tokenized: TokenizedInput

    @property
    def num_tokens(self) -> int:
        """Number of non-padding positions."""
        return len(self.tokenized)


def _as_text(value: str | bytes, label: str) -> str:
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8")
    value = value.rstrip("\x00")
    if not value:
        raise ValueError(f"{label} is empty")
    return value


class PairEncoder:
    """Encode text pairs into zero-padded ``int32`` arrays.

    Parameters
    ----------
    tokenizer
        Tokenizer providing the pair layout and vocabulary.
    max_len
        Output length; longer encodings are truncated with
        *truncation_strategy*.
    pad_id
        Id written into padded positions of ``input_ids``.
    """

    def __init__(
        self,
        tokenizer: Tokenizer,
        max_len: int = DEFAULT_MAX_LEN,
        truncation_strategy: TruncationStrategy | str = TruncationStrategy.LONGEST_FIRST,
        stride: int = 0,
        pad_id: int = 0,
    ) -> None:
        if max_len <= 0:
            raise ValueError(f"max_len must be positive, got {max_len}")
        self._tokenizer = tokenizer
        self.max_len = max_len
        self.truncation_strategy = TruncationStrategy(truncation_strategy)
        self.stride = stride
        self.pad_id = pad_id

    @property
    def inner(self) -> Tokenizer:
        """The wrapped tokenizer."""
        return self._tokenizer

    @property
    def vocab_size(self) -> int:
        return len(self._tokenizer.vocab)

    # ── Encoding ───────────────────────────────────────────────────

    def encode(self, question: str | bytes, paragraph: str | bytes) -> EncodedPair:
        """Encode one pair.

        Trailing NUL characters are stripped from both inputs first.

        Raises
        ------
        ValueError
            If either input is empty after stripping.
        TruncationError
            If the pair cannot be truncated to ``max_len``.
        """
        text_1 = _as_text(question, "Sentence 1")
        text_2 = _as_text(paragraph, "Sentence 2")
        tokenized = self._tokenizer.encode(
            text_1, text_2, self.max_len, self.truncation_strategy, self.stride
        )
        arrays = tokenized.to_numpy(pad_to=self.max_len, pad_id=self.pad_id)
        vocab = self._tokenizer.vocab
        encoded_text = "".join(
            vocab.id_to_token(int(i)) + "\n" for i in arrays["input_ids"]
        )
        return EncodedPair(
            input_ids=arrays["input_ids"].reshape(1, self.max_len),
            attention_mask=arrays["attention_mask"].reshape(1, self.max_len),
            segment_ids=arrays["segment_ids"].reshape(1, self.max_len),
            encoded_text=encoded_text,
            tokenized=tokenized,
        )

    def encode_batch(
        self, pairs: Sequence[tuple[str | bytes, str | bytes]]
    ) -> list[EncodedPair]:
        return [self.encode(q, p) for q, p in pairs]

    # ── HuggingFace-compatible interface ───────────────────────────

    def __len__(self) -> int:
        return self.vocab_size

    @overload
    def __call__(self, text: str, text_pair: str) -> dict[str, np.ndarray]: ...

    @overload
    def __call__(
        self, text: list[str], text_pair: list[str]
    ) -> dict[str, np.ndarray]: ...

    def __call__(
        self,
        text: str | list[str],
        text_pair: str | list[str],
    ) -> dict[str, np.ndarray]:
        """Encode a pair (or parallel lists of pairs) into stacked arrays.

        Returns ``input_ids``, ``attention_mask`` and ``token_type_ids``
        of shape ``(batch, max_len)``.
        """
        if isinstance(text, str):
            encoded = [self.encode(text, text_pair)]
        else:
            if len(text) != len(text_pair):
                raise ValueError(
                    f"text and text_pair lengths differ: {len(text)} vs {len(text_pair)}"
                )
            encoded = self.encode_batch(list(zip(text, text_pair)))
        return {
            "input_ids": np.concatenate([e.input_ids for e in encoded]),
            "attention_mask": np.concatenate([e.attention_mask for e in encoded]),
            "token_type_ids": np.concatenate([e.segment_ids for e in encoded]),
        }

    def get_vocab(self) -> dict[str, int]:
        return dict(self._tokenizer.vocab.values)

    def convert_tokens_to_ids(self, tokens: str | list[str]) -> int | list[int]:
        vocab = self._tokenizer.vocab
        if isinstance(tokens, str):
            return vocab.token_to_id(tokens)
        return vocab.convert_tokens_to_ids(tokens)

    def convert_ids_to_tokens(self, ids: int | list[int]) -> str | list[str]:
        vocab = self._tokenizer.vocab
        if isinstance(ids, int):
            return vocab.id_to_token(ids)
        return [vocab.id_to_token(i) for i in ids]

    def decode(self, ids: Sequence[int], skip_special_tokens: bool = True) -> str:
        """Decode ids; special tokens (BERT padding included) are dropped by default."""
        return self._tokenizer.decode(list(ids), skip_special_tokens=skip_special_tokens)
