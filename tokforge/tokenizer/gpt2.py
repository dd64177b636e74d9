"""GPT-2 byte-level BPE tokenizer."""

from __future__ import annotations

from pathlib import Path

import regex

from .base import Tokenizer
from .bpe import BpeCache, bpe, split_on_bpe_pairs, unicode_to_bytes
from .constants import BPE_LOOKAHEAD_PATTERN, BPE_TOKEN_PATTERN
from .pretokenize import lowercase, split_on_regex_with_lookahead, split_on_special_tokens
from .tokens import Mask, Token, TokenRef
from .vocab import BpePairVocab, Gpt2Vocab
from .wordpiece import fix_mask


class Gpt2Tokenizer(Tokenizer):
    """Special-token split, optional lowercasing, regex pre-tokenization,
    then byte-level BPE over the merge table.

    Decompositions are memoized in a per-instance :class:`BpeCache`.
    """

    def __init__(
        self,
        vocab: Gpt2Vocab,
        merges: BpePairVocab,
        lower_case: bool = False,
    ) -> None:
        super().__init__(vocab)
        self.merges = merges
        self.lower_case = lower_case
        self.cache = BpeCache()
        self.pattern_lookahead = regex.compile(BPE_LOOKAHEAD_PATTERN)
        self.pattern_tokenization = regex.compile(BPE_TOKEN_PATTERN)

    @classmethod
    def from_file(
        cls,
        vocab_path: str | Path,
        merges_path: str | Path,
        lower_case: bool = False,
    ) -> Gpt2Tokenizer:
        return cls(
            Gpt2Vocab.from_file(vocab_path),
            BpePairVocab.from_file(merges_path),
            lower_case,
        )

    @property
    def eos_id(self) -> int:
        return self._vocab.token_to_id(self._vocab.eos_value)

    @property
    def bos_id(self) -> int:
        return self._vocab.token_to_id(self._vocab.bos_value)

    def tokenize_to_tokens(self, initial_token: TokenRef) -> list[Token]:
        sub_tokens: list[Token] = []
        for span in split_on_special_tokens(initial_token, self._vocab):
            token = span.to_owned()
            if token.mask in (Mask.SPECIAL, Mask.UNKNOWN):
                sub_tokens.append(token)
                continue
            if self.lower_case:
                lowercase(token)
            for word in split_on_regex_with_lookahead(
                token.as_ref(), self.pattern_lookahead, self.pattern_tokenization
            ):
                sub_tokens.extend(
                    split_on_bpe_pairs(word, bpe, self.merges, self.cache, as_bytes=True)
                )
        fix_mask(sub_tokens)
        return sub_tokens

    def convert_tokens_to_string(self, tokens: list[str]) -> str:
        byte_map = unicode_to_bytes()
        data = bytearray()
        for char in "".join(tokens):
            if char in byte_map:
                data.append(byte_map[char])
            else:
                # outside the byte alphabet, e.g. special markers
                data.extend(char.encode("utf-8"))
        return data.decode("utf-8", errors="replace")
