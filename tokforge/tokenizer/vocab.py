"""Token <-> id vocabularies and the BPE merge-rank table.

A vocabulary is built once from a flat list (one token per line, the
line number is the id), a JSON object, or a Hugging Face
``tokenizer.json``, and is read-only afterwards so it can be shared by
any number of concurrent tokenization calls.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import ClassVar

from tokenizers import Tokenizer as HFTokenizer

from .constants import BERT_SPECIAL_TOKENS, GPT2_UNK_TOKEN, UNK_TOKEN
from .errors import (
    TokenNotFoundError,
    VocabularyFileNotFoundError,
    VocabularyParsingError,
)

logger = logging.getLogger("tokforge.vocab")


def _open_text(path: str | Path):
    try:
        return open(path, encoding="utf-8")
    except FileNotFoundError as exc:
        raise VocabularyFileNotFoundError(
            f"{path} vocabulary file not found: {exc}"
        ) from exc
    except OSError as exc:
        raise VocabularyFileNotFoundError(
            f"{path} vocabulary file could not be opened: {exc}"
        ) from exc


def read_flat_file(path: str | Path, allow_duplicates: bool = True) -> dict[str, int]:
    """Read a one-token-per-line file; the 0-based line number is the id.

    Lines are stripped of surrounding whitespace.  With
    ``allow_duplicates=False`` a repeated token is a parse error,
    otherwise the later line wins.
    """
    values: dict[str, int] = {}
    with _open_text(path) as f:
        try:
            for index, line in enumerate(f):
                word = line.strip()
                if not allow_duplicates and word in values:
                    raise VocabularyParsingError(
                        f"duplicate word {word!r} at line {index} "
                        f"(first seen at line {values[word]})"
                    )
                values[word] = index
        except UnicodeDecodeError as exc:
            raise VocabularyParsingError(f"{path}: {exc}") from exc
    return values


def read_json_file(path: str | Path) -> dict[str, int]:
    """Read a JSON object mapping token strings to integer ids."""
    with _open_text(path) as f:
        try:
            data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise VocabularyParsingError(f"{path}: {exc}") from exc
    if not isinstance(data, dict):
        raise VocabularyParsingError(
            f"{path}: expected a JSON object, got {type(data).__name__}"
        )
    for token, index in data.items():
        if not isinstance(index, int) or isinstance(index, bool):
            raise VocabularyParsingError(
                f"{path}: id for {token!r} must be an integer, got {index!r}"
            )
    return data


class Vocab(ABC):
    """Bidirectional token/id table with special-token registry.

    Subclasses fix the unknown token and the set of special tokens
    registered at construction time.
    """

    unknown_value: ClassVar[str] = UNK_TOKEN
    special_tokens: ClassVar[tuple[str, ...]] = (UNK_TOKEN,)

    def __init__(
        self,
        values: Mapping[str, int],
        special_tokens: Iterable[str] | None = None,
    ) -> None:
        self.values: dict[str, int] = dict(values)
        self.indices: dict[int, str] = {i: t for t, i in self.values.items()}
        if len(self.indices) != len(self.values):
            raise VocabularyParsingError(
                f"vocabulary maps {len(self.values)} tokens onto only "
                f"{len(self.indices)} distinct ids"
            )
        self.special_values: dict[str, int] = {}
        self.special_indices: dict[int, str] = {}
        self.register_as_special_value(self.unknown_value)
        for token in self.special_tokens if special_tokens is None else special_tokens:
            self.register_as_special_value(token)

    # ── Construction ───────────────────────────────────────────────

    @classmethod
    @abstractmethod
    def from_file(cls, path: str | Path) -> Vocab:
        ...

    @classmethod
    def from_values(cls, values: Mapping[str, int]) -> Vocab:
        """Build from an in-memory token -> id mapping."""
        return cls(values)

    @classmethod
    def from_tokenizer_json(cls, path: str | Path) -> Vocab:
        """Build from a Hugging Face ``tokenizer.json`` (added tokens included)."""
        if not Path(path).is_file():
            raise VocabularyFileNotFoundError(f"{path} vocabulary file not found")
        try:
            tokenizer = HFTokenizer.from_file(str(path))
        except Exception as exc:
            raise VocabularyParsingError(f"{path}: {exc}") from exc
        vocab = cls(tokenizer.get_vocab(with_added_tokens=True))
        logger.info("Loaded %s with %d tokens from %s", cls.__name__, len(vocab), path)
        return vocab

    # ── Special tokens ─────────────────────────────────────────────

    def register_as_special_value(self, token: str) -> None:
        """Mark an existing vocabulary entry as special.

        Raises
        ------
        TokenNotFoundError
            If *token* is not in the base vocabulary.
        """
        if token not in self.values:
            raise TokenNotFoundError(
                f"special token {token!r} not found in the vocabulary"
            )
        index = self.values[token]
        self.special_values[token] = index
        self.special_indices[index] = token

    @property
    def unknown_id(self) -> int:
        return self.values[self.unknown_value]

    # ── Lookup ─────────────────────────────────────────────────────

    def token_to_id(self, token: str) -> int:
        """Special id, else general id, else the unknown id."""
        index = self.special_values.get(token)
        if index is not None:
            return index
        index = self.values.get(token)
        if index is not None:
            return index
        return self.values[self.unknown_value]

    def id_to_token(self, index: int) -> str:
        """Special token, else general token, else the unknown string."""
        token = self.special_indices.get(index)
        if token is not None:
            return token
        return self.indices.get(index, self.unknown_value)

    def convert_tokens_to_ids(self, tokens: Iterable[str]) -> list[int]:
        return [self.token_to_id(t) for t in tokens]

    def __len__(self) -> int:
        return len(self.values)

    def __contains__(self, token: object) -> bool:
        return token in self.values


class BaseVocab(Vocab):
    """Flat-file vocabulary with ``[UNK]`` as the only special token."""

    @classmethod
    def from_file(cls, path: str | Path) -> BaseVocab:
        vocab = cls(read_flat_file(path))
        logger.info("Loaded %s with %d tokens from %s", cls.__name__, len(vocab), path)
        return vocab


class BertVocab(Vocab):
    """WordPiece vocabulary: ``[UNK] [PAD] [SEP] [CLS] [MASK]`` specials."""

    special_tokens = BERT_SPECIAL_TOKENS

    @classmethod
    def from_file(cls, path: str | Path) -> BertVocab:
        vocab = cls(read_flat_file(path, allow_duplicates=False))
        logger.info("Loaded %s with %d tokens from %s", cls.__name__, len(vocab), path)
        return vocab

    @property
    def pad_value(self) -> str:
        return BERT_SPECIAL_TOKENS[1]

    @property
    def sep_value(self) -> str:
        return BERT_SPECIAL_TOKENS[2]

    @property
    def cls_value(self) -> str:
        return BERT_SPECIAL_TOKENS[3]

    @property
    def mask_value(self) -> str:
        return BERT_SPECIAL_TOKENS[4]


class Gpt2Vocab(Vocab):
    """Byte-level vocabulary loaded from a JSON map.

    ``<|endoftext|>`` doubles as unknown, BOS and EOS marker.
    """

    unknown_value = GPT2_UNK_TOKEN
    special_tokens = (GPT2_UNK_TOKEN,)

    @classmethod
    def from_file(cls, path: str | Path) -> Gpt2Vocab:
        vocab = cls(read_json_file(path))
        logger.info("Loaded %s with %d tokens from %s", cls.__name__, len(vocab), path)
        return vocab

    @property
    def bos_value(self) -> str:
        return GPT2_UNK_TOKEN

    @property
    def eos_value(self) -> str:
        return GPT2_UNK_TOKEN


class BpePairVocab:
    """Merge-rank table: ``(left, right) -> rank``, lower merges earlier."""

    def __init__(self, values: Mapping[tuple[str, str], int]) -> None:
        self.values: dict[tuple[str, str], int] = dict(values)

    @classmethod
    def from_file(cls, path: str | Path) -> BpePairVocab:
        """Read a merges file.

        The first line is a header and is skipped.  Each following line
        with at least two space-separated fields takes the next rank;
        shorter lines are ignored.
        """
        values: dict[tuple[str, str], int] = {}
        rank = 0
        with _open_text(path) as f:
            try:
                next(f, None)
                for line in f:
                    parts = line.strip().split(" ")
                    if len(parts) > 1:
                        values[(parts[0], parts[1])] = rank
                        rank += 1
            except UnicodeDecodeError as exc:
                raise VocabularyParsingError(f"{path}: {exc}") from exc
        logger.info("Loaded %d merges from %s", len(values), path)
        return cls(values)

    @classmethod
    def from_merges(cls, merges: Iterable[tuple[str, str]]) -> BpePairVocab:
        return cls({pair: rank for rank, pair in enumerate(merges)})

    def byte_pair_to_id(self, left: str, right: str) -> int | None:
        return self.values.get((left, right))

    def __len__(self) -> int:
        return len(self.values)
