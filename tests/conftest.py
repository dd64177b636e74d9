"""Shared vocabulary fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tokforge.tokenizer.bert import BertTokenizer
from tokforge.tokenizer.gpt2 import Gpt2Tokenizer
from tokforge.tokenizer.vocab import BertVocab, BpePairVocab, Gpt2Vocab

# Small WordPiece vocabulary; the list index is the id.
WORDPIECE_TOKENS = [
    "[PAD]", "[UNK]", "[CLS]", "[SEP]", "[MASK]",
    "un", "##aff", "##able", "hello", "world",
    "!", ",", ".", "?", "'",
    "the", "cat", "##s", "sat", "on",
    "mat", "cafe", "中", "国", "is",
    "a", "test", "play", "##ing", "##ed",
]

# Ids of a standard uncased BERT vocabulary used by the pair-encoding
# scenario; every other line is an ``[unusedN]`` filler.
BERT_BASE_IDS = {
    "[PAD]": 0,
    "[UNK]": 100,
    "[CLS]": 101,
    "[SEP]": 102,
    "[MASK]": 103,
    ".": 1012,
    "?": 1029,
    "is": 2003,
    "an": 2019,
    "what": 2054,
    "american": 2137,
    "company": 2194,
    "technology": 2974,
    "google": 8224,
    "llc": 11775,
    "multinational": 20584,
}
BERT_BASE_SIZE = 30522

GPT2_VOCAB = {
    "<|endoftext|>": 0,
    "hello": 1,
    "Ġworld": 2,
    "Ġwor": 3,
    "ld": 4,
    "h": 5,
    "e": 6,
    "l": 7,
    "o": 8,
    "Ġ": 9,
    "w": 10,
    "r": 11,
    "d": 12,
    "!": 13,
}

GPT2_MERGES = [
    ("h", "e"),
    ("l", "l"),
    ("he", "ll"),
    ("hell", "o"),
    ("Ġ", "w"),
    ("o", "r"),
    ("Ġw", "or"),
    ("l", "d"),
    ("Ġwor", "ld"),
]


@pytest.fixture()
def wordpiece_vocab_path(tmp_path: Path) -> Path:
    path = tmp_path / "vocab.txt"
    path.write_text("\n".join(WORDPIECE_TOKENS) + "\n", encoding="utf-8")
    return path


@pytest.fixture()
def bert_tokenizer(wordpiece_vocab_path: Path) -> BertTokenizer:
    return BertTokenizer(BertVocab.from_file(wordpiece_vocab_path))


@pytest.fixture(scope="session")
def bert_base_vocab_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    by_id = {i: t for t, i in BERT_BASE_IDS.items()}
    lines = [by_id.get(i, f"[unused{i}]") for i in range(BERT_BASE_SIZE)]
    path = tmp_path_factory.mktemp("bert_base") / "vocab.txt"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture()
def gpt2_files(tmp_path: Path) -> tuple[Path, Path]:
    vocab_path = tmp_path / "vocab.json"
    vocab_path.write_text(json.dumps(GPT2_VOCAB), encoding="utf-8")
    merges_path = tmp_path / "merges.txt"
    merges_path.write_text(
        "#version: 0.2\n" + "\n".join(f"{a} {b}" for a, b in GPT2_MERGES) + "\n",
        encoding="utf-8",
    )
    return vocab_path, merges_path


@pytest.fixture()
def gpt2_tokenizer() -> Gpt2Tokenizer:
    return Gpt2Tokenizer(
        Gpt2Vocab.from_values(GPT2_VOCAB), BpePairVocab.from_merges(GPT2_MERGES)
    )
