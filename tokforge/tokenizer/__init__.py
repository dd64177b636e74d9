"""Subword tokenization engine.

WordPiece (BERT) and byte-level BPE (GPT-2) tokenizers with exact
character-offset tracking, a sequence-pair encoder with four truncation
strategies, and a fixed-length pair encoder producing numpy arrays.
"""

from __future__ import annotations

from .base import BaseTokenizer, Tokenizer
from .bert import BertTokenizer
from .bpe import BpeCache, bpe
from .config import TokenizerConfig
from .errors import (
    TokenizerError,
    TokenNotFoundError,
    TruncationError,
    VocabularyError,
    VocabularyFileNotFoundError,
    VocabularyParsingError,
)
from .gpt2 import Gpt2Tokenizer
from .tokenizer import load_tokenizer
from .tokens import (
    Mask,
    Offset,
    Token,
    TokenIdsWithOffsets,
    TokenizedInput,
    TokenRef,
    TokensWithOffsets,
)
from .truncation import TruncationStrategy, truncate_sequences
from .validation import ValidationReport, validate_tokenizer
from .vocab import BaseVocab, BertVocab, BpePairVocab, Gpt2Vocab, Vocab
from .wrapper import EncodedPair, PairEncoder

__all__ = [
    "BaseTokenizer",
    "BaseVocab",
    "BertTokenizer",
    "BertVocab",
    "BpeCache",
    "BpePairVocab",
    "EncodedPair",
    "Gpt2Tokenizer",
    "Gpt2Vocab",
    "Mask",
    "Offset",
    "PairEncoder",
    "Token",
    "TokenIdsWithOffsets",
    "TokenNotFoundError",
    "TokenRef",
    "TokenizedInput",
    "Tokenizer",
    "TokenizerConfig",
    "TokenizerError",
    "TokensWithOffsets",
    "TruncationError",
    "TruncationStrategy",
    "ValidationReport",
    "Vocab",
    "VocabularyError",
    "VocabularyFileNotFoundError",
    "VocabularyParsingError",
    "bpe",
    "load_tokenizer",
    "truncate_sequences",
    "validate_tokenizer",
]

__version__ = "0.1.0"
