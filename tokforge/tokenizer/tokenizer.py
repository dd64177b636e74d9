"""Build a tokenizer from a :class:`TokenizerConfig`."""

from __future__ import annotations

from .base import BaseTokenizer, Tokenizer
from .bert import BertTokenizer
from .config import TokenizerConfig
from .gpt2 import Gpt2Tokenizer
from .vocab import BaseVocab, BertVocab, BpePairVocab, Gpt2Vocab


def load_tokenizer(config: TokenizerConfig) -> Tokenizer:
    """Load the vocabulary files named in *config* and build the tokenizer.

    A ``vocab_path`` ending in ``tokenizer.json`` is read through the
    Hugging Face ``tokenizers`` library instead of the native formats.
    """
    from_hf = str(config.vocab_path).endswith("tokenizer.json")

    if config.kind == "bert":
        vocab = (
            BertVocab.from_tokenizer_json(config.vocab_path)
            if from_hf
            else BertVocab.from_file(config.vocab_path)
        )
        return BertTokenizer(
            vocab,
            lower_case=config.lower_case,
            strip_accents=config.strip_accents,
            max_word_len=config.max_word_len,
        )
    if config.kind == "gpt2":
        vocab = (
            Gpt2Vocab.from_tokenizer_json(config.vocab_path)
            if from_hf
            else Gpt2Vocab.from_file(config.vocab_path)
        )
        return Gpt2Tokenizer(
            vocab,
            BpePairVocab.from_file(config.merges_path),
            lower_case=config.lower_case,
        )
    vocab = (
        BaseVocab.from_tokenizer_json(config.vocab_path)
        if from_hf
        else BaseVocab.from_file(config.vocab_path)
    )
    return BaseTokenizer(
        vocab,
        lower_case=config.lower_case,
        strip_accents=config.strip_accents,
    )
