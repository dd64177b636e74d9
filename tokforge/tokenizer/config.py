"""TokenizerConfig dataclass with YAML round-tripping."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path

import yaml

from .constants import DEFAULT_MAX_LEN, MAX_WORD_LEN
from .truncation import TruncationStrategy

TOKENIZER_KINDS: tuple[str, ...] = ("bert", "gpt2", "base")


@dataclass
class TokenizerConfig:
    """Which tokenizer to build and how to encode with it.

    Validated in ``__post_init__`` so that a bad config fails before any
    vocabulary is read.
    """

    # ── Tokenizer ──────────────────────────────────────────────────
    kind: str = "bert"
    vocab_path: str = "vocab.txt"
    merges_path: str | None = None  # gpt2 only

    # ── Normalization ──────────────────────────────────────────────
    lower_case: bool = True
    strip_accents: bool = True
    max_word_len: int = MAX_WORD_LEN

    # ── Encoding ───────────────────────────────────────────────────
    max_len: int = DEFAULT_MAX_LEN
    truncation_strategy: str = TruncationStrategy.LONGEST_FIRST.value
    stride: int = 0

    # ── Batching ───────────────────────────────────────────────────
    num_workers: int = 1

    def __post_init__(self) -> None:
        if self.kind not in TOKENIZER_KINDS:
            raise ValueError(
                f"kind must be one of {TOKENIZER_KINDS}, got {self.kind!r}"
            )
        if self.kind == "gpt2" and not self.merges_path:
            raise ValueError("merges_path is required for kind='gpt2'")
        valid = [s.value for s in TruncationStrategy]
        if self.truncation_strategy not in valid:
            raise ValueError(
                f"truncation_strategy must be one of {valid}, "
                f"got {self.truncation_strategy!r}"
            )
        if self.max_len <= 0:
            raise ValueError(f"max_len must be positive, got {self.max_len}")
        if self.stride < 0:
            raise ValueError(f"stride must be non-negative, got {self.stride}")
        if self.max_word_len <= 0:
            raise ValueError(
                f"max_word_len must be positive, got {self.max_word_len}"
            )
        if self.num_workers < 1:
            raise ValueError(f"num_workers must be >= 1, got {self.num_workers}")

    @property
    def strategy(self) -> TruncationStrategy:
        return TruncationStrategy(self.truncation_strategy)

    @classmethod
    def from_yaml(cls, path: str | Path) -> TokenizerConfig:
        """Load from YAML; a top-level ``tokenizer:`` section is accepted."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if "tokenizer" in data and isinstance(data["tokenizer"], dict):
            data = data["tokenizer"]
        return cls(**data)

    def to_yaml(self, path: str | Path) -> None:
        with open(path, "w") as f:
            yaml.dump({"tokenizer": asdict(self)}, f, default_flow_style=False)
