"""Torch datasets over encoded text pairs.

Two sources are supported:

* :class:`PairEncodingDataset` encodes ``(text_1, text_2)`` pairs lazily
  with a tokenizer at ``__getitem__`` time,
* :class:`EncodedArrayDataset` reads the arrays written once by
  ``scripts/encode.py``.

Storage format (``EncodedArrayDataset``):
  input_ids.npy      - (N, max_len) int32
  attention_mask.npy - (N, max_len) int32
  segment_ids.npy    - (N, max_len) int32
  metadata.json      - config snapshot and stats
"""

import json
from collections.abc import Sequence
from pathlib import Path

import numpy as np
import torch
from torch.utils.data import Dataset

from ..tokenizer.base import Tokenizer
from ..tokenizer.truncation import TruncationStrategy

Sample = dict[str, torch.Tensor]


class PairEncodingDataset(Dataset):
    """Encode text pairs on access, padded to ``max_len``.

    Each item is a dict of ``torch.long`` tensors: ``input_ids``,
    ``attention_mask``, ``token_type_ids`` and ``special_tokens_mask``.
    A ``None`` second text encodes a single sequence.
    """

    def __init__(
        self,
        tokenizer: Tokenizer,
        pairs: Sequence[tuple[str, str | None]],
        max_len: int = 384,
        truncation_strategy: TruncationStrategy | str = TruncationStrategy.LONGEST_FIRST,
        stride: int = 0,
        pad_id: int = 0,
    ):
        self.tokenizer = tokenizer
        self.pairs = list(pairs)
        self.max_len = max_len
        self.truncation_strategy = TruncationStrategy(truncation_strategy)
        self.stride = stride
        self.pad_id = pad_id

    def __len__(self) -> int:
        return len(self.pairs)

    def __getitem__(self, idx: int) -> Sample:
        text_1, text_2 = self.pairs[idx]
        encoded = self.tokenizer.encode(
            text_1, text_2, self.max_len, self.truncation_strategy, self.stride
        )
        arrays = encoded.to_numpy(pad_to=self.max_len, pad_id=self.pad_id, dtype=np.int64)
        return {
            "input_ids": torch.from_numpy(arrays["input_ids"]),
            "attention_mask": torch.from_numpy(arrays["attention_mask"]),
            "token_type_ids": torch.from_numpy(arrays["segment_ids"]),
            "special_tokens_mask": torch.from_numpy(arrays["special_tokens_mask"]),
        }


class EncodedArrayDataset(Dataset):
    """Map-style dataset over the ``.npy`` arrays of an encoded corpus."""

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir)

        arrays = {}
        for name in ("input_ids", "attention_mask", "segment_ids"):
            path = self.data_dir / f"{name}.npy"
            if not path.exists():
                raise FileNotFoundError(f"Array file not found: {path}")
            arrays[name] = np.load(path, mmap_mode="r")

        shapes = {a.shape for a in arrays.values()}
        if len(shapes) != 1 or arrays["input_ids"].ndim != 2:
            raise ValueError(
                f"Malformed arrays: expected matching (N, max_len) shapes, "
                f"got {sorted(shapes)}"
            )
        self.input_ids = arrays["input_ids"]
        self.attention_mask = arrays["attention_mask"]
        self.segment_ids = arrays["segment_ids"]

        # Load metadata if available
        meta_path = self.data_dir / "metadata.json"
        self.metadata: dict = {}
        if meta_path.exists():
            self.metadata = json.loads(meta_path.read_text(encoding="utf-8"))

    @property
    def max_len(self) -> int:
        return self.input_ids.shape[1]

    def __len__(self) -> int:
        return self.input_ids.shape[0]

    def __getitem__(self, idx: int) -> Sample:
        return {
            "input_ids": torch.tensor(self.input_ids[idx], dtype=torch.long),
            "attention_mask": torch.tensor(self.attention_mask[idx], dtype=torch.long),
            "token_type_ids": torch.tensor(self.segment_ids[idx], dtype=torch.long),
        }


def collate_encodings(batch: list[Sample]) -> Sample:
    """Stack per-sample tensors into ``(batch, max_len)`` tensors."""
    if not batch:
        raise ValueError("Cannot collate an empty batch")
    return {key: torch.stack([sample[key] for sample in batch]) for key in batch[0]}
