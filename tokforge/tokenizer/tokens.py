"""Token and offset data model.

A :class:`TokenRef` is an immutable span of text produced while splitting
an input string.  Every span carries ``reference_offsets``: one entry per
character naming that character's position in the original input, so
that any token emitted at the end of the pipeline can be mapped back to
the exact characters it came from, even after characters have been
removed (control chars, accents) or expanded (case folding).

:class:`Token` is the mutable counterpart used by passes that rewrite
the text.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

import numpy as np


@dataclass(frozen=True)
class Offset:
    """Half-open ``[begin, end)`` span in codepoint units."""

    begin: int
    end: int

    def into_option(self) -> Offset | None:
        """Return ``self`` for a non-empty span, ``None`` otherwise."""
        if self.end > self.begin:
            return self
        return None


class Mask(enum.Enum):
    """Structural role of a token."""

    NONE = "none"
    WHITESPACE = "whitespace"
    PUNCTUATION = "punctuation"
    CJK = "cjk"
    SPECIAL = "special"
    BEGIN = "begin"
    CONTINUATION = "continuation"
    UNFINISHED = "unfinished"
    UNKNOWN = "unknown"


def _check_offsets(text: str, reference_offsets: Sequence[int]) -> None:
    if len(reference_offsets) != len(text):
        raise ValueError(
            f"reference_offsets has {len(reference_offsets)} entries but "
            f"text {text!r} has {len(text)} characters"
        )


@dataclass(frozen=True)
class TokenRef:
    """Read-only span of an input string."""

    text: str
    offset: Offset
    reference_offsets: tuple[int, ...]
    mask: Mask = Mask.NONE

    def __post_init__(self) -> None:
        _check_offsets(self.text, self.reference_offsets)

    @classmethod
    def new(cls, text: str, reference_offsets: Sequence[int]) -> TokenRef:
        """Build a span over *text* with its original character positions."""
        return cls(
            text=text,
            offset=Offset(0, len(text)),
            reference_offsets=tuple(reference_offsets),
        )

    def to_owned(self) -> Token:
        return Token(
            text=self.text,
            offset=self.offset,
            reference_offsets=list(self.reference_offsets),
            mask=self.mask,
        )


@dataclass
class Token:
    """Owned, mutable token.

    Subword output may diverge from a one-offset-per-character mapping:
    ``##`` prefixes and unknown markers keep the offsets of the characters
    they stand for.
    """

    text: str
    offset: Offset
    reference_offsets: list[int] = field(default_factory=list)
    mask: Mask = Mask.NONE

    @classmethod
    def new(cls, text: str) -> Token:
        """Top-level token over *text*: identity character mapping."""
        n = len(text)
        return cls(text=text, offset=Offset(0, n), reference_offsets=list(range(n)))

    def as_ref(self) -> TokenRef:
        return TokenRef(
            text=self.text,
            offset=self.offset,
            reference_offsets=tuple(self.reference_offsets),
            mask=self.mask,
        )


def iter_consolidated_tokens(
    tokens: Sequence[Token | TokenRef],
) -> Iterator[list[Token | TokenRef]]:
    """Group sub-tokens into words.

    A word starts at every token whose mask is not ``CONTINUATION`` and
    extends over the continuation pieces that follow it.
    """
    group: list[Token | TokenRef] = []
    for token in tokens:
        if token.mask is not Mask.CONTINUATION and group:
            yield group
            group = []
        group.append(token)
    if group:
        yield group


# ── Result containers ──────────────────────────────────────────────


@dataclass
class TokensWithOffsets:
    """Tokenized text with per-token offsets and masks."""

    tokens: list[str] = field(default_factory=list)
    offsets: list[Offset | None] = field(default_factory=list)
    reference_offsets: list[list[int]] = field(default_factory=list)
    masks: list[Mask] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.tokens)


@dataclass
class TokenIdsWithOffsets:
    """One encoded sequence: parallel arrays of ids, offsets and masks."""

    ids: list[int] = field(default_factory=list)
    offsets: list[Offset | None] = field(default_factory=list)
    reference_offsets: list[list[int]] = field(default_factory=list)
    masks: list[Mask] = field(default_factory=list)

    def __post_init__(self) -> None:
        n = len(self.ids)
        for name in ("offsets", "reference_offsets", "masks"):
            if len(getattr(self, name)) != n:
                raise ValueError(
                    f"{name} has {len(getattr(self, name))} entries, "
                    f"expected {n} to match ids"
                )

    def __len__(self) -> int:
        return len(self.ids)

    def copy(self) -> TokenIdsWithOffsets:
        return TokenIdsWithOffsets(
            ids=list(self.ids),
            offsets=list(self.offsets),
            reference_offsets=[list(r) for r in self.reference_offsets],
            masks=list(self.masks),
        )


@dataclass
class TokenIdsWithSpecialTokens:
    """Sequence (or pair) after model-specific special tokens are added."""

    token_ids: list[int] = field(default_factory=list)
    segment_ids: list[int] = field(default_factory=list)
    special_tokens_mask: list[int] = field(default_factory=list)
    token_offsets: list[Offset | None] = field(default_factory=list)
    reference_offsets: list[list[int]] = field(default_factory=list)
    mask: list[Mask] = field(default_factory=list)


@dataclass
class TokenizedInput:
    """Final encoder output."""

    token_ids: list[int] = field(default_factory=list)
    segment_ids: list[int] = field(default_factory=list)
    special_tokens_mask: list[int] = field(default_factory=list)
    overflowing_tokens: list[int] = field(default_factory=list)
    num_truncated_tokens: int = 0
    token_offsets: list[Offset | None] = field(default_factory=list)
    reference_offsets: list[list[int]] = field(default_factory=list)
    mask: list[Mask] = field(default_factory=list)

    def __post_init__(self) -> None:
        n = len(self.token_ids)
        for name in (
            "segment_ids",
            "special_tokens_mask",
            "token_offsets",
            "reference_offsets",
            "mask",
        ):
            if len(getattr(self, name)) != n:
                raise ValueError(
                    f"{name} has {len(getattr(self, name))} entries, "
                    f"expected {n} to match token_ids"
                )

    def __len__(self) -> int:
        return len(self.token_ids)

    def to_numpy(
        self,
        pad_to: int | None = None,
        pad_id: int = 0,
        dtype: type = np.int32,
    ) -> dict[str, np.ndarray]:
        """Return model input arrays, zero-padded to *pad_to* if given.

        Returns
        -------
        dict
            ``input_ids``, ``attention_mask``, ``segment_ids`` and
            ``special_tokens_mask``, each a 1-D array.
        """
        n = len(self.token_ids)
        length = n if pad_to is None else pad_to
        if length < n:
            raise ValueError(
                f"pad_to ({pad_to}) is shorter than the encoded sequence ({n})"
            )
        input_ids = np.full(length, pad_id, dtype=dtype)
        input_ids[:n] = self.token_ids
        attention_mask = np.zeros(length, dtype=dtype)
        attention_mask[:n] = 1
        segment_ids = np.zeros(length, dtype=dtype)
        segment_ids[:n] = self.segment_ids
        special = np.zeros(length, dtype=dtype)
        special[:n] = self.special_tokens_mask
        return {
            "input_ids": input_ids,
            "attention_mask": attention_mask,
            "segment_ids": segment_ids,
            "special_tokens_mask": special,
        }
