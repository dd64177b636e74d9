"""Merge-rank Byte-Pair Encoding with a best-effort decomposition cache."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from functools import lru_cache

from .tokens import Mask, Offset, Token, TokenRef
from .vocab import BpePairVocab

logger = logging.getLogger("tokforge.bpe")

BpeFunction = Callable[[str, BpePairVocab], tuple[list[str], list[int]]]


# ── Byte alphabet ──────────────────────────────────────────────────


@lru_cache(maxsize=None)
def bytes_to_unicode() -> dict[int, str]:
    """Map every byte value to a printable single-codepoint stand-in.

    Printable Latin-1 bytes map to themselves; the rest are shifted past
    U+0100 so that no byte maps to whitespace or a control character.
    """
    printable = (
        list(range(ord("!"), ord("~") + 1))
        + list(range(ord("¡"), ord("¬") + 1))
        + list(range(ord("®"), ord("ÿ") + 1))
    )
    codepoints = list(printable)
    n = 0
    for b in range(256):
        if b not in printable:
            printable.append(b)
            codepoints.append(256 + n)
            n += 1
    return {b: chr(c) for b, c in zip(printable, codepoints)}


@lru_cache(maxsize=None)
def unicode_to_bytes() -> dict[str, int]:
    return {c: b for b, c in bytes_to_unicode().items()}


def bytes_offsets(text: str) -> list[int]:
    """Character index owning each UTF-8 byte of *text*."""
    offsets: list[int] = []
    for idx, char in enumerate(text):
        offsets.extend([idx] * len(char.encode("utf-8")))
    return offsets


# ── Merging ────────────────────────────────────────────────────────


def group_common_pairs(
    symbols: list[str], ranks: BpePairVocab
) -> tuple[list[str], bool]:
    """Merge every occurrence of the lowest-ranked adjacent pair.

    Returns the new symbol list and ``True`` once no adjacent pair has a
    rank.
    """
    best: tuple[str, str] | None = None
    best_rank: int | None = None
    for pair in zip(symbols, symbols[1:]):
        rank = ranks.byte_pair_to_id(*pair)
        if rank is not None and (best_rank is None or rank < best_rank):
            best, best_rank = pair, rank
    if best is None:
        return symbols, True

    left, right = best
    merged: list[str] = []
    i = 0
    while i < len(symbols):
        if i < len(symbols) - 1 and symbols[i] == left and symbols[i + 1] == right:
            merged.append(left + right)
            i += 2
        else:
            merged.append(symbols[i])
            i += 1
    return merged, len(merged) == 1


def bpe(word: str, ranks: BpePairVocab) -> tuple[list[str], list[int]]:
    """Decompose *word* into merged pieces and their character counts."""
    symbols = list(word)
    done = len(symbols) < 2
    while not done:
        symbols, done = group_common_pairs(symbols, ranks)
    return symbols, [len(s) for s in symbols]


# ── Cache ──────────────────────────────────────────────────────────


class BpeCache:
    """Memoized decompositions keyed by the (byte-remapped) word.

    Reads and writes only try the lock: under contention a read is a
    miss and a write is skipped.  Entries never go stale because the
    merge table is immutable.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[list[str], list[int]]] = {}

    def get(self, key: str) -> tuple[list[str], list[int]] | None:
        if not self._lock.acquire(blocking=False):
            return None
        try:
            return self._entries.get(key)
        finally:
            self._lock.release()

    def try_insert(self, key: str, value: tuple[list[str], list[int]]) -> bool:
        if not self._lock.acquire(blocking=False):
            logger.debug("BPE cache busy, skipped write for %r", key)
            return False
        try:
            self._entries[key] = value
            return True
        finally:
            self._lock.release()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


def split_on_bpe_pairs(
    token: TokenRef,
    bpe_function: BpeFunction,
    ranks: BpePairVocab,
    cache: BpeCache,
    as_bytes: bool = True,
) -> list[Token]:
    """BPE-split one pre-tokenized word.

    With *as_bytes* the word is first rewritten byte by byte through
    :func:`bytes_to_unicode`; every byte inherits the original offset of
    the character it belongs to.  Multi-piece outputs are tagged
    ``BEGIN`` then ``CONTINUATION``, a single piece ``NONE``.
    """
    if as_bytes:
        reference_offsets = [
            token.reference_offsets[pos] for pos in bytes_offsets(token.text)
        ]
        byte_map = bytes_to_unicode()
        text = "".join(byte_map[b] for b in token.text.encode("utf-8"))
    else:
        reference_offsets = list(token.reference_offsets)
        text = token.text

    cached = cache.get(text)
    if cached is None:
        cached = bpe_function(text, ranks)
        cache.try_insert(text, cached)
    pieces, char_counts = cached

    tokens: list[Token] = []
    start = 0
    for idx, (piece, count) in enumerate(zip(pieces, char_counts)):
        if len(pieces) > 1:
            mask = Mask.BEGIN if idx == 0 else Mask.CONTINUATION
        else:
            mask = Mask.NONE
        refs = reference_offsets[start : start + count]
        tokens.append(
            Token(
                text=piece,
                offset=Offset(refs[0], refs[-1] + 1),
                reference_offsets=refs,
                mask=mask,
            )
        )
        start += count
    return tokens
