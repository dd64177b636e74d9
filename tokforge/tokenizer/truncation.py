"""Sequence-pair truncation with overflow and stride."""

from __future__ import annotations

import enum
import logging

from .errors import TruncationError
from .tokens import Offset, TokenIdsWithOffsets

logger = logging.getLogger("tokforge.truncation")


class TruncationStrategy(str, enum.Enum):
    """How to shorten a sequence (pair) that exceeds ``max_len``.

    ``LONGEST_FIRST`` removes one token at a time from whichever sequence
    is currently longer (ties trim the first).  ``ONLY_FIRST`` and
    ``ONLY_SECOND`` trim the tail of the named sequence.
    ``DO_NOT_TRUNCATE`` fails whenever any removal is needed.
    """

    LONGEST_FIRST = "longest_first"
    ONLY_FIRST = "only_first"
    ONLY_SECOND = "only_second"
    DO_NOT_TRUNCATE = "do_not_truncate"


def _pop(seq: TokenIdsWithOffsets) -> tuple[int, Offset | None]:
    seq.reference_offsets.pop()
    seq.masks.pop()
    return seq.ids.pop(), seq.offsets.pop()


def _stride_window(
    seq: TokenIdsWithOffsets, stride: int
) -> tuple[list[int], list[Offset | None]]:
    window = min(len(seq.ids), stride)
    if window == 0:
        return [], []
    return seq.ids[-window:], seq.offsets[-window:]


def truncate_with_overflow(
    seq: TokenIdsWithOffsets, num_tokens_to_remove: int, stride: int
) -> tuple[list[int], list[Offset | None]]:
    """Cut *num_tokens_to_remove* tokens off the tail of *seq* in place.

    The overflow is prefixed with up to *stride* tokens from the new tail.
    """
    cutoff = len(seq.ids) - num_tokens_to_remove
    overflow_ids = seq.ids[cutoff:]
    overflow_offsets = seq.offsets[cutoff:]
    del seq.ids[cutoff:]
    del seq.offsets[cutoff:]
    del seq.reference_offsets[cutoff:]
    del seq.masks[cutoff:]
    window_ids, window_offsets = _stride_window(seq, stride)
    return window_ids + overflow_ids, window_offsets + overflow_offsets


def truncate_sequences(
    seq1: TokenIdsWithOffsets,
    seq2: TokenIdsWithOffsets | None,
    num_tokens_to_remove: int,
    strategy: TruncationStrategy | str,
    stride: int = 0,
) -> tuple[
    TokenIdsWithOffsets, TokenIdsWithOffsets | None, list[int], list[Offset | None]
]:
    """Remove *num_tokens_to_remove* tokens from a sequence or pair.

    The inputs are never modified; truncated copies are returned together
    with the overflow ids and offsets.

    Returns
    -------
    tuple
        ``(seq1, seq2, overflow_ids, overflow_offsets)``

    Raises
    ------
    TruncationError
        If the selected sequence(s) are too short, the strategy does not
        apply to a single sequence, or truncation is disallowed.
    """
    strategy = TruncationStrategy(strategy)
    if num_tokens_to_remove == 0:
        return seq1, seq2, [], []

    seq1 = seq1.copy()
    seq2 = seq2.copy() if seq2 is not None else None
    logger.debug(
        "Truncating %d tokens with %s (stride=%d)",
        num_tokens_to_remove,
        strategy.value,
        stride,
    )

    if seq2 is None:
        if strategy is TruncationStrategy.ONLY_SECOND:
            raise TruncationError(
                "Invalid truncation strategy for single sentence truncation"
            )
        if strategy is TruncationStrategy.DO_NOT_TRUNCATE:
            raise TruncationError("Truncation needed but no truncation requested")
        if len(seq1) < num_tokens_to_remove:
            raise TruncationError("First sequence too short for first only truncation")
        overflow_ids, overflow_offsets = truncate_with_overflow(
            seq1, num_tokens_to_remove, stride
        )
        return seq1, None, overflow_ids, overflow_offsets

    if strategy is TruncationStrategy.LONGEST_FIRST:
        if len(seq1) + len(seq2) < num_tokens_to_remove:
            raise TruncationError(
                "Combined sequence length too short for requested truncation amount"
            )
        overflow_ids = []
        overflow_offsets = []
        for _ in range(num_tokens_to_remove):
            target = seq1 if len(seq1) >= len(seq2) else seq2
            removed_id, removed_offset = _pop(target)
            overflow_ids.insert(0, removed_id)
            overflow_offsets.insert(0, removed_offset)
        window_ids, window_offsets = _stride_window(seq1, stride)
        return seq1, seq2, window_ids + overflow_ids, window_offsets + overflow_offsets

    if strategy is TruncationStrategy.ONLY_FIRST:
        if len(seq1) < num_tokens_to_remove:
            raise TruncationError("First sequence too short for first only truncation")
        overflow_ids, overflow_offsets = truncate_with_overflow(
            seq1, num_tokens_to_remove, stride
        )
        return seq1, seq2, overflow_ids, overflow_offsets

    if strategy is TruncationStrategy.ONLY_SECOND:
        if len(seq2) < num_tokens_to_remove:
            raise TruncationError(
                "Second sequence too short for second only truncation"
            )
        overflow_ids, overflow_offsets = truncate_with_overflow(
            seq2, num_tokens_to_remove, stride
        )
        return seq1, seq2, overflow_ids, overflow_offsets

    raise TruncationError("Truncation needed but no truncation requested")
