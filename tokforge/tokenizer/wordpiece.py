"""Greedy longest-match WordPiece."""

from __future__ import annotations

from .constants import CONTINUATION_PREFIX, MAX_WORD_LEN
from .tokens import Mask, Offset, Token, TokenRef
from .vocab import Vocab


def fix_mask(tokens: list[Token]) -> None:
    """Relabel a ``NONE`` token directly followed by a continuation as ``BEGIN``."""
    for i in range(1, len(tokens)):
        if tokens[i].mask is Mask.CONTINUATION and tokens[i - 1].mask is Mask.NONE:
            tokens[i - 1].mask = Mask.BEGIN


def _unknown(token: TokenRef, vocab: Vocab) -> Token:
    return Token(
        text=vocab.unknown_value,
        offset=token.offset,
        reference_offsets=list(token.reference_offsets),
        mask=Mask.UNKNOWN,
    )


def tokenize_wordpiece(
    token: TokenRef,
    vocab: Vocab,
    max_word_len: int = MAX_WORD_LEN,
) -> list[Token]:
    """Split one word into vocabulary pieces.

    Pieces after the first are looked up with the ``##`` prefix.  The
    policy is all-or-nothing: a word longer than *max_word_len*, or any
    remainder with no matching prefix, turns the whole word into a single
    unknown token.  Only general (non-special) vocabulary entries match.
    """
    text = token.text
    if len(text) > max_word_len:
        return [_unknown(token, vocab)]

    tokens: list[Token] = []
    start = 0
    while start < len(text):
        end = len(text)
        piece = None
        while start < end:
            candidate = text[start:end]
            if start > 0:
                candidate = CONTINUATION_PREFIX + candidate
            if candidate in vocab.values:
                piece = Token(
                    text=candidate,
                    offset=Offset(
                        token.offset.begin + start, token.offset.begin + end
                    ),
                    reference_offsets=list(token.reference_offsets[start:end]),
                    mask=Mask.CONTINUATION if start > 0 else token.mask,
                )
                break
            end -= 1
        if piece is None:
            return [_unknown(token, vocab)]
        tokens.append(piece)
        start = end

    fix_mask(tokens)
    return tokens
