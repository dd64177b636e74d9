"""Span-splitting passes applied before subword tokenization.

Two primitives do all the splitting:

* :func:`split_on_char` cuts a span wherever a character predicate holds,
* :func:`split_on_substr` cuts wherever a matcher recognises a substring
  starting at the current position.

Both leave spans that already carry a mask untouched, which is how
special and unknown markers survive the later passes.  The cleanup
functions (:func:`clean_text`, :func:`lowercase`, :func:`strip_accents`)
rewrite an owned :class:`Token` in place and recompute its offsets.
"""

from __future__ import annotations

import unicodedata
from collections.abc import Callable

import regex

from .text import (
    REPLACEMENT_CHARACTER,
    is_accent_marker,
    is_cjk_char,
    is_control,
    is_punctuation,
    is_whitespace,
)
from .tokens import Mask, Offset, Token, TokenRef

# (matched length in chars, mask to apply); zero length means no match
SubstrMatcher = Callable[[str], tuple[int, Mask]]


# ── Splitting primitives ───────────────────────────────────────────


def _sub_span(token: TokenRef, begin: int, end: int, mask: Mask) -> TokenRef:
    return TokenRef(
        text=token.text[begin:end],
        offset=Offset(token.offset.begin + begin, token.offset.begin + end),
        reference_offsets=token.reference_offsets[begin:end],
        mask=mask,
    )


def split_on_char(
    token: TokenRef,
    predicate: Callable[[str], bool],
    add_separators: bool,
    set_mask: Mask,
) -> list[TokenRef]:
    """Split *token* on every character for which *predicate* is true.

    Runs between separators become ``NONE``-masked spans.  With
    *add_separators*, each separator is emitted as its own span carrying
    *set_mask*; otherwise separators are dropped.  A masked or empty
    span is returned unchanged.
    """
    if token.mask is not Mask.NONE or not token.text:
        return [token]

    tokens: list[TokenRef] = []
    begin = 0
    for idx, char in enumerate(token.text):
        if predicate(char):
            if begin < idx:
                tokens.append(_sub_span(token, begin, idx, Mask.NONE))
            if add_separators:
                tokens.append(_sub_span(token, idx, idx + 1, set_mask))
            begin = idx + 1
    if begin < len(token.text):
        tokens.append(_sub_span(token, begin, len(token.text), Mask.NONE))
    return tokens


def split_on_substr(
    token: TokenRef,
    matcher: SubstrMatcher,
    add_separators: bool,
) -> list[TokenRef]:
    """Split *token* wherever *matcher* recognises a substring.

    *matcher* receives the remaining text from each position and returns
    ``(matched_chars, mask)``.  The run preceding a match has trailing
    whitespace trimmed and is dropped if nothing is left.  Matches are
    emitted with their mask when *add_separators* is set.
    """
    if token.mask is not Mask.NONE:
        return [token]

    text = token.text
    tokens: list[TokenRef] = []
    begin = 0
    idx = 0
    while idx < len(text):
        matched, mask = matcher(text[idx:])
        if matched <= 0:
            idx += 1
            continue
        if begin < idx:
            trimmed_len = len(text[begin:idx].rstrip())
            if trimmed_len > 0:
                tokens.append(_sub_span(token, begin, begin + trimmed_len, Mask.NONE))
        if add_separators:
            tokens.append(_sub_span(token, idx, idx + matched, mask))
        idx += matched
        begin = idx
    if begin < len(text):
        tokens.append(_sub_span(token, begin, len(text), Mask.NONE))
    return tokens


# ── Passes ─────────────────────────────────────────────────────────


def whitespace_tokenize(token: TokenRef) -> list[TokenRef]:
    """Split on whitespace, dropping it."""
    return split_on_char(token, is_whitespace, False, Mask.WHITESPACE)


def split_on_punct(token: TokenRef) -> list[TokenRef]:
    return split_on_char(token, is_punctuation, True, Mask.PUNCTUATION)


def tokenize_cjk_chars(token: TokenRef) -> list[TokenRef]:
    """Emit every CJK ideograph as its own span."""
    return split_on_char(token, is_cjk_char, True, Mask.CJK)


def special_token_matcher(
    special_values: list[str] | tuple[str, ...] | set[str] | dict[str, int],
    unknown_value: str,
) -> SubstrMatcher:
    """Build a matcher recognising registered special values.

    Candidates are tried longest first.  A match of *unknown_value* is
    tagged ``UNKNOWN``, every other match ``SPECIAL``.
    """
    candidates = sorted((v for v in special_values if v), key=len, reverse=True)

    def match(remaining: str) -> tuple[int, Mask]:
        for value in candidates:
            if remaining.startswith(value):
                mask = Mask.UNKNOWN if value == unknown_value else Mask.SPECIAL
                return len(value), mask
        return 0, Mask.NONE

    return match


def split_on_special_tokens(token: TokenRef, vocab) -> list[TokenRef]:
    """Split special markers (``[CLS]``, ``<|endoftext|>``...) out of *token*."""
    matcher = special_token_matcher(vocab.special_values, vocab.unknown_value)
    return split_on_substr(token, matcher, True)


def split_on_regex_with_lookahead(
    token: TokenRef,
    pattern_lookahead: regex.Pattern,
    pattern_tokenization: regex.Pattern,
) -> list[TokenRef]:
    """Byte-level BPE pre-tokenization.

    *pattern_lookahead* matches a whitespace run plus the character that
    follows it; the text is cut before the last whitespace character of
    each such match so the space stays attached to the next word.  Each
    piece is then cut into the shapes matched by *pattern_tokenization*.
    """
    if token.mask is not Mask.NONE:
        return [token]

    text = token.text
    pieces: list[str] = []
    start = 0
    for hit in pattern_lookahead.finditer(text):
        end = hit.end() - 2
        pieces.append(text[start:end])
        start = end
    pieces.append(text[start:])

    tokens: list[TokenRef] = []
    begin = 0
    for piece in pieces:
        for hit in pattern_tokenization.finditer(piece):
            sub_word = hit.group()
            end = begin + len(sub_word)
            tokens.append(_sub_span(token, begin, end, Mask.NONE))
            begin = end
    return tokens


# ── Per-token cleanup ──────────────────────────────────────────────


def _rewrite(token: Token, chars: list[str], positions: list[int]) -> None:
    token.text = "".join(chars)
    token.reference_offsets = positions
    if positions:
        token.offset = Offset(positions[0], positions[-1] + 1)
    else:
        token.offset = Offset(0, 0)


def clean_text(token: Token, strict: bool = True) -> None:
    """Drop control, NUL and replacement characters; map whitespace to ``' '``."""
    chars: list[str] = []
    positions: list[int] = []
    for char, position in zip(token.text, token.reference_offsets):
        if char == "\x00" or char == REPLACEMENT_CHARACTER or is_control(char, strict):
            continue
        chars.append(" " if is_whitespace(char) else char)
        positions.append(position)
    _rewrite(token, chars, positions)


def lowercase(token: Token) -> None:
    """Lowercase in place; expansions repeat the source character's offset."""
    chars: list[str] = []
    positions: list[int] = []
    for char, position in zip(token.text, token.reference_offsets):
        for lowered in char.lower():
            chars.append(lowered)
            positions.append(position)
    _rewrite(token, chars, positions)


def strip_accents(token: Token) -> None:
    """Canonically decompose and drop combining accent marks."""
    chars: list[str] = []
    positions: list[int] = []
    for char, position in zip(token.text, token.reference_offsets):
        for decomposed in unicodedata.normalize("NFD", char):
            if not is_accent_marker(decomposed):
                chars.append(decomposed)
                positions.append(position)
    _rewrite(token, chars, positions)
