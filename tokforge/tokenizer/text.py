"""Unicode character classification used by the splitting passes."""

from __future__ import annotations

import unicodedata

from .constants import (
    ASCII_PUNCTUATION_RANGES,
    CJK_RANGES,
    CONTROL_RANGES,
    WHITESPACE_CHARS,
)

REPLACEMENT_CHARACTER = "\ufffd"


def _in_ranges(cp: int, ranges: tuple[tuple[int, int], ...]) -> bool:
    return any(lo <= cp <= hi for lo, hi in ranges)


def is_whitespace(char: str) -> bool:
    return char in WHITESPACE_CHARS or unicodedata.category(char) == "Zs"


def is_control(char: str, strict: bool = True) -> bool:
    """Return True for control characters.

    Tab, newline and carriage return count as whitespace, never control.
    The strict check also covers format characters, private use areas,
    surrogates and tag characters; the relaxed one only ``Cc``.
    """
    if char in WHITESPACE_CHARS:
        return False
    category = unicodedata.category(char)
    if not strict:
        return category == "Cc"
    return category in ("Cc", "Cf") or _in_ranges(ord(char), CONTROL_RANGES)


def is_punctuation(char: str) -> bool:
    return _in_ranges(ord(char), ASCII_PUNCTUATION_RANGES) or (
        unicodedata.category(char).startswith("P")
    )


def is_cjk_char(char: str) -> bool:
    return _in_ranges(ord(char), CJK_RANGES)


def is_accent_marker(char: str) -> bool:
    """Combining marks dropped by accent stripping."""
    return unicodedata.category(char) == "Mn"
