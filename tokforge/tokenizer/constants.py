"""Constants shared by the tokenization pipeline.

Special token strings, word-length limits, character ranges and the
byte-level BPE pre-tokenization patterns live here so that vocabulary,
pre-tokenization and encoder modules import from a single place.
"""

from __future__ import annotations

# ── Special token strings ──────────────────────────────────────────
UNK_TOKEN: str = "[UNK]"
PAD_TOKEN: str = "[PAD]"
SEP_TOKEN: str = "[SEP]"
CLS_TOKEN: str = "[CLS]"
MASK_TOKEN: str = "[MASK]"

BERT_SPECIAL_TOKENS: tuple[str, ...] = (
    UNK_TOKEN,
    PAD_TOKEN,
    SEP_TOKEN,
    CLS_TOKEN,
    MASK_TOKEN,
)

# Byte-level vocabularies use one marker for unknown, BOS and EOS.
GPT2_UNK_TOKEN: str = "<|endoftext|>"
GPT2_BOS_TOKEN: str = GPT2_UNK_TOKEN
GPT2_EOS_TOKEN: str = GPT2_UNK_TOKEN

# ── WordPiece ──────────────────────────────────────────────────────
CONTINUATION_PREFIX: str = "##"
MAX_WORD_LEN: int = 100

# ── Encoder defaults ───────────────────────────────────────────────
DEFAULT_MAX_LEN: int = 384

# ── Character classes ──────────────────────────────────────────────
WHITESPACE_CHARS: frozenset[str] = frozenset({" ", "\t", "\n", "\r"})

# Inclusive codepoint ranges of the CJK Unified Ideographs blocks and
# their extensions / compatibility blocks.
CJK_RANGES: tuple[tuple[int, int], ...] = (
    (0x4E00, 0x9FFF),
    (0x3400, 0x4DBF),
    (0x20000, 0x2A6DF),
    (0x2A700, 0x2B73F),
    (0x2B740, 0x2B81F),
    (0x2B820, 0x2CEAF),
    (0xF900, 0xFAFF),
    (0x2F800, 0x2FA1F),
)

# Codepoints always treated as control characters: C0 and C1 blocks (tab,
# newline and carriage return are excluded by the caller), tag characters,
# private use areas and surrogates.
CONTROL_RANGES: tuple[tuple[int, int], ...] = (
    (0x0000, 0x001F),
    (0x0080, 0x009F),
    (0xE0020, 0xE007F),
    (0xE000, 0xF8FF),
    (0xF0000, 0xFFFFD),
    (0x100000, 0x10FFFD),
    (0xD800, 0xDFFF),
)

# ASCII symbols treated as punctuation even where Unicode says Sm/Sc/Sk.
ASCII_PUNCTUATION_RANGES: tuple[tuple[int, int], ...] = (
    (33, 47),
    (58, 64),
    (91, 96),
    (123, 126),
)

# ── Byte-level BPE pre-tokenization ────────────────────────────────
# Split point: before the last whitespace character of every run that
# is followed by a non-whitespace character.
BPE_LOOKAHEAD_PATTERN: str = r"\s+\S"
# Token shapes: contractions, letter runs, number runs, punctuation
# runs (each with an optional leading space), whitespace runs.
BPE_TOKEN_PATTERN: str = (
    r"'s|'t|'re|'ve|'m|'ll|'d| ?\p{L}+| ?\p{N}+| ?[^\s\p{L}\p{N}]+|\s+"
)

# ── Decoding ───────────────────────────────────────────────────────
# Spacing artefacts undone by ``clean_up_tokenization``.
CLEAN_UP_REPLACEMENTS: tuple[tuple[str, str], ...] = (
    (" .", "."),
    (" !", "!"),
    (" ?", "?"),
    (" ,", ","),
    (" ' ", "'"),
    (" n't", "n't"),
    (" 'm", "'m"),
    (" do not", " don't"),
    (" 's", "'s"),
    (" 've", "'ve"),
    (" 're", "'re"),
)
