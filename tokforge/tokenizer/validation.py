"""Sanity checks for a loaded tokenizer against sample texts.

Checks special-token registration, offset bounds and ordering, the
begin/continuation mask structure, WordPiece round trips and the rate
of unknown tokens.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .base import Tokenizer
from .constants import CONTINUATION_PREFIX
from .pretokenize import clean_text, lowercase, strip_accents
from .tokens import Mask, Token, TokensWithOffsets

# Unknown-token rate above which the vocabulary is probably mismatched.
MAX_UNKNOWN_RATE: float = 0.05


@dataclass
class ValidationReport:
    """Results of :func:`validate_tokenizer`."""

    vocab_size: int = 0
    num_special_tokens: int = 0

    # Special tokens
    special_tokens_ok: bool = True
    missing_special_tokens: list[str] = field(default_factory=list)

    # Offsets / masks
    offsets_ok: bool = True
    offset_failures: list[str] = field(default_factory=list)
    masks_ok: bool = True
    mask_failures: list[str] = field(default_factory=list)

    # Roundtrip
    roundtrip_ok: bool = True
    roundtrip_failures: list[str] = field(default_factory=list)

    # Coverage
    num_tokens: int = 0
    num_unknown: int = 0

    @property
    def unknown_rate(self) -> float:
        if self.num_tokens == 0:
            return 0.0
        return self.num_unknown / self.num_tokens

    @property
    def ok(self) -> bool:
        return (
            self.special_tokens_ok
            and self.offsets_ok
            and self.masks_ok
            and self.roundtrip_ok
            and self.unknown_rate <= MAX_UNKNOWN_RATE
        )

    def summary(self) -> str:
        lines = [
            f"Vocab size: {self.vocab_size} "
            f"({self.num_special_tokens} special)",
            f"Special tokens registered: {self.special_tokens_ok}",
            f"Offsets valid: {self.offsets_ok} "
            f"({len(self.offset_failures)} failures)",
            f"Masks valid: {self.masks_ok} ({len(self.mask_failures)} failures)",
            f"Roundtrip fidelity: {self.roundtrip_ok} "
            f"({len(self.roundtrip_failures)} failures)",
            f"Unknown rate: {self.unknown_rate:.2%} "
            f"({self.num_unknown}/{self.num_tokens} tokens)",
        ]
        if self.missing_special_tokens:
            lines.append(
                f"Missing special tokens: {', '.join(self.missing_special_tokens)}"
            )
        for failure in (
            self.offset_failures + self.mask_failures + self.roundtrip_failures
        )[:10]:
            lines.append(f"  {failure}")
        return "\n".join(lines)


# ── Individual check functions ─────────────────────────────────────


def check_special_tokens(
    tokenizer: Tokenizer, expected: Sequence[str]
) -> tuple[bool, list[str]]:
    """Return whether every *expected* token is registered as special."""
    missing = [t for t in expected if t not in tokenizer.vocab.special_values]
    return len(missing) == 0, missing


def check_offsets(text: str, result: TokensWithOffsets) -> list[str]:
    """Offsets must lie inside *text* and never move backwards."""
    failures: list[str] = []
    n = len(text)
    previous = -1
    for token, refs in zip(result.tokens, result.reference_offsets):
        for position in refs:
            if not 0 <= position < n:
                failures.append(
                    f"OUT OF RANGE: {token!r} -> {position} in {text[:40]!r}"
                )
            if position < previous:
                failures.append(
                    f"NOT MONOTONIC: {token!r} -> {position} after {previous}"
                )
            previous = max(previous, position)
    return failures


def check_masks(result: TokensWithOffsets) -> list[str]:
    """A continuation piece must follow a begin or another continuation."""
    failures: list[str] = []
    for i, mask in enumerate(result.masks):
        if mask is not Mask.CONTINUATION:
            continue
        if i == 0 or result.masks[i - 1] not in (Mask.BEGIN, Mask.CONTINUATION):
            failures.append(f"ORPHAN CONTINUATION: {result.tokens[i]!r} at {i}")
    return failures


def _normalized_words(tokenizer: Tokenizer, text: str) -> list[str]:
    token = Token.new(text)
    clean_text(token)
    if getattr(tokenizer, "lower_case", False):
        lowercase(token)
    if getattr(tokenizer, "strip_accents", False):
        strip_accents(token)
    return token.text.split()


def check_roundtrip(
    tokenizer: Tokenizer, samples: Sequence[str]
) -> tuple[bool, list[str]]:
    """Re-joined WordPiece pieces must reproduce the normalized words.

    Samples whose tokenization contains unknown tokens are skipped.
    """
    failures: list[str] = []
    for sample in samples:
        tokens = tokenizer.tokenize(sample)
        if tokenizer.vocab.unknown_value in tokens:
            continue
        rebuilt = "".join(
            t[len(CONTINUATION_PREFIX):] if t.startswith(CONTINUATION_PREFIX) else " " + t
            for t in tokens
        )
        expected = "".join(_normalized_words(tokenizer, sample))
        if rebuilt.replace(" ", "") != expected:
            failures.append(f"MISMATCH: {sample[:60]!r} -> {rebuilt.strip()[:60]!r}")
    return len(failures) == 0, failures


# ── Orchestrator ───────────────────────────────────────────────────


def validate_tokenizer(
    tokenizer: Tokenizer,
    samples: Sequence[str],
    expected_special_tokens: Sequence[str] | None = None,
    roundtrip: bool = True,
) -> ValidationReport:
    """Run every check over *samples*.

    Parameters
    ----------
    tokenizer
        Any loaded tokenizer.
    samples
        Representative input texts.
    expected_special_tokens
        Tokens that must be registered as special; defaults to the
        vocabulary's class-level special tokens.
    roundtrip
        Run the WordPiece round-trip check (meaningless for byte-level
        vocabularies).

    Returns
    -------
    ValidationReport
    """
    report = ValidationReport()
    vocab = tokenizer.vocab
    report.vocab_size = len(vocab)
    report.num_special_tokens = len(vocab.special_values)

    expected = (
        expected_special_tokens
        if expected_special_tokens is not None
        else type(vocab).special_tokens
    )
    report.special_tokens_ok, report.missing_special_tokens = check_special_tokens(
        tokenizer, expected
    )

    for sample in samples:
        result = tokenizer.tokenize_with_offsets(sample)
        report.offset_failures.extend(check_offsets(sample, result))
        report.mask_failures.extend(check_masks(result))
        report.num_tokens += len(result)
        report.num_unknown += sum(1 for m in result.masks if m is Mask.UNKNOWN)
    report.offsets_ok = not report.offset_failures
    report.masks_ok = not report.mask_failures

    if roundtrip:
        report.roundtrip_ok, report.roundtrip_failures = check_roundtrip(
            tokenizer, samples
        )

    return report
