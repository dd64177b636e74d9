"""Exception hierarchy for vocabulary loading and sequence truncation."""

from __future__ import annotations


class TokenizerError(Exception):
    """Base class for all tokforge errors."""


class VocabularyError(TokenizerError):
    """A vocabulary could not be built."""


class VocabularyFileNotFoundError(VocabularyError, FileNotFoundError):
    """The vocabulary or merges file does not exist or cannot be opened."""


class VocabularyParsingError(VocabularyError, ValueError):
    """The vocabulary source is malformed (bad JSON, undecodable line, ...)."""


class TokenNotFoundError(VocabularyError, KeyError):
    """A special token was registered that is absent from the vocabulary."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class TruncationError(TokenizerError, ValueError):
    """Requested truncation cannot be performed."""
