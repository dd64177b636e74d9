"""tokforge: subword tokenization with offset tracking and pair encoding."""

__version__ = "0.1.0"
