"""
Token normalization for relevance scoring.

Turns free text into a canonical set of content tokens:
1. Lowercase
2. Replace every character other than letters, digits, underscore and hyphen with a space
3. Split on whitespace
4. Drop tokens of length <= 2
5. Drop stopwords

Output is a set, so token order and casing in the source text never matter.

Usage:
    from viralnexus.contexts.selection.tokenizer import tokenize

    tokenize("The quick brown fox")        # {"quick", "brown", "fox"}
    tokenize(["Venezuela", "Geopolitics"]) # {"venezuela", "geopolitics"}
"""

import re
from typing import AbstractSet, Iterable, Optional, Sequence, Union

# Small closed set of English function words
STOPWORDS = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "but", "by", "for", "from",
        "had", "has", "have", "he", "how", "in", "is", "it", "its", "of", "on",
        "over", "that", "the", "they", "this", "to", "was", "what", "when",
        "where", "which", "who", "why", "will", "with",
    }
)

_NON_TOKEN_CHARS = re.compile(r"[^\w\-]", re.UNICODE)

TextInput = Union[None, str, Sequence[Optional[str]], AbstractSet[str]]


class Tokenizer:
    """
    Configurable set tokenizer.

    The tokenizer is callable so it can be handed to anything expecting a
    ``str -> set[str]`` function.
    """

    def __init__(self, min_token_length: int = 3, stopwords: Optional[Iterable[str]] = None):
        """
        Initialize tokenizer.

        Args:
            min_token_length: Minimum token length to keep (default keeps length > 2)
            stopwords: Custom stopword set (uses STOPWORDS if None)
        """
        self.min_token_length = min_token_length
        self.stopwords = frozenset(stopwords) if stopwords is not None else STOPWORDS

    def tokenize_text(self, text: Optional[str]) -> set[str]:
        """Tokenize a single string. None and non-strings yield an empty set."""
        if not text or not isinstance(text, str):
            return set()

        cleaned = _NON_TOKEN_CHARS.sub(" ", text.lower())
        return {
            token
            for token in (piece.strip() for piece in cleaned.split())
            if len(token) >= self.min_token_length and token not in self.stopwords
        }

    def tokenize(self, value: TextInput) -> set[str]:
        """
        Tokenize a string or a sequence of strings.

        A sequence is tokenized element by element and the results unioned, which
        gives the same set as joining the elements with spaces first.
        """
        if not isinstance(value, (list, tuple, set, frozenset)):
            return self.tokenize_text(value)

        tokens: set[str] = set()
        for item in value:
            tokens |= self.tokenize_text(item)
        return tokens

    def __call__(self, value: TextInput) -> set[str]:
        return self.tokenize(value)

    def get_config_dict(self) -> dict:
        """Return tokenizer settings as a dictionary."""
        return {
            "min_token_length": self.min_token_length,
            "stopwords": sorted(self.stopwords),
        }


DEFAULT_TOKENIZER = Tokenizer()


def tokenize(value: TextInput) -> set[str]:
    """Tokenize text (or a list of texts) with the default tokenizer."""
    return DEFAULT_TOKENIZER.tokenize(value)
