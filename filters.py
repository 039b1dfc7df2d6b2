"""
Message filtering logic for whole-word matching.
"""
from typing import List, Optional


def tokenize(text: Optional[str]) -> List[str]:
    """Split text into whitespace-delimited tokens."""
    if not text:
        return []
    return text.split()


def parse_single_word(text: Optional[str]) -> Optional[str]:
    """
    Extract a word from input that must be exactly one token.

    Args:
        text: Raw user input

    Returns:
        The token with its original casing, or None if the input
        has zero or more than one token
    """
    tokens = tokenize(text)
    if len(tokens) != 1:
        return None
    return tokens[0]


class WordFilter:
    """Filter messages based on a single whole-word match."""

    def __init__(self, word: str):
        """
        Initialize the word filter.

        Args:
            word: Word to match (case-insensitive)
        """
        self.word = word
        self._folded = word.casefold()

    def matches(self, text: Optional[str]) -> bool:
        """
        Check if text contains the word as a whole token.

        Punctuation is part of a token, so "cat." does not match "cat".

        Args:
            text: Message text

        Returns:
            True if any token equals the word ignoring case, False otherwise
        """
        for token in tokenize(text):
            if token.casefold() == self._folded:
                return True

        return False
