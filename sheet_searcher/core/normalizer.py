"""Text normalization utilities for consistent cell and query matching."""

import re
import unicodedata
from typing import Any, List, Tuple


def display_text(value: Any) -> str:
    """Render a cell value the way a spreadsheet shows it."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def has_content(value: Any) -> bool:
    """True for non-None values; strings must contain non-whitespace."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


class TextNormalizer:
    """Handles text folding for case- and accent-insensitive matching."""

    def __init__(self, ignore_diacritics: bool = True) -> None:
        """
        Initialize the normalizer.

        Args:
            ignore_diacritics: Strip combining marks so that "café" matches "cafe"
        """
        self.ignore_diacritics = ignore_diacritics
        self.whitespace_regex = re.compile(r'\s+')

    def fold(self, text: str) -> str:
        """
        Fold text for comparison.

        Args:
            text: Input text

        Returns:
            Lower-cased text, without diacritics when configured
        """
        return self.fold_with_offsets(text)[0]

    def fold_with_offsets(self, text: str) -> Tuple[str, List[int]]:
        """
        Fold text and keep track of where each folded character came from.

        Folding can change the length of a string (decomposition, special
        lower-casing), so every folded character records the index of the
        original character it was produced from.

        Args:
            text: Input text

        Returns:
            Tuple of (folded_text, offsets) where offsets[i] is the original
            index of folded_text[i]
        """
        if not text:
            return "", []

        chars: List[str] = []
        offsets: List[int] = []

        for index, char in enumerate(text):
            parts = unicodedata.normalize('NFKD', char) if self.ignore_diacritics else char
            for part in parts:
                if self.ignore_diacritics and unicodedata.combining(part):
                    continue
                for lowered in part.lower():
                    chars.append(lowered)
                    offsets.append(index)

        return "".join(chars), offsets

    def split_terms(self, query: str) -> List[str]:
        """
        Split a query into terms on runs of whitespace.

        Args:
            query: Raw query string

        Returns:
            Non-empty terms in query order
        """
        if not query:
            return []
        return [term for term in self.whitespace_regex.split(query) if term]

    def cell_text(self, value: Any) -> str:
        return display_text(value)
