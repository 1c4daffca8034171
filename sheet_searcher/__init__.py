"""
Sheet Searcher - typo-tolerant, multi-term search over spreadsheet data.

This package turns a spreadsheet sheet into clean row records (merged cells
filled, spacer rows dropped, hyperlinks kept aside) and answers
whitespace-separated AND queries over them with fuzzy matching, match
scores and highlight spans.
"""

__version__ = "1.0.0"

from .core.engine import SearchEngine
from .core.sheet_normalizer import SheetNormalizer
from .models.response import SearchResult, SearchResponse

__all__ = [
    "SearchEngine",
    "SheetNormalizer",
    "SearchResult",
    "SearchResponse",
]
