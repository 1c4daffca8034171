"""Core normalization and search functionality."""

from .engine import SearchEngine
from .fuzzy_matcher import FuzzyMatcher
from .grid import Cell, CellRange, SheetGrid
from .index import IndexManager, RecordIndex
from .normalizer import TextNormalizer
from .sheet_normalizer import NormalizedSheet, RowRecord, SheetNormalizer

__all__ = [
    "SearchEngine",
    "FuzzyMatcher",
    "Cell",
    "CellRange",
    "SheetGrid",
    "IndexManager",
    "RecordIndex",
    "TextNormalizer",
    "NormalizedSheet",
    "RowRecord",
    "SheetNormalizer",
]
