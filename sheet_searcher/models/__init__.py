"""Data models for the sheet searcher."""

from .response import (
    ColumnMatch,
    SearchResult,
    SearchResponse,
    WorkbookResponse,
    LinkMapResponse,
    ColumnVisibilityResponse,
    ErrorResponse,
    HealthResponse,
)
from .request import (
    SearchRequest,
    SheetSelectionRequest,
    ColumnVisibilityRequest,
    FuzzinessRequest,
)

__all__ = [
    "ColumnMatch",
    "SearchResult",
    "SearchResponse",
    "WorkbookResponse",
    "LinkMapResponse",
    "ColumnVisibilityResponse",
    "ErrorResponse",
    "HealthResponse",
    "SearchRequest",
    "SheetSelectionRequest",
    "ColumnVisibilityRequest",
    "FuzzinessRequest",
]
