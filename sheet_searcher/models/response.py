"""Response models for search results and API endpoints."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field


class ColumnMatch(BaseModel):
    """Where one term matched inside one column."""

    key: str = Field(..., description="Column name the spans refer to")
    value: str = Field(..., description="Display text of the column")
    indices: List[Tuple[int, int]] = Field(
        default_factory=list, description="Half-open (start, end) character offsets into value"
    )


class SearchResult(BaseModel):
    """Individual search result."""

    item: Dict[str, Any] = Field(..., description="Row record contents")
    row_number: Optional[int] = Field(None, description="1-based sheet row the record came from")
    score: float = Field(0.0, ge=0.0, le=1.0, description="Match score, 0 is exact")
    matches: List[ColumnMatch] = Field(default_factory=list, description="Per-column match spans")

    def spans_for(self, key: str) -> List[Tuple[int, int]]:
        """
        Sorted, merged spans for one column.

        Several terms may highlight the same column; overlapping or touching
        spans are merged so a highlighter can walk them left to right.
        """
        spans = sorted(span for match in self.matches if match.key == key for span in match.indices)
        merged: List[Tuple[int, int]] = []
        for start, end in spans:
            if merged and start <= merged[-1][1]:
                merged[-1] = (merged[-1][0], max(merged[-1][1], end))
            else:
                merged.append((start, end))
        return merged


class SearchResponse(BaseModel):
    """Response for search queries."""

    query: str = Field(..., description="Original search query")
    terms: List[str] = Field(default_factory=list, description="Whitespace-separated query terms")
    fuzziness: float = Field(..., ge=0.0, le=1.0, description="Match tolerance used")
    execution_time_ms: float = Field(..., description="Query execution time in milliseconds")
    total_results: int = Field(..., description="Total number of results")
    results: List[SearchResult] = Field(..., description="Search results, best first")
    columns: List[str] = Field(default_factory=list, description="Column names of the record set")
    visible_columns: List[str] = Field(
        default_factory=list, description="Columns with content in the results that are not hidden"
    )
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Response timestamp")


class WorkbookResponse(BaseModel):
    """State of the loaded workbook."""

    file_name: Optional[str] = Field(None, description="Name of the loaded file")
    sheet_names: List[str] = Field(default_factory=list, description="Sheets in the workbook")
    selected_sheet: Optional[str] = Field(None, description="Sheet currently searched")
    columns: List[str] = Field(default_factory=list, description="Column names of the record set")
    content_columns: List[str] = Field(default_factory=list, description="Columns with any content")
    column_visibility: Dict[str, bool] = Field(default_factory=dict, description="Column toggles")
    total_rows: int = Field(0, description="Number of row records")


class LinkMapResponse(BaseModel):
    """Hyperlinks of the selected sheet."""

    selected_sheet: Optional[str] = Field(None, description="Sheet the links belong to")
    links: Dict[int, Dict[str, str]] = Field(
        default_factory=dict, description="1-based row number -> column -> target"
    )


class ColumnVisibilityResponse(BaseModel):
    """Column visibility of the selected sheet."""

    selected_sheet: Optional[str] = Field(None, description="Sheet the toggles belong to")
    column_visibility: Dict[str, bool] = Field(default_factory=dict, description="Column toggles")


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Error timestamp")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Application version")
    uptime: float = Field(..., description="Service uptime in seconds")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Check timestamp")
    dependencies: Dict[str, str] = Field(..., description="Dependency status")
