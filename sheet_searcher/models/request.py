"""Request models for API endpoints."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class SearchRequest(BaseModel):
    """Request model for search queries."""

    query: str = Field("", description="Search query, terms separated by whitespace")
    fuzziness: Optional[float] = Field(
        None, ge=0.0, le=1.0, description="Match tolerance (0 exact, 1 anything)"
    )


class SheetSelectionRequest(BaseModel):
    """Request model for switching sheets."""

    sheet_name: str = Field(..., min_length=1, description="Sheet to search")

    @field_validator('sheet_name')
    @classmethod
    def validate_sheet_name(cls, v: str) -> str:
        """Reject blank sheet names."""
        if not v.strip():
            raise ValueError("Sheet name cannot be empty")
        return v


class ColumnVisibilityRequest(BaseModel):
    """Request model for toggling a column."""

    visible: bool = Field(..., description="Whether the column is shown")


class FuzzinessRequest(BaseModel):
    """Request model for storing the default fuzziness."""

    fuzziness: float = Field(..., ge=0.0, le=1.0, description="Match tolerance (0 exact, 1 anything)")
