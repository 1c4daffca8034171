"""Search API endpoints."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from ..config import get_settings
from ..models.request import FuzzinessRequest, SearchRequest
from ..models.response import SearchResponse

router = APIRouter(prefix="/api/v1", tags=["search"])
settings = get_settings()

# Import the global workbook session instance
from ..session_instance import workbook_session


def _run_search(query: str, fuzziness: Optional[float]) -> SearchResponse:
    if len(query) > settings.max_query_length:
        raise HTTPException(
            status_code=400,
            detail=f"Query too long. Maximum length is {settings.max_query_length} characters"
        )
    return workbook_session.search(query, fuzziness)


@router.get(
    "/search",
    response_model=SearchResponse,
    summary="Search the selected sheet",
    description="Whitespace-separated terms, every term must match somewhere in the row"
)
async def search_rows(
    q: str = Query("", description="Search query"),
    fuzziness: Optional[float] = Query(
        None,
        ge=0.0,
        le=1.0,
        description="Match tolerance (0.0 exact - 1.0 anything)"
    )
) -> SearchResponse:
    """
    Search the rows of the selected sheet.

    An empty query returns every row. Results are ordered best match first
    and carry per-column spans for highlighting.
    """
    return _run_search(q, fuzziness)


@router.post(
    "/search",
    response_model=SearchResponse,
    summary="Search with request body",
    description="Search the selected sheet using a structured request body"
)
async def search_with_body(request: SearchRequest) -> SearchResponse:
    """Search the rows of the selected sheet using a JSON body."""
    return _run_search(request.query, request.fuzziness)


@router.put(
    "/fuzziness",
    summary="Store default fuzziness",
    description="Persist the tolerance used when a search does not pass one"
)
async def set_fuzziness(request: FuzzinessRequest) -> dict:
    """Store the default fuzziness (rounded to one decimal)."""
    return {"fuzziness": workbook_session.set_default_fuzziness(request.fuzziness)}


@router.get(
    "/fuzziness",
    summary="Get default fuzziness",
    description="Tolerance used when a search does not pass one"
)
async def get_fuzziness() -> dict:
    """Get the default fuzziness."""
    return {"fuzziness": workbook_session.default_fuzziness()}
