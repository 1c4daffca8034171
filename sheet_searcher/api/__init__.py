"""API endpoints for the sheet searcher."""

from .search import router as search_router
from .workbook import router as workbook_router
from .health import router as health_router

__all__ = [
    "search_router",
    "workbook_router",
    "health_router",
]
