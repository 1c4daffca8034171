"""Services around the core: workbook ingestion and preferences."""

from .preferences import InMemoryPreferenceStore, JsonFilePreferenceStore, PreferenceStore
from .workbook import SheetState, WorkbookSession

__all__ = [
    "InMemoryPreferenceStore",
    "JsonFilePreferenceStore",
    "PreferenceStore",
    "SheetState",
    "WorkbookSession",
]
