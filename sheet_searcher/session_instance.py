"""Global workbook session instance to avoid circular imports."""

from .config import get_settings
from .core.engine import SearchEngine
from .core.sheet_normalizer import SheetNormalizer
from .services.preferences import JsonFilePreferenceStore
from .services.workbook import WorkbookSession

# Global search engine and session instances
settings = get_settings()
search_engine = SearchEngine(
    default_fuzziness=settings.default_fuzziness,
    min_match_char_length=settings.min_match_char_length,
    ignore_diacritics=settings.ignore_diacritics,
    extended_search=settings.extended_search,
)
workbook_session = WorkbookSession(
    engine=search_engine,
    preferences=JsonFilePreferenceStore(settings.preferences_path),
    normalizer=SheetNormalizer(drop_leading_column=settings.drop_leading_column),
)
