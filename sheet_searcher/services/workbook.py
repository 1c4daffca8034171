"""Workbook session: ingestion, sheet switching and search over one workbook."""

import csv
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Union

import structlog
from openpyxl import load_workbook
from openpyxl.chartsheet import Chartsheet
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from ..core.engine import SearchEngine
from ..core.grid import SheetGrid
from ..core.normalizer import has_content
from ..core.sheet_normalizer import LinkMap, RowRecord, SheetNormalizer, column_names
from ..exceptions import (
    ColumnNotFoundError,
    NoWorkbookLoadedError,
    SheetNotFoundError,
    WorkbookLoadError,
)
from ..models.response import SearchResponse, SearchResult
from .preferences import PreferenceStore

logger = structlog.get_logger()

# A parsed grid (CSV) or an openpyxl sheet converted on selection
SheetSource = Union[SheetGrid, Worksheet, Chartsheet]


class SheetState(NamedTuple):
    """Everything derived from the selected sheet. Replaced as a whole."""

    sheet_name: str
    records: List[RowRecord]
    link_map: LinkMap
    content_columns: List[str]
    column_visibility: Dict[str, bool]


class WorkbookSession:
    """Holds one loaded workbook and the record set of its selected sheet.

    Every load or sheet switch builds a complete new ``SheetState`` before
    assigning it, so readers never see records from one sheet next to links
    or column toggles from another.
    """

    def __init__(
        self,
        engine: SearchEngine,
        preferences: PreferenceStore,
        normalizer: Optional[SheetNormalizer] = None,
    ) -> None:
        """
        Initialize the session.

        Args:
            engine: Search engine used for every query
            preferences: Store for sheet choice, column toggles and fuzziness
            normalizer: Sheet normalizer; defaults to one that keeps every column
        """
        self.engine = engine
        self.preferences = preferences
        self.normalizer = normalizer or SheetNormalizer()

        self._sources: Optional[Dict[str, SheetSource]] = None
        self._file_name: Optional[str] = None
        self._state: Optional[SheetState] = None

    # -------------------------
    # Ingestion
    # -------------------------

    def load_bytes(self, data: bytes, file_name: str) -> Optional[str]:
        """
        Decode workbook bytes and select the preferred or first sheet.

        Files ending in ``.csv`` are read as a single-sheet workbook; anything
        else goes through openpyxl.

        Args:
            data: Raw .xlsx/.xlsm or .csv bytes
            file_name: Name used to key stored preferences

        Returns:
            Name of the selected sheet, or None for a workbook without sheets

        Raises:
            WorkbookLoadError: If the bytes are not a readable workbook. The
                previously loaded workbook stays in place.
        """
        if file_name.lower().endswith(".csv"):
            return self.load_csv(data, file_name)

        log = logger.bind(file_name=file_name, size_bytes=len(data))

        try:
            workbook = load_workbook(BytesIO(data), data_only=True)
        except Exception as e:
            # openpyxl surfaces malformed parts as arbitrary exception types
            log.error("workbook_load_failed", error=str(e), error_type=type(e).__name__)
            raise WorkbookLoadError(f"Could not read workbook '{file_name}': {e}") from e

        log.info("workbook_decoded", sheet_count=len(workbook.sheetnames))
        return self.load_workbook(workbook, file_name)

    def load_csv(self, data: bytes, file_name: str) -> Optional[str]:
        """
        Decode CSV bytes as a workbook with one sheet named after the file.

        Raises:
            WorkbookLoadError: If the bytes are not UTF-8 CSV. The previously
                loaded workbook stays in place.
        """
        log = logger.bind(file_name=file_name, size_bytes=len(data))
        sheet_name = Path(file_name).stem or "Sheet1"

        try:
            grid = SheetGrid.from_csv(data.decode("utf-8-sig"), name=sheet_name)
        except (UnicodeDecodeError, csv.Error) as e:
            log.error("csv_load_failed", error=str(e))
            raise WorkbookLoadError(f"Could not read CSV '{file_name}': {e}") from e

        log.info("csv_decoded", sheet=sheet_name)
        return self._load_sources({sheet_name: grid}, file_name)

    def load_path(self, path: Union[str, Path]) -> Optional[str]:
        """Read a workbook from disk; see load_bytes."""
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            logger.error("workbook_read_failed", path=str(path), error=str(e))
            raise WorkbookLoadError(f"Could not read workbook '{path}': {e}") from e
        return self.load_bytes(data, path.name)

    def load_workbook(self, workbook: Workbook, file_name: str) -> Optional[str]:
        """
        Take over an already decoded workbook.

        The stored sheet preference for ``file_name`` wins if that sheet
        still exists; otherwise the first sheet is selected.

        Returns:
            Name of the selected sheet, or None for a workbook without sheets
        """
        return self._load_sources({name: workbook[name] for name in workbook.sheetnames}, file_name)

    def _load_sources(self, sources: Dict[str, SheetSource], file_name: str) -> Optional[str]:
        names = list(sources)
        preferred = self.preferences.get_sheet(file_name)
        chosen = preferred if preferred in names else (names[0] if names else None)

        state = self._build_state(sources, file_name, chosen) if chosen else None

        self._sources = sources
        self._file_name = file_name
        self._state = state

        logger.info(
            "workbook_loaded",
            file_name=file_name,
            sheets=names,
            selected_sheet=chosen,
            preferred_sheet=preferred
        )
        return chosen

    def select_sheet(self, sheet_name: str) -> SheetState:
        """
        Switch to another sheet and remember the choice for this file.

        Raises:
            NoWorkbookLoadedError: If nothing is loaded
            SheetNotFoundError: If the workbook has no such sheet
        """
        sources = self._require_workbook()
        if sheet_name not in sources:
            raise SheetNotFoundError(f"Sheet '{sheet_name}' not found in '{self._file_name}'")

        state = self._build_state(sources, self._file_name, sheet_name)
        self._state = state
        self._persist(self.preferences.save_sheet, self._file_name, sheet_name)

        logger.info("sheet_selected", file_name=self._file_name, sheet=sheet_name, total_rows=len(state.records))
        return state

    def _build_state(self, sources: Dict[str, SheetSource], file_name: str, sheet_name: str) -> SheetState:
        source = sources[sheet_name]
        grid = source if isinstance(source, SheetGrid) else SheetGrid.from_worksheet(source)
        normalized = self.normalizer.normalize(grid)

        defaults = {key: True for key in column_names(normalized.records)}
        saved = self.preferences.get_columns(file_name, sheet_name) or {}

        return SheetState(
            sheet_name=sheet_name,
            records=normalized.records,
            link_map=normalized.link_map,
            content_columns=normalized.columns,
            column_visibility={**defaults, **saved},
        )

    # -------------------------
    # Accessors
    # -------------------------

    @property
    def file_name(self) -> Optional[str]:
        return self._file_name

    @property
    def sheet_names(self) -> List[str]:
        return list(self._sources) if self._sources is not None else []

    @property
    def selected_sheet(self) -> Optional[str]:
        return self._state.sheet_name if self._state is not None else None

    @property
    def records(self) -> List[RowRecord]:
        return self._state.records if self._state is not None else []

    @property
    def link_map(self) -> LinkMap:
        return self._state.link_map if self._state is not None else {}

    @property
    def columns(self) -> List[str]:
        return column_names(self.records)

    @property
    def content_columns(self) -> List[str]:
        return self._state.content_columns if self._state is not None else []

    @property
    def column_visibility(self) -> Dict[str, bool]:
        return dict(self._state.column_visibility) if self._state is not None else {}

    def link_for(self, row_number: Optional[int], column: str) -> Optional[str]:
        """Hyperlink target of one cell, if the sheet had one."""
        if row_number is None:
            return None
        return self.link_map.get(row_number, {}).get(column)

    # -------------------------
    # Column visibility
    # -------------------------

    def set_column_visibility(self, column: str, visible: bool) -> Dict[str, bool]:
        """
        Show or hide a column and store the full mapping for this sheet.

        Raises:
            NoWorkbookLoadedError: If nothing is loaded
            ColumnNotFoundError: If the selected sheet has no such column
        """
        self._require_workbook()
        state = self._state
        if state is None or column not in state.column_visibility:
            raise ColumnNotFoundError(f"Column '{column}' not found in sheet '{self.selected_sheet}'")

        visibility = {**state.column_visibility, column: visible}
        self._state = state._replace(column_visibility=visibility)
        self._persist(self.preferences.save_columns, self._file_name, state.sheet_name, visibility)
        return dict(visibility)

    def visible_columns(self, results: List[SearchResult]) -> List[str]:
        """
        Columns to show for a result list.

        A column is shown if any result has content in it and the user has
        not switched it off.
        """
        visibility = self.column_visibility
        return [
            key for key in self.columns
            if visibility.get(key) is not False
            and any(has_content(result.item.get(key)) for result in results)
        ]

    # -------------------------
    # Search
    # -------------------------

    def default_fuzziness(self) -> float:
        stored = self.preferences.get_fuzziness()
        return stored if stored is not None else self.engine.default_fuzziness

    def set_default_fuzziness(self, fuzziness: float) -> float:
        if not 0.0 <= fuzziness <= 1.0:
            raise ValueError(f"Fuzziness must be between 0 and 1, got {fuzziness}")
        self._persist(self.preferences.save_fuzziness, fuzziness)
        return self.default_fuzziness()

    def search(self, query: str, fuzziness: Optional[float] = None) -> SearchResponse:
        """
        Search the selected sheet.

        Args:
            query: Raw query string
            fuzziness: Match tolerance; the stored default when None

        Returns:
            SearchResponse from the engine, with the columns to display
            for its results
        """
        if fuzziness is None:
            fuzziness = self.default_fuzziness()
        response = self.engine.search(self.records, query, fuzziness)
        response.visible_columns = self.visible_columns(response.results)
        return response

    # -------------------------
    # Helpers
    # -------------------------

    def _require_workbook(self) -> Dict[str, SheetSource]:
        if self._sources is None:
            raise NoWorkbookLoadedError("No workbook loaded")
        return self._sources

    def _persist(self, save: Any, *args: Any) -> None:
        try:
            save(*args)
        except OSError as e:
            logger.warning("preferences_write_failed", operation=save.__name__, error=str(e))

    def reset(self) -> None:
        """Forget the loaded workbook."""
        self._sources = None
        self._file_name = None
        self._state = None
