"""Unit tests for the workbook session."""

from io import BytesIO

import pytest
from openpyxl import Workbook
from openpyxl.chart import BarChart, Reference

from sheet_searcher.core.engine import SearchEngine
from sheet_searcher.core.sheet_normalizer import SheetNormalizer
from sheet_searcher.exceptions import (
    ColumnNotFoundError,
    NoWorkbookLoadedError,
    SheetNotFoundError,
    WorkbookLoadError,
)
from sheet_searcher.services.preferences import InMemoryPreferenceStore
from sheet_searcher.services.workbook import WorkbookSession


def build_workbook_bytes() -> bytes:
    """Two-sheet workbook: the people example and a small archive."""
    wb = Workbook()
    people = wb.active
    people.title = "People"
    people.append(["#", "Name", "Notes", "Extra"])
    people.append([1, "Alice", "call later", None])
    people.append([2, None, None, None])
    people.append([3, "Bob", "send invoice", None])
    people["C4"].hyperlink = "https://example.com/invoice"

    archive = wb.create_sheet("Archive")
    archive.append(["#", "Name", "Notes"])
    archive.append([1, "Carol", "paid"])

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def build_chart_first_bytes(with_chart: bool = True) -> bytes:
    """Workbook whose first sheet is a chartsheet over a small data sheet."""
    wb = Workbook()
    data = wb.active
    data.title = "Data"
    data.append(["Item", "Qty"])
    data.append(["bolts", 4])
    data.append(["nuts", 9])

    chartsheet = wb.create_chartsheet("Chart", 0)
    if with_chart:
        chart = BarChart()
        chart.add_data(Reference(data, min_col=2, min_row=1, max_row=3), titles_from_data=True)
        chartsheet.add_chart(chart)

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


class TestWorkbookSession:
    """Test cases for the WorkbookSession class."""

    @pytest.fixture
    def preferences(self):
        """Create an empty preference store for testing."""
        return InMemoryPreferenceStore()

    @pytest.fixture
    def session(self, preferences):
        """Create a session that drops the index column."""
        return WorkbookSession(
            SearchEngine(default_fuzziness=0.2),
            preferences,
            SheetNormalizer(drop_leading_column=True),
        )

    @pytest.fixture
    def workbook_bytes(self):
        """Serialized sample workbook."""
        return build_workbook_bytes()

    def test_initial_state(self, session):
        """Test a session before any load."""
        assert session.file_name is None
        assert session.sheet_names == []
        assert session.selected_sheet is None
        assert session.records == []
        assert session.search("bob").total_results == 0

    def test_load_selects_first_sheet(self, session, workbook_bytes):
        """Test loading without a stored preference."""
        selected = session.load_bytes(workbook_bytes, "people.xlsx")

        assert selected == "People"
        assert session.file_name == "people.xlsx"
        assert session.sheet_names == ["People", "Archive"]
        assert session.records == [
            {"Name": "Alice", "Notes": "call later", "Extra": ""},
            {"Name": "Bob", "Notes": "send invoice", "Extra": ""},
        ]
        assert session.columns == ["Name", "Notes", "Extra"]
        assert session.content_columns == ["Name", "Notes"]
        assert session.link_map == {4: {"Notes": "https://example.com/invoice"}}

    def test_load_uses_preferred_sheet(self, preferences, session, workbook_bytes):
        """Test that a stored sheet choice is restored."""
        preferences.save_sheet("people.xlsx", "Archive")

        assert session.load_bytes(workbook_bytes, "people.xlsx") == "Archive"
        assert [r["Name"] for r in session.records] == ["Carol"]

    def test_stale_preference_falls_back(self, preferences, session, workbook_bytes):
        """Test that a stored sheet that no longer exists is ignored."""
        preferences.save_sheet("people.xlsx", "Gone")

        assert session.load_bytes(workbook_bytes, "people.xlsx") == "People"

    def test_select_sheet(self, preferences, session, workbook_bytes):
        """Test switching sheets and remembering the choice."""
        session.load_bytes(workbook_bytes, "people.xlsx")

        state = session.select_sheet("Archive")

        assert state.sheet_name == "Archive"
        assert session.selected_sheet == "Archive"
        assert session.link_map == {}
        assert preferences.get_sheet("people.xlsx") == "Archive"

    def test_select_unknown_sheet(self, session, workbook_bytes):
        """Test that an unknown sheet leaves the state alone."""
        session.load_bytes(workbook_bytes, "people.xlsx")

        with pytest.raises(SheetNotFoundError):
            session.select_sheet("Nope")
        assert session.selected_sheet == "People"

    def test_select_before_load(self, session):
        """Test switching sheets with nothing loaded."""
        with pytest.raises(NoWorkbookLoadedError):
            session.select_sheet("People")

    def test_bad_bytes_keep_previous_workbook(self, session, workbook_bytes):
        """Test that a failed load does not replace what is loaded."""
        session.load_bytes(workbook_bytes, "people.xlsx")

        with pytest.raises(WorkbookLoadError):
            session.load_bytes(b"definitely not a workbook", "broken.xlsx")

        assert session.file_name == "people.xlsx"
        assert len(session.records) == 2

    def test_load_path(self, session, workbook_bytes, tmp_path):
        """Test loading from disk."""
        path = tmp_path / "people.xlsx"
        path.write_bytes(workbook_bytes)

        assert session.load_path(path) == "People"
        assert session.file_name == "people.xlsx"

    def test_load_missing_path(self, session, tmp_path):
        """Test that a missing file is a load error."""
        with pytest.raises(WorkbookLoadError):
            session.load_path(tmp_path / "missing.xlsx")

    def test_search(self, session, workbook_bytes):
        """Test searching the selected sheet."""
        session.load_bytes(workbook_bytes, "people.xlsx")

        response = session.search("invoice")

        assert [r.item["Name"] for r in response.results] == ["Bob"]
        assert response.results[0].row_number == 4
        assert session.link_for(response.results[0].row_number, "Notes") == "https://example.com/invoice"
        assert session.link_for(response.results[0].row_number, "Name") is None
        assert session.search("call invoice").total_results == 0

    def test_column_visibility(self, preferences, session, workbook_bytes):
        """Test toggling a column and restoring it on reload."""
        session.load_bytes(workbook_bytes, "people.xlsx")
        assert session.column_visibility == {"Name": True, "Notes": True, "Extra": True}

        session.set_column_visibility("Notes", False)

        assert session.column_visibility["Notes"] is False
        assert preferences.get_columns("people.xlsx", "People") == {
            "Name": True, "Notes": False, "Extra": True
        }

        session.reset()
        session.load_bytes(build_workbook_bytes(), "people.xlsx")
        assert session.column_visibility["Notes"] is False

    def test_unknown_column(self, session, workbook_bytes):
        """Test toggling a column the sheet does not have."""
        session.load_bytes(workbook_bytes, "people.xlsx")

        with pytest.raises(ColumnNotFoundError):
            session.set_column_visibility("Nope", False)

    def test_visible_columns(self, session, workbook_bytes):
        """Test that hidden and empty columns are not shown."""
        session.load_bytes(workbook_bytes, "people.xlsx")
        results = session.search("").results

        assert session.visible_columns(results) == ["Name", "Notes"]

        session.set_column_visibility("Name", False)
        assert session.visible_columns(results) == ["Notes"]
        assert session.visible_columns([]) == []

    def test_default_fuzziness(self, preferences, session, workbook_bytes):
        """Test the stored tolerance and its fallback."""
        session.load_bytes(workbook_bytes, "people.xlsx")
        assert session.default_fuzziness() == 0.2

        assert session.set_default_fuzziness(0.04) == 0.0
        assert session.search("invoce").total_results == 0
        assert session.search("invoce", fuzziness=0.2).total_results == 1

        with pytest.raises(ValueError):
            session.set_default_fuzziness(2.0)

    def test_search_reports_visible_columns(self, session, workbook_bytes):
        """Test that search responses carry the columns to display."""
        session.load_bytes(workbook_bytes, "people.xlsx")

        assert session.search("").visible_columns == ["Name", "Notes"]

        session.set_column_visibility("Notes", False)
        assert session.search("invoice").visible_columns == ["Name"]
        assert session.search("zzzzzz").visible_columns == []

    def test_chartsheet_first(self, session):
        """Test that a leading chartsheet loads as an empty sheet."""
        selected = session.load_bytes(build_chart_first_bytes(), "chart.xlsx")

        assert selected == "Chart"
        assert session.sheet_names == ["Chart", "Data"]
        assert session.records == []
        assert session.link_map == {}

        session.select_sheet("Data")
        assert [r["Qty"] for r in session.records] == [4, 9]

    def test_undecodable_workbook_part(self, session, workbook_bytes):
        """Test that any openpyxl decode failure becomes a load error."""
        session.load_bytes(workbook_bytes, "people.xlsx")

        with pytest.raises(WorkbookLoadError):
            session.load_bytes(build_chart_first_bytes(with_chart=False), "broken.xlsx")

        assert session.file_name == "people.xlsx"
        assert session.selected_sheet == "People"

    def test_load_csv(self, preferences, session):
        """Test that a CSV file loads as one sheet named after the file."""
        data = "#,Name,Notes\n1,Alice,call later\n2,,\n3,Bob,send invoice\n".encode("utf-8-sig")

        selected = session.load_bytes(data, "people.csv")

        assert selected == "people"
        assert session.sheet_names == ["people"]
        assert session.records == [
            {"Name": "Alice", "Notes": "call later"},
            {"Name": "Bob", "Notes": "send invoice"},
        ]
        assert [r.row_number for r in session.records] == [2, 4]
        assert [r.item["Name"] for r in session.search("invoice").results] == ["Bob"]

        session.select_sheet("people")
        assert preferences.get_sheet("people.csv") == "people"

    def test_load_csv_not_utf8(self, session, workbook_bytes):
        """Test that undecodable CSV bytes are a load error."""
        session.load_bytes(workbook_bytes, "people.xlsx")

        with pytest.raises(WorkbookLoadError):
            session.load_bytes(b"Name\n\xff\xfe\xfa\n", "broken.csv")

        assert session.file_name == "people.xlsx"
