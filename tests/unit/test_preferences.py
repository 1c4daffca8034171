"""Unit tests for preference persistence."""

import json

import pytest

from sheet_searcher.services.preferences import InMemoryPreferenceStore, JsonFilePreferenceStore


class TestInMemoryPreferenceStore:
    """Test cases for the in-memory store."""

    @pytest.fixture
    def store(self):
        """Create an empty store for testing."""
        return InMemoryPreferenceStore()

    def test_empty(self, store):
        """Test that nothing is stored initially."""
        assert store.get_sheet("people.xlsx") is None
        assert store.get_columns("people.xlsx", "People") is None
        assert store.get_fuzziness() is None

    def test_sheet(self, store):
        """Test sheet choice per file."""
        store.save_sheet("people.xlsx", "Archive")
        store.save_sheet("orders.xlsx", "2024")

        assert store.get_sheet("people.xlsx") == "Archive"
        assert store.get_sheet("orders.xlsx") == "2024"

    def test_columns_per_sheet(self, store):
        """Test that column toggles are keyed by file and sheet."""
        store.save_columns("people.xlsx", "People", {"Name": True, "Notes": False})

        assert store.get_columns("people.xlsx", "People") == {"Name": True, "Notes": False}
        assert store.get_columns("people.xlsx", "Archive") is None
        assert store.get_columns("orders.xlsx", "People") is None

    def test_fuzziness_rounded(self, store):
        """Test that the tolerance is stored to one decimal."""
        store.save_fuzziness(0.34)

        assert store.get_fuzziness() == 0.3

    def test_invalid_stored_fuzziness_ignored(self):
        """Test that out-of-range values are not returned."""
        assert InMemoryPreferenceStore({"fuzziness": 3}).get_fuzziness() is None
        assert InMemoryPreferenceStore({"fuzziness": "0.2"}).get_fuzziness() is None

    def test_initial_data_copied(self):
        """Test that the store does not share the caller's dict."""
        data = {"sheets": {"people.xlsx": "People"}}
        store = InMemoryPreferenceStore(data)

        store.save_sheet("people.xlsx", "Archive")

        assert data["sheets"]["people.xlsx"] == "People"


class TestJsonFilePreferenceStore:
    """Test cases for the JSON file store."""

    @pytest.fixture
    def path(self, tmp_path):
        """Location of the preference file."""
        return tmp_path / "prefs" / "sheet_searcher.json"

    def test_missing_file(self, path):
        """Test reading before anything was written."""
        store = JsonFilePreferenceStore(path)

        assert store.get_sheet("people.xlsx") is None
        assert not path.exists()

    def test_persists_across_instances(self, path):
        """Test that a second store sees what the first wrote."""
        JsonFilePreferenceStore(path).save_sheet("people.xlsx", "Archive")
        JsonFilePreferenceStore(path).save_columns("people.xlsx", "Archive", {"Notes": False})

        store = JsonFilePreferenceStore(path)
        assert store.get_sheet("people.xlsx") == "Archive"
        assert store.get_columns("people.xlsx", "Archive") == {"Notes": False}

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["sheets"] == {"people.xlsx": "Archive"}

    def test_no_temp_files_left(self, path):
        """Test that writes leave only the preference file behind."""
        store = JsonFilePreferenceStore(path)
        store.save_fuzziness(0.5)
        store.save_fuzziness(0.1)

        assert [p.name for p in path.parent.iterdir()] == [path.name]

    def test_corrupt_file(self, path):
        """Test that an unreadable document reads as empty and is replaced on write."""
        path.parent.mkdir(parents=True)
        path.write_text("{not json", encoding="utf-8")
        store = JsonFilePreferenceStore(path)

        assert store.get_sheet("people.xlsx") is None

        store.save_sheet("people.xlsx", "People")
        assert store.get_sheet("people.xlsx") == "People"

    def test_non_object_document(self, path):
        """Test that a JSON document that is not an object reads as empty."""
        path.parent.mkdir(parents=True)
        path.write_text("[1, 2, 3]", encoding="utf-8")

        assert JsonFilePreferenceStore(path).get_fuzziness() is None
