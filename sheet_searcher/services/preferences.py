"""Persistence of per-file sheet choice, column visibility and fuzziness."""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Optional, Union

import structlog

logger = structlog.get_logger()


class PreferenceStore(ABC):
    """Key-value preferences.

    Sheet choice is keyed by file name, column visibility by (file name,
    sheet name). Subclasses only decide where the document lives.
    """

    @abstractmethod
    def _read(self) -> Dict[str, Any]:
        """Return the whole preference document."""

    @abstractmethod
    def _write(self, data: Dict[str, Any]) -> None:
        """Replace the whole preference document."""

    def get_sheet(self, file_name: str) -> Optional[str]:
        value = self._read().get("sheets", {}).get(file_name)
        return value if isinstance(value, str) else None

    def save_sheet(self, file_name: str, sheet_name: str) -> None:
        data = self._read()
        data.setdefault("sheets", {})[file_name] = sheet_name
        self._write(data)

    def get_columns(self, file_name: str, sheet_name: str) -> Optional[Dict[str, bool]]:
        """
        Saved column visibility for a sheet.

        Returns:
            Mapping of column name to visible flag, or None if nothing is saved
        """
        value = self._read().get("columns", {}).get(file_name, {}).get(sheet_name)
        if not isinstance(value, dict):
            return None
        return {str(key): bool(visible) for key, visible in value.items()}

    def save_columns(self, file_name: str, sheet_name: str, columns: Dict[str, bool]) -> None:
        data = self._read()
        data.setdefault("columns", {}).setdefault(file_name, {})[sheet_name] = dict(columns)
        self._write(data)

    def get_fuzziness(self) -> Optional[float]:
        value = self._read().get("fuzziness")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        if not 0.0 <= value <= 1.0:
            return None
        return float(value)

    def save_fuzziness(self, fuzziness: float) -> None:
        """Store the default fuzziness, rounded to one decimal like the slider steps."""
        data = self._read()
        data["fuzziness"] = round(fuzziness, 1)
        self._write(data)


class InMemoryPreferenceStore(PreferenceStore):
    """Preferences that live as long as the process."""

    def __init__(self, data: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = deepcopy(data or {})

    def _read(self) -> Dict[str, Any]:
        return deepcopy(self._data)

    def _write(self, data: Dict[str, Any]) -> None:
        self._data = deepcopy(data)


class JsonFilePreferenceStore(PreferenceStore):
    """Preferences kept in one JSON document on disk."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("preferences_unreadable", path=str(self.path), error=str(e))
            return {}

        if not isinstance(data, dict):
            logger.warning("preferences_malformed", path=str(self.path), type=type(data).__name__)
            return {}

        return data

    def _write(self, data: Dict[str, Any]) -> None:
        # Atomic replace via a sibling temp file
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=".prefs-", suffix=".json")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
