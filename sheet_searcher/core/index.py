"""Search index over a record set, with a one-slot cache."""

import json
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .normalizer import TextNormalizer

IndexEntry = Tuple[str, str, List[int]]  # display text, folded text, offsets


def record_key(record: Dict[str, Any]) -> str:
    """
    Value identity of a record.

    Two records with the same contents share a key whatever object they
    live in, and whatever row number they came from. Integral floats key
    like the equal int (``1.0`` and ``1``); booleans stay distinct from
    numbers because they display differently.
    """
    canonical = {
        key: int(value) if isinstance(value, float) and value.is_integer() else value
        for key, value in record.items()
    }
    return json.dumps(canonical, sort_keys=True, default=str, ensure_ascii=False)


class RecordIndex:
    """Folded column texts and identity keys for one record set."""

    def __init__(
        self,
        records: Sequence[Dict[str, Any]],
        keys: Sequence[str],
        fuzziness: float,
        normalizer: Optional[TextNormalizer] = None,
    ) -> None:
        """
        Build the index.

        Args:
            records: Record set; held by reference and never modified
            keys: Searchable column names
            fuzziness: Match tolerance this index serves
            normalizer: Text normalizer used for folding
        """
        self.records = records
        self.keys: Tuple[str, ...] = tuple(keys)
        self.fuzziness = fuzziness
        self.normalizer = normalizer or TextNormalizer()

        self.row_keys: List[str] = []
        self._entries: List[Dict[str, IndexEntry]] = []

        for record in records:
            self.row_keys.append(record_key(record))
            entries: Dict[str, IndexEntry] = {}
            for key in self.keys:
                # Columns missing from a record search as empty text
                text = self.normalizer.cell_text(record.get(key, ""))
                folded, offsets = self.normalizer.fold_with_offsets(text)
                entries[key] = (text, folded, offsets)
            self._entries.append(entries)

        self._stats = {
            "total_records": len(self._entries),
            "total_keys": len(self.keys),
            "built_at": time.time()
        }

    def entry(self, position: int, key: str) -> IndexEntry:
        return self._entries[position][key]

    def matches(self, records: Sequence[Dict[str, Any]], keys: Sequence[str], fuzziness: float) -> bool:
        """Whether this index was built from exactly these inputs."""
        return self.records is records and self.keys == tuple(keys) and self.fuzziness == fuzziness

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        """Get index statistics."""
        return self._stats.copy()


class IndexManager:
    """Keeps the index for the most recent (records, keys, fuzziness)."""

    def __init__(self, normalizer: Optional[TextNormalizer] = None) -> None:
        """Initialize the index manager."""
        self.normalizer = normalizer or TextNormalizer()
        self._current: Optional[RecordIndex] = None
        self._stats = {
            "builds": 0,
            "cache_hits": 0
        }

    def get_index(
        self,
        records: Sequence[Dict[str, Any]],
        keys: Sequence[str],
        fuzziness: float,
    ) -> RecordIndex:
        """
        Return the index for these inputs, rebuilding it if any changed.

        Records are compared by reference: a new record set is a new list.

        Args:
            records: Record set
            keys: Searchable column names
            fuzziness: Match tolerance

        Returns:
            RecordIndex for the inputs
        """
        current = self._current
        if current is not None and current.matches(records, keys, fuzziness):
            self._stats["cache_hits"] += 1
            return current

        index = RecordIndex(records, keys, fuzziness, self.normalizer)
        self._current = index
        self._stats["builds"] += 1
        return index

    def clear(self) -> None:
        """Drop the cached index."""
        self._current = None
        self._stats = {
            "builds": 0,
            "cache_hits": 0
        }

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics plus those of the current index."""
        stats = self._stats.copy()
        stats["current_index"] = self._current.get_stats() if self._current is not None else None
        return stats
