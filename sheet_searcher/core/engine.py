"""Multi-term fuzzy search over row records."""

import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..models.response import ColumnMatch, SearchResult, SearchResponse
from .fuzzy_matcher import EXCLUDE, FuzzyMatcher, SearchTerm
from .index import IndexManager, RecordIndex

# position in the record set, per-term score, per-term column matches
TermHit = Tuple[int, float, List[ColumnMatch]]


class SearchEngine:
    """AND-combines independent single-term fuzzy searches over a record set."""

    def __init__(
        self,
        default_fuzziness: float = 0.2,
        min_match_char_length: int = 2,
        ignore_diacritics: bool = True,
        extended_search: bool = True,
    ) -> None:
        """
        Initialize the search engine.

        Args:
            default_fuzziness: Tolerance used when a search passes none
            min_match_char_length: Shortest span reported for highlighting
            ignore_diacritics: Fold accented characters onto their base letter
            extended_search: Honour term operators ('exact =equal ^prefix suffix$ !not)
        """
        self._validate_fuzziness(default_fuzziness)
        self.default_fuzziness = default_fuzziness
        self.fuzzy_matcher = FuzzyMatcher(
            min_match_char_length=min_match_char_length,
            ignore_diacritics=ignore_diacritics,
            extended_search=extended_search,
        )
        self.normalizer = self.fuzzy_matcher.normalizer
        self.index_manager = IndexManager(self.normalizer)

        # Performance tracking
        self._stats = self._empty_stats()

    def search(
        self,
        records: Sequence[Dict[str, Any]],
        query: str,
        fuzziness: Optional[float] = None,
    ) -> SearchResponse:
        """
        Search a record set.

        Every whitespace-separated term is matched on its own against all
        columns; a record is a result only if every term matched it. Its score
        is the mean of the per-term scores and its matches are the per-term
        matches concatenated. Results are sorted by score, ties keeping record
        order. An empty query returns every record with score 0.

        Records are identified by value: records with identical contents
        collapse into one result.

        Args:
            records: Row records; treated as read-only for the call
            query: Raw query string
            fuzziness: Match tolerance in [0, 1]; engine default when None

        Returns:
            SearchResponse with ordered results
        """
        start_time = time.time()

        fuzziness = self.default_fuzziness if fuzziness is None else fuzziness
        self._validate_fuzziness(fuzziness)

        self._stats["total_queries"] += 1

        terms = self.normalizer.split_terms(query or "")
        keys = self._search_keys(records)

        if not terms:
            self._stats["empty_queries"] += 1
            results = [
                SearchResult(item=dict(record), row_number=self._row_number(record))
                for record in records
            ]
        elif not records:
            results = []
        else:
            index = self.index_manager.get_index(records, keys, fuzziness)
            results = self._and_search(index, [self.fuzzy_matcher.parse_term(t) for t in terms], fuzziness)

        if terms:
            if results:
                self._stats["matched_queries"] += 1
            else:
                self._stats["no_matches"] += 1

        execution_time = (time.time() - start_time) * 1000
        self._stats["total_execution_time"] += execution_time

        return SearchResponse(
            query=query or "",
            terms=terms,
            fuzziness=fuzziness,
            execution_time_ms=execution_time,
            total_results=len(results),
            results=results,
            columns=keys,
        )

    def _and_search(
        self,
        index: RecordIndex,
        terms: List[SearchTerm],
        fuzziness: float,
    ) -> List[SearchResult]:
        """Intersect per-term hits by record identity and combine them."""
        per_term = [self._term_hits(index, term, fuzziness) for term in terms]

        results = []
        # The first term's hits are in record order, so the stable sort below
        # keeps record order among equal scores
        for row_key, (position, _, _) in per_term[0].items():
            if not all(row_key in hits for hits in per_term[1:]):
                continue

            contributions = [hits[row_key] for hits in per_term]
            score = sum(hit[1] for hit in contributions) / len(contributions)
            matches = [match for hit in contributions for match in hit[2]]

            record = index.records[position]
            results.append(SearchResult(
                item=dict(record),
                row_number=self._row_number(record),
                score=score,
                matches=matches
            ))

        results.sort(key=lambda r: r.score)
        return results

    def _term_hits(self, index: RecordIndex, term: SearchTerm, fuzziness: float) -> Dict[str, TermHit]:
        """
        Run one term over every record.

        Returns:
            Hits keyed by record identity, first occurrence of a duplicate wins
        """
        hits: Dict[str, TermHit] = {}

        for position in range(len(index)):
            row_key = index.row_keys[position]
            if row_key in hits:
                continue

            hit = self._match_row(index, position, term, fuzziness)
            if hit is not None:
                hits[row_key] = (position, hit[0], hit[1])

        return hits

    def _match_row(
        self,
        index: RecordIndex,
        position: int,
        term: SearchTerm,
        fuzziness: float,
    ) -> Optional[Tuple[float, List[ColumnMatch]]]:
        """
        Match one term against every column of one record.

        Returns:
            Tuple of (best column score, column matches) or None
        """
        if term.operator == EXCLUDE:
            for key in index.keys:
                _, folded, _ = index.entry(position, key)
                if self.fuzzy_matcher.contains(term.folded, folded):
                    return None
            return 0.0, []

        best_score: Optional[float] = None
        matches: List[ColumnMatch] = []

        for key in index.keys:
            text, folded, offsets = index.entry(position, key)
            found = self.fuzzy_matcher.match_folded(term, folded, offsets, fuzziness)
            if found is None:
                continue

            if best_score is None or found.score < best_score:
                best_score = found.score
            if found.indices:
                matches.append(ColumnMatch(key=key, value=text, indices=found.indices))

        if best_score is None:
            return None
        return best_score, matches

    @staticmethod
    def _search_keys(records: Sequence[Dict[str, Any]]) -> List[str]:
        """Every column name in the record set, in first-seen order."""
        keys: Dict[str, None] = {}
        for record in records:
            for key in record:
                keys.setdefault(key, None)
        return list(keys)

    @staticmethod
    def _row_number(record: Dict[str, Any]) -> Optional[int]:
        return getattr(record, "row_number", None)

    @staticmethod
    def _validate_fuzziness(fuzziness: float) -> None:
        if not 0.0 <= fuzziness <= 1.0:
            raise ValueError(f"Fuzziness must be between 0 and 1, got {fuzziness}")

    @staticmethod
    def _empty_stats() -> Dict[str, Any]:
        return {
            "total_queries": 0,
            "empty_queries": 0,
            "matched_queries": 0,
            "no_matches": 0,
            "total_execution_time": 0.0
        }

    def get_stats(self) -> Dict[str, Any]:
        """Get engine statistics."""
        stats = self._stats.copy()

        # Calculate averages
        if stats["total_queries"] > 0:
            stats["average_execution_time_ms"] = (
                stats["total_execution_time"] / stats["total_queries"]
            )
            stats["no_match_rate"] = stats["no_matches"] / stats["total_queries"]
        else:
            stats["average_execution_time_ms"] = 0.0
            stats["no_match_rate"] = 0.0

        # Add index stats
        stats["index_stats"] = self.index_manager.get_stats()

        return stats

    def clear(self) -> None:
        """Drop the cached index and reset statistics."""
        self.index_manager.clear()
        self._stats = self._empty_stats()
