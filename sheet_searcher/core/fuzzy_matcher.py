"""Single-term approximate substring matching with highlight positions."""

from typing import List, NamedTuple, Optional, Tuple

from rapidfuzz import fuzz

from .normalizer import TextNormalizer

Span = Tuple[int, int]

# Term operators. Anything but FUZZY needs an exact (folded) hit.
FUZZY = "fuzzy"
INCLUDE = "include"
EQUAL = "equal"
PREFIX = "prefix"
SUFFIX = "suffix"
EXCLUDE = "exclude"


class SearchTerm(NamedTuple):
    """A parsed query term."""

    raw: str
    text: str
    folded: str
    operator: str


class TermMatch(NamedTuple):
    """Result of matching one term against one text."""

    score: float
    indices: List[Span]


class FuzzyMatcher:
    """Scores one term against one text and reports where it matched."""

    def __init__(
        self,
        min_match_char_length: int = 2,
        ignore_diacritics: bool = True,
        extended_search: bool = True,
    ) -> None:
        """
        Initialize the fuzzy matcher.

        Args:
            min_match_char_length: Shortest span reported for highlighting
            ignore_diacritics: Fold accented characters onto their base letter
            extended_search: Honour the 'exact =equal ^prefix suffix$ !not operators
        """
        self.min_match_char_length = min_match_char_length
        self.extended_search = extended_search
        self.normalizer = TextNormalizer(ignore_diacritics=ignore_diacritics)

    def parse_term(self, term: str) -> SearchTerm:
        """
        Parse one whitespace-free query term.

        Args:
            term: Raw term

        Returns:
            SearchTerm with its operator and folded text
        """
        operator = FUZZY
        text = term

        if self.extended_search and len(term) > 1:
            if term.startswith("'"):
                operator, text = INCLUDE, term[1:]
            elif term.startswith("="):
                operator, text = EQUAL, term[1:]
            elif term.startswith("^"):
                operator, text = PREFIX, term[1:]
            elif term.startswith("!"):
                operator, text = EXCLUDE, term[1:]
            elif term.endswith("$"):
                operator, text = SUFFIX, term[:-1]

        return SearchTerm(raw=term, text=text, folded=self.normalizer.fold(text), operator=operator)

    def match(self, term: str, text: str, fuzziness: float) -> Optional[TermMatch]:
        """
        Match a raw term against a raw text.

        Args:
            term: Query term, operators allowed
            text: Text to search in
            fuzziness: Tolerance in [0, 1]; 0 only accepts exact substrings

        Returns:
            TermMatch with spans into ``text``, or None
        """
        parsed = self.parse_term(term)
        folded, offsets = self.normalizer.fold_with_offsets(text)
        if parsed.operator == EXCLUDE:
            if self.contains(parsed.folded, folded):
                return None
            return TermMatch(score=0.0, indices=[])
        return self.match_folded(parsed, folded, offsets, fuzziness)

    def contains(self, folded_term: str, folded_text: str) -> bool:
        return bool(folded_term) and folded_term in folded_text

    def match_folded(
        self,
        term: SearchTerm,
        folded_text: str,
        offsets: List[int],
        fuzziness: float,
    ) -> Optional[TermMatch]:
        """
        Match a parsed term against pre-folded text.

        Scores run from 0 (exact) to 1; a match is accepted when its score is
        at most ``fuzziness``. Spans are half-open offsets into the original,
        unfolded text.

        Args:
            term: Parsed term (EXCLUDE is handled by the caller)
            folded_text: Folded text from TextNormalizer.fold_with_offsets
            offsets: Offset table from the same call
            fuzziness: Tolerance in [0, 1]

        Returns:
            TermMatch or None
        """
        needle = term.folded
        if not needle or not folded_text:
            return None

        operator = term.operator
        if operator == EQUAL:
            if folded_text != needle:
                return None
            return self._found(0.0, [(0, len(folded_text))], offsets)

        if operator == PREFIX:
            if not folded_text.startswith(needle):
                return None
            return self._found(0.0, [(0, len(needle))], offsets)

        if operator == SUFFIX:
            if not folded_text.endswith(needle):
                return None
            return self._found(0.0, [(len(folded_text) - len(needle), len(folded_text))], offsets)

        occurrences = self._occurrences(needle, folded_text)
        if occurrences:
            return self._found(0.0, occurrences, offsets)

        if operator == INCLUDE or fuzziness <= 0:
            return None

        score, span = self._calculate_fuzzy_match(needle, folded_text)
        if score > fuzziness:
            return None

        return self._found(score, [span], offsets)

    def _calculate_fuzzy_match(self, needle: str, folded_text: str) -> Tuple[float, Span]:
        """
        Align the term against the best matching window of the text.

        Returns:
            Tuple of (score, span) with the span in folded coordinates
        """
        if len(folded_text) < len(needle):
            # Partial alignment would match the short text inside the term
            ratio = fuzz.ratio(needle, folded_text)
            span = (0, len(folded_text))
        else:
            alignment = fuzz.partial_ratio_alignment(needle, folded_text)
            if alignment is None:
                return 1.0, (0, 0)
            ratio = alignment.score
            span = (alignment.dest_start, alignment.dest_end)

        return 1.0 - ratio / 100.0, span

    @staticmethod
    def _occurrences(needle: str, haystack: str) -> List[Span]:
        spans: List[Span] = []
        start = haystack.find(needle)
        while start != -1:
            spans.append((start, start + len(needle)))
            start = haystack.find(needle, start + len(needle))
        return spans

    def _found(self, score: float, spans: List[Span], offsets: List[int]) -> TermMatch:
        indices = []
        for start, end in spans:
            if end - start < max(self.min_match_char_length, 1):
                continue
            indices.append((offsets[start], offsets[end - 1] + 1))
        return TermMatch(score=score, indices=indices)
