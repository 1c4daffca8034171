"""Sheet grid to row record normalization.

Turns one sheet's cell grid into three things:

- an ordered list of row records (column name -> value),
- a link map (1-based row number -> column name -> hyperlink target),
- the columns that carry any content.

Merge regions, spacer rows and hyperlinks are reconciled without losing
anything a user can see. The composition order in ``SheetNormalizer`` matters:
links and the spacer-row keep set are read from the grid *before* merges are
expanded, so neither link metadata nor merge fill leaks across rows.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Set

import structlog

from .grid import Cell, SheetGrid
from .normalizer import display_text, has_content

logger = structlog.get_logger()

LinkMap = Dict[int, Dict[str, str]]

EMPTY_HEADER = "__EMPTY"


class RowRecord(dict):
    """One data row keyed by column name.

    ``row_number`` is the 1-based sheet row the record was read from. It is an
    attribute rather than a key, so it is never a column and never takes part
    in equality between records.
    """

    def __init__(self, *args: Any, row_number: Optional[int] = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.row_number = row_number

    def without(self, key: str) -> "RowRecord":
        """Copy of this record minus one column."""
        return RowRecord(
            ((k, v) for k, v in self.items() if k != key),
            row_number=self.row_number,
        )

    def __repr__(self) -> str:
        return f"RowRecord({dict.__repr__(self)}, row_number={self.row_number})"


class NormalizedSheet(NamedTuple):
    """Output of one normalizer run."""

    records: List[RowRecord]
    link_map: LinkMap
    columns: List[str]


def scalar_value(value: Any) -> Any:
    """Coerce a raw cell value into a record scalar (str, number, bool or "")."""
    if value is None:
        return ""
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return str(value)


def expand_merges(grid: SheetGrid) -> SheetGrid:
    """
    Fill every merge region from its top-left cell.

    Works on a copy; the grid passed in is left untouched. Addresses inside a
    region that hold no value are replaced by a fresh cell carrying only the
    top-left value and type, so hyperlinks are never copied across a region.
    Running it on its own output changes nothing.

    Args:
        grid: Sheet grid as read from the workbook

    Returns:
        New grid with merge regions filled
    """
    expanded = grid.copy()

    for region in expanded.merges:
        top_left = expanded.get(region.top, region.left)
        if top_left is None or top_left.value is None:
            continue

        for row, col in region.addresses():
            cell = expanded.get(row, col)
            if cell is None or cell.value is None:
                expanded.set(row, col, Cell(value=top_left.value, type_tag=top_left.type_tag))

    return expanded


def non_empty_row_numbers(grid: SheetGrid) -> Set[int]:
    """
    Collect the 1-based numbers of rows that hold any content.

    Whitespace-only strings count as empty. A grid without a used range has
    no rows.
    """
    keep: Set[int] = set()
    dims = grid.dimensions
    if dims is None:
        return keep

    for row in range(dims.top, dims.bottom + 1):
        for col in range(dims.left, dims.right + 1):
            if has_content(grid.value_at(row, col)):
                keep.add(row + 1)
                break

    return keep


def header_names(grid: SheetGrid, header_row_index: Optional[int] = None) -> List[str]:
    """
    Read column names from the header row.

    A header cell without a value gets a placeholder (``__EMPTY``,
    ``__EMPTY_1``, ...) instead of being dropped, and repeated names get
    ``_1``, ``_2`` suffixes, so there is always exactly one name per column.
    Header cells covered by a merge region take the region's value whether or
    not the grid has been expanded yet.

    Args:
        grid: Sheet grid
        header_row_index: 0-based header row; defaults to the first used row

    Returns:
        One unique name per column of the used range
    """
    dims = grid.dimensions
    if dims is None:
        return []

    header_row = dims.top if header_row_index is None else header_row_index

    names: List[str] = []
    used: Set[str] = set()
    seen: Dict[str, int] = {}

    for col in range(dims.left, dims.right + 1):
        value = grid.merged_value(header_row, col)
        base = display_text(value) if value is not None else EMPTY_HEADER

        count = seen.get(base, 0)
        name = base if count == 0 else f"{base}_{count}"
        while name in used:
            count += 1
            name = f"{base}_{count}"
        seen[base] = count + 1

        used.add(name)
        names.append(name)

    return names


def extract_links(grid: SheetGrid, header_row_index: Optional[int] = None) -> LinkMap:
    """
    Build the link map from hyperlink metadata on data rows.

    Args:
        grid: Sheet grid, before merge expansion
        header_row_index: 0-based header row; defaults to the first used row

    Returns:
        Mapping of 1-based row number to {column name: target}
    """
    links: LinkMap = {}
    dims = grid.dimensions
    if dims is None:
        return links

    header_row = dims.top if header_row_index is None else header_row_index
    headers = header_names(grid, header_row)

    for row in range(header_row + 1, dims.bottom + 1):
        for offset, col in enumerate(range(dims.left, dims.right + 1)):
            cell = grid.get(row, col)
            if cell is None or not cell.hyperlink:
                continue
            links.setdefault(row + 1, {})[headers[offset]] = cell.hyperlink

    return links


def to_records(
    grid: SheetGrid,
    keep_row_numbers: Iterable[int],
    header_row_index: Optional[int] = None,
) -> List[RowRecord]:
    """
    Turn the data rows of a grid into row records.

    Every record has every column; missing cells become "". Only rows whose
    1-based number is in ``keep_row_numbers`` are converted. No column is
    dropped here.

    Args:
        grid: Sheet grid, normally after merge expansion
        keep_row_numbers: 1-based numbers of the rows to keep
        header_row_index: 0-based header row; defaults to the first used row

    Returns:
        Records in sheet order
    """
    dims = grid.dimensions
    if dims is None:
        return []

    keep = set(keep_row_numbers)
    header_row = dims.top if header_row_index is None else header_row_index
    headers = header_names(grid, header_row)

    records: List[RowRecord] = []
    for row in range(header_row + 1, dims.bottom + 1):
        if row + 1 not in keep:
            continue
        values = [scalar_value(grid.value_at(row, col)) for col in range(dims.left, dims.right + 1)]
        records.append(RowRecord(zip(headers, values), row_number=row + 1))

    return records


def column_names(records: List[Dict[str, Any]]) -> List[str]:
    """Ordered column names of a record set (the keys of its first record)."""
    return list(records[0].keys()) if records else []


def columns_with_content(records: List[Dict[str, Any]]) -> List[str]:
    """Column names that hold content in at least one record."""
    return [
        key for key in column_names(records)
        if any(has_content(record.get(key)) for record in records)
    ]


class SheetNormalizer:
    """Runs the full grid-to-records pipeline for one sheet."""

    def __init__(self, drop_leading_column: bool = False, header_row_index: Optional[int] = None) -> None:
        """
        Initialize the normalizer.

        Args:
            drop_leading_column: Remove the first column (typically a row
                index) from records and links. Rows left without content
                after the drop are treated as spacer rows.
            header_row_index: 0-based header row; defaults to the first used row
        """
        self.drop_leading_column = drop_leading_column
        self.header_row_index = header_row_index

    def normalize(self, grid: SheetGrid) -> NormalizedSheet:
        """
        Normalize one sheet grid.

        Args:
            grid: Sheet grid as read from the workbook; not modified

        Returns:
            NormalizedSheet with records, link map and content columns
        """
        if grid.dimensions is None:
            logger.info("sheet_without_used_range", sheet=grid.name)
            return NormalizedSheet(records=[], link_map={}, columns=[])

        # Links and spacer rows come from the grid as stored, before merge fill
        link_map = extract_links(grid, self.header_row_index)
        keep_rows = non_empty_row_numbers(grid)

        expanded = expand_merges(grid)
        records = to_records(expanded, keep_rows, self.header_row_index)

        if self.drop_leading_column:
            headers = header_names(grid, self.header_row_index)
            if headers:
                records, link_map = self._drop_column(records, link_map, headers[0])

        columns = columns_with_content(records)

        logger.info(
            "sheet_normalized",
            sheet=grid.name,
            total_rows=len(records),
            total_columns=len(columns),
            linked_rows=len(link_map),
            merges=len(grid.merges),
        )

        return NormalizedSheet(records=records, link_map=link_map, columns=columns)

    @staticmethod
    def _drop_column(records: List[RowRecord], link_map: LinkMap, column: str):
        trimmed = [record.without(column) for record in records]
        trimmed = [record for record in trimmed if any(has_content(v) for v in record.values())]

        links: LinkMap = {}
        for row_number, row_links in link_map.items():
            remaining = {key: target for key, target in row_links.items() if key != column}
            if remaining:
                links[row_number] = remaining

        return trimmed, links
