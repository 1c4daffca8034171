"""In-memory sheet grid consumed by the sheet normalizer.

Coordinates are 0-based (row, column) pairs. Row numbers handed to callers
elsewhere are 1-based, matching what a spreadsheet shows.
"""

import csv
from copy import deepcopy
from io import StringIO
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from openpyxl.worksheet.worksheet import Worksheet
from pydantic import BaseModel, ConfigDict, Field

Address = Tuple[int, int]


class Cell(BaseModel):
    """A single grid cell."""

    value: Any = None
    hyperlink: Optional[str] = Field(None, description="Hyperlink target (URL or mailto:)")
    type_tag: Optional[str] = Field(None, description="Parser type code, e.g. 's', 'n', 'b', 'd'")

    model_config = ConfigDict(extra="ignore")


class CellRange(BaseModel):
    """Rectangular cell range (0-based, inclusive)."""

    top: int = Field(..., ge=0)
    left: int = Field(..., ge=0)
    bottom: int = Field(..., ge=0)
    right: int = Field(..., ge=0)

    model_config = ConfigDict(extra="ignore", frozen=True)

    def contains(self, row: int, col: int) -> bool:
        return self.top <= row <= self.bottom and self.left <= col <= self.right

    def addresses(self) -> Iterator[Address]:
        for row in range(self.top, self.bottom + 1):
            for col in range(self.left, self.right + 1):
                yield row, col


class SheetGrid:
    """Sparse cell grid with a declared used range and merge regions."""

    def __init__(
        self,
        cells: Optional[Dict[Address, Cell]] = None,
        dimensions: Optional[CellRange] = None,
        merges: Optional[List[CellRange]] = None,
        name: Optional[str] = None,
    ) -> None:
        """
        Initialize the grid.

        Args:
            cells: Cells keyed by (row, column); absent addresses are empty
            dimensions: Declared used range, or None for a sheet without one
            merges: Merge regions; their value lives in the top-left cell
            name: Sheet name, used for logging only
        """
        self.cells: Dict[Address, Cell] = dict(cells or {})
        self.dimensions = dimensions
        self.merges: List[CellRange] = list(merges or [])
        self.name = name

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[Sequence[Any]],
        merges: Optional[List[CellRange]] = None,
        hyperlinks: Optional[Dict[Address, str]] = None,
        name: Optional[str] = None,
    ) -> "SheetGrid":
        """
        Build a grid from a row-major list of values anchored at A1.

        None values produce no cell. Hyperlinks may be attached to addresses
        that hold no value.
        """
        hyperlinks = hyperlinks or {}
        cells: Dict[Address, Cell] = {}
        width = max((len(row) for row in rows), default=0)

        for r, row in enumerate(rows):
            for c, value in enumerate(row):
                if value is None and (r, c) not in hyperlinks:
                    continue
                cells[(r, c)] = Cell(value=value, hyperlink=hyperlinks.get((r, c)))

        for (r, c), target in hyperlinks.items():
            if (r, c) not in cells:
                cells[(r, c)] = Cell(hyperlink=target)

        dimensions = None
        if rows and width:
            dimensions = CellRange(top=0, left=0, bottom=len(rows) - 1, right=width - 1)

        return cls(cells=cells, dimensions=dimensions, merges=merges, name=name)

    @classmethod
    def from_csv(cls, text: str, name: Optional[str] = None) -> "SheetGrid":
        """
        Build a grid from CSV text.

        Every field is read as a string; empty fields produce no cell. The
        grid has no merges and no hyperlinks.

        Raises:
            csv.Error: If the text is not parseable CSV
        """
        reader = csv.reader(StringIO(text))
        rows = [[value if value != "" else None for value in row] for row in reader]

        # Trailing blank lines are not part of the used range
        while rows and not any(value is not None for value in rows[-1]):
            rows.pop()

        grid = cls.from_rows(rows, name=name)
        for cell in grid.cells.values():
            cell.type_tag = "s"
        return grid

    @classmethod
    def from_worksheet(cls, ws: Any) -> "SheetGrid":
        """
        Convert an openpyxl worksheet into a grid.

        openpyxl coordinates are 1-based; the grid is 0-based. Merged ranges
        and hyperlink targets are carried over as-is. Chartsheets have no
        cells and come back as a grid without a used range.
        """
        name = str(ws.title)
        if not isinstance(ws, Worksheet):
            return cls(name=name)

        max_row = int(ws.max_row or 0)
        max_col = int(ws.max_column or 0)
        if max_row <= 0 or max_col <= 0:
            return cls(name=name)

        merges = [
            CellRange(
                top=int(cr.min_row) - 1,
                left=int(cr.min_col) - 1,
                bottom=int(cr.max_row) - 1,
                right=int(cr.max_col) - 1,
            )
            for cr in list(ws.merged_cells.ranges)
        ]

        # A brand new worksheet reports A1:A1 even though nothing was written
        if max_row == 1 and max_col == 1 and not merges and ws.cell(row=1, column=1).value is None:
            return cls(name=name)

        min_row = int(ws.min_row or 1)
        min_col = int(ws.min_column or 1)

        cells: Dict[Address, Cell] = {}
        for row in ws.iter_rows(min_row=min_row, max_row=max_row, min_col=min_col, max_col=max_col):
            for cell in row:
                link = getattr(cell, "hyperlink", None)
                target = (link.target or link.location) if link is not None else None
                if cell.value is None and not target:
                    continue
                cells[(cell.row - 1, cell.column - 1)] = Cell(
                    value=cell.value,
                    hyperlink=target,
                    type_tag=getattr(cell, "data_type", None),
                )

        dimensions = CellRange(top=min_row - 1, left=min_col - 1, bottom=max_row - 1, right=max_col - 1)
        return cls(cells=cells, dimensions=dimensions, merges=merges, name=name)

    def get(self, row: int, col: int) -> Optional[Cell]:
        return self.cells.get((row, col))

    def set(self, row: int, col: int, cell: Cell) -> None:
        self.cells[(row, col)] = cell

    def value_at(self, row: int, col: int) -> Any:
        cell = self.cells.get((row, col))
        return cell.value if cell is not None else None

    def merged_value(self, row: int, col: int) -> Any:
        """Value at an address, falling back to the top-left cell of its merge region."""
        value = self.value_at(row, col)
        if value is not None:
            return value
        for region in self.merges:
            if region.contains(row, col):
                return self.value_at(region.top, region.left)
        return None

    def copy(self) -> "SheetGrid":
        """Deep working copy; mutating it never touches this grid."""
        return SheetGrid(
            cells=deepcopy(self.cells),
            dimensions=self.dimensions,
            merges=list(self.merges),
            name=self.name,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SheetGrid):
            return NotImplemented
        return (
            self.cells == other.cells
            and self.dimensions == other.dimensions
            and self.merges == other.merges
        )

    def __repr__(self) -> str:
        return f"SheetGrid(name={self.name!r}, dimensions={self.dimensions!r}, cells={len(self.cells)})"
