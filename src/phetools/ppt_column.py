"""
One template column: a duplet and the data cells underneath it.

Row indices are matrix indices. Rows 0 and 1 are the header cells (read
from the duplet) and data starts at row 2.
"""

from __future__ import annotations

import typing

from .errors import EditError, PhetoolsError, TemplateError
from .header_duplet import HeaderDuplet
from .validation import ValidationErrors

# Matrix index of the first data row
DATA_START = 2


class PptColumn:

    def __init__(self, duplet: HeaderDuplet, cells: typing.Iterable[str] = ()):
        self._duplet = duplet
        self._cells: list[str] = list(cells)

    @property
    def duplet(self) -> HeaderDuplet:
        return self._duplet

    def phenopacket_count(self) -> int:
        return len(self._cells)

    def nrows(self) -> int:
        return DATA_START + len(self._cells)

    def _data_index(self, row: int) -> int:
        if not 0 <= row < self.nrows():
            raise TemplateError(f"Row index {row} out of range for column with {self.nrows()} rows")
        return row - DATA_START

    def get(self, row: int) -> str:
        idx = self._data_index(row)
        if row == 0:
            return self._duplet.row1
        if row == 1:
            return self._duplet.row2
        return self._cells[idx]

    def set(self, row: int, value: str) -> None:
        """Validate ``value`` and store it; on failure the column is unchanged."""
        idx = self._data_index(row)
        if row < DATA_START:
            raise EditError(f"Cannot edit header row {row} of column '{self._duplet.row1}'")
        self._duplet.qc_cell(value)
        self._cells[idx] = value

    def append(self, value: str) -> None:
        self._duplet.qc_cell(value)
        self._cells.append(value)

    def delete_row(self, row: int) -> None:
        idx = self._data_index(row)
        if row < DATA_START:
            raise EditError(f"Cannot delete row {row} (header)")
        del self._cells[idx]

    def values(self) -> list[str]:
        return list(self._cells)

    def to_list(self) -> list[str]:
        return [self._duplet.row1, self._duplet.row2] + self._cells

    def qc(self) -> ValidationErrors:
        """Check every data cell; errors name the matrix row and column."""
        verrs = ValidationErrors()
        for i, value in enumerate(self._cells, start=DATA_START):
            try:
                self._duplet.qc_cell(value)
            except PhetoolsError as e:
                verrs.push(type(e)(f"Row {i}, column '{self._duplet.row1}': {e}"))
        return verrs

    def get_unique(self) -> str:
        """
        The single value shared by every data cell.

        Raises ``TemplateError`` naming the first row that differs from row 2.
        """
        if not self._cells:
            raise TemplateError(f"Column '{self._duplet.row1}' has no data rows")
        first = self._cells[0]
        for i, value in enumerate(self._cells[1:], start=DATA_START + 1):
            if value != first:
                raise TemplateError(
                    f"Column '{self._duplet.row1}' must have the same value in every row: "
                    f"row {i} has '{value}' but row {DATA_START} has '{first}'"
                )
        return first

    def __repr__(self) -> str:
        return f"PptColumn({self._duplet.row1!r}, n={len(self._cells)})"
