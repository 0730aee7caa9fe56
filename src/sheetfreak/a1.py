"""
A1 notation helpers for sheetfreak.

Resolves sheet-qualified A1 ranges such as ``'My Sheet'!C3:D4`` into
zero-based, end-exclusive grid coordinates suitable for batchUpdate requests.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from sheetfreak.exceptions import InvalidRangeError, SheetNotFoundError

# Two-corner ranges only: no single cells, open-ended columns or lists.
_RANGE_PATTERN = re.compile(r"([A-Z]+)([0-9]+):([A-Z]+)([0-9]+)")

DEFAULT_SHEET_ID = 0

SheetLookup = Callable[[str], "int | None"]  # title -> sheet ID


@dataclass(frozen=True)
class RangeReference:
    """A parsed rectangular selection.

    All indices are zero-based; ``end_row`` and ``end_column`` are exclusive.
    ``sheet_name`` is None when the input was not sheet-qualified, in which
    case ``sheet_id`` is the default sheet (0).
    """

    sheet_name: str | None
    sheet_id: int
    start_row: int
    end_row: int
    start_column: int
    end_column: int

    def __post_init__(self) -> None:
        if not (0 <= self.start_row < self.end_row) or not (
            0 <= self.start_column < self.end_column
        ):
            raise InvalidRangeError(self.to_a1())

    def to_grid_range(self) -> dict[str, int]:
        """Return the GridRange dict expected by the Sheets API."""
        return {
            "sheetId": self.sheet_id,
            "startRowIndex": self.start_row,
            "endRowIndex": self.end_row,
            "startColumnIndex": self.start_column,
            "endColumnIndex": self.end_column,
        }

    def to_a1(self) -> str:
        """Render back to A1 notation (without the sheet prefix)."""
        start = f"{column_index_to_letter(max(self.start_column, 0))}{self.start_row + 1}"
        end = f"{column_index_to_letter(max(self.end_column - 1, 0))}{self.end_row}"
        return f"{start}:{end}"


def column_index_to_letter(index: int) -> str:
    """Convert a zero-based column index to A1 notation letter(s).

    Examples:
        0 -> A, 1 -> B, 25 -> Z, 26 -> AA, 701 -> ZZ, 702 -> AAA
    """
    if index < 0:
        raise ValueError(f"Column index must be non-negative: {index}")
    result = ""
    while True:
        result = chr(ord("A") + (index % 26)) + result
        index = index // 26 - 1
        if index < 0:
            break
    return result


def letter_to_column_index(letters: str) -> int:
    """Convert A1 notation letter(s) to a zero-based column index.

    Examples:
        A -> 0, B -> 1, Z -> 25, AA -> 26, ZZ -> 701, AAA -> 702
    """
    index = 0
    for char in letters:
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index - 1


def split_sheet_title(range_string: str) -> tuple[str | None, str]:
    """Split ``Sheet!A1:B2`` into ``("Sheet", "A1:B2")``.

    Splits on the first ``!`` only. A single pair of surrounding single
    quotes is stripped from the title.
    """
    if "!" not in range_string:
        return None, range_string
    title, cell_range = range_string.split("!", 1)
    if len(title) >= 2 and title.startswith("'") and title.endswith("'"):
        title = title[1:-1]
    return title, cell_range


def resolve_range(range_string: str, sheet_lookup: SheetLookup) -> RangeReference:
    """Resolve an optionally sheet-qualified A1 range.

    Args:
        range_string: Range such as ``A1:B2`` or ``'My Sheet'!C3:D4``
        sheet_lookup: Callable returning the sheet ID for a title, or None
            when no sheet has that title. Only called for qualified ranges.

    Returns:
        RangeReference with zero-based, end-exclusive indices

    Raises:
        SheetNotFoundError: If the qualified sheet title has no match
        InvalidRangeError: If the cell range does not match ``A1:B2`` form
    """
    title, cell_range = split_sheet_title(range_string)

    sheet_id = DEFAULT_SHEET_ID
    if title is not None:
        found = sheet_lookup(title)
        if found is None:
            raise SheetNotFoundError(title)
        sheet_id = found

    match = _RANGE_PATTERN.fullmatch(cell_range)
    if not match:
        raise InvalidRangeError(range_string)

    start_col, start_row, end_col, end_row = match.groups()
    try:
        return RangeReference(
            sheet_name=title,
            sheet_id=sheet_id,
            start_row=int(start_row) - 1,
            end_row=int(end_row),
            start_column=letter_to_column_index(start_col),
            end_column=letter_to_column_index(end_col) + 1,
        )
    except InvalidRangeError as e:
        # Reversed corners or row 0
        raise InvalidRangeError(range_string) from e


class SheetIndex:
    """Title to sheet ID lookup built from one metadata fetch.

    Callable, so it can be passed directly as ``sheet_lookup``.
    """

    def __init__(self, sheets: Iterable[Any]) -> None:
        self._ids: dict[str, int] = {}
        for sheet in sheets:
            self._ids[sheet.title] = sheet.sheet_id

    def __call__(self, title: str) -> int | None:
        return self._ids.get(title)

    def require(self, title: str) -> int:
        """Return the sheet ID for title or raise SheetNotFoundError."""
        sheet_id = self._ids.get(title)
        if sheet_id is None:
            raise SheetNotFoundError(title)
        return sheet_id
