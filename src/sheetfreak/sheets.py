"""SheetsClient - Google Sheets v4 operations for sheetfreak.

Values, tabs, formatting and dimension sizing. Formatting and border calls
resolve A1 ranges against the spreadsheet's sheet list, which is fetched at
most once per client and spreadsheet.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from loguru import logger

from sheetfreak.a1 import RangeReference, SheetIndex, resolve_range
from sheetfreak.exceptions import APIError
from sheetfreak.request_builder import (
    BorderSpec,
    CellFormatSpec,
    build_add_sheet_request,
    build_auto_resize_request,
    build_border_request,
    build_delete_sheet_request,
    build_format_request,
    build_rename_sheet_request,
    build_resize_request,
)
from sheetfreak.transport import SHEETS_API_BASE, Transport

VALUE_INPUT_OPTION = "USER_ENTERED"


@dataclass(frozen=True)
class SheetInfo:
    """One tab of a spreadsheet."""

    sheet_id: int
    title: str
    index: int
    row_count: int
    column_count: int


def _parse_sheet_info(sheet: dict[str, Any]) -> SheetInfo:
    props = sheet.get("properties", {})
    grid = props.get("gridProperties", {})
    return SheetInfo(
        sheet_id=props.get("sheetId", 0),
        title=props.get("title", ""),
        index=props.get("index", 0),
        row_count=grid.get("rowCount", 0),
        column_count=grid.get("columnCount", 0),
    )


def _values_url(spreadsheet_id: str, range_name: str, suffix: str = "") -> str:
    return f"{SHEETS_API_BASE}/{spreadsheet_id}/values/{quote(range_name, safe='')}{suffix}"


class SheetsClient:
    """Client for the Google Sheets API.

    Example:
        >>> transport = GoogleAPITransport(access_token="ya29...")
        >>> client = SheetsClient(transport)
        >>> await client.format_cells(spreadsheet_id, "Sheet1!A1:D1", spec)
    """

    def __init__(self, transport: Transport) -> None:
        """Initialize the client.

        Args:
            transport: Transport implementation used for every API call
        """
        self._transport = transport
        self._indexes: dict[str, SheetIndex] = {}

    # --- Values ---

    async def read(self, spreadsheet_id: str, range_name: str) -> list[list[Any]]:
        """Read cell values. Trailing empty rows and cells are not returned."""
        data = await self._transport.request("GET", _values_url(spreadsheet_id, range_name))
        values: list[list[Any]] = data.get("values", [])
        return values

    async def write(
        self, spreadsheet_id: str, range_name: str, values: list[list[Any]]
    ) -> dict[str, Any]:
        """Write values, parsed as if typed into the UI."""
        return await self._transport.request(
            "PUT",
            _values_url(spreadsheet_id, range_name),
            params={"valueInputOption": VALUE_INPUT_OPTION},
            body={"range": range_name, "values": values},
        )

    async def batch_write(
        self, spreadsheet_id: str, updates: list[dict[str, Any]]
    ) -> dict[str, Any]:
        """Write several ranges in one call.

        Args:
            spreadsheet_id: Spreadsheet to update
            updates: List of ``{"range": ..., "values": [[...]]}`` dicts
        """
        return await self._transport.request(
            "POST",
            f"{SHEETS_API_BASE}/{spreadsheet_id}/values:batchUpdate",
            body={"valueInputOption": VALUE_INPUT_OPTION, "data": updates},
        )

    async def clear(self, spreadsheet_id: str, range_name: str) -> dict[str, Any]:
        return await self._transport.request(
            "POST", _values_url(spreadsheet_id, range_name, ":clear"), body={}
        )

    async def append(
        self, spreadsheet_id: str, range_name: str, values: list[list[Any]]
    ) -> dict[str, Any]:
        """Append rows after the last row of the table found in range_name."""
        return await self._transport.request(
            "POST",
            _values_url(spreadsheet_id, range_name, ":append"),
            params={
                "valueInputOption": VALUE_INPUT_OPTION,
                "insertDataOption": "INSERT_ROWS",
            },
            body={"values": values},
        )

    # --- Metadata ---

    async def list_sheets(self, spreadsheet_id: str) -> list[SheetInfo]:
        data = await self._transport.request(
            "GET",
            f"{SHEETS_API_BASE}/{spreadsheet_id}",
            params={"fields": "sheets.properties"},
        )
        sheets = [_parse_sheet_info(sheet) for sheet in data.get("sheets", [])]
        self._indexes[spreadsheet_id] = SheetIndex(sheets)
        return sheets

    async def sheet_index(self, spreadsheet_id: str) -> SheetIndex:
        """Return the title lookup for a spreadsheet, fetching it once."""
        index = self._indexes.get(spreadsheet_id)
        if index is None:
            await self.list_sheets(spreadsheet_id)
            index = self._indexes[spreadsheet_id]
            logger.debug("Indexed sheets of {}", spreadsheet_id)
        return index

    async def resolve(self, spreadsheet_id: str, range_name: str) -> RangeReference:
        """Resolve an A1 range to grid coordinates.

        The sheet list is only fetched when the range names a sheet.
        """
        if "!" not in range_name:
            return resolve_range(range_name, lambda _title: None)
        index = await self.sheet_index(spreadsheet_id)
        ref = resolve_range(range_name, index)
        logger.debug("Resolved {} to sheet {}", range_name, ref.sheet_id)
        return ref

    # --- Batch update ---

    async def batch_update(
        self, spreadsheet_id: str, requests: list[dict[str, Any]]
    ) -> dict[str, Any]:
        return await self._transport.request(
            "POST",
            f"{SHEETS_API_BASE}/{spreadsheet_id}:batchUpdate",
            body={"requests": requests},
        )

    # --- Tabs ---

    async def add_sheet(self, spreadsheet_id: str, title: str) -> int:
        """Add a tab and return its sheet ID."""
        data = await self.batch_update(spreadsheet_id, [build_add_sheet_request(title)])
        self._indexes.pop(spreadsheet_id, None)
        replies = data.get("replies") or [{}]
        sheet_id = replies[0].get("addSheet", {}).get("properties", {}).get("sheetId")
        if sheet_id is None:
            raise APIError(f"Failed to get sheet ID for new sheet: {title}")
        return int(sheet_id)

    async def delete_sheet(self, spreadsheet_id: str, title: str) -> int:
        index = await self.sheet_index(spreadsheet_id)
        sheet_id = index.require(title)
        await self.batch_update(spreadsheet_id, [build_delete_sheet_request(sheet_id)])
        self._indexes.pop(spreadsheet_id, None)
        return sheet_id

    async def rename_sheet(self, spreadsheet_id: str, old_title: str, new_title: str) -> int:
        index = await self.sheet_index(spreadsheet_id)
        sheet_id = index.require(old_title)
        await self.batch_update(
            spreadsheet_id, [build_rename_sheet_request(sheet_id, new_title)]
        )
        self._indexes.pop(spreadsheet_id, None)
        return sheet_id

    # --- Formatting ---

    async def format_cells(
        self,
        spreadsheet_id: str,
        range_name: str,
        spec: CellFormatSpec,
        dry_run: bool = False,
    ) -> dict[str, Any]:
        """Apply cell formatting to a range and return the request.

        With dry_run the range is still resolved but nothing is sent.
        """
        ref = await self.resolve(spreadsheet_id, range_name)
        request = build_format_request(ref, spec)
        if not dry_run:
            await self.batch_update(spreadsheet_id, [request])
        return request

    async def apply_borders(
        self,
        spreadsheet_id: str,
        range_name: str,
        spec: BorderSpec,
        dry_run: bool = False,
    ) -> dict[str, Any]:
        ref = await self.resolve(spreadsheet_id, range_name)
        request = build_border_request(ref, spec)
        if not dry_run:
            await self.batch_update(spreadsheet_id, [request])
        return request

    async def resize_columns(
        self, spreadsheet_id: str, sheet_title: str, start: int, end: int, width: int
    ) -> dict[str, Any]:
        """Set the width of zero-based columns start..end (inclusive)."""
        sheet_id = (await self.sheet_index(spreadsheet_id)).require(sheet_title)
        request = build_resize_request(sheet_id, "COLUMNS", start, end, width)
        return await self.batch_update(spreadsheet_id, [request])

    async def resize_rows(
        self, spreadsheet_id: str, sheet_title: str, start: int, end: int, height: int
    ) -> dict[str, Any]:
        """Set the height of one-based rows start..end (inclusive)."""
        sheet_id = (await self.sheet_index(spreadsheet_id)).require(sheet_title)
        request = build_resize_request(sheet_id, "ROWS", start, end, height)
        return await self.batch_update(spreadsheet_id, [request])

    async def auto_resize_columns(
        self, spreadsheet_id: str, sheet_title: str, start: int, end: int
    ) -> dict[str, Any]:
        sheet_id = (await self.sheet_index(spreadsheet_id)).require(sheet_title)
        request = build_auto_resize_request(sheet_id, start, end)
        return await self.batch_update(spreadsheet_id, [request])
