"""DriveClient - spreadsheet file management through the Drive v3 API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from sheetfreak.exceptions import InvalidInputError
from sheetfreak.transport import DRIVE_API_BASE, Transport

SPREADSHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"
SCRIPT_MIME_TYPE = "application/vnd.google-apps.script"
FILE_FIELDS = "id, name, webViewLink"
SHARE_ROLES = ("reader", "writer", "owner")

ShareRole = Literal["reader", "writer", "owner"]


@dataclass(frozen=True)
class SpreadsheetInfo:
    spreadsheet_id: str
    title: str
    url: str

    def to_dict(self) -> dict[str, str]:
        return {
            "spreadsheetId": self.spreadsheet_id,
            "title": self.title,
            "spreadsheetUrl": self.url,
        }


@dataclass(frozen=True)
class BoundScript:
    """An Apps Script project stored inside a spreadsheet's Drive folder."""

    script_id: str
    title: str
    parent_id: str
    create_time: str = ""
    update_time: str = ""


def _parse_file(data: dict[str, Any], fallback_title: str = "Untitled") -> SpreadsheetInfo:
    return SpreadsheetInfo(
        spreadsheet_id=data.get("id", ""),
        title=data.get("name") or fallback_title,
        url=data.get("webViewLink", ""),
    )


class DriveClient:
    """Client for the parts of the Drive API sheetfreak needs."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def create_spreadsheet(self, name: str) -> SpreadsheetInfo:
        data = await self._transport.request(
            "POST",
            f"{DRIVE_API_BASE}/files",
            params={"fields": FILE_FIELDS},
            body={"name": name, "mimeType": SPREADSHEET_MIME_TYPE},
        )
        return _parse_file(data, fallback_title=name)

    async def list_spreadsheets(self, page_size: int = 100) -> list[SpreadsheetInfo]:
        """List spreadsheets visible to the service account, newest first."""
        data = await self._transport.request(
            "GET",
            f"{DRIVE_API_BASE}/files",
            params={
                "q": f"mimeType='{SPREADSHEET_MIME_TYPE}'",
                "pageSize": page_size,
                "fields": "files(id, name, webViewLink, modifiedTime)",
                "orderBy": "modifiedTime desc",
            },
        )
        return [_parse_file(f) for f in data.get("files", [])]

    async def get_spreadsheet_info(self, spreadsheet_id: str) -> SpreadsheetInfo:
        data = await self._transport.request(
            "GET",
            f"{DRIVE_API_BASE}/files/{spreadsheet_id}",
            params={"fields": FILE_FIELDS},
        )
        return _parse_file(data)

    async def copy_spreadsheet(self, spreadsheet_id: str, new_name: str) -> SpreadsheetInfo:
        data = await self._transport.request(
            "POST",
            f"{DRIVE_API_BASE}/files/{spreadsheet_id}/copy",
            params={"fields": FILE_FIELDS},
            body={"name": new_name},
        )
        return _parse_file(data, fallback_title=new_name)

    async def share_spreadsheet(
        self, spreadsheet_id: str, email: str, role: ShareRole = "writer"
    ) -> dict[str, Any]:
        """Grant a user access. Google sends them a notification email."""
        if role not in SHARE_ROLES:
            raise InvalidInputError(
                f"Invalid role: {role}. Expected one of: {', '.join(SHARE_ROLES)}"
            )
        params: dict[str, Any] = {"sendNotificationEmail": "true"}
        if role == "owner":
            params["transferOwnership"] = "true"
        return await self._transport.request(
            "POST",
            f"{DRIVE_API_BASE}/files/{spreadsheet_id}/permissions",
            params=params,
            body={"type": "user", "role": role, "emailAddress": email},
        )

    async def delete_spreadsheet(self, spreadsheet_id: str) -> None:
        await self._transport.request("DELETE", f"{DRIVE_API_BASE}/files/{spreadsheet_id}")

    async def find_bound_script(self, spreadsheet_id: str) -> BoundScript | None:
        """Return the script project stored under a spreadsheet, if any."""
        data = await self._transport.request(
            "GET",
            f"{DRIVE_API_BASE}/files",
            params={
                "q": f"'{spreadsheet_id}' in parents and mimeType='{SCRIPT_MIME_TYPE}'",
                "fields": "files(id, name, createdTime, modifiedTime)",
            },
        )
        files = data.get("files", [])
        if not files:
            return None
        first = files[0]
        return BoundScript(
            script_id=first.get("id", ""),
            title=first.get("name", ""),
            parent_id=spreadsheet_id,
            create_time=first.get("createdTime", ""),
            update_time=first.get("modifiedTime", ""),
        )
