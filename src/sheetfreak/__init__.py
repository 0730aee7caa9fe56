"""sheetfreak - Command-line access to Google Sheets, Drive and Apps Script.

The core is pure: A1 range resolution, color parsing, and batchUpdate request
building. API clients sit on an injectable Transport.
"""

__version__ = "0.1.0"

from sheetfreak.a1 import RangeReference, SheetIndex, resolve_range
from sheetfreak.colors import Color, parse_color
from sheetfreak.drive import DriveClient
from sheetfreak.exceptions import (
    APIError,
    AuthenticationError,
    InvalidColorError,
    InvalidRangeError,
    NotFoundError,
    SheetFreakError,
    SheetNotFoundError,
    TransportError,
)
from sheetfreak.request_builder import (
    BorderSpec,
    CellFormatSpec,
    build_border_request,
    build_format_request,
)
from sheetfreak.script import ScriptClient
from sheetfreak.sheets import SheetsClient
from sheetfreak.transport import GoogleAPITransport, Transport

__all__ = [
    "APIError",
    "AuthenticationError",
    "BorderSpec",
    "CellFormatSpec",
    "Color",
    "DriveClient",
    "GoogleAPITransport",
    "InvalidColorError",
    "InvalidRangeError",
    "NotFoundError",
    "RangeReference",
    "ScriptClient",
    "SheetFreakError",
    "SheetIndex",
    "SheetNotFoundError",
    "SheetsClient",
    "Transport",
    "TransportError",
    "__version__",
    "build_border_request",
    "build_format_request",
    "parse_color",
    "resolve_range",
]
