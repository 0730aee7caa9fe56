"""Exception hierarchy for sheetfreak.

Every error raised to the command layer derives from SheetFreakError and
carries a stable machine-readable code plus optional details, so that agents
driving the CLI can branch on the code instead of parsing messages.
"""

from __future__ import annotations

from typing import Any


class SheetFreakError(Exception):
    """Base exception for all sheetfreak errors."""

    code = "SHEETFREAK_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Return the error as a JSON-serializable payload."""
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return {"error": payload}


# --- Range resolution ---


class RangeError(SheetFreakError):
    """Base exception for range resolution errors."""


class InvalidRangeError(RangeError):
    """Raised when a range string does not match the A1 range grammar.

    Only two-corner ranges such as ``A1:B2`` or ``'My Sheet'!C3:D4`` are
    accepted. Single cells, whole columns (``A:A``) and range lists are not.
    """

    code = "INVALID_RANGE"

    def __init__(self, raw_input: str) -> None:
        self.raw_input = raw_input
        super().__init__(
            f"Invalid range format: {raw_input}. Use A1:B10 notation",
            {"provided": raw_input, "expected": "A1:B2, Sheet1!A1:B2"},
        )


class SheetNotFoundError(RangeError):
    """Raised when a sheet title has no match in the spreadsheet."""

    code = "SHEET_NOT_FOUND"

    def __init__(self, title: str) -> None:
        self.title = title
        super().__init__(f"Sheet not found: {title}", {"title": title})


# --- Colors ---


class ColorError(SheetFreakError):
    """Base exception for color parsing errors."""


class InvalidColorError(ColorError):
    """Raised when a color token is neither a hex color nor a known name."""

    code = "INVALID_COLOR"

    def __init__(self, raw_input: str, accepted_names: list[str] | None = None) -> None:
        self.raw_input = raw_input
        hint = "hex (#RRGGBB) or named color"
        if accepted_names:
            hint += f" ({', '.join(accepted_names)})"
        super().__init__(
            f"Invalid color format: {raw_input}. Use {hint}",
            {"provided": raw_input, "expected": hint},
        )


# --- Command input ---


class InvalidInputError(SheetFreakError):
    """Raised when CLI flags or a JSON payload cannot be interpreted."""

    code = "INVALID_INPUT"


class NotConfiguredError(SheetFreakError):
    """Raised when no credentials have been configured."""

    code = "NOT_CONFIGURED"

    def __init__(self) -> None:
        super().__init__(
            "Authentication not configured. "
            "Run: sheetfreak auth init <credentials.json>"
        )


# --- Google API ---


class TransportError(SheetFreakError):
    """Raised on network failures talking to Google APIs."""

    code = "NETWORK_ERROR"


class AuthenticationError(TransportError):
    """Raised when authentication fails (bad key file, 401/403)."""

    code = "AUTHENTICATION_ERROR"


class NotFoundError(TransportError):
    """Raised when a requested resource does not exist (404)."""

    code = "NOT_FOUND"


class QuotaExceededError(TransportError):
    """Raised when the API quota is exhausted (429)."""

    code = "QUOTA_EXCEEDED"

    def __init__(self, message: str = "API quota exceeded. Please try again later.") -> None:
        super().__init__(message)


class APIError(TransportError):
    """Raised when the API returns any other error."""

    code = "API_ERROR"

    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message, {"status_code": status_code} if status_code else None)
        self.status_code = status_code


# --- Templates ---


class TemplateNotFoundError(SheetFreakError):
    """Raised when an Apps Script template name is unknown."""

    code = "TEMPLATE_NOT_FOUND"


class TemplateConfigError(SheetFreakError):
    """Raised when template variables fail validation."""

    code = "INVALID_TEMPLATE_CONFIG"

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__(
            "Template configuration errors:\n" + "\n".join(errors),
            {"errors": errors},
        )
