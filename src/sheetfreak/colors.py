"""Color parsing for cell formats and borders.

Accepts hex colors (``#4285f4`` or ``4285F4``) and a fixed table of named
colors, and produces the RGBA shape used by the Sheets API.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sheetfreak.exceptions import InvalidColorError

_HEX_PATTERN = re.compile(r"#?[0-9A-Fa-f]{6}")


@dataclass(frozen=True)
class Color:
    """RGBA color with channels in [0.0, 1.0]."""

    red: float
    green: float
    blue: float
    alpha: float = 1.0

    def __post_init__(self) -> None:
        for name in ("red", "green", "blue", "alpha"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"Color channel {name} out of range: {value}")

    def to_dict(self) -> dict[str, float]:
        return {
            "red": self.red,
            "green": self.green,
            "blue": self.blue,
            "alpha": self.alpha,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Color:
        """Create from an API-shaped color dict.

        Missing channels default to 0 and missing alpha to 1, matching how
        the Sheets API omits zero-valued fields.
        """
        return cls(
            red=float(data.get("red", 0.0)),
            green=float(data.get("green", 0.0)),
            blue=float(data.get("blue", 0.0)),
            alpha=float(data.get("alpha", 1.0)),
        )


BLACK = Color(0.0, 0.0, 0.0, 1.0)

NAMED_COLORS: dict[str, Color] = {
    "red": Color(1.0, 0.0, 0.0),
    "green": Color(0.0, 1.0, 0.0),
    "blue": Color(0.0, 0.0, 1.0),
    "yellow": Color(1.0, 1.0, 0.0),
    "orange": Color(1.0, 0.65, 0.0),
    "purple": Color(0.5, 0.0, 0.5),
    "pink": Color(1.0, 0.75, 0.8),
    "white": Color(1.0, 1.0, 1.0),
    "black": BLACK,
    "gray": Color(0.5, 0.5, 0.5),
    "lightgray": Color(0.83, 0.83, 0.83),
    "darkgray": Color(0.66, 0.66, 0.66),
}


def hex_to_color(hex_color: str) -> Color:
    """Convert ``#RRGGBB`` (leading ``#`` optional) to a Color."""
    hex_color = hex_color.lstrip("#")
    return Color(
        red=int(hex_color[0:2], 16) / 255,
        green=int(hex_color[2:4], 16) / 255,
        blue=int(hex_color[4:6], 16) / 255,
    )


def parse_color(token: str) -> Color:
    """Parse a user-facing color token.

    Args:
        token: Hex color (``#RRGGBB`` or ``RRGGBB``) or a named color,
            matched case-insensitively

    Raises:
        InvalidColorError: If the token is neither
    """
    if _HEX_PATTERN.fullmatch(token):
        return hex_to_color(token)

    named = NAMED_COLORS.get(token.lower())
    if named is not None:
        return named

    raise InvalidColorError(token, list(NAMED_COLORS))


def coerce_color(value: Any) -> Color:
    """Accept a color from a JSON payload: a token string or an RGBA dict."""
    if isinstance(value, Color):
        return value
    if isinstance(value, str):
        return parse_color(value)
    if isinstance(value, Mapping):
        try:
            return Color.from_dict(value)
        except (TypeError, ValueError) as e:
            raise InvalidColorError(str(dict(value))) from e
    raise InvalidColorError(repr(value))
