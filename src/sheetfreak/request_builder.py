"""Build Google Sheets batchUpdate requests.

Format and border specs are all-optional dataclasses: ``None`` means "not
set" and is distinct from a falsy value such as ``bold=False``. Only fields
that are set end up in the request body and its field mask.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from sheetfreak.a1 import RangeReference
from sheetfreak.colors import BLACK, Color, coerce_color
from sheetfreak.exceptions import InvalidInputError

HORIZONTAL_ALIGNMENTS = ("LEFT", "CENTER", "RIGHT")
VERTICAL_ALIGNMENTS = ("TOP", "MIDDLE", "BOTTOM")
WRAP_STRATEGIES = ("OVERFLOW_CELL", "LEGACY_WRAP", "CLIP", "WRAP")
NUMBER_FORMAT_TYPES = (
    "TEXT",
    "NUMBER",
    "PERCENT",
    "CURRENCY",
    "DATE",
    "TIME",
    "DATE_TIME",
    "SCIENTIFIC",
)
BORDER_STYLES = ("DOTTED", "DASHED", "SOLID", "SOLID_MEDIUM", "SOLID_THICK", "DOUBLE")
BORDER_EDGES = ("top", "bottom", "left", "right")
DIMENSIONS = ("ROWS", "COLUMNS")


def _enum_value(value: Any, allowed: tuple[str, ...], field_name: str) -> str:
    if not isinstance(value, str) or value.upper() not in allowed:
        raise InvalidInputError(
            f"Invalid {field_name}: {value!r}. Expected one of: {', '.join(allowed)}",
            {"field": field_name, "provided": value, "expected": list(allowed)},
        )
    return value.upper()


def _optional_bool(data: Mapping[str, Any], key: str) -> bool | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise InvalidInputError(f"Field {key} must be true or false, got {value!r}")
    return value


def _optional_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise InvalidInputError(f"Field {key} must be a string, got {value!r}")
    return value


def _require_mapping(data: Any, field_name: str) -> None:
    if not isinstance(data, Mapping):
        raise InvalidInputError(f"Field {field_name} must be an object, got {data!r}")


# --- Specs ---


@dataclass(frozen=True)
class TextFormatSpec:
    bold: bool | None = None
    italic: bool | None = None
    underline: bool | None = None
    strikethrough: bool | None = None
    font_size: int | None = None
    font_family: str | None = None
    foreground_color: Color | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TextFormatSpec:
        _require_mapping(data, "textFormat")
        font_size = data.get("fontSize")
        if font_size is not None and (
            isinstance(font_size, bool) or not isinstance(font_size, int)
        ):
            raise InvalidInputError(f"Field fontSize must be an integer, got {font_size!r}")
        foreground = data.get("foregroundColor")
        return cls(
            bold=_optional_bool(data, "bold"),
            italic=_optional_bool(data, "italic"),
            underline=_optional_bool(data, "underline"),
            strikethrough=_optional_bool(data, "strikethrough"),
            font_size=font_size,
            font_family=_optional_str(data, "fontFamily"),
            foreground_color=coerce_color(foreground) if foreground is not None else None,
        )


@dataclass(frozen=True)
class NumberFormatSpec:
    type: str | None = None
    pattern: str | None = None

    def to_dict(self) -> dict[str, str]:
        result: dict[str, str] = {}
        if self.type is not None:
            result["type"] = self.type
        if self.pattern is not None:
            result["pattern"] = self.pattern
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NumberFormatSpec:
        _require_mapping(data, "numberFormat")
        number_type = data.get("type")
        return cls(
            type=(
                _enum_value(number_type, NUMBER_FORMAT_TYPES, "numberFormat.type")
                if number_type is not None
                else None
            ),
            pattern=_optional_str(data, "pattern"),
        )


@dataclass(frozen=True)
class CellFormatSpec:
    """Cell formatting to apply to a range."""

    background_color: Color | None = None
    text_format: TextFormatSpec | None = None
    horizontal_alignment: str | None = None
    vertical_alignment: str | None = None
    wrap_strategy: str | None = None
    number_format: NumberFormatSpec | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CellFormatSpec:
        """Parse an API-shaped CellFormat JSON document.

        Colors may be hex strings, color names or RGBA dicts.
        """
        if not isinstance(data, Mapping):
            raise InvalidInputError("Format JSON must be an object")
        background = data.get("backgroundColor")
        text_format = data.get("textFormat")
        number_format = data.get("numberFormat")
        h_align = data.get("horizontalAlignment")
        v_align = data.get("verticalAlignment")
        wrap = data.get("wrapStrategy")
        return cls(
            background_color=coerce_color(background) if background is not None else None,
            text_format=(
                TextFormatSpec.from_dict(text_format) if text_format is not None else None
            ),
            horizontal_alignment=(
                _enum_value(h_align, HORIZONTAL_ALIGNMENTS, "horizontalAlignment")
                if h_align is not None
                else None
            ),
            vertical_alignment=(
                _enum_value(v_align, VERTICAL_ALIGNMENTS, "verticalAlignment")
                if v_align is not None
                else None
            ),
            wrap_strategy=(
                _enum_value(wrap, WRAP_STRATEGIES, "wrapStrategy")
                if wrap is not None
                else None
            ),
            number_format=(
                NumberFormatSpec.from_dict(number_format)
                if number_format is not None
                else None
            ),
        )


@dataclass(frozen=True)
class BorderEdge:
    style: str = "SOLID"
    color: Color | None = None

    def to_dict(self) -> dict[str, Any]:
        color = self.color if self.color is not None else BLACK
        return {"style": self.style, "color": color.to_dict()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BorderEdge:
        style = data.get("style")
        color = data.get("color")
        return cls(
            style=_enum_value(style, BORDER_STYLES, "border style") if style else "SOLID",
            color=coerce_color(color) if color is not None else None,
        )


@dataclass(frozen=True)
class BorderSpec:
    """Borders to add to a range. Edges left as None are not touched."""

    top: BorderEdge | None = None
    bottom: BorderEdge | None = None
    left: BorderEdge | None = None
    right: BorderEdge | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BorderSpec:
        if not isinstance(data, Mapping):
            raise InvalidInputError("Borders JSON must be an object")
        edges: dict[str, BorderEdge] = {}
        for edge in BORDER_EDGES:
            value = data.get(edge)
            if value is None:
                continue
            if not isinstance(value, Mapping):
                raise InvalidInputError(f"Border edge {edge} must be an object")
            edges[edge] = BorderEdge.from_dict(value)
        return cls(**edges)

    @classmethod
    def uniform(
        cls,
        edges: Iterable[str],
        style: str = "SOLID",
        color: Color | None = None,
    ) -> BorderSpec:
        """Apply the same style and color to each named edge."""
        edge = BorderEdge(style=_enum_value(style, BORDER_STYLES, "border style"), color=color)
        selected: dict[str, BorderEdge] = {}
        for name in edges:
            if name not in BORDER_EDGES:
                raise InvalidInputError(f"Unknown border edge: {name}")
            selected[name] = edge
        return cls(**selected)


# --- Cell format ---


def build_cell_format(spec: CellFormatSpec) -> tuple[dict[str, Any], list[str]]:
    """Build the userEnteredFormat body and its field mask.

    Returns:
        (cell_format, fields) where fields lists the set fields in a fixed
        order, with nested text format fields dot-joined
        (e.g. ``textFormat.bold``).
    """
    cell_format: dict[str, Any] = {}
    fields: list[str] = []

    if spec.background_color is not None:
        cell_format["backgroundColor"] = spec.background_color.to_dict()
        fields.append("backgroundColor")

    if spec.text_format is not None:
        text = spec.text_format
        text_format: dict[str, Any] = {}
        for attr, key in (
            ("bold", "bold"),
            ("italic", "italic"),
            ("underline", "underline"),
            ("strikethrough", "strikethrough"),
            ("font_size", "fontSize"),
            ("font_family", "fontFamily"),
        ):
            value = getattr(text, attr)
            if value is not None:
                text_format[key] = value
                fields.append(f"textFormat.{key}")
        if text.foreground_color is not None:
            text_format["foregroundColor"] = text.foreground_color.to_dict()
            fields.append("textFormat.foregroundColor")
        if text_format:
            cell_format["textFormat"] = text_format

    if spec.horizontal_alignment is not None:
        cell_format["horizontalAlignment"] = spec.horizontal_alignment
        fields.append("horizontalAlignment")

    if spec.vertical_alignment is not None:
        cell_format["verticalAlignment"] = spec.vertical_alignment
        fields.append("verticalAlignment")

    if spec.wrap_strategy is not None:
        cell_format["wrapStrategy"] = spec.wrap_strategy
        fields.append("wrapStrategy")

    if spec.number_format is not None:
        cell_format["numberFormat"] = spec.number_format.to_dict()
        fields.append("numberFormat")

    return cell_format, fields


def build_format_request(ref: RangeReference, spec: CellFormatSpec) -> dict[str, Any]:
    """Build a repeatCell request applying spec to every cell in ref.

    An empty spec still produces a valid request with an empty mask; callers
    decide whether to send it.
    """
    cell_format, fields = build_cell_format(spec)
    return {
        "repeatCell": {
            "range": ref.to_grid_range(),
            "cell": {"userEnteredFormat": cell_format},
            "fields": f"userEnteredFormat({','.join(fields)})",
        }
    }


# --- Borders ---


def build_border_request(ref: RangeReference, spec: BorderSpec) -> dict[str, Any]:
    """Build an updateBorders request.

    Edges missing from spec are omitted from the request, so existing
    borders on those edges are left as they are. An edge without a color is
    drawn in opaque black.
    """
    body: dict[str, Any] = {"range": ref.to_grid_range()}
    for name in BORDER_EDGES:
        edge: BorderEdge | None = getattr(spec, name)
        if edge is not None:
            body[name] = edge.to_dict()
    return {"updateBorders": body}


# --- Sheets and dimensions ---


def build_add_sheet_request(title: str) -> dict[str, Any]:
    return {"addSheet": {"properties": {"title": title}}}


def build_delete_sheet_request(sheet_id: int) -> dict[str, Any]:
    return {"deleteSheet": {"sheetId": sheet_id}}


def build_rename_sheet_request(sheet_id: int, title: str) -> dict[str, Any]:
    return {
        "updateSheetProperties": {
            "properties": {"sheetId": sheet_id, "title": title},
            "fields": "title",
        }
    }


def _dimension_range(
    sheet_id: int, dimension: str, start_index: int, end_index: int
) -> dict[str, Any]:
    if dimension not in DIMENSIONS:
        raise InvalidInputError(f"Unknown dimension: {dimension}")
    if start_index < 0 or end_index <= start_index:
        raise InvalidInputError(
            f"Invalid {dimension.lower()} span: {start_index}..{end_index}"
        )
    return {
        "sheetId": sheet_id,
        "dimension": dimension,
        "startIndex": start_index,
        "endIndex": end_index,
    }


def build_resize_request(
    sheet_id: int, dimension: str, start: int, end: int, pixel_size: int
) -> dict[str, Any]:
    """Build an updateDimensionProperties request setting a pixel size.

    For COLUMNS, start and end are zero-based inclusive indices. For ROWS
    they are one-based inclusive row numbers, as shown in the Sheets UI.
    """
    if pixel_size <= 0:
        raise InvalidInputError(f"Pixel size must be positive, got {pixel_size}")
    if dimension == "ROWS":
        start_index, end_index = start - 1, end
    else:
        start_index, end_index = start, end + 1
    return {
        "updateDimensionProperties": {
            "range": _dimension_range(sheet_id, dimension, start_index, end_index),
            "properties": {"pixelSize": pixel_size},
            "fields": "pixelSize",
        }
    }


def build_auto_resize_request(sheet_id: int, start: int, end: int) -> dict[str, Any]:
    """Build an autoResizeDimensions request for zero-based inclusive columns."""
    return {
        "autoResizeDimensions": {
            "dimensions": _dimension_range(sheet_id, "COLUMNS", start, end + 1)
        }
    }
