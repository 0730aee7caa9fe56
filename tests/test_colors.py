"""Tests for sheetfreak.colors."""

import pytest

from sheetfreak.colors import (
    BLACK,
    NAMED_COLORS,
    Color,
    coerce_color,
    parse_color,
)
from sheetfreak.exceptions import InvalidColorError


class TestParseColorHex:
    def test_with_hash(self) -> None:
        color = parse_color("#4285f4")
        assert color.red == pytest.approx(0x42 / 255)
        assert color.green == pytest.approx(0x85 / 255)
        assert color.blue == pytest.approx(0xF4 / 255)
        assert color.alpha == 1.0

    def test_without_hash(self) -> None:
        assert parse_color("FF0000") == Color(1.0, 0.0, 0.0, 1.0)

    def test_uppercase(self) -> None:
        assert parse_color("#00FF00") == Color(0.0, 1.0, 0.0)

    def test_short_hex_rejected(self) -> None:
        with pytest.raises(InvalidColorError):
            parse_color("#FFF")

    @pytest.mark.parametrize("token", ["#4285f4\n", "4285F4\n", " #4285f4", "#4285f4ff"])
    def test_surrounding_characters_rejected(self, token: str) -> None:
        with pytest.raises(InvalidColorError):
            parse_color(token)


class TestParseColorNamed:
    def test_orange_exact(self) -> None:
        assert parse_color("orange") == Color(1.0, 0.65, 0.0, 1.0)

    def test_case_insensitive(self) -> None:
        assert parse_color("ORANGE") == parse_color("orange")
        assert parse_color("LightGray") == Color(0.83, 0.83, 0.83)

    def test_all_named_colors_opaque(self) -> None:
        assert len(NAMED_COLORS) == 12
        assert all(c.alpha == 1.0 for c in NAMED_COLORS.values())

    def test_unknown_name(self) -> None:
        with pytest.raises(InvalidColorError) as exc_info:
            parse_color("notacolor")
        assert exc_info.value.raw_input == "notacolor"
        assert exc_info.value.code == "INVALID_COLOR"
        assert "#RRGGBB" in exc_info.value.message
        assert "orange" in exc_info.value.message


class TestColor:
    def test_to_dict(self) -> None:
        assert BLACK.to_dict() == {"red": 0.0, "green": 0.0, "blue": 0.0, "alpha": 1.0}

    def test_from_dict_defaults(self) -> None:
        assert Color.from_dict({"red": 0.5}) == Color(0.5, 0.0, 0.0, 1.0)

    def test_channel_range(self) -> None:
        with pytest.raises(ValueError):
            Color(1.5, 0.0, 0.0)


class TestCoerceColor:
    def test_string(self) -> None:
        assert coerce_color("red") == Color(1.0, 0.0, 0.0)

    def test_mapping(self) -> None:
        assert coerce_color({"green": 1}) == Color(0.0, 1.0, 0.0)

    def test_bad_mapping(self) -> None:
        with pytest.raises(InvalidColorError):
            coerce_color({"red": 3})

    def test_other_types(self) -> None:
        with pytest.raises(InvalidColorError):
            coerce_color(42)
