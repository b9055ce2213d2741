"""
Tests for unit normalisation and dimension parsing.

Run with:
    python -m pytest tests/test_units.py -v
"""

import logging
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from loadopt.config import Dimension
from loadopt.errors import DimensionFormatError, InvalidGeometryError, UnknownUnitError
from loadopt.units import (
    LengthUnit,
    WeightUnit,
    length_factor,
    normalize_dimensions,
    parse_dimensions,
    resolve_length_unit,
    to_centimeters,
    to_kilograms,
)


class TestLengthConversion:

    @pytest.mark.parametrize("unit,expected", [
        ("mm", 0.1),
        ("cm", 1.0),
        ("in", 2.54),
        ("ft", 30.48),
        ("m", 100.0),
    ])
    def test_factors(self, unit, expected):
        assert length_factor(unit) == pytest.approx(expected)

    def test_aliases_and_case(self):
        assert resolve_length_unit("Meters") is LengthUnit.METER
        assert resolve_length_unit(" INCH ") is LengthUnit.INCH
        assert resolve_length_unit(LengthUnit.FOOT) is LengthUnit.FOOT

    def test_to_centimeters(self):
        assert to_centimeters(2, "m") == pytest.approx(200.0)
        assert to_centimeters(10, LengthUnit.MILLIMETER) == pytest.approx(1.0)

    def test_unknown_unit_is_identity_and_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="loadopt.units"):
            assert length_factor("furlong") == 1.0
        assert "furlong" in caplog.text

    def test_unknown_unit_strict_raises(self):
        with pytest.raises(UnknownUnitError):
            length_factor("furlong", strict=True)


class TestWeightConversion:

    @pytest.mark.parametrize("unit,expected", [
        ("g", 0.001),
        ("kg", 1.0),
        ("lb", 0.45359237),
        ("pounds", 0.45359237),
        (WeightUnit.KILOGRAM, 1.0),
    ])
    def test_to_kilograms(self, unit, expected):
        assert to_kilograms(1, unit) == pytest.approx(expected)

    def test_unknown_weight_unit_strict(self):
        with pytest.raises(UnknownUnitError):
            to_kilograms(1, "stone", strict=True)


class TestNormalizeDimensions:

    def test_mixed_units_agree(self):
        a = normalize_dimensions((2, 1, 1), "m")
        b = normalize_dimensions((200, 100, 100), "cm")
        assert a == b

    def test_dimension_input(self):
        assert normalize_dimensions(Dimension(10, 20, 30), "mm") == Dimension(1, 2, 3)

    def test_wrong_arity(self):
        with pytest.raises(DimensionFormatError):
            normalize_dimensions((1, 2), "cm")

    @pytest.mark.parametrize("dims", [(0, 1, 1), (1, -2, 1), (1, 1, float("nan"))])
    def test_non_positive_rejected(self, dims):
        with pytest.raises(InvalidGeometryError):
            normalize_dimensions(dims, "cm")


class TestParseDimensions:

    @pytest.mark.parametrize("text", ["50x30x40", "50 X 30 X 40", "50×30×40", "50*30*40", " 50x30x40 "])
    def test_separators(self, text):
        assert parse_dimensions(text) == Dimension(50, 30, 40)

    def test_decimal_and_unit(self):
        assert parse_dimensions("1.5x1x0.5", "m") == Dimension(150, 100, 50)

    @pytest.mark.parametrize("text", ["", "50x30", "50x30x40x10", "axbxc", "50-30-40"])
    def test_malformed(self, text):
        with pytest.raises(DimensionFormatError):
            parse_dimensions(text)

    def test_zero_component(self):
        with pytest.raises(InvalidGeometryError):
            parse_dimensions("0x30x40")

    def test_format_error_is_geometry_error(self):
        assert issubclass(DimensionFormatError, InvalidGeometryError)
