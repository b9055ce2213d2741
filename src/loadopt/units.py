"""
Unit normalisation: every length is converted to centimetres and every
weight to kilograms before any geometry is computed.

Unknown unit tags are accepted with an identity multiplier.  This is a
deliberate permissive default: a warning is logged each time it happens,
and callers that want a hard failure pass ``strict=True``.

Usage:
    to_centimeters(2, "m")            # 200.0
    to_centimeters(10, "in")          # 25.4
    parse_dimensions("50x30x40")      # Dimension(50.0, 30.0, 40.0)
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from loadopt.config import Dimension
from loadopt.errors import DimensionFormatError, UnknownUnitError

logger = logging.getLogger(__name__)


class LengthUnit(str, Enum):
    MILLIMETER = "mm"
    CENTIMETER = "cm"
    INCH = "in"
    FOOT = "ft"
    METER = "m"


class WeightUnit(str, Enum):
    GRAM = "g"
    KILOGRAM = "kg"
    POUND = "lb"


# Multipliers to the canonical units (cm, kg)
LENGTH_FACTORS: dict[LengthUnit, float] = {
    LengthUnit.MILLIMETER: 0.1,
    LengthUnit.CENTIMETER: 1.0,
    LengthUnit.INCH: 2.54,
    LengthUnit.FOOT: 30.48,
    LengthUnit.METER: 100.0,
}

WEIGHT_FACTORS: dict[WeightUnit, float] = {
    WeightUnit.GRAM: 0.001,
    WeightUnit.KILOGRAM: 1.0,
    WeightUnit.POUND: 0.45359237,
}

_LENGTH_ALIASES: dict[str, LengthUnit] = {
    "mm": LengthUnit.MILLIMETER, "millimeter": LengthUnit.MILLIMETER,
    "millimeters": LengthUnit.MILLIMETER, "millimetre": LengthUnit.MILLIMETER,
    "cm": LengthUnit.CENTIMETER, "centimeter": LengthUnit.CENTIMETER,
    "centimeters": LengthUnit.CENTIMETER, "centimetre": LengthUnit.CENTIMETER,
    "in": LengthUnit.INCH, "inch": LengthUnit.INCH, "inches": LengthUnit.INCH,
    "ft": LengthUnit.FOOT, "foot": LengthUnit.FOOT, "feet": LengthUnit.FOOT,
    "m": LengthUnit.METER, "meter": LengthUnit.METER,
    "meters": LengthUnit.METER, "metre": LengthUnit.METER,
}

_WEIGHT_ALIASES: dict[str, WeightUnit] = {
    "g": WeightUnit.GRAM, "gram": WeightUnit.GRAM, "grams": WeightUnit.GRAM,
    "kg": WeightUnit.KILOGRAM, "kilogram": WeightUnit.KILOGRAM,
    "kilograms": WeightUnit.KILOGRAM,
    "lb": WeightUnit.POUND, "lbs": WeightUnit.POUND, "pound": WeightUnit.POUND,
    "pounds": WeightUnit.POUND,
}

_DIMENSION_SEPARATOR = re.compile(r"\s*[xX×*]\s*")


def resolve_length_unit(unit: str | LengthUnit) -> LengthUnit | None:
    """Map a unit tag (short or long form, any case) to a LengthUnit, or None."""
    if isinstance(unit, LengthUnit):
        return unit
    return _LENGTH_ALIASES.get(str(unit).strip().lower())


def resolve_weight_unit(unit: str | WeightUnit) -> WeightUnit | None:
    """Map a unit tag (short or long form, any case) to a WeightUnit, or None."""
    if isinstance(unit, WeightUnit):
        return unit
    return _WEIGHT_ALIASES.get(str(unit).strip().lower())


def length_factor(unit: str | LengthUnit, strict: bool = False) -> float:
    """
    Multiplier converting *unit* to centimetres.

    Unknown tags return 1.0 (and log a warning) unless *strict* is set,
    in which case UnknownUnitError is raised.
    """
    resolved = resolve_length_unit(unit)
    if resolved is None:
        if strict:
            raise UnknownUnitError(f"Unknown length unit: {unit!r}")
        logger.warning("Unknown length unit %r, treating values as centimetres", unit)
        return 1.0
    return LENGTH_FACTORS[resolved]


def weight_factor(unit: str | WeightUnit, strict: bool = False) -> float:
    """Multiplier converting *unit* to kilograms (same policy as length_factor)."""
    resolved = resolve_weight_unit(unit)
    if resolved is None:
        if strict:
            raise UnknownUnitError(f"Unknown weight unit: {unit!r}")
        logger.warning("Unknown weight unit %r, treating values as kilograms", unit)
        return 1.0
    return WEIGHT_FACTORS[resolved]


def to_centimeters(value: float, unit: str | LengthUnit = "cm", strict: bool = False) -> float:
    """Express *value* given in *unit* in centimetres."""
    return value * length_factor(unit, strict=strict)


def to_kilograms(value: float, unit: str | WeightUnit = "kg", strict: bool = False) -> float:
    """Express *value* given in *unit* in kilograms."""
    return value * weight_factor(unit, strict=strict)


def normalize_dimensions(
    dims,
    unit: str | LengthUnit = "cm",
    strict: bool = False,
) -> Dimension:
    """
    Convert a (length, width, height) triple in *unit* into a centimetre
    Dimension.  A Dimension is converted too (it is assumed to be in *unit*).

    Raises:
        InvalidGeometryError: if any converted component is not > 0.
    """
    if isinstance(dims, Dimension):
        dims = dims.as_tuple()
    values = tuple(dims)
    if len(values) != 3:
        raise DimensionFormatError(f"Expected 3 dimensions, got {len(values)}: {values!r}")
    factor = length_factor(unit, strict=strict)
    return Dimension(*(float(v) * factor for v in values))


def parse_dimensions(text: str, unit: str | LengthUnit = "cm", strict: bool = False) -> Dimension:
    """
    Parse an ``LxWxH`` string (``x``, ``X``, ``×`` or ``*`` separated).

    Raises:
        DimensionFormatError: malformed string or non-numeric component.
        InvalidGeometryError: a component is zero or negative.
    """
    if not isinstance(text, str) or not text.strip():
        raise DimensionFormatError(f"Invalid dimension format: {text!r}")
    parts = _DIMENSION_SEPARATOR.split(text.strip())
    if len(parts) != 3:
        raise DimensionFormatError(f"Invalid dimension format: {text!r}")
    try:
        values = [float(p) for p in parts]
    except ValueError as exc:
        raise DimensionFormatError(f"Invalid dimension format: {text!r}") from exc
    return normalize_dimensions(values, unit, strict=strict)
