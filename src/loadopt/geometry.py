"""
Container geometry variants and standard container presets.

Each variant carries only the fields its shape needs and knows its own
volume.  Box-shaped variants also expose ``dimension`` so they can be
packed; the cylinder supports volume-based capacity estimates only.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Literal, Union

from loadopt.config import Dimension
from loadopt.errors import InvalidGeometryError, UnsupportedContainerError


def _require_positive(**values: float) -> None:
    for name, value in values.items():
        if value is None and name == "max_weight":
            continue
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise InvalidGeometryError(f"{name} must be a number, got {value!r}")
        if not math.isfinite(value) or value <= 0:
            raise InvalidGeometryError(f"{name} must be > 0, got {value!r}")


@dataclass(frozen=True)
class RectangularContainer:
    """Box-shaped container (carton, pallet load space, shipping container)."""
    length: float
    width: float
    height: float
    max_weight: float | None = None
    kind: Literal["rectangular"] = "rectangular"

    def __post_init__(self) -> None:
        _require_positive(length=self.length, width=self.width, height=self.height,
                          max_weight=self.max_weight)

    @property
    def dimension(self) -> Dimension:
        return Dimension(self.length, self.width, self.height)

    @property
    def volume(self) -> float:
        return self.length * self.width * self.height


@dataclass(frozen=True)
class CubicContainer:
    """Cube-shaped container described by a single edge."""
    edge: float
    max_weight: float | None = None
    kind: Literal["cubic"] = "cubic"

    def __post_init__(self) -> None:
        _require_positive(edge=self.edge, max_weight=self.max_weight)

    @property
    def dimension(self) -> Dimension:
        return Dimension(self.edge, self.edge, self.edge)

    @property
    def volume(self) -> float:
        return self.edge ** 3


@dataclass(frozen=True)
class CylindricalContainer:
    """Upright cylinder (drum, tube).  Not packable, volume only."""
    diameter: float
    height: float
    max_weight: float | None = None
    kind: Literal["cylindrical"] = "cylindrical"

    def __post_init__(self) -> None:
        _require_positive(diameter=self.diameter, height=self.height,
                          max_weight=self.max_weight)

    @property
    def dimension(self) -> Dimension:
        raise UnsupportedContainerError(
            "Cylindrical containers have no box geometry; use estimate_capacity()"
        )

    @property
    def volume(self) -> float:
        radius = self.diameter / 2
        return math.pi * radius * radius * self.height


ContainerGeometry = Union[RectangularContainer, CubicContainer, CylindricalContainer]

_VARIANTS: dict[str, type] = {
    "rectangular": RectangularContainer,
    "cubic": CubicContainer,
    "cylindrical": CylindricalContainer,
}


def container_from_spec(kind: str, **fields) -> ContainerGeometry:
    """
    Build a container variant from its tag.

    Raises:
        InvalidGeometryError: unknown tag, missing/extra fields or bad values.
    """
    cls = _VARIANTS.get(kind)
    if cls is None:
        available = ", ".join(sorted(_VARIANTS))
        raise InvalidGeometryError(f"Unknown container shape '{kind}'.  Available: [{available}]")
    try:
        return cls(**fields)
    except TypeError as exc:
        raise InvalidGeometryError(f"Invalid fields for {kind} container: {exc}") from exc


def as_dimension(container) -> Dimension:
    """
    Resolve anything the engine accepts as a container into a Dimension.

    Accepts a Dimension, a box-shaped container variant, or a 3-sequence.
    """
    if isinstance(container, Dimension):
        return container
    if isinstance(container, (RectangularContainer, CubicContainer, CylindricalContainer)):
        return container.dimension
    return Dimension.from_sequence(container)


# ─────────────────────────────────────────────────────────────────────────────
# Presets (centimetres, kilograms)
# ─────────────────────────────────────────────────────────────────────────────

CONTAINER_20FT = RectangularContainer(length=589.0, width=235.0, height=239.0, max_weight=28200.0)
CONTAINER_40FT = RectangularContainer(length=1203.0, width=235.0, height=239.0, max_weight=26680.0)

# Standard EUR pallet footprint with its usual load height and weight limit
EUR_PALLET = RectangularContainer(length=120.0, width=80.0, height=200.0, max_weight=1000.0)

PRESETS: dict[str, RectangularContainer] = {
    "20ft": CONTAINER_20FT,
    "40ft": CONTAINER_40FT,
    "eur_pallet": EUR_PALLET,
}


def get_preset(name: str) -> RectangularContainer:
    """Look up a preset container by name."""
    if name not in PRESETS:
        available = ", ".join(sorted(PRESETS))
        raise InvalidGeometryError(f"Unknown container preset '{name}'.  Available: [{available}]")
    return PRESETS[name]
