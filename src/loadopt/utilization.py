"""
Utilization metrics over packing results.

All volumes here are in canonical units (cm³, kg).  ``utilization()``
normalises its inputs itself, so callers may pass the dimensions in the
units they were entered in, as long as they name those units.
"""

from __future__ import annotations

import math
from typing import Sequence, Union

from loadopt.config import Dimension, Item, PlacedItem
from loadopt.geometry import (
    ContainerGeometry,
    CubicContainer,
    CylindricalContainer,
    RectangularContainer,
    as_dimension,
)
from loadopt.units import LengthUnit, normalize_dimensions


def _clamp_percent(value: float) -> float:
    return round(min(100.0, max(0.0, value)), 2)


def utilization_percentage(placed_count: int, item_volume: float, container_volume: float) -> float:
    """100 × placed_count × item_volume / container_volume, rounded to 2 dp and clamped to [0, 100]."""
    if container_volume <= 0:
        return 0.0
    return _clamp_percent(100.0 * placed_count * item_volume / container_volume)


def utilization(
    container_dims,
    item_dims,
    placed_items: Union[Sequence[PlacedItem], int],
    container_unit: str | LengthUnit = "cm",
    item_unit: str | LengthUnit = "cm",
) -> float:
    """
    Volumetric fill of a packing result in percent.

    Args:
        container_dims: Container (length, width, height) in *container_unit*.
        item_dims:      Item (length, width, height) in *item_unit*.
        placed_items:   The list returned by ``pack()``, or a bare count.
    """
    container = normalize_dimensions(as_dimension(container_dims), container_unit)
    item = normalize_dimensions(item_dims, item_unit)
    count = placed_items if isinstance(placed_items, int) else len(placed_items)
    return utilization_percentage(count, item.volume, container.volume)


def weight_utilization(count: int, unit_weight: float, max_weight: float) -> float:
    """Share of the weight limit used by *count* units, in percent."""
    if max_weight <= 0:
        return 0.0
    return _clamp_percent(100.0 * count * unit_weight / max_weight)


def estimate_capacity(
    container: ContainerGeometry | Dimension,
    item: Item | Dimension,
    max_weight: float | None = None,
) -> int:
    """
    Upper bound on how many units fit, from volume and weight alone.

    min(floor(container volume / item volume), floor(max weight / item weight)).
    The weight bound applies only when both a limit (argument, else the
    container's own ``max_weight``) and an item weight are known.  Works for
    every container variant, cylinders included.
    """
    if isinstance(container, (RectangularContainer, CubicContainer, CylindricalContainer)):
        container_volume = container.volume
        if max_weight is None:
            max_weight = container.max_weight
    else:
        container_volume = as_dimension(container).volume

    if isinstance(item, Item):
        item_volume, item_weight = item.volume, item.weight
    else:
        item_volume, item_weight = item.volume, None

    capacity = math.floor(container_volume / item_volume + 1e-9)
    if max_weight is not None and item_weight:
        capacity = min(capacity, math.floor(max_weight / item_weight + 1e-9))
    return max(0, capacity)
