"""Spatial indexes. Importing this package registers every implementation."""

from loadopt.spatial.base import (
    INDEX_REGISTRY,
    Candidate,
    SpatialIndex,
    get_index_class,
    register_index,
)
from loadopt.spatial.extreme_points import ExtremePointIndex
from loadopt.spatial.guillotine import FreeSpace, GuillotineIndex
from loadopt.spatial.occupancy import OccupancyGrid

__all__ = [
    "INDEX_REGISTRY",
    "Candidate",
    "SpatialIndex",
    "get_index_class",
    "register_index",
    "ExtremePointIndex",
    "FreeSpace",
    "GuillotineIndex",
    "OccupancyGrid",
]
