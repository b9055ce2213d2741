"""
Central data models and configuration for the loading optimizer.

All modules import their core types from here so that the unit layer,
the spatial indexes, the engine and the runner agree on one vocabulary.

Classes:
    Dimension: (length, width, height) triple in centimetres
    Item: a dimension plus optional id and weight
    Orientation: one axis-aligned rotation of an item
    PlacedItem: immutable record of a committed placement
    ScoringWeights: weights of the placement score terms
    PackingConfig: all tuneable parameters of one packing run
    CombinationConfig: tuneable parameters of the combination optimizer

Axis convention: x runs along the container length, y along its width and
z along its height (z = 0 is the floor).  Positions are the minimum corner.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any, Iterable

from loadopt.errors import InvalidGeometryError


# ─────────────────────────────────────────────────────────────────────────────
# Geometry primitives
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Dimension:
    """
    An ordered (length, width, height) triple in centimetres.

    Every component must be finite and strictly positive; anything else is
    rejected with InvalidGeometryError at construction time.
    """
    length: float
    width: float
    height: float

    def __post_init__(self) -> None:
        for name in ("length", "width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise InvalidGeometryError(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value) or value <= 0:
                raise InvalidGeometryError(f"{name} must be > 0, got {value!r}")

    @property
    def volume(self) -> float:
        return self.length * self.width * self.height

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.length, self.width, self.height)

    def __iter__(self):
        return iter(self.as_tuple())

    def to_dict(self) -> dict:
        return {"length": self.length, "width": self.width, "height": self.height}

    @classmethod
    def from_sequence(cls, values: Iterable[float]) -> "Dimension":
        values = tuple(values)
        if len(values) != 3:
            raise InvalidGeometryError(f"Expected 3 dimensions, got {values!r}")
        return cls(*values)

    @classmethod
    def from_dict(cls, d: dict) -> "Dimension":
        return cls(length=d["length"], width=d["width"], height=d["height"])

    def __str__(self) -> str:
        return f"{self.length:g}x{self.width:g}x{self.height:g}"


@dataclass(frozen=True)
class Item:
    """
    An item type to be loaded.  Immutable for the duration of a run.

    Attributes:
        dimension: Natural (unrotated) size in centimetres.
        id:        Identifier carried into results.
        weight:    Optional unit weight in kilograms.
    """
    dimension: Dimension
    id: int = 0
    weight: float | None = None

    def __post_init__(self) -> None:
        if self.weight is not None and (not math.isfinite(self.weight) or self.weight < 0):
            raise InvalidGeometryError(f"weight must be >= 0, got {self.weight!r}")

    @property
    def volume(self) -> float:
        return self.dimension.volume


@dataclass(frozen=True)
class Orientation:
    """
    One axis-aligned rotation of an item.

    Attributes:
        dims:     Oriented extents along (x, y, z).
        rotation: Euler angles in radians, XYZ order (z applied first),
                  that turn the natural item into this orientation.
                  Only renderers need this.
        tag:      Permutation tag, e.g. ``"wlh"`` = (width, length, height).
        rotated:  True unless dims equal the natural (l, w, h).
    """
    dims: tuple[float, float, float]
    rotation: tuple[float, float, float]
    tag: str
    rotated: bool

    @property
    def length(self) -> float:
        return self.dims[0]

    @property
    def width(self) -> float:
        return self.dims[1]

    @property
    def height(self) -> float:
        return self.dims[2]

    @property
    def volume(self) -> float:
        return self.dims[0] * self.dims[1] * self.dims[2]

    def fits_in(self, extents: tuple[float, float, float], tolerance: float = 1e-3) -> bool:
        """True if every oriented extent is <= the matching extent (+ tolerance)."""
        return (
            self.dims[0] <= extents[0] + tolerance
            and self.dims[1] <= extents[1] + tolerance
            and self.dims[2] <= extents[2] + tolerance
        )


@dataclass(frozen=True)
class PlacedItem:
    """
    A single committed placement.

    Frozen: created exactly once per placed item and never mutated, so
    renderers and tables can share the list safely.

    Attributes:
        index:       Sequential placement number within the run.
        x, y, z:     Minimum corner in centimetres.
        orientation: The orientation the item was placed in.
    """
    index: int
    x: float
    y: float
    z: float
    orientation: Orientation

    @property
    def position(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @property
    def dimensions(self) -> tuple[float, float, float]:
        return self.orientation.dims

    @property
    def rotated(self) -> bool:
        return self.orientation.rotated

    @property
    def rotation(self) -> tuple[float, float, float]:
        return self.orientation.rotation

    @property
    def volume(self) -> float:
        return self.orientation.volume

    @property
    def x_max(self) -> float:
        return self.x + self.orientation.dims[0]

    @property
    def y_max(self) -> float:
        return self.y + self.orientation.dims[1]

    @property
    def z_max(self) -> float:
        return self.z + self.orientation.dims[2]

    @property
    def center(self) -> tuple[float, float, float]:
        l, w, h = self.orientation.dims
        return (self.x + l / 2, self.y + w / 2, self.z + h / 2)

    def centered_position(self, container: Dimension) -> tuple[float, float, float]:
        """Center of the item relative to the center of *container* (viewer convention)."""
        cx, cy, cz = self.center
        return (
            cx - container.length / 2,
            cy - container.width / 2,
            cz - container.height / 2,
        )

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "position": [self.x, self.y, self.z],
            "dims": list(self.orientation.dims),
            "rotation": list(self.orientation.rotation),
            "orientation": self.orientation.tag,
            "rotated": self.orientation.rotated,
        }


# ─────────────────────────────────────────────────────────────────────────────
# Scoring weights
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScoringWeights:
    """
    Weights of the three placement score terms.

    Attributes:
        volume:    Orientation volume / candidate region volume.
        position:  1 / (1 + x + y + z), rewards placements near the origin.
        tightness: Mean per-axis fill of the candidate region.
    """
    volume: float = 0.5
    position: float = 0.2
    tightness: float = 0.3

    def __post_init__(self) -> None:
        values = (self.volume, self.position, self.tightness)
        if any(not math.isfinite(v) or v < 0 for v in values):
            raise ValueError(f"Scoring weights must be finite and >= 0, got {values}")
        if not any(values):
            raise ValueError("At least one scoring weight must be > 0")

    def to_dict(self) -> dict:
        return {"volume": self.volume, "position": self.position,
                "tightness": self.tightness}

    @classmethod
    def from_dict(cls, d: dict) -> "ScoringWeights":
        return cls(**d)


# Per-strategy defaults
GUILLOTINE_WEIGHTS = ScoringWeights(volume=0.5, position=0.2, tightness=0.3)
EXTREME_POINT_WEIGHTS = ScoringWeights(volume=0.3, position=0.4, tightness=0.3)

DEFAULT_WEIGHTS: dict[str, ScoringWeights] = {
    "guillotine": GUILLOTINE_WEIGHTS,
    "extreme_points": EXTREME_POINT_WEIGHTS,
}


# ─────────────────────────────────────────────────────────────────────────────
# Run configuration
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PackingConfig:
    """
    All tuneable parameters for a single packing run.

    Attributes:
        strategy:          Registered spatial index name.
        weights:           Score weights; None means the strategy default.
        fit_tolerance:     Slack absorbed by fit and bounds checks (cm).
        prune_interval:    Guillotine free-list prune period (iterations).
        iteration_factor:  Iteration budget = factor × theoretical maximum.
        max_placements:    Optional hard cap on placements; None means the run is
                           bounded only by the theoretical maximum and the
                           iteration budget.
        sample_threshold:  Extent (cells) above which interior sampling starts.
        sample_divisions:  Interior sampling stride = extent / divisions.
        max_grid_cells:    Largest occupancy grid the extreme-point index builds.
        record_steps:      Keep a per-placement step trace in the result.
    """
    strategy: str = "guillotine"
    weights: ScoringWeights | None = None
    fit_tolerance: float = 1e-3
    prune_interval: int = 50
    iteration_factor: int = 10
    max_placements: int | None = None
    sample_threshold: int = 10
    sample_divisions: int = 5
    max_grid_cells: int = 200_000_000
    record_steps: bool = False

    def __post_init__(self) -> None:
        if self.fit_tolerance < 0:
            raise ValueError("fit_tolerance must be >= 0")
        for name in ("prune_interval", "iteration_factor", "sample_divisions", "max_grid_cells"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1")
        if self.max_placements is not None and self.max_placements < 1:
            raise ValueError("max_placements must be >= 1")

    def resolved_weights(self) -> ScoringWeights:
        """The configured weights, or the default for this strategy."""
        if self.weights is not None:
            return self.weights
        return DEFAULT_WEIGHTS.get(self.strategy, GUILLOTINE_WEIGHTS)

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy,
            "weights": self.resolved_weights().to_dict(),
            "fit_tolerance": self.fit_tolerance,
            "prune_interval": self.prune_interval,
            "iteration_factor": self.iteration_factor,
            "max_placements": self.max_placements,
            "sample_threshold": self.sample_threshold,
            "sample_divisions": self.sample_divisions,
            "max_grid_cells": self.max_grid_cells,
            "record_steps": self.record_steps,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "PackingConfig":
        d = dict(d)
        weights = d.pop("weights", None)
        if isinstance(weights, dict):
            weights = ScoringWeights.from_dict(weights)
        return cls(weights=weights, **d)


@dataclass(frozen=True)
class CombinationConfig:
    """
    Tuneable parameters for the combination optimizer.

    Attributes:
        seed_quantity: Units of every type committed before the greedy loop (0 or 1).
        max_passes:    Optional bound on greedy scans; None runs to the fixed point.
    """
    seed_quantity: int = 1
    max_passes: int | None = None

    def __post_init__(self) -> None:
        if self.seed_quantity not in (0, 1):
            raise ValueError("seed_quantity must be 0 or 1")
        if self.max_passes is not None and self.max_passes < 1:
            raise ValueError("max_passes must be >= 1")

    def to_dict(self) -> dict:
        return {"seed_quantity": self.seed_quantity, "max_passes": self.max_passes}

    @classmethod
    def from_dict(cls, d: dict) -> "CombinationConfig":
        return cls(**d)

