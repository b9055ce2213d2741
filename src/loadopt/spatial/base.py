"""
Spatial index interface: the placement substrate the engine drives.

A spatial index tracks where the next item can go.  Two implementations
exist and are interchangeable:

    guillotine       free-space box list with guillotine splits
    extreme_points   extreme-point frontier over a voxel occupancy grid

Creating a spatial index
~~~~~~~~~~~~~~~~~~~~~~~~
1. Create ``loadopt/spatial/my_index.py``
2. Subclass ``SpatialIndex``, set ``name``, implement ``best_candidate()``,
   ``commit()`` and ``discard()``
3. Decorate with ``@register_index``
4. Import the module in ``loadopt/spatial/__init__.py``

An index instance belongs to exactly one packing run.  The engine is the
only caller of ``commit()``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from loadopt.config import Dimension, Orientation, PackingConfig
from loadopt.errors import UnknownStrategyError
from loadopt.scoring import PlacementScorer


@dataclass(frozen=True)
class Candidate:
    """
    A scored placement proposal (not yet committed).

    Attributes:
        position:    Minimum corner (x, y, z).
        orientation: Orientation to place the item in.
        score:       Placement score (higher is better).
        anchor:      Index-specific handle (free space or extreme point)
                     that ``commit()`` / ``discard()`` consume.
    """
    position: tuple[float, float, float]
    orientation: Orientation
    score: float
    anchor: Any


class SpatialIndex(ABC):
    """
    Abstract base for placement substrates.

    +--------------------------+--------------------------------------------+
    | Method                   | Description                                |
    +==========================+============================================+
    | ``best_candidate()``     | Highest-scoring feasible placement or None |
    | ``commit(candidate)``    | Record a placement, update free space      |
    | ``discard(candidate)``   | Drop an anchor that failed re-validation   |
    | ``maintain(iteration)``  | Periodic housekeeping (optional)           |
    | ``open_count``           | Number of open spaces / points             |
    +--------------------------+--------------------------------------------+
    """

    name: str = "unnamed"

    def __init__(
        self,
        container: Dimension,
        orientations: list[Orientation],
        scorer: PlacementScorer,
        config: PackingConfig,
    ) -> None:
        self.container = container
        self.orientations = orientations
        self.scorer = scorer
        self.config = config

    @abstractmethod
    def best_candidate(self) -> Candidate | None:
        """Return the best placement across all open candidates, or None."""
        ...

    @abstractmethod
    def commit(self, candidate: Candidate) -> None:
        """Mark *candidate* as occupied and derive the new open candidates."""
        ...

    @abstractmethod
    def discard(self, candidate: Candidate) -> None:
        """Remove the anchor of *candidate* without placing anything."""
        ...

    def maintain(self, iteration: int) -> None:
        """Called by the engine after every commit.  Override for pruning."""
        pass

    @property
    @abstractmethod
    def open_count(self) -> int:
        ...


# ─────────────────────────────────────────────────────────────────────────────
# Index registry
# ─────────────────────────────────────────────────────────────────────────────

INDEX_REGISTRY: dict[str, type[SpatialIndex]] = {}


def register_index(cls: type[SpatialIndex]) -> type[SpatialIndex]:
    """Class decorator that registers a spatial index under ``cls.name``."""
    INDEX_REGISTRY[cls.name] = cls
    return cls


def get_index_class(name: str) -> type[SpatialIndex]:
    """Look up a spatial index class by name."""
    if name not in INDEX_REGISTRY:
        available = ", ".join(sorted(INDEX_REGISTRY.keys()))
        raise UnknownStrategyError(f"Unknown strategy '{name}'.  Available: [{available}]")
    return INDEX_REGISTRY[name]
