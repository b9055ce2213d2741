"""
Packing engine: drives the placement loop for one item type in one container.

States:
    INITIALIZING -> SELECTING -> PLACING -> (SELECTING | EXHAUSTED)

  1. INITIALIZING: enumerate orientations, compute the theoretical maximum
     floor(container volume / item volume) and the iteration budget
     (iteration_factor × theoretical maximum), build the spatial index.
  2. SELECTING: ask the index for its best candidate; none -> EXHAUSTED.
  3. PLACING: re-check container bounds, commit to the index, append a
     PlacedItem, back to SELECTING.
  4. EXHAUSTED: nothing fits, the theoretical maximum or the placement cap
     is reached, or the iteration budget ran out.  All four are normal
     terminations; the result says which one happened.

Invalid geometry never reaches the engine: Dimension rejects it at
construction, so ``pack()`` raises before INITIALIZING.

Usage:
    placed = pack((50, 30, 40), "cm", (10, 10, 5), "cm")
    result = pack_detailed((2, 1, 1), "m", (30, 20, 10), "cm", strategy="extreme_points")
    result.placed_count, result.utilization, result.termination
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field, replace
from enum import Enum

from loadopt.config import Dimension, Item, PackingConfig, PlacedItem
from loadopt.errors import InvalidGeometryError
from loadopt.geometry import as_dimension
from loadopt.orientation import enumerate_orientations, fitting_orientations
from loadopt.scoring import PlacementScorer
from loadopt.spatial import Candidate, SpatialIndex, get_index_class
from loadopt.units import LengthUnit, normalize_dimensions
from loadopt.utilization import utilization_percentage

logger = logging.getLogger(__name__)

# Guards floor(container / item) against ratios like 119.99999999
_RATIO_EPS = 1e-9


class EngineState(str, Enum):
    INITIALIZING = "initializing"
    SELECTING = "selecting"
    PLACING = "placing"
    EXHAUSTED = "exhausted"


class Termination(str, Enum):
    """Why a run reached EXHAUSTED."""
    NO_FIT = "no_fit"
    THEORETICAL_MAX = "theoretical_max"
    ITERATION_BUDGET = "iteration_budget"
    PLACEMENT_CAP = "placement_cap"


# ---------------------------------------------------------------------------
# StepRecord -- immutable log entry for each committed placement
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StepRecord:
    iteration: int
    index: int
    position: tuple[float, float, float]
    orientation: str
    score: float
    open_candidates: int
    elapsed_ms: float

    def to_dict(self) -> dict:
        return {
            "iteration": self.iteration,
            "index": self.index,
            "position": list(self.position),
            "orientation": self.orientation,
            "score": round(self.score, 6),
            "open_candidates": self.open_candidates,
            "elapsed_ms": round(self.elapsed_ms, 3),
        }


@dataclass(frozen=True)
class PackingResult:
    """
    Outcome of one packing run.

    ``placements`` is the ordered sequence of PlacedItems, the run's only
    externally visible output; everything else describes how it was reached.
    """
    placements: tuple[PlacedItem, ...]
    container: Dimension
    item: Dimension
    strategy: str
    theoretical_max: int
    iterations: int
    termination: Termination
    elapsed_ms: float = 0.0
    steps: tuple[StepRecord, ...] = field(default_factory=tuple)

    @property
    def placed_count(self) -> int:
        return len(self.placements)

    @property
    def utilization(self) -> float:
        """Volumetric fill in percent, rounded to two decimals."""
        return utilization_percentage(
            self.placed_count, self.item.volume, self.container.volume,
        )

    def to_dict(self, include_steps: bool = False) -> dict:
        d = {
            "strategy": self.strategy,
            "container": self.container.to_dict(),
            "item": self.item.to_dict(),
            "placed_count": self.placed_count,
            "theoretical_max": self.theoretical_max,
            "utilization_pct": self.utilization,
            "iterations": self.iterations,
            "termination": self.termination.value,
            "elapsed_ms": round(self.elapsed_ms, 3),
            "placements": [p.to_dict() for p in self.placements],
        }
        if include_steps:
            d["steps"] = [s.to_dict() for s in self.steps]
        return d


# ---------------------------------------------------------------------------
# PackingEngine
# ---------------------------------------------------------------------------

class PackingEngine:
    """
    Single-run placement loop.

    An engine owns its spatial index (free-space list or occupancy grid)
    for the duration of ``run()``; nothing is shared between engines, so
    independent runs may execute in parallel.
    """

    def __init__(
        self,
        container: Dimension,
        item: Item | Dimension,
        config: PackingConfig | None = None,
    ) -> None:
        self.container = container
        self.item = item if isinstance(item, Item) else Item(dimension=item)
        self.config = config or PackingConfig()
        self._state = EngineState.INITIALIZING
        self._index: SpatialIndex | None = None

    @property
    def state(self) -> EngineState:
        return self._state

    def theoretical_max(self) -> int:
        """floor(container volume / item volume)."""
        return math.floor(self.container.volume / self.item.volume + _RATIO_EPS)

    def run(self) -> PackingResult:
        t0 = time.perf_counter()
        cfg = self.config
        container = self.container
        item_dims = self.item.dimension

        # -- INITIALIZING ---------------------------------------------------
        self._state = EngineState.INITIALIZING
        theoretical_max = self.theoretical_max()
        budget = cfg.iteration_factor * theoretical_max
        orientations = enumerate_orientations(item_dims)
        logger.info(
            "Packing %s into %s with %s (theoretical max %d)",
            item_dims, container, cfg.strategy, theoretical_max,
        )

        placements: list[PlacedItem] = []
        steps: list[StepRecord] = []
        iterations = 0

        if theoretical_max == 0 or not fitting_orientations(
            orientations, container.as_tuple(), cfg.fit_tolerance,
        ):
            return self._finish(placements, steps, theoretical_max, iterations,
                                Termination.NO_FIT, t0)

        index_cls = get_index_class(cfg.strategy)
        scorer = PlacementScorer(cfg.resolved_weights())
        self._index = index_cls(container, orientations, scorer, cfg)

        # -- SELECTING / PLACING loop ----------------------------------------
        while True:
            if len(placements) >= theoretical_max:
                termination = Termination.THEORETICAL_MAX
                break
            if cfg.max_placements is not None and len(placements) >= cfg.max_placements:
                termination = Termination.PLACEMENT_CAP
                break
            if iterations >= budget:
                termination = Termination.ITERATION_BUDGET
                break

            iterations += 1
            step_t0 = time.perf_counter()
            self._state = EngineState.SELECTING
            candidate = self._index.best_candidate()
            if candidate is None:
                termination = Termination.NO_FIT
                break

            self._state = EngineState.PLACING
            if not self._within_bounds(candidate):
                logger.warning("Discarding out-of-bounds candidate at %s", candidate.position)
                self._index.discard(candidate)
                continue

            self._index.commit(candidate)
            x, y, z = candidate.position
            placed = PlacedItem(
                index=len(placements), x=x, y=y, z=z,
                orientation=candidate.orientation,
            )
            placements.append(placed)
            self._index.maintain(iterations)

            if cfg.record_steps:
                steps.append(StepRecord(
                    iteration=iterations,
                    index=placed.index,
                    position=placed.position,
                    orientation=placed.orientation.tag,
                    score=candidate.score,
                    open_candidates=self._index.open_count,
                    elapsed_ms=(time.perf_counter() - step_t0) * 1000,
                ))

        return self._finish(placements, steps, theoretical_max, iterations, termination, t0)

    # -- Internals -----------------------------------------------------------

    def _within_bounds(self, candidate: Candidate) -> bool:
        tol = self.config.fit_tolerance
        x, y, z = candidate.position
        l, w, h = candidate.orientation.dims
        c = self.container
        return (
            x >= -tol and y >= -tol and z >= -tol
            and x + l <= c.length + tol
            and y + w <= c.width + tol
            and z + h <= c.height + tol
        )

    def _finish(
        self,
        placements: list[PlacedItem],
        steps: list[StepRecord],
        theoretical_max: int,
        iterations: int,
        termination: Termination,
        t0: float,
    ) -> PackingResult:
        self._state = EngineState.EXHAUSTED
        result = PackingResult(
            placements=tuple(placements),
            container=self.container,
            item=self.item.dimension,
            strategy=self.config.strategy,
            theoretical_max=theoretical_max,
            iterations=iterations,
            termination=termination,
            elapsed_ms=(time.perf_counter() - t0) * 1000,
            steps=tuple(steps),
        )
        logger.info(
            "Placed %d/%d items in %d iterations (%s, %.2f%% utilization)",
            result.placed_count, theoretical_max, iterations,
            termination.value, result.utilization,
        )
        return result


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def pack_detailed(
    container_dims,
    container_unit: str | LengthUnit = "cm",
    item_dims=None,
    item_unit: str | LengthUnit = "cm",
    *,
    strategy: str | None = None,
    config: PackingConfig | None = None,
) -> PackingResult:
    """
    Normalise units, validate geometry and run one packing pass.

    Args:
        container_dims: (length, width, height), a Dimension or a box-shaped
                        container variant, in *container_unit*.
        container_unit: Length unit tag of the container.
        item_dims:      (length, width, height) or Dimension in *item_unit*.
        item_unit:      Length unit tag of the item.
        strategy:       Overrides ``config.strategy`` when given.
        config:         Run configuration (defaults to PackingConfig()).

    Raises:
        InvalidGeometryError:      a dimension is zero, negative or missing.
        UnsupportedContainerError: the container has no box geometry.
        UnknownStrategyError:      the strategy is not registered.
    """
    if item_dims is None:
        raise InvalidGeometryError("item dimensions are required")
    config = config or PackingConfig()
    if strategy is not None:
        config = replace(config, strategy=strategy)

    container = normalize_dimensions(as_dimension(container_dims), container_unit)
    item = normalize_dimensions(item_dims, item_unit)
    return PackingEngine(container, Item(dimension=item), config).run()


def pack(
    container_dims,
    container_unit: str | LengthUnit = "cm",
    item_dims=None,
    item_unit: str | LengthUnit = "cm",
    *,
    strategy: str | None = None,
    config: PackingConfig | None = None,
) -> list[PlacedItem]:
    """
    Pack as many copies of one item as possible into one container.

    Returns the ordered list of PlacedItems (empty if nothing fits).
    Identical inputs always produce an identical list.  Runs stop at the
    theoretical maximum or the iteration budget; set
    ``PackingConfig.max_placements`` to cap them earlier.
    """
    result = pack_detailed(
        container_dims, container_unit, item_dims, item_unit,
        strategy=strategy, config=config,
    )
    return list(result.placements)
