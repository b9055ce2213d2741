"""
Occupancy grid: a 3D boolean lattice with one cell per centimetre.

The grid is sized to the ceiling-rounded container dimensions and owned by
a single extreme-point index for the lifetime of one packing run.  Only
``mark()`` mutates it, and only the engine's commit path calls ``mark()``.

A box [x, x + l) touches the cells floor(x) .. ceil(x + l) - 1 on each
axis.  Marking uses that touched range, so boxes with fractional extents
claim every cell they reach into; two boxes never share a marked cell.

Usage:
    grid = OccupancyGrid(Dimension(50, 30, 40))
    grid.mark((0, 0, 0), (10, 10, 5))
    grid.sample_is_free((10, 0, 0), (10, 10, 5))   # True
"""

from __future__ import annotations

import math

import numpy as np

from loadopt.config import Dimension
from loadopt.errors import GridTooLargeError

# Absorbs float drift so that exact cell boundaries do not leak into neighbours
_EPS = 1e-9


class OccupancyGrid:
    """
    Boolean voxel grid over the container.

    Attributes:
        shape: (cells along x, cells along y, cells along z).
        cells: The underlying numpy array (True = occupied).
    """

    __slots__ = ("shape", "cells")

    def __init__(self, container: Dimension, max_cells: int = 200_000_000) -> None:
        shape = (
            math.ceil(container.length),
            math.ceil(container.width),
            math.ceil(container.height),
        )
        total = shape[0] * shape[1] * shape[2]
        if total > max_cells:
            raise GridTooLargeError(
                f"Occupancy grid {shape[0]}x{shape[1]}x{shape[2]} has {total} cells, "
                f"limit is {max_cells}"
            )
        self.shape: tuple[int, int, int] = shape
        self.cells: np.ndarray = np.zeros(shape, dtype=bool)

    # ── Coordinate conversion ────────────────────────────────────────────

    def _span(self, start: float, extent: float, axis: int) -> tuple[int, int]:
        """Touched cell range [first, end) along *axis*, clipped to the grid."""
        first = max(0, math.floor(start + _EPS))
        end = min(self.shape[axis], math.ceil(start + extent - _EPS))
        return first, end

    # ── Queries ──────────────────────────────────────────────────────────

    def cell_at(self, position: tuple[float, float, float]) -> tuple[int, int, int]:
        """Cell holding the minimum corner of a box placed at *position*."""
        return tuple(max(0, math.floor(v + _EPS)) for v in position)

    def is_occupied(self, cell: tuple[int, int, int]) -> bool:
        cx, cy, cz = cell
        if not (0 <= cx < self.shape[0] and 0 <= cy < self.shape[1] and 0 <= cz < self.shape[2]):
            return False
        return bool(self.cells[cx, cy, cz])

    def sample_is_free(
        self,
        position: tuple[float, float, float],
        dims: tuple[float, float, float],
        threshold: int = 10,
        divisions: int = 5,
    ) -> bool:
        """
        Approximate emptiness test for the box at *position* with *dims*.

        Samples the eight corner cells and the center cell.  If any extent
        exceeds *threshold* cells, the interior is also sampled on a stride
        of about extent / *divisions* on every axis.

        This is a deliberate approximation: an occupied region that slips
        between the samples goes undetected.  Exhaustive checking would make
        every probe cost the full box volume in cells.
        """
        spans = [self._span(position[a], dims[a], a) for a in range(3)]
        if any(end <= first for first, end in spans):
            return True

        corners = [
            np.array(sorted({first, end - 1}), dtype=np.intp)
            for first, end in spans
        ]
        if self.cells[np.ix_(*corners)].any():
            return False

        center = tuple(
            min(self.shape[a] - 1, max(0, math.floor(position[a] + dims[a] / 2)))
            for a in range(3)
        )
        if self.cells[center]:
            return False

        if any(d > threshold for d in dims):
            axes = []
            for a in range(3):
                step = max(1, math.floor(dims[a] / divisions))
                offsets = np.arange(0.0, dims[a], step)
                idx = np.floor(position[a] + offsets).astype(np.intp)
                idx = idx[(idx >= 0) & (idx < self.shape[a])]
                if idx.size == 0:
                    return True
                axes.append(idx)
            if self.cells[np.ix_(*axes)].any():
                return False

        return True

    def occupied_fraction(self) -> float:
        """Fraction of cells marked occupied."""
        if self.cells.size == 0:
            return 0.0
        return float(np.count_nonzero(self.cells)) / self.cells.size

    # ── Mutation (engine commit path only) ───────────────────────────────

    def mark(
        self,
        position: tuple[float, float, float],
        dims: tuple[float, float, float],
    ) -> None:
        """Mark every cell touched by the box as occupied."""
        (x0, x1), (y0, y1), (z0, z1) = (
            self._span(position[a], dims[a], a) for a in range(3)
        )
        self.cells[x0:x1, y0:y1, z0:z1] = True

    def __repr__(self) -> str:
        return (
            f"OccupancyGrid(shape={self.shape}, "
            f"occupied={self.occupied_fraction():.1%})"
        )
