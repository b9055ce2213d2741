"""
Extreme-point index over a voxel occupancy grid.

Algorithm overview:
    Instead of tracking free volumes, this index keeps a frontier of
    "extreme points": candidate positions for an item's minimum corner,
    generated from the far faces of the items already placed.  The origin
    seeds the frontier.  Committing an item at point (x, y, z) with
    oriented extents (l, w, h):

      - marks the item's cells in the occupancy grid,
      - adds (x + l, y, z), (x, y + w, z) and (x, y, z + h),
      - removes the consumed point and every point whose corner cell is
        now occupied.

    Points outside the container and points within 0.01 of an existing
    point are not added.

Feasibility:
    A point/orientation pair is feasible if the box lies within the
    container extents and the occupancy grid's sampled cells are free
    (corners + center, plus a coarse interior stride for large boxes, see
    OccupancyGrid.sample_is_free).

Candidate order:
    Points are sorted by (z, x, y) before every selection pass and
    orientations are visited in enumeration order.  The first candidate
    with the strictly greatest score wins, so results are reproducible.

References:
    Crainic, T.G., Perboli, G., & Tadei, R. (2008).
    "Extreme Point-Based Heuristics for Three-Dimensional Bin Packing."
    INFORMS Journal on Computing, 20(3), 368-384.
"""

from __future__ import annotations

from loadopt.config import Orientation
from loadopt.spatial.base import Candidate, SpatialIndex, register_index
from loadopt.spatial.occupancy import OccupancyGrid

# Two points closer than this on every axis are the same point
POINT_TOLERANCE: float = 0.01

ExtremePoint = tuple[float, float, float]


@register_index
class ExtremePointIndex(SpatialIndex):
    """
    Extreme-point frontier backed by an occupancy grid.

    Attributes:
        name:   Registry identifier ("extreme_points").
        grid:   Occupancy grid owned by this run.
        points: Open extreme points.
    """

    name: str = "extreme_points"

    def __init__(self, container, orientations, scorer, config) -> None:
        super().__init__(container, orientations, scorer, config)
        self.grid = OccupancyGrid(container, max_cells=config.max_grid_cells)
        self.points: list[ExtremePoint] = [(0.0, 0.0, 0.0)]

    @property
    def open_count(self) -> int:
        return len(self.points)

    # ── Feasibility ──────────────────────────────────────────────────────

    def can_place(self, point: ExtremePoint, orientation: Orientation) -> bool:
        """Bounds check against the container, then sampled grid check."""
        x, y, z = point
        l, w, h = orientation.dims
        tol = self.config.fit_tolerance
        c = self.container
        if x < 0 or y < 0 or z < 0:
            return False
        if x + l > c.length + tol or y + w > c.width + tol or z + h > c.height + tol:
            return False
        return self.grid.sample_is_free(
            point, orientation.dims,
            threshold=self.config.sample_threshold,
            divisions=self.config.sample_divisions,
        )

    # ── Selection ────────────────────────────────────────────────────────

    def best_candidate(self) -> Candidate | None:
        self.points.sort(key=lambda p: (p[2], p[0], p[1]))
        c = self.container

        best: Candidate | None = None
        for point in self.points:
            x, y, z = point
            region = (c.length - x, c.width - y, c.height - z)
            for orientation in self.orientations:
                if not self.can_place(point, orientation):
                    continue
                score = self.scorer.score(point, orientation, region)
                if best is None or score > best.score:
                    best = Candidate(
                        position=point,
                        orientation=orientation,
                        score=score,
                        anchor=point,
                    )
        return best

    # ── Mutation ─────────────────────────────────────────────────────────

    def commit(self, candidate: Candidate) -> None:
        x, y, z = candidate.position
        l, w, h = candidate.orientation.dims
        self.grid.mark(candidate.position, candidate.orientation.dims)

        for point in ((x + l, y, z), (x, y + w, z), (x, y, z + h)):
            if self._inside(point) and not self._known(point):
                self.points.append(point)

        self._remove(candidate.anchor)
        # a point whose corner cell is taken fails every later grid check
        self.points = [p for p in self.points if not self.grid.is_occupied(self.grid.cell_at(p))]

    def discard(self, candidate: Candidate) -> None:
        self._remove(candidate.anchor)

    # ── Helpers ──────────────────────────────────────────────────────────

    def _inside(self, point: ExtremePoint) -> bool:
        c = self.container
        x, y, z = point
        return 0 <= x < c.length and 0 <= y < c.width and 0 <= z < c.height

    def _known(self, point: ExtremePoint) -> bool:
        return any(_same_point(point, p) for p in self.points)

    def _remove(self, point: ExtremePoint) -> None:
        self.points = [p for p in self.points if not _same_point(p, point)]


def _same_point(a: ExtremePoint, b: ExtremePoint) -> bool:
    return (
        abs(a[0] - b[0]) < POINT_TOLERANCE
        and abs(a[1] - b[1]) < POINT_TOLERANCE
        and abs(a[2] - b[2]) < POINT_TOLERANCE
    )
