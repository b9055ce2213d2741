"""
Guillotine free-space index.

Algorithm overview:
    The index keeps a list of free spaces, starting with one space that
    spans the whole container.  An item is always placed at the minimum
    corner of a free space.  The used space is then cut along the item's
    far faces into at most three successors, each bounded by the original
    space:

        right  (x + l, y,     z,     L - l, W,     H    )
        front  (x,     y + w, z,     l,     W - w, H    )
        top    (x,     y,     z + h, l,     w,     H - h)

    The successors and the item partition the original space exactly, so
    free spaces never overlap each other or any placed item.

    Every ``prune_interval`` commits the list is pruned: spaces that cannot
    host any orientation of the item are dropped, and so are spaces wholly
    contained in another retained space.

Candidate order:
    Spaces are visited sorted by (z, x, y); orientations in enumeration
    order.  The first candidate with the strictly greatest score wins.
"""

from __future__ import annotations

import logging

from loadopt.config import Orientation
from loadopt.spatial.base import Candidate, SpatialIndex, register_index

logger = logging.getLogger(__name__)

# Float slack on bounds that are not container walls
_EXTENT_EPS = 1e-9


class FreeSpace:
    """
    An axis-aligned free box inside the container.

    Attributes:
        x, y, z:  Minimum corner.
        length:   Extent along x.
        width:    Extent along y.
        height:   Extent along z.
    """

    __slots__ = ("x", "y", "z", "length", "width", "height")

    def __init__(
        self, x: float, y: float, z: float,
        length: float, width: float, height: float,
    ) -> None:
        self.x = x
        self.y = y
        self.z = z
        self.length = length
        self.width = width
        self.height = height

    @property
    def origin(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @property
    def extents(self) -> tuple[float, float, float]:
        return (self.length, self.width, self.height)

    @property
    def volume(self) -> float:
        return self.length * self.width * self.height

    def contains(self, other: "FreeSpace", eps: float = 1e-9) -> bool:
        """True if *other* lies wholly inside this space."""
        return (
            other.x >= self.x - eps
            and other.y >= self.y - eps
            and other.z >= self.z - eps
            and other.x + other.length <= self.x + self.length + eps
            and other.y + other.width <= self.y + self.width + eps
            and other.z + other.height <= self.z + self.height + eps
        )

    def same_as(self, other: "FreeSpace", eps: float = 1e-9) -> bool:
        return self.contains(other, eps) and other.contains(self, eps)

    def split(self, orientation: Orientation) -> list["FreeSpace"]:
        """
        Successor spaces after placing *orientation* at this space's origin.

        Successors with a non-positive extent are discarded.
        """
        l, w, h = orientation.dims
        successors = [
            FreeSpace(self.x + l, self.y, self.z,
                      self.length - l, self.width, self.height),
            FreeSpace(self.x, self.y + w, self.z,
                      l, self.width - w, self.height),
            FreeSpace(self.x, self.y, self.z + h,
                      l, w, self.height - h),
        ]
        return [s for s in successors if s.length > 0 and s.width > 0 and s.height > 0]

    def __repr__(self) -> str:
        return (
            f"FreeSpace(origin=({self.x:g},{self.y:g},{self.z:g}), "
            f"size=({self.length:g},{self.width:g},{self.height:g}))"
        )


@register_index
class GuillotineIndex(SpatialIndex):
    """
    Free-space list under guillotine splitting.

    Attributes:
        name:   Registry identifier ("guillotine").
        spaces: Current free spaces (mutable, owned by this run).
    """

    name: str = "guillotine"

    def __init__(self, container, orientations, scorer, config) -> None:
        super().__init__(container, orientations, scorer, config)
        self.spaces: list[FreeSpace] = [
            FreeSpace(0.0, 0.0, 0.0, container.length, container.width, container.height)
        ]

    @property
    def open_count(self) -> int:
        return len(self.spaces)

    def best_candidate(self) -> Candidate | None:
        """
        Score every (space, orientation) pair that fits and return the best.

        Fit check: every oriented extent <= space extent.  fit_tolerance is
        added only on axes where the space ends at the container wall.
        """
        self.spaces.sort(key=lambda s: (s.z, s.x, s.y))

        best: Candidate | None = None
        for space in self.spaces:
            extents = space.extents
            for orientation in self.orientations:
                if not self._fits(space, orientation):
                    continue
                score = self.scorer.score(space.origin, orientation, extents)
                if best is None or score > best.score:
                    best = Candidate(
                        position=space.origin,
                        orientation=orientation,
                        score=score,
                        anchor=space,
                    )
        return best

    def commit(self, candidate: Candidate) -> None:
        space: FreeSpace = candidate.anchor
        self._remove(space)
        self.spaces.extend(space.split(candidate.orientation))

    def discard(self, candidate: Candidate) -> None:
        self._remove(candidate.anchor)

    def maintain(self, iteration: int) -> None:
        if iteration % self.config.prune_interval == 0:
            self.prune()

    def prune(self) -> None:
        """
        Drop spaces that cannot host any orientation, then spaces contained
        in another retained space.  Of two identical spaces the first is kept.
        """
        before = len(self.spaces)
        usable = [
            s for s in self.spaces
            if any(self._fits(s, o) for o in self.orientations)
        ]

        kept: list[FreeSpace] = []
        for i, space in enumerate(usable):
            covered = False
            for j, other in enumerate(usable):
                if i == j or not other.contains(space):
                    continue
                # identical spaces: only the later duplicate goes
                if other.same_as(space) and j > i:
                    continue
                covered = True
                break
            if not covered:
                kept.append(space)

        self.spaces = kept
        logger.debug("Pruned free spaces: %d -> %d", before, len(kept))

    def _fits(self, space: FreeSpace, orientation: Orientation) -> bool:
        # slack on an inner bound would overlap the neighbouring item
        tol = self.config.fit_tolerance
        walls = self.container.as_tuple()
        slack = tuple(
            tol if abs(o + e - wall) <= tol else _EXTENT_EPS
            for o, e, wall in zip(space.origin, space.extents, walls)
        )
        return all(d <= e + s for d, e, s in zip(orientation.dims, space.extents, slack))

    def _remove(self, space: FreeSpace) -> None:
        for i, s in enumerate(self.spaces):
            if s is space:
                del self.spaces[i]
                return
