"""
Orientation enumeration: the distinct axis-aligned rotations of a box.

A box has six axis permutations.  Equal side lengths make some of them
identical; those collapse to the first entry so the engine never scores
the same extents twice.

The rotation descriptor is an XYZ-order Euler triple (z applied first),
which is what a renderer needs to turn the natural model into place:

    tag   extents   rotation (rx, ry, rz)
    lwh   (l,w,h)   (0,    0,    0)
    wlh   (w,l,h)   (0,    0,    π/2)   swap x/y: about z
    lhw   (l,h,w)   (π/2,  0,    0)     swap y/z: about x
    hwl   (h,w,l)   (0,    π/2,  0)     swap x/z: about y
    whl   (w,h,l)   (π/2,  0,    π/2)   about z, then about x
    hlw   (h,l,w)   (0,    π/2,  π/2)   about z, then about y
"""

from __future__ import annotations

import math

from loadopt.config import Dimension, Orientation

_HALF_PI = math.pi / 2

# (tag, permutation of (l, w, h) indices, Euler rotation)
_PERMUTATIONS: tuple[tuple[str, tuple[int, int, int], tuple[float, float, float]], ...] = (
    ("lwh", (0, 1, 2), (0.0, 0.0, 0.0)),
    ("wlh", (1, 0, 2), (0.0, 0.0, _HALF_PI)),
    ("lhw", (0, 2, 1), (_HALF_PI, 0.0, 0.0)),
    ("hwl", (2, 1, 0), (0.0, _HALF_PI, 0.0)),
    ("whl", (1, 2, 0), (_HALF_PI, 0.0, _HALF_PI)),
    ("hlw", (2, 0, 1), (0.0, _HALF_PI, _HALF_PI)),
)

FLAT_TAGS = ("lwh", "wlh")


def enumerate_orientations(dimension: Dimension, allow_all: bool = True) -> list[Orientation]:
    """
    Return the distinct orientations of *dimension*.

    Args:
        dimension: Natural item size.
        allow_all: If False, only rotations about the vertical axis
                   (the item keeps its height) are returned.

    Returns:
        Up to 6 orientations, natural orientation first, duplicates removed.
    """
    natural = dimension.as_tuple()
    seen: set[tuple[float, float, float]] = set()
    result: list[Orientation] = []
    for tag, perm, rotation in _PERMUTATIONS:
        if not allow_all and tag not in FLAT_TAGS:
            continue
        dims = (natural[perm[0]], natural[perm[1]], natural[perm[2]])
        if dims in seen:
            continue
        seen.add(dims)
        result.append(Orientation(
            dims=dims,
            rotation=rotation,
            tag=tag,
            rotated=dims != natural,
        ))
    return result


def fitting_orientations(
    orientations: list[Orientation],
    extents: tuple[float, float, float],
    tolerance: float = 1e-3,
) -> list[Orientation]:
    """Orientations whose extents fit inside *extents* (order preserved)."""
    return [o for o in orientations if o.fits_in(extents, tolerance)]
