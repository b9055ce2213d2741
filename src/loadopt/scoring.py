"""
Placement scoring: ranks candidate (position, orientation) pairs.

Both spatial indexes hand the scorer a candidate position, an orientation
and the extents of the region the item would go into:

  * guillotine index:     the free space itself
  * extreme-point index:  the box from the point to the container's far corner

Score terms (each in [0, 1]):
    volume     = orientation volume / region volume          (tight fit)
    position   = 1 / (1 + x + y + z)                        (near origin)
    tightness  = mean over axes of extent / region extent    (little slack)

    score = w.volume * volume + w.position * position + w.tightness * tightness

The candidate with the strictly greatest score wins; ties keep the first
one evaluated, so the caller's iteration order decides them.
"""

from __future__ import annotations

from dataclasses import dataclass

from loadopt.config import Orientation, ScoringWeights


@dataclass(frozen=True)
class ScoreBreakdown:
    volume: float
    position: float
    tightness: float
    total: float


class PlacementScorer:
    """Weighted multi-criteria score for candidate placements."""

    def __init__(self, weights: ScoringWeights) -> None:
        self.weights = weights

    def breakdown(
        self,
        position: tuple[float, float, float],
        orientation: Orientation,
        region: tuple[float, float, float],
    ) -> ScoreBreakdown:
        """Score a candidate and return every term alongside the total."""
        x, y, z = position
        rl, rw, rh = region
        ol, ow, oh = orientation.dims

        region_volume = rl * rw * rh
        volume_term = min(1.0, orientation.volume / region_volume) if region_volume > 0 else 0.0
        position_term = 1.0 / (1.0 + x + y + z)
        tightness_term = (
            _ratio(ol, rl) + _ratio(ow, rw) + _ratio(oh, rh)
        ) / 3.0

        w = self.weights
        total = (
            w.volume * volume_term
            + w.position * position_term
            + w.tightness * tightness_term
        )
        return ScoreBreakdown(volume_term, position_term, tightness_term, total)

    def score(
        self,
        position: tuple[float, float, float],
        orientation: Orientation,
        region: tuple[float, float, float],
    ) -> float:
        return self.breakdown(position, orientation, region).total


def _ratio(extent: float, available: float) -> float:
    if available <= 0:
        return 0.0
    return min(1.0, extent / available)
