"""
Combination optimizer: chooses how many units of each product type to load
together under a shared volume and weight budget.

Algorithm (greedy, integer increments):
    1. Seed every candidate with ``seed_quantity`` units (1 by default).
    2. efficiency = unit weight / unit volume; visit candidates by
       efficiency, highest first (stable for ties: input order).
    3. Scan the list; every candidate whose next unit keeps both running
       totals within budget gets one more unit.
    4. Repeat until a full scan adds nothing.

Seeding is not checked against the budget: if one unit of every type
already exceeds it, the seeded combination is returned as-is and
``CombinationSummary.within_budget`` is False.  Callers validate.

Each successful increment raises the total volume by a positive amount,
so the loop always reaches the fixed point.  A candidate rejected in one
scan stays rejected, so the scans after it repeat its accepted set until
a ceiling gets close; those repeats are applied in one step.
``max_passes`` optionally caps the number of scans.
"""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass, replace
from typing import Iterable

from loadopt.config import CombinationConfig, Dimension
from loadopt.errors import InvalidGeometryError
from loadopt.units import WeightUnit, normalize_dimensions, parse_dimensions, to_kilograms

logger = logging.getLogger(__name__)


def _require(name: str, value: float, allow_zero: bool = False) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
        raise InvalidGeometryError(f"{name} must be a finite number, got {value!r}")
    if value < 0 or (value == 0 and not allow_zero):
        bound = ">= 0" if allow_zero else "> 0"
        raise InvalidGeometryError(f"{name} must be {bound}, got {value!r}")


@dataclass
class CombinationCandidate:
    """
    One product type competing for space in the shared container.

    Attributes:
        name:        Display identifier (product name or row id).
        unit_weight: Weight of one unit (kg).
        unit_volume: Volume of one unit (cm³).
        quantity:    Units committed so far.
    """
    name: str
    unit_weight: float
    unit_volume: float
    quantity: int = 0

    def __post_init__(self) -> None:
        _require("unit_weight", self.unit_weight, allow_zero=True)
        _require("unit_volume", self.unit_volume)
        if self.quantity < 0:
            raise InvalidGeometryError(f"quantity must be >= 0, got {self.quantity!r}")

    @classmethod
    def from_dimensions(
        cls,
        name: str,
        dimensions: str | Dimension,
        unit_weight: float,
        length_unit: str = "cm",
        weight_unit: str | WeightUnit = "kg",
    ) -> "CombinationCandidate":
        """Build a candidate from an "LxWxH" string (or Dimension) and a unit weight."""
        if isinstance(dimensions, str):
            dim = parse_dimensions(dimensions, length_unit)
        else:
            dim = normalize_dimensions(dimensions, length_unit)
        return cls(
            name=name,
            unit_weight=to_kilograms(unit_weight, weight_unit),
            unit_volume=dim.volume,
        )

    @property
    def efficiency(self) -> float:
        """Weight per unit volume; denser types are preferred."""
        return self.unit_weight / self.unit_volume

    @property
    def total_weight(self) -> float:
        return self.quantity * self.unit_weight

    @property
    def total_volume(self) -> float:
        return self.quantity * self.unit_volume

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "unit_weight": self.unit_weight,
            "unit_volume": self.unit_volume,
            "quantity": self.quantity,
            "total_weight": round(self.total_weight, 4),
            "total_volume": round(self.total_volume, 4),
        }


@dataclass(frozen=True)
class ContainerBudget:
    """Shared ceilings for a combination: volume (cm³) and weight (kg)."""
    max_volume: float
    max_weight: float

    def __post_init__(self) -> None:
        _require("max_volume", self.max_volume)
        _require("max_weight", self.max_weight)

    @classmethod
    def from_dimension(cls, dimension: Dimension, max_weight: float) -> "ContainerBudget":
        return cls(max_volume=dimension.volume, max_weight=max_weight)


# ─────────────────────────────────────────────────────────────────────────────
# Optimizer
# ─────────────────────────────────────────────────────────────────────────────

def optimize_combination(
    candidates: Iterable[CombinationCandidate],
    budget: ContainerBudget,
    config: CombinationConfig | None = None,
) -> list[CombinationCandidate]:
    """
    Greedy multi-type fill under joint volume and weight ceilings.

    The inputs are not mutated.  Returns new candidates, in input order,
    carrying their final quantities.
    """
    config = config or CombinationConfig()
    result = [replace(c, quantity=config.seed_quantity) for c in candidates]
    if not result:
        return result

    total_volume = sum(c.total_volume for c in result)
    total_weight = sum(c.total_weight for c in result)
    if total_volume > budget.max_volume or total_weight > budget.max_weight:
        logger.warning(
            "Seeded combination already exceeds budget (volume %.2f/%.2f, weight %.2f/%.2f)",
            total_volume, budget.max_volume, total_weight, budget.max_weight,
        )

    # sorted() is stable: equal efficiencies keep input order
    order = sorted(result, key=lambda c: c.efficiency, reverse=True)

    max_passes = config.max_passes
    passes = 0
    while max_passes is None or passes < max_passes:
        passes += 1
        accepted = []
        for cand in order:
            if (total_volume + cand.unit_volume <= budget.max_volume
                    and total_weight + cand.unit_weight <= budget.max_weight):
                cand.quantity += 1
                total_volume += cand.unit_volume
                total_weight += cand.unit_weight
                accepted.append(cand)
        if not accepted:
            break

        repeats = _repeatable_scans(accepted, total_volume, total_weight, budget)
        if max_passes is not None:
            repeats = min(repeats, max_passes - passes)
        if repeats > 0:
            for cand in accepted:
                cand.quantity += repeats
            total_volume += repeats * sum(c.unit_volume for c in accepted)
            total_weight += repeats * sum(c.unit_weight for c in accepted)
            passes += repeats

    logger.info(
        "Combination settled after %d passes: %d units, volume %.2f, weight %.2f",
        passes, sum(c.quantity for c in result), total_volume, total_weight,
    )
    return result


def _repeatable_scans(
    accepted: list[CombinationCandidate],
    total_volume: float,
    total_weight: float,
    budget: ContainerBudget,
) -> int:
    """
    Number of further scans guaranteed to accept exactly *accepted* again.

    Candidates rejected in the last scan stay rejected because totals only
    grow.  One scan is held back so the final scans near a ceiling run
    one unit at a time with the same float accumulation as the plain loop.
    """
    scan_volume = sum(c.unit_volume for c in accepted)
    scan_weight = sum(c.unit_weight for c in accepted)
    fits = (budget.max_volume - total_volume) / scan_volume
    if scan_weight > 0:
        fits = min(fits, (budget.max_weight - total_weight) / scan_weight)
    return max(0, math.floor(fits) - 1)


@dataclass(frozen=True)
class CombinationSummary:
    total_units: int
    total_volume: float
    total_weight: float
    volume_utilization: float
    weight_utilization: float
    within_budget: bool

    def to_dict(self) -> dict:
        return {
            "total_units": self.total_units,
            "total_volume": round(self.total_volume, 4),
            "total_weight": round(self.total_weight, 4),
            "volume_utilization_pct": self.volume_utilization,
            "weight_utilization_pct": self.weight_utilization,
            "within_budget": self.within_budget,
        }


def summarize_combination(
    result: Iterable[CombinationCandidate],
    budget: ContainerBudget,
) -> CombinationSummary:
    """Totals and utilization percentages for an optimized combination."""
    result = list(result)
    total_volume = sum(c.total_volume for c in result)
    total_weight = sum(c.total_weight for c in result)
    return CombinationSummary(
        total_units=sum(c.quantity for c in result),
        total_volume=total_volume,
        total_weight=total_weight,
        volume_utilization=round(100.0 * total_volume / budget.max_volume, 2),
        weight_utilization=round(100.0 * total_weight / budget.max_weight, 2),
        within_budget=(total_volume <= budget.max_volume
                       and total_weight <= budget.max_weight),
    )
