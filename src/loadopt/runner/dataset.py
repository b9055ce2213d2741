"""Seeded item generation for strategy benchmarks."""

import random
from typing import Callable

from loadopt.config import Dimension, Item


def generate_items(
    count: int = 20,
    seed: int | None = None,
    min_edge: float = 20.0,
    max_edge: float = 60.0,
    min_weight: float = 0.5,
    max_weight: float = 25.0,
) -> list[Item]:
    """
    Generate random item types for benchmarking.

    Args:
        count: Number of item types to generate
        seed: Random seed for reproducibility (default: None)
        min_edge: Smallest edge length in cm
        max_edge: Largest edge length in cm
        min_weight: Lightest unit weight in kg
        max_weight: Heaviest unit weight in kg

    Returns:
        List of Items with ids 0..count-1, edges rounded to 0.5 cm
    """
    if min_edge <= 0 or max_edge < min_edge:
        raise ValueError(f"Invalid edge range [{min_edge}, {max_edge}]")

    rng = random.Random(seed)
    items = []
    for i in range(count):
        length, width, height = (
            round(rng.uniform(min_edge, max_edge) * 2) / 2 for _ in range(3)
        )
        weight = round(rng.uniform(min_weight, max_weight), 2)
        items.append(Item(dimension=Dimension(length, width, height), id=i, weight=weight))

    return items


def volume_sorted(items: list[Item]) -> list[Item]:
    """Largest items first."""
    return sorted(items, key=lambda it: it.volume, reverse=True)


def as_generated(items: list[Item]) -> list[Item]:
    return list(items)


# Map of item ordering names to functions
ITEM_ORDERINGS: dict[str, Callable[[list[Item]], list[Item]]] = {
    "generated": as_generated,
    "volume_sorted": volume_sorted,
}


def get_item_ordering(name: str) -> Callable[[list[Item]], list[Item]]:
    """
    Get an item ordering function by name.

    Raises:
        ValueError: If the ordering name is not recognized
    """
    if name not in ITEM_ORDERINGS:
        raise ValueError(
            f"Unknown item ordering: {name}. "
            f"Available: {list(ITEM_ORDERINGS.keys())}"
        )
    return ITEM_ORDERINGS[name]
